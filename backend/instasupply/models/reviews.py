from __future__ import annotations

from ..extensions import db
from instasupply.time_utils import to_utc_z


class Review(db.Model):
    """
    Customer review of a supplier.

    Posted without authentication; the supplier may reply once (the reply can
    be edited) or hide the review. Hidden reviews stay in the table so the
    store's running rating is never recomputed.
    """
    __tablename__ = "reviews"
    __table_args__ = (
        db.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
        db.Index("ix_reviews_supplier_created", "supplier_id", "created_at"),
        db.Index("ix_reviews_supplier_visible_rating", "supplier_id", "is_visible", "rating"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="SET NULL"), nullable=True)

    customer_name = db.Column(db.String(255), nullable=False)
    customer_email = db.Column(db.String(255), nullable=True)

    rating = db.Column(db.Integer, nullable=False)
    review_text = db.Column(db.Text, nullable=True)

    # CDN URLs; uploading happens outside this service
    images = db.Column(db.JSON, nullable=False, default=list)

    # Supplier reply
    reply_company_name = db.Column(db.String(255), nullable=True)
    reply_text = db.Column(db.Text, nullable=True)
    reply_created_at = db.Column(db.DateTime(timezone=True), nullable=True)
    reply_updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    is_visible = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    supplier = db.relationship("Supplier", backref=db.backref("reviews", lazy=True))

    def __repr__(self) -> str:
        return f"<Review {self.id} supplier={self.supplier_id} rating={self.rating}>"

    def to_dict(self) -> dict:
        reply = None
        if self.reply_text:
            reply = {
                "company_name": self.reply_company_name,
                "reply_text": self.reply_text,
                "created_at": to_utc_z(self.reply_created_at),
                "updated_at": to_utc_z(self.reply_updated_at),
            }
        return {
            "id": self.id,
            "supplier_id": self.supplier_id,
            "order_id": self.order_id,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "rating": self.rating,
            "review_text": self.review_text,
            "images": list(self.images or []),
            "reply": reply,
            "is_visible": self.is_visible,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
