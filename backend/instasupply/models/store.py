from __future__ import annotations

from ..extensions import db
from instasupply.time_utils import to_utc_z


class StoreSettings(db.Model):
    """
    One row per supplier: opening hours and the running customer rating.

    rating is total_ratings / rating_count, kept in step by
    store_service.record_rating() in a single UPDATE.
    """
    __tablename__ = "store_settings"
    __table_args__ = (
        db.UniqueConstraint("supplier_id", name="uq_store_settings_supplier"),
        db.CheckConstraint("rating >= 0 AND rating <= 5", name="ck_store_settings_rating_range"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False)

    is_open = db.Column(db.Boolean, nullable=False, default=True)
    # "HH:MM", 24-hour clock
    opening_time = db.Column(db.String(5), nullable=False, default="09:00")
    closing_time = db.Column(db.String(5), nullable=False, default="21:00")

    rating = db.Column(db.Float, nullable=False, default=0.0)
    total_ratings = db.Column(db.Integer, nullable=False, default=0)
    rating_count = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    supplier = db.relationship("Supplier", backref=db.backref("store_settings", uselist=False, lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "supplier_id": self.supplier_id,
            "is_open": self.is_open,
            "opening_time": self.opening_time,
            "closing_time": self.closing_time,
            "rating": round(self.rating or 0.0, 1),
            "rating_count": self.rating_count,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
