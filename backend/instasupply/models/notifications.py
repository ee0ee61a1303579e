from __future__ import annotations

from ..extensions import db
from instasupply.time_utils import to_utc_z


class Notification(db.Model):
    """
    Supplier inbox entry.

    Created as a side effect of other operations (new order, low stock,
    delivered order). Never required to succeed for the triggering operation.
    """
    __tablename__ = "notifications"
    __table_args__ = (
        db.Index("ix_notifications_supplier_created", "supplier_id", "created_at"),
        db.Index("ix_notifications_supplier_read", "supplier_id", "is_read"),
        db.Index("ix_notifications_supplier_type", "supplier_id", "type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)

    type = db.Column(db.String(16), nullable=False)  # Order, Product, Campaign, Review, Payment, System
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    icon = db.Column(db.String(16), nullable=False, default="system")  # order, alert, campaign, review, payment, system

    is_read = db.Column(db.Boolean, nullable=False, default=False)

    # Optional back-reference to the entity that caused it
    related_id = db.Column(db.Integer, nullable=True)
    related_type = db.Column(db.String(32), nullable=True)

    # "metadata" is reserved on declarative models
    extra = db.Column("metadata", db.JSON, nullable=False, default=dict)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    supplier = db.relationship("Supplier", backref=db.backref("notifications", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "supplier_id": self.supplier_id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "icon": self.icon,
            "is_read": self.is_read,
            "related_id": self.related_id,
            "related_type": self.related_type,
            "metadata": self.extra or {},
            "created_at": to_utc_z(self.created_at),
        }
