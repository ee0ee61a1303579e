from __future__ import annotations

from ..extensions import db
from instasupply.time_utils import to_utc_z, utcnow

CAMPAIGN_ACTIVE = "Active"
CAMPAIGN_PAUSED = "Paused"
CAMPAIGN_COMPLETED = "Completed"
CAMPAIGN_CANCELLED = "Cancelled"
CAMPAIGN_STATUSES = (CAMPAIGN_ACTIVE, CAMPAIGN_PAUSED, CAMPAIGN_COMPLETED, CAMPAIGN_CANCELLED)


campaign_products = db.Table(
    "campaign_products",
    db.Column("campaign_id", db.Integer, db.ForeignKey("campaigns.id", ondelete="CASCADE"), primary_key=True),
    db.Column("product_id", db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
)


class Campaign(db.Model):
    """
    Paid promotion of some of a supplier's products.

    impressions, clicks and total_spent_cents only grow, and only through
    campaign_service.record_metrics(); each click costs
    CAMPAIGN_COST_PER_CLICK_CENTS.
    """
    __tablename__ = "campaigns"
    __table_args__ = (
        db.CheckConstraint("daily_budget_cents > 0", name="ck_campaigns_daily_budget_positive"),
        db.Index("ix_campaigns_supplier_status", "supplier_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=CAMPAIGN_ACTIVE)

    daily_budget_cents = db.Column(db.Integer, nullable=False)
    total_spent_cents = db.Column(db.Integer, nullable=False, default=0)

    impressions = db.Column(db.Integer, nullable=False, default=0)
    clicks = db.Column(db.Integer, nullable=False, default=0)

    start_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    end_date = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    supplier = db.relationship("Supplier", backref=db.backref("campaigns", lazy=True))
    # Deleting a product through the ORM drops its association rows via the backref
    products = db.relationship(
        "Product",
        secondary=campaign_products,
        order_by="Product.id",
        lazy=True,
        backref=db.backref("campaigns", lazy=True),
    )

    def __repr__(self) -> str:
        return f"<Campaign {self.id} {self.name!r} {self.status}>"

    @property
    def click_through_rate(self) -> float:
        """Percent of impressions that were clicked, 2 decimals."""
        if not self.impressions:
            return 0.0
        return round(self.clicks / self.impressions * 100, 2)

    @property
    def cost_per_click_cents(self) -> int:
        if not self.clicks:
            return 0
        return round(self.total_spent_cents / self.clicks)

    def to_dict(self, include_products: bool = True) -> dict:
        data = {
            "id": self.id,
            "supplier_id": self.supplier_id,
            "name": self.name,
            "status": self.status,
            "daily_budget_cents": self.daily_budget_cents,
            "total_spent_cents": self.total_spent_cents,
            "impressions": self.impressions,
            "clicks": self.clicks,
            "start_date": to_utc_z(self.start_date),
            "end_date": to_utc_z(self.end_date),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_products:
            data["products"] = [
                {"id": p.id, "name": p.name, "price_cents": p.price_cents, "image_url": p.image_url}
                for p in self.products
            ]
        return data
