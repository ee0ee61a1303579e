from __future__ import annotations

from ..extensions import db
from instasupply.time_utils import to_utc_z

STOCK_IN = "inStock"
STOCK_LOW = "lowStock"
STOCK_OUT = "outOfStock"


class Product(db.Model):
    """
    Product master data, owned by exactly one supplier.

    STOCK COUNTERS:
    - stock: units on hand, never negative (CheckConstraint + conditional updates)
    - sold_quantity: units sold through orders; reversed when an order is deleted
    - low_stock_threshold: at or below this level a replenishment alert fires

    Order placement and deletion change the counters with single-statement
    increments (see order_service); nothing else writes them concurrently.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.Index("ix_products_supplier_active", "supplier_id", "is_active"),
        db.Index("ix_products_supplier_category", "supplier_id", "category"),
        db.Index("ix_products_sold_quantity", "sold_quantity"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(64), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Authoritative storage in cents (frontend may only format for display)
    price_cents = db.Column(db.Integer, nullable=False)

    stock = db.Column(db.Integer, nullable=False, default=0)
    low_stock_threshold = db.Column(db.Integer, nullable=False, default=10)
    sold_quantity = db.Column(db.Integer, nullable=False, default=0)

    discount_percent = db.Column(db.Integer, nullable=False, default=0)
    unit = db.Column(db.String(32), nullable=False, default="Unit")

    # CDN URL; upload happens outside this service
    image_url = db.Column(db.String(512), nullable=True)

    available_for_delivery = db.Column(db.Boolean, nullable=False, default=True)
    available_for_pickup = db.Column(db.Boolean, nullable=False, default=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    supplier = db.relationship("Supplier", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock} supplier_id={self.supplier_id}>"

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.low_stock_threshold

    @property
    def stock_status(self) -> str:
        if self.stock == 0:
            return STOCK_OUT
        if self.is_low_stock:
            return STOCK_LOW
        return STOCK_IN

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "supplier_id": self.supplier_id,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "price_cents": self.price_cents,
            "stock": self.stock,
            "low_stock_threshold": self.low_stock_threshold,
            "sold_quantity": self.sold_quantity,
            "stock_status": self.stock_status,
            "discount_percent": self.discount_percent,
            "unit": self.unit,
            "image_url": self.image_url,
            "delivery_options": {
                "available_for_delivery": self.available_for_delivery,
                "available_for_pickup": self.available_for_pickup,
            },
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
