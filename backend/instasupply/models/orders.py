from __future__ import annotations

from ..extensions import db
from instasupply.time_utils import to_utc_z


class Order(db.Model):
    """
    Customer order placed against a supplier's catalog.

    WHY line items snapshot name and price: the order total is frozen at
    placement time; later catalog edits (or deletes) never change it.

    History is append-only (OrderHistoryEntry). Status changes always go
    through order_service so that each one adds exactly one entry.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.UniqueConstraint("order_number", name="uq_orders_order_number"),
        db.Index("ix_orders_supplier_created", "supplier_id", "created_at"),
        db.Index("ix_orders_supplier_status", "supplier_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable sequence number (e.g., "INS0001")
    order_number = db.Column(db.String(32), nullable=False)

    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)

    total_amount_cents = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(32), nullable=False, default="New Order", index=True)

    # Customer (optional, not validated beyond presence)
    customer_name = db.Column(db.String(255), nullable=True)
    customer_email = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(64), nullable=True)
    customer_type = db.Column(db.String(32), nullable=False, default="Other")

    # Delivery address
    delivery_label = db.Column(db.String(255), nullable=True)
    delivery_street = db.Column(db.String(255), nullable=True)
    delivery_city = db.Column(db.String(120), nullable=True)
    delivery_state = db.Column(db.String(120), nullable=True)
    delivery_zip_code = db.Column(db.String(32), nullable=True)
    delivery_country = db.Column(db.String(120), nullable=True)
    delivery_full_address = db.Column(db.String(512), nullable=True)

    delivery_method = db.Column(db.String(32), nullable=False, default="Standard Delivery")
    delivery_time = db.Column(db.String(120), nullable=True)

    # Payment method summary (no card data beyond last4)
    payment_method_type = db.Column(db.String(32), nullable=True)
    payment_last4 = db.Column(db.String(4), nullable=True)
    payment_brand = db.Column(db.String(32), nullable=True)

    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    supplier = db.relationship("Supplier", backref=db.backref("orders", lazy=True))
    items = db.relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
        lazy=True,
    )
    history = db.relationship(
        "OrderHistoryEntry",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderHistoryEntry.id",
        lazy=True,
    )

    def delivery_address_dict(self) -> dict:
        return {
            "name": self.delivery_label,
            "street": self.delivery_street,
            "city": self.delivery_city,
            "state": self.delivery_state,
            "zip_code": self.delivery_zip_code,
            "country": self.delivery_country,
            "full_address": self.delivery_full_address,
        }

    def payment_method_dict(self) -> dict | None:
        if not self.payment_method_type:
            return None
        return {
            "type": self.payment_method_type,
            "last4": self.payment_last4,
            "brand": self.payment_brand,
        }

    def to_dict(self, *, include_category: bool = False, history_newest_first: bool = False) -> dict:
        history = list(self.history)
        if history_newest_first:
            history.sort(key=lambda h: (h.created_at, h.id), reverse=True)
        return {
            "id": self.id,
            "order_number": self.order_number,
            "supplier_id": self.supplier_id,
            "items": [item.to_dict(include_category=include_category) for item in self.items],
            "item_count": len(self.items),
            "total_amount_cents": self.total_amount_cents,
            "status": self.status,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "customer_phone": self.customer_phone,
            "customer_type": self.customer_type,
            "delivery_address": self.delivery_address_dict(),
            "delivery_method": self.delivery_method,
            "delivery_time": self.delivery_time,
            "payment_method": self.payment_method_dict(),
            "notes": self.notes,
            "order_history": [entry.to_dict() for entry in history],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class OrderItem(db.Model):
    """Line item: product reference plus name/price snapshot. Immutable."""
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="ck_order_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)

    # Nullable: the product may be deleted later; the snapshot survives
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)

    name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    subtotal_cents = db.Column(db.Integer, nullable=False)

    order = db.relationship("Order", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self, *, include_category: bool = False) -> dict:
        product = None
        if self.product is not None:
            product = {
                "id": self.product.id,
                "name": self.product.name,
                "image_url": self.product.image_url,
            }
            if include_category:
                product["category"] = self.product.category
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product": product,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "subtotal_cents": self.subtotal_cents,
        }


class OrderHistoryEntry(db.Model):
    """
    Append-only status log.

    IMMUTABLE: Rows are only ever inserted; they disappear with their order.
    """
    __tablename__ = "order_history"
    __table_args__ = (
        db.Index("ix_order_history_order_created", "order_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)

    status = db.Column(db.String(32), nullable=False)
    note = db.Column(db.String(512), nullable=True)
    updated_by = db.Column(db.String(255), nullable=False, default="System")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    order = db.relationship("Order", back_populates="history")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "status": self.status,
            "note": self.note,
            "updated_by": self.updated_by,
            "timestamp": to_utc_z(self.created_at),
        }


class OrderSequence(db.Model):
    """
    Atomic order number counter.

    WHY: Counting existing orders to derive the next number races and reuses
    numbers after deletes; a dedicated counter row does neither.
    """
    __tablename__ = "order_sequences"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_order_sequences_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(32), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "next_number": self.next_number,
            "updated_at": to_utc_z(self.updated_at),
        }
