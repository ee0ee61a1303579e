"""
Order Service - placement, status lifecycle, edits and deletion

WHY: Orders move stock. Everything that changes a product's stock or
sold_quantity on behalf of an order lives here, so the counters and the
order book cannot drift apart.

PLACEMENT (all-or-nothing):
1. Validate every line before touching the database for writes.
2. Insert order + first history entry.
3. Per product, one conditional UPDATE (stock >= qty) in the same transaction.
   Zero rows affected means a concurrent order took the stock: roll back all.
4. Commit, then emit notifications (best-effort, own commits).
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import or_, func, update
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Order, OrderItem, OrderHistoryEntry, Product, Review, Supplier
from ..validation import (
    ServiceError, ValidationError, NotFoundError, ConflictError, LIKE_ESCAPE, coerce_int, contains_pattern,
)
from instasupply.time_utils import utcnow
from . import notification_service
from .concurrency import lock_for_update, savepoint
from .sequence_service import next_order_number


STATUS_PENDING = "Pending"
STATUS_NEW = "New Order"
STATUS_NEEDS_CONFIRMATION = "Needs confirmation"
STATUS_PROCESSING = "Processing"
STATUS_CONFIRMED = "Confirmed"
STATUS_READY = "Ready"
STATUS_READY_FOR_PICKUP = "Ready for pickup"
STATUS_OUT_FOR_DELIVERY = "Out for delivery"
STATUS_DELIVERED = "Delivered"
STATUS_COMPLETED = "Completed"
STATUS_CANCELLED = "Cancelled"

ORDER_STATUSES = (
    STATUS_PENDING,
    STATUS_NEW,
    STATUS_NEEDS_CONFIRMATION,
    STATUS_PROCESSING,
    STATUS_CONFIRMED,
    STATUS_READY,
    STATUS_READY_FOR_PICKUP,
    STATUS_OUT_FOR_DELIVERY,
    STATUS_DELIVERED,
    STATUS_COMPLETED,
    STATUS_CANCELLED,
)

# Deleting an order in one of these states leaves stock alone
NO_REVERSAL_STATUSES = {STATUS_CANCELLED, STATUS_DELIVERED}

# Statuses that notify the supplier when reached
NOTIFY_STATUSES = {STATUS_DELIVERED, STATUS_COMPLETED}

_OPEN_STATUSES = (
    STATUS_PENDING,
    STATUS_NEW,
    STATUS_NEEDS_CONFIRMATION,
    STATUS_PROCESSING,
    STATUS_CONFIRMED,
    STATUS_READY,
    STATUS_READY_FOR_PICKUP,
    STATUS_OUT_FOR_DELIVERY,
)

# Only consulted when ENFORCE_ORDER_TRANSITIONS is on.
# Cancelled is reachable from every open state; re-applying the same status is allowed.
ORDER_TRANSITIONS: dict[str, set[str]] = {
    STATUS_PENDING: {STATUS_NEW, STATUS_NEEDS_CONFIRMATION, STATUS_CONFIRMED, STATUS_PROCESSING},
    STATUS_NEW: {STATUS_NEEDS_CONFIRMATION, STATUS_CONFIRMED, STATUS_PROCESSING},
    STATUS_NEEDS_CONFIRMATION: {STATUS_CONFIRMED, STATUS_PROCESSING},
    STATUS_CONFIRMED: {STATUS_PROCESSING, STATUS_READY, STATUS_READY_FOR_PICKUP, STATUS_OUT_FOR_DELIVERY},
    STATUS_PROCESSING: {STATUS_CONFIRMED, STATUS_READY, STATUS_READY_FOR_PICKUP, STATUS_OUT_FOR_DELIVERY},
    STATUS_READY: {STATUS_READY_FOR_PICKUP, STATUS_OUT_FOR_DELIVERY, STATUS_DELIVERED, STATUS_COMPLETED},
    STATUS_READY_FOR_PICKUP: {STATUS_DELIVERED, STATUS_COMPLETED},
    STATUS_OUT_FOR_DELIVERY: {STATUS_DELIVERED},
    STATUS_DELIVERED: {STATUS_COMPLETED},
    STATUS_COMPLETED: set(),
    STATUS_CANCELLED: set(),
}
for _status in _OPEN_STATUSES:
    ORDER_TRANSITIONS[_status].add(STATUS_CANCELLED)
for _status in ORDER_STATUSES:
    ORDER_TRANSITIONS[_status].add(_status)

CUSTOMER_TYPES = ("Contractor", "DIY Homeowner", "Business", "Other")
DELIVERY_METHODS = ("Standard Delivery", "Express Delivery", "Pickup")
PAYMENT_METHOD_TYPES = ("Credit Card", "Debit Card", "Cash", "Bank Transfer")

DELIVERY_ADDRESS_FIELDS = {
    "name": "delivery_label",
    "street": "delivery_street",
    "city": "delivery_city",
    "state": "delivery_state",
    "zip_code": "delivery_zip_code",
    "country": "delivery_country",
    "full_address": "delivery_full_address",
}

EDITABLE_FIELDS = ("customer_name", "customer_email", "customer_phone", "notes")

SYSTEM_ACTOR = "System"
DEFAULT_ACTOR = "Supplier"


class InsufficientStockError(ConflictError):
    """Requested quantity exceeds what the product has on hand."""


class PersistenceError(ServiceError):
    """Storage fault while writing the order. Nothing was committed; safe to retry."""


def format_money(cents: int) -> str:
    return f"${cents / 100:,.2f}"


# =============================================================================
# Validation helpers (no writes)
# =============================================================================

def _parse_line(raw, position: int) -> tuple[int, int]:
    if not isinstance(raw, dict):
        raise ValidationError(f"Item {position} must be an object with product_id and quantity")

    raw_product_id = raw.get("product_id", raw.get("productId"))
    try:
        product_id = coerce_int(raw_product_id, "product_id") if raw_product_id is not None else None
    except ValidationError:
        product_id = None
    if product_id is None or product_id < 1:
        raise ValidationError(
            f"Invalid product ID: {raw_product_id if raw_product_id is not None else 'missing'}. "
            "Please provide a valid product ID."
        )

    raw_quantity = raw.get("quantity")
    try:
        quantity = coerce_int(raw_quantity, "quantity") if raw_quantity is not None else None
    except ValidationError:
        quantity = None
    # Strings are a transport convenience for ids only; quantity must be a JSON integer
    if quantity is None or isinstance(raw_quantity, str) or quantity < 1:
        raise ValidationError(
            f"Invalid quantity for product {product_id}. Quantity must be an integer greater than 0.",
            details={"product_id": product_id, "quantity": raw_quantity},
        )

    return product_id, quantity


def _require_choice(value, allowed: tuple[str, ...], field: str, default: str | None) -> str | None:
    if value is None or value == "":
        return default
    if value not in allowed:
        raise ValidationError(f"Invalid {field}. Must be one of: {', '.join(allowed)}")
    return value


def _optional_text(value) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _apply_delivery_address(order: Order, address) -> None:
    """Accepts a structured dict or a single free-text line."""
    if address is None or address == "":
        for column in DELIVERY_ADDRESS_FIELDS.values():
            setattr(order, column, None)
        return
    if isinstance(address, str):
        for column in DELIVERY_ADDRESS_FIELDS.values():
            setattr(order, column, None)
        order.delivery_full_address = address.strip()
        return
    if not isinstance(address, dict):
        raise ValidationError("delivery_address must be an object or a string")
    for key, column in DELIVERY_ADDRESS_FIELDS.items():
        raw = address.get(key)
        if raw is None and key == "zip_code":
            raw = address.get("zipCode")
        if raw is None and key == "full_address":
            raw = address.get("fullAddress")
        setattr(order, column, _optional_text(raw))


def _apply_payment_method(order: Order, payment) -> None:
    if not payment:
        return
    if not isinstance(payment, dict):
        raise ValidationError("payment_method must be an object")
    order.payment_method_type = _require_choice(payment.get("type"), PAYMENT_METHOD_TYPES, "payment method type", None)
    last4 = _optional_text(payment.get("last4"))
    if last4 is not None and (len(last4) != 4 or not last4.isdigit()):
        raise ValidationError("payment_method.last4 must be 4 digits")
    order.payment_last4 = last4
    order.payment_brand = _optional_text(payment.get("brand"))


def _resolve_products(supplier_id: int, product_ids: set[int]) -> dict[int, Product]:
    """Load every referenced product in one query; all must be active and owned."""
    products = (
        db.session.query(Product)
        .filter(
            Product.id.in_(product_ids),
            Product.supplier_id == supplier_id,
            Product.is_active.is_(True),
        )
        .all()
    )
    return {p.id: p for p in products}


def _validate_on_hand(lines: list[tuple[int, int]], products: dict[int, Product]) -> dict[int, int]:
    product_totals: dict[int, int] = {}
    for product_id, quantity in lines:
        product_totals[product_id] = product_totals.get(product_id, 0) + quantity

    for product_id, requested in product_totals.items():
        product = products[product_id]
        if product.stock < requested:
            raise InsufficientStockError(
                f"Insufficient stock for {product.name}. Available: {product.stock}, Requested: {requested}",
                details={
                    "product_id": product.id,
                    "product_name": product.name,
                    "available": product.stock,
                    "requested": requested,
                },
            )
    return product_totals


# =============================================================================
# Placement
# =============================================================================

def _reserve_stock(product_totals: dict[int, int], products: dict[int, Product]) -> None:
    """
    Conditional decrement per product. Must run inside the order's transaction.

    The WHERE stock >= qty guard makes each decrement atomic against
    concurrent orders; a miss aborts the whole placement.
    """
    for product_id, quantity in product_totals.items():
        result = db.session.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(
                stock=Product.stock - quantity,
                sold_quantity=Product.sold_quantity + quantity,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            available = db.session.query(Product.stock).filter_by(id=product_id).scalar()
            product = products[product_id]
            raise InsufficientStockError(
                f"Insufficient stock for {product.name}. Available: {available}, Requested: {quantity}",
                details={
                    "product_id": product_id,
                    "product_name": product.name,
                    "available": available,
                    "requested": quantity,
                },
            )


def _emit_low_stock_alerts(supplier_id: int, product_ids) -> None:
    rows = (
        db.session.query(Product)
        .filter(Product.id.in_(list(product_ids)))
        .order_by(Product.id.asc())
        .all()
    )
    for product in rows:
        if product.is_low_stock:
            notification_service.emit(
                supplier_id,
                notification_service.TYPE_PRODUCT,
                "Low Stock Alert",
                f"Your product '{product.name}' has low stock (only {product.stock} units left).",
                notification_service.ICON_ALERT,
                related_id=product.id,
                related_type="Product",
                metadata={"stock": product.stock, "threshold": product.low_stock_threshold},
            )


def _emit_new_order(supplier_id: int, order: Order) -> None:
    notification_service.emit(
        supplier_id,
        notification_service.TYPE_ORDER,
        f"New Order #{order.order_number}",
        f"{order.customer_name or 'Customer'} placed an order for {len(order.items)} items "
        f"with a total of {format_money(order.total_amount_cents)}.",
        notification_service.ICON_ORDER,
        related_id=order.id,
        related_type="Order",
        metadata={
            "order_number": order.order_number,
            "total_amount_cents": order.total_amount_cents,
            "item_count": len(order.items),
        },
    )


def _emit_status_reached(supplier_id: int, order: Order, status: str) -> None:
    notification_service.emit(
        supplier_id,
        notification_service.TYPE_ORDER,
        f"Order {status}",
        f"Order #{order.order_number} has been {status.lower()}.",
        notification_service.ICON_ORDER,
        related_id=order.id,
        related_type="Order",
        metadata={"order_number": order.order_number, "status": status},
    )


def _after_commit(description: str, func, *args) -> None:
    """
    Run a side effect of an already committed write.

    Any failure is rolled back and logged; the committed write stands and
    the caller still gets its result.
    """
    try:
        func(*args)
    except Exception:
        db.session.rollback()
        current_app.logger.warning("Failed to %s", description, exc_info=True)


def place_order(supplier_id: int, payload: dict) -> Order:
    """
    Create an order from {items: [{product_id, quantity}], customer/delivery fields}.

    Raises ValidationError / NotFoundError / InsufficientStockError before any
    write, PersistenceError if the write itself fails. On error nothing is
    committed: no order, no stock change.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    raw_items = payload.get("items")
    if not raw_items or not isinstance(raw_items, list):
        raise ValidationError("Please provide at least one order item")

    lines = [_parse_line(raw, position) for position, raw in enumerate(raw_items, start=1)]

    products = _resolve_products(supplier_id, {product_id for product_id, _ in lines})
    for product_id, _ in lines:
        if product_id not in products:
            raise NotFoundError(
                f"Product with ID {product_id} not found or does not belong to your account.",
                details={"product_id": product_id},
            )

    product_totals = _validate_on_hand(lines, products)

    customer_type = _require_choice(payload.get("customer_type"), CUSTOMER_TYPES, "customer type", "Other")
    delivery_method = _require_choice(
        payload.get("delivery_method"), DELIVERY_METHODS, "delivery method", "Standard Delivery"
    )

    # Price snapshot happens here, once
    items = []
    total_cents = 0
    for product_id, quantity in lines:
        product = products[product_id]
        subtotal = product.price_cents * quantity
        total_cents += subtotal
        items.append(
            OrderItem(
                product_id=product.id,
                name=product.name,
                quantity=quantity,
                unit_price_cents=product.price_cents,
                subtotal_cents=subtotal,
            )
        )

    now = utcnow()
    try:
        order = Order(
            supplier_id=supplier_id,
            order_number=next_order_number(),
            total_amount_cents=total_cents,
            status=STATUS_NEW,
            customer_name=_optional_text(payload.get("customer_name")),
            customer_email=_optional_text(payload.get("customer_email")),
            customer_phone=_optional_text(payload.get("customer_phone")),
            customer_type=customer_type,
            delivery_method=delivery_method,
            delivery_time=_optional_text(payload.get("delivery_time")),
            notes=_optional_text(payload.get("notes")),
            items=items,
        )
        _apply_delivery_address(order, payload.get("delivery_address"))
        _apply_payment_method(order, payload.get("payment_method"))
        order.history.append(
            OrderHistoryEntry(status=STATUS_NEW, note="Order created", updated_by=SYSTEM_ACTOR, created_at=now)
        )

        db.session.add(order)
        db.session.flush()

        _reserve_stock(product_totals, products)

        db.session.commit()
    except (ValidationError, ConflictError):
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to persist order for supplier %s", supplier_id)
        raise PersistenceError("Failed to create order. Please try again.") from exc

    # Post-commit side effects: never change the outcome
    _after_commit("send low stock alerts", _emit_low_stock_alerts, supplier_id, list(product_totals))
    _after_commit("send new order notification", _emit_new_order, supplier_id, order)

    return order


# =============================================================================
# Status lifecycle
# =============================================================================

def get_order_for_supplier(supplier_id: int, order_id: int, *, for_update: bool = False) -> Order:
    query = db.session.query(Order).filter_by(id=order_id, supplier_id=supplier_id)
    if for_update:
        query = lock_for_update(query)
    order = query.first()
    if not order:
        raise NotFoundError("Order not found")
    return order


def update_order_status(
    supplier_id: int,
    order_id: int,
    status: str | None,
    note: str | None = None,
    actor: str | None = None,
) -> Order:
    """
    Set a new status and append exactly one history entry.

    Same-status updates still append. Transition legality is only checked
    when ENFORCE_ORDER_TRANSITIONS is enabled.
    """
    if not status or status not in ORDER_STATUSES:
        raise ValidationError(
            f"Please provide a valid status. Valid statuses: {', '.join(ORDER_STATUSES)}"
        )

    order = get_order_for_supplier(supplier_id, order_id, for_update=True)
    old_status = order.status

    if current_app.config.get("ENFORCE_ORDER_TRANSITIONS"):
        allowed = ORDER_TRANSITIONS.get(old_status, set())
        if status not in allowed:
            db.session.rollback()
            raise ConflictError(
                f"Cannot change order status from {old_status} to {status}",
                details={"from": old_status, "to": status, "allowed": sorted(allowed)},
            )

    order.status = status
    order.history.append(
        OrderHistoryEntry(
            status=status,
            note=_optional_text(note) or f"Status changed from {old_status} to {status}",
            updated_by=actor or DEFAULT_ACTOR,
            created_at=utcnow(),
        )
    )
    db.session.commit()

    if status in NOTIFY_STATUSES:
        _after_commit("send order status notification", _emit_status_reached, supplier_id, order, status)

    return order


def update_order(supplier_id: int, order_id: int, payload: dict) -> Order:
    """Edit customer/delivery metadata. Does not touch status or history."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    order = get_order_for_supplier(supplier_id, order_id)

    for field in EDITABLE_FIELDS:
        if field in payload:
            setattr(order, field, _optional_text(payload[field]))
    if "delivery_address" in payload:
        _apply_delivery_address(order, payload["delivery_address"])

    db.session.commit()
    return order


# =============================================================================
# Deletion
# =============================================================================

def _restore_item_stock(item: OrderItem) -> bool:
    """
    Give one line's quantity back to its product. sold_quantity is not clamped.

    Returns False when the product no longer exists.
    """
    if item.product_id is None:
        return False
    result = db.session.execute(
        update(Product)
        .where(Product.id == item.product_id)
        .values(
            stock=Product.stock + item.quantity,
            sold_quantity=Product.sold_quantity - item.quantity,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def delete_order(supplier_id: int, order_id: int) -> None:
    """
    Hard-delete an order, first returning stock unless it is Cancelled or Delivered.

    Each line's reversal is isolated in a savepoint: one failing line is
    logged and skipped, the rest and the delete still happen.
    """
    order = get_order_for_supplier(supplier_id, order_id, for_update=True)

    if order.status not in NO_REVERSAL_STATUSES:
        for item in order.items:
            try:
                with savepoint():
                    restored = _restore_item_stock(item)
                if not restored:
                    current_app.logger.warning(
                        "Order %s: product %s no longer exists; stock not restored",
                        order.order_number, item.product_id,
                    )
            except SQLAlchemyError:
                current_app.logger.exception(
                    "Order %s: failed to restore stock for product %s",
                    order.order_number, item.product_id,
                )

    # Reviews outlive the order they were written for
    db.session.query(Review).filter(Review.order_id == order.id).update(
        {Review.order_id: None}, synchronize_session=False
    )
    db.session.delete(order)
    db.session.commit()


# =============================================================================
# Queries
# =============================================================================

def list_orders(
    supplier_id: int,
    *,
    status: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> dict:
    """
    Supplier-scoped order page, newest first.

    status_counts always covers all of the supplier's orders, ignoring the
    status/search filters, so the UI can show filter badges.
    """
    page = max(page or 1, 1)
    limit = min(max(limit or 20, 1), 100)

    query = db.session.query(Order).filter(Order.supplier_id == supplier_id)
    if status and status != "All":
        query = query.filter(Order.status == status)
    if search:
        pattern = contains_pattern(search)
        query = query.filter(
            or_(
                func.lower(Order.order_number).like(pattern, escape=LIKE_ESCAPE),
                func.lower(Order.customer_name).like(pattern, escape=LIKE_ESCAPE),
                func.lower(Order.customer_email).like(pattern, escape=LIKE_ESCAPE),
            )
        )

    total = query.count()
    orders = (
        query.order_by(Order.created_at.desc(), Order.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    counts = (
        db.session.query(Order.status, func.count(Order.id))
        .filter(Order.supplier_id == supplier_id)
        .group_by(Order.status)
        .all()
    )

    return {
        "count": len(orders),
        "total": total,
        "page": page,
        "pages": (total + limit - 1) // limit,
        "status_counts": {s: c for s, c in counts},
        "orders": [o.to_dict() for o in orders],
    }


def recent_orders(supplier_id: int, limit: int = 10) -> list[Order]:
    limit = min(max(limit or 10, 1), 100)
    return (
        db.session.query(Order)
        .filter(Order.supplier_id == supplier_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit)
        .all()
    )


def actor_label(supplier: Supplier | None) -> str:
    if supplier is not None and supplier.name:
        return supplier.name
    return DEFAULT_ACTOR
