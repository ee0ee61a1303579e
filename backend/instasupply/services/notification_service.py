# Overview: Supplier inbox; best-effort emission plus listing and read-state management.

from __future__ import annotations

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Notification
from ..validation import NotFoundError, ValidationError
from instasupply.time_utils import format_time_ago, date_group_label

TYPE_ORDER = "Order"
TYPE_PRODUCT = "Product"
TYPE_CAMPAIGN = "Campaign"
TYPE_REVIEW = "Review"
TYPE_PAYMENT = "Payment"
TYPE_SYSTEM = "System"
VALID_TYPES = {TYPE_ORDER, TYPE_PRODUCT, TYPE_CAMPAIGN, TYPE_REVIEW, TYPE_PAYMENT, TYPE_SYSTEM}

ICON_ORDER = "order"
ICON_ALERT = "alert"
VALID_ICONS = {ICON_ORDER, ICON_ALERT, "campaign", "review", "payment", "system"}

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


class NotificationError(Exception):
    """Raised inside emit(); never escapes it."""
    pass


def emit(
    supplier_id: int,
    type: str,
    title: str,
    message: str,
    icon: str = "system",
    related_id: int | None = None,
    related_type: str | None = None,
    metadata: dict | None = None,
) -> Notification | None:
    """
    Record a notification for a supplier.

    Fire-and-forget: commits on its own and never raises. On any failure the
    pending notification is rolled back, the error logged, and None returned.
    Call only after the triggering operation has committed.
    """
    try:
        if type not in VALID_TYPES:
            raise NotificationError(f"Unknown notification type: {type}")
        if icon not in VALID_ICONS:
            raise NotificationError(f"Unknown notification icon: {icon}")

        notification = Notification(
            supplier_id=supplier_id,
            type=type,
            title=title,
            message=message,
            icon=icon,
            related_id=related_id,
            related_type=related_type,
            extra=metadata or {},
        )
        db.session.add(notification)
        db.session.commit()
        return notification
    except (NotificationError, SQLAlchemyError) as exc:
        db.session.rollback()
        current_app.logger.warning(
            "Failed to create %s notification for supplier %s: %s", type, supplier_id, exc
        )
        return None


def format_for_display(notification: Notification) -> dict:
    data = notification.to_dict()
    data["time_ago"] = format_time_ago(notification.created_at)
    data["date_group"] = date_group_label(notification.created_at)
    return data


def _get_owned(supplier_id: int, notification_id: int) -> Notification:
    notification = (
        db.session.query(Notification)
        .filter_by(id=notification_id, supplier_id=supplier_id)
        .first()
    )
    if not notification:
        raise NotFoundError("Notification not found")
    return notification


def list_notifications(
    supplier_id: int,
    *,
    type: str | None = None,
    is_read: bool | None = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> dict:
    """
    Newest-first inbox page with unread badge count and day grouping.

    type "All" (or None) means no type filter.
    """
    page = max(page or 1, 1)
    limit = min(max(limit or DEFAULT_PAGE_SIZE, 1), MAX_PAGE_SIZE)

    query = db.session.query(Notification).filter(Notification.supplier_id == supplier_id)
    if type and type != "All":
        if type not in VALID_TYPES:
            raise ValidationError(f"Invalid notification type. Must be one of: {', '.join(sorted(VALID_TYPES))}")
        query = query.filter(Notification.type == type)
    if is_read is not None:
        query = query.filter(Notification.is_read == is_read)

    total = query.count()
    rows = (
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    unread_count = (
        db.session.query(Notification)
        .filter(Notification.supplier_id == supplier_id, Notification.is_read.is_(False))
        .count()
    )

    formatted = [format_for_display(n) for n in rows]
    grouped: dict[str, list[dict]] = {}
    for item in formatted:
        grouped.setdefault(item["date_group"], []).append(item)

    return {
        "count": len(formatted),
        "total": total,
        "unread_count": unread_count,
        "page": page,
        "pages": (total + limit - 1) // limit,
        "notifications": formatted,
        "grouped_by_date": grouped,
    }


def mark_as_read(supplier_id: int, notification_id: int) -> dict:
    notification = _get_owned(supplier_id, notification_id)
    notification.is_read = True
    db.session.commit()
    return format_for_display(notification)


def mark_all_as_read(supplier_id: int) -> int:
    """Returns how many notifications flipped from unread to read."""
    result = db.session.execute(
        update(Notification)
        .where(Notification.supplier_id == supplier_id, Notification.is_read.is_(False))
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    count = result.rowcount
    db.session.commit()
    current_app.logger.info("Marked %s notification(s) as read for supplier %s", count, supplier_id)
    return count


def delete_notification(supplier_id: int, notification_id: int) -> None:
    notification = _get_owned(supplier_id, notification_id)
    db.session.delete(notification)
    db.session.commit()
