# Overview: Flask API routes for the supplier notification inbox.

from flask import Blueprint, request, jsonify, g

from ..services import notification_service
from ..validation import ValidationError, NotFoundError
from ..decorators import require_auth


notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


def _parse_is_read(raw: str | None) -> bool | None:
    if raw is None or raw == "":
        return None
    value = raw.strip().lower()
    if value in {"true", "1", "yes"}:
        return True
    if value in {"false", "0", "no"}:
        return False
    raise ValidationError("is_read must be true or false")


@notifications_bp.get("")
@require_auth
def list_notifications_route():
    """
    Query params:
    - type: Order, Product, Campaign, Review, Payment, System or All
    - is_read: true/false
    - page: int (default 1)
    - limit: int (default 50, max 100)
    """
    try:
        result = notification_service.list_notifications(
            g.supplier_id,
            type=request.args.get("type"),
            is_read=_parse_is_read(request.args.get("is_read")),
            page=request.args.get("page", type=int),
            limit=request.args.get("limit", type=int),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(result), 200


@notifications_bp.put("/mark-all-read")
@notifications_bp.put("/read-all")
@require_auth
def mark_all_read_route():
    count = notification_service.mark_all_as_read(g.supplier_id)
    return jsonify({"message": f"{count} notification(s) marked as read", "count": count}), 200


@notifications_bp.put("/<int:notification_id>/read")
@require_auth
def mark_read_route(notification_id: int):
    try:
        notification = notification_service.mark_as_read(g.supplier_id, notification_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"message": "Notification marked as read", "notification": notification}), 200


@notifications_bp.delete("/<int:notification_id>")
@require_auth
def delete_notification_route(notification_id: int):
    try:
        notification_service.delete_notification(g.supplier_id, notification_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"message": "Notification deleted successfully"}), 200
