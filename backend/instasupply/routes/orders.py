# Overview: Flask API routes for orders operations; parses input and returns JSON responses.

# backend/instasupply/routes/orders.py
"""Order API routes, scoped to the authenticated supplier"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import order_service
from ..services.order_service import InsufficientStockError, PersistenceError
from ..validation import ValidationError, NotFoundError, ConflictError
from ..decorators import require_auth


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _error(e, status: int):
    body = {"error": str(e)}
    if getattr(e, "details", None):
        body["details"] = e.details
    return jsonify(body), status


@orders_bp.post("")
@require_auth
def create_order_route():
    """
    Place an order against the caller's catalog.

    Body: {items: [{product_id, quantity}], customer_name, customer_email,
    customer_phone, customer_type, delivery_address, delivery_method,
    delivery_time, payment_method, notes}

    All-or-nothing: on any error no order exists and no stock moved.
    """
    try:
        data = request.get_json(silent=True)
        order = order_service.place_order(g.supplier_id, data)
        return jsonify({"message": "Order created successfully", "order": order.to_dict()}), 201

    except InsufficientStockError as e:
        return _error(e, 400)
    except ValidationError as e:
        return _error(e, 400)
    except NotFoundError as e:
        return _error(e, 404)
    except PersistenceError as e:
        return _error(e, 500)
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("")
@require_auth
def list_orders_route():
    """
    Query params:
    - status: exact status or "All"
    - search: case-insensitive match on order number, customer name or email
    - page: int (default 1)
    - limit: int (default 20, max 100)
    """
    result = order_service.list_orders(
        g.supplier_id,
        status=request.args.get("status"),
        search=request.args.get("search"),
        page=request.args.get("page", type=int),
        limit=request.args.get("limit", type=int),
    )
    return jsonify(result), 200


@orders_bp.get("/recent")
@require_auth
def recent_orders_route():
    orders = order_service.recent_orders(g.supplier_id, request.args.get("limit", 10, type=int))
    return jsonify({"count": len(orders), "orders": [o.to_dict() for o in orders]}), 200


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order_route(order_id: int):
    try:
        order = order_service.get_order_for_supplier(g.supplier_id, order_id)
    except NotFoundError as e:
        return _error(e, 404)

    return jsonify({"order": order.to_dict(include_category=True, history_newest_first=True)}), 200


@orders_bp.put("/<int:order_id>/status")
@require_auth
def update_status_route(order_id: int):
    """
    Move the order to a new status. Always appends one history entry.

    Body: {status, note?}
    """
    try:
        data = request.get_json(silent=True) or {}
        order = order_service.update_order_status(
            g.supplier_id,
            order_id,
            data.get("status"),
            note=data.get("note"),
            actor=order_service.actor_label(g.current_supplier),
        )
        return jsonify({"message": "Order status updated successfully", "order": order.to_dict()}), 200

    except ValidationError as e:
        return _error(e, 400)
    except NotFoundError as e:
        return _error(e, 404)
    except ConflictError as e:
        return _error(e, 409)
    except Exception:
        current_app.logger.exception("Failed to update order status")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.put("/<int:order_id>")
@require_auth
def update_order_route(order_id: int):
    """Edit customer contact, delivery address and notes. Items and status are not editable here."""
    try:
        data = request.get_json(silent=True) or {}
        order = order_service.update_order(g.supplier_id, order_id, data)
        return jsonify({"message": "Order updated successfully", "order": order.to_dict()}), 200

    except ValidationError as e:
        return _error(e, 400)
    except NotFoundError as e:
        return _error(e, 404)
    except Exception:
        current_app.logger.exception("Failed to update order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.delete("/<int:order_id>")
@require_auth
def delete_order_route(order_id: int):
    """Delete the order; stock comes back unless it was Cancelled or Delivered."""
    try:
        order_service.delete_order(g.supplier_id, order_id)
        return jsonify({"message": "Order deleted successfully"}), 200

    except NotFoundError as e:
        return _error(e, 404)
    except Exception:
        current_app.logger.exception("Failed to delete order")
        return jsonify({"error": "Internal server error"}), 500
