# Overview: Flask API routes for store opening hours and the store rating.

from flask import Blueprint, request, jsonify, g

from ..services import store_service
from ..validation import ValidationError
from ..decorators import require_auth


store_bp = Blueprint("store", __name__, url_prefix="/api/store")


@store_bp.get("/settings")
@require_auth
def get_settings_route():
    """Created with defaults (open, 09:00-21:00) on first read."""
    settings = store_service.get_settings(g.supplier_id)
    return jsonify({"settings": settings.to_dict()}), 200


@store_bp.put("/settings")
@require_auth
def update_settings_route():
    """Body: {is_open?, opening_time?, closing_time?}; times are HH:MM."""
    try:
        settings = store_service.update_settings(g.supplier_id, request.get_json(silent=True) or {})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"message": "Store settings updated successfully", "settings": settings.to_dict()}), 200


@store_bp.post("/rating")
@require_auth
def record_rating_route():
    """Body: {rating: 1-5}"""
    data = request.get_json(silent=True) or {}
    try:
        settings = store_service.record_rating(g.supplier_id, data.get("rating"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({
        "message": "Rating updated successfully",
        "rating": round(settings.rating, 1),
        "rating_count": settings.rating_count,
    }), 200
