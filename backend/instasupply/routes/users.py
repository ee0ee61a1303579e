# Overview: Flask API routes for the signed-in supplier's profile.

from flask import Blueprint, request, jsonify, g, current_app

from ..services import auth_service
from ..validation import ValidationError
from ..decorators import require_auth


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_supplier.to_dict()}), 200


@users_bp.put("/profile")
@require_auth
def update_profile_route():
    """Partial update of name, phone, website, about_us, profile_image_url and address."""
    try:
        data = request.get_json(silent=True) or {}
        supplier = auth_service.update_profile(g.current_supplier, data)
        return jsonify({"message": "Profile updated successfully", "user": supplier.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update profile")
        return jsonify({"error": "Internal server error"}), 500
