# Overview: Flask API routes for customer reviews; posting is public, the rest is supplier-scoped.

from flask import Blueprint, request, jsonify, g, current_app

from ..services import review_service
from ..validation import ValidationError, NotFoundError
from ..decorators import require_auth


reviews_bp = Blueprint("reviews", __name__, url_prefix="/api/reviews")


@reviews_bp.get("/summary")
@require_auth
def review_summary_route():
    return jsonify({"summary": review_service.review_summary(g.supplier_id)}), 200


@reviews_bp.get("")
@require_auth
def list_reviews_route():
    """
    Query params:
    - rating: 1-5 or "all"
    - sort_by: recent (default), oldest, highest, lowest
    - page: int (default 1)
    - limit: int (default 20, max 100)
    """
    try:
        result = review_service.list_reviews(
            g.supplier_id,
            rating=request.args.get("rating"),
            sort_by=request.args.get("sort_by"),
            page=request.args.get("page", type=int),
            limit=request.args.get("limit", type=int),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(result), 200


@reviews_bp.post("")
def create_review_route():
    """Customers review a supplier without signing in."""
    try:
        review = review_service.create_review(request.get_json(silent=True))
        return jsonify({"message": "Review created successfully", "review": review.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create review")
        return jsonify({"error": "Internal server error"}), 500


@reviews_bp.post("/<int:review_id>/reply")
@require_auth
def reply_route(review_id: int):
    try:
        review = review_service.add_reply(g.current_supplier, review_id, request.get_json(silent=True) or {})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"message": "Reply added successfully", "review": review.to_dict()}), 200


@reviews_bp.delete("/<int:review_id>")
@require_auth
def delete_review_route(review_id: int):
    """Hides the review; the store rating keeps it."""
    try:
        review_service.hide_review(g.supplier_id, review_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"message": "Review deleted successfully"}), 200
