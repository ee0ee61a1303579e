# Overview: Flask API routes for promotion campaigns; parses input and returns JSON responses.

# backend/instasupply/routes/campaigns.py
"""Campaign API routes, scoped to the authenticated supplier"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import campaign_service
from ..validation import ValidationError, NotFoundError
from ..decorators import require_auth


campaigns_bp = Blueprint("campaigns", __name__, url_prefix="/api/campaigns")


@campaigns_bp.get("")
@require_auth
def list_campaigns_route():
    """
    Query params:
    - status: Active, Paused, Completed, Cancelled or "All"
    - page: int (default 1)
    - limit: int (default 20, max 100)
    """
    try:
        result = campaign_service.list_campaigns(
            g.supplier_id,
            status=request.args.get("status"),
            page=request.args.get("page", type=int),
            limit=request.args.get("limit", type=int),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(result), 200


@campaigns_bp.get("/<int:campaign_id>")
@require_auth
def get_campaign_route(campaign_id: int):
    try:
        campaign = campaign_service.get_campaign(g.supplier_id, campaign_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"campaign": campaign.to_dict()}), 200


@campaigns_bp.post("")
@require_auth
def create_campaign_route():
    """Body: {name, products: [product_id], daily_budget_cents, status?, start_date?, end_date?}"""
    try:
        campaign = campaign_service.create_campaign(g.supplier_id, request.get_json(silent=True))
        return jsonify({"message": "Campaign created successfully", "campaign": campaign.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create campaign")
        return jsonify({"error": "Internal server error"}), 500


@campaigns_bp.put("/<int:campaign_id>")
@require_auth
def update_campaign_route(campaign_id: int):
    try:
        campaign = campaign_service.update_campaign(g.supplier_id, campaign_id, request.get_json(silent=True) or {})
        return jsonify({"message": "Campaign updated successfully", "campaign": campaign.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update campaign")
        return jsonify({"error": "Internal server error"}), 500


@campaigns_bp.get("/<int:campaign_id>/stats")
@require_auth
def campaign_stats_route(campaign_id: int):
    try:
        campaign = campaign_service.get_campaign(g.supplier_id, campaign_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"stats": campaign_service.campaign_stats(campaign)}), 200


@campaigns_bp.get("/<int:campaign_id>/insights")
@require_auth
def campaign_insights_route(campaign_id: int):
    try:
        insights = campaign_service.campaign_insights(g.supplier_id, campaign_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(insights), 200


@campaigns_bp.put("/<int:campaign_id>/metrics")
@require_auth
def record_metrics_route(campaign_id: int):
    """Body: {impressions?, clicks?}; both are added to the running totals."""
    try:
        campaign = campaign_service.record_metrics(g.supplier_id, campaign_id, request.get_json(silent=True) or {})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"message": "Campaign metrics updated successfully", "campaign": campaign.to_dict()}), 200


@campaigns_bp.delete("/<int:campaign_id>")
@require_auth
def delete_campaign_route(campaign_id: int):
    try:
        campaign_service.delete_campaign(g.supplier_id, campaign_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"message": "Campaign deleted successfully"}), 200
