# Overview: Service-layer operations for promotion campaigns; product scoping, metrics and insights.

"""
Campaign Service

SUPPLIER-SCOPED: a campaign may only promote the caller's own active
products, and a campaign owned by another supplier behaves like a missing
one (404).

Metrics only grow. record_metrics() adds impressions and clicks and charges
CAMPAIGN_COST_PER_CLICK_CENTS per click in one UPDATE.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import case, func, update

from ..extensions import db
from ..models import Campaign, Product
from ..models.campaigns import CAMPAIGN_ACTIVE, CAMPAIGN_STATUSES
from ..validation import ValidationError, NotFoundError, coerce_int
from instasupply.time_utils import as_utc_naive, utcnow
from . import notification_service

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

HIGH_CTR_PERCENT = 5
MIN_PROMOTED_PRODUCTS = 5
ENDING_SOON = timedelta(days=7)


def _parse_date(raw, field_name: str) -> datetime:
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError(f"{field_name} must be an ISO-8601 date")
    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return as_utc_naive(datetime.fromisoformat(text))
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO-8601 date")


def _parse_status(raw) -> str:
    if raw not in CAMPAIGN_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(CAMPAIGN_STATUSES)}")
    return raw


def _parse_budget(raw) -> int:
    budget = coerce_int(raw, "daily_budget_cents")
    if budget <= 0:
        raise ValidationError("daily_budget_cents must be greater than 0")
    return budget


def _parse_name(raw) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError("Campaign name is required")
    return raw.strip()


def _resolve_products(supplier_id: int, raw) -> list[Product]:
    """At least one id; every id must be one of the supplier's active products."""
    if not isinstance(raw, list) or not raw:
        raise ValidationError("Please select at least one product")

    ids = []
    for value in raw:
        product_id = coerce_int(value, "product id")
        if product_id not in ids:
            ids.append(product_id)

    products = (
        db.session.query(Product)
        .filter(Product.id.in_(ids), Product.supplier_id == supplier_id, Product.is_active.is_(True))
        .all()
    )
    if len(products) != len(ids):
        raise ValidationError("Some products are invalid or inactive")
    by_id = {p.id: p for p in products}
    return [by_id[i] for i in ids]


def _check_dates(start: datetime, end: datetime | None) -> None:
    if end is not None and end < start:
        raise ValidationError("end_date cannot be before start_date")


def get_campaign(supplier_id: int, campaign_id: int) -> Campaign:
    campaign = db.session.query(Campaign).filter_by(id=campaign_id, supplier_id=supplier_id).first()
    if not campaign:
        raise NotFoundError("Campaign not found")
    return campaign


def list_campaigns(
    supplier_id: int,
    *,
    status: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> dict:
    """
    Newest-first campaign page.

    summary covers all of the supplier's campaigns regardless of the status
    filter: how many are Active and the total spent so far.
    """
    page = max(page or 1, 1)
    limit = min(max(limit or DEFAULT_PAGE_SIZE, 1), MAX_PAGE_SIZE)

    query = db.session.query(Campaign).filter(Campaign.supplier_id == supplier_id)
    if status and status != "All":
        query = query.filter(Campaign.status == _parse_status(status))

    total = query.count()
    campaigns = (
        query.order_by(Campaign.created_at.desc(), Campaign.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    active, spent = (
        db.session.query(
            func.coalesce(func.sum(case((Campaign.status == CAMPAIGN_ACTIVE, 1), else_=0)), 0),
            func.coalesce(func.sum(Campaign.total_spent_cents), 0),
        )
        .filter(Campaign.supplier_id == supplier_id)
        .one()
    )

    return {
        "count": len(campaigns),
        "total": total,
        "page": page,
        "pages": (total + limit - 1) // limit,
        "campaigns": [c.to_dict() for c in campaigns],
        "summary": {"active_campaigns": int(active or 0), "total_spent_cents": int(spent or 0)},
    }


def create_campaign(supplier_id: int, payload: dict) -> Campaign:
    """
    Body: {name, products: [product_id], daily_budget_cents, status?,
    start_date?, end_date?}. start_date defaults to now.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    if not payload.get("name") or not payload.get("products") or payload.get("daily_budget_cents") in (None, ""):
        raise ValidationError("Please provide name, products, and daily_budget_cents")

    name = _parse_name(payload["name"])
    budget = _parse_budget(payload["daily_budget_cents"])
    status = _parse_status(payload["status"]) if payload.get("status") else CAMPAIGN_ACTIVE
    start = _parse_date(payload["start_date"], "start_date") if payload.get("start_date") else utcnow()
    end = _parse_date(payload["end_date"], "end_date") if payload.get("end_date") else None
    _check_dates(start, end)
    products = _resolve_products(supplier_id, payload["products"])

    campaign = Campaign(
        supplier_id=supplier_id,
        name=name,
        status=status,
        daily_budget_cents=budget,
        start_date=start,
        end_date=end,
        products=products,
    )
    db.session.add(campaign)
    db.session.commit()

    notification_service.emit(
        supplier_id,
        notification_service.TYPE_CAMPAIGN,
        "Campaign Created",
        f'Your campaign "{campaign.name}" is now {campaign.status.lower()}.',
        "campaign",
        related_id=campaign.id,
        related_type="Campaign",
        metadata={"product_count": len(products)},
    )
    return campaign


def update_campaign(supplier_id: int, campaign_id: int, payload: dict) -> Campaign:
    """Partial update. products, when present, is re-validated and replaces the list."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    campaign = get_campaign(supplier_id, campaign_id)

    # Validate everything before touching the row
    changes = {}
    if "name" in payload:
        changes["name"] = _parse_name(payload["name"])
    if "daily_budget_cents" in payload:
        changes["daily_budget_cents"] = _parse_budget(payload["daily_budget_cents"])
    if "status" in payload:
        changes["status"] = _parse_status(payload["status"])
    if payload.get("start_date"):
        changes["start_date"] = _parse_date(payload["start_date"], "start_date")
    if "end_date" in payload:
        changes["end_date"] = _parse_date(payload["end_date"], "end_date") if payload["end_date"] else None

    start = as_utc_naive(changes.get("start_date", campaign.start_date))
    end = changes.get("end_date", campaign.end_date)
    _check_dates(start, as_utc_naive(end) if end else None)

    if "products" in payload:
        changes["products"] = _resolve_products(supplier_id, payload["products"])

    for field, value in changes.items():
        setattr(campaign, field, value)
    db.session.commit()
    return campaign


def delete_campaign(supplier_id: int, campaign_id: int) -> None:
    campaign = get_campaign(supplier_id, campaign_id)
    db.session.delete(campaign)
    db.session.commit()


def _non_negative(payload: dict, field: str) -> int:
    if payload.get(field) in (None, ""):
        return 0
    value = coerce_int(payload[field], field)
    if value < 0:
        raise ValidationError(f"{field} cannot be negative")
    return value


def record_metrics(supplier_id: int, campaign_id: int, payload: dict) -> Campaign:
    """
    Add {impressions?, clicks?} to the counters. Each click is charged
    CAMPAIGN_COST_PER_CLICK_CENTS.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    impressions = _non_negative(payload, "impressions")
    clicks = _non_negative(payload, "clicks")

    campaign = get_campaign(supplier_id, campaign_id)
    cost_per_click = current_app.config.get("CAMPAIGN_COST_PER_CLICK_CENTS", 25)

    db.session.execute(
        update(Campaign)
        .where(Campaign.id == campaign.id)
        .values(
            impressions=Campaign.impressions + impressions,
            clicks=Campaign.clicks + clicks,
            total_spent_cents=Campaign.total_spent_cents + clicks * cost_per_click,
        )
        .execution_options(synchronize_session=False)
    )
    db.session.commit()
    return campaign


def campaign_stats(campaign: Campaign) -> dict:
    return {
        "impressions": campaign.impressions,
        "clicks": campaign.clicks,
        "ctr": campaign.click_through_rate,
        "cpc_cents": campaign.cost_per_click_cents,
        "total_spent_cents": campaign.total_spent_cents,
        "daily_budget_cents": campaign.daily_budget_cents,
        "status": campaign.status,
    }


def _recommendations(campaign: Campaign, now: datetime) -> list[dict]:
    recommendations = []
    ctr = campaign.click_through_rate
    if ctr > HIGH_CTR_PERCENT:
        recommendations.append({
            "type": "increase_budget",
            "message": f"Your campaign has a high CTR ({ctr:.2f}%). Consider increasing your daily "
                       "budget to reach more customers.",
        })
    if len(campaign.products) < MIN_PROMOTED_PRODUCTS:
        recommendations.append({
            "type": "add_products",
            "message": "You could increase visibility by adding complementary products to this campaign.",
        })
    if campaign.end_date and as_utc_naive(campaign.end_date) < now + ENDING_SOON:
        recommendations.append({
            "type": "extend_campaign",
            "message": "This campaign ends within a week. Consider extending it for continued sales growth.",
        })
    return recommendations


def campaign_insights(supplier_id: int, campaign_id: int, now: datetime | None = None) -> dict:
    """
    Overall performance, an even per-product split of the counters, and
    rule-based recommendations.
    """
    campaign = get_campaign(supplier_id, campaign_id)
    now = as_utc_naive(now or utcnow())

    products = campaign.products
    share = len(products) or 1
    product_performance = []
    for product in products:
        impressions = campaign.impressions // share
        clicks = campaign.clicks // share
        product_performance.append({
            "id": product.id,
            "name": product.name,
            "impressions": impressions,
            "clicks": clicks,
            "ctr": round(clicks / impressions * 100, 2) if impressions else 0.0,
        })

    return {
        "campaign": campaign.to_dict(),
        "overall_performance": campaign_stats(campaign),
        "product_performance": product_performance,
        "recommendations": _recommendations(campaign, now),
    }
