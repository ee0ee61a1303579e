# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/instasupply/routes/products.py
"""
Product catalog routes.

SUPPLIER-SCOPED: All product operations are limited to the caller's own
catalog (g.supplier_id, set by @require_auth). All routes require authentication.
"""
from flask import Blueprint, request, g, current_app
from ..services import products_service
from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    NotFoundError,
)
from ..decorators import require_auth

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({
        "name",
        "category",
        "description",
        "price_cents",
        "stock",
        "low_stock_threshold",
        "discount_percent",
        "unit",
        "image_url",
        "available_for_delivery",
        "available_for_pickup",
        "is_active",
    }),
    required_on_create=frozenset({"name", "category", "price_cents", "stock"}),
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _flatten_delivery_options(payload: dict) -> dict:
    """Accept the nested delivery_options shape that to_dict() emits."""
    options = payload.pop("delivery_options", None)
    if options is None:
        return payload
    if not isinstance(options, dict):
        raise ValidationError("delivery_options must be an object")
    for key in ("available_for_delivery", "available_for_pickup"):
        if key in options:
            payload[key] = options[key]
    return payload


def _validated_patch(partial: bool) -> dict:
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = _flatten_delivery_options(dict(payload))
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=partial)
    enforce_rules_product(patch)
    return patch


@products_bp.get("/categories")
@require_auth
def list_categories_route():
    return {"categories": products_service.list_categories()}


@products_bp.get("")
@require_auth
def list_products():
    """
    List the caller's active products.

    Query params:
    - category: one of the catalog categories, or "All"
    - search: case-insensitive match on name/description
    - min_price_cents / max_price_cents: inclusive price bounds
    - stock_status: comma list of inStock, lowStock, outOfStock (OR-combined)
    - sort_by: newest (default), price-low-to-high, price-high-to-low, best-selling
    - page: int (default 1)
    - limit: items per page (default 20, max 100)
    """
    try:
        result = products_service.list_products(
            g.supplier_id,
            category=request.args.get("category"),
            search=request.args.get("search"),
            min_price_cents=request.args.get("min_price_cents", type=int),
            max_price_cents=request.args.get("max_price_cents", type=int),
            stock_statuses=products_service.parse_stock_statuses(request.args.get("stock_status")),
            sort_by=request.args.get("sort_by"),
            page=request.args.get("page", type=int),
            per_page=request.args.get("limit", type=int),
        )
        return result
    except ValidationError as e:
        return {"error": str(e)}, 400


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        product = products_service.get_product(g.supplier_id, product_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return {"product": product.to_dict()}


@products_bp.post("")
@require_auth
def create_product_route():
    try:
        patch = _validated_patch(partial=False)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = products_service.create_product(g.supplier_id, patch=patch)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return {"error": "Internal server error"}, 500

    return {"product": created.to_dict()}, 201


@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    try:
        patch = _validated_patch(partial=True)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        updated = products_service.update_product(g.supplier_id, product_id, patch=patch)
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return {"product": updated.to_dict()}, 200


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int):
    """Hard delete. Past orders keep their line snapshots."""
    try:
        products_service.delete_product(g.supplier_id, product_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return {"message": "Product deleted successfully"}, 200
