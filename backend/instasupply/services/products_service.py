# backend/instasupply/services/products_service.py
"""
Products Service

SUPPLIER-SCOPED: Every product operation filters on supplier_id; a product
owned by another supplier behaves exactly like a missing one (404).

Stock counters (stock, sold_quantity) are writable here only as catalog
edits; order placement and deletion move them through order_service.
"""
from __future__ import annotations

from sqlalchemy import and_, func, or_

from ..extensions import db
from ..models import Product, OrderItem
from ..models.inventory import STOCK_IN, STOCK_LOW, STOCK_OUT
from ..validation import NotFoundError, ValidationError, PRODUCT_CATEGORIES, LIKE_ESCAPE, contains_pattern

PRODUCT_MUTABLE_FIELDS = {
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
}

SORT_NEWEST = "newest"
SORT_PRICE_ASC = "price-low-to-high"
SORT_PRICE_DESC = "price-high-to-low"
SORT_BEST_SELLING = "best-selling"
VALID_SORTS = (SORT_NEWEST, SORT_PRICE_ASC, SORT_PRICE_DESC, SORT_BEST_SELLING)

VALID_STOCK_STATUSES = (STOCK_IN, STOCK_LOW, STOCK_OUT)


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _stock_condition(status: str):
    if status == STOCK_IN:
        return Product.stock > Product.low_stock_threshold
    if status == STOCK_LOW:
        return and_(Product.stock > 0, Product.stock <= Product.low_stock_threshold)
    return Product.stock == 0


def parse_stock_statuses(raw: str | None) -> list[str]:
    """'inStock,lowStock' -> ['inStock', 'lowStock']; unknown names are rejected."""
    if not raw:
        return []
    statuses = [s.strip() for s in raw.split(",") if s.strip()]
    for status in statuses:
        if status not in VALID_STOCK_STATUSES:
            raise ValidationError(
                f"Invalid stock status: {status}. Must be one of: {', '.join(VALID_STOCK_STATUSES)}"
            )
    return statuses


def _order_by(sort_by: str | None):
    if sort_by in (None, "", SORT_NEWEST):
        return (Product.created_at.desc(), Product.id.desc())
    if sort_by == SORT_PRICE_ASC:
        return (Product.price_cents.asc(), Product.id.asc())
    if sort_by == SORT_PRICE_DESC:
        return (Product.price_cents.desc(), Product.id.desc())
    if sort_by == SORT_BEST_SELLING:
        return (Product.sold_quantity.desc(), Product.created_at.desc(), Product.id.desc())
    raise ValidationError(f"Invalid sort_by. Must be one of: {', '.join(VALID_SORTS)}")


def list_products(
    supplier_id: int,
    *,
    category: str | None = None,
    search: str | None = None,
    min_price_cents: int | None = None,
    max_price_cents: int | None = None,
    stock_statuses: list[str] | None = None,
    sort_by: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Active products of one supplier, filtered, sorted and paginated.

    Stock status filters combine with OR; all other filters with AND.
    """
    per_page = min(max(per_page or 20, 1), 100)
    page = max(page or 1, 1)

    query = db.session.query(Product).filter(
        Product.supplier_id == supplier_id,
        Product.is_active.is_(True),
    )

    if category and category != "All":
        if category not in PRODUCT_CATEGORIES:
            raise ValidationError(f"Invalid category. Must be one of: {', '.join(PRODUCT_CATEGORIES)}")
        query = query.filter(Product.category == category)

    if min_price_cents is not None:
        query = query.filter(Product.price_cents >= min_price_cents)
    if max_price_cents is not None:
        query = query.filter(Product.price_cents <= max_price_cents)

    if stock_statuses:
        query = query.filter(or_(*[_stock_condition(s) for s in stock_statuses]))

    if search and search.strip():
        pattern = contains_pattern(search)
        query = query.filter(
            or_(
                func.lower(Product.name).like(pattern, escape=LIKE_ESCAPE),
                func.lower(func.coalesce(Product.description, "")).like(pattern, escape=LIKE_ESCAPE),
            )
        )

    total = query.count()
    products = (
        query.order_by(*_order_by(sort_by))
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )

    return {
        "count": len(products),
        "total": total,
        "page": page,
        "pages": (total + per_page - 1) // per_page,
        "products": [p.to_dict() for p in products],
    }


def get_product(supplier_id: int, product_id: int) -> Product:
    product = db.session.query(Product).filter_by(id=product_id, supplier_id=supplier_id).first()
    if not product:
        raise NotFoundError("Product not found")
    return product


def create_product(supplier_id: int, *, patch: dict) -> Product:
    """Create product from a validated patch dict."""
    product = Product(supplier_id=supplier_id)
    apply_product_patch(product, patch)
    if product.sold_quantity is None:
        product.sold_quantity = 0

    db.session.add(product)
    db.session.commit()
    return product


def update_product(supplier_id: int, product_id: int, *, patch: dict) -> Product:
    product = get_product(supplier_id, product_id)
    apply_product_patch(product, patch)
    db.session.commit()
    return product


def delete_product(supplier_id: int, product_id: int) -> None:
    """
    Hard delete. Order lines keep their name and price snapshot; their
    product reference is cleared. Campaign links go with the product
    (Product.campaigns backref).
    """
    product = get_product(supplier_id, product_id)

    db.session.query(OrderItem).filter(OrderItem.product_id == product.id).update(
        {OrderItem.product_id: None}, synchronize_session=False
    )
    db.session.delete(product)
    db.session.commit()


def list_categories() -> list[str]:
    return list(PRODUCT_CATEGORIES)
