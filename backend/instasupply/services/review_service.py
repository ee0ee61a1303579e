# Overview: Customer reviews of a supplier; public posting, supplier replies and rating aggregates.

"""
Review Service

Reviews are posted by customers without signing in, so create_review() is
the only supplier-unscoped write in the API. Everything else is scoped to
the authenticated supplier.

Every new review is also folded into the store's running rating
(store_service.apply_rating) in the same transaction. Hiding a review does
not take it back out.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Review, Supplier, Order
from ..validation import ValidationError, NotFoundError, coerce_int
from instasupply.time_utils import utcnow
from . import notification_service, store_service

RATINGS = (5, 4, 3, 2, 1)

SORT_ORDERS = {
    "recent": (Review.created_at.desc(), Review.id.desc()),
    "oldest": (Review.created_at.asc(), Review.id.asc()),
    "highest": (Review.rating.desc(), Review.created_at.desc(), Review.id.desc()),
    "lowest": (Review.rating.asc(), Review.created_at.desc(), Review.id.desc()),
}

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
MAX_IMAGES = 5


def _visible(supplier_id: int):
    return db.session.query(Review).filter(Review.supplier_id == supplier_id, Review.is_visible.is_(True))


def _rating_counts(supplier_id: int) -> dict[str, int]:
    rows = (
        db.session.query(Review.rating, func.count(Review.id))
        .filter(Review.supplier_id == supplier_id, Review.is_visible.is_(True))
        .group_by(Review.rating)
        .all()
    )
    counts = {str(r): 0 for r in RATINGS}
    for rating, count in rows:
        counts[str(rating)] = count
    return counts


def _percentages(counts: dict[str, int]) -> dict[str, int]:
    total = sum(counts.values())
    if not total:
        return {key: 0 for key in counts}
    return {key: round(count / total * 100) for key, count in counts.items()}


def list_reviews(
    supplier_id: int,
    *,
    rating: int | str | None = None,
    sort_by: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> dict:
    """
    Page of visible reviews plus the star distribution (percent per star).

    rating "all" (or None) means no rating filter. The distribution always
    covers every visible review, ignoring the rating filter.
    """
    page = max(page or 1, 1)
    limit = min(max(limit or DEFAULT_PAGE_SIZE, 1), MAX_PAGE_SIZE)
    sort_by = sort_by or "recent"
    if sort_by not in SORT_ORDERS:
        raise ValidationError(f"Invalid sort. Must be one of: {', '.join(SORT_ORDERS)}")

    query = _visible(supplier_id)
    if rating is not None and str(rating).strip().lower() not in {"", "all"}:
        query = query.filter(Review.rating == store_service.validate_rating(rating))

    total = query.count()
    reviews = query.order_by(*SORT_ORDERS[sort_by]).offset((page - 1) * limit).limit(limit).all()

    return {
        "count": len(reviews),
        "total": total,
        "page": page,
        "pages": (total + limit - 1) // limit,
        "reviews": [r.to_dict() for r in reviews],
        "rating_distribution": _percentages(_rating_counts(supplier_id)),
    }


def review_summary(supplier_id: int) -> dict:
    """Average (1 decimal), total, per-star counts and per-star percentages of visible reviews."""
    counts = _rating_counts(supplier_id)
    total = sum(counts.values())
    average = 0.0
    if total:
        average = round(sum(int(star) * n for star, n in counts.items()) / total, 1)
    return {
        "average_rating": average,
        "total_reviews": total,
        "rating_counts": counts,
        "rating_distribution": _percentages(counts),
    }


def _clean_images(raw) -> list[str]:
    if raw is None:
        return []
    if not isinstance(raw, list) or not all(isinstance(url, str) and url.strip() for url in raw):
        raise ValidationError("images must be a list of URLs")
    if len(raw) > MAX_IMAGES:
        raise ValidationError(f"A review can have at most {MAX_IMAGES} images")
    return [url.strip() for url in raw]


def create_review(payload: dict) -> Review:
    """
    Post a review for a supplier. No authentication.

    Body: {supplier_id, rating, customer_name, customer_email?, review_text?
    (or comment), order_id?, images?}. order_id, when given, must be one of
    that supplier's orders.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    raw_supplier_id = payload.get("supplier_id")
    customer_name = payload.get("customer_name")
    if raw_supplier_id in (None, "") or payload.get("rating") in (None, "") or not customer_name:
        raise ValidationError("Please provide supplier_id, rating, and customer_name")
    if not isinstance(customer_name, str) or not customer_name.strip():
        raise ValidationError("customer_name must be a non-empty string")

    supplier_id = coerce_int(raw_supplier_id, "supplier_id")
    rating = store_service.validate_rating(payload.get("rating"))
    text = payload.get("review_text", payload.get("comment"))
    if text is not None and not isinstance(text, str):
        raise ValidationError("review_text must be a string")
    images = _clean_images(payload.get("images"))

    supplier = db.session.get(Supplier, supplier_id)
    if not supplier or not supplier.is_active:
        raise NotFoundError("Supplier not found")

    order_id = None
    if payload.get("order_id") not in (None, ""):
        order_id = coerce_int(payload["order_id"], "order_id")
        order = db.session.query(Order.id).filter_by(id=order_id, supplier_id=supplier_id).first()
        if not order:
            raise ValidationError("order_id does not belong to this supplier")

    customer_email = payload.get("customer_email")
    review = Review(
        supplier_id=supplier_id,
        order_id=order_id,
        customer_name=customer_name.strip(),
        customer_email=customer_email.strip().lower() if isinstance(customer_email, str) and customer_email.strip() else None,
        rating=rating,
        review_text=(text or "").strip() or None,
        images=images,
    )
    db.session.add(review)
    store_service.apply_rating(supplier_id, rating)
    db.session.commit()

    current_app.logger.info("Review %s (%s stars) posted for supplier %s", review.id, rating, supplier_id)
    notification_service.emit(
        supplier_id,
        notification_service.TYPE_REVIEW,
        "New Review",
        f"{review.customer_name} left a {rating}-star review.",
        "review",
        related_id=review.id,
        related_type="Review",
        metadata={"rating": rating},
    )
    return review


def get_review_for_supplier(supplier_id: int, review_id: int) -> Review:
    review = db.session.query(Review).filter_by(id=review_id, supplier_id=supplier_id).first()
    if not review:
        raise NotFoundError("Review not found")
    return review


def add_reply(supplier: Supplier, review_id: int, payload: dict) -> Review:
    """
    Set or edit the supplier's reply. Body: {reply_text (or message), company_name?}.

    company_name defaults to the supplier's business name.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    text = payload.get("reply_text", payload.get("message"))
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Please provide reply text")

    review = get_review_for_supplier(supplier.id, review_id)

    company_name = payload.get("company_name")
    if company_name is not None and not isinstance(company_name, str):
        raise ValidationError("company_name must be a string")

    now = utcnow()
    if review.reply_text:
        review.reply_updated_at = now
    else:
        review.reply_created_at = now
    review.reply_text = text.strip()
    review.reply_company_name = (company_name or "").strip() or supplier.name
    db.session.commit()
    return review


def hide_review(supplier_id: int, review_id: int) -> None:
    """Soft delete: the review disappears from lists and aggregates."""
    review = get_review_for_supplier(supplier_id, review_id)
    review.is_visible = False
    db.session.commit()
