# Overview: Store opening hours and the running customer rating, one settings row per supplier.

from __future__ import annotations

import re

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import StoreSettings
from ..validation import ValidationError, TRUTHY_STRINGS, coerce_int
from .concurrency import savepoint

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

MIN_RATING = 1
MAX_RATING = 5

SETTINGS_FIELDS = ("is_open", "opening_time", "closing_time")


def _find(supplier_id: int) -> StoreSettings | None:
    return db.session.query(StoreSettings).filter_by(supplier_id=supplier_id).first()


def get_or_create_settings(supplier_id: int) -> StoreSettings:
    """
    Settings row for the supplier, created with defaults on first access.

    Does not commit; a concurrent creator wins the unique constraint and its
    row is returned instead.
    """
    settings = _find(supplier_id)
    if settings:
        return settings

    try:
        with savepoint():
            settings = StoreSettings(supplier_id=supplier_id)
            db.session.add(settings)
            db.session.flush()
    except IntegrityError:
        settings = _find(supplier_id)
        if not settings:
            raise
    return settings


def get_settings(supplier_id: int) -> StoreSettings:
    settings = get_or_create_settings(supplier_id)
    db.session.commit()
    return settings


def validate_rating(raw) -> int:
    if raw is None or raw == "":
        raise ValidationError("Please provide a rating")
    rating = coerce_int(raw, "rating")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
    return rating


def _parse_is_open(raw) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and raw.strip().lower() in TRUTHY_STRINGS | {"false", "0", "no", "off"}:
        return raw.strip().lower() in TRUTHY_STRINGS
    raise ValidationError("is_open must be true or false")


def _parse_time(raw, field_name: str) -> str:
    if not isinstance(raw, str) or not TIME_PATTERN.match(raw.strip()):
        raise ValidationError(f"{field_name} must be a time in HH:MM format")
    return raw.strip()


def update_settings(supplier_id: int, payload: dict) -> StoreSettings:
    """Partial update of is_open, opening_time and closing_time."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    changes = {}
    if payload.get("is_open") is not None:
        changes["is_open"] = _parse_is_open(payload["is_open"])
    for field in ("opening_time", "closing_time"):
        if payload.get(field) is not None:
            changes[field] = _parse_time(payload[field], field)

    settings = get_or_create_settings(supplier_id)
    for field, value in changes.items():
        setattr(settings, field, value)
    db.session.commit()
    return settings


def apply_rating(supplier_id: int, rating: int) -> None:
    """
    Fold one rating into the running average. Caller commits.

    A single UPDATE reads and writes the counters, so concurrent ratings
    never overwrite each other.
    """
    get_or_create_settings(supplier_id)
    db.session.execute(
        update(StoreSettings)
        .where(StoreSettings.supplier_id == supplier_id)
        .values(
            total_ratings=StoreSettings.total_ratings + rating,
            rating_count=StoreSettings.rating_count + 1,
            rating=(StoreSettings.total_ratings + rating) * 1.0 / (StoreSettings.rating_count + 1),
        )
        .execution_options(synchronize_session=False)
    )


def record_rating(supplier_id: int, raw_rating) -> StoreSettings:
    rating = validate_rating(raw_rating)
    apply_rating(supplier_id, rating)
    db.session.commit()
    return _find(supplier_id)
