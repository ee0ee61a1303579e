from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Maximum price: $9,999,999.99 (999,999,999 cents)
MAX_PRICE_CENTS = 999_999_999

PRODUCT_CATEGORIES = (
    "Building Materials",
    "Tools",
    "Electrical",
    "Plumbing",
    "Hardware",
    "Other",
)

TRUTHY_STRINGS = {"true", "1", "yes", "on"}


class ServiceError(Exception):
    """Base for errors a route translates into a status code."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ValidationError(ServiceError, ValueError):
    """400-level input problem."""


class NotFoundError(ServiceError, LookupError):
    """404-level: referenced entity absent or not owned by the caller."""


class ConflictError(ServiceError, ValueError):
    """409-level business rule conflict (e.g., duplicate email)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Which columns a client may write, and which must be present on create.

    Anything outside writable_fields is rejected outright rather than ignored,
    so server-owned counters (sold_quantity, supplier_id) cannot be smuggled in.
    """
    writable_fields: frozenset[str]
    required_on_create: frozenset[str] = field(default_factory=frozenset)


def coerce_int(value: Any, field_name: str) -> int:
    """
    Accept ints and digit strings ("12", "-3"); reject everything else.

    bool is refused even though it subclasses int, and so are floats,
    "12.5" and "1e3".
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        raise ValidationError(f"{field_name} must be an integer, not a decimal")
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be an integer")

    text = value.strip()
    if "." in text:
        raise ValidationError(f"{field_name} must be an integer (no decimals)")
    if "e" in text.lower():
        raise ValidationError(f"{field_name} must be a plain integer (scientific notation not allowed)")
    try:
        return int(text)
    except ValueError:
        raise ValidationError(f"{field_name} must be an integer")


LIKE_ESCAPE = "\\"


def contains_pattern(term: str) -> str:
    """
    Case-insensitive substring pattern for LIKE, used with escape=LIKE_ESCAPE.

    % and _ typed by the user match literally.
    """
    escaped = (
        term.strip().lower()
        .replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def _coerce_to_column(col, value: Any):
    column_type = col.type
    if isinstance(column_type, Integer):
        return coerce_int(value, col.key)
    if isinstance(column_type, Boolean):
        if isinstance(value, str):
            return value.strip().lower() in TRUTHY_STRINGS
        return bool(value)
    if isinstance(column_type, (String, Text)):
        return str(value).strip()
    return value


def _clean_field(col, raw: Any):
    """Coerce one incoming value and check it against the column definition."""
    if raw is None:
        if not col.nullable:
            raise ValidationError(f"{col.key} cannot be null")
        return None

    value = _coerce_to_column(col, raw)

    if isinstance(value, str):
        if value == "" and not col.nullable:
            raise ValidationError(f"{col.key} cannot be blank")
        max_length = getattr(col.type, "length", None)
        if max_length and len(value) > max_length:
            raise ValidationError(f"{col.key} exceeds max length {max_length}")

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Turn a JSON body into a column patch for `model`.

    partial=False is create semantics: every required_on_create field must
    carry a value. partial=True validates only the keys that were sent.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(name for name in policy.required_on_create if payload.get(name) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    columns = {c.key: c for c in model.__mapper__.columns}

    disallowed = [key for key in payload if key not in policy.writable_fields]
    if disallowed:
        raise ValidationError(f"Field not allowed: {disallowed[0]}")

    patch: dict = {}
    for key, raw in payload.items():
        col = columns.get(key)
        if col is None:
            raise ValidationError(f"Unknown field: {key}")
        patch[key] = _clean_field(col, raw)
    return patch


def enforce_rules_product(patch: dict) -> None:
    """Product rules that column metadata alone cannot express."""
    if "category" in patch and patch["category"] not in PRODUCT_CATEGORIES:
        raise ValidationError(f"Invalid category. Must be one of: {', '.join(PRODUCT_CATEGORIES)}")

    price = patch.get("price_cents")
    if price is not None:
        if price < 0:
            raise ValidationError("price_cents must be >= 0")
        if price > MAX_PRICE_CENTS:
            raise ValidationError(f"price_cents cannot exceed {MAX_PRICE_CENTS} (${MAX_PRICE_CENTS / 100:,.2f})")

    for name in ("stock", "low_stock_threshold"):
        if patch.get(name) is not None and patch[name] < 0:
            raise ValidationError(f"{name} must be >= 0")

    discount = patch.get("discount_percent")
    if discount is not None and not 0 <= discount <= 100:
        raise ValidationError("discount_percent must be between 0 and 100")
