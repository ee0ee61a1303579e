from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_utc_naive(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def format_short_date(dt: datetime) -> str:
    """'Mar 12, 2025'"""
    return f"{MONTH_ABBREVIATIONS[dt.month - 1]} {dt.day}, {dt.year}"


def format_time_ago(dt: datetime, now: Optional[datetime] = None) -> str:
    """
    Human label for how long ago `dt` happened.

    - same day: "Just now", "N minute(s) ago", "N hour(s) ago"
    - one day back: "Yesterday at H:MM AM/PM"
    - older: "Mar 12, 2025"
    """
    now = as_utc_naive(now or utcnow())
    dt = as_utc_naive(dt)
    diff_seconds = (now - dt).total_seconds()
    diff_minutes = int(diff_seconds // 60)
    diff_hours = int(diff_seconds // 3600)
    diff_days = int(diff_seconds // 86400)

    if diff_days <= 0:
        if diff_minutes < 1:
            return "Just now"
        if diff_minutes < 60:
            return f"{diff_minutes} minute{'s' if diff_minutes > 1 else ''} ago"
        return f"{diff_hours} hour{'s' if diff_hours > 1 else ''} ago"

    if diff_days == 1:
        ampm = "PM" if dt.hour >= 12 else "AM"
        display_hour = dt.hour % 12 or 12
        return f"Yesterday at {display_hour}:{dt.minute:02d} {ampm}"

    return format_short_date(dt)


def date_group_label(dt: datetime, now: Optional[datetime] = None) -> str:
    """Bucket label used to group inbox items: Today, Yesterday, or the date."""
    now = as_utc_naive(now or utcnow())
    dt = as_utc_naive(dt)
    diff_days = int((now - dt).total_seconds() // 86400)
    if diff_days <= 0:
        return "Today"
    if diff_days == 1:
        return "Yesterday"
    return format_short_date(dt)
