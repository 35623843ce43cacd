"""Formatting utilities for display values and stored timestamps."""

from datetime import datetime, timezone


def format_currency(value: float) -> str:
    """Format a float as USD currency."""
    return f"${value:,.2f}"


def format_unit_price(value: float, unit: str) -> str:
    """Format a per-unit price, e.g. ``$0.7400/lb``."""
    return f"${value:,.4f}/{unit}" if unit else f"${value:,.4f}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_db_timestamp(value: datetime) -> str:
    """Fixed-width UTC ISO-8601 string.

    Every stored watermark has the same width and offset, so SQLite's
    text comparison orders them chronologically.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def format_time_ago(timestamp: str | None, now: datetime | None = None) -> str:
    """Human-readable age of an ISO timestamp ("5 minutes ago")."""
    if not timestamp:
        return "Never"
    try:
        last = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return "Unknown"
    if last.tzinfo is None:
        last = last.replace(tzinfo=timezone.utc)
    delta = (now or utc_now()) - last
    minutes = int(delta.total_seconds() / 60)
    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes} minutes ago"
    if minutes < 1440:
        return f"{minutes // 60} hours ago"
    return f"{minutes // 1440} days ago"
