"""Expiration status classification."""

from __future__ import annotations

from datetime import date, datetime

from .models import ExpiryStatus

# Products expiring within this many days (inclusive) are flagged WARNING.
WARNING_WINDOW_DAYS = 60


def parse_expiration(value: object) -> date | None:
    """Resolve an expiration date, returning None when missing or unparsable.

    Accepts ``date``, ``datetime`` (truncated to midnight) and ISO strings.
    A valid time part after the date (``2024-06-01T12:00:00Z``) is allowed
    and dropped; any other trailing text makes the date unparsable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def days_until_expiry(expiration: object, today: date | None = None) -> int | None:
    """Whole days from ``today`` until ``expiration``; negative once expired."""
    exp = parse_expiration(expiration)
    if exp is None:
        return None
    if today is None:
        today = date.today()
    elif isinstance(today, datetime):
        today = today.date()
    # Both sides sit at midnight, so the ceiling of the day difference is exact.
    return (exp - today).days


def status_for_days(days: int) -> ExpiryStatus:
    if days < 0:
        return ExpiryStatus.EXPIRED
    if days <= WARNING_WINDOW_DAYS:
        return ExpiryStatus.WARNING
    return ExpiryStatus.GOOD


def classify_expiry(expiration: object, today: date | None = None) -> ExpiryStatus:
    """Classify an expiration date relative to ``today``.

    Missing or unparsable dates are classified GOOD so they never count
    as at-risk.
    """
    days = days_until_expiry(expiration, today)
    if days is None:
        return ExpiryStatus.GOOD
    return status_for_days(days)
