from __future__ import annotations

from datetime import date, datetime
from typing import Union

from ..core.exceptions import ValidationError

DayLike = Union[date, datetime, str]


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def normalize_day(value: DayLike, field_name: str = "date") -> date:
    """Truncate a date-like value to its calendar day.

    Accepts ``date``, ``datetime`` and ISO-8601 strings, either date-only
    (``2024-03-01``) or full timestamps (``2024-03-01T08:00:00Z``). The
    wall-clock day as written is kept; offsets are not converted.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        if len(text) == 10:
            return parse_iso_date(text)
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO date (YYYY-MM-DD)")


def optional_day(value, field_name: str) -> date | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return normalize_day(value, field_name)


def parse_hhmm(value: str, field_name: str) -> str:
    v = (value or "").strip()
    try:
        return datetime.strptime(v, "%H:%M").strftime("%H:%M")
    except ValueError:
        raise ValidationError(f"{field_name} must be a time of day (HH:MM)")
