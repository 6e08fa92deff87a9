"""
Date/time helpers: framework-agnostic.

All persisted timestamps are timezone-aware UTC. Services take a ``clock``
callable (defaulting to :func:`utc_now`) so tests can move time forward.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a date/time value into a timezone-aware UTC datetime.

    Accepts:
    - ``None`` → ``None``
    - ``datetime`` → normalised to UTC
    - ``int`` / ``float`` → treated as Unix epoch seconds
    - ``str`` ending in ``"Z"`` → converted to ``+00:00`` before parsing
    - Any ISO 8601 string (``datetime.fromisoformat``)

    Returns:
        A timezone-aware ``datetime`` in UTC, or ``None`` if *value* is ``None``
        or cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    try:
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(int(value), tz=timezone.utc)
        raw = str(value)
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        return ensure_utc(datetime.fromisoformat(raw))
    except (ValueError, OSError, OverflowError):
        return None
