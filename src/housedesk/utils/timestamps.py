"""Timestamp helpers.

Stored documents carry ISO-8601 strings; entities carry aware datetimes.
"""

from datetime import datetime, UTC
from typing import Optional


def utc_now() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(UTC)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Format a datetime for storage."""
    if value is None:
        return None
    return value.isoformat()


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored timestamp. Empty values become None."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return utc_now().isoformat()
