"""General utility functions."""
import re
import unicodedata
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """Convert datetime to UTC timezone."""
    if dt.tzinfo is None:
        # Assume UTC if no timezone (SQLite drops tzinfo on the way back)
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def is_past(deadline: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """
    Check whether a deadline has been reached.

    Args:
        deadline: Deadline (timezone-aware or naive, assumed UTC if naive), or None
        now: Reference time, defaults to the current UTC time

    Returns:
        bool: True if a deadline is set and now is at or after it
    """
    if deadline is None:
        return False
    now = to_utc(now) if now is not None else utcnow()
    return now >= to_utc(deadline)


def slugify(value: str) -> str:
    """Build a URL-friendly slug from a display name."""
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^\w\s-]", "", value.lower())
    return re.sub(r"[-\s_]+", "-", value).strip("-")
