"""
Timestamp helpers

Records carry timestamps as ISO-8601 strings in UTC. Naive inputs are read as
UTC.
"""

from datetime import date, datetime, timezone
from typing import Any, Callable, Optional

Clock = Callable[[], datetime]

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utcnow() -> datetime:
    """Current time, timezone-aware."""
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a stored or user-supplied timestamp.

    Accepts datetime, date, or ISO-8601 strings (a trailing "Z" included).

    Returns:
        Aware datetime, or None when value is empty

    Raises:
        ValueError: If value cannot be read as a timestamp
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.strip())
    else:
        raise ValueError(f"Unsupported timestamp type: {type(value).__name__}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def timestamp_or_epoch(value: Any) -> datetime:
    """Sort key helper: unreadable or missing timestamps sort first."""
    try:
        return parse_timestamp(value) or EPOCH
    except ValueError:
        return EPOCH


def json_default(value: Any) -> Any:
    """json.dumps fallback that keeps timestamps readable by parse_timestamp."""
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    return str(value)
