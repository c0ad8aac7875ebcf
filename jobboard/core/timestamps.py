from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def utcnow() -> datetime:
    """Current time as naive UTC, matching how timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_utc(value: Any) -> datetime | None:
    """Coerce ``value`` into a naive UTC datetime.

    Accepts datetimes (aware values are converted to UTC), ISO-8601 strings
    (a trailing ``Z`` is allowed) and epoch numbers. Anything else, including
    unparsable strings, yields ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        try:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return None
        return as_utc(parsed)
    return None


def field(obj: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a dict or an attribute-bearing object."""
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)
