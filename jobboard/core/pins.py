from __future__ import annotations

from datetime import datetime
from typing import Any

from jobboard.core.timestamps import as_utc, field


def is_pinned_now(listing: Any, now: datetime) -> bool:
    """Is ``listing`` pinned at instant ``now``?

    - not pinned -> False
    - pinned with no ``pinned_until`` -> True (unbounded pin)
    - pinned with ``pinned_until`` -> ``pinned_until > now``; the pin ends
      exactly at that instant. An unreadable ``pinned_until`` counts as expired.

    Pin status changes with the clock alone, so call this per request and
    never store the result.
    """
    if not field(listing, "pinned", False):
        return False
    raw_until = field(listing, "pinned_until")
    if raw_until is None:
        return True
    until = as_utc(raw_until)
    if until is None:
        return False
    return until > as_utc(now)
