from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Iterable, TypeVar

from jobboard.core.pins import is_pinned_now
from jobboard.core.timestamps import as_utc, field

T = TypeVar("T")

_EPOCH = datetime(1970, 1, 1)


def _created_key(listing: Any) -> tuple[int, timedelta]:
    # Valid timestamps sort newest first; missing or unparsable ones sort
    # after every valid one and tie among themselves.
    created = as_utc(field(listing, "created_at"))
    if created is None:
        return (1, timedelta(0))
    return (0, _EPOCH - created)


def rank(listings: Iterable[T], now: datetime) -> list[T]:
    """Order listings for display.

    1. pinned right now first
    2. newest ``created_at`` first
    3. ``id`` descending (string comparison) as the final tie-break

    The result depends only on the set of listings and ``now``, never on the
    input order.
    """
    rows = list(listings)
    # Python's sort is stable: sort by the last key first.
    rows.sort(key=lambda j: str(field(j, "id", "")), reverse=True)
    rows.sort(key=lambda j: (0 if is_pinned_now(j, now) else 1, *_created_key(j)))
    return rows
