from __future__ import annotations

from typing import Mapping, Optional

from pydantic import BaseModel


class Metro(BaseModel):
    slug: str
    city: str
    state: str
    title: str


MetroRegistry = Mapping[str, Metro]

DEFAULT_METROS: dict[str, Metro] = {
    "portland-or": Metro(slug="portland-or", city="Portland", state="OR", title="Portland Coffee Jobs"),
}


def resolve_metro(metros: MetroRegistry, slug: str | None) -> Optional[Metro]:
    """Look up a metro by slug. Unknown or empty slugs resolve to ``None``."""
    if not slug:
        return None
    return metros.get(slug.strip().lower())
