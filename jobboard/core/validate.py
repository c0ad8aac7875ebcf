from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from jobboard.core.errors import (
    DraftValidationError,
    MissingApplyContact,
    MissingField,
    UnknownMetro,
)
from jobboard.core.metros import Metro

REQUIRED_FIELDS = ("cafe_name", "role", "pay")
OPTIONAL_FIELDS = (
    "hours",
    "neighborhood",
    "apply_url",
    "apply_email",
    "description",
    "contact_email",
)


class JobDraft(BaseModel):
    """Raw form input. Nothing here has been checked yet."""

    cafe_name: str = ""
    role: str = ""
    pay: str = ""
    hours: Optional[str] = None
    neighborhood: Optional[str] = None
    apply_url: Optional[str] = None
    apply_email: Optional[str] = None
    description: Optional[str] = None
    contact_email: Optional[str] = None
    requested_pinned: bool = False


class NormalizedDraft(BaseModel):
    metro_slug: str
    city: str
    state: str

    cafe_name: str
    role: str
    pay: str
    hours: Optional[str] = None
    neighborhood: Optional[str] = None
    apply_url: Optional[str] = None
    apply_email: Optional[str] = None
    description: Optional[str] = None
    contact_email: Optional[str] = None
    requested_pinned: bool = False


def clean_text(value: str | None) -> str | None:
    """Trim ``value``; blank strings collapse to ``None``."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def draft_problems(draft: JobDraft, metro: Metro | None) -> list[DraftValidationError]:
    """Return every rule the draft breaks, in rule order."""
    problems: list[DraftValidationError] = []
    if metro is None:
        problems.append(UnknownMetro())
    for field in REQUIRED_FIELDS:
        if not clean_text(getattr(draft, field)):
            problems.append(MissingField(field))
    if not clean_text(draft.apply_url) and not clean_text(draft.apply_email):
        problems.append(MissingApplyContact())
    return problems


def validate_draft(draft: JobDraft, metro: Metro | None) -> NormalizedDraft:
    """Check ``draft`` against the posting rules and normalize it.

    Rules (first failure wins):
      1. the metro must be known
      2. cafe_name, role and pay must be non-blank
      3. at least one of apply_url / apply_email must be non-blank

    Raises a :class:`DraftValidationError` subclass on failure.
    """
    problems = draft_problems(draft, metro)
    if problems:
        raise problems[0]
    assert metro is not None

    optional = {field: clean_text(getattr(draft, field)) for field in OPTIONAL_FIELDS}
    return NormalizedDraft(
        metro_slug=metro.slug,
        city=metro.city,
        state=metro.state,
        cafe_name=clean_text(draft.cafe_name) or "",
        role=clean_text(draft.role) or "",
        pay=clean_text(draft.pay) or "",
        requested_pinned=bool(draft.requested_pinned),
        **optional,
    )
