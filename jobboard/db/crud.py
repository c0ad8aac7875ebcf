from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from jobboard.core.errors import ListingNotFound
from jobboard.core.lifecycle import LifecycleState
from jobboard.core.timestamps import as_utc, utcnow
from jobboard.core.validate import NormalizedDraft
from jobboard.db.models import Listing, Submission


def create_submission(session: Session, draft: NormalizedDraft) -> Submission:
    """
    Store a validated draft as a new ``submitted`` Submission.
    Only a NormalizedDraft is accepted, so nothing reaches ``paid`` unvalidated.
    """
    submission = Submission(
        **draft.model_dump(),
        lifecycle_state=LifecycleState.SUBMITTED.value,
        created_at=utcnow(),
    )
    session.add(submission)
    session.commit()
    session.refresh(submission)
    return submission


def get_submission(session: Session, submission_id: str) -> Optional[Submission]:
    return session.get(Submission, submission_id, populate_existing=True)


def current_state(session: Session, submission_id: str) -> Optional[str]:
    """Read the lifecycle state straight from the database (bypasses the identity map)."""
    stmt = select(Submission.lifecycle_state).where(Submission.id == submission_id)
    return session.execute(stmt).scalar_one_or_none()


def list_submissions(
    session: Session,
    *,
    state: Optional[str] = None,
    metro_slug: Optional[str] = None,
    limit: int = 100,
) -> Sequence[Submission]:
    """Oldest first, so the review queue is worked in arrival order."""
    q = session.query(Submission)
    if state:
        q = q.filter(Submission.lifecycle_state == LifecycleState(state).value)
    if metro_slug:
        q = q.filter(Submission.metro_slug == metro_slug)
    return q.order_by(Submission.created_at.asc(), Submission.id.asc()).limit(limit).all()


def listings_for_metro(session: Session, metro_slug: str) -> Sequence[Listing]:
    # Unordered on purpose: display order is computed by jobboard.core.ranking.rank
    return session.query(Listing).filter(Listing.metro_slug == metro_slug).all()


def get_listing(session: Session, listing_id: str) -> Optional[Listing]:
    return session.get(Listing, listing_id)


def set_pin(
    session: Session,
    listing_id: str,
    *,
    days: Optional[int] = None,
    until: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> Listing:
    """
    Grant or renew a pin.
      - days: pin for N days from ``now``
      - until: pin until an explicit instant
      - neither: unbounded pin
    """
    if days is not None and until is not None:
        raise ValueError("set_pin takes either 'days' or 'until', not both")
    if days is not None and days <= 0:
        raise ValueError("Pin 'days' must be positive")

    listing = get_listing(session, listing_id)
    if listing is None:
        raise ListingNotFound(listing_id)

    if days is not None:
        until = (as_utc(now) or utcnow()) + timedelta(days=days)
    listing.pinned = True
    listing.pinned_until = as_utc(until)
    session.commit()
    session.refresh(listing)
    return listing


def clear_pin(session: Session, listing_id: str) -> Listing:
    listing = get_listing(session, listing_id)
    if listing is None:
        raise ListingNotFound(listing_id)
    listing.pinned = False
    listing.pinned_until = None
    session.commit()
    session.refresh(listing)
    return listing
