"""Persisted moderation transitions.

Each step is a compare-and-swap on ``lifecycle_state``::

    UPDATE job_submissions SET lifecycle_state = :to, ...
     WHERE id = :id AND lifecycle_state = :from

so when two operators decide the same submission at once exactly one update
matches; the other sees zero rows, rolls back and gets
:class:`InvalidTransition`. Nothing is committed unless every step of the
operation succeeded.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from jobboard.core.errors import (
    InvalidTransition,
    MissingRejectionReason,
    OrphanPaymentConfirmation,
    SubmissionNotFound,
)
from jobboard.core.lifecycle import LifecycleState, RefundIntent, check_transition
from jobboard.core.timestamps import as_utc, utcnow
from jobboard.core.validate import clean_text
from jobboard.db.crud import current_state, get_submission
from jobboard.db.models import Listing, Submission, new_id

LOGGER = logging.getLogger(__name__)

S = LifecycleState


def _advance(
    session: Session,
    submission_id: str,
    expected: LifecycleState,
    target: LifecycleState,
    **values: Any,
) -> None:
    check_transition(expected, target)
    result = session.execute(
        update(Submission)
        .where(Submission.id == submission_id)
        .where(Submission.lifecycle_state == expected.value)
        .values(lifecycle_state=target.value, **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        session.rollback()
        actual = current_state(session, submission_id) or expected.value
        LOGGER.info(
            "moderation cas-miss submission=%s expected=%s actual=%s target=%s",
            submission_id,
            expected.value,
            actual,
            target.value,
        )
        raise InvalidTransition(actual, target.value)
    LOGGER.info("moderation submission=%s %s -> %s", submission_id, expected.value, target.value)


def _require_state(session: Session, submission_id: str, target: LifecycleState) -> LifecycleState:
    """Return the current state, raising if ``target`` is not reachable from it."""
    state = current_state(session, submission_id)
    if state is None:
        raise SubmissionNotFound(submission_id)
    source = LifecycleState(state)
    check_transition(source, target)
    return source


def _reload(session: Session, submission_id: str) -> Submission:
    submission = get_submission(session, submission_id)
    if submission is None:  # pragma: no cover - rows are never deleted
        raise SubmissionNotFound(submission_id)
    return submission


def confirm_payment(session: Session, submission_id: str, *, now: Optional[datetime] = None) -> Submission:
    """Record a confirmed payment: ``submitted -> paid -> pending_review``."""
    if current_state(session, submission_id) is None:
        LOGGER.warning("payment confirmation for unknown submission=%s", submission_id)
        raise OrphanPaymentConfirmation(submission_id)
    now = as_utc(now) or utcnow()

    _require_state(session, submission_id, S.PAID)
    try:
        _advance(session, submission_id, S.SUBMITTED, S.PAID, paid_at=now)
        _advance(session, submission_id, S.PAID, S.PENDING_REVIEW)
    except Exception:
        session.rollback()
        raise
    session.commit()
    return _reload(session, submission_id)


def approve(
    session: Session,
    submission_id: str,
    *,
    now: Optional[datetime] = None,
    pin_days: Optional[int] = None,
) -> Listing:
    """Approve a reviewed submission and publish its listing.

    ``reviewed_at`` is the decision time. ``pin_days`` optionally grants a pin
    running from that moment.
    """
    if pin_days is not None and pin_days <= 0:
        raise ValueError("Pin 'days' must be positive")
    now = as_utc(now) or utcnow()

    _require_state(session, submission_id, S.APPROVED)
    try:
        _advance(session, submission_id, S.PENDING_REVIEW, S.APPROVED, reviewed_at=now)

        submission = _reload(session, submission_id)
        listing = Listing(
            id=new_id(),
            submission_id=submission.id,
            metro_slug=submission.metro_slug,
            cafe_name=submission.cafe_name,
            role=submission.role,
            pay=submission.pay,
            hours=submission.hours,
            neighborhood=submission.neighborhood,
            apply_url=submission.apply_url,
            apply_email=submission.apply_email,
            description=submission.description,
            pinned=pin_days is not None,
            pinned_until=now + timedelta(days=pin_days) if pin_days is not None else None,
            created_at=now,
        )
        session.add(listing)
        session.flush()

        _advance(session, submission_id, S.APPROVED, S.PUBLISHED, listing_id=listing.id)
    except Exception:
        session.rollback()
        raise
    session.commit()
    session.refresh(listing)
    LOGGER.info(
        "published listing=%s submission=%s metro=%s pinned=%s",
        listing.id,
        submission_id,
        listing.metro_slug,
        listing.pinned,
    )
    return listing


def reject(
    session: Session,
    submission_id: str,
    reason: Optional[str],
    *,
    now: Optional[datetime] = None,
) -> RefundIntent:
    """Reject a reviewed submission. Returns the refund the payment side owes."""
    reason = clean_text(reason)
    if not reason:
        raise MissingRejectionReason()
    now = as_utc(now) or utcnow()

    _require_state(session, submission_id, S.REJECTED)
    try:
        _advance(
            session,
            submission_id,
            S.PENDING_REVIEW,
            S.REJECTED,
            reviewed_at=now,
            rejection_reason=reason,
        )
    except Exception:
        session.rollback()
        raise
    session.commit()

    submission = _reload(session, submission_id)
    intent = RefundIntent(
        submission_id=submission.id,
        reason=reason,
        requested_pinned=submission.requested_pinned,
        contact_email=submission.contact_email,
        rejected_at=now,
    )
    LOGGER.warning(
        "refund owed submission=%s pinned_request=%s reason=%r",
        intent.submission_id,
        intent.requested_pinned,
        intent.reason,
    )
    return intent


def confirm_refund(session: Session, submission_id: str, *, now: Optional[datetime] = None) -> Submission:
    """Record that the refund for a rejected submission went through."""
    now = as_utc(now) or utcnow()
    _require_state(session, submission_id, S.REFUNDED)
    try:
        _advance(session, submission_id, S.REJECTED, S.REFUNDED, refunded_at=now)
    except Exception:
        session.rollback()
        raise
    session.commit()
    return _reload(session, submission_id)
