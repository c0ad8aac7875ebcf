"""Moderation lifecycle for job submissions.

    submitted -> paid -> pending_review -> approved -> published
                         pending_review -> rejected -> refunded

``published`` and ``refunded`` are terminal. Any move not listed in
:data:`TRANSITIONS` is refused with :class:`InvalidTransition`.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from jobboard.core.errors import InvalidTransition


class LifecycleState(str, Enum):
    SUBMITTED = "submitted"
    PAID = "paid"
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    PUBLISHED = "published"
    REFUNDED = "refunded"


TRANSITIONS: dict[LifecycleState, frozenset[LifecycleState]] = {
    LifecycleState.SUBMITTED: frozenset({LifecycleState.PAID}),
    LifecycleState.PAID: frozenset({LifecycleState.PENDING_REVIEW}),
    LifecycleState.PENDING_REVIEW: frozenset({LifecycleState.APPROVED, LifecycleState.REJECTED}),
    LifecycleState.APPROVED: frozenset({LifecycleState.PUBLISHED}),
    LifecycleState.REJECTED: frozenset({LifecycleState.REFUNDED}),
    LifecycleState.PUBLISHED: frozenset(),
    LifecycleState.REFUNDED: frozenset(),
}

TERMINAL_STATES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)

LIFECYCLE_STATES = tuple(s.value for s in LifecycleState)


def is_terminal(state: LifecycleState | str) -> bool:
    return LifecycleState(state) in TERMINAL_STATES


def check_transition(from_state: LifecycleState | str, to_state: LifecycleState | str) -> LifecycleState:
    """Return ``to_state`` as a :class:`LifecycleState` if the move is allowed."""
    try:
        source = LifecycleState(from_state)
        target = LifecycleState(to_state)
    except ValueError:
        raise InvalidTransition(str(from_state), str(to_state)) from None
    if target not in TRANSITIONS[source]:
        raise InvalidTransition(source.value, target.value)
    return target


@dataclass(frozen=True)
class RefundIntent:
    """Emitted by a rejection: the payment for this submission must be refunded.

    Executing the refund belongs to the payment processor; once it is done the
    operator records it with ``confirm_refund``.
    """

    submission_id: str
    reason: str
    requested_pinned: bool
    contact_email: str | None
    rejected_at: datetime
