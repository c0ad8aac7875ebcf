from .lifecycle import LifecycleState, RefundIntent, check_transition, is_terminal
from .metros import DEFAULT_METROS, Metro, resolve_metro
from .pins import is_pinned_now
from .ranking import rank
from .validate import JobDraft, NormalizedDraft, draft_problems, validate_draft

__all__ = [
    "LifecycleState",
    "RefundIntent",
    "check_transition",
    "is_terminal",
    "DEFAULT_METROS",
    "Metro",
    "resolve_metro",
    "is_pinned_now",
    "rank",
    "JobDraft",
    "NormalizedDraft",
    "draft_problems",
    "validate_draft",
]
