"""Error taxonomy for the listing lifecycle.

Every error carries a short, stable ``code`` so the API layer can return it
to clients without leaking Python class names.
"""
from __future__ import annotations


class BoardError(Exception):
    """Base error for the job board core."""

    code = "board_error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)


# --- Submission validation ---------------------------------------------------

class DraftValidationError(BoardError):
    """The job draft does not satisfy the posting rules."""

    code = "invalid_draft"


class UnknownMetro(DraftValidationError):
    """This metro isn't live yet."""

    code = "unknown_metro"


class MissingField(DraftValidationError):
    code = "missing_field"

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"{field} is required")


class MissingApplyContact(DraftValidationError):
    """Either an apply URL or an apply email is required."""

    code = "missing_apply_contact"


# --- Checkout ----------------------------------------------------------------

GENERIC_CHECKOUT_MESSAGE = "Checkout failed. Please try again."


class CheckoutError(BoardError):
    """Could not start a checkout session."""

    code = "checkout_error"


class MisconfiguredEndpoint(CheckoutError):
    """Payments service URL is misconfigured. Please try again later."""

    code = "misconfigured_endpoint"


class CheckoutRejected(CheckoutError):
    code = "checkout_rejected"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or GENERIC_CHECKOUT_MESSAGE)


class CheckoutMalformedResponse(CheckoutError):
    """Checkout URL missing. Please try again."""

    code = "checkout_malformed_response"


# --- Moderation pipeline -----------------------------------------------------

class PipelineError(BoardError):
    """A moderation action could not be applied."""

    code = "pipeline_error"


class InvalidTransition(PipelineError):
    code = "invalid_transition"

    def __init__(self, from_state: str, to_state: str) -> None:
        self.from_state = str(from_state)
        self.to_state = str(to_state)
        super().__init__(f"invalid transition: {self.from_state} -> {self.to_state}")


class OrphanPaymentConfirmation(PipelineError):
    code = "orphan_payment_confirmation"

    def __init__(self, submission_id: str) -> None:
        self.submission_id = submission_id
        super().__init__(f"payment confirmed for unknown submission {submission_id!r}")


class MissingRejectionReason(PipelineError):
    """A rejection reason is required."""

    code = "missing_rejection_reason"


class SubmissionNotFound(PipelineError):
    code = "submission_not_found"

    def __init__(self, submission_id: str) -> None:
        self.submission_id = submission_id
        super().__init__(f"submission {submission_id!r} not found")


class ListingNotFound(PipelineError):
    code = "listing_not_found"

    def __init__(self, listing_id: str) -> None:
        self.listing_id = listing_id
        super().__init__(f"listing {listing_id!r} not found")


__all__ = [
    "BoardError",
    "DraftValidationError",
    "UnknownMetro",
    "MissingField",
    "MissingApplyContact",
    "GENERIC_CHECKOUT_MESSAGE",
    "CheckoutError",
    "MisconfiguredEndpoint",
    "CheckoutRejected",
    "CheckoutMalformedResponse",
    "PipelineError",
    "InvalidTransition",
    "OrphanPaymentConfirmation",
    "MissingRejectionReason",
    "SubmissionNotFound",
    "ListingNotFound",
]
