from __future__ import annotations

from datetime import datetime
from typing import Optional, List

from fastapi import FastAPI, Depends, Query, HTTPException, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
import logging

from jobboard.config import admin_token, checkout_timeout, payments_url, webhook_token
from jobboard.api.deps import db_session, metro_registry
from jobboard.core.errors import (
    BoardError,
    CheckoutError,
    DraftValidationError,
    InvalidTransition,
    ListingNotFound,
    MisconfiguredEndpoint,
    MissingRejectionReason,
    OrphanPaymentConfirmation,
    SubmissionNotFound,
)
from jobboard.core.lifecycle import LifecycleState
from jobboard.core.metros import Metro, MetroRegistry, resolve_metro
from jobboard.core.pins import is_pinned_now
from jobboard.core.ranking import rank
from jobboard.core.timestamps import utcnow
from jobboard.core.validate import JobDraft, validate_draft
from jobboard.db import crud, moderation
from jobboard.db.models import Listing, Submission
from jobboard.payments.checkout import initiate_checkout, safe_base_url

ADMIN_TOKEN = admin_token()
WEBHOOK_TOKEN = webhook_token()
PAYMENTS_URL = payments_url()
CHECKOUT_TIMEOUT = checkout_timeout()

METRO_NOT_FOUND = "This metro isn't live yet."


def require_admin(x_token: str | None) -> None:
    if not ADMIN_TOKEN or x_token != ADMIN_TOKEN:
        raise HTTPException(status_code=401, detail="Unauthorized")


def require_webhook(x_webhook_token: str | None) -> None:
    if not WEBHOOK_TOKEN or x_webhook_token != WEBHOOK_TOKEN:
        raise HTTPException(status_code=401, detail="Unauthorized")


# -------------------------
# FastAPI setup
# -------------------------
app = FastAPI(title="Job Board API", version="0.1.0")
LOGGER = logging.getLogger(__name__)

# CORS (open for now; tighten before public deploy)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------------------------
# Error mapping
# -------------------------
def _status_for(exc: BoardError) -> int:
    if isinstance(exc, DraftValidationError):
        return 422
    if isinstance(exc, MisconfiguredEndpoint):
        return 503
    if isinstance(exc, CheckoutError):
        return 502
    if isinstance(exc, InvalidTransition):
        return 409
    if isinstance(exc, (OrphanPaymentConfirmation, SubmissionNotFound, ListingNotFound)):
        return 404
    if isinstance(exc, MissingRejectionReason):
        return 422
    return 400


@app.exception_handler(BoardError)
async def board_error_handler(request: Request, exc: BoardError):
    status = _status_for(exc)
    if status >= 500:
        LOGGER.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status, content={"error": exc.code, "detail": exc.message})


# -------------------------
# Pydantic request/response models
# -------------------------
class MetroOut(BaseModel):
    slug: str
    city: str
    state: str
    title: str


class ListingOut(BaseModel):
    id: str
    metro_slug: str
    cafe_name: str
    role: str
    pay: str
    hours: Optional[str] = None
    neighborhood: Optional[str] = None
    apply_url: Optional[str] = None
    apply_email: Optional[str] = None
    description: Optional[str] = None
    pinned: bool
    pinned_until: Optional[datetime] = None
    pinned_now: bool
    created_at: datetime


class JobsResponse(BaseModel):
    metro: MetroOut
    items: List[ListingOut]
    total: int
    # Display hint only (?paid=1 after checkout); never proof of payment
    payment_notice: bool = False


class SubmissionOut(BaseModel):
    id: str
    metro_slug: str
    cafe_name: str
    role: str
    pay: str
    requested_pinned: bool
    contact_email: Optional[str] = None
    lifecycle_state: str
    created_at: datetime
    paid_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    listing_id: Optional[str] = None

    class Config:
        from_attributes = True  # pydantic v2


class SubmissionStatusOut(BaseModel):
    id: str
    lifecycle_state: str

    class Config:
        from_attributes = True  # pydantic v2


class CheckoutOut(BaseModel):
    url: str
    submission_id: str


class PaymentConfirmIn(BaseModel):
    submission_id: str


class ApproveIn(BaseModel):
    pin_days: Optional[int] = Field(None, gt=0)


class RejectIn(BaseModel):
    reason: str = ""


class RejectOut(BaseModel):
    submission_id: str
    lifecycle_state: str
    refund_owed: bool
    reason: str


class PinIn(BaseModel):
    days: Optional[int] = Field(None, gt=0)
    until: Optional[datetime] = None


def _metro_or_404(metros: MetroRegistry, slug: str) -> Metro:
    metro = resolve_metro(metros, slug)
    if metro is None:
        raise HTTPException(status_code=404, detail=METRO_NOT_FOUND)
    return metro


def _listing_out(row: Listing, now: datetime) -> ListingOut:
    return ListingOut(
        id=row.id,
        metro_slug=row.metro_slug,
        cafe_name=row.cafe_name,
        role=row.role,
        pay=row.pay,
        hours=row.hours,
        neighborhood=row.neighborhood,
        apply_url=row.apply_url,
        apply_email=row.apply_email,
        description=row.description,
        pinned=row.pinned,
        pinned_until=row.pinned_until,
        pinned_now=is_pinned_now(row, now),
        created_at=row.created_at,
    )


# -------------------------
# Public routes
# -------------------------
@app.get("/", tags=["meta"])
async def root():
    return {"message": "Job Board API is running"}


@app.get("/healthz", tags=["meta"])  # k8s/Render probes
async def healthz():
    return {"status": "ok"}


@app.get("/metros/{slug}", response_model=MetroOut, tags=["data"])
async def get_metro(slug: str, metros: MetroRegistry = Depends(metro_registry)):
    metro = _metro_or_404(metros, slug)
    return MetroOut(**metro.model_dump())


@app.get("/metros/{slug}/jobs", response_model=JobsResponse, tags=["data"])
def get_metro_jobs(
    slug: str,
    paid: Optional[str] = Query(None, description="'1' shows the payment-received notice"),
    metros: MetroRegistry = Depends(metro_registry),
    session: Session = Depends(db_session),
):
    """Published listings for a metro in display order.

    Pin status is evaluated against the current time on every request.
    """
    metro = _metro_or_404(metros, slug)
    now = utcnow()
    rows = rank(crud.listings_for_metro(session, metro.slug), now)
    items = [_listing_out(r, now) for r in rows]
    return JobsResponse(
        metro=MetroOut(**metro.model_dump()),
        items=items,
        total=len(items),
        payment_notice=paid == "1",
    )


@app.get("/submissions/{submission_id}", response_model=SubmissionStatusOut, tags=["data"])
def get_submission_status(submission_id: str, session: Session = Depends(db_session)):
    submission = crud.get_submission(session, submission_id)
    if submission is None:
        raise SubmissionNotFound(submission_id)
    return SubmissionStatusOut.model_validate(submission)


@app.post("/metros/{slug}/checkout", response_model=CheckoutOut, tags=["checkout"])
def start_checkout(
    slug: str,
    draft: JobDraft,
    metros: MetroRegistry = Depends(metro_registry),
    session: Session = Depends(db_session),
):
    """Validate a draft, store it as a submission and open a payment session.

    The caller redirects the browser to the returned ``url``.
    """
    normalized = validate_draft(draft, resolve_metro(metros, slug))
    if not safe_base_url(PAYMENTS_URL):
        # Refuse before storing anything; this is a deployment problem.
        raise MisconfiguredEndpoint()

    submission = crud.create_submission(session, normalized)
    url = initiate_checkout(
        normalized,
        PAYMENTS_URL,
        submission_id=submission.id,
        timeout=CHECKOUT_TIMEOUT,
    )
    return CheckoutOut(url=url, submission_id=submission.id)


@app.post("/payments/confirm", response_model=SubmissionStatusOut, tags=["checkout"])
def confirm_payment(
    body: PaymentConfirmIn,
    x_webhook_token: str | None = Header(default=None),
    session: Session = Depends(db_session),
):
    require_webhook(x_webhook_token)
    submission = moderation.confirm_payment(session, body.submission_id)
    return SubmissionStatusOut.model_validate(submission)


# -------------------------
# Operator routes
# -------------------------
@app.get("/admin/submissions", response_model=List[SubmissionOut], tags=["admin"])
def list_submissions(
    state: Optional[LifecycleState] = Query(None, description="Filter by lifecycle state"),
    metro: Optional[str] = Query(None, description="Metro slug"),
    limit: int = Query(100, ge=1, le=500),
    x_token: str | None = Header(default=None),
    session: Session = Depends(db_session),
):
    require_admin(x_token)
    rows: list[Submission] = list(
        crud.list_submissions(session, state=state.value if state else None, metro_slug=metro, limit=limit)
    )
    return [SubmissionOut.model_validate(r) for r in rows]


@app.post("/admin/submissions/{submission_id}/approve", response_model=ListingOut, tags=["admin"])
def approve_submission(
    submission_id: str,
    body: Optional[ApproveIn] = None,
    x_token: str | None = Header(default=None),
    session: Session = Depends(db_session),
):
    require_admin(x_token)
    pin_days = body.pin_days if body else None
    listing = moderation.approve(session, submission_id, pin_days=pin_days)
    return _listing_out(listing, utcnow())


@app.post("/admin/submissions/{submission_id}/reject", response_model=RejectOut, tags=["admin"])
def reject_submission(
    submission_id: str,
    body: RejectIn,
    x_token: str | None = Header(default=None),
    session: Session = Depends(db_session),
):
    require_admin(x_token)
    intent = moderation.reject(session, submission_id, body.reason)
    return RejectOut(
        submission_id=intent.submission_id,
        lifecycle_state=LifecycleState.REJECTED.value,
        refund_owed=True,
        reason=intent.reason,
    )


@app.post(
    "/admin/submissions/{submission_id}/refund-confirmed",
    response_model=SubmissionStatusOut,
    tags=["admin"],
)
def refund_confirmed(
    submission_id: str,
    x_token: str | None = Header(default=None),
    session: Session = Depends(db_session),
):
    require_admin(x_token)
    submission = moderation.confirm_refund(session, submission_id)
    return SubmissionStatusOut.model_validate(submission)


@app.post("/admin/listings/{listing_id}/pin", response_model=ListingOut, tags=["admin"])
def pin_listing(
    listing_id: str,
    body: PinIn,
    x_token: str | None = Header(default=None),
    session: Session = Depends(db_session),
):
    require_admin(x_token)
    if body.days is not None and body.until is not None:
        raise HTTPException(status_code=422, detail="Send either 'days' or 'until', not both")
    listing = crud.set_pin(session, listing_id, days=body.days, until=body.until)
    return _listing_out(listing, utcnow())


@app.delete("/admin/listings/{listing_id}/pin", response_model=ListingOut, tags=["admin"])
def unpin_listing(
    listing_id: str,
    x_token: str | None = Header(default=None),
    session: Session = Depends(db_session),
):
    require_admin(x_token)
    listing = crud.clear_pin(session, listing_id)
    return _listing_out(listing, utcnow())
