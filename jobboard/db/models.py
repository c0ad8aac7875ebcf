from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    String,
    DateTime,
    Boolean,
    Enum,
    Text,
    Index,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from jobboard.core.lifecycle import LIFECYCLE_STATES, LifecycleState
from jobboard.core.timestamps import utcnow

# --- SQLAlchemy base ---------------------------------------------------------

class Base(DeclarativeBase):
    """Declarative base for all models."""
    pass


def new_id() -> str:
    return str(uuid.uuid4())


# --- Models ------------------------------------------------------------------
# Timestamps are stored as naive UTC.

class Submission(Base):
    """A paid-for posting request and its moderation history. Never deleted."""

    __tablename__ = "job_submissions"
    __table_args__ = (
        Index("ix_job_submissions_state_created", "lifecycle_state", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    # Metro binding
    metro_slug: Mapped[str] = mapped_column(String(80), nullable=False, index=True)
    city: Mapped[str] = mapped_column(String(120), nullable=False)
    state: Mapped[str] = mapped_column(String(40), nullable=False)

    # Draft fields
    cafe_name: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[str] = mapped_column(String(120), nullable=False)
    pay: Mapped[str] = mapped_column(String(200), nullable=False)
    hours: Mapped[Optional[str]] = mapped_column(String(200))
    neighborhood: Mapped[Optional[str]] = mapped_column(String(200))
    apply_url: Mapped[Optional[str]] = mapped_column(String(600))
    apply_email: Mapped[Optional[str]] = mapped_column(String(320))
    description: Mapped[Optional[str]] = mapped_column(Text)
    contact_email: Mapped[Optional[str]] = mapped_column(String(320))
    requested_pinned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Lifecycle
    lifecycle_state: Mapped[str] = mapped_column(
        Enum(*LIFECYCLE_STATES, name="lifecycle_state_enum", native_enum=False),
        default=LifecycleState.SUBMITTED.value,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    refunded_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text)
    listing_id: Mapped[Optional[str]] = mapped_column(String(36))

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Submission id={self.id} metro={self.metro_slug} state={self.lifecycle_state}>"


class Listing(Base):
    """Public projection of a published submission."""

    __tablename__ = "jobs"
    __table_args__ = (
        Index("ix_jobs_metro_created_at", "metro_slug", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    submission_id: Mapped[Optional[str]] = mapped_column(String(36), unique=True)
    metro_slug: Mapped[str] = mapped_column(String(80), nullable=False, index=True)

    cafe_name: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[str] = mapped_column(String(120), nullable=False)
    pay: Mapped[str] = mapped_column(String(200), nullable=False)
    hours: Mapped[Optional[str]] = mapped_column(String(200))
    neighborhood: Mapped[Optional[str]] = mapped_column(String(200))
    apply_url: Mapped[Optional[str]] = mapped_column(String(600))
    apply_email: Mapped[Optional[str]] = mapped_column(String(320))
    description: Mapped[Optional[str]] = mapped_column(Text)

    # pinned with no pinned_until is an unbounded pin
    pinned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    pinned_until: Mapped[Optional[datetime]] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Listing id={self.id} metro={self.metro_slug} role={self.role!r}>"


__all__ = [
    "Base",
    "Submission",
    "Listing",
    "new_id",
]
