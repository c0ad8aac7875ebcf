"""Database engine and sessions for the job board.

One engine per process, built from `jobboard.config.database_url()`
(`BOARD_DATABASE_URL`, then `DATABASE_URL`, then a local `board.db`).
The moderation helpers in `jobboard.db.moderation` own their commits;
`get_session` only guarantees the session is closed.

Tuning knobs: BOARD_DB_POOL_SIZE (default 5), BOARD_DB_MAX_OVERFLOW
(default 10) and BOARD_DB_ECHO=1 to log SQL. Pool sizing is skipped for
SQLite.
"""
from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from jobboard.config import database_url


def make_engine(url: str | None = None) -> Engine:
    """Build an engine for ``url`` (or the configured URL) with pre-ping enabled."""
    url = url or database_url()

    options: dict = {"echo": os.getenv("BOARD_DB_ECHO", "0") == "1", "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        options["pool_size"] = int(os.getenv("BOARD_DB_POOL_SIZE", "5"))
        options["max_overflow"] = int(os.getenv("BOARD_DB_MAX_OVERFLOW", "10"))
    return create_engine(url, **options)


# Connections open lazily, so importing this module never touches the database
ENGINE: Engine = make_engine()
SessionLocal = sessionmaker(bind=ENGINE, autoflush=False, autocommit=False, expire_on_commit=False)


@contextmanager
def get_session() -> Iterator[Session]:
    """Yield a session and close it afterwards; callers commit explicitly."""
    session: Session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def current_engine_url() -> str:
    """Return the effective SQLAlchemy URL (password hidden) for logging."""
    return ENGINE.url.render_as_string(hide_password=True)


def check_connection() -> bool:
    """Lightweight connectivity check. Returns True on success."""
    try:
        with ENGINE.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
