from __future__ import annotations

from typing import Generator

from sqlalchemy.orm import Session

from jobboard.config import metros_from_env
from jobboard.core.metros import MetroRegistry
from jobboard.db.session import get_session

_METROS = metros_from_env()


def db_session() -> Generator[Session, None, None]:
    """FastAPI dependency that yields a SQLAlchemy :class:`Session`.

    Usage in route handlers:
        def handler(session: Session = Depends(db_session)):
            ...
    """
    with get_session() as session:
        yield session


def metro_registry() -> MetroRegistry:
    """FastAPI dependency for the metro table; override it to serve other metros."""
    return _METROS


__all__ = ["db_session", "metro_registry"]
