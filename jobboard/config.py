"""Runtime configuration for the job board.

Values come from environment variables. If a ``.env`` file exists (path
overridable via ``BOARD_DOTENV``) it is loaded first so the API, the CLI and
scripts all see the same settings.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from jobboard.core.metros import DEFAULT_METROS, Metro

LOGGER = logging.getLogger(__name__)

_ = load_dotenv(dotenv_path=os.getenv("BOARD_DOTENV", ".env"))

DEFAULT_PIN_DAYS = 30


def load_metros(path: Union[str, Path]) -> dict[str, Metro]:
    """Read a metro table from JSON (a single object or a list of objects)."""
    path = Path(path)
    with path.open(encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        rows = [data]
    elif isinstance(data, list):
        rows = data
    else:
        rows = []
    metros = {}
    for row in rows:
        metro = Metro(**row)
        slug = metro.slug.strip().lower()
        metros[slug] = metro.model_copy(update={"slug": slug})
    return metros


def metros_from_env() -> dict[str, Metro]:
    path = os.getenv("BOARD_METROS_FILE")
    if path:
        return load_metros(path)
    return dict(DEFAULT_METROS)


def payments_url() -> str:
    return os.getenv("BOARD_PAYMENTS_URL", "")


def checkout_timeout() -> Optional[float]:
    raw = os.getenv("BOARD_CHECKOUT_TIMEOUT", "").strip()
    if not raw:
        return None
    try:
        timeout = float(raw)
    except ValueError:
        LOGGER.warning("ignoring non-numeric BOARD_CHECKOUT_TIMEOUT=%r", raw)
        return None
    if not timeout > 0:
        LOGGER.warning("ignoring non-positive BOARD_CHECKOUT_TIMEOUT=%r", raw)
        return None
    return timeout


def admin_token() -> str:
    return os.getenv("BOARD_ADMIN_TOKEN", "")


def webhook_token() -> str:
    return os.getenv("BOARD_WEBHOOK_TOKEN", "")


def default_pin_days() -> int:
    return int(os.getenv("BOARD_DEFAULT_PIN_DAYS", str(DEFAULT_PIN_DAYS)))


def database_url() -> str:
    url = (
        os.getenv("BOARD_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or "sqlite:///./board.db"
    )
    # Normalize legacy PostgreSQL scheme if present
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+psycopg://", 1)
    # Prefer psycopg v3 driver if a bare postgresql:// URL is provided
    if url.startswith("postgresql://") and "+" not in url:
        url = url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url
