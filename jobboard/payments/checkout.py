from __future__ import annotations

import logging
import re
from typing import Any, Optional
from urllib.parse import urlparse

import requests

from jobboard.core.errors import (
    CheckoutMalformedResponse,
    CheckoutRejected,
    MisconfiguredEndpoint,
)
from jobboard.core.validate import NormalizedDraft

LOGGER = logging.getLogger(__name__)

CHECKOUT_PATH = "/create-checkout"
_HOST = re.compile(r"^[a-z0-9._~%:-]+$")


def safe_base_url(raw: str | None) -> str:
    """Return ``raw`` without trailing slashes if it is an absolute http(s) URL, else ``""``."""
    cleaned = str(raw or "").strip().rstrip("/")
    try:
        parsed = urlparse(cleaned)
        _ = parsed.port  # raises ValueError for a non-numeric or out-of-range port
    except ValueError:
        return ""
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return ""
    if not _HOST.match(parsed.hostname) or any(c.isspace() for c in parsed.netloc):
        return ""
    return cleaned


def checkout_payload(draft: NormalizedDraft, submission_id: Optional[str] = None) -> dict[str, Any]:
    payload = draft.model_dump()
    if submission_id:
        payload["submission_id"] = submission_id
    return payload


def _json_body(resp: requests.Response) -> dict:
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def initiate_checkout(
    draft: NormalizedDraft,
    endpoint: str | None,
    *,
    submission_id: Optional[str] = None,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> str:
    """Ask the payments service for a checkout session and return its redirect URL.

    A single POST to ``{endpoint}/create-checkout``; no retries. A bad
    ``endpoint`` fails before any request is made. ``timeout`` defaults to
    none, so the call lasts until the service answers or the caller gives up.
    """
    base = safe_base_url(endpoint)
    if not base:
        LOGGER.error("checkout endpoint misconfigured: %r", endpoint)
        raise MisconfiguredEndpoint()

    http = session or requests
    url = f"{base}{CHECKOUT_PATH}"
    try:
        resp = http.post(url, json=checkout_payload(draft, submission_id), timeout=timeout)
    except requests.RequestException as exc:
        LOGGER.warning("checkout request failed metro=%s: %s", draft.metro_slug, exc)
        raise CheckoutRejected() from exc

    data = _json_body(resp)
    if not resp.ok:
        message = data.get("error") if isinstance(data.get("error"), str) else None
        LOGGER.warning(
            "checkout rejected metro=%s status=%s error=%r",
            draft.metro_slug,
            resp.status_code,
            message,
        )
        raise CheckoutRejected(message)

    redirect = data.get("url")
    if not isinstance(redirect, str) or not redirect.strip():
        LOGGER.warning("checkout response missing url metro=%s status=%s", draft.metro_slug, resp.status_code)
        raise CheckoutMalformedResponse()

    LOGGER.debug("checkout session created submission=%s", submission_id)
    return redirect.strip()
