"""
HTTP plumbing shared by every adapter.

Translates transport failures and non-2xx statuses into the error kinds of
``stock_analyzer.core.errors`` so the retry and fallback layers can act on
them without knowing about ``requests``.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from ..core.errors import (
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    ProviderResponseError,
    RateLimitedError,
    TransientError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 15.0


def _raise_for_status(resp: requests.Response, provider: str, label: str) -> None:
    status = resp.status_code
    if 200 <= status < 300:
        return
    reason = resp.reason or ""
    msg = f"{label} API error: {status} {reason}".rstrip()
    if status == 429:
        raise RateLimitedError(f"{label} rate limit (HTTP 429)", provider=provider)
    if status in (401, 403):
        raise ForbiddenError(msg, provider=provider)
    if status == 404:
        raise NotFoundError(msg, provider=provider)
    if status == 400:
        raise InvalidInputError(msg, provider=provider)
    raise TransientError(msg, provider=provider)


def get(
    url: str,
    *,
    provider: str,
    label: str,
    params: Optional[Dict[str, Any]] = None,
    timeout_s: float = DEFAULT_TIMEOUT_S,
) -> requests.Response:
    """GET ``url`` and return the response, or raise a typed provider error."""
    try:
        resp = requests.get(url, params=params, timeout=timeout_s)
    except requests.Timeout as exc:
        raise TransientError(f"{label} request timed out: {exc}", provider=provider) from exc
    except requests.ConnectionError as exc:
        raise TransientError(f"{label} connection failed: {exc}", provider=provider) from exc
    except requests.RequestException as exc:
        raise TransientError(f"{label} request failed: {exc}", provider=provider) from exc
    _raise_for_status(resp, provider, label)
    return resp


def get_json(
    url: str,
    *,
    provider: str,
    label: str,
    params: Optional[Dict[str, Any]] = None,
    timeout_s: float = DEFAULT_TIMEOUT_S,
) -> Any:
    resp = get(url, provider=provider, label=label, params=params, timeout_s=timeout_s)
    try:
        return resp.json()
    except ValueError as exc:
        raise ProviderResponseError(f"{label} returned a non-JSON body", provider=provider) from exc


def get_text(
    url: str,
    *,
    provider: str,
    label: str,
    params: Optional[Dict[str, Any]] = None,
    timeout_s: float = DEFAULT_TIMEOUT_S,
) -> str:
    return get(url, provider=provider, label=label, params=params, timeout_s=timeout_s).text
