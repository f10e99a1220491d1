"""
Primary/secondary fallback.

The primary is always tried first and alone; the secondary is only called
when the primary's failure says another vendor might do better (credentials,
quota, transport, missing data, open breaker). Input errors propagate
untouched so a bad symbol never costs a second upstream call.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

import requests

from ..core.errors import StockAnalyzerError
from .base import ProviderAdapter, ProviderResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Markers for errors that did not go through the typed HTTP layer.
FALLBACK_MARKERS = (
    "403",
    "Forbidden",
    "429",
    "rate limit",
    "API limit reached",
    "ECONNRESET",
    "fetch failed",
    "Connection",
    "timed out",
)


def is_fallback_eligible(exc: BaseException) -> bool:
    if isinstance(exc, StockAnalyzerError):
        return exc.fallback_eligible
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    if isinstance(exc, (ConnectionError, TimeoutError)):
        return True
    msg = str(exc)
    return any(marker in msg for marker in FALLBACK_MARKERS)


@dataclass(frozen=True)
class Attempt(Generic[T]):
    name: str
    fn: Callable[[], T]


def with_fallback(primary: Attempt[T], secondary: Attempt[T]) -> ProviderResult[T]:
    """
    Run ``primary.fn``; on a fallback-eligible failure run ``secondary.fn``.

    Returns the value tagged with the provider that produced it. If the
    secondary fails too, its error (not the primary's) propagates.
    """
    try:
        return ProviderResult(primary.fn(), primary.name)
    except Exception as exc:
        if not is_fallback_eligible(exc):
            raise
        logger.warning(
            "%s failed (%s), trying %s",
            primary.name, str(exc)[:80], secondary.name,
        )

    return ProviderResult(secondary.fn(), secondary.name)


class FallbackCoordinator:
    """
    Binds a (primary, secondary) adapter pair for one capability.

    ``call(method, *args)`` invokes the named capability method on the
    primary and, if eligible, on the secondary. A coordinator without a
    secondary just tags the primary's result.
    """

    def __init__(self, primary: ProviderAdapter, secondary: Optional[ProviderAdapter] = None) -> None:
        if secondary is not None and secondary.provider_name == primary.provider_name:
            secondary = None
        self._primary = primary
        self._secondary = secondary

    @property
    def primary(self) -> ProviderAdapter:
        return self._primary

    @property
    def secondary(self) -> Optional[ProviderAdapter]:
        return self._secondary

    def call(self, method: str, *args: Any) -> ProviderResult[Any]:
        first = Attempt(self._primary.provider_name, lambda: getattr(self._primary, method)(*args))
        if self._secondary is None:
            return ProviderResult(first.fn(), first.name)
        second = Attempt(self._secondary.provider_name, lambda: getattr(self._secondary, method)(*args))
        return with_fallback(first, second)
