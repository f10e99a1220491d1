"""
Shared exception types for stock_analyzer.

Every failure a provider can report maps onto one of these kinds. The class
flags tell the resilience layer what to do with it:

- ``retryable``: RetryPolicy may repeat the call against the same provider.
- ``fallback_eligible``: the fallback coordinator may reroute to the secondary.

The ``kind`` tag is what the API layer maps to an HTTP status.
"""

from __future__ import annotations

from typing import Optional


class StockAnalyzerError(Exception):
    """Base exception for stock_analyzer; catch this for any package-raised error."""

    kind = "error"
    retryable = False
    fallback_eligible = False

    def __init__(self, message: str, *, provider: Optional[str] = None) -> None:
        super().__init__(message)
        self.provider = provider


class InvalidInputError(StockAnalyzerError):
    """Malformed ticker or request parameters."""

    kind = "invalid_input"


class InvalidTickerError(InvalidInputError):
    """Upstream rejected the symbol itself; another vendor will not know it either."""


class NotFoundError(StockAnalyzerError):
    """Upstream has no data of the requested kind for this ticker."""

    kind = "not_found"
    fallback_eligible = True


class RateLimitedError(StockAnalyzerError):
    """Quota or rate limit exhausted (HTTP 429 or a vendor marker)."""

    kind = "rate_limited"
    fallback_eligible = True


class ForbiddenError(StockAnalyzerError):
    """Credentials rejected (HTTP 401/403)."""

    kind = "forbidden"
    fallback_eligible = True


class ConfigurationError(ForbiddenError):
    """Credentials missing from configuration."""

    kind = "configuration"


class TransientError(StockAnalyzerError):
    """Connection reset, timeout or 5xx; worth another attempt."""

    kind = "transient"
    retryable = True
    fallback_eligible = True


class ProviderResponseError(TransientError):
    """Response arrived but its shape is not what the adapter expects."""

    retryable = False


class CircuitOpenError(StockAnalyzerError):
    """The provider's circuit breaker refused the call."""

    kind = "circuit_open"
    fallback_eligible = True


__all__ = [
    "StockAnalyzerError",
    "InvalidInputError",
    "InvalidTickerError",
    "NotFoundError",
    "RateLimitedError",
    "ForbiddenError",
    "ConfigurationError",
    "TransientError",
    "ProviderResponseError",
    "CircuitOpenError",
]
