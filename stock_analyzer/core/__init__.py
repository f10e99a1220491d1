"""
Stable facade: error taxonomy shared by providers, cache, service and API.
Do not add exports without updating __all__.
"""

from __future__ import annotations

from .errors import (
    CircuitOpenError,
    ConfigurationError,
    ForbiddenError,
    InvalidInputError,
    InvalidTickerError,
    NotFoundError,
    ProviderResponseError,
    RateLimitedError,
    StockAnalyzerError,
    TransientError,
)

# Do not add exports without updating __all__.
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
