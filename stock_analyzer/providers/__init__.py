"""
Provider architecture for stock market data.

Vendor adapters for prices, statements, news and company overviews behind
capability protocols. Each capability is served by a configured
primary/secondary pair with retry/backoff, per-provider circuit breakers and
single-level fallback.
"""

from __future__ import annotations

from .base import (
    DataKind,
    FinancialsKind,
    FinancialsSource,
    FinancialStatement,
    NewsArticle,
    NewsKind,
    NewsSource,
    NewsWindow,
    Overview,
    OverviewKind,
    OverviewSource,
    Period,
    PriceBar,
    PriceKind,
    PriceSource,
    ProviderAdapter,
    ProviderResult,
    StatementType,
    TimeRange,
)
from .chain import Attempt, FallbackCoordinator, is_fallback_eligible, with_fallback
from .registry import ProviderRegistry
from .resilience import CircuitBreaker, CircuitBreakerRegistry, RetryPolicy, retry

__all__ = [
    "DataKind",
    "PriceKind",
    "FinancialsKind",
    "NewsKind",
    "OverviewKind",
    "TimeRange",
    "StatementType",
    "Period",
    "NewsWindow",
    "PriceBar",
    "FinancialStatement",
    "NewsArticle",
    "Overview",
    "ProviderResult",
    "PriceSource",
    "FinancialsSource",
    "NewsSource",
    "OverviewSource",
    "ProviderAdapter",
    "ProviderRegistry",
    "Attempt",
    "FallbackCoordinator",
    "with_fallback",
    "is_fallback_eligible",
    "CircuitBreaker",
    "CircuitBreakerRegistry",
    "RetryPolicy",
    "retry",
]
