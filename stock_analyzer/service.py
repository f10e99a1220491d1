"""
Market data service: the single entry point route handlers call.

    cache hit  -> stored ProviderResult, no upstream call
    cache miss -> FallbackCoordinator(primary, secondary)
                    -> CircuitBreaker -> RetryPolicy -> HTTP

Tickers must already be validated (see stock_analyzer.validation).
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from . import config
from .cache import ResultCache
from .providers.base import (
    FINANCIALS,
    NEWS,
    OVERVIEW,
    PRICE,
    DataKind,
    FinancialsKind,
    FinancialStatement,
    NewsArticle,
    NewsKind,
    NewsWindow,
    Overview,
    OverviewKind,
    Period,
    PriceBar,
    PriceKind,
    ProviderResult,
    StatementType,
    TimeRange,
)
from .providers.chain import FallbackCoordinator
from .providers.defaults import create_coordinators, create_default_registry
from .providers.resilience import CircuitBreakerRegistry

logger = logging.getLogger(__name__)


def _call_for(kind: DataKind) -> tuple:
    """Capability method name and arguments (after the ticker) for a data kind."""
    if isinstance(kind, PriceKind):
        return "get_prices", (kind.range,)
    if isinstance(kind, FinancialsKind):
        return "get_statements", (kind.statement, kind.period)
    if isinstance(kind, NewsKind):
        return "get_news", (kind.window.days,)
    if isinstance(kind, OverviewKind):
        return "get_overview", ()
    raise TypeError(f"Unsupported data kind: {kind!r}")


class MarketDataService:
    """Cached, fallback-protected access to every data kind."""

    def __init__(
        self,
        coordinators: Mapping[str, FallbackCoordinator],
        cache: Optional[ResultCache] = None,
        breakers: Optional[CircuitBreakerRegistry] = None,
    ) -> None:
        self._coordinators = dict(coordinators)
        self._cache = cache or ResultCache()
        self._breakers = breakers

    @classmethod
    def from_config(cls) -> "MarketDataService":
        """Build the default wiring: configured providers, fresh breakers, fresh cache."""
        registry = create_default_registry()
        return cls(
            create_coordinators(registry),
            cache=ResultCache(ttls=config.cache_ttls()),
            breakers=registry.breakers,
        )

    @property
    def cache(self) -> ResultCache:
        return self._cache

    def coordinator(self, capability: str) -> FallbackCoordinator:
        return self._coordinators[capability]

    def fetch(self, ticker: str, kind: DataKind) -> ProviderResult[Any]:
        """Serve ``kind`` for ``ticker`` from cache, else from the provider pair."""
        coordinator = self._coordinators[kind.capability]
        method, args = _call_for(kind)
        key = kind.cache_key(ticker)

        def compute() -> ProviderResult[Any]:
            result = coordinator.call(method, ticker, *args)
            logger.info("%s served by %s", key, result.provider)
            return result

        return self._cache.get_or_compute(key, self._cache.ttl_for(kind), compute)

    def get_prices(self, ticker: str, range: TimeRange = TimeRange.M1) -> ProviderResult[List[PriceBar]]:
        return self.fetch(ticker, PriceKind(range))

    def get_statements(
        self,
        ticker: str,
        statement: StatementType = StatementType.INCOME,
        period: Period = Period.ANNUAL,
    ) -> ProviderResult[List[FinancialStatement]]:
        return self.fetch(ticker, FinancialsKind(statement, period))

    def get_news(self, ticker: str, window: NewsWindow = NewsWindow.D7) -> ProviderResult[List[NewsArticle]]:
        return self.fetch(ticker, NewsKind(window))

    def get_overview(self, ticker: str) -> ProviderResult[Overview]:
        return self.fetch(ticker, OverviewKind())

    def provider_pairs(self) -> Dict[str, Dict[str, Optional[str]]]:
        out = {}
        for capability in (PRICE, FINANCIALS, NEWS, OVERVIEW):
            coord = self._coordinators.get(capability)
            if coord is None:
                continue
            out[capability] = {
                "primary": coord.primary.provider_name,
                "secondary": coord.secondary.provider_name if coord.secondary else None,
            }
        return out

    def breaker_states(self) -> Dict[str, str]:
        return self._breakers.states() if self._breakers is not None else {}
