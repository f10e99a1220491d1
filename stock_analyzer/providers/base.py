"""
Provider interfaces and data contracts.

Adapters implement one or more capability protocols:
- PriceSource: daily OHLCV bars (Finnhub, Stooq, Alpha Vantage)
- FinancialsSource: income / balance / cash-flow statements (FMP, Alpha Vantage)
- NewsSource: company news (GDELT, Finnhub)
- OverviewSource: company fundamentals snapshot (FMP, Alpha Vantage)

Data is returned via frozen dataclasses; vendor field names never leave the
adapter module that parses them.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, Generic, List, Optional, Protocol, TypeVar, runtime_checkable

from ..core.errors import ConfigurationError, StockAnalyzerError
from .resilience import CircuitBreakerRegistry, RetryPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

PRICE = "price"
FINANCIALS = "financials"
NEWS = "news"
OVERVIEW = "overview"
CAPABILITIES = (PRICE, FINANCIALS, NEWS, OVERVIEW)


class TimeRange(str, enum.Enum):
    W1 = "1W"
    M1 = "1M"
    M3 = "3M"
    M6 = "6M"
    Y1 = "1Y"
    Y5 = "5Y"
    MAX = "MAX"

    def start_date(self, today: Optional[date] = None) -> date:
        """First calendar day covered by the range, counted back from ``today``."""
        today = today or datetime.now(timezone.utc).date()
        days = _RANGE_DAYS[self]
        return today - timedelta(days=days)


# MAX is capped at ~20 years, the deepest history any vendor here serves.
_RANGE_DAYS = {
    TimeRange.W1: 7,
    TimeRange.M1: 30,
    TimeRange.M3: 90,
    TimeRange.M6: 180,
    TimeRange.Y1: 365,
    TimeRange.Y5: 5 * 365,
    TimeRange.MAX: 20 * 365,
}


class StatementType(str, enum.Enum):
    INCOME = "income"
    BALANCE = "balance"
    CASHFLOW = "cashflow"


class Period(str, enum.Enum):
    ANNUAL = "annual"
    QUARTERLY = "quarterly"


class NewsWindow(str, enum.Enum):
    H24 = "24h"
    D7 = "7d"
    D30 = "30d"

    @property
    def days(self) -> int:
        return {"24h": 1, "7d": 7, "30d": 30}[self.value]


# ---------------------------------------------------------------------------
# Data kinds: what is being fetched, and the cache key it lives under
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DataKind:
    capability = ""

    def key_parts(self) -> tuple:
        return ()

    def cache_key(self, ticker: str) -> str:
        return "|".join((self.capability, ticker) + tuple(str(p) for p in self.key_parts()))


@dataclass(frozen=True)
class PriceKind(DataKind):
    range: TimeRange = TimeRange.M1
    capability = PRICE

    def key_parts(self) -> tuple:
        return (self.range.value,)


@dataclass(frozen=True)
class FinancialsKind(DataKind):
    statement: StatementType = StatementType.INCOME
    period: Period = Period.ANNUAL
    capability = FINANCIALS

    def key_parts(self) -> tuple:
        return (self.statement.value, self.period.value)


@dataclass(frozen=True)
class NewsKind(DataKind):
    window: NewsWindow = NewsWindow.D7
    capability = NEWS

    def key_parts(self) -> tuple:
        return (self.window.value,)


@dataclass(frozen=True)
class OverviewKind(DataKind):
    capability = OVERVIEW


# ---------------------------------------------------------------------------
# Canonical payloads
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PriceBar:
    """One daily OHLCV bar; ``date`` is ISO ``YYYY-MM-DD``."""

    ticker: str
    date: str
    open: float
    high: float
    low: float
    close: float
    volume: int


@dataclass(frozen=True)
class FinancialStatement:
    """
    One reporting period of a statement.

    ``values`` holds the line items under canonical names:
    income: totalRevenue, grossProfit, operatingIncome, netIncome, ebitda;
    balance: totalAssets, totalCurrentAssets, totalLiabilities,
    totalCurrentLiabilities, totalShareholderEquity;
    cashflow: operatingCashflow, capitalExpenditures, cashflowFromInvestment,
    cashflowFromFinancing.
    """

    ticker: str
    fiscal_date_ending: str
    reported_currency: str
    values: Dict[str, float] = field(default_factory=dict)

    def get(self, item: str) -> float:
        return float(self.values.get(item) or 0.0)


@dataclass(frozen=True)
class NewsArticle:
    headline: str
    source: str
    url: str
    published_at: str
    summary: str
    sentiment: Optional[str] = None


@dataclass(frozen=True)
class Overview:
    """Company fundamentals. Percent fields are already scaled to 0-100."""

    name: Optional[str] = None
    sector: Optional[str] = None
    industry: Optional[str] = None
    market_cap: Optional[float] = None
    fifty_two_week_high: Optional[float] = None
    fifty_two_week_low: Optional[float] = None
    average_volume: Optional[float] = None
    pe_ratio: Optional[float] = None
    forward_pe: Optional[float] = None
    peg_ratio: Optional[float] = None
    price_to_book: Optional[float] = None
    price_to_sales: Optional[float] = None
    ev_to_ebitda: Optional[float] = None
    profit_margin: Optional[float] = None
    operating_margin: Optional[float] = None
    return_on_equity: Optional[float] = None
    return_on_assets: Optional[float] = None
    revenue: Optional[float] = None
    quarterly_revenue_growth: Optional[float] = None
    quarterly_earnings_growth: Optional[float] = None
    eps: Optional[float] = None
    debt_to_equity: Optional[float] = None
    current_ratio: Optional[float] = None
    quick_ratio: Optional[float] = None
    book_value: Optional[float] = None
    dividend_yield: Optional[float] = None
    dividend_per_share: Optional[float] = None
    payout_ratio: Optional[float] = None


@dataclass(frozen=True)
class ProviderResult(Generic[T]):
    """A successful fetch tagged with the provider that produced it."""

    value: T
    provider: str


# ---------------------------------------------------------------------------
# Capability protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class PriceSource(Protocol):
    @property
    def provider_name(self) -> str: ...

    def get_prices(self, ticker: str, range: TimeRange) -> List[PriceBar]:
        """Daily bars covering ``range``, newest first."""
        ...


@runtime_checkable
class FinancialsSource(Protocol):
    @property
    def provider_name(self) -> str: ...

    def get_statements(
        self, ticker: str, statement: StatementType, period: Period
    ) -> List[FinancialStatement]:
        """Statements for ``period``, most recent first."""
        ...


@runtime_checkable
class NewsSource(Protocol):
    @property
    def provider_name(self) -> str: ...

    def get_news(self, ticker: str, window_days: int) -> List[NewsArticle]: ...


@runtime_checkable
class OverviewSource(Protocol):
    @property
    def provider_name(self) -> str: ...

    def get_overview(self, ticker: str) -> Overview: ...


# ---------------------------------------------------------------------------
# Adapter base
# ---------------------------------------------------------------------------


def is_retryable(exc: BaseException) -> bool:
    """Adapters only repeat transport-level failures; anything else is final for this provider."""
    if isinstance(exc, StockAnalyzerError):
        return exc.retryable
    return False


class ProviderAdapter:
    """
    Shared plumbing for vendor adapters.

    Every network call goes through
    ``breaker.execute(lambda: retry_policy.call(raw_call))`` where the breaker
    is the registry's one instance for (provider, capability).
    """

    name = ""
    api_key_name: Optional[str] = None

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        retry_policy: Optional[RetryPolicy] = None,
        breakers: Optional[CircuitBreakerRegistry] = None,
        timeout_s: float = 15.0,
    ) -> None:
        self._api_key = api_key
        self._retry = retry_policy or RetryPolicy(should_retry=is_retryable)
        self._breakers = breakers or CircuitBreakerRegistry()
        self._timeout_s = timeout_s

    @property
    def provider_name(self) -> str:
        return self.name

    def _require_key(self) -> str:
        if not self._api_key:
            raise ConfigurationError(f"{self.api_key_name} is not set", provider=self.name)
        return self._api_key

    def _guarded(self, capability: str, raw_call: Callable[[], Any]) -> Any:
        breaker = self._breakers.get(self.name, capability)
        return breaker.execute(lambda: self._retry.call(raw_call))
