"""
Fake stock data providers for tests: deterministic data, fail-N-then-succeed, always-fail.

No live network; used by test_provider_chain, test_service and test_api.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Callable, List, Optional

from stock_analyzer.providers.base import (
    FinancialStatement,
    NewsArticle,
    Overview,
    Period,
    PriceBar,
    StatementType,
    TimeRange,
)

# Deterministic last trading day for reproducible tests.
FAKE_LAST_DATE = date(2026, 1, 30)


def make_bars(ticker: str, count: int, start_close: float = 100.0, step: float = 1.0) -> List[PriceBar]:
    """``count`` daily bars, newest first, closes rising by ``step`` per day."""
    bars = []
    for i in range(count):
        close = start_close + step * i
        bars.append(
            PriceBar(
                ticker=ticker,
                date=(FAKE_LAST_DATE - timedelta(days=count - 1 - i)).isoformat(),
                open=close - 0.5,
                high=close + 1.0,
                low=close - 1.0,
                close=close,
                volume=1_000_000 + i,
            )
        )
    bars.reverse()
    return bars


def make_income(ticker: str = "AAPL") -> List[FinancialStatement]:
    return [
        FinancialStatement(
            ticker=ticker,
            fiscal_date_ending="2025-09-30",
            reported_currency="USD",
            values={
                "totalRevenue": 400.0,
                "grossProfit": 180.0,
                "operatingIncome": 120.0,
                "netIncome": 100.0,
                "ebitda": 140.0,
            },
        ),
        FinancialStatement(
            ticker=ticker,
            fiscal_date_ending="2024-09-30",
            reported_currency="USD",
            values={
                "totalRevenue": 320.0,
                "grossProfit": 140.0,
                "operatingIncome": 90.0,
                "netIncome": 80.0,
                "ebitda": 110.0,
            },
        ),
    ]


def make_cash_flow(ticker: str = "AAPL") -> List[FinancialStatement]:
    return [
        FinancialStatement(
            ticker=ticker,
            fiscal_date_ending="2025-09-30",
            reported_currency="USD",
            values={"operatingCashflow": 110.0, "capitalExpenditures": -10.0},
        )
    ]


FAKE_OVERVIEW = Overview(
    name="Apple Inc",
    sector="Technology",
    industry="Consumer Electronics",
    market_cap=3.0e12,
    pe_ratio=30.0,
    peg_ratio=2.0,
    price_to_book=40.0,
    profit_margin=25.0,
    operating_margin=30.0,
    return_on_equity=150.0,
    quarterly_revenue_growth=5.0,
    quarterly_earnings_growth=10.0,
    debt_to_equity=1.5,
)


# ---------------------------------------------------------------------------
# Always succeed with deterministic data
# ---------------------------------------------------------------------------


class FakeStockProvider:
    """Serves every capability with deterministic data. No network."""

    def __init__(self, name: str, *, bars: int = 22, start_close: float = 100.0):
        self._name = name
        self._bars = bars
        self._start_close = start_close
        self.call_count = 0

    @property
    def provider_name(self) -> str:
        return self._name

    def get_prices(self, ticker: str, range: TimeRange) -> List[PriceBar]:
        self.call_count += 1
        return make_bars(ticker, self._bars, self._start_close)

    def get_statements(
        self, ticker: str, statement: StatementType, period: Period
    ) -> List[FinancialStatement]:
        self.call_count += 1
        if statement is StatementType.CASHFLOW:
            return make_cash_flow(ticker)
        return make_income(ticker)

    def get_news(self, ticker: str, window_days: int) -> List[NewsArticle]:
        self.call_count += 1
        return [
            NewsArticle(
                headline=f"{ticker} shares surge on record profit",
                source="example.com",
                url="https://example.com/a",
                published_at="2026-01-30T12:00:00+00:00",
                summary="",
            ),
            NewsArticle(
                headline=f"{ticker} shares surge on record profit!",
                source="other.com",
                url="https://other.com/a",
                published_at="2026-01-30T12:05:00+00:00",
                summary="",
            ),
            NewsArticle(
                headline=f"{ticker} faces lawsuit over recall",
                source="example.com",
                url="https://example.com/b",
                published_at="2026-01-29T09:00:00+00:00",
                summary="",
            ),
        ]

    def get_overview(self, ticker: str) -> Overview:
        self.call_count += 1
        return FAKE_OVERVIEW


# ---------------------------------------------------------------------------
# Fail N times then succeed
# ---------------------------------------------------------------------------


class FakeProviderFailNThenSucceed(FakeStockProvider):
    """Raises ``error_factory()`` on the first N calls, then serves deterministic data."""

    def __init__(self, name: str, fail_times: int, error_factory: Callable[[], Exception], **kwargs):
        super().__init__(name, **kwargs)
        self._fail_times = fail_times
        self._error_factory = error_factory
        self.failures = 0

    def _maybe_fail(self) -> None:
        if self.failures < self._fail_times:
            self.failures += 1
            raise self._error_factory()

    def get_prices(self, ticker: str, range: TimeRange) -> List[PriceBar]:
        self._maybe_fail()
        return super().get_prices(ticker, range)

    def get_overview(self, ticker: str) -> Overview:
        self._maybe_fail()
        return super().get_overview(ticker)


# ---------------------------------------------------------------------------
# Always fail
# ---------------------------------------------------------------------------


class FakeProviderAlwaysFail:
    """Raises ``error_factory()`` on every call. No network."""

    def __init__(self, name: str = "fake_fail", error_factory: Optional[Callable[[], Exception]] = None):
        self._name = name
        self._error_factory = error_factory or (lambda: RuntimeError(f"{name} always fails"))
        self.call_count = 0

    @property
    def provider_name(self) -> str:
        return self._name

    def _fail(self):
        self.call_count += 1
        raise self._error_factory()

    def get_prices(self, ticker: str, range: TimeRange) -> List[PriceBar]:
        self._fail()

    def get_statements(
        self, ticker: str, statement: StatementType, period: Period
    ) -> List[FinancialStatement]:
        self._fail()

    def get_news(self, ticker: str, window_days: int) -> List[NewsArticle]:
        self._fail()

    def get_overview(self, ticker: str) -> Overview:
        self._fail()
