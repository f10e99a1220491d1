"""
Alpha Vantage price, statements and overview provider.

  GET https://www.alphavantage.co/query?function=TIME_SERIES_DAILY&symbol=&outputsize=&apikey=
  GET https://www.alphavantage.co/query?function={INCOME_STATEMENT,BALANCE_SHEET,CASH_FLOW}&symbol=&apikey=
  GET https://www.alphavantage.co/query?function=OVERVIEW&symbol=&apikey=

Requires ALPHA_VANTAGE_API_KEY. Errors arrive as HTTP 200 with an
``Error Message`` (unknown symbol) or ``Note`` / ``Information`` (quota) key.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List

from ..core.errors import InvalidTickerError, NotFoundError, ProviderResponseError, RateLimitedError
from ..transforms import transform_overview
from . import http
from .base import (
    FINANCIALS,
    OVERVIEW,
    PRICE,
    FinancialStatement,
    Overview,
    Period,
    PriceBar,
    ProviderAdapter,
    StatementType,
    TimeRange,
)

ALPHA_VANTAGE_URL = "https://www.alphavantage.co/query"

_FUNCTIONS = {
    StatementType.INCOME: ("INCOME_STATEMENT", "income statement"),
    StatementType.BALANCE: ("BALANCE_SHEET", "balance sheet"),
    StatementType.CASHFLOW: ("CASH_FLOW", "cash flow"),
}

_LINE_ITEMS = {
    StatementType.INCOME: ("totalRevenue", "grossProfit", "operatingIncome", "netIncome", "ebitda"),
    StatementType.BALANCE: (
        "totalAssets",
        "totalCurrentAssets",
        "totalLiabilities",
        "totalCurrentLiabilities",
        "totalShareholderEquity",
    ),
    StatementType.CASHFLOW: (
        "operatingCashflow",
        "capitalExpenditures",
        "cashflowFromInvestment",
        "cashflowFromFinancing",
    ),
}


def av_symbol(ticker: str) -> str:
    return ticker.replace("-", ".")


def _num(x: Any) -> float:
    try:
        return float(x)
    except (TypeError, ValueError):
        return 0.0


class AlphaVantageProvider(ProviderAdapter):
    """Daily bars, statements and overview from Alpha Vantage."""

    name = "alpha_vantage"
    api_key_name = "ALPHA_VANTAGE_API_KEY"

    def _query(self, capability: str, ticker: str, params: Dict[str, Any]) -> Dict[str, Any]:
        query = dict(params)
        query["symbol"] = av_symbol(ticker)
        query["apikey"] = self._require_key()
        data = self._guarded(
            capability,
            lambda: http.get_json(
                ALPHA_VANTAGE_URL,
                provider=self.name, label="Alpha Vantage", params=query, timeout_s=self._timeout_s,
            ),
        )
        if not isinstance(data, dict):
            raise ProviderResponseError("Unexpected Alpha Vantage payload", provider=self.name)
        if data.get("Error Message"):
            raise InvalidTickerError(f"Invalid ticker: {ticker}", provider=self.name)
        if data.get("Note") or data.get("Information"):
            raise RateLimitedError("API rate limit exceeded", provider=self.name)
        return data

    def get_prices(self, ticker: str, range: TimeRange) -> List[PriceBar]:
        outputsize = "full" if range in (TimeRange.Y5, TimeRange.MAX) else "compact"
        data = self._query(PRICE, ticker, {"function": "TIME_SERIES_DAILY", "outputsize": outputsize})

        series = data.get("Time Series (Daily)")
        if not isinstance(series, dict) or not series:
            raise NotFoundError("No price data available", provider=self.name)

        cutoff = None
        if range is not TimeRange.MAX:
            cutoff = range.start_date(datetime.now(timezone.utc).date()).isoformat()

        bars = [
            PriceBar(
                ticker=ticker,
                date=day,
                open=_num(values.get("1. open")),
                high=_num(values.get("2. high")),
                low=_num(values.get("3. low")),
                close=_num(values.get("4. close")),
                volume=int(_num(values.get("5. volume"))),
            )
            for day, values in series.items()
            if cutoff is None or day >= cutoff
        ]
        bars.sort(key=lambda b: b.date, reverse=True)
        return bars

    def get_statements(
        self, ticker: str, statement: StatementType, period: Period
    ) -> List[FinancialStatement]:
        function, label = _FUNCTIONS[statement]
        data = self._query(FINANCIALS, ticker, {"function": function})

        reports = data.get("annualReports" if period is Period.ANNUAL else "quarterlyReports")
        if not isinstance(reports, list) or not reports:
            raise NotFoundError(f"No {label} data available", provider=self.name)

        items = _LINE_ITEMS[statement]
        return [
            FinancialStatement(
                ticker=ticker,
                fiscal_date_ending=row.get("fiscalDateEnding") or "",
                reported_currency=row.get("reportedCurrency") or "USD",
                values={item: _num(row.get(item)) for item in items},
            )
            for row in reports
            if isinstance(row, dict)
        ]

    def get_overview(self, ticker: str) -> Overview:
        data = self._query(OVERVIEW, ticker, {"function": "OVERVIEW"})
        # Unknown symbols return an empty object here instead of an Error Message.
        if not (data.get("Symbol") or data.get("Name")):
            raise InvalidTickerError(f"Invalid ticker: {ticker}", provider=self.name)
        return transform_overview(data)
