"""
Financial Modeling Prep statements and overview provider.

  GET /api/v3/income-statement/{symbol}?period=&limit=5&apikey=
  GET /api/v3/balance-sheet-statement/{symbol}?period=&limit=5&apikey=
  GET /api/v3/cash-flow-statement/{symbol}?period=&limit=5&apikey=
  GET /api/v3/{profile,quote,ratios-ttm,key-metrics-ttm}/{symbol}?apikey=

Requires FMP_API_KEY. Percent ratios come back as whole numbers and are
divided by 100 before the overview transform re-scales them.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..core.errors import ForbiddenError, InvalidTickerError, NotFoundError, RateLimitedError
from ..transforms import transform_overview
from . import http
from .base import FINANCIALS, OVERVIEW, FinancialStatement, Overview, Period, ProviderAdapter, StatementType

FMP_BASE_URL = "https://financialmodelingprep.com/api/v3"

_ENDPOINTS = {
    StatementType.INCOME: ("income-statement", "income statement"),
    StatementType.BALANCE: ("balance-sheet-statement", "balance sheet"),
    StatementType.CASHFLOW: ("cash-flow-statement", "cash flow"),
}

# canonical line item -> FMP field
_LINE_ITEMS = {
    StatementType.INCOME: {
        "totalRevenue": "revenue",
        "grossProfit": "grossProfit",
        "operatingIncome": "operatingIncome",
        "netIncome": "netIncome",
        "ebitda": "ebitda",
    },
    StatementType.BALANCE: {
        "totalAssets": "totalAssets",
        "totalCurrentAssets": "totalCurrentAssets",
        "totalLiabilities": "totalLiabilities",
        "totalCurrentLiabilities": "totalCurrentLiabilities",
        "totalShareholderEquity": "totalStockholdersEquity",
    },
    StatementType.CASHFLOW: {
        "operatingCashflow": "operatingCashFlow",
        "capitalExpenditures": "capitalExpenditure",
        "cashflowFromInvestment": "netCashUsedForInvestingActivites",
        "cashflowFromFinancing": "netCashUsedProvidedByFinancingActivities",
    },
}


def fmp_symbol(ticker: str) -> str:
    return ticker.replace("-", ".")


def _num(x: Any) -> float:
    try:
        return float(x) if x is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def _first(rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    return rows[0] if rows else {}


class FMPProvider(ProviderAdapter):
    """Statements and company overview from Financial Modeling Prep."""

    name = "fmp"
    api_key_name = "FMP_API_KEY"

    def _fetch(self, capability: str, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        query = dict(params or {})
        query["apikey"] = self._require_key()
        data = self._guarded(
            capability,
            lambda: http.get_json(
                f"{FMP_BASE_URL}/{path}",
                provider=self.name, label="FMP", params=query, timeout_s=self._timeout_s,
            ),
        )
        if isinstance(data, dict) and data.get("Error Message"):
            message = str(data["Error Message"])
            if "limit" in message.lower():
                raise RateLimitedError(f"FMP API limit reached: {message}", provider=self.name)
            if "api key" in message.lower():
                raise ForbiddenError(f"FMP rejected the API key: {message}", provider=self.name)
            raise InvalidTickerError(f"Invalid ticker: {message}", provider=self.name)
        return data

    def get_statements(
        self, ticker: str, statement: StatementType, period: Period
    ) -> List[FinancialStatement]:
        endpoint, label = _ENDPOINTS[statement]
        data = self._fetch(
            FINANCIALS,
            f"{endpoint}/{fmp_symbol(ticker)}",
            {"period": period.value, "limit": 5},
        )
        if not isinstance(data, list) or not data:
            raise NotFoundError(f"No {label} data available", provider=self.name)

        items = _LINE_ITEMS[statement]
        return [
            FinancialStatement(
                ticker=ticker,
                fiscal_date_ending=row.get("date") or row.get("fillingDate") or "",
                reported_currency=row.get("reportedCurrency") or "USD",
                values={canonical: _num(row.get(field)) for canonical, field in items.items()},
            )
            for row in data
            if isinstance(row, dict)
        ]

    def _fetch_single(self, path: str, ticker: str) -> Dict[str, Any]:
        data = self._fetch(OVERVIEW, f"{path}/{ticker}")
        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            raise InvalidTickerError(f"Invalid ticker: {ticker}", provider=self.name)
        return data[0]

    def _fetch_rows(self, path: str, ticker: str) -> List[Dict[str, Any]]:
        data = self._fetch(OVERVIEW, f"{path}/{ticker}")
        return [row for row in data if isinstance(row, dict)] if isinstance(data, list) else []

    def get_overview(self, ticker: str) -> Overview:
        symbol = fmp_symbol(ticker)
        profile = self._fetch_single("profile", symbol)
        quote = self._fetch_single("quote", symbol)
        ratios = _first(self._fetch_rows("ratios-ttm", symbol))
        metrics = _first(self._fetch_rows("key-metrics-ttm", symbol))
        return transform_overview(self.to_overview_fields(profile, quote, ratios, metrics))

    @staticmethod
    def to_overview_fields(
        profile: Dict[str, Any],
        quote: Dict[str, Any],
        ratios: Dict[str, Any],
        metrics: Dict[str, Any],
    ) -> Dict[str, str]:
        """Map FMP's four payloads onto the Alpha Vantage OVERVIEW keys."""
        price = _num(quote.get("price"))
        market_cap = _num(profile.get("mktCap"))
        last_div = _num(profile.get("lastDiv"))
        revenue_per_share = _num(metrics.get("revenuePerShareTTM"))

        def pct(key: str) -> str:
            return str(_num(ratios.get(key)) / 100)

        return {
            "Name": profile.get("companyName") or "",
            "Sector": profile.get("sector") or "",
            "Industry": profile.get("industry") or "",
            "MarketCapitalization": str(market_cap),
            "52WeekHigh": str(_num(quote.get("yearHigh"))),
            "52WeekLow": str(_num(quote.get("yearLow"))),
            "Volume": str(_num(quote.get("avgVolume"))),
            "PERatio": str(_num(quote.get("pe")) or _num(ratios.get("peRatioTTM"))),
            "ForwardPE": str(_num(ratios.get("forwardPE"))),
            "PEGRatio": str(_num(ratios.get("pegRatioTTM") or ratios.get("pegRatio"))),
            "PriceToBookRatio": str(_num(quote.get("priceToBook")) or _num(ratios.get("priceToBookRatioTTM"))),
            "PriceToSalesRatioTTM": str(_num(ratios.get("priceToSalesRatioTTM"))),
            "EVToEBITDA": str(_num(ratios.get("enterpriseValueOverEBITDATTM"))),
            "ProfitMargin": pct("netProfitMarginTTM"),
            "OperatingMarginTTM": pct("operatingProfitMarginTTM"),
            "ReturnOnEquityTTM": pct("returnOnEquityTTM"),
            "ReturnOnAssetsTTM": pct("returnOnAssetsTTM"),
            "RevenueTTM": str(revenue_per_share * market_cap / price if price else 0.0),
            "QuarterlyRevenueGrowthYOY": pct("revenueGrowthTTM"),
            "QuarterlyEarningsGrowthYOY": pct("earningsGrowthTTM"),
            "DilutedEPSTTM": str(_num(quote.get("eps"))),
            "DebtToEquity": str(_num(ratios.get("debtEquityRatioTTM"))),
            "CurrentRatio": str(_num(ratios.get("currentRatioTTM"))),
            "QuickRatio": str(_num(ratios.get("quickRatioTTM"))),
            "BookValue": str(_num(metrics.get("bookValuePerShareTTM"))),
            "DividendYield": str(last_div / price if price else 0.0),
            "DividendPerShare": str(last_div),
            "PayoutRatio": pct("payoutRatioTTM"),
        }
