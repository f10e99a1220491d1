"""
Pure transforms from canonical provider payloads to presentation values:
price summary, statement metrics, overview parsing, news dedupe and sentiment.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .core.errors import InvalidInputError
from .providers.base import FinancialStatement, NewsArticle, Overview, PriceBar


@dataclass(frozen=True)
class PriceSummary:
    prices: List[PriceBar]
    current: float
    day_change: float
    period_change: float


def transform_price_data(prices: Sequence[PriceBar]) -> PriceSummary:
    """Current close, day change % and period change %; ``prices`` are newest first."""
    if not prices:
        raise InvalidInputError("No price data to transform")

    current = prices[0].close
    previous_close = prices[1].close if len(prices) > 1 else current
    period_start = prices[-1].close

    day_change = (current - previous_close) / previous_close * 100 if previous_close else 0.0
    period_change = (current - period_start) / period_start * 100 if period_start else 0.0

    return PriceSummary(
        prices=list(prices),
        current=current,
        day_change=day_change,
        period_change=period_change,
    )


def normalize_prices(prices: Sequence[PriceBar]) -> List[float]:
    """Rebase closes so the first bar is 100, for comparing tickers on one chart."""
    if not prices:
        return []
    start = prices[0].close
    if not start:
        return [0.0 for _ in prices]
    return [p.close / start * 100 for p in prices]


# ---------------------------------------------------------------------------
# Statement metrics (percentages are 0-100)
# ---------------------------------------------------------------------------


def _pct(num: float, den: float) -> float:
    return num / den * 100 if den > 0 else 0.0


def income_metrics(statements: Sequence[FinancialStatement]) -> Dict[str, float]:
    if not statements:
        raise InvalidInputError("No income statement data")

    latest = statements[0]
    revenue = latest.get("totalRevenue")

    growth = 0.0
    if len(statements) > 1:
        prior = statements[1].get("totalRevenue")
        if prior > 0:
            growth = (revenue - prior) / prior * 100

    return {
        "grossMargin": _pct(latest.get("grossProfit"), revenue),
        "operatingMargin": _pct(latest.get("operatingIncome"), revenue),
        "netMargin": _pct(latest.get("netIncome"), revenue),
        "revenueGrowthYoY": growth,
    }


def balance_metrics(statements: Sequence[FinancialStatement]) -> Dict[str, float]:
    if not statements:
        raise InvalidInputError("No balance sheet data")

    latest = statements[0]
    current_liabilities = latest.get("totalCurrentLiabilities")
    equity = latest.get("totalShareholderEquity")
    return {
        "currentRatio": latest.get("totalCurrentAssets") / current_liabilities if current_liabilities > 0 else 0.0,
        "debtToEquity": latest.get("totalLiabilities") / equity if equity > 0 else 0.0,
    }


def cash_flow_metrics(
    cash_flow: Sequence[FinancialStatement],
    income: Sequence[FinancialStatement],
) -> Dict[str, float]:
    """Free cash flow needs revenue from the income statement for its margin."""
    if not cash_flow:
        raise InvalidInputError("No cash flow data")

    latest = cash_flow[0]
    # Vendors disagree on the sign of capex; always subtract its magnitude.
    free_cash_flow = latest.get("operatingCashflow") - abs(latest.get("capitalExpenditures"))
    revenue = income[0].get("totalRevenue") if income else 0.0
    return {
        "freeCashFlow": free_cash_flow,
        "fcfMargin": _pct(free_cash_flow, revenue),
    }


# ---------------------------------------------------------------------------
# Overview
# ---------------------------------------------------------------------------

_MISSING = {"", "None", "-", "null"}


def format_metric(value: Any, kind: str = "number") -> Optional[float]:
    """Parse a vendor string; ``kind="percent"`` turns a ratio into a 2-dp percentage."""
    if value is None:
        return None
    text = str(value).strip()
    if text in _MISSING:
        return None
    try:
        num = float(text)
    except ValueError:
        return None
    if num != num:  # NaN
        return None
    if kind == "percent":
        return round(num * 100, 2)
    return num


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return None if text in _MISSING else text


# Overview field -> (Alpha Vantage OVERVIEW key, kind)
OVERVIEW_FIELDS = {
    "market_cap": ("MarketCapitalization", "number"),
    "fifty_two_week_high": ("52WeekHigh", "number"),
    "fifty_two_week_low": ("52WeekLow", "number"),
    "average_volume": ("Volume", "number"),
    "pe_ratio": ("PERatio", "number"),
    "forward_pe": ("ForwardPE", "number"),
    "peg_ratio": ("PEGRatio", "number"),
    "price_to_book": ("PriceToBookRatio", "number"),
    "price_to_sales": ("PriceToSalesRatioTTM", "number"),
    "ev_to_ebitda": ("EVToEBITDA", "number"),
    "profit_margin": ("ProfitMargin", "percent"),
    "operating_margin": ("OperatingMarginTTM", "percent"),
    "return_on_equity": ("ReturnOnEquityTTM", "percent"),
    "return_on_assets": ("ReturnOnAssetsTTM", "percent"),
    "revenue": ("RevenueTTM", "number"),
    "quarterly_revenue_growth": ("QuarterlyRevenueGrowthYOY", "percent"),
    "quarterly_earnings_growth": ("QuarterlyEarningsGrowthYOY", "percent"),
    "eps": ("DilutedEPSTTM", "number"),
    "debt_to_equity": ("DebtToEquity", "number"),
    "current_ratio": ("CurrentRatio", "number"),
    "quick_ratio": ("QuickRatio", "number"),
    "book_value": ("BookValue", "number"),
    "dividend_yield": ("DividendYield", "percent"),
    "dividend_per_share": ("DividendPerShare", "number"),
    "payout_ratio": ("PayoutRatio", "percent"),
}


def transform_overview(raw: Mapping[str, Any]) -> Overview:
    """Build an Overview from an Alpha-Vantage-shaped mapping of strings."""
    numbers = {
        attr: format_metric(raw.get(key), kind) for attr, (key, kind) in OVERVIEW_FIELDS.items()
    }
    return Overview(
        name=_text(raw.get("Name")),
        sector=_text(raw.get("Sector")),
        industry=_text(raw.get("Industry")),
        **numbers,
    )


# ---------------------------------------------------------------------------
# News
# ---------------------------------------------------------------------------

_PUNCT = re.compile(r"[^\w\s]")

POSITIVE_WORDS = (
    "surge", "surges", "record", "beats", "beat", "growth", "profit",
    "rally", "rallies", "gain", "gains", "innovation", "breakthrough",
    "soar", "soars", "jump", "jumps", "rise", "rises", "up",
)

NEGATIVE_WORDS = (
    "plunge", "plunges", "loss", "losses", "cut", "cuts", "lawsuit",
    "recall", "recalls", "downgrade", "downgrades", "tumble", "tumbles",
    "miss", "misses", "warning", "decline", "declines", "weak", "down",
    "fall", "falls", "drop", "drops",
)


def _fingerprint(headline: str) -> str:
    return _PUNCT.sub("", headline.lower())[:50]


def deduplicate_news(articles: Sequence[NewsArticle]) -> List[NewsArticle]:
    """Drop articles whose headline matches an earlier one on its first 50 normalized chars."""
    seen = set()
    out: List[NewsArticle] = []
    for article in articles:
        fp = _fingerprint(article.headline)
        if fp in seen:
            continue
        seen.add(fp)
        out.append(article)
    return out


def compute_sentiment(text: str) -> str:
    """Keyword sentiment. Substring match, so "up" also fires inside "upgrade"."""
    lower = text.lower()
    score = sum(1 for w in POSITIVE_WORDS if w in lower)
    score -= sum(1 for w in NEGATIVE_WORDS if w in lower)
    if score > 0:
        return "positive"
    if score < 0:
        return "negative"
    return "neutral"
