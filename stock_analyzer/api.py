"""
Read-only REST API using FastAPI. No secrets, no auth.

Validates client input, calls MarketDataService and maps error kinds to
HTTP statuses. Handlers are plain ``def`` so FastAPI runs them on its
thread pool; retry sleeps block only that worker.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from . import __version__
from .core.errors import (
    CircuitOpenError,
    ForbiddenError,
    InvalidInputError,
    InvalidTickerError,
    NotFoundError,
    RateLimitedError,
    StockAnalyzerError,
    TransientError,
)
from .indicators import sma_overlays
from .providers.base import NewsWindow, Period, StatementType, TimeRange
from .scoring import quality_score, value_score
from .service import MarketDataService
from .transforms import (
    balance_metrics,
    cash_flow_metrics,
    compute_sentiment,
    deduplicate_news,
    income_metrics,
    transform_price_data,
)
from .validation import parse_choice, parse_ticker

logger = logging.getLogger(__name__)

# Most specific first.
_STATUS = (
    (InvalidTickerError, 404, "Ticker not found"),
    (InvalidInputError, 400, None),
    (NotFoundError, 404, "Data not available for this ticker"),
    (RateLimitedError, 429, "API rate limit exceeded. Please try again later."),
    (ForbiddenError, 503, "Data service unavailable. Check provider API keys."),
    (CircuitOpenError, 503, "Data service temporarily unavailable."),
    (TransientError, 502, "Upstream data provider failed."),
)


def status_for(exc: BaseException) -> tuple:
    """(HTTP status, client message) for an exception raised by the service."""
    for cls, status, message in _STATUS:
        if isinstance(exc, cls):
            return status, message or str(exc)
    return 500, "Failed to fetch data"


def create_app(service: Optional[MarketDataService] = None) -> FastAPI:
    app = FastAPI(title="Stock Analyzer API", version=__version__)
    app.state.service = service
    build_lock = threading.Lock()

    def _svc(request: Request) -> MarketDataService:
        state = request.app.state
        if state.service is None:
            with build_lock:
                if state.service is None:
                    state.service = MarketDataService.from_config()
        return state.service

    @app.exception_handler(StockAnalyzerError)
    def _handle_error(request: Request, exc: StockAnalyzerError) -> JSONResponse:
        status, message = status_for(exc)
        if status >= 500:
            logger.error("%s failed: %s (provider=%s)", request.url.path, exc, exc.provider)
        body: Dict[str, Any] = {"error": message, "kind": exc.kind}
        ticker = request.query_params.get("ticker")
        if ticker:
            body["ticker"] = ticker.strip().upper()
        if exc.provider:
            body["provider"] = exc.provider
        return JSONResponse(status_code=status, content=body)

    @app.exception_handler(Exception)
    def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("%s failed unexpectedly", request.url.path)
        status, message = status_for(exc)
        return JSONResponse(status_code=status, content={"error": message})

    @app.get("/health")
    def health(request: Request) -> Dict[str, Any]:
        svc = _svc(request)
        return {
            "status": "ok",
            "version": __version__,
            "providers": svc.provider_pairs(),
            "breakers": svc.breaker_states(),
        }

    @app.get("/prices")
    def prices(
        request: Request,
        ticker: str = Query(""),
        range: str = Query("1M"),
        sma: Optional[str] = Query(None, description="Comma-separated SMA periods, e.g. 20,50"),
    ) -> Dict[str, Any]:
        symbol = parse_ticker(ticker)
        time_range = parse_choice(TimeRange, range, "range")
        periods = _parse_periods(sma)

        result = _svc(request).get_prices(symbol, time_range)
        summary = transform_price_data(result.value)
        logger.info("[prices] %s/%s served by %s", symbol, time_range.value, result.provider)

        body: Dict[str, Any] = {
            "ticker": symbol,
            "range": time_range.value,
            "provider": result.provider,
            "data": [asdict(b) for b in summary.prices],
            "meta": {
                "currentPrice": summary.current,
                "dayChange": summary.day_change,
                "periodChange": summary.period_change,
            },
        }
        if periods:
            overlays = sma_overlays(result.value, periods)
            body["sma"] = {str(p): [asdict(pt) for pt in pts] for p, pts in overlays.items()}
        return body

    @app.get("/financials")
    def financials(
        request: Request,
        ticker: str = Query(""),
        statement: str = Query(""),
        period: str = Query("annual"),
    ) -> Dict[str, Any]:
        symbol = parse_ticker(ticker)
        kind = parse_choice(StatementType, statement, "statement type")
        per = parse_choice(Period, period, "period")

        svc = _svc(request)
        result = svc.get_statements(symbol, kind, per)
        statements = result.value
        if kind is StatementType.INCOME:
            metrics = income_metrics(statements)
        elif kind is StatementType.BALANCE:
            metrics = balance_metrics(statements)
        else:
            income = svc.get_statements(symbol, StatementType.INCOME, per).value
            metrics = cash_flow_metrics(statements, income)

        return {
            "ticker": symbol,
            "statement": kind.value,
            "period": per.value,
            "provider": result.provider,
            "data": [_statement_row(s) for s in statements],
            "metrics": metrics,
        }

    @app.get("/news")
    def news(
        request: Request,
        ticker: str = Query(""),
        window: str = Query("7d"),
    ) -> Dict[str, Any]:
        symbol = parse_ticker(ticker)
        win = parse_choice(NewsWindow, window, "time window")

        result = _svc(request).get_news(symbol, win)
        articles = [
            dict(asdict(a), sentiment=compute_sentiment(f"{a.headline} {a.summary}"))
            for a in deduplicate_news(result.value)
        ]
        return {
            "ticker": symbol,
            "window": win.value,
            "provider": result.provider,
            "count": len(articles),
            "articles": articles,
        }

    @app.get("/overview")
    def overview(request: Request, ticker: str = Query("")) -> Dict[str, Any]:
        symbol = parse_ticker(ticker)
        result = _svc(request).get_overview(symbol)
        quality = quality_score(result.value)
        value = value_score(result.value)
        return {
            "ticker": symbol,
            "provider": result.provider,
            "data": asdict(result.value),
            "qualityScore": asdict(quality) if quality else None,
            "valueScore": asdict(value) if value else None,
        }

    return app


def _parse_periods(raw: Optional[str]) -> List[int]:
    if not raw:
        return []
    try:
        periods = [int(p) for p in raw.split(",") if p.strip()]
    except ValueError:
        raise InvalidInputError("Invalid sma periods. Use comma-separated integers") from None
    if any(p < 1 for p in periods):
        raise InvalidInputError("SMA periods must be positive")
    return periods


def _statement_row(stmt) -> Dict[str, Any]:
    row: Dict[str, Any] = {
        "ticker": stmt.ticker,
        "fiscalDateEnding": stmt.fiscal_date_ending,
        "reportedCurrency": stmt.reported_currency,
    }
    row.update(stmt.values)
    return row


app = create_app()
