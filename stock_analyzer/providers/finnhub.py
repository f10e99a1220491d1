"""
Finnhub price and news provider.

  GET https://finnhub.io/api/v1/stock/candle?symbol=&resolution=D&from=&to=&token=
  GET https://finnhub.io/api/v1/company-news?symbol=&from=&to=&token=

Requires FINNHUB_API_KEY. Candle payloads signal an unknown symbol with
``{"s": "no_data"}`` rather than an HTTP status.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

from ..core.errors import InvalidTickerError, NotFoundError, ProviderResponseError
from . import http
from .base import NEWS, PRICE, NewsArticle, PriceBar, ProviderAdapter, TimeRange

FINNHUB_BASE_URL = "https://finnhub.io/api/v1"

_CANDLE_ARRAYS = ("t", "o", "h", "l", "c", "v")


def _iso_date(epoch_s: float) -> str:
    return datetime.fromtimestamp(epoch_s, tz=timezone.utc).date().isoformat()


class FinnhubProvider(ProviderAdapter):
    """Daily candles and company news from Finnhub."""

    name = "finnhub"
    api_key_name = "FINNHUB_API_KEY"

    def get_prices(self, ticker: str, range: TimeRange) -> List[PriceBar]:
        token = self._require_key()
        now = datetime.now(timezone.utc)
        start = datetime.combine(range.start_date(now.date()), datetime.min.time(), tzinfo=timezone.utc)
        params = {
            "symbol": ticker,
            "resolution": "D",
            "from": int(start.timestamp()),
            "to": int(now.timestamp()),
            "token": token,
        }

        data = self._guarded(
            PRICE,
            lambda: http.get_json(
                f"{FINNHUB_BASE_URL}/stock/candle",
                provider=self.name, label="Finnhub", params=params, timeout_s=self._timeout_s,
            ),
        )
        return self._parse_candles(ticker, data)

    def _parse_candles(self, ticker: str, data: Any) -> List[PriceBar]:
        if not isinstance(data, dict):
            raise ProviderResponseError("Unexpected Finnhub candle payload", provider=self.name)
        if data.get("s") == "no_data":
            raise InvalidTickerError(f"Invalid ticker: {ticker}", provider=self.name)
        if not all(data.get(k) for k in _CANDLE_ARRAYS):
            raise NotFoundError("No price data available", provider=self.name)

        bars = [
            PriceBar(
                ticker=ticker,
                date=_iso_date(ts),
                open=float(o),
                high=float(h),
                low=float(lo),
                close=float(c),
                volume=int(v),
            )
            for ts, o, h, lo, c, v in zip(*(data[k] for k in _CANDLE_ARRAYS))
        ]
        bars.reverse()
        return bars

    def get_news(self, ticker: str, window_days: int) -> List[NewsArticle]:
        token = self._require_key()
        now = datetime.now(timezone.utc)
        params = {
            "symbol": ticker,
            "from": (now - timedelta(days=window_days)).date().isoformat(),
            "to": now.date().isoformat(),
            "token": token,
        }

        data = self._guarded(
            NEWS,
            lambda: http.get_json(
                f"{FINNHUB_BASE_URL}/company-news",
                provider=self.name, label="Finnhub", params=params, timeout_s=self._timeout_s,
            ),
        )
        if not isinstance(data, list):
            raise ProviderResponseError("Invalid news data format", provider=self.name)
        return [self._parse_article(item) for item in data if isinstance(item, dict)]

    @staticmethod
    def _parse_article(item: Dict[str, Any]) -> NewsArticle:
        headline = item.get("headline") or ""
        published = item.get("datetime")
        published_at = (
            datetime.fromtimestamp(published, tz=timezone.utc).isoformat(timespec="seconds")
            if isinstance(published, (int, float))
            else ""
        )
        return NewsArticle(
            headline=headline,
            source=item.get("source") or "",
            url=item.get("url") or "",
            published_at=published_at,
            summary=item.get("summary") or headline,
        )
