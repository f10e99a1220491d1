"""
GDELT news provider.

Uses the public DOC 2.0 API (no authentication required):
  GET https://api.gdeltproject.org/api/v2/doc/doc?query=&mode=artlist&format=json&sort=datedesc

GDELT searches free text, so tickers are mapped to company names where
known. When throttled it answers HTTP 200 with a plain-text notice instead
of JSON.
"""
from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from ..core.errors import RateLimitedError
from . import http
from .base import NEWS, NewsArticle, ProviderAdapter

GDELT_DOC_URL = "https://api.gdeltproject.org/api/v2/doc/doc"
MAX_RECORDS = 250
MAX_ARTICLES = 50

COMPANY_NAMES = {
    "AAPL": "Apple Inc",
    "GOOGL": "Google Alphabet",
    "GOOG": "Google Alphabet",
    "MSFT": "Microsoft",
    "AMZN": "Amazon",
    "TSLA": "Tesla",
    "META": "Meta Facebook",
    "NVDA": "NVIDIA",
    "NFLX": "Netflix",
    "BRK.B": "Berkshire Hathaway",
    "BRK.A": "Berkshire Hathaway",
}


def company_query(ticker: str) -> str:
    return COMPANY_NAMES.get(ticker.upper(), ticker)


def _gdelt_ts(dt: datetime) -> str:
    return dt.strftime("%Y%m%d%H%M%S")


def parse_seendate(value: Optional[str]) -> str:
    """``20260214T153000Z`` -> ISO 8601 UTC; unparseable values become an empty string."""
    if not value or len(value) < 8:
        return ""
    for fmt in ("%Y%m%dT%H%M%SZ", "%Y%m%d%H%M%S", "%Y%m%d"):
        try:
            parsed = datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
        return parsed.isoformat(timespec="seconds")
    return ""


class GdeltProvider(ProviderAdapter):
    """Company news from the GDELT DOC API."""

    name = "gdelt"

    def get_news(self, ticker: str, window_days: int) -> List[NewsArticle]:
        now = datetime.now(timezone.utc)
        params = {
            "query": company_query(ticker),
            "mode": "artlist",
            "maxrecords": MAX_RECORDS,
            "format": "json",
            "sort": "datedesc",
            "startdatetime": _gdelt_ts(now - timedelta(days=window_days)),
            "enddatetime": _gdelt_ts(now),
        }

        body = self._guarded(
            NEWS,
            lambda: http.get_text(
                GDELT_DOC_URL, provider=self.name, label="GDELT", params=params, timeout_s=self._timeout_s,
            ),
        )
        try:
            data = json.loads(body) if body.strip() else {}
        except ValueError:
            raise RateLimitedError(f"GDELT rate limit: {body.strip()[:120]}", provider=self.name) from None

        articles = data.get("articles") if isinstance(data, dict) else None
        if not isinstance(articles, list):
            return []

        usable = [a for a in articles if isinstance(a, dict) and a.get("url") and a.get("title")]
        return [self._parse_article(a) for a in usable[:MAX_ARTICLES]]

    @staticmethod
    def _parse_article(item: Dict[str, Any]) -> NewsArticle:
        url = item["url"]
        return NewsArticle(
            headline=item["title"],
            source=item.get("domain") or urlparse(url).hostname or "",
            url=url,
            published_at=parse_seendate(item.get("seendate")),
            # GDELT has no summaries.
            summary=item["title"],
        )
