"""
Stooq end-of-day price provider.

Uses the public CSV download endpoint (no authentication required):
  GET https://stooq.com/q/d/l/?s={ticker}.US&d1=YYYYMMDD&d2=YYYYMMDD&i=d

EOD data only, US listings only. An unknown symbol comes back as HTTP 200
with a ``No data`` body or a header-only CSV.
"""
from __future__ import annotations

import io
from datetime import datetime, timezone
from typing import List

import pandas as pd

from ..core.errors import InvalidTickerError, ProviderResponseError
from . import http
from .base import PRICE, PriceBar, ProviderAdapter, TimeRange

STOOQ_BASE_URL = "https://stooq.com/q/d/l/"

_COLUMNS = ["Date", "Open", "High", "Low", "Close"]


def stooq_symbol(ticker: str) -> str:
    return f"{ticker.upper()}.US"


class StooqProvider(ProviderAdapter):
    """Daily bars from Stooq's CSV export."""

    name = "stooq"

    def get_prices(self, ticker: str, range: TimeRange) -> List[PriceBar]:
        today = datetime.now(timezone.utc).date()
        params = {
            "s": stooq_symbol(ticker),
            "d1": range.start_date(today).strftime("%Y%m%d"),
            "d2": today.strftime("%Y%m%d"),
            "i": "d",
        }

        csv_text = self._guarded(
            PRICE,
            lambda: http.get_text(
                STOOQ_BASE_URL, provider=self.name, label="Stooq", params=params, timeout_s=self._timeout_s,
            ),
        )
        bars = self.parse_csv(csv_text, ticker)
        if not bars:
            raise InvalidTickerError(f"Invalid ticker: {ticker}", provider=self.name)
        return bars

    def parse_csv(self, csv_text: str, ticker: str) -> List[PriceBar]:
        """Parse Stooq's ``Date,Open,High,Low,Close,Volume`` CSV into bars, newest first."""
        text = (csv_text or "").strip()
        if not text or text.lower().startswith("no data"):
            return []

        try:
            df = pd.read_csv(io.StringIO(text))
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
            raise ProviderResponseError(f"Unreadable Stooq CSV: {exc}", provider=self.name) from exc

        missing = [c for c in _COLUMNS if c not in df.columns]
        if missing:
            raise ProviderResponseError(f"Stooq CSV missing columns {missing}", provider=self.name)

        for col in _COLUMNS[1:]:
            df[col] = pd.to_numeric(df[col], errors="coerce")
        df = df.dropna(subset=_COLUMNS)
        if "Volume" in df.columns:
            volume = pd.to_numeric(df["Volume"], errors="coerce").fillna(0).astype("int64")
        else:
            volume = pd.Series(0, index=df.index, dtype="int64")

        bars = [
            PriceBar(
                ticker=ticker,
                date=str(row.Date),
                open=float(row.Open),
                high=float(row.High),
                low=float(row.Low),
                close=float(row.Close),
                volume=int(vol),
            )
            for row, vol in zip(df.itertuples(index=False), volume)
        ]
        # Stooq returns oldest first.
        bars.reverse()
        return bars
