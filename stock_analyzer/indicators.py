"""
Technical indicators over daily bars.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import pandas as pd

from .providers.base import PriceBar


@dataclass(frozen=True)
class IndicatorPoint:
    time: str
    value: float


def closes_series(bars: Sequence[PriceBar]) -> pd.Series:
    """Closing prices indexed by date, in the order given."""
    return pd.Series([b.close for b in bars], index=[b.date for b in bars], dtype="float64")


def sma(bars: Sequence[PriceBar], period: int) -> List[IndicatorPoint]:
    """
    Simple moving average of closes. ``bars`` must be chronological (oldest first).

    Returns one point per full window, stamped with the window's last date:
    ``len(bars) - period + 1`` points, or none when there are fewer bars than
    ``period``.
    """
    if period < 1 or len(bars) < period:
        return []
    avg = closes_series(bars).rolling(window=period).mean().iloc[period - 1:]
    return [IndicatorPoint(time=str(t), value=float(v)) for t, v in avg.items()]


def sma_overlays(bars: Sequence[PriceBar], periods: Sequence[int] = (20, 50, 200)) -> dict:
    """SMA lines for the chart overlay periods; bars may be newest first."""
    chronological = sorted(bars, key=lambda b: b.date)
    return {p: sma(chronological, p) for p in periods}
