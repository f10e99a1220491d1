"""
Composite 0-10 scores from an Overview.

Each metric is linearly interpolated between a "worst" value (scores 0) and
a "best" value (scores 10), clipped to [0, 10], then combined as a weighted
average over the metrics that are present. Too few present metrics means no
score at all.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from .providers.base import Overview

FINANCIAL_SECTORS = ("Financial Services", "Banking", "Insurance")

MIN_QUALITY_METRICS = 3
MIN_VALUE_METRICS = 2


@dataclass(frozen=True)
class MetricSpec:
    name: str
    weight: float
    best: float
    worst: float


@dataclass(frozen=True)
class CompositeScore:
    score: float
    grade: str
    breakdown: Dict[str, Optional[float]]


# Quality: profitability, growth and balance-sheet strength.
QUALITY_SPECS = (
    MetricSpec("roe", 25, best=15, worst=5),
    MetricSpec("profitMargin", 20, best=20, worst=5),
    MetricSpec("operatingMargin", 15, best=15, worst=3),
    MetricSpec("earningsGrowth", 15, best=15, worst=0),
    MetricSpec("debtToEquity", 15, best=0.3, worst=2.0),
    MetricSpec("revenueGrowth", 5, best=10, worst=0),
    MetricSpec("priceToBook", 5, best=1.5, worst=5.0),
)

VALUE_SPECS = (
    MetricSpec("pe", 50, best=15, worst=40),
    MetricSpec("peg", 30, best=1.0, worst=3.0),
    MetricSpec("pb", 20, best=1.5, worst=5.0),
)


def sub_score(value: float, best: float, worst: float) -> float:
    if best == worst:
        return 5.0
    raw = (value - worst) / (best - worst) * 10
    return float(np.clip(raw, 0.0, 10.0))


def round_half_up(value: float) -> float:
    """One decimal place, halves rounded up (6.25 -> 6.3)."""
    return math.floor(value * 10 + 0.5) / 10


def to_grade(score: float) -> str:
    if score >= 8:
        return "A"
    if score >= 6:
        return "B"
    if score >= 4:
        return "C"
    return "D"


def _composite(
    specs: Tuple[MetricSpec, ...],
    values: Dict[str, Optional[float]],
    min_present: int,
) -> Optional[CompositeScore]:
    breakdown: Dict[str, Optional[float]] = {}
    scores: List[float] = []
    weights: List[float] = []
    for spec in specs:
        value = values.get(spec.name)
        if value is None:
            breakdown[spec.name] = None
            continue
        s = sub_score(value, spec.best, spec.worst)
        breakdown[spec.name] = s
        scores.append(s)
        weights.append(spec.weight)

    if len(scores) < min_present:
        return None

    score = round_half_up(float(np.average(scores, weights=weights)))
    return CompositeScore(score=score, grade=to_grade(score), breakdown=breakdown)


def quality_score(overview: Overview) -> Optional[CompositeScore]:
    """Business quality; debt/equity is ignored for banks and insurers."""
    is_financial = overview.sector in FINANCIAL_SECTORS
    values = {
        "roe": overview.return_on_equity,
        "profitMargin": overview.profit_margin,
        "operatingMargin": overview.operating_margin,
        "earningsGrowth": overview.quarterly_earnings_growth,
        "debtToEquity": None if is_financial else overview.debt_to_equity,
        "revenueGrowth": overview.quarterly_revenue_growth,
        "priceToBook": overview.price_to_book,
    }
    return _composite(QUALITY_SPECS, values, MIN_QUALITY_METRICS)


def value_score(overview: Overview) -> Optional[CompositeScore]:
    """Cheapness; a non-positive P/E carries no valuation meaning and counts as missing."""
    pe = overview.pe_ratio if overview.pe_ratio is not None and overview.pe_ratio > 0 else None
    values = {
        "pe": pe,
        "peg": overview.peg_ratio,
        "pb": overview.price_to_book,
    }
    return _composite(VALUE_SPECS, values, MIN_VALUE_METRICS)
