"""Tests for moving-average overlays."""
from __future__ import annotations

import pytest

from stock_analyzer.indicators import closes_series, sma, sma_overlays

from fakes.providers import make_bars


def _chronological(n: int):
    return list(reversed(make_bars("AAPL", n)))


class TestSMA:
    def test_point_count_and_values(self):
        bars = _chronological(5)  # closes 100..104
        points = sma(bars, 3)
        assert len(points) == 3
        assert [p.value for p in points] == pytest.approx([101.0, 102.0, 103.0])
        assert points[0].time == bars[2].date
        assert points[-1].time == bars[-1].date

    def test_fewer_bars_than_period(self):
        assert sma(_chronological(4), 5) == []

    def test_period_equal_to_length(self):
        points = sma(_chronological(4), 4)
        assert len(points) == 1
        assert points[0].value == pytest.approx(101.5)

    def test_invalid_period(self):
        assert sma(_chronological(4), 0) == []

    def test_closes_series(self):
        s = closes_series(_chronological(3))
        assert list(s) == [100.0, 101.0, 102.0]


class TestOverlays:
    def test_default_periods_accept_newest_first(self):
        bars = make_bars("AAPL", 60)
        overlays = sma_overlays(bars)
        assert set(overlays) == {20, 50, 200}
        assert len(overlays[20]) == 41
        assert len(overlays[50]) == 11
        assert overlays[200] == []
        assert overlays[20][-1].time == bars[0].date
