"""
Portfolio arithmetic for holdings priced with the latest close.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence


@dataclass(frozen=True)
class Holding:
    ticker: str
    quantity: float
    avg_cost: float
    current_price: float

    @property
    def cost_basis(self) -> float:
        return self.quantity * self.avg_cost

    @property
    def current_value(self) -> float:
        return self.quantity * self.current_price


@dataclass(frozen=True)
class PnL:
    cost_basis: float
    current_value: float
    gain_loss: float
    gain_loss_percent: float


def _pnl(cost: float, value: float) -> PnL:
    gain = value - cost
    return PnL(
        cost_basis=cost,
        current_value=value,
        gain_loss=gain,
        gain_loss_percent=gain / cost * 100 if cost > 0 else 0.0,
    )


def holding_pnl(holding: Holding) -> PnL:
    return _pnl(holding.cost_basis, holding.current_value)


def portfolio_totals(holdings: Sequence[Holding]) -> PnL:
    return _pnl(
        sum(h.cost_basis for h in holdings),
        sum(h.current_value for h in holdings),
    )


def allocation(holdings: Sequence[Holding]) -> List[float]:
    """Each holding's share of total value, in percent."""
    total = sum(h.current_value for h in holdings)
    if total == 0:
        return [0.0 for _ in holdings]
    return [h.current_value / total * 100 for h in holdings]
