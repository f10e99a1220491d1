"""
Top-level public API surface.
Canonical entrypoint: stock_analyzer.service.MarketDataService; the HTTP layer lives in
stock_analyzer.api and is not imported here. Portfolio arithmetic and chart
normalization are plain library functions with no HTTP route.
"""

from __future__ import annotations

from . import core, portfolio, providers, transforms
from ._version import __version__
from .portfolio import Holding, PnL, allocation, holding_pnl, portfolio_totals
from .transforms import normalize_prices

# Do not add exports without updating __all__.
__all__ = [
    "__version__",
    "core",
    "portfolio",
    "providers",
    "transforms",
    "Holding",
    "PnL",
    "allocation",
    "holding_pnl",
    "normalize_prices",
    "portfolio_totals",
]
