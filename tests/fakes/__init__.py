"""Fake stock data providers for coordinator, service and API tests (no live network)."""

from .providers import (
    FakeProviderAlwaysFail,
    FakeProviderFailNThenSucceed,
    FakeStockProvider,
)

__all__ = [
    "FakeProviderAlwaysFail",
    "FakeProviderFailNThenSucceed",
    "FakeStockProvider",
]
