"""Tests for the provider registry and default wiring."""
from __future__ import annotations

import pytest

from stock_analyzer.core.errors import ConfigurationError
from stock_analyzer.providers.base import FINANCIALS, NEWS, OVERVIEW, PRICE
from stock_analyzer.providers.defaults import BUILTIN_PROVIDERS, create_default_registry, resolve_pair
from stock_analyzer.providers.finnhub import FinnhubProvider
from stock_analyzer.providers.registry import ProviderRegistry
from stock_analyzer.providers.stooq import StooqProvider

from fakes.providers import FakeStockProvider


class TestProviderRegistry:
    def test_register_and_instantiate_once(self):
        registry = ProviderRegistry(api_keys={"finnhub": "k"}, timeout_s=3.0)
        registry.register("finnhub", FinnhubProvider, [PRICE, NEWS])
        registry.register("stooq", StooqProvider, [PRICE])

        assert registry.names == ["finnhub", "stooq"]
        assert registry.names_for(PRICE) == ["finnhub", "stooq"]
        assert registry.names_for(NEWS) == ["finnhub"]
        p = registry.get("finnhub")
        assert p is registry.get("finnhub")
        assert p._api_key == "k"
        assert p._timeout_s == 3.0
        assert registry.get("stooq")._breakers is registry.breakers

    def test_register_instance(self):
        registry = ProviderRegistry()
        fake = FakeStockProvider("fake")
        registry.register("fake", fake, [PRICE])
        assert registry.get("fake") is fake

    def test_unknown_capability(self):
        with pytest.raises(ValueError, match="Unknown capabilities"):
            ProviderRegistry().register("x", FakeStockProvider("x"), ["crypto"])

    def test_unknown_provider(self):
        with pytest.raises(KeyError):
            ProviderRegistry().get("nope")

    def test_build_pair(self):
        registry = ProviderRegistry()
        registry.register("a", FakeStockProvider("a"), [PRICE])
        registry.register("b", FakeStockProvider("b"), [PRICE])
        registry.register("n", FakeStockProvider("n"), [NEWS])

        coord = registry.build_pair(PRICE, "a", "b")
        assert coord.primary.provider_name == "a"
        assert coord.secondary.provider_name == "b"
        # A secondary that cannot serve the capability is dropped.
        assert registry.build_pair(PRICE, "a", "n").secondary is None
        assert registry.build_pair(PRICE, "a", "a").secondary is None

    def test_build_pair_unknown_primary(self):
        with pytest.raises(ConfigurationError, match="Unknown price provider"):
            ProviderRegistry().build_pair(PRICE, "bloomberg")


class TestDefaults:
    @pytest.fixture(autouse=True)
    def _env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("STOCK_ANALYZER_CONFIG", str(tmp_path / "absent.yaml"))
        for var in ("PRICE_PROVIDER", "FINANCIAL_PROVIDER", "NEWS_PROVIDER", "OVERVIEW_PROVIDER"):
            monkeypatch.delenv(var, raising=False)

    def test_builtins_registered(self):
        registry = create_default_registry()
        assert sorted(registry.names) == sorted(BUILTIN_PROVIDERS)
        assert registry.names_for(FINANCIALS) == ["fmp", "alpha_vantage"]
        assert registry.names_for(OVERVIEW) == ["fmp", "alpha_vantage"]

    def test_resolve_pair_same_as_primary_picks_another(self, monkeypatch):
        monkeypatch.setenv("PRICE_PROVIDER", "stooq")
        registry = create_default_registry()
        assert resolve_pair(registry, PRICE) == ("stooq", "finnhub")
