"""Tests for config loading: defaults <- config.yaml <- environment."""
from __future__ import annotations

import pytest

from stock_analyzer import config

_ENV_VARS = (
    "PRICE_PROVIDER",
    "FINANCIAL_PROVIDER",
    "NEWS_PROVIDER",
    "OVERVIEW_PROVIDER",
    "FINNHUB_API_KEY",
    "FMP_API_KEY",
    "ALPHA_VANTAGE_API_KEY",
    "STOCK_HTTP_TIMEOUT_S",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("STOCK_ANALYZER_CONFIG", str(tmp_path / "absent.yaml"))


def test_defaults_without_yaml():
    assert config.primary_provider("price") == "finnhub"
    assert config.secondary_provider("price") == "stooq"
    assert config.primary_provider("news") == "gdelt"
    assert config.api_key("finnhub") is None
    assert config.retry_max_attempts() == 3
    assert config.retry_base_delay_s() == 1.0
    assert config.breaker_failure_threshold() == 5
    assert config.breaker_reset_time_s() == 60.0
    assert config.cache_ttls() == {"price": 120.0, "news": 600.0, "financials": 86_400.0, "overview": 21_600.0}
    assert config.http_timeout_s() == 15.0


def test_yaml_overrides_defaults(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text(
        "providers:\n"
        "  price: alpha_vantage\n"
        "retry:\n"
        "  max_attempts: 5\n"
        "cache:\n"
        "  ttl_s:\n"
        "    price: 30\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("STOCK_ANALYZER_CONFIG", str(path))

    assert config.primary_provider("price") == "alpha_vantage"
    # Nested keys not in the file keep their defaults.
    assert config.primary_provider("financials") == "fmp"
    assert config.secondary_provider("price") == "stooq"
    assert config.retry_max_attempts() == 5
    assert config.retry_base_delay_s() == 1.0
    assert config.cache_ttls()["price"] == 30.0
    assert config.cache_ttls()["news"] == 600.0


def test_env_overrides_yaml(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("providers:\n  price: alpha_vantage\n", encoding="utf-8")
    monkeypatch.setenv("STOCK_ANALYZER_CONFIG", str(path))
    monkeypatch.setenv("PRICE_PROVIDER", " Stooq ")
    monkeypatch.setenv("FINANCIAL_PROVIDER", "alpha_vantage")
    monkeypatch.setenv("FMP_API_KEY", "secret")
    monkeypatch.setenv("STOCK_HTTP_TIMEOUT_S", "4.5")

    assert config.primary_provider("price") == "stooq"
    assert config.primary_provider("financials") == "alpha_vantage"
    assert config.api_key("fmp") == "secret"
    assert config.http_timeout_s() == 4.5


def test_empty_yaml_is_ignored(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    monkeypatch.setenv("STOCK_ANALYZER_CONFIG", str(path))
    assert config.primary_provider("overview") == "fmp"


def test_deep_merge_does_not_mutate():
    base = {"a": {"b": 1, "c": 2}}
    out = config._deep_merge(base, {"a": {"b": 3}})
    assert out == {"a": {"b": 3, "c": 2}}
    assert base == {"a": {"b": 1, "c": 2}}
