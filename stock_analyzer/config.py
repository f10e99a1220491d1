"""
Load config from config.yaml with optional env overrides.
Single source of truth for provider selection, API keys, resilience knobs and cache TTLs.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Optional

import yaml

# Defaults if no YAML or env
_DEFAULTS = {
    "providers": {
        "price": "finnhub",
        "financials": "fmp",
        "news": "gdelt",
        "overview": "fmp",
        "secondary": {
            "price": "stooq",
            "financials": "alpha_vantage",
            "news": "finnhub",
            "overview": "alpha_vantage",
        },
    },
    "api_keys": {
        "finnhub": None,
        "fmp": None,
        "alpha_vantage": None,
    },
    "retry": {"max_attempts": 3, "base_delay_s": 1.0},
    "circuit_breaker": {"failure_threshold": 5, "reset_time_s": 60.0},
    "cache": {
        "ttl_s": {
            "price": 120,
            "news": 600,
            "financials": 86_400,
            "overview": 21_600,
        },
    },
    "http": {"timeout_s": 15.0},
}

_PROVIDER_ENV = {
    "price": "PRICE_PROVIDER",
    "financials": "FINANCIAL_PROVIDER",
    "news": "NEWS_PROVIDER",
    "overview": "OVERVIEW_PROVIDER",
}

_API_KEY_ENV = {
    "finnhub": "FINNHUB_API_KEY",
    "fmp": "FMP_API_KEY",
    "alpha_vantage": "ALPHA_VANTAGE_API_KEY",
}


def _config_yaml_path() -> Path:
    """Config.yaml lives at repo root (parent of package dir) unless STOCK_ANALYZER_CONFIG points elsewhere."""
    override = os.environ.get("STOCK_ANALYZER_CONFIG")
    if override:
        return Path(override)
    return Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    config_path = _config_yaml_path()
    if not config_path.exists():
        return {}
    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _env_overrides() -> dict:
    overrides: dict = {}
    for capability, var in _PROVIDER_ENV.items():
        name = os.environ.get(var)
        if name:
            overrides.setdefault("providers", {})[capability] = name.strip().lower()
    for provider, var in _API_KEY_ENV.items():
        key = os.environ.get(var)
        if key:
            overrides.setdefault("api_keys", {})[provider] = key
    timeout = os.environ.get("STOCK_HTTP_TIMEOUT_S")
    if timeout:
        overrides.setdefault("http", {})["timeout_s"] = float(timeout)
    return overrides


def get_config() -> dict:
    """Return merged config: defaults <- config.yaml <- env."""
    merged = _deep_merge(_DEFAULTS, _load_yaml())
    merged = _deep_merge(merged, _env_overrides())
    return merged


# Convenience accessors
def primary_provider(capability: str) -> str:
    return str(get_config()["providers"][capability])


def secondary_provider(capability: str) -> str:
    return str(get_config()["providers"]["secondary"][capability])


def api_key(provider: str) -> Optional[str]:
    return get_config()["api_keys"].get(provider) or None


def retry_max_attempts() -> int:
    return int(get_config()["retry"]["max_attempts"])


def retry_base_delay_s() -> float:
    return float(get_config()["retry"]["base_delay_s"])


def breaker_failure_threshold() -> int:
    return int(get_config()["circuit_breaker"]["failure_threshold"])


def breaker_reset_time_s() -> float:
    return float(get_config()["circuit_breaker"]["reset_time_s"])


def cache_ttls() -> Dict[str, float]:
    return {k: float(v) for k, v in get_config()["cache"]["ttl_s"].items()}


def http_timeout_s() -> float:
    return float(get_config()["http"]["timeout_s"])
