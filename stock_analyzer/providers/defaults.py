"""
Default provider registry configuration.

Registers built-in adapters and resolves the (primary, secondary) pair per
capability from config.yaml / environment. To add a provider, register it
here with the capabilities it serves.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from .. import config
from .alpha_vantage import AlphaVantageProvider
from .base import CAPABILITIES, FINANCIALS, NEWS, OVERVIEW, PRICE, is_retryable
from .chain import FallbackCoordinator
from .finnhub import FinnhubProvider
from .fmp import FMPProvider
from .gdelt import GdeltProvider
from .registry import ProviderRegistry
from .resilience import CircuitBreakerRegistry, RetryPolicy
from .stooq import StooqProvider

logger = logging.getLogger(__name__)

BUILTIN_PROVIDERS = {
    "finnhub": (FinnhubProvider, (PRICE, NEWS)),
    "stooq": (StooqProvider, (PRICE,)),
    "fmp": (FMPProvider, (FINANCIALS, OVERVIEW)),
    "alpha_vantage": (AlphaVantageProvider, (PRICE, FINANCIALS, OVERVIEW)),
    "gdelt": (GdeltProvider, (NEWS,)),
}


def create_default_registry(
    breakers: Optional[CircuitBreakerRegistry] = None,
    retry_policy: Optional[RetryPolicy] = None,
) -> ProviderRegistry:
    """Create a registry with all built-in providers, configured from config.yaml/env."""
    cfg = config.get_config()
    if breakers is None:
        breakers = CircuitBreakerRegistry(
            failure_threshold=config.breaker_failure_threshold(),
            reset_time_s=config.breaker_reset_time_s(),
        )
    if retry_policy is None:
        retry_policy = RetryPolicy(
            max_attempts=config.retry_max_attempts(),
            base_delay_s=config.retry_base_delay_s(),
            should_retry=is_retryable,
        )
    registry = ProviderRegistry(
        breakers=breakers,
        retry_policy=retry_policy,
        api_keys=cfg.get("api_keys", {}),
        timeout_s=config.http_timeout_s(),
    )
    for name, (cls, caps) in BUILTIN_PROVIDERS.items():
        registry.register(name, cls, caps)
    return registry


def resolve_pair(registry: ProviderRegistry, capability: str) -> Tuple[str, Optional[str]]:
    """
    Primary comes from config; the secondary is the configured one unless it
    equals the primary, in which case any other provider of the capability.
    """
    primary = config.primary_provider(capability)
    secondary: Optional[str] = config.secondary_provider(capability)
    if secondary == primary:
        others = [n for n in registry.names_for(capability) if n != primary]
        secondary = others[0] if others else None
    return primary, secondary


def create_coordinators(registry: Optional[ProviderRegistry] = None) -> Dict[str, FallbackCoordinator]:
    """Build one fallback coordinator per capability."""
    reg = registry or create_default_registry()
    out: Dict[str, FallbackCoordinator] = {}
    for capability in CAPABILITIES:
        primary, secondary = resolve_pair(reg, capability)
        out[capability] = reg.build_pair(capability, primary, secondary)
        logger.debug("%s providers: %s -> %s", capability, primary, secondary)
    return out
