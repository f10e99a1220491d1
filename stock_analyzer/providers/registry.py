"""
Provider registry: central catalog of available adapters.

Adapters register under a name with the capabilities they serve. The
registry instantiates each one once, injecting the shared breaker registry,
retry policy, timeout and that provider's API key, and builds the
(primary, secondary) coordinator for a capability on request.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Type, Union

from ..core.errors import ConfigurationError
from .base import CAPABILITIES, ProviderAdapter, is_retryable
from .chain import FallbackCoordinator
from .resilience import CircuitBreakerRegistry, RetryPolicy

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """
    Registry mapping provider names to adapter classes/instances.

    Usage:
        registry = ProviderRegistry(api_keys={"finnhub": "..."})
        registry.register("finnhub", FinnhubProvider, ["price", "news"])
        registry.register("stooq", StooqProvider, ["price"])

        coordinator = registry.build_pair("price", "finnhub", "stooq")
    """

    def __init__(
        self,
        *,
        breakers: Optional[CircuitBreakerRegistry] = None,
        retry_policy: Optional[RetryPolicy] = None,
        api_keys: Optional[Mapping[str, Optional[str]]] = None,
        timeout_s: float = 15.0,
    ) -> None:
        self.breakers = breakers or CircuitBreakerRegistry()
        self.retry_policy = retry_policy or RetryPolicy(should_retry=is_retryable)
        self._api_keys = dict(api_keys or {})
        self._timeout_s = timeout_s
        self._factories: Dict[str, Tuple[Union[Type[ProviderAdapter], Any], Tuple[str, ...]]] = {}
        self._instances: Dict[str, Any] = {}

    def register(
        self,
        name: str,
        factory: Union[Type[ProviderAdapter], Any],
        capabilities: Iterable[str],
    ) -> None:
        """Register an adapter class (or a ready instance) by name."""
        caps = tuple(capabilities)
        unknown = [c for c in caps if c not in CAPABILITIES]
        if unknown:
            raise ValueError(f"Unknown capabilities for {name}: {unknown}")
        self._factories[name] = (factory, caps)
        self._instances.pop(name, None)
        logger.debug("Registered provider %s for %s", name, ", ".join(caps))

    def get(self, name: str) -> Any:
        """Get or instantiate a provider by name."""
        if name not in self._instances:
            entry = self._factories.get(name)
            if entry is None:
                raise KeyError(f"Unknown provider '{name}'. Available: {list(self._factories)}")
            factory, _ = entry
            if isinstance(factory, type):
                self._instances[name] = factory(
                    api_key=self._api_keys.get(name),
                    retry_policy=self.retry_policy,
                    breakers=self.breakers,
                    timeout_s=self._timeout_s,
                )
            else:
                self._instances[name] = factory
        return self._instances[name]

    @property
    def names(self) -> List[str]:
        return list(self._factories)

    def names_for(self, capability: str) -> List[str]:
        return [n for n, (_, caps) in self._factories.items() if capability in caps]

    def supports(self, name: str, capability: str) -> bool:
        entry = self._factories.get(name)
        return entry is not None and capability in entry[1]

    def build_pair(
        self, capability: str, primary: str, secondary: Optional[str] = None
    ) -> FallbackCoordinator:
        """Coordinator for ``capability``; the secondary is dropped when it cannot serve it."""
        if not self.supports(primary, capability):
            raise ConfigurationError(
                f"Unknown {capability} provider: {primary}. Available: {self.names_for(capability)}"
            )
        second = None
        if secondary and secondary != primary:
            if self.supports(secondary, capability):
                second = self.get(secondary)
            else:
                logger.warning("Ignoring secondary %s: it does not serve %s", secondary, capability)
        return FallbackCoordinator(self.get(primary), second)
