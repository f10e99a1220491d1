"""
Resilience primitives: retry with exponential backoff and a per-provider
circuit breaker.

Neither primitive inspects or wraps errors: they either return the
operation's value or re-raise the exact exception that caused the failure.
Deciding what an error *means* is the fallback coordinator's job.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple, TypeVar

from ..core.errors import CircuitOpenError

logger = logging.getLogger(__name__)

T = TypeVar("T")

CLOSED = "CLOSED"
OPEN = "OPEN"
HALF_OPEN = "HALF_OPEN"


def retry(
    operation: Callable[[], T],
    max_attempts: int = 3,
    base_delay_s: float = 1.0,
    should_retry: Optional[Callable[[BaseException], bool]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run ``operation`` up to ``max_attempts`` times.

    After failed attempt k the call sleeps ``base_delay_s * 2 ** (k - 1)``
    (1x, 2x, 4x, ... the base). The last error is re-raised unchanged.
    ``should_retry`` can stop early on errors another attempt cannot fix.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    for attempt in range(1, max_attempts + 1):
        try:
            return operation()
        except Exception as exc:
            if attempt == max_attempts:
                raise
            if should_retry is not None and not should_retry(exc):
                raise
            delay = base_delay_s * (2 ** (attempt - 1))
            logger.debug(
                "Attempt %d/%d failed (%s: %s), retrying in %.2fs",
                attempt, max_attempts, type(exc).__name__, exc, delay,
            )
            sleep(delay)

    raise AssertionError("unreachable")


@dataclass
class RetryPolicy:
    """Configured form of :func:`retry`, shared by every call an adapter makes."""

    max_attempts: int = 3
    base_delay_s: float = 1.0
    should_retry: Optional[Callable[[BaseException], bool]] = None
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def call(self, operation: Callable[[], T]) -> T:
        return retry(
            operation,
            max_attempts=self.max_attempts,
            base_delay_s=self.base_delay_s,
            should_retry=self.should_retry,
            sleep=self.sleep,
        )


@dataclass
class CircuitBreaker:
    """
    Circuit breaker preventing repeated calls to a failing provider.

    States:
    - CLOSED: failures below threshold, requests pass through.
    - OPEN: failures >= threshold and the reset window has not elapsed;
      calls fail with CircuitOpenError without running the operation.
    - HALF_OPEN: failures >= threshold but the reset window has elapsed.
      The next call resets the failure count to zero and goes through.

    After that reset a single failure does not reopen the breaker; it takes
    ``failure_threshold`` fresh failures.
    """

    name: str
    failure_threshold: int = 5
    reset_time_s: float = 60.0
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    _failures: int = field(default=0, init=False, repr=False)
    _last_failure_time: Optional[float] = field(default=None, init=False, repr=False)
    _last_error: Optional[str] = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def failures(self) -> int:
        return self._failures

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def state(self) -> str:
        with self._lock:
            if self._failures < self.failure_threshold or self._last_failure_time is None:
                return CLOSED
            if self.clock() - self._last_failure_time > self.reset_time_s:
                return HALF_OPEN
            return OPEN

    @property
    def is_open(self) -> bool:
        return self.state == OPEN

    def _admit(self) -> None:
        with self._lock:
            if self._failures < self.failure_threshold or self._last_failure_time is None:
                return
            if self.clock() - self._last_failure_time > self.reset_time_s:
                logger.info("Circuit breaker %s reset after %.0fs cooldown", self.name, self.reset_time_s)
                self._failures = 0
                self._last_failure_time = None
                return
        raise CircuitOpenError(
            f"Circuit breaker open for {self.name} - too many failures ({self._last_error})",
            provider=self.name.split(":", 1)[0],
        )

    def record_success(self) -> None:
        with self._lock:
            self._failures = 0
            self._last_error = None

    def record_failure(self, error: str) -> None:
        with self._lock:
            self._failures += 1
            self._last_failure_time = self.clock()
            self._last_error = error[:500]
            failures = self._failures
        if failures == self.failure_threshold:
            logger.warning(
                "Circuit breaker OPEN for %s after %d failures: %s",
                self.name, failures, error[:200],
            )

    def execute(self, operation: Callable[[], T]) -> T:
        self._admit()
        try:
            result = operation()
        except Exception as exc:
            self.record_failure(f"{type(exc).__name__}: {exc}")
            raise
        self.record_success()
        return result

    def reset(self) -> None:
        with self._lock:
            self._failures = 0
            self._last_failure_time = None
            self._last_error = None


class CircuitBreakerRegistry:
    """One breaker per (provider, capability), created on first use."""

    def __init__(
        self,
        failure_threshold: int = 5,
        reset_time_s: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._failure_threshold = failure_threshold
        self._reset_time_s = reset_time_s
        self._clock = clock
        self._breakers: Dict[Tuple[str, str], CircuitBreaker] = {}
        self._lock = threading.Lock()

    def get(self, provider: str, capability: str) -> CircuitBreaker:
        key = (provider, capability)
        with self._lock:
            breaker = self._breakers.get(key)
            if breaker is None:
                breaker = CircuitBreaker(
                    name=f"{provider}:{capability}",
                    failure_threshold=self._failure_threshold,
                    reset_time_s=self._reset_time_s,
                    clock=self._clock,
                )
                self._breakers[key] = breaker
            return breaker

    def states(self) -> Dict[str, str]:
        """Return circuit breaker state for each (provider, capability)."""
        with self._lock:
            breakers = list(self._breakers.values())
        return {cb.name: cb.state for cb in breakers}

    def reset_all(self) -> None:
        with self._lock:
            breakers = list(self._breakers.values())
        for cb in breakers:
            cb.reset()
