"""
Tests for retry with exponential backoff and the per-provider circuit breaker.

Sleeps and clocks are injected; nothing here waits on wall time.
"""
from __future__ import annotations

import threading

import pytest

from stock_analyzer.core.errors import (
    CircuitOpenError,
    ForbiddenError,
    InvalidTickerError,
    TransientError,
)
from stock_analyzer.providers.base import is_retryable
from stock_analyzer.providers.resilience import (
    CLOSED,
    HALF_OPEN,
    OPEN,
    CircuitBreaker,
    CircuitBreakerRegistry,
    RetryPolicy,
    retry,
)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Flaky:
    """Callable that raises the given errors in order, then returns ``value``."""

    def __init__(self, errors, value="ok"):
        self._errors = list(errors)
        self._value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self._errors:
            raise self._errors.pop(0)
        return self._value


# ---------------------------------------------------------------------------
# Retry
# ---------------------------------------------------------------------------


class TestRetry:
    def test_success_first_try_does_not_sleep(self):
        sleeps = []
        op = Flaky([])
        assert retry(op, max_attempts=3, base_delay_s=1.0, sleep=sleeps.append) == "ok"
        assert op.calls == 1
        assert sleeps == []

    def test_succeeds_after_two_failures(self):
        sleeps = []
        op = Flaky([RuntimeError("a"), RuntimeError("b")])
        assert retry(op, max_attempts=3, base_delay_s=1.0, sleep=sleeps.append) == "ok"
        assert op.calls == 3
        assert sleeps == [1.0, 2.0]

    def test_exhaustion_reraises_last_error_unchanged(self):
        last = RuntimeError("third")
        op = Flaky([RuntimeError("first"), RuntimeError("second"), last])
        with pytest.raises(RuntimeError) as exc_info:
            retry(op, max_attempts=3, base_delay_s=0.0, sleep=lambda s: None)
        assert exc_info.value is last
        assert op.calls == 3

    def test_backoff_doubles_each_attempt(self):
        sleeps = []
        op = Flaky([RuntimeError("x")] * 4)
        with pytest.raises(RuntimeError):
            retry(op, max_attempts=4, base_delay_s=0.5, sleep=sleeps.append)
        # No sleep after the final attempt.
        assert sleeps == [0.5, 1.0, 2.0]

    def test_single_attempt_never_retries(self):
        op = Flaky([RuntimeError("x")])
        with pytest.raises(RuntimeError):
            retry(op, max_attempts=1, sleep=lambda s: pytest.fail("slept"))
        assert op.calls == 1

    def test_invalid_max_attempts(self):
        with pytest.raises(ValueError):
            retry(lambda: 1, max_attempts=0)

    def test_should_retry_stops_early(self):
        op = Flaky([InvalidTickerError("Invalid ticker: ZZZZ")])
        with pytest.raises(InvalidTickerError):
            retry(op, max_attempts=3, should_retry=is_retryable, sleep=lambda s: None)
        assert op.calls == 1

    def test_should_retry_allows_transient(self):
        op = Flaky([TransientError("timed out"), TransientError("ECONNRESET")])
        assert retry(op, max_attempts=3, should_retry=is_retryable, sleep=lambda s: None) == "ok"
        assert op.calls == 3


class TestRetryPolicy:
    def test_call_uses_configured_values(self):
        sleeps = []
        policy = RetryPolicy(max_attempts=2, base_delay_s=3.0, sleep=sleeps.append)
        op = Flaky([RuntimeError("x")])
        assert policy.call(op) == "ok"
        assert sleeps == [3.0]

    def test_is_retryable_by_kind(self):
        assert is_retryable(TransientError("503"))
        assert not is_retryable(ForbiddenError("403"))
        assert not is_retryable(RuntimeError("plain"))


# ---------------------------------------------------------------------------
# Circuit breaker
# ---------------------------------------------------------------------------


class TestCircuitBreaker:
    def test_starts_closed(self):
        cb = CircuitBreaker(name="finnhub:price", failure_threshold=3, reset_time_s=60.0)
        assert cb.state == CLOSED
        assert not cb.is_open
        assert cb.execute(lambda: 42) == 42

    def test_opens_after_threshold_and_skips_operation(self):
        clock = FakeClock()
        cb = CircuitBreaker(name="finnhub:price", failure_threshold=3, reset_time_s=60.0, clock=clock)
        for _ in range(3):
            with pytest.raises(ForbiddenError):
                cb.execute(Flaky([ForbiddenError("Finnhub API error: 403 Forbidden")]))
        assert cb.state == OPEN

        op = Flaky([])
        with pytest.raises(CircuitOpenError) as exc_info:
            cb.execute(op)
        assert op.calls == 0
        assert exc_info.value.provider == "finnhub"
        assert "403" in str(exc_info.value)

    def test_failure_below_threshold_propagates_original_error(self):
        cb = CircuitBreaker(name="p:price", failure_threshold=3)
        err = TransientError("boom")
        with pytest.raises(TransientError) as exc_info:
            cb.execute(Flaky([err]))
        assert exc_info.value is err
        assert cb.failures == 1

    def test_success_resets_failures(self):
        cb = CircuitBreaker(name="p:price", failure_threshold=3)
        with pytest.raises(RuntimeError):
            cb.execute(Flaky([RuntimeError("x")]))
        assert cb.failures == 1
        cb.execute(lambda: None)
        assert cb.failures == 0
        assert cb.last_error is None

    def test_half_open_after_reset_window(self):
        clock = FakeClock()
        cb = CircuitBreaker(name="p:price", failure_threshold=2, reset_time_s=60.0, clock=clock)
        for _ in range(2):
            cb.record_failure("x")
        assert cb.state == OPEN

        clock.advance(60.0)
        assert cb.state == OPEN
        clock.advance(0.5)
        assert cb.state == HALF_OPEN

        op = Flaky([])
        assert cb.execute(op) == "ok"
        assert op.calls == 1
        assert cb.state == CLOSED

    def test_one_failure_after_reset_does_not_reopen(self):
        clock = FakeClock()
        cb = CircuitBreaker(name="p:price", failure_threshold=3, reset_time_s=10.0, clock=clock)
        for _ in range(3):
            cb.record_failure("x")
        clock.advance(11.0)

        with pytest.raises(RuntimeError):
            cb.execute(Flaky([RuntimeError("still down")]))
        assert cb.failures == 1
        assert cb.state == CLOSED

    def test_reset(self):
        cb = CircuitBreaker(name="p:price", failure_threshold=1)
        cb.record_failure("x")
        assert cb.is_open
        cb.reset()
        assert cb.state == CLOSED

    def _run_concurrently(self, cb, n, operation):
        errors = []

        def worker():
            try:
                cb.execute(operation)
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(n)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)
        return errors

    def test_concurrent_failures_are_all_counted(self):
        n = 16
        cb = CircuitBreaker(name="finnhub:price", failure_threshold=n + 10)
        barrier = threading.Barrier(n, timeout=5)

        def failing():
            barrier.wait()
            raise TransientError("503")

        errors = self._run_concurrently(cb, n, failing)
        assert len(errors) == n
        assert all(isinstance(e, TransientError) for e in errors)
        assert cb.failures == n
        assert cb.state == CLOSED

        done = threading.Thread(target=lambda: cb.execute(lambda: "ok"))
        done.start()
        done.join(timeout=5)
        assert cb.failures == 0

    def test_concurrent_failures_open_at_threshold(self):
        n = 8
        cb = CircuitBreaker(name="fmp:financials", failure_threshold=n, clock=FakeClock())
        barrier = threading.Barrier(n, timeout=5)

        def failing():
            barrier.wait()
            raise TransientError("503")

        self._run_concurrently(cb, n, failing)
        assert cb.failures == n
        assert cb.state == OPEN
        with pytest.raises(CircuitOpenError):
            cb.execute(lambda: "never")


class TestCircuitBreakerRegistry:
    def test_one_breaker_per_provider_and_capability(self):
        reg = CircuitBreakerRegistry(failure_threshold=2)
        assert reg.get("fmp", "financials") is reg.get("fmp", "financials")
        assert reg.get("fmp", "financials") is not reg.get("fmp", "overview")

    def test_states_and_reset_all(self):
        reg = CircuitBreakerRegistry(failure_threshold=1)
        reg.get("fmp", "financials").record_failure("403")
        reg.get("fmp", "overview")
        assert reg.states() == {"fmp:financials": OPEN, "fmp:overview": CLOSED}
        reg.reset_all()
        assert set(reg.states().values()) == {CLOSED}
