"""
CircuitBreaker - Stops calls to a failing or rate limited service.

States:
- CLOSED: Normal operation, outcomes are sampled in a rolling window
- OPEN: Service is failing, requests are blocked
- HALF_OPEN: One trial request is allowed through

Transitions:
- CLOSED → OPEN: failure ratio in the sampling window reaches the threshold
  (with at least minimum_throughput samples)
- OPEN → HALF_OPEN: After the break duration expires
- HALF_OPEN → CLOSED: On a successful trial
- HALF_OPEN → OPEN: On a failed trial

The break lasts longer when the outcome that opened the circuit was a rate
limit signal, so the upstream quota has time to reset.
"""

import asyncio
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from loguru import logger

from pokebridge.services.errors import CircuitOpenError


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "CLOSED"  # Normal operation
    OPEN = "OPEN"  # Blocking requests
    HALF_OPEN = "HALF_OPEN"  # Testing recovery


@dataclass
class CircuitBreakerConfig:
    """Configuration for circuit breaker."""

    failure_ratio: float = 0.5  # Failure ratio that opens the circuit
    sampling_duration: float = 10.0  # Rolling window, seconds
    minimum_throughput: int = 3  # Samples required before the ratio counts
    break_duration: float = 30.0  # Seconds open after transient failures
    rate_limit_break_duration: float = 900.0  # Seconds open after a rate limit


class CircuitBreaker:
    """
    Circuit breaker implementation for a single service.

    Usage:
        cb = CircuitBreaker("translator")

        await cb.acquire()  # raises CircuitOpenError when blocked
        try:
            response = await make_request()
        except Exception:
            await cb.record_failure()
            raise
        await cb.record_success()
    """

    def __init__(
        self,
        service_id: str,
        config: CircuitBreakerConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.service_id = service_id
        self.config = config or CircuitBreakerConfig()
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._window: deque[tuple[float, bool]] = deque()
        self._opened_at: float | None = None
        self._break_duration = self.config.break_duration
        self._trial_in_flight = False
        self._last_failure_time: float | None = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> CircuitState:
        """Get current state, checking for automatic transitions."""
        if self._state == CircuitState.OPEN and self._opened_at is not None:
            if self._clock() >= self._opened_at + self._break_duration:
                self._state = CircuitState.HALF_OPEN
                self._trial_in_flight = False
                logger.info(
                    f"Circuit breaker '{self.service_id}' transitioned to HALF_OPEN"
                )
        return self._state

    async def acquire(self) -> None:
        """Reserve permission for one call or raise CircuitOpenError."""
        async with self._lock:
            current_state = self.state

            if current_state == CircuitState.CLOSED:
                return

            if current_state == CircuitState.HALF_OPEN and not self._trial_in_flight:
                self._trial_in_flight = True
                return

            raise CircuitOpenError(self.service_id, self.get_time_until_reset() or 0.0)

    def release(self) -> None:
        """Give back a half-open trial slot whose call never reported an outcome."""
        self._trial_in_flight = False

    async def record_success(self) -> None:
        """Record a successful request."""
        async with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                self._close()
            elif self._state == CircuitState.CLOSED:
                self._sample(failed=False)

    async def record_failure(self, rate_limited: bool = False) -> None:
        """Record a failed request. rate_limited marks a 429 outcome."""
        async with self._lock:
            self._last_failure_time = self._clock()

            if self._state == CircuitState.HALF_OPEN:
                # Any failure in half-open reopens the circuit
                self._open(rate_limited)
            elif self._state == CircuitState.CLOSED:
                self._sample(failed=True)
                if self._threshold_reached():
                    self._open(rate_limited)

    def _sample(self, failed: bool) -> None:
        now = self._clock()
        self._window.append((now, failed))
        horizon = now - self.config.sampling_duration
        while self._window and self._window[0][0] < horizon:
            self._window.popleft()

    def _threshold_reached(self) -> bool:
        total = len(self._window)
        if total < self.config.minimum_throughput:
            return False
        failures = sum(1 for _, failed in self._window if failed)
        return failures / total >= self.config.failure_ratio

    def _open(self, rate_limited: bool) -> None:
        """Transition to OPEN state."""
        self._state = CircuitState.OPEN
        self._opened_at = self._clock()
        self._trial_in_flight = False
        self._window.clear()
        self._break_duration = (
            self.config.rate_limit_break_duration
            if rate_limited
            else self.config.break_duration
        )
        if rate_limited:
            logger.error(
                f"Circuit breaker '{self.service_id}' OPENED for "
                f"{self._break_duration / 60:.1f} minutes due to rate limiting (429)"
            )
        else:
            logger.error(
                f"Circuit breaker '{self.service_id}' OPENED for "
                f"{self._break_duration:.0f}s due to failures"
            )

    def _close(self) -> None:
        """Transition to CLOSED state."""
        self._state = CircuitState.CLOSED
        self._window.clear()
        self._opened_at = None
        self._trial_in_flight = False
        logger.info(f"Circuit breaker '{self.service_id}' CLOSED (recovered)")

    def reset(self) -> None:
        """Manually reset the circuit breaker."""
        self._state = CircuitState.CLOSED
        self._window.clear()
        self._opened_at = None
        self._trial_in_flight = False
        self._last_failure_time = None
        logger.info(f"Circuit breaker '{self.service_id}' manually reset")

    def get_time_until_reset(self) -> float | None:
        """Get seconds until circuit transitions to half-open."""
        if self._state != CircuitState.OPEN or self._opened_at is None:
            return None

        remaining = self._opened_at + self._break_duration - self._clock()
        return max(0.0, remaining)

    def get_status(self) -> dict[str, Any]:
        """Get current status as dictionary."""
        return {
            "service_id": self.service_id,
            "state": self.state.value,
            "samples": len(self._window),
            "failures": sum(1 for _, failed in self._window if failed),
            "break_duration": self._break_duration,
            "time_until_reset": self.get_time_until_reset(),
        }
