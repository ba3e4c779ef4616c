"""
Resilience pipeline for outbound HTTP calls.

Composition, outermost first: circuit breaker, retry, per-attempt timeout.
The breaker sees one outcome per pipeline execution, after retries.
"""

import asyncio
from typing import Awaitable, Callable

import httpx

from pokebridge.services.circuit_breaker import CircuitBreaker, CircuitBreakerConfig
from pokebridge.services.errors import RequestTimeoutError
from pokebridge.services.retry import RetryConfig, RetryPolicy, is_transient_status
from pokebridge.settings import Settings

SendFn = Callable[[], Awaitable[httpx.Response]]


class TimeoutPolicy:
    """Bounds a single attempt; expiry raises RequestTimeoutError."""

    def __init__(self, service_id: str, timeout: float):
        self.service_id = service_id
        self.timeout = timeout

    async def execute(self, operation: SendFn) -> httpx.Response:
        try:
            return await asyncio.wait_for(operation(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError(self.service_id, self.timeout) from e


def is_failure_status(status_code: int) -> bool:
    """Responses the breaker counts as failures."""
    return is_transient_status(status_code) or status_code == 429


class ResiliencePipeline:
    """
    Usage:
        pipeline = ResiliencePipeline(breaker, RetryPolicy(), TimeoutPolicy("x", 30))
        response = await pipeline.execute(lambda: client.get(url))
    """

    def __init__(
        self,
        breaker: CircuitBreaker,
        retry: RetryPolicy,
        timeout: TimeoutPolicy,
    ):
        self.breaker = breaker
        self.retry = retry
        self.timeout = timeout

    async def execute(self, send: SendFn) -> httpx.Response:
        await self.breaker.acquire()
        try:
            response = await self.retry.execute(lambda: self.timeout.execute(send))
        except asyncio.CancelledError:
            self.breaker.release()
            raise
        except Exception:
            await self.breaker.record_failure()
            raise

        if is_failure_status(response.status_code):
            await self.breaker.record_failure(rate_limited=response.status_code == 429)
        else:
            await self.breaker.record_success()
        return response


def build_translator_pipeline(settings: Settings) -> ResiliencePipeline:
    """Pipeline for the rate limited translation provider."""
    breaker = CircuitBreaker(
        "translator",
        CircuitBreakerConfig(
            failure_ratio=settings.circuit_failure_ratio,
            sampling_duration=settings.circuit_sampling_seconds,
            minimum_throughput=settings.circuit_minimum_throughput,
            break_duration=settings.circuit_break_seconds,
            rate_limit_break_duration=settings.circuit_rate_limit_break_seconds,
        ),
    )
    retry = RetryPolicy(
        RetryConfig(
            retry_count=settings.retry_count,
            base_delay=settings.retry_backoff_base_seconds,
        )
    )
    timeout = TimeoutPolicy("translator", settings.translator_timeout_seconds)
    return ResiliencePipeline(breaker, retry, timeout)
