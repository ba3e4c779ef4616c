"""
Retry mechanism for transient upstream failures.

Transient outcomes are 5xx and 408 responses, per-attempt timeouts and
transport errors. 429 is deliberately not transient: retrying a rate limited
call only burns quota.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

import httpx
from loguru import logger

from pokebridge.services.errors import RequestTimeoutError

TRANSIENT_EXCEPTIONS: tuple[type[BaseException], ...] = (
    RequestTimeoutError,
    httpx.TransportError,
)


def is_transient_status(status_code: int) -> bool:
    return status_code >= 500 or status_code == 408


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    retry_count: int = 2  # Extra attempts after the first one
    base_delay: float = 2.0
    exponential_base: float = 2.0
    max_delay: float = 60.0


def _calculate_delay(attempt: int, config: RetryConfig) -> float:
    """Delay before retry number ``attempt`` (1-based): 2s, 4s, 8s..."""
    delay = config.base_delay * (config.exponential_base ** (attempt - 1))
    return max(0.0, min(delay, config.max_delay))


class RetryPolicy:
    """
    Re-runs an HTTP call while its outcome is transient.

    Once the budget is spent the last outcome is surfaced unchanged: the last
    response is returned, or the last exception re-raised.
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config or RetryConfig()
        self._sleep = sleep

    async def execute(
        self, operation: Callable[[], Awaitable[httpx.Response]]
    ) -> httpx.Response:
        attempt = 0
        while True:
            try:
                response = await operation()
            except TRANSIENT_EXCEPTIONS as e:
                if attempt >= self.config.retry_count:
                    logger.warning(
                        f"Retry budget exhausted after {attempt + 1} attempts: {e}"
                    )
                    raise
                attempt += 1
                delay = _calculate_delay(attempt, self.config)
                logger.warning(
                    f"Transient error ({type(e).__name__}: {e}), "
                    f"retry {attempt}/{self.config.retry_count} in {delay:.1f}s"
                )
                await self._sleep(delay)
                continue

            if not is_transient_status(response.status_code):
                return response
            if attempt >= self.config.retry_count:
                logger.warning(
                    f"Retry budget exhausted after {attempt + 1} attempts "
                    f"(last status {response.status_code})"
                )
                return response

            attempt += 1
            delay = _calculate_delay(attempt, self.config)
            logger.warning(
                f"Transient status {response.status_code}, "
                f"retry {attempt}/{self.config.retry_count} in {delay:.1f}s"
            )
            await self._sleep(delay)
