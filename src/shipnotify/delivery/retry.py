"""Retry with exponential backoff for gateway operations."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

import httpx

from .errors import DeliveryError, classify_exception, is_retryable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How many times, and how patiently, to retry one operation."""

    max_retries: int = 3
    initial_delay_ms: int = 1000
    max_delay_ms: int = 10000
    backoff_multiplier: float = 2.0

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.initial_delay_ms < 0 or self.max_delay_ms < 0:
            raise ValueError("retry delays must be >= 0")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")

    def delay_ms(self, attempt: int) -> float:
        """Delay before retry ``attempt`` (1-based), capped at ``max_delay_ms``."""
        if attempt < 1:
            raise ValueError("attempt must be >= 1")
        delay = self.initial_delay_ms * self.backoff_multiplier ** (attempt - 1)
        return min(delay, self.max_delay_ms)


async def retry_call(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    log_context: Optional[dict] = None,
) -> T:
    """Run ``operation`` until it succeeds or the policy gives up.

    Args:
        operation: Zero-argument coroutine factory; called once per attempt.
        policy: Retry limits and backoff.
        sleep: Awaitable sleep taking seconds.
        log_context: Extra fields attached to retry log entries.

    Returns:
        Whatever the successful attempt returned.

    Raises:
        DeliveryError: On a non-retryable failure or once retries run out.
    """
    context = log_context or {}
    attempt = 0

    while True:
        try:
            return await operation()
        except (httpx.HTTPError, DeliveryError, OSError) as exc:
            error = classify_exception(exc)

        if not is_retryable(error):
            logger.warning(
                "Non-retryable delivery failure: %s",
                error.message,
                extra={**context, "event": "delivery_fail_fast", "kind": error.kind.value,
                       "status_code": error.status_code, "attempt": attempt + 1},
            )
            raise error

        if attempt >= policy.max_retries:
            logger.warning(
                "Retries exhausted after %d attempts: %s",
                attempt + 1,
                error.message,
                extra={**context, "event": "delivery_retries_exhausted",
                       "kind": error.kind.value, "attempts": attempt + 1},
            )
            raise error

        attempt += 1
        delay = policy.delay_ms(attempt)
        logger.info(
            "Retrying in %.0f ms (retry %d/%d): %s",
            delay,
            attempt,
            policy.max_retries,
            error.message,
            extra={**context, "event": "delivery_retry", "attempt": attempt,
                   "delay_ms": delay, "kind": error.kind.value},
        )
        await sleep(delay / 1000.0)
