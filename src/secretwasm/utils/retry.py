"""
Retry helpers for idempotent REST reads.

Only transport-level failures are retried. Broadcasts and anything
touching encryption are never passed through here: a failed decryption
is permanent for the call that produced it.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

import httpx

from secretwasm.utils.logging import get_logger

T = TypeVar("T")

_logger = get_logger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    """
    Configuration for retry behavior.

    Example:
        ```python
        config = RetryConfig(max_attempts=5, base_delay_ms=250)
        ```
    """

    max_attempts: int = 3
    """Total attempts including the first one."""

    base_delay_ms: int = 500
    """Base delay in milliseconds for exponential backoff."""

    max_delay_ms: int = 10000
    """Cap for the exponential growth."""

    jitter: bool = True
    """Full jitter: sleep a uniform random fraction of the computed delay."""

    exponential_base: float = 2.0

    retryable_errors: Tuple[Type[BaseException], ...] = field(
        default_factory=lambda: (httpx.TransportError,)
    )

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay_ms < 0 or self.max_delay_ms < 0:
            raise ValueError("delays must be non-negative")


NO_RETRY = RetryConfig(max_attempts=1)


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """
    Delay in seconds before retry number ``attempt`` (zero-based).
    """
    delay_ms = config.base_delay_ms * (config.exponential_base ** attempt)
    delay_ms = min(delay_ms, config.max_delay_ms)
    if config.jitter:
        delay_ms = random.uniform(0, delay_ms)
    return delay_ms / 1000


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    config: Optional[RetryConfig] = None,
    *,
    operation: str = "request",
) -> T:
    """
    Run ``fn`` until it succeeds or the attempts are exhausted.

    Args:
        fn: Zero-argument coroutine factory.
        config: Retry configuration (defaults to RetryConfig()).
        operation: Label used in log lines.

    Returns:
        Result of the first successful call.

    Raises:
        The last retryable exception once attempts run out; any
        non-retryable exception immediately.
    """
    config = config or RetryConfig()
    last_error: Optional[BaseException] = None

    for attempt in range(config.max_attempts):
        try:
            return await fn()
        except config.retryable_errors as e:
            last_error = e
            if attempt < config.max_attempts - 1:
                delay = calculate_delay(attempt, config)
                _logger.warning(
                    "Retrying after transport failure",
                    extra={
                        "operation": operation,
                        "attempt": attempt + 1,
                        "delay_s": round(delay, 3),
                        "error": type(e).__name__,
                    },
                )
                await asyncio.sleep(delay)

    if last_error is None:
        raise ValueError("max_attempts must be at least 1")
    raise last_error
