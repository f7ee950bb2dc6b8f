"""Opt-in async retry for unary calls, driven by Castor's error kinds.

The client never retries on its own; wrap a call explicitly:

    response = await retry_async(
        lambda: client.models.generate_content(model=m, contents="hi"),
        policy=RetryPolicy(max_attempts=3),
    )
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
import random
import time
from typing import TYPE_CHECKING, TypeVar

import httpx

from castor.errors import APIError, TransportError, _walk_exception_chain

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry policy with exponential backoff and optional jitter."""

    max_attempts: int = 2
    initial_delay_s: float = 0.5
    backoff_multiplier: float = 2.0
    max_delay_s: float = 5.0
    jitter: bool = True  # full jitter
    max_elapsed_s: float | None = 15.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("RetryPolicy.max_attempts must be >= 1")
        if self.initial_delay_s < 0:
            raise ValueError("RetryPolicy.initial_delay_s must be >= 0")
        if self.backoff_multiplier <= 0:
            raise ValueError("RetryPolicy.backoff_multiplier must be > 0")
        if self.max_delay_s < 0:
            raise ValueError("RetryPolicy.max_delay_s must be >= 0")
        if self.max_elapsed_s is not None and self.max_elapsed_s < 0:
            raise ValueError("RetryPolicy.max_elapsed_s must be >= 0 or None")


def should_retry(exc: BaseException) -> bool:
    """Return True when ``exc`` looks transient.

    Cancellation is never retried. API errors are retried for 5xx and the
    usual throttling/timeout statuses; transport failures and timeouts are
    retried anywhere in the exception chain.
    """
    if isinstance(exc, asyncio.CancelledError):
        return False
    if isinstance(exc, APIError):
        return exc.retryable
    for error in _walk_exception_chain(exc):
        if isinstance(error, (TransportError, TimeoutError, httpx.TimeoutException)):
            return True
    return False


def _compute_backoff_delay(policy: RetryPolicy, *, retry_index: int) -> float:
    # retry_index starts at 1 for the first sleep.
    base = policy.initial_delay_s * (policy.backoff_multiplier ** max(0, retry_index - 1))
    base = min(policy.max_delay_s, base)
    if base <= 0:
        return 0.0
    if not policy.jitter:
        return base
    return random.random() * base  # noqa: S311


async def retry_async(
    factory: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy | None = None,
    retry_if: Callable[[BaseException], bool] = should_retry,
) -> T:
    """Await ``factory()`` until it succeeds or the policy gives up.

    A server-provided delay (``Retry-After`` or ``RetryInfo``) raises the
    backoff to at least that long.
    """
    policy = policy or RetryPolicy()
    start = time.monotonic()
    attempt = 0
    while True:
        attempt += 1
        try:
            return await factory()
        except Exception as exc:
            if attempt >= policy.max_attempts or not retry_if(exc):
                raise
            delay = _compute_backoff_delay(policy, retry_index=attempt)
            if isinstance(exc, APIError) and exc.retry_after_s is not None:
                delay = max(delay, exc.retry_after_s)
            if policy.max_elapsed_s is not None:
                remaining = policy.max_elapsed_s - (time.monotonic() - start)
                if remaining <= 0:
                    raise
                delay = min(delay, remaining)
            logger.debug("Retrying after %s (attempt %d, delay %.2fs)", type(exc).__name__, attempt, delay)
            if delay > 0:
                await asyncio.sleep(delay)
