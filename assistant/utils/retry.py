"""Per-stage timeout and exponential-backoff retry around external calls."""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from assistant.core.config import Settings
from assistant.core.errors import ProviderTransportError, StageTimeoutError
from assistant.utils.logging import get_logger

logger = get_logger("assistant.utils.retry")

T = TypeVar("T")


def is_retryable(exc: Exception) -> bool:
    """Timeouts and transient provider failures are retryable; nothing else is."""
    if isinstance(exc, StageTimeoutError):
        return True
    if isinstance(exc, ProviderTransportError):
        return exc.retryable
    return False


async def with_timeout(label: str, awaitable: Awaitable[T], seconds: float) -> T:
    """Await *awaitable*, raising ``StageTimeoutError`` after *seconds*."""
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError as exc:
        raise StageTimeoutError(label, seconds) from exc


async def with_retry(
    coro_factory: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    label: str = "",
) -> T:
    """
    Await ``coro_factory()`` until it succeeds, at most *attempts* times.

    Only errors accepted by ``is_retryable`` are retried.  Any other
    error, and the error of the final attempt, propagates unchanged.
    The wait after attempt n is ``base_delay * 2**(n-1)`` plus up to
    the same amount again as jitter, capped at *max_delay*.
    """
    attempt = 1
    while True:
        try:
            return await coro_factory()
        except Exception as exc:
            if attempt >= attempts or not is_retryable(exc):
                raise
            backoff = base_delay * 2 ** (attempt - 1)
            delay = min(backoff * (1 + random.random()), max_delay)
            logger.warning(
                "%s: retry %d/%d after %.1fs: %s",
                label or "call", attempt, attempts, delay, exc,
            )
            await asyncio.sleep(delay)
            attempt += 1


async def call_stage(
    label: str,
    coro_factory: Callable[[], Awaitable[T]],
    settings: Settings,
) -> T:
    """Run one pipeline stage with the configured timeout and retry policy."""
    return await with_retry(
        lambda: with_timeout(label, coro_factory(), settings.stage_timeout_seconds),
        attempts=settings.retry_max_attempts,
        base_delay=settings.retry_base_delay,
        max_delay=settings.retry_max_delay,
        label=label,
    )
