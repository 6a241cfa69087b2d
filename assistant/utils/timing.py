"""
Stage timing.

``Timer`` measures a block and can record the result straight into a
run's ``stage_timings``; ``timed`` wraps a whole function.

    with Timer("retrieval", run.stage_timings):
        ...
"""

from __future__ import annotations

import asyncio
import functools
import time
from typing import Any, Callable

from assistant.utils.logging import get_logger

logger = get_logger("assistant.timing")


class Timer:
    """Wall-clock timer usable with ``with`` and ``async with``."""

    def __init__(self, stage: str = "", timings: dict[str, float] | None = None):
        self.stage = stage
        self.timings = timings
        self._start: float = 0.0
        self.elapsed_s: float = 0.0

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed_s * 1000

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, *_: Any) -> None:
        self.elapsed_s = time.perf_counter() - self._start
        if not self.stage:
            return
        if self.timings is not None:
            # Cumulative, so a stage run once per deep-search pass sums up
            self.timings[self.stage] = self.timings.get(self.stage, 0.0) + self.elapsed_s
        outcome = "failed" if exc_type else "completed"
        logger.debug("%s %s in %.1fms", self.stage, outcome, self.elapsed_ms)

    async def __aenter__(self) -> "Timer":
        return self.__enter__()

    async def __aexit__(self, *exc: Any) -> None:
        self.__exit__(*exc)


def timed(stage: str | None = None) -> Callable:
    """Log the duration of every call to the wrapped (sync or async) function."""

    def decorator(fn: Callable) -> Callable:
        label = stage or fn.__qualname__

        if asyncio.iscoroutinefunction(fn):

            @functools.wraps(fn)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with Timer() as t:
                    result = await fn(*args, **kwargs)
                logger.info("%s took %.2fs", label, t.elapsed_s)
                return result

            return async_wrapper

        @functools.wraps(fn)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with Timer() as t:
                result = fn(*args, **kwargs)
            logger.info("%s took %.2fs", label, t.elapsed_s)
            return result

        return sync_wrapper

    return decorator
