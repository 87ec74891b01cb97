from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from loguru import logger


T = TypeVar("T")


@dataclass(frozen=True)
class CallResult(Generic[T]):
    """Outcome of one call across the model boundary: a value or the error that replaced it."""

    value: Optional[T] = None
    error: Optional[BaseException] = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def timed_out(self) -> bool:
        return isinstance(self.error, asyncio.TimeoutError)


async def guarded_call(
    label: str,
    fn: Callable[[], Awaitable[T]],
    timeout: float | None = None,
) -> CallResult[T]:
    """Await `fn()` under an optional timeout and fold any failure into a CallResult."""
    t0 = time.perf_counter()
    try:
        if timeout is None:
            value = await fn()
        else:
            value = await asyncio.wait_for(fn(), timeout=timeout)
    except Exception as e:
        dt = time.perf_counter() - t0
        logger.warning(f"llm_call_failed | kind={label} dt={dt:.2f}s err={type(e).__name__}: {e}")
        return CallResult(error=e, elapsed=dt)
    dt = time.perf_counter() - t0
    logger.info(f"llm_call | kind={label} dt={dt:.2f}s")
    return CallResult(value=value, elapsed=dt)
