"""Bounded retry with exponential backoff for modify operations."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from conductor.errors import RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    label: str,
    max_attempts: int = 2,
    backoff_seconds: float = 1.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Call ``operation`` until it succeeds or ``max_attempts`` is reached.

    Every exception counts as retryable. Between attempts the delay doubles,
    starting at ``backoff_seconds``. A success after a failed attempt is only
    logged; the caller gets the plain result.

    Raises:
        RetryExhaustedError: every attempt failed (chained from the last error)
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last_error: Exception | None = None
    for attempt in range(1, max_attempts + 1):
        try:
            result = await operation()
        except Exception as exc:
            last_error = exc
            logger.warning("[%s] Attempt %d/%d failed: %s", label, attempt, max_attempts, exc)
            if attempt < max_attempts:
                await sleep(backoff_seconds * 2 ** (attempt - 1))
            continue

        if attempt > 1:
            logger.info("[%s] Succeeded after %d attempts", label, attempt)
        return result

    raise RetryExhaustedError(label, max_attempts, last_error) from last_error
