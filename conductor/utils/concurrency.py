"""Structured fan-out helpers built on asyncio."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Iterable


async def gather_fail_fast(awaitables: Iterable[Awaitable[Any]]) -> list[Any]:
    """Run awaitables concurrently and return their results in input order.

    The first exception cancels every sibling still in flight and is re-raised
    unchanged; results of siblings that already finished are discarded.
    """
    tasks = [asyncio.ensure_future(aw) for aw in awaitables]
    if not tasks:
        return []

    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        raise

    failed = next(
        (t for t in tasks if t in done and not t.cancelled() and t.exception() is not None),
        None,
    )
    if failed is None:
        return [task.result() for task in tasks]

    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
    # retrieve remaining exceptions so asyncio does not warn about them
    for task in done:
        if task is not failed and not task.cancelled():
            task.exception()
    raise failed.exception()
