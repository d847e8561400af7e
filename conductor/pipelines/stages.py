"""Minimal async stage combinators for generation pipelines.

A stage is any ``async (value) -> value`` callable. ``sequence`` threads a value
through stages in order; ``parallel_assign`` runs several stages against the
same context concurrently and merges their outputs into it by name.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Mapping

from pydantic import BaseModel

from conductor.utils.concurrency import gather_fail_fast

Stage = Callable[[Any], Awaitable[Any]]


def sequence(*stages: Stage) -> Stage:
    async def run(value: Any) -> Any:
        for stage in stages:
            value = await stage(value)
        return value

    return run


def parallel_assign(**stages: Stage) -> Stage:
    """Run every stage on the same context and assign results under their keyword names.

    Pydantic contexts are copied with the new fields; mappings are merged into a
    new dict. The input context is never mutated. The first failing stage
    cancels the others.
    """
    names = list(stages)

    async def run(context: Any) -> Any:
        results = await gather_fail_fast(stages[name](context) for name in names)
        update = dict(zip(names, results))
        if isinstance(context, BaseModel):
            return context.model_copy(update=update)
        if isinstance(context, Mapping):
            return {**context, **update}
        raise TypeError(f"parallel_assign cannot merge into {type(context).__name__}")

    return run
