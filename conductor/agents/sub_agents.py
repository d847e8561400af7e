"""Sequential batches of concurrently executed sub-agents.

Batches run strictly in order. Every entry of a batch runs concurrently and the
batch is joined before the next one starts. A failing entry rejects the whole
call immediately; sibling results from that batch are discarded.

Results merge into one flat mapping keyed by entry key. A key reused in a
later batch overwrites the earlier value.
"""

from __future__ import annotations

import logging
import time
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from conductor.agents.definition import SubAgentBatch, SubAgentEntry
from conductor.models.composed import ComposedOutput
from conductor.utils.concurrency import gather_fail_fast

logger = logging.getLogger(__name__)

_SKIPPED = object()


async def _run_entry(
    parent_name: str,
    key: str,
    entry: SubAgentEntry,
    input: str,
    main_result: Any,
    previous_results: Mapping[str, Any],
) -> Any:
    if entry.condition is not None and not entry.condition(main_result, previous_results):
        logger.debug("[%s] Skipping sub-agent '%s' (condition false)", parent_name, key)
        return _SKIPPED

    agent_input = entry.transform(main_result, previous_results) if entry.transform else input
    output = await entry.agent.invoke(agent_input)
    if isinstance(output, ComposedOutput):
        return output.response
    return output


async def execute_sub_agents(
    batches: Sequence[SubAgentBatch],
    input: str,
    previous_results: Mapping[str, Any] | None = None,
    parent_name: str = "agent",
) -> dict[str, Any]:
    """Execute sub-agent batches and merge their responses.

    Args:
        batches: ordered batches; each maps result key -> agent or SubAgentEntry
        input: default input for every entry (the parent's stringified response)
        previous_results: seed results visible to transforms/conditions,
            normally ``{"response": main_result}``
        parent_name: parent agent name for logging

    Returns:
        Sub-agent responses keyed by entry key (seed keys are not included)
    """
    running: dict[str, Any] = dict(previous_results or {})
    main_result = running.get("response", input)
    merged: dict[str, Any] = {}

    for index, batch in enumerate(batches, start=1):
        entries = {
            key: entry if isinstance(entry, SubAgentEntry) else SubAgentEntry(agent=entry)
            for key, entry in batch.items()
        }
        if not entries:
            continue

        start = time.perf_counter()
        logger.debug("[%s] Sub-agent batch %d: %s", parent_name, index, ", ".join(entries))

        snapshot = MappingProxyType(dict(running))
        results = await gather_fail_fast(
            _run_entry(parent_name, key, entry, input, main_result, snapshot)
            for key, entry in entries.items()
        )

        for key, result in zip(entries, results):
            if result is _SKIPPED:
                continue
            merged[key] = result
            running[key] = result

        logger.debug(
            "[%s] Sub-agent batch %d completed in %.0fms",
            parent_name,
            index,
            (time.perf_counter() - start) * 1000,
        )

    return merged
