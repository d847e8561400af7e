"""Agentic tool-calling loop.

Two states: awaiting the model, and done. Each model turn either answers
(done) or requests tools; requested tools run, their results are appended as
``tool`` messages and the model is asked again. Reaching ``max_iterations``
while the model still wants tools is not an error: the loop stops and returns
the last text the model produced.
"""

from __future__ import annotations

import json
import logging
import time
from collections import defaultdict
from typing import Any, Mapping, Sequence

from langchain_core.tools import BaseTool
from pydantic import BaseModel, Field

from conductor.adapters.model_gateway import ModelGateway, reply_to_message
from conductor.agents.messages import build_loop_continuation_message, json_default
from conductor.models.messages import Message, ToolCall, ToolCallRecord, ToolExecutionResult
from conductor.utils.concurrency import gather_fail_fast
from conductor.utils.identifiers import generate_tool_call_id

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 5
DEFAULT_TOOL_PRIORITY = 99
TOOL_FAILURE_MESSAGE = "I tried to help but encountered an issue. Please try again!"


class ToolLoopResult(BaseModel):
    """Outcome of a tool loop run."""

    response: str
    messages: list[str] = Field(default_factory=list)  # user-facing texts returned by tools
    transcript: list[Message] = Field(default_factory=list)
    tool_calls: list[ToolCallRecord] = Field(default_factory=list)
    iterations: int = 0
    hit_iteration_cap: bool = False


def _coerce_tool_result(raw: Any) -> ToolExecutionResult:
    if isinstance(raw, ToolExecutionResult):
        return raw
    if isinstance(raw, dict) and "response" in raw:
        return ToolExecutionResult.model_validate(raw)
    if isinstance(raw, str):
        return ToolExecutionResult(response=raw)
    if isinstance(raw, BaseModel):
        return ToolExecutionResult(response=raw.model_dump_json())
    return ToolExecutionResult(response=json.dumps(raw, default=json_default))


async def _run_tool(agent_name: str, tool: BaseTool, call: ToolCall) -> tuple[ToolExecutionResult, float]:
    start = time.perf_counter()
    logger.info("[%s] Executing tool: %s", agent_name, call.name)
    raw = await tool.ainvoke(call.args)
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info("[%s] %s complete in %.0fms", agent_name, call.name, duration_ms)
    return _coerce_tool_result(raw), duration_ms


def _priority_groups(
    calls: Sequence[ToolCall],
    priority: Mapping[str, int],
    available: Mapping[str, BaseTool],
) -> list[list[int]]:
    """Indices of runnable calls grouped by priority, lowest priority value first."""
    groups: dict[int, list[int]] = defaultdict(list)
    for index, call in enumerate(calls):
        if call.name not in available:
            continue
        groups[priority.get(call.name, DEFAULT_TOOL_PRIORITY)].append(index)
    return [groups[p] for p in sorted(groups)]


async def execute_tool_loop(
    model: ModelGateway,
    messages: Sequence[Message],
    tools: Sequence[BaseTool],
    name: str,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    tool_priority: Mapping[str, int] | None = None,
) -> ToolLoopResult:
    """Run the model with bound tools until it stops calling them.

    Args:
        model: tool-mode gateway; replies expose ``content`` and ``tool_calls``
        messages: initial request
        tools: tools available to the model, looked up by name
        name: agent name for logging
        max_iterations: maximum number of model calls
        tool_priority: optional map tool name -> priority; lower runs first,
            calls sharing a priority run concurrently

    Returns:
        ToolLoopResult with the final text and the full transcript

    A call to a tool that is not bound does not abort the loop: the model gets
    an error ``tool`` message and the user gets a short apology message.

    Raises:
        Exception: anything a tool or the model raises, unchanged
    """
    tools_by_name = {tool.name: tool for tool in tools}
    priority = dict(tool_priority or {})

    transcript: list[Message] = list(messages)
    records: list[ToolCallRecord] = []
    accumulated: list[str] = []
    last_text = ""
    last_tool_type = "action"

    for iteration in range(1, max_iterations + 1):
        logger.debug("[%s] Tool loop iteration %d", name, iteration)
        reply = reply_to_message(await model.invoke(transcript))
        if reply.content:
            last_text = reply.content

        if not reply.tool_calls:
            transcript.append(reply)
            logger.info("[%s] Tool loop completed after %d iteration(s)", name, iteration)
            return ToolLoopResult(
                response=reply.content,
                messages=accumulated,
                transcript=transcript,
                tool_calls=records,
                iterations=iteration,
            )

        calls = [
            call if call.id else call.model_copy(update={"id": generate_tool_call_id(iteration, index)})
            for index, call in enumerate(reply.tool_calls)
        ]
        transcript.append(Message.assistant(reply.content, tool_calls=calls))

        outcomes: list[tuple[ToolExecutionResult, float] | None] = [None] * len(calls)
        for group in _priority_groups(calls, priority, tools_by_name):
            results = await gather_fail_fast(
                _run_tool(name, tools_by_name[calls[i].name], calls[i]) for i in group
            )
            for index, outcome in zip(group, results):
                outcomes[index] = outcome

        iteration_messages: list[str] = []
        for call, outcome in zip(calls, outcomes):
            if outcome is None:
                logger.error("[%s] Tool not found: %s", name, call.name)
                accumulated.append(TOOL_FAILURE_MESSAGE)
                iteration_messages.append(TOOL_FAILURE_MESSAGE)
                transcript.append(Message.tool(f"Error: Tool not found: {call.name}", call.id))
                continue
            result, duration_ms = outcome
            last_tool_type = result.tool_type
            accumulated.extend(result.messages)
            iteration_messages.extend(result.messages)
            records.append(
                ToolCallRecord(name=call.name, args=call.args, result=result.response, duration_ms=duration_ms)
            )
            transcript.append(Message.tool(result.response, call.id))

        transcript.append(Message.user(build_loop_continuation_message(last_tool_type, iteration_messages)))

    logger.warning("[%s] Max iterations (%d) reached", name, max_iterations)
    return ToolLoopResult(
        response=last_text or (accumulated[-1] if accumulated else ""),
        messages=accumulated,
        transcript=transcript,
        tool_calls=records,
        iterations=max_iterations,
        hit_iteration_cap=True,
    )
