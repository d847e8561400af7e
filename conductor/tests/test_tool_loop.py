"""Tests for the agentic tool loop."""

import asyncio

import pytest
from langchain_core.messages import AIMessage
from langchain_core.tools import tool

from conductor.agents.tool_loop import TOOL_FAILURE_MESSAGE, execute_tool_loop
from conductor.models.messages import Message, ToolExecutionResult


def _call(name, args=None, id=None):
    return {"name": name, "args": args or {}, "id": id, "type": "tool_call"}


@tool
async def get_weather(city: str) -> str:
    """Look up the weather for a city."""
    return f"sunny in {city}"


@tool
async def send_message(text: str) -> ToolExecutionResult:
    """Send a message to the user."""
    return ToolExecutionResult(response="sent", messages=[text], tool_type="action")


@tool
async def broken(reason: str) -> str:
    """Always fails."""
    raise RuntimeError(reason)


BASE = [Message.system("You are helpful."), Message.user("Hi")]


class TestToolLoopTermination:
    """Loop ends on a plain answer or at the iteration cap."""

    async def test_plain_answer_returns_after_one_call(self, scripted_model):
        """A reply without tool calls ends the loop on the first turn."""
        model = scripted_model([AIMessage(content="Hello!")])

        result = await execute_tool_loop(model, BASE, [get_weather], name="chat")

        assert result.response == "Hello!"
        assert result.iterations == 1
        assert not result.hit_iteration_cap
        assert len(model.calls) == 1
        assert result.transcript[-1].role == "assistant"

    async def test_always_calling_tools_stops_at_cap(self, scripted_model):
        """A model that never stops asking for tools gets exactly max_iterations calls."""
        model = scripted_model([AIMessage(content="checking", tool_calls=[_call("get_weather", {"city": "Oslo"}, "c1")])])

        result = await execute_tool_loop(model, BASE, [get_weather], name="chat", max_iterations=3)

        assert len(model.calls) == 3
        assert result.hit_iteration_cap
        assert result.iterations == 3
        assert result.response == "checking"
        assert len(result.tool_calls) == 3

    async def test_cap_without_text_returns_empty(self, scripted_model):
        """Hitting the cap with no text and no tool messages yields an empty response."""
        model = scripted_model([AIMessage(content="", tool_calls=[_call("get_weather", {"city": "Oslo"})])])

        result = await execute_tool_loop(model, BASE, [get_weather], name="chat", max_iterations=2)

        assert result.response == ""


class TestToolExecution:
    """Tool results, transcript and ordering."""

    async def test_tool_result_appended_then_model_called_again(self, scripted_model):
        """The tool output is sent back as a tool message tied to its call id."""
        model = scripted_model([
            AIMessage(content="", tool_calls=[_call("get_weather", {"city": "Paris"}, "call-1")]),
            AIMessage(content="It is sunny in Paris."),
        ])

        result = await execute_tool_loop(model, BASE, [get_weather], name="chat")

        assert result.response == "It is sunny in Paris."
        second_request = model.calls[1]
        roles = [m.role for m in second_request]
        assert roles == ["system", "user", "assistant", "tool", "user"]
        assert second_request[2].tool_calls[0].id == "call-1"
        assert second_request[3].content == "sunny in Paris"
        assert second_request[3].tool_call_id == "call-1"

        record = result.tool_calls[0]
        assert record.name == "get_weather"
        assert record.args == {"city": "Paris"}
        assert record.result == "sunny in Paris"
        assert record.duration_ms >= 0

    async def test_missing_call_ids_are_generated(self, scripted_model):
        """Calls without an id get a call_<iteration>_<index> id."""
        model = scripted_model([
            AIMessage(content="", tool_calls=[_call("get_weather", {"city": "Rome"})]),
            AIMessage(content="done"),
        ])

        result = await execute_tool_loop(model, BASE, [get_weather], name="chat")

        tool_message = [m for m in result.transcript if m.role == "tool"][0]
        assert tool_message.tool_call_id == "call_1_0"

    async def test_tool_messages_accumulate(self, scripted_model):
        """User-facing tool messages are returned and echoed in the continuation prompt."""
        model = scripted_model([
            AIMessage(content="", tool_calls=[_call("send_message", {"text": "Workout updated"}, "m1")]),
            AIMessage(content="All set."),
        ])

        result = await execute_tool_loop(model, BASE, [send_message], name="chat")

        assert result.messages == ["Workout updated"]
        continuation = model.calls[1][-1]
        assert continuation.role == "user"
        assert "Workout updated" in continuation.content

    async def test_priority_groups_run_in_order(self, scripted_model):
        """Lower priority values finish before higher ones start."""
        order = []

        @tool
        async def update_plan(change: str) -> str:
            """Update the plan."""
            await asyncio.sleep(0.02)
            order.append("update_plan")
            return "updated"

        @tool
        async def notify(text: str) -> str:
            """Notify the user."""
            order.append("notify")
            return "notified"

        model = scripted_model([
            AIMessage(content="", tool_calls=[_call("notify", {"text": "hi"}, "a"), _call("update_plan", {"change": "x"}, "b")]),
            AIMessage(content="ok"),
        ])

        result = await execute_tool_loop(
            model, BASE, [update_plan, notify], name="chat", tool_priority={"update_plan": 1, "notify": 2}
        )

        assert order == ["update_plan", "notify"]
        # transcript keeps the model's call order
        tool_ids = [m.tool_call_id for m in result.transcript if m.role == "tool"]
        assert tool_ids == ["a", "b"]


class TestToolErrors:
    """A failing tool aborts; an unknown tool is reported back to the model."""

    async def test_tool_error_propagates(self, scripted_model):
        """An exception raised inside a tool leaves the loop unchanged."""
        model = scripted_model([AIMessage(content="", tool_calls=[_call("broken", {"reason": "nope"})])])

        with pytest.raises(RuntimeError, match="nope"):
            await execute_tool_loop(model, BASE, [broken], name="chat")

    async def test_unknown_tool_recovers(self, scripted_model):
        """A misspelled tool name gets an error tool message and the model answers next turn."""
        model = scripted_model([
            AIMessage(content="", tool_calls=[_call("get_wether", {"city": "Oslo"}, "w1")]),
            AIMessage(content="Sorry, here is the answer"),
        ])

        result = await execute_tool_loop(model, BASE, [get_weather], name="chat")

        assert result.response == "Sorry, here is the answer"
        assert result.messages == [TOOL_FAILURE_MESSAGE]
        assert len(model.calls) == 2
        assert result.tool_calls == []

        second_request = model.calls[1]
        assert [m.role for m in second_request] == ["system", "user", "assistant", "tool", "user"]
        assert second_request[2].tool_calls[0].name == "get_wether"
        assert second_request[3].content == "Error: Tool not found: get_wether"
        assert second_request[3].tool_call_id == "w1"

    async def test_unknown_tool_does_not_block_known_ones(self, scripted_model):
        """Bound tools in the same turn still run next to an unknown one."""
        model = scripted_model([
            AIMessage(
                content="",
                tool_calls=[_call("teleport", {}, "t1"), _call("get_weather", {"city": "Rome"}, "g1")],
            ),
            AIMessage(content="done"),
        ])

        result = await execute_tool_loop(model, BASE, [get_weather], name="chat")

        tool_messages = [m for m in result.transcript if m.role == "tool"]
        assert [m.tool_call_id for m in tool_messages] == ["t1", "g1"]
        assert tool_messages[0].content == "Error: Tool not found: teleport"
        assert tool_messages[1].content == "sunny in Rome"
        assert [r.name for r in result.tool_calls] == ["get_weather"]
