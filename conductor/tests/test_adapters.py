"""Tests for the prompt store, sinks, invocation logger and model gateway."""

import json

import httpx
import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage
from pydantic import BaseModel

from conductor.adapters.invocation_logger import InvocationLogger
from conductor.adapters.model_gateway import (
    LangChainGateway,
    content_text,
    reply_to_message,
    to_langchain_messages,
)
from conductor.adapters.sinks import FileSink, HttpSink, ListSink
from conductor.config import RuntimeSettings
from conductor.errors import PromptStoreError
from conductor.models.invocation import InvocationRecord
from conductor.models.messages import Message, ToolCall
from conductor.sdk.prompt_store import HttpPromptStore


class Plan(BaseModel):
    name: str


def _record(output="out") -> InvocationRecord:
    return InvocationRecord(
        invocation_id="inv-1",
        agent_name="chat",
        timestamp="2026-01-01T00:00:00+00:00",
        input="hi",
        messages=[Message.user("hi")],
        output=output,
    )


class TestHttpPromptStore:
    """Prompt fetching over HTTP."""

    def test_fetches_and_caches(self):
        """A prompt is fetched once per agent name and then served from the cache."""
        requests = []

        def handler(request):
            requests.append(request.url.path)
            return httpx.Response(200, json={"systemPrompt": "SYS", "userPrompt": "TEMPLATE"})

        store = HttpPromptStore(base_url="http://prompts/", transport=httpx.MockTransport(handler))

        first = store.get_prompts("coach")
        second = store.get_prompts("coach")

        assert first.system_prompt == "SYS"
        assert first.user_prompt == "TEMPLATE"
        assert second is first
        assert requests == ["/api/agents/coach/prompts"]

    def test_snake_case_keys(self):
        """snake_case payload keys are accepted as well as camelCase ones."""
        transport = httpx.MockTransport(lambda r: httpx.Response(200, json={"system_prompt": "S", "user_prompt": None}))

        prompts = HttpPromptStore(transport=transport).get_prompts("a")

        assert prompts.system_prompt == "S"
        assert prompts.user_prompt is None

    def test_not_found(self):
        """A 404 surfaces as PromptStoreError naming the agent."""
        transport = httpx.MockTransport(lambda r: httpx.Response(404))

        with pytest.raises(PromptStoreError, match="No prompts stored"):
            HttpPromptStore(transport=transport).get_prompts("ghost")

    def test_server_error_wrapped(self):
        """HTTP failures are wrapped in PromptStoreError."""
        transport = httpx.MockTransport(lambda r: httpx.Response(500))

        with pytest.raises(PromptStoreError) as exc_info:
            HttpPromptStore(transport=transport).get_prompts("a")
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    def test_empty_system_prompt_rejected(self):
        """A payload without a system prompt is an error."""
        transport = httpx.MockTransport(lambda r: httpx.Response(200, json={"system_prompt": ""}))

        with pytest.raises(PromptStoreError):
            HttpPromptStore(transport=transport).get_prompts("a")


class TestSinks:
    """Invocation record sinks."""

    def test_file_sink_writes_jsonl(self, tmp_path):
        """The file sink appends one JSON line per record."""
        sink = FileSink(tmp_path / "logs" / "invocations.jsonl")

        sink.append(_record())
        sink.append(_record(output=Plan(name="p")))

        lines = (tmp_path / "logs" / "invocations.jsonl").read_text().splitlines()
        assert len(lines) == 2
        assert json.loads(lines[1])["output"] == {"name": "p"}

    def test_http_sink_posts_batch(self):
        """The HTTP sink posts records as a JSON batch."""
        bodies = []

        def handler(request):
            bodies.append((request.url.path, json.loads(request.content)))
            return httpx.Response(201)

        HttpSink("http://logs", transport=httpx.MockTransport(handler)).append(_record())

        path, body = bodies[0]
        assert path == "/api/agent-invocations"
        assert body["records"][0]["agent_name"] == "chat"

    def test_http_sink_raises_on_error_status(self):
        """An error status from the collector is raised."""
        sink = HttpSink("http://logs", transport=httpx.MockTransport(lambda r: httpx.Response(503)))

        with pytest.raises(httpx.HTTPStatusError):
            sink.append(_record())


class TestInvocationLogger:
    """Background record writing."""

    async def test_log_then_flush(self):
        """Records written in the background are visible after flush."""
        invocation_logger = InvocationLogger(ListSink())

        invocation_logger.log("chat", "hi", [Message.user("hi")], "hello")
        await invocation_logger.flush()

        (record,) = invocation_logger.records
        assert record.agent_name == "chat"
        assert record.output == "hello"

    def test_logs_synchronously_without_loop(self):
        """Outside an event loop the record is written immediately."""
        invocation_logger = InvocationLogger()

        invocation_logger.log("chat", "hi", [], "hello")

        assert len(invocation_logger.records) == 1

    def test_records_requires_list_sink(self, tmp_path):
        """Reading records back needs an in-memory sink."""
        invocation_logger = InvocationLogger(FileSink(tmp_path / "x.jsonl"))

        with pytest.raises(TypeError):
            invocation_logger.records

    def test_from_settings_uses_file_sink(self, tmp_path):
        """A configured log directory selects the file sink."""
        invocation_logger = InvocationLogger.from_settings(RuntimeSettings(invocation_log_dir=str(tmp_path)))

        assert isinstance(invocation_logger.sink, FileSink)
        assert invocation_logger.sink.path == tmp_path / "invocations.jsonl"


class FakeRunnable:
    def __init__(self, result):
        self.result = result
        self.received = None

    async def ainvoke(self, messages):
        self.received = messages
        return self.result


class TestModelGateway:
    """LangChain message conversion and gateway modes."""

    def test_to_langchain_messages(self):
        """Roles map onto the matching langchain message classes."""
        converted = to_langchain_messages([
            Message.system("s"),
            Message.user("u"),
            Message.assistant("", tool_calls=[ToolCall(id="c1", name="lookup", args={"q": 1})]),
            Message.tool("result", "c1"),
        ])

        assert [type(m) for m in converted] == [SystemMessage, HumanMessage, AIMessage, ToolMessage]
        assert converted[2].tool_calls[0]["name"] == "lookup"
        assert converted[3].tool_call_id == "c1"

    def test_reply_to_message_reads_tool_calls(self):
        """Tool calls on an AIMessage are carried over."""
        reply = AIMessage(content="", tool_calls=[{"name": "lookup", "args": {"q": 1}, "id": "c1", "type": "tool_call"}])

        message = reply_to_message(reply)

        assert message.role == "assistant"
        assert message.tool_calls == [ToolCall(id="c1", name="lookup", args={"q": 1})]

    def test_content_text_flattens_blocks(self):
        """List content blocks are joined into plain text."""
        assert content_text([{"type": "text", "text": "a"}, "b", {"type": "image_url"}]) == "ab"
        assert content_text(None) == ""

    async def test_text_mode_returns_content(self):
        """Without schema or tools the gateway returns the reply text."""
        runnable = FakeRunnable(AIMessage(content="hello"))

        result = await LangChainGateway(runnable, mode="text").invoke([Message.user("hi")])

        assert result == "hello"
        assert isinstance(runnable.received[0], HumanMessage)

    async def test_structured_mode_validates_dicts(self):
        """Dict replies are validated into the schema."""
        gateway = LangChainGateway(FakeRunnable({"name": "p"}), mode="structured", schema=Plan)

        assert await gateway.invoke([Message.user("hi")]) == Plan(name="p")

    async def test_structured_mode_raises_on_mismatch(self):
        """A reply that does not fit the schema raises."""
        gateway = LangChainGateway(FakeRunnable({"wrong": 1}), mode="structured", schema=Plan)

        with pytest.raises(ValueError):
            await gateway.invoke([Message.user("hi")])

    async def test_tools_mode_returns_raw_reply(self):
        """With tools bound the raw reply is returned for the loop."""
        reply = AIMessage(content="raw")

        assert await LangChainGateway(FakeRunnable(reply), mode="tools").invoke([]) is reply
