"""Shared stubs for conductor tests. No network, no real models."""

import asyncio
from typing import Any, Callable

import pytest

from conductor.adapters.invocation_logger import InvocationLogger
from conductor.adapters.sinks import ListSink
from conductor.config import RuntimeSettings
from conductor.models.composed import ComposedOutput
from conductor.models.domain import User
from conductor.models.messages import Message


class ScriptedModel:
    """Model gateway stub.

    Replies come from ``respond(messages)`` when given, otherwise from the
    ``replies`` list in order (the last reply repeats). Exceptions are raised.
    """

    def __init__(self, replies: list[Any] | None = None, respond: Callable[[list[Message]], Any] | None = None, delay: float = 0.0):
        self.replies = list(replies or [])
        self.respond = respond
        self.delay = delay
        self.calls: list[list[Message]] = []

    async def invoke(self, messages: list[Message]) -> Any:
        self.calls.append(list(messages))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.respond is not None:
            result = self.respond(messages)
        elif len(self.replies) > 1:
            result = self.replies.pop(0)
        else:
            result = self.replies[0]
        if isinstance(result, Exception):
            raise result
        return result


class StubModelFactory:
    """Model factory handing out one gateway and recording how it was asked."""

    def __init__(self, model: Any):
        self.model = model
        self.calls: list[tuple[Any, Any, Any]] = []

    def __call__(self, schema, config, tools=None):
        self.calls.append((schema, config, tools))
        return self.model


class RecordingAgent:
    """Sub-agent stub that records start/end events on a shared timeline."""

    def __init__(self, name: str, timeline: list[tuple[str, str]], result: Any = None, delay: float = 0.01, error: Exception | None = None):
        self.name = name
        self.timeline = timeline
        self.result = result if result is not None else f"{name}-result"
        self.delay = delay
        self.error = error
        self.inputs: list[str] = []

    async def invoke(self, input: str) -> ComposedOutput:
        self.inputs.append(input)
        self.timeline.append(("start", self.name))
        await asyncio.sleep(self.delay)
        if self.error is not None:
            self.timeline.append(("error", self.name))
            raise self.error
        self.timeline.append(("end", self.name))
        return ComposedOutput(response=self.result)


@pytest.fixture
def settings() -> RuntimeSettings:
    return RuntimeSettings(openai_api_key="test-key", retry_backoff_seconds=0.0)


@pytest.fixture
def user() -> User:
    return User(id="user-1", name="Alex", gender="female", age=31, timezone="UTC", profile="Trains 4x/week. Goal: strength.")


@pytest.fixture
def memory_logger() -> InvocationLogger:
    return InvocationLogger(ListSink())


@pytest.fixture
def scripted_model():
    return ScriptedModel


@pytest.fixture
def stub_factory():
    return StubModelFactory


@pytest.fixture
def recording_agent():
    return RecordingAgent
