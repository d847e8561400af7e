"""Thin adapter between agent messages and a LangChain chat model.

The gateway has three modes, picked once when the agent is built:
- text: returns the reply content as a string
- structured: returns the schema-validated object, raising on mismatch
- tools: returns the raw AIMessage so the tool loop can read tool_calls
"""

from __future__ import annotations

from typing import Any, Literal, Protocol, Sequence

from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)
from langchain_core.tools import BaseTool
from langchain_openai import ChatOpenAI
from pydantic import BaseModel

from conductor.config import RuntimeSettings, get_settings
from conductor.models.agent_config import ModelConfig
from conductor.models.messages import Message, ToolCall

GatewayMode = Literal["text", "structured", "tools"]


class ModelGateway(Protocol):
    """Anything that can answer a list of messages."""

    async def invoke(self, messages: list[Message]) -> Any:
        ...


class ModelFactory(Protocol):
    """Builds a gateway for an agent; swapped out in tests."""

    def __call__(
        self,
        schema: type[BaseModel] | None,
        config: ModelConfig,
        tools: Sequence[BaseTool] | None = None,
    ) -> ModelGateway:
        ...


def to_langchain_messages(messages: Sequence[Message]) -> list[BaseMessage]:
    """Convert agent messages into LangChain message objects."""
    converted: list[BaseMessage] = []
    for message in messages:
        if message.role == "system":
            converted.append(SystemMessage(content=message.content))
        elif message.role == "user":
            converted.append(HumanMessage(content=message.content))
        elif message.role == "assistant":
            tool_calls = [
                {"name": tc.name, "args": tc.args, "id": tc.id, "type": "tool_call"}
                for tc in (message.tool_calls or [])
            ]
            converted.append(AIMessage(content=message.content, tool_calls=tool_calls))
        else:
            converted.append(ToolMessage(content=message.content, tool_call_id=message.tool_call_id))
    return converted


def content_text(content: Any) -> str:
    """Flatten LangChain message content (string or content blocks) to text."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts)
    return str(content)


def reply_to_message(reply: Any) -> Message:
    """Normalise a tool-mode reply (AIMessage, Message or plain text) into a Message."""
    if isinstance(reply, Message):
        return reply
    if isinstance(reply, str):
        return Message.assistant(reply)
    raw_calls = getattr(reply, "tool_calls", None) or []
    tool_calls = []
    for raw in raw_calls:
        if isinstance(raw, dict):
            tool_calls.append(ToolCall(id=raw.get("id") or "", name=raw["name"], args=raw.get("args") or {}))
        else:
            tool_calls.append(ToolCall(id=getattr(raw, "id", "") or "", name=raw.name, args=raw.args or {}))
    return Message.assistant(content_text(getattr(reply, "content", "")), tool_calls=tool_calls)


class LangChainGateway:
    """Wraps a LangChain runnable built from a chat model."""

    def __init__(
        self,
        runnable: Any,
        mode: GatewayMode,
        schema: type[BaseModel] | None = None,
    ) -> None:
        self.runnable = runnable
        self.mode = mode
        self.schema = schema

    async def invoke(self, messages: list[Message]) -> Any:
        result = await self.runnable.ainvoke(to_langchain_messages(messages))

        if self.mode == "tools":
            return result

        if self.mode == "structured":
            # some providers hand back a dict even when a model class was requested
            if self.schema is not None and not isinstance(result, self.schema):
                return self.schema.model_validate(result)
            return result

        return content_text(getattr(result, "content", result))

    def __repr__(self) -> str:
        return f"LangChainGateway(mode={self.mode!r})"


def initialize_model(
    schema: type[BaseModel] | None,
    config: ModelConfig,
    tools: Sequence[BaseTool] | None = None,
    settings: RuntimeSettings | None = None,
) -> LangChainGateway:
    """Build an OpenAI-backed gateway.

    Tools and schema are mutually exclusive; tools take precedence.

    Args:
        schema: pydantic model for structured output, or None for plain text
        config: model settings; unset fields use the runtime defaults
        tools: tools to bind for agentic tool calling
        settings: runtime settings (defaults to the process-wide settings)
    """
    settings = settings or get_settings()
    llm_kwargs: dict[str, Any] = {
        "model": config.model_name or settings.default_model,
        "temperature": config.temperature if config.temperature is not None else settings.default_temperature,
        "max_tokens": config.max_tokens or settings.default_max_tokens,
    }
    if settings.openai_api_key:
        llm_kwargs["api_key"] = settings.openai_api_key
    if config.extra_params:
        llm_kwargs.update(config.extra_params)

    llm = ChatOpenAI(**llm_kwargs)

    if tools:
        return LangChainGateway(llm.bind_tools(list(tools)), mode="tools")
    if schema is not None:
        return LangChainGateway(llm.with_structured_output(schema), mode="structured", schema=schema)
    return LangChainGateway(llm, mode="text")
