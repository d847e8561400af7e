"""Conversation message models exchanged with the model gateway.

For the data models, we use pydantic so a malformed transcript fails at the
point it is built rather than deep inside a provider SDK.
"""

from typing import Any, Literal, Self

from pydantic import BaseModel, Field, model_validator

Role = Literal["system", "user", "assistant", "tool"]


class ToolCall(BaseModel):
    """A single tool invocation requested by the model."""

    id: str
    name: str
    args: dict[str, Any] = Field(default_factory=dict)


class Message(BaseModel):
    """One entry of a model request."""

    model_config = {"extra": "forbid"}

    role: Role
    content: str = ""
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None

    @model_validator(mode="after")
    def validate_role_fields(self) -> Self:
        """tool messages answer a call; only assistant messages carry calls."""
        if self.role == "tool" and not self.tool_call_id:
            raise ValueError("tool message must contain 'tool_call_id'")
        if self.tool_calls and self.role != "assistant":
            raise ValueError("only assistant messages may contain 'tool_calls'")
        return self

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str, tool_calls: list[ToolCall] | None = None) -> "Message":
        return cls(role="assistant", content=content, tool_calls=tool_calls or None)

    @classmethod
    def tool(cls, content: str, tool_call_id: str) -> "Message":
        return cls(role="tool", content=content, tool_call_id=tool_call_id)


class ToolCallRecord(BaseModel):
    """Observability record of one executed tool call. Not used for control flow."""

    name: str
    args: dict[str, Any] = Field(default_factory=dict)
    result: str
    duration_ms: float


class ToolExecutionResult(BaseModel):
    """Rich return value a tool may produce instead of a bare string.

    messages are user-facing texts accumulated across the whole tool loop;
    tool_type selects the wording of the continuation prompt.
    """

    response: str
    messages: list[str] = Field(default_factory=list)
    tool_type: Literal["query", "action"] = "action"
