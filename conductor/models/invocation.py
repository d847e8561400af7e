"""Invocation records written by the fire-and-forget invocation logger."""

from typing import Any

from pydantic import BaseModel, field_serializer

from conductor.models.messages import Message


class InvocationRecord(BaseModel):
    """What one agent was asked and what it answered."""

    model_config = {"extra": "forbid"}

    invocation_id: str  # UUID for deduping
    agent_name: str
    timestamp: str
    input: str
    messages: list[Message]
    output: Any = None

    @field_serializer("output")
    def serialize_output(self, output: Any) -> Any:
        # structured outputs are pydantic models; everything else is passed through
        if isinstance(output, BaseModel):
            return output.model_dump(mode="json")
        return output
