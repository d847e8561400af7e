"""Declarative agent definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Protocol, Sequence, Union

from langchain_core.tools import BaseTool
from pydantic import BaseModel

from conductor.errors import ConfigurationError
from conductor.models.agent_config import OutputValidation
from conductor.models.composed import ComposedOutput
from conductor.models.messages import Message


# keys owned by the composed output itself
RESERVED_RESULT_KEYS = frozenset({"response", "messages"})


class InvokableAgent(Protocol):
    """What a sub-agent slot needs: a name and an async invoke."""

    name: str

    async def invoke(self, input: str) -> ComposedOutput:
        ...


# (main_result, previous_results) -> value
SubAgentTransform = Callable[[Any, Mapping[str, Any]], str]
SubAgentCondition = Callable[[Any, Mapping[str, Any]], bool]


@dataclass(frozen=True)
class SubAgentEntry:
    """A sub-agent slot with optional input transform and run condition.

    transform defaults to passing the parent's stringified response through;
    condition defaults to always running. Both receive the parent's main
    result and a read-only view of the results merged so far.
    """

    agent: InvokableAgent
    transform: SubAgentTransform | None = None
    condition: SubAgentCondition | None = None


SubAgentBatch = Mapping[str, Union[InvokableAgent, SubAgentEntry]]


def _freeze_batch(batch: SubAgentBatch, agent_name: str, index: int) -> Mapping[str, SubAgentEntry]:
    frozen: dict[str, SubAgentEntry] = {}
    for key, entry in batch.items():
        if not key:
            raise ConfigurationError(f"[{agent_name}] sub-agent batch {index} has an empty key")
        if key in RESERVED_RESULT_KEYS:
            raise ConfigurationError(
                f"[{agent_name}] sub-agent key '{key}' is reserved (batch {index})"
            )
        if not isinstance(entry, SubAgentEntry):
            entry = SubAgentEntry(agent=entry)
        if not callable(getattr(entry.agent, "invoke", None)):
            raise ConfigurationError(f"[{agent_name}] sub-agent '{key}' has no invoke()")
        frozen[key] = entry
    return MappingProxyType(frozen)


@dataclass(frozen=True)
class AgentDefinition:
    """Everything needed to build an agent. Immutable once built.

    If system_prompt is None the prompts are fetched from the prompt store by
    name when the agent is created. When tools are given the agent runs the
    tool loop and schema is ignored.
    """

    name: str
    system_prompt: str | None = None
    user_prompt_fn: Callable[[str], str] | None = None
    context: Sequence[str] = ()
    previous_messages: Sequence[Message] = ()
    tools: Sequence[BaseTool] = ()
    schema: type[BaseModel] | None = None
    sub_agents: Sequence[SubAgentBatch] = ()
    tool_priority: Mapping[str, int] = field(default_factory=dict)

    # optional output validation with feedback retries
    validate: Callable[[ComposedOutput], OutputValidation] | None = None
    max_retries: int = 1
    on_validation_failure: Callable[[dict[str, Any]], None] | None = None
    on_chain_failure: Callable[[dict[str, Any]], None] | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigurationError("Agent definition requires a name")
        if self.max_retries < 1:
            raise ConfigurationError(f"[{self.name}] max_retries must be at least 1")
        object.__setattr__(self, "context", tuple(self.context))
        object.__setattr__(self, "previous_messages", tuple(self.previous_messages))
        object.__setattr__(self, "tools", tuple(self.tools))
        object.__setattr__(self, "tool_priority", MappingProxyType(dict(self.tool_priority)))
        object.__setattr__(
            self,
            "sub_agents",
            tuple(_freeze_batch(batch, self.name, i) for i, batch in enumerate(self.sub_agents, start=1)),
        )

    @property
    def uses_tools(self) -> bool:
        return len(self.tools) > 0
