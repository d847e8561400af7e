"""Agent composition runtime."""

from conductor.agents.definition import (
    AgentDefinition,
    InvokableAgent,
    SubAgentBatch,
    SubAgentEntry,
)
from conductor.agents.factory import ConfigurableAgent, create_agent
from conductor.agents.messages import build_messages
from conductor.agents.sub_agents import execute_sub_agents
from conductor.agents.tool_loop import ToolLoopResult, execute_tool_loop

__all__ = [
    "AgentDefinition",
    "ConfigurableAgent",
    "InvokableAgent",
    "SubAgentBatch",
    "SubAgentEntry",
    "ToolLoopResult",
    "build_messages",
    "create_agent",
    "execute_sub_agents",
    "execute_tool_loop",
]
