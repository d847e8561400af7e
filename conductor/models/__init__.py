"""Data models for the agent runtime."""

from conductor.models.agent_config import AgentPrompts, ModelConfig, OutputValidation
from conductor.models.composed import ComposedOutput
from conductor.models.domain import (
    FitnessPlan,
    Microcycle,
    ProgramVersion,
    StructuredProfile,
    User,
    Workout,
)
from conductor.models.invocation import InvocationRecord
from conductor.models.messages import (
    Message,
    Role,
    ToolCall,
    ToolCallRecord,
    ToolExecutionResult,
)

__all__ = [
    "AgentPrompts",
    "ComposedOutput",
    "FitnessPlan",
    "InvocationRecord",
    "Message",
    "Microcycle",
    "ModelConfig",
    "OutputValidation",
    "ProgramVersion",
    "Role",
    "StructuredProfile",
    "ToolCall",
    "ToolCallRecord",
    "ToolExecutionResult",
    "User",
    "Workout",
]
