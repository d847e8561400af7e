"""Conductor - declarative LLM agent composition runtime."""

from conductor.agents import (
    AgentDefinition,
    ConfigurableAgent,
    SubAgentEntry,
    create_agent,
    execute_sub_agents,
    execute_tool_loop,
)
from conductor.config import RuntimeSettings, get_settings
from conductor.context import ContextParams, ContextProvider, ContextRegistry, default_registry
from conductor.logging_config import setup_logging
from conductor.models import (
    ComposedOutput,
    Message,
    ModelConfig,
    OutputValidation,
    ToolExecutionResult,
)
from conductor.pipelines import FitnessPlanPipeline, MesocyclePipeline
from conductor.sdk.prompt_store import HttpPromptStore, InMemoryPromptStore, default_prompt_store

__all__ = [
    # Agents
    "AgentDefinition",
    "ConfigurableAgent",
    "SubAgentEntry",
    "create_agent",
    "execute_sub_agents",
    "execute_tool_loop",
    # Context
    "ContextParams",
    "ContextProvider",
    "ContextRegistry",
    "default_registry",
    # Models
    "ComposedOutput",
    "Message",
    "ModelConfig",
    "OutputValidation",
    "ToolExecutionResult",
    # Pipelines
    "FitnessPlanPipeline",
    "MesocyclePipeline",
    # Prompts
    "HttpPromptStore",
    "InMemoryPromptStore",
    "default_prompt_store",
    # Runtime
    "RuntimeSettings",
    "get_settings",
    "setup_logging",
]
