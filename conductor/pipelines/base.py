"""Shared wiring for the generation pipelines."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, Mapping, TypeVar

from conductor.adapters.invocation_logger import InvocationLogger
from conductor.adapters.model_gateway import ModelFactory
from conductor.agents.definition import AgentDefinition
from conductor.agents.factory import ConfigurableAgent, create_agent
from conductor.config import RuntimeSettings, get_settings
from conductor.context.providers import register_fitness_providers
from conductor.context.registry import ContextRegistry
from conductor.errors import SectionCountMismatchError
from conductor.models.agent_config import ModelConfig
from conductor.models.domain import User
from conductor.pipelines.extraction import SectionCountValidation
from conductor.pipelines.retry import retry_async
from conductor.sdk.prompt_store import PromptStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GenerationPipeline:
    """Builds a pipeline's agents once and resolves context per call.

    Args:
        model_config: overrides applied to every agent of the pipeline
        model_factory: model gateway builder, shared by all agents
        prompt_store: used for agents declared without a system prompt
        invocation_logger: fire-and-forget recorder passed to every agent
        registry: context registry (defaults to the fitness providers with no services)
        settings: runtime settings (defaults to the process-wide settings)
        strict_section_count: raise instead of warn on a section count mismatch
        sleep: backoff sleep used between modify attempts
    """

    def __init__(
        self,
        model_config: ModelConfig | None = None,
        *,
        model_factory: ModelFactory | None = None,
        prompt_store: PromptStore | None = None,
        invocation_logger: InvocationLogger | None = None,
        registry: ContextRegistry | None = None,
        settings: RuntimeSettings | None = None,
        strict_section_count: bool = False,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.settings = settings or get_settings()
        self.model_config = model_config
        self.model_factory = model_factory
        self.prompt_store = prompt_store
        self.invocation_logger = invocation_logger
        self.registry = registry or register_fitness_providers(ContextRegistry())
        self.strict_section_count = strict_section_count
        self.sleep = sleep

    def build_agent(self, definition: AgentDefinition, defaults: ModelConfig | None = None) -> ConfigurableAgent:
        config = (defaults or ModelConfig()).merged(self.model_config)
        return create_agent(
            definition,
            config,
            model_factory=self.model_factory,
            prompt_store=self.prompt_store,
            invocation_logger=self.invocation_logger,
            settings=self.settings,
        )

    async def resolve_context(self, user: User, context_types: Iterable[str], extra: Mapping[str, Any] | None = None) -> list[str]:
        params = {"user": user, **(extra or {})}
        return await self.registry.resolve(context_types, params)

    async def with_retry(self, label: str, operation: Callable[[], Awaitable[T]]) -> T:
        return await retry_async(
            operation,
            label=label,
            max_attempts=self.settings.modify_max_attempts,
            backoff_seconds=self.settings.retry_backoff_seconds,
            sleep=self.sleep,
        )

    def check_section_count(self, label: str, validation: SectionCountValidation) -> None:
        if validation.is_valid:
            return
        if self.strict_section_count:
            raise SectionCountMismatchError(f"[{label}] {validation.error}")
        logger.warning("[%s] %s", label, validation.error)
