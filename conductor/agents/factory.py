"""Declarative agent factory.

An agent is built once and invoked many times:

    agent = create_agent(
        AgentDefinition(
            name="plan-generate",
            system_prompt=PLAN_SYSTEM_PROMPT,
            sub_agents=[{"message": message_agent, "structure": structure_agent}],
        ),
        ModelConfig(model_name="gpt-5.1"),
    )
    result = await agent.invoke(user_prompt)
    result.response, result["message"], result["structure"]

Invocation builds the request (system -> context -> previous -> user), runs
either the tool loop or one plain model call, records the invocation without
waiting for it, then fans out to the configured sub-agents.
"""

from __future__ import annotations

import functools
import logging
import time
from typing import Any, Sequence

from conductor.adapters.invocation_logger import InvocationLogger
from conductor.adapters.model_gateway import ModelFactory, ModelGateway, initialize_model
from conductor.agents.definition import AgentDefinition
from conductor.agents.messages import build_messages, build_retry_feedback, stringify_output
from conductor.agents.sub_agents import execute_sub_agents
from conductor.agents.tool_loop import execute_tool_loop
from conductor.config import RuntimeSettings, get_settings
from conductor.errors import ConfigurationError, OutputValidationError, RetryExhaustedError
from conductor.models.agent_config import ModelConfig
from conductor.models.composed import ComposedOutput
from conductor.models.messages import Message
from conductor.sdk.prompt_store import PromptStore, default_prompt_store

logger = logging.getLogger(__name__)


class ConfigurableAgent:
    """A compiled agent. Holds no per-invocation state; safe to share."""

    def __init__(
        self,
        definition: AgentDefinition,
        model: ModelGateway,
        model_config: ModelConfig,
        system_prompt: str,
        user_prompt_template: str | None = None,
        invocation_logger: InvocationLogger | None = None,
    ) -> None:
        self.definition = definition
        self.model = model
        self.model_config = model_config
        self.system_prompt = system_prompt
        self.user_prompt_template = user_prompt_template
        self.invocation_logger = invocation_logger

    @property
    def name(self) -> str:
        return self.definition.name

    def __repr__(self) -> str:
        return f"ConfigurableAgent(name={self.name!r}, model={self.model_config.model_name!r})"

    def build_user_message(self, input: str) -> str:
        """userPromptFn wins, then the stored template, then the raw input."""
        if self.definition.user_prompt_fn is not None:
            return self.definition.user_prompt_fn(input)
        if self.user_prompt_template:
            return f"{self.user_prompt_template}\n\n{input}"
        return input

    async def invoke(
        self,
        input: str,
        *,
        context: Sequence[str] | None = None,
        previous_messages: Sequence[Message] | None = None,
    ) -> ComposedOutput:
        """Run the agent on one input.

        Args:
            input: the caller's input string
            context: context fragments overriding the definition's precomputed ones
            previous_messages: conversation history overriding the definition's

        Returns:
            ComposedOutput with ``response``, optional ``messages`` and one key per
            sub-agent that ran

        Raises:
            Exception: model, tool and sub-agent errors propagate unchanged
            RetryExhaustedError: the output validator rejected every attempt
        """
        start = time.perf_counter()
        logger.info("[%s] Starting execution", self.name)

        user_message = self.build_user_message(input)
        context = list(self.definition.context if context is None else context)
        previous = list(self.definition.previous_messages if previous_messages is None else previous_messages)

        try:
            if self.definition.validate is None:
                result = await self._invoke_once(input, user_message, context, previous)
            else:
                result = await self._invoke_validated(input, user_message, context, previous)
        except Exception:
            logger.exception("[%s] Execution failed", self.name)
            raise

        logger.info("[%s] Total execution time: %.0fms", self.name, (time.perf_counter() - start) * 1000)
        return result

    async def _invoke_once(
        self,
        input: str,
        user_message: str,
        context: list[str],
        previous: list[Message],
    ) -> ComposedOutput:
        definition = self.definition
        messages = build_messages(self.system_prompt, user_message, context, previous)

        accumulated: list[str] = []
        if definition.uses_tools:
            loop_result = await execute_tool_loop(
                model=self.model,
                messages=messages,
                tools=definition.tools,
                name=self.name,
                max_iterations=self.model_config.max_iterations,
                tool_priority=definition.tool_priority,
            )
            main_result: Any = loop_result.response
            accumulated = loop_result.messages
        else:
            main_result = await self.model.invoke(messages)

        self._log_invocation(input, messages, main_result)

        output = ComposedOutput(response=main_result)
        if accumulated:
            output["messages"] = accumulated

        if not definition.sub_agents:
            return output

        sub_results = await execute_sub_agents(
            batches=definition.sub_agents,
            input=stringify_output(main_result),
            previous_results={"response": main_result},
            parent_name=self.name,
        )
        output.update(sub_results)
        return output

    async def _invoke_validated(
        self,
        input: str,
        user_message: str,
        context: list[str],
        previous: list[Message],
    ) -> ComposedOutput:
        definition = self.definition
        previous_attempts: list[tuple[Any, list[str]]] = []
        errors: list[str] = []

        for attempt in range(1, definition.max_retries + 1):
            attempt_start = time.perf_counter()
            # failed outputs and their errors go before the conversation history
            feedback = build_retry_feedback(previous_attempts)
            result = await self._invoke_once(input, user_message, context, feedback + previous)

            validation = definition.validate(result)
            if validation.is_valid:
                return result

            duration_ms = (time.perf_counter() - attempt_start) * 1000
            errors = validation.errors or ["Validation failed (no specific errors provided)"]
            failed = validation.failed_output if validation.failed_output is not None else result.response
            previous_attempts.append((failed, errors))
            logger.warning("[%s] Validation failed, attempt %d/%d", self.name, attempt, definition.max_retries)

            self._notify(
                definition.on_validation_failure,
                {"attempt": attempt, "errors": errors, "duration_ms": duration_ms},
            )
            if attempt == definition.max_retries:
                self._notify(
                    definition.on_chain_failure,
                    {
                        "attempt": attempt,
                        "errors": errors,
                        "duration_ms": duration_ms,
                        "total_attempts": definition.max_retries,
                    },
                )

        last_error = OutputValidationError(self.name, errors)
        raise RetryExhaustedError(f"{self.name} validation", definition.max_retries, last_error) from last_error

    def _notify(self, hook: Any, payload: dict[str, Any]) -> None:
        if hook is None:
            return
        try:
            hook(payload)
        except Exception as exc:
            logger.debug("[%s] Validation hook failed: %s", self.name, exc)

    def _log_invocation(self, input: str, messages: list[Message], output: Any) -> None:
        if self.invocation_logger is None:
            return
        try:
            self.invocation_logger.log(self.name, input, messages, output)
        except Exception as exc:
            logger.debug("[%s] Invocation logging failed: %s", self.name, exc)


def resolve_model_config(model_config: ModelConfig | None, settings: RuntimeSettings) -> ModelConfig:
    """Fill unset model fields from the runtime defaults."""
    defaults = ModelConfig(
        model_name=settings.default_model,
        temperature=settings.default_temperature,
        max_tokens=settings.default_max_tokens,
        max_iterations=settings.default_max_iterations,
    )
    return defaults.merged(model_config)


def create_agent(
    definition: AgentDefinition,
    model_config: ModelConfig | None = None,
    *,
    model_factory: ModelFactory | None = None,
    prompt_store: PromptStore | None = None,
    invocation_logger: InvocationLogger | None = None,
    settings: RuntimeSettings | None = None,
) -> ConfigurableAgent:
    """Build an invokable agent from a definition.

    Prompts missing from the definition are fetched from the prompt store here,
    once, not on every invocation.

    Args:
        definition: the declarative agent definition
        model_config: model settings; unset fields use the runtime defaults
        model_factory: builds the model gateway (defaults to initialize_model)
        prompt_store: where to fetch prompts when the definition has none
            (defaults to the shared HTTP store for the configured service)
        invocation_logger: fire-and-forget invocation recorder; when omitted a
            file-backed logger is used if CONDUCTOR_INVOCATION_LOG_DIR is set
        settings: runtime settings (defaults to the process-wide settings)
    """
    settings = settings or get_settings()
    resolved = resolve_model_config(model_config, settings)

    system_prompt = definition.system_prompt
    user_prompt_template: str | None = None
    if system_prompt is None:
        store = prompt_store or default_prompt_store(settings)
        prompts = store.get_prompts(definition.name)
        system_prompt = prompts.system_prompt
        user_prompt_template = prompts.user_prompt
    if not system_prompt:
        raise ConfigurationError(f"No system prompt available for agent '{definition.name}'")

    factory = model_factory or functools.partial(initialize_model, settings=settings)
    # tools and schema are mutually exclusive; tools take precedence
    if definition.uses_tools:
        model = factory(None, resolved, list(definition.tools))
    else:
        model = factory(definition.schema, resolved)

    if invocation_logger is None and settings.invocation_log_dir:
        invocation_logger = InvocationLogger.from_settings(settings)

    return ConfigurableAgent(
        definition=definition,
        model=model,
        model_config=resolved,
        system_prompt=system_prompt,
        user_prompt_template=user_prompt_template,
        invocation_logger=invocation_logger,
    )
