"""Mesocycle generation and modification.

generate: long-form mesocycle -> microcycle extraction -> formatted Markdown
and SMS summary in parallel.

modify: one revision call under bounded retry, then the same
extraction/formatting stage on the (possibly unchanged) description.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from conductor.agents.definition import AgentDefinition
from conductor.models.agent_config import ModelConfig
from conductor.models.domain import User
from conductor.pipelines.base import GenerationPipeline
from conductor.pipelines.extraction import extract_microcycles, validate_microcycle_count
from conductor.pipelines.models import (
    MesocycleLongForm,
    MesocycleModifyResult,
    MesocycleResult,
    ModifyOutput,
    PipelineChainContext,
)
from conductor.pipelines.prompts import (
    FORMATTED_SYSTEM_PROMPT,
    MESOCYCLE_GENERATE_SYSTEM_PROMPT,
    MESOCYCLE_MODIFY_SYSTEM_PROMPT,
    MESSAGE_SYSTEM_PROMPT,
    mesocycle_generate_user_prompt,
    message_user_prompt,
    modify_user_prompt,
    summary_message_user_prompt,
)
from conductor.pipelines.stages import parallel_assign, sequence

logger = logging.getLogger(__name__)

GENERATE_CONTEXT = ("user", "user_profile", "fitness_plan", "experience_level")
MODIFY_CONTEXT = ("user", "user_profile", "experience_level")


class MesocyclePipeline(GenerationPipeline):
    """Generate or modify one mesocycle for a user."""

    def __init__(self, model_config: ModelConfig | None = None, **kwargs: Any) -> None:
        super().__init__(model_config, **kwargs)

        self.generate_agent = self.build_agent(
            AgentDefinition(
                name="mesocycle-generate",
                system_prompt=MESOCYCLE_GENERATE_SYSTEM_PROMPT,
                schema=MesocycleLongForm,
            ),
            ModelConfig(model_name="gpt-5.1"),
        )
        self.modify_agent = self.build_agent(
            AgentDefinition(
                name="mesocycle-modify",
                system_prompt=MESOCYCLE_MODIFY_SYSTEM_PROMPT,
                schema=ModifyOutput,
            ),
            ModelConfig(model_name="gpt-5.1"),
        )
        self.formatted_agent = self.build_agent(
            AgentDefinition(name="mesocycle-formatted", system_prompt=FORMATTED_SYSTEM_PROMPT),
        )
        self.message_agent = self.build_agent(
            AgentDefinition(
                name="mesocycle-message",
                system_prompt=MESSAGE_SYSTEM_PROMPT,
                user_prompt_fn=summary_message_user_prompt,
            ),
            ModelConfig(model_name="gpt-5-nano"),
        )

        self.post_process = sequence(
            self._extract,
            parallel_assign(formatted=self._format, message=self._summarize),
        )

    async def _extract(self, context: PipelineChainContext) -> PipelineChainContext:
        return context.model_copy(update={"extracted": extract_microcycles(context.long_form_output)})

    async def _format(self, context: PipelineChainContext) -> str:
        result = await self.formatted_agent.invoke(context.long_form_output)
        return result.response

    async def _summarize(self, context: PipelineChainContext) -> str:
        result = await self.message_agent.invoke(message_user_prompt(context))
        return result.response

    async def generate(
        self,
        user: User,
        overview: str,
        *,
        context_types: Sequence[str] = GENERATE_CONTEXT,
        context_params: Mapping[str, Any] | None = None,
    ) -> MesocycleResult:
        """Generate a detailed mesocycle from its overview.

        Args:
            user: the user the mesocycle is for
            overview: the mesocycle's outline from the fitness plan
            context_types: context providers to resolve for the long-form call
            context_params: extra provider parameters (date, plan_text, ...)

        Raises:
            SectionCountMismatchError: only with strict_section_count, when the
                declared microcycle count differs from the extracted one
        """
        params = {"snippet_type": "microcycle", **(context_params or {})}
        context = await self.resolve_context(user, context_types, params)

        output = await self.generate_agent.invoke(
            mesocycle_generate_user_prompt(overview, user.profile),
            context=context,
        )
        long_form: MesocycleLongForm = output.response

        chain = await self.post_process(
            PipelineChainContext(
                long_form_output=long_form.description,
                user=user,
                fitness_profile=user.profile,
                declared_count=long_form.number_of_microcycles,
            )
        )

        validation = validate_microcycle_count(
            {"number_of_microcycles": long_form.number_of_microcycles, "microcycles": chain.extracted}
        )
        self.check_section_count("mesocycle-generate", validation)

        logger.info("[mesocycle-generate] Generated %d microcycles for user %s", len(chain.extracted), user.id)
        return MesocycleResult(
            description=chain.long_form_output,
            microcycles=chain.extracted,
            number_of_microcycles=long_form.number_of_microcycles,
            count_validation=validation,
            formatted=chain.formatted,
            message=chain.message,
        )

    async def modify(
        self,
        user: User,
        current_description: str,
        change_request: str,
        *,
        context_types: Sequence[str] = MODIFY_CONTEXT,
        context_params: Mapping[str, Any] | None = None,
    ) -> MesocycleModifyResult:
        """Revise an existing mesocycle.

        The revision call is retried on any error; formatting runs once after it
        succeeds.

        Raises:
            RetryExhaustedError: every revision attempt failed
        """
        params = {"snippet_type": "microcycle", **(context_params or {})}
        context = await self.resolve_context(user, context_types, params)
        prompt = modify_user_prompt(current_description, change_request)

        async def attempt() -> ModifyOutput:
            output = await self.modify_agent.invoke(prompt, context=context)
            return output.response

        revised = await self.with_retry(f"Modify mesocycle for user {user.id}", attempt)

        chain = await self.post_process(
            PipelineChainContext(
                long_form_output=revised.description,
                user=user,
                fitness_profile=user.profile,
            )
        )

        logger.info("[mesocycle-modify] wasModified=%s for user %s", revised.was_modified, user.id)
        return MesocycleModifyResult(
            description=revised.description,
            was_modified=revised.was_modified,
            modifications=revised.modifications,
            microcycles=chain.extracted,
            formatted=chain.formatted,
            message=chain.message,
        )
