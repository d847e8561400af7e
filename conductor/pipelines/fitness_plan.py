"""Fitness plan generation and modification.

The plan agents compose through sub-agents: the generate agent fans out to a
message agent and a structure agent in one batch; the modify agent only needs
the structure agent.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence

from conductor.agents.definition import AgentDefinition, SubAgentEntry
from conductor.models.agent_config import ModelConfig
from conductor.models.domain import FitnessPlan, User
from conductor.pipelines.base import GenerationPipeline
from conductor.pipelines.extraction import extract_mesocycles, validate_mesocycle_count
from conductor.pipelines.models import (
    FitnessPlanModifyResult,
    FitnessPlanResult,
    ModifyOutput,
    PlanStructure,
)
from conductor.pipelines.prompts import (
    MESSAGE_SYSTEM_PROMPT,
    PLAN_GENERATE_SYSTEM_PROMPT,
    PLAN_MODIFY_SYSTEM_PROMPT,
    PLAN_STRUCTURE_SYSTEM_PROMPT,
    modify_user_prompt,
    plan_structure_user_prompt,
    summary_message_user_prompt,
)

logger = logging.getLogger(__name__)

# program version first so it guides generation
GENERATE_CONTEXT = ("program_version", "user", "user_profile")
MODIFY_CONTEXT = ("program_version", "user", "user_profile", "fitness_plan")


def _message_input(user: User, overview: Any) -> str:
    return json.dumps(
        {"user_name": user.name, "user_profile": user.profile or "", "overview": overview},
        default=str,
    )


def _plan_text(raw: str) -> str:
    """Structure input may be the bare plan or a JSON object holding it."""
    try:
        parsed = json.loads(raw)
    except ValueError:
        return raw
    if isinstance(parsed, dict):
        return parsed.get("description") or raw
    return raw


class FitnessPlanPipeline(GenerationPipeline):
    """Generate or modify a user's fitness plan."""

    def __init__(self, model_config: ModelConfig | None = None, **kwargs: Any) -> None:
        super().__init__(model_config, **kwargs)

        self.message_agent = self.build_agent(
            AgentDefinition(
                name="plan-message",
                system_prompt=MESSAGE_SYSTEM_PROMPT,
                user_prompt_fn=summary_message_user_prompt,
            ),
            ModelConfig(model_name="gpt-5-nano"),
        )
        self.structure_agent = self.build_agent(
            AgentDefinition(
                name="plan-structured",
                system_prompt=PLAN_STRUCTURE_SYSTEM_PROMPT,
                user_prompt_fn=lambda raw: plan_structure_user_prompt(_plan_text(raw)),
                schema=PlanStructure,
            ),
            ModelConfig(model_name="gpt-5-nano", max_tokens=32000),
        )
        self.modify_agent = self.build_agent(
            AgentDefinition(
                name="plan-modify",
                system_prompt=PLAN_MODIFY_SYSTEM_PROMPT,
                schema=ModifyOutput,
                sub_agents=[{"structure": self.structure_agent}],
            ),
            ModelConfig(model_name="gpt-5.1"),
        )

    def _generate_agent(self, user: User):
        # the message transform needs the user, so the parent is built per call
        def inject_user(main_result: Any, _previous: Any) -> str:
            return _message_input(user, main_result)

        return self.build_agent(
            AgentDefinition(
                name="plan-generate",
                system_prompt=PLAN_GENERATE_SYSTEM_PROMPT,
                sub_agents=[
                    {
                        "message": SubAgentEntry(agent=self.message_agent, transform=inject_user),
                        "structure": self.structure_agent,
                    }
                ],
            ),
            ModelConfig(model_name="gpt-5.1"),
        )

    async def generate(self, user: User, *, context_types: Sequence[str] = GENERATE_CONTEXT) -> FitnessPlanResult:
        """Write a new fitness plan with its SMS summary and extracted structure."""
        context = await self.resolve_context(user, context_types)
        agent = self._generate_agent(user)

        result = await agent.invoke("Write the fitness plan.", context=context)
        description: str = result.response
        structure: PlanStructure = result["structure"]

        mesocycles = extract_mesocycles(description)
        validation = validate_mesocycle_count(
            {"number_of_mesocycles": structure.number_of_mesocycles, "mesocycles": mesocycles}
        )
        self.check_section_count("plan-generate", validation)

        logger.info("[plan-generate] Generated fitness plan for user %s", user.id)
        return FitnessPlanResult(
            description=description,
            message=result["message"],
            structure=structure,
            mesocycles=mesocycles,
            count_validation=validation,
        )

    async def modify(
        self,
        user: User,
        current_plan: FitnessPlan,
        change_request: str,
        *,
        context_types: Sequence[str] = MODIFY_CONTEXT,
    ) -> FitnessPlanModifyResult:
        """Revise a plan; the revision and its structure extraction retry together.

        The revised plan is then split into mesocycles, checked against the
        structure's count and summarised for the user.

        Raises:
            RetryExhaustedError: every attempt failed
            SectionCountMismatchError: the count check failed in strict mode
        """
        context = await self.resolve_context(user, context_types, {"plan_text": current_plan.description})
        prompt = modify_user_prompt(current_plan.description, change_request)

        result = await self.with_retry(
            f"Modify fitness plan for user {user.id}",
            lambda: self.modify_agent.invoke(prompt, context=context),
        )
        revised: ModifyOutput = result.response
        structure: PlanStructure = result["structure"]

        mesocycles = extract_mesocycles(revised.description)
        validation = validate_mesocycle_count(
            {"number_of_mesocycles": structure.number_of_mesocycles, "mesocycles": mesocycles}
        )
        self.check_section_count("plan-modify", validation)

        message = await self.message_agent.invoke(_message_input(user, revised.description))

        logger.info("[plan-modify] Modified fitness plan, wasModified=%s", revised.was_modified)
        return FitnessPlanModifyResult(
            description=revised.description,
            was_modified=revised.was_modified,
            modifications=revised.modifications,
            structure=structure,
            mesocycles=mesocycles,
            count_validation=validation,
            message=message.response,
        )
