"""Model settings and prompt artifacts used when building agents."""

from typing import Any

from pydantic import BaseModel, Field


class ModelConfig(BaseModel):
    """Per-agent model settings.

    Unset fields fall back to the runtime defaults when the agent is built.
    """

    model_config = {"extra": "forbid", "protected_namespaces": ()}

    model_name: str | None = None  # "gpt-5-nano", "gpt-5.1", ...
    temperature: float | None = None
    max_tokens: int | None = None
    max_iterations: int | None = None  # tool loop bound

    # provider-specific extras (e.g., reasoning_effort)
    extra_params: dict[str, Any] | None = None

    def merged(self, override: "ModelConfig | None") -> "ModelConfig":
        """Overlay the explicitly set fields of override on top of this config."""
        if override is None:
            return self.model_copy()
        return self.model_copy(update=override.model_dump(exclude_unset=True, exclude_none=True))


class AgentPrompts(BaseModel):
    """Prompts fetched from the prompt store for one agent name."""

    system_prompt: str
    user_prompt: str | None = None  # template that precedes the caller's input


class OutputValidation(BaseModel):
    """Result of an agent-level output validator."""

    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    failed_output: Any = None  # what to show the model on retry, defaults to the output
