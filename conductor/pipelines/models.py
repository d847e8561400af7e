"""Schemas and carriers for the generation pipelines."""

from __future__ import annotations

from pydantic import BaseModel, Field

from conductor.models.domain import User
from conductor.pipelines.extraction import SectionCountValidation


class PipelineChainContext(BaseModel):
    """Carrier threaded through one pipeline invocation. Never shared."""

    model_config = {"extra": "forbid"}

    long_form_output: str
    user: User
    fitness_profile: str | None = None
    declared_count: int | None = None
    extracted: list[str] = Field(default_factory=list)
    formatted: str | None = None
    message: str | None = None


# model output schemas


class MesocycleLongForm(BaseModel):
    """Long-form mesocycle with one delimited section per microcycle."""

    description: str = Field(description="Full mesocycle text with '***** MICROCYCLE <n>: <theme> *****' delimiters")
    number_of_microcycles: int = Field(description="How many microcycles the description contains")


class ModifyOutput(BaseModel):
    description: str = Field(description="The complete revised document, or the original if unchanged")
    was_modified: bool
    modifications: str = Field(default="", description="Summary of what changed")


class MesocycleOutline(BaseModel):
    name: str
    weeks: int
    focus: str = ""


class PlanStructure(BaseModel):
    name: str
    summary: str = ""
    number_of_mesocycles: int
    mesocycles: list[MesocycleOutline] = Field(default_factory=list)


# pipeline results


class MesocycleResult(BaseModel):
    description: str
    microcycles: list[str]
    number_of_microcycles: int | None = None
    count_validation: SectionCountValidation
    formatted: str
    message: str


class MesocycleModifyResult(BaseModel):
    description: str
    was_modified: bool
    modifications: str
    microcycles: list[str]
    formatted: str
    message: str


class FitnessPlanResult(BaseModel):
    description: str
    message: str
    structure: PlanStructure
    mesocycles: list[str]
    count_validation: SectionCountValidation


class FitnessPlanModifyResult(BaseModel):
    description: str
    was_modified: bool
    modifications: str
    structure: PlanStructure
    mesocycles: list[str]
    count_validation: SectionCountValidation
    message: str
