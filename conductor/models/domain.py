"""Domain records read by the fitness context providers and pipelines.

These carry only the fields the runtime formats into prompts; persistence
layers own the full records.
"""

from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field

ExperienceLevel = Literal["beginner", "intermediate", "advanced"]


class User(BaseModel):
    id: str
    name: str
    gender: str | None = None
    age: int | None = None
    timezone: str = "America/New_York"
    # free-text fitness profile document
    profile: str | None = None


class FitnessPlan(BaseModel):
    id: str | None = None
    description: str
    formatted: str | None = None


class Microcycle(BaseModel):
    absolute_week: int | None = None
    description: str
    is_deload: bool = False


class Workout(BaseModel):
    workout_date: date
    description: str
    session_type: str | None = None


class StructuredProfile(BaseModel):
    experience_level: ExperienceLevel | None = None
    goals: list[str] = Field(default_factory=list)


class ProgramVersion(BaseModel):
    program_name: str
    version: int | None = None
    content: str | None = None
