"""Fitness-domain context providers.

Each provider reads through a narrow capability protocol so that callers can
back them with any persistence layer (or with stubs in tests).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, Protocol
from zoneinfo import ZoneInfo

from conductor.context.registry import ContextParams, ContextProvider, ContextRegistry
from conductor.models.domain import (
    FitnessPlan,
    Microcycle,
    ProgramVersion,
    StructuredProfile,
    User,
    Workout,
)


class FitnessPlanReader(Protocol):
    async def get_current_plan(self, user_id: str) -> FitnessPlan | None:
        ...


class WorkoutReader(Protocol):
    async def get_workout_by_date(self, user_id: str, target: date) -> Workout | None:
        ...


class MicrocycleReader(Protocol):
    async def get_microcycle_by_date(self, user_id: str, target: date) -> Microcycle | None:
        ...


class FitnessProfileReader(Protocol):
    async def get_structured_profile(self, user_id: str) -> StructuredProfile | None:
        ...


class EnrollmentReader(Protocol):
    async def get_program_version(self, user_id: str) -> ProgramVersion | None:
        ...


class ExerciseReader(Protocol):
    async def list_active_names(self) -> list[str]:
        ...


@dataclass
class FitnessServices:
    """Read capabilities the providers may use. Any of them can be absent."""

    fitness_plans: FitnessPlanReader | None = None
    workouts: WorkoutReader | None = None
    microcycles: MicrocycleReader | None = None
    profiles: FitnessProfileReader | None = None
    enrollments: EnrollmentReader | None = None
    exercises: ExerciseReader | None = None


EXPERIENCE_GUIDANCE: dict[str, dict[str, str]] = {
    "beginner": {
        "microcycle": "Use simple everyday language. Keep the weekly structure simple and repetitive "
        "and build it around the main compound lifts. Progress conservatively.",
        "workout": "Write like a coach standing next to the lifter: sets, reps, rest and how hard a set "
        "should feel. Avoid RIR, RPE, tempo notation and percentages.",
    },
    "intermediate": {
        "microcycle": "Use standard training terms with a short explanation. Structured splits and "
        "weekly progression targets are appropriate.",
        "workout": "Prescribe sets, reps and RIR targets. Include one or two intensity techniques "
        "at most and explain their purpose briefly.",
    },
    "advanced": {
        "microcycle": "Technical language is fine. Manage fatigue explicitly and align the week "
        "with the current block's performance goal.",
        "workout": "Use precise prescriptions (RPE, percentages, tempo) and concise cues.",
    },
}


def _tag(name: str, body: str | None) -> str | None:
    if body is None or not body.strip():
        return None
    return f"<{name}>\n{body.strip()}\n</{name}>"


def _user(params: Mapping[str, Any]) -> User:
    user = params["user"]
    return user if isinstance(user, User) else User.model_validate(user)


def _target_date(params: Mapping[str, Any]) -> date:
    target = params.get("date")
    if isinstance(target, datetime):
        return target.date()
    if isinstance(target, date):
        return target
    if isinstance(target, str):
        return date.fromisoformat(target)
    return datetime.now(ZoneInfo(_user(params).timezone)).date()


def build_user_context(params: Mapping[str, Any]) -> str | None:
    user = _user(params)
    lines = [f"Name: {user.name}"]
    if user.gender:
        lines.append(f"Gender: {user.gender}")
    if user.age is not None:
        lines.append(f"Age: {user.age}")
    return _tag("User", "\n".join(lines))


def build_user_profile_context(params: Mapping[str, Any]) -> str | None:
    return _tag("UserProfile", _user(params).profile)


def build_day_overview_context(params: Mapping[str, Any]) -> str | None:
    return _tag("DayOverview", params.get("day_overview"))


def build_date_context(params: Mapping[str, Any]) -> str | None:
    user = _user(params)
    target = _target_date(params)
    return _tag(
        "DateContext",
        f"Today is {target.strftime('%A, %B')} {target.day}, {target.year} ({user.timezone}).",
    )


def build_training_meta_context(params: Mapping[str, Any]) -> str | None:
    lines = []
    if params.get("current_week") is not None:
        lines.append(f"Current week: {params['current_week']}")
    if params.get("absolute_week") is not None:
        lines.append(f"Absolute week: {params['absolute_week']}")
    if params.get("is_deload"):
        lines.append("This is a deload week.")
    return _tag("TrainingMeta", "\n".join(lines))


def _fitness_plan_provider(services: FitnessServices):
    async def resolve(params: Mapping[str, Any]) -> str | None:
        plan_text = params.get("plan_text")
        if plan_text is None and services.fitness_plans is not None:
            plan = await services.fitness_plans.get_current_plan(_user(params).id)
            plan_text = plan.description if plan else None
        return _tag("FitnessPlan", plan_text)

    return resolve


def _workout_provider(services: FitnessServices):
    async def resolve(params: Mapping[str, Any]) -> str | None:
        workout = params.get("workout")
        if workout is None and services.workouts is not None:
            workout = await services.workouts.get_workout_by_date(_user(params).id, _target_date(params))
        if workout is None:
            return None
        if isinstance(workout, str):
            return _tag("CurrentWorkout", workout)
        header = f"Date: {workout.workout_date.isoformat()}"
        if workout.session_type:
            header += f"\nType: {workout.session_type}"
        return _tag("CurrentWorkout", f"{header}\n{workout.description}")

    return resolve


def _microcycle_provider(services: FitnessServices):
    async def resolve(params: Mapping[str, Any]) -> str | None:
        microcycle = params.get("microcycle")
        if microcycle is None and services.microcycles is not None:
            microcycle = await services.microcycles.get_microcycle_by_date(_user(params).id, _target_date(params))
        if microcycle is None:
            return None
        if isinstance(microcycle, str):
            return _tag("CurrentMicrocycle", microcycle)
        lines = []
        if microcycle.absolute_week is not None:
            lines.append(f"Week {microcycle.absolute_week}{' (deload)' if microcycle.is_deload else ''}")
        lines.append(microcycle.description)
        return _tag("CurrentMicrocycle", "\n".join(lines))

    return resolve


def _experience_level_provider(services: FitnessServices):
    async def resolve(params: Mapping[str, Any]) -> str | None:
        level = params.get("experience_level")
        if level is None and services.profiles is not None:
            profile = await services.profiles.get_structured_profile(_user(params).id)
            level = profile.experience_level if profile else None
        if level is None:
            return None
        snippet_type = params.get("snippet_type") or "workout"
        guidance = EXPERIENCE_GUIDANCE.get(level, {}).get(snippet_type)
        if guidance is None:
            return None
        return _tag("ExperienceLevel", f"Level: {level}\n{guidance}")

    return resolve


def _program_version_provider(services: FitnessServices):
    async def resolve(params: Mapping[str, Any]) -> str | None:
        if services.enrollments is None:
            return None
        version = await services.enrollments.get_program_version(_user(params).id)
        if version is None:
            return None
        title = version.program_name
        if version.version is not None:
            title += f" (v{version.version})"
        return _tag("ProgramVersion", f"{title}\n{version.content or ''}")

    return resolve


def _exercises_provider(services: FitnessServices):
    async def resolve(params: Mapping[str, Any]) -> str | None:
        names = params.get("exercises")
        if names is None and services.exercises is not None:
            names = await services.exercises.list_active_names()
        if not names:
            return None
        return _tag("AvailableExercises", "\n".join(f"- {n}" for n in names))

    return resolve


def fitness_providers(services: FitnessServices | None = None) -> list[ContextProvider]:
    """Build the fitness provider set bound to the given services."""
    services = services or FitnessServices()
    user_only = ContextParams(required=("user",))
    user_and_date = ContextParams(required=("user",), optional=("date",))

    return [
        ContextProvider(
            name="user",
            description="Basic user facts: name, gender, age",
            resolve=build_user_context,
            params=user_only,
            template_variables=("user_name",),
        ),
        ContextProvider(
            name="user_profile",
            description="The user's fitness profile document",
            resolve=build_user_profile_context,
            params=user_only,
        ),
        ContextProvider(
            name="fitness_plan",
            description="The user's current fitness plan",
            resolve=_fitness_plan_provider(services),
            params=ContextParams(required=("user",), optional=("plan_text",)),
        ),
        ContextProvider(
            name="day_overview",
            description="Caller-supplied overview of the training day",
            resolve=build_day_overview_context,
            params=ContextParams(required=("day_overview",)),
        ),
        ContextProvider(
            name="current_workout",
            description="The workout scheduled for the target date",
            resolve=_workout_provider(services),
            params=ContextParams(required=("user",), optional=("date", "workout")),
        ),
        ContextProvider(
            name="current_microcycle",
            description="The training week containing the target date",
            resolve=_microcycle_provider(services),
            params=ContextParams(required=("user",), optional=("date", "microcycle")),
        ),
        ContextProvider(
            name="date_context",
            description="Today's date in the user's timezone",
            resolve=build_date_context,
            params=user_and_date,
            template_variables=("date",),
        ),
        ContextProvider(
            name="training_meta",
            description="Week numbering and deload flag",
            resolve=build_training_meta_context,
            params=ContextParams(optional=("is_deload", "absolute_week", "current_week")),
        ),
        ContextProvider(
            name="experience_level",
            description="Language guidance for the user's experience level",
            resolve=_experience_level_provider(services),
            params=ContextParams(required=("user",), optional=("experience_level", "snippet_type")),
        ),
        ContextProvider(
            name="program_version",
            description="The program version the user is enrolled in",
            resolve=_program_version_provider(services),
            params=user_only,
        ),
        ContextProvider(
            name="available_exercises",
            description="Names of active exercises the plan may use",
            resolve=_exercises_provider(services),
            params=ContextParams(optional=("exercises",)),
        ),
    ]


def register_fitness_providers(registry: ContextRegistry, services: FitnessServices | None = None) -> ContextRegistry:
    registry.register_all(fitness_providers(services))
    return registry
