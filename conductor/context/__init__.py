"""Context providers and resolution."""

from conductor.context.providers import (
    EnrollmentReader,
    ExerciseReader,
    FitnessPlanReader,
    FitnessProfileReader,
    FitnessServices,
    MicrocycleReader,
    WorkoutReader,
    fitness_providers,
    register_fitness_providers,
)
from conductor.context.registry import (
    ContextParams,
    ContextProvider,
    ContextRegistry,
    default_registry,
)

__all__ = [
    "ContextParams",
    "ContextProvider",
    "ContextRegistry",
    "EnrollmentReader",
    "ExerciseReader",
    "FitnessPlanReader",
    "FitnessProfileReader",
    "FitnessServices",
    "MicrocycleReader",
    "WorkoutReader",
    "default_registry",
    "fitness_providers",
    "register_fitness_providers",
]
