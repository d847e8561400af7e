"""Long-form generation pipelines."""

from conductor.pipelines.extraction import (
    MESOCYCLE_DELIMITER,
    MICROCYCLE_DELIMITER,
    SectionCountValidation,
    extract_mesocycles,
    extract_microcycles,
    extract_sections,
    validate_mesocycle_count,
    validate_microcycle_count,
    validate_section_count,
)
from conductor.pipelines.fitness_plan import FitnessPlanPipeline
from conductor.pipelines.mesocycle import MesocyclePipeline
from conductor.pipelines.models import PipelineChainContext
from conductor.pipelines.retry import retry_async
from conductor.pipelines.stages import parallel_assign, sequence

__all__ = [
    "FitnessPlanPipeline",
    "MESOCYCLE_DELIMITER",
    "MICROCYCLE_DELIMITER",
    "MesocyclePipeline",
    "PipelineChainContext",
    "SectionCountValidation",
    "extract_mesocycles",
    "extract_microcycles",
    "extract_sections",
    "parallel_assign",
    "retry_async",
    "sequence",
    "validate_mesocycle_count",
    "validate_microcycle_count",
    "validate_section_count",
]
