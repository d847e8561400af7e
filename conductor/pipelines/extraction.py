"""Delimiter-based section extraction for long-form documents."""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping, Sequence

from pydantic import BaseModel

logger = logging.getLogger(__name__)

# ***** MICROCYCLE 1: Foundation *****
MICROCYCLE_DELIMITER = re.compile(r"\*{5}\s*MICROCYCLE\s+(\d+)\s*:\s*([^*\n]*?)\s*\*{5}")
# --- MESOCYCLE 1: Accumulation ---
MESOCYCLE_DELIMITER = re.compile(r"-{3}\s*MESOCYCLE\s+(\d+)\s*:\s*([^\n]*?)\s*-{3}")


def extract_sections(text: str, pattern: re.Pattern[str], label: str = "section") -> list[str]:
    """Slice ``text`` between consecutive delimiter matches.

    The last slice runs to the end of the document. Text before the first
    delimiter is discarded. No delimiters yields an empty list and a warning.
    """
    matches = list(pattern.finditer(text or ""))
    if not matches:
        logger.warning("No %s delimiters found in long-form output", label)
        return []

    sections = []
    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        sections.append(text[match.end():end].strip())
    return sections


def extract_microcycles(text: str) -> list[str]:
    return extract_sections(text, MICROCYCLE_DELIMITER, label="microcycle")


def extract_mesocycles(text: str) -> list[str]:
    return extract_sections(text, MESOCYCLE_DELIMITER, label="mesocycle")


class SectionCountValidation(BaseModel):
    is_valid: bool
    error: str | None = None


def validate_section_count(declared: int, sections: Sequence[Any], label: str = "sections") -> SectionCountValidation:
    """Compare a declared section count with what was actually extracted."""
    actual = len(sections)
    if declared != actual:
        return SectionCountValidation(
            is_valid=False,
            error=f"Declared {declared} {label} but extracted {actual}",
        )
    return SectionCountValidation(is_valid=True)


def validate_microcycle_count(output: Mapping[str, Any]) -> SectionCountValidation:
    """Check ``number_of_microcycles`` against the ``microcycles`` list."""
    return validate_section_count(
        output["number_of_microcycles"],
        output.get("microcycles") or [],
        label="microcycles",
    )


def validate_mesocycle_count(output: Mapping[str, Any]) -> SectionCountValidation:
    return validate_section_count(
        output["number_of_mesocycles"],
        output.get("mesocycles") or [],
        label="mesocycles",
    )
