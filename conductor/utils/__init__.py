"""Utility functions for conductor."""

from conductor.utils.concurrency import gather_fail_fast
from conductor.utils.identifiers import (
    generate_invocation_id,
    generate_tool_call_id,
    utc_timestamp,
)

__all__ = [
    "gather_fail_fast",
    "generate_invocation_id",
    "generate_tool_call_id",
    "utc_timestamp",
]
