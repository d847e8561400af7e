"""ID generation and timestamp utilities."""

import uuid
from datetime import datetime, timezone


def generate_invocation_id() -> str:
    """Generate a unique invocation ID (UUID4)."""
    return str(uuid.uuid4())


def generate_tool_call_id(iteration: int, index: int) -> str:
    """Generate a tool call ID for calls the model left unnamed."""
    return f"call_{iteration}_{index}"


def utc_timestamp() -> str:
    """Generate an ISO8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()
