"""Message construction for agent requests."""

from __future__ import annotations

import json
from typing import Any, Sequence

from pydantic import BaseModel

from conductor.models.messages import Message


def build_messages(
    system_prompt: str | None,
    user_prompt: str,
    context: Sequence[str] = (),
    previous_messages: Sequence[Message] = (),
) -> list[Message]:
    """Assemble a request in the fixed order system -> context -> previous -> user.

    Each context string becomes its own user message so providers see the
    fragments in the order the caller asked for them.
    """
    messages: list[Message] = []
    if system_prompt:
        messages.append(Message.system(system_prompt))
    messages.extend(Message.user(fragment) for fragment in context)
    messages.extend(previous_messages)
    messages.append(Message.user(user_prompt))
    return messages


def json_default(value: Any) -> Any:
    """``json.dumps`` hook: models nested in containers serialise as their fields."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return str(value)


def stringify_output(output: Any) -> str:
    """Pass strings through; JSON-serialise everything else."""
    if isinstance(output, str):
        return output
    if isinstance(output, BaseModel):
        return output.model_dump_json()
    return json.dumps(output, default=json_default)


def build_retry_feedback(previous_attempts: Sequence[tuple[Any, list[str]]]) -> list[Message]:
    """Replay failed outputs with their validation errors so the model can fix them."""
    feedback: list[Message] = []
    for output, errors in previous_attempts:
        feedback.append(Message.assistant(stringify_output(output)))
        error_list = "\n".join(f"- {e}" for e in errors)
        feedback.append(
            Message.user(f"The previous output failed validation:\n{error_list}\n\nPlease fix these issues.")
        )
    return feedback


def build_loop_continuation_message(last_tool_type: str, iteration_messages: Sequence[str]) -> str:
    """Prompt appended after a round of tool calls."""
    if last_tool_type == "query":
        return (
            "The tool results above contain the information you requested. "
            "Use them to answer the user, or call another tool if you still need more."
        )
    if iteration_messages:
        sent = "\n".join(f"- {m}" for m in iteration_messages)
        return (
            "The actions above are complete and these messages were already sent to the user:\n"
            f"{sent}\n\nDo not repeat them. Reply only with anything the user still needs to know."
        )
    return "The actions above are complete. Summarise the outcome for the user, or call another tool if needed."
