"""Composed agent output."""

from typing import Any


class ComposedOutput(dict):
    """Result of one agent invocation.

    Always carries ``response`` (the main output). ``messages`` is present only
    when the tool loop accumulated user-facing messages. Every other key is a
    sub-agent result keyed by its batch key.
    """

    RESERVED_KEYS = frozenset({"response", "messages"})

    @property
    def response(self) -> Any:
        return self["response"]

    @property
    def messages(self) -> list[str]:
        return self.get("messages", [])

    @property
    def sub_results(self) -> dict[str, Any]:
        return {k: v for k, v in self.items() if k not in self.RESERVED_KEYS}
