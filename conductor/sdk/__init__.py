"""SDK for loading agent prompts."""

from conductor.sdk.prompt_store import HttpPromptStore, InMemoryPromptStore, PromptStore, default_prompt_store

__all__ = [
    "default_prompt_store",
    "HttpPromptStore",
    "InMemoryPromptStore",
    "PromptStore",
]
