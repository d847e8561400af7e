"""Prompt store access for agents that do not declare their own prompts.

Agents are keyed by name; the store answers with a system prompt and an
optional user-prompt template:

    store = HttpPromptStore(base_url="http://localhost:8000")
    prompts = store.get_prompts("mesocycle-generate")
"""

from __future__ import annotations

from functools import lru_cache
from typing import Protocol

import httpx

from conductor.config import RuntimeSettings
from conductor.errors import PromptStoreError
from conductor.models.agent_config import AgentPrompts


class PromptStore(Protocol):
    """Returns the prompts registered for an agent name."""

    def get_prompts(self, agent_name: str) -> AgentPrompts:
        ...


class InMemoryPromptStore:
    """Dictionary-backed store for local runs and tests."""

    def __init__(self, prompts: dict[str, AgentPrompts] | None = None) -> None:
        self._prompts: dict[str, AgentPrompts] = dict(prompts or {})
        self.lookups: list[str] = []

    def add(self, agent_name: str, system_prompt: str, user_prompt: str | None = None) -> None:
        self._prompts[agent_name] = AgentPrompts(system_prompt=system_prompt, user_prompt=user_prompt)

    def get_prompts(self, agent_name: str) -> AgentPrompts:
        self.lookups.append(agent_name)
        try:
            return self._prompts[agent_name]
        except KeyError:
            raise PromptStoreError(f"No prompts stored for agent: {agent_name}") from None


class HttpPromptStore:
    """Load prompts from the prompt service.

    Caches by agent name to avoid repeated network calls for the same agent.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: Base URL of the prompt service
            timeout: HTTP request timeout in seconds
            transport: optional httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._cache: dict[str, AgentPrompts] = {}

    def get_prompts(self, agent_name: str) -> AgentPrompts:
        """Fetch the system prompt and user-prompt template for an agent."""
        if agent_name in self._cache:
            return self._cache[agent_name]

        url = f"{self.base_url}/api/agents/{agent_name}/prompts"

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.get(url)

                if response.status_code == 404:
                    raise PromptStoreError(f"No prompts stored for agent: {agent_name}")

                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise PromptStoreError(
                f"Failed to load prompts for {agent_name} from {self.base_url}: {e}"
            ) from e

        prompts = AgentPrompts(
            system_prompt=data.get("system_prompt") or data.get("systemPrompt") or "",
            user_prompt=data.get("user_prompt", data.get("userPrompt")),
        )
        if not prompts.system_prompt:
            raise PromptStoreError(f"Prompt store returned no system prompt for agent: {agent_name}")

        self._cache[agent_name] = prompts
        return prompts

    def clear_cache(self) -> None:
        """Clear the prompt cache."""
        self._cache.clear()

    def preload(self, agent_names: list[str]) -> None:
        """Preload prompts for several agents into the cache."""
        for name in agent_names:
            self.get_prompts(name)


@lru_cache(maxsize=None)
def _shared_http_store(base_url: str, timeout: float) -> HttpPromptStore:
    return HttpPromptStore(base_url=base_url, timeout=timeout)


def default_prompt_store(settings: RuntimeSettings) -> HttpPromptStore:
    """One HTTP store per configured service, so agents share its prompt cache."""
    return _shared_http_store(settings.prompt_store_url, settings.prompt_store_timeout)
