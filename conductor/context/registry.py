"""Named context providers and the registry that resolves them.

Resolution has two phases that never interleave. Phase one checks that every
requested provider exists and that every required parameter is present,
collecting all violations before raising. Phase two resolves the providers
concurrently and returns the non-empty fragments in request order.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Mapping, Union

from conductor.errors import (
    DuplicateContextProviderError,
    MissingContextParamsError,
    RegistryFrozenError,
    UnknownContextProviderError,
)
from conductor.utils.concurrency import gather_fail_fast

logger = logging.getLogger(__name__)

ResolveResult = Union[str, None]
ResolveFn = Callable[[Mapping[str, Any]], Union[ResolveResult, Awaitable[ResolveResult]]]


@dataclass(frozen=True)
class ContextParams:
    required: tuple[str, ...] = ()
    optional: tuple[str, ...] = ()


@dataclass(frozen=True)
class ContextProvider:
    """A named context fragment.

    resolve may be a plain function or a coroutine function. Returning None or
    a blank string means "nothing to add" and the fragment is dropped.
    """

    name: str
    description: str
    resolve: ResolveFn
    params: ContextParams = field(default_factory=ContextParams)
    template_variables: tuple[str, ...] = ()

    def missing_params(self, params: Mapping[str, Any]) -> list[str]:
        return [p for p in self.params.required if params.get(p) is None]


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


class ContextRegistry:
    """Process-wide lookup of context providers keyed by name.

    Populated once at startup, then optionally frozen. Lookups after that are
    read-only and safe from concurrent resolutions.
    """

    def __init__(self) -> None:
        self._providers: dict[str, ContextProvider] = {}
        self._frozen = False

    def register(self, provider: ContextProvider) -> ContextProvider:
        if self._frozen:
            raise RegistryFrozenError(f"Registry is frozen; cannot register '{provider.name}'")
        if provider.name in self._providers:
            raise DuplicateContextProviderError(provider.name)
        self._providers[provider.name] = provider
        return provider

    def register_all(self, providers: Iterable[ContextProvider]) -> None:
        for provider in providers:
            self.register(provider)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> ContextProvider | None:
        return self._providers.get(name)

    def names(self) -> list[str]:
        return list(self._providers)

    def __contains__(self, name: object) -> bool:
        return name in self._providers

    def __len__(self) -> int:
        return len(self._providers)

    def describe(self) -> list[dict[str, Any]]:
        """Catalog of registered providers, in registration order."""
        return [
            {
                "name": p.name,
                "description": p.description,
                "params": {"required": list(p.params.required), "optional": list(p.params.optional)},
                "template_variables": list(p.template_variables),
            }
            for p in self._providers.values()
        ]

    def validate(self, context_types: Iterable[str], params: Mapping[str, Any]) -> list[ContextProvider]:
        """Phase one: raise on unknown providers, then on all missing parameters at once."""
        context_types = list(context_types)
        unknown = [name for name in context_types if name not in self._providers]
        if unknown:
            raise UnknownContextProviderError(unknown)

        providers = [self._providers[name] for name in context_types]
        violations: dict[str, list[str]] = {}
        for provider in providers:
            missing = provider.missing_params(params)
            if missing:
                violations[provider.name] = missing
        if violations:
            raise MissingContextParamsError(violations)
        return providers

    async def resolve(self, context_types: Iterable[str], params: Mapping[str, Any] | None = None) -> list[str]:
        """Resolve the requested providers into ordered context strings.

        Args:
            context_types: provider names; output follows this order
            params: parameters shared by every provider

        Returns:
            Non-empty fragments in request order

        Raises:
            UnknownContextProviderError: a name is not registered
            MissingContextParamsError: required parameters are missing
        """
        params = dict(params or {})
        providers = self.validate(context_types, params)
        if not providers:
            return []

        logger.debug("Resolving context: %s", ", ".join(p.name for p in providers))
        results = await gather_fail_fast(_resolve_one(p, params) for p in providers)
        return [r for r in results if not _is_blank(r)]


async def _resolve_one(provider: ContextProvider, params: Mapping[str, Any]) -> ResolveResult:
    result = provider.resolve(params)
    if inspect.isawaitable(result):
        result = await result
    return result


_default_registry: ContextRegistry | None = None


def default_registry() -> ContextRegistry:
    """Return the process-wide registry, creating it empty on first use."""
    global _default_registry
    if _default_registry is None:
        _default_registry = ContextRegistry()
    return _default_registry
