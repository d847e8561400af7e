"""Exception taxonomy for the agent runtime.

Configuration errors are raised before any model or provider call is made.
Upstream failures (model gateway, tools, schema validation) are never wrapped
and reach the caller as raised.
"""

from __future__ import annotations


class ConductorError(Exception):
    """Base class for errors raised by conductor itself."""
    pass


class ConfigurationError(ConductorError):
    """An agent, batch or pipeline was declared incorrectly."""
    pass


class ContextConfigurationError(ConfigurationError):
    """A context request cannot be satisfied as declared."""
    pass


class UnknownContextProviderError(ContextConfigurationError):
    """One or more requested context types are not registered."""

    def __init__(self, names: list[str]) -> None:
        self.names = list(names)
        super().__init__(f"Unknown context provider(s): {', '.join(self.names)}")


class MissingContextParamsError(ContextConfigurationError):
    """Required provider parameters are missing.

    Collects every violation across every requested provider so a caller
    sees the complete list in one error.
    """

    def __init__(self, violations: dict[str, list[str]]) -> None:
        self.violations = {name: list(params) for name, params in violations.items()}
        details = "; ".join(
            f"{name} requires {', '.join(params)}"
            for name, params in self.violations.items()
        )
        super().__init__(f"Missing required context parameters: {details}")


class DuplicateContextProviderError(ContextConfigurationError):
    """A provider with the same name is already registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Context provider already registered: {name}")


class RegistryFrozenError(ContextConfigurationError):
    """The registry no longer accepts registrations."""
    pass


class PromptStoreError(ConductorError):
    """Exception raised when prompt loading fails."""
    pass


class RetryExhaustedError(ConductorError):
    """Every attempt of a bounded retry failed."""

    def __init__(self, label: str, attempts: int, last_error: BaseException | None) -> None:
        self.label = label
        self.attempts = attempts
        self.last_error = last_error
        reason = str(last_error) if last_error is not None else "Unknown error"
        super().__init__(f"{label} failed after {attempts} attempts. Last error: {reason}")


class SectionCountMismatchError(ConductorError):
    """The declared section count disagrees with the extracted sections."""
    pass


class OutputValidationError(ConductorError):
    """An agent's output failed its own validator."""

    def __init__(self, agent_name: str, errors: list[str]) -> None:
        self.agent_name = agent_name
        self.errors = list(errors)
        super().__init__(f"{agent_name} output failed validation: {', '.join(self.errors)}")
