"""Runtime settings loaded from the environment."""

from __future__ import annotations

import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel

# load environment variables
load_dotenv()


class RuntimeSettings(BaseModel):
    """Process-wide defaults for agents, prompt storage and logging."""

    model_config = {"extra": "forbid", "protected_namespaces": ()}

    openai_api_key: str | None = None

    # model defaults applied when an agent's ModelConfig leaves a field unset
    default_model: str = "gpt-5-nano"
    default_temperature: float = 1.0
    default_max_tokens: int = 16000
    default_max_iterations: int = 5

    prompt_store_url: str = "http://localhost:8000"
    prompt_store_timeout: float = 10.0

    invocation_log_dir: str | None = None  # None keeps records in memory
    log_level: str = "INFO"

    # modify pipelines
    modify_max_attempts: int = 2
    retry_backoff_seconds: float = 1.0


def _env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return value


def load_settings() -> RuntimeSettings:
    """Build settings from environment variables, keeping defaults for unset keys."""
    env_map = {
        "openai_api_key": "OPENAI_API_KEY",
        "default_model": "CONDUCTOR_DEFAULT_MODEL",
        "default_temperature": "CONDUCTOR_DEFAULT_TEMPERATURE",
        "default_max_tokens": "CONDUCTOR_DEFAULT_MAX_TOKENS",
        "default_max_iterations": "CONDUCTOR_MAX_ITERATIONS",
        "prompt_store_url": "CONDUCTOR_PROMPT_STORE_URL",
        "prompt_store_timeout": "CONDUCTOR_PROMPT_STORE_TIMEOUT",
        "invocation_log_dir": "CONDUCTOR_INVOCATION_LOG_DIR",
        "log_level": "CONDUCTOR_LOG_LEVEL",
        "modify_max_attempts": "CONDUCTOR_MODIFY_MAX_ATTEMPTS",
        "retry_backoff_seconds": "CONDUCTOR_RETRY_BACKOFF_SECONDS",
    }
    values = {field: _env(var) for field, var in env_map.items()}
    # pydantic coerces the numeric strings
    return RuntimeSettings(**{k: v for k, v in values.items() if v is not None})


@lru_cache(maxsize=1)
def get_settings() -> RuntimeSettings:
    """Return the cached process-wide settings."""
    return load_settings()
