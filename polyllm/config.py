"""Library settings loaded from environment variables.

Environment Configuration:
    POLYLLM_ENV: Deployment environment (local | test | staging | prod)
    POLYLLM_LOG_JSON: Emit JSON logs (true) or console-friendly logs (false)
    POLYLLM_LOG_LEVEL: Root log level name (default INFO)

Provider credentials are not part of these settings. Each provider owns its
own config class (see polyllm.providers.openai / polyllm.providers.databricks)
so that a missing credential fails at provider construction, not at import.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Environment(str, Enum):
    """Valid deployment environments."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


class Settings(BaseSettings):
    """Process-wide configuration for logging and log guards."""

    polyllm_env: Environment = Field(default=Environment.LOCAL, alias="POLYLLM_ENV")
    log_json: bool = Field(default=True, alias="POLYLLM_LOG_JSON")
    log_level: str = Field(default="INFO", alias="POLYLLM_LOG_LEVEL")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Normalize and check the log level name."""
        normalized = value.strip().upper()
        if normalized not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"POLYLLM_LOG_LEVEL must be a standard level name, got {value!r}")
        return normalized

    @property
    def is_strict_env(self) -> bool:
        """Whether log-guard violations should raise instead of warn."""
        return self.polyllm_env in (Environment.LOCAL, Environment.TEST)


@lru_cache
def get_settings() -> Settings:
    """Get cached library settings.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If a setting is present but invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
