"""Base class for vendor connection configs.

An explicitly constructed config uses only the values passed in. from_env()
additionally reads process environment variables and a local .env file, by
field alias (OPENAI_API_KEY, DATABRICKS_HOST, ...).
"""

from contextvars import ContextVar
from typing import Self

from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

# Set only for the duration of a from_env() construction
_read_environment: ContextVar[bool] = ContextVar("read_environment", default=False)


class ProviderSettings(BaseSettings):
    """Vendor config that reads the environment only through from_env()."""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        if _read_environment.get():
            return init_settings, env_settings, dotenv_settings, file_secret_settings
        return (init_settings,)

    @classmethod
    def from_env(cls) -> Self:
        """Load from the process environment (and .env).

        Raises:
            ValidationError: If a required variable is missing or invalid.
        """
        token = _read_environment.set(True)
        try:
            return cls()
        finally:
            _read_environment.reset(token)
