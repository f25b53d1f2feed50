"""Provider factory: build a provider by vendor name."""

from collections.abc import Mapping
from typing import Any

import httpx

from polyllm.providers.base import HttpProvider
from polyllm.providers.databricks import DatabricksProvider, DatabricksProviderConfig
from polyllm.providers.openai import OpenAIProvider, OpenAIProviderConfig
from polyllm.token_counter import CLAUDE_ENCODING, GPT_4O_ENCODING, TiktokenCounter, TokenCounter
from polyllm.types import ModelConfig
from polyllm.usage_tracker import TokenUsageTracker

_PROVIDERS: dict[str, tuple[type[HttpProvider], type, str]] = {
    "openai": (OpenAIProvider, OpenAIProviderConfig, GPT_4O_ENCODING),
    "databricks": (DatabricksProvider, DatabricksProviderConfig, CLAUDE_ENCODING),
}


def available_providers() -> list[str]:
    """Names accepted by create_provider."""
    return sorted(_PROVIDERS)


def create_provider(
    name: str,
    config: Mapping[str, Any] | None,
    model: ModelConfig,
    *,
    token_counter: TokenCounter | None = None,
    usage_tracker: TokenUsageTracker | None = None,
    client: httpx.AsyncClient | None = None,
) -> HttpProvider:
    """Return a provider for `name` (`openai`, `databricks`).

    Args:
        name: Vendor name.
        config: Config fields (by field name or env-variable name). None
            loads the vendor config from the environment.
        model: Target model.
        token_counter: Local counter; a tiktoken counter suited to the vendor if omitted.
        usage_tracker: Tracker to share; a fresh one if omitted.
        client: Shared httpx.AsyncClient.

    Raises:
        ValueError: Unknown provider name.
        ValidationError: Invalid or incomplete config.
    """
    entry = _PROVIDERS.get(name)
    if entry is None:
        raise ValueError(f"Unknown provider: {name}")

    provider_cls, config_cls, encoding_name = entry
    provider_config = config_cls(**config) if config is not None else config_cls.from_env()

    return provider_cls(
        provider_config,
        model,
        token_counter if token_counter is not None else TiktokenCounter(encoding_name),
        usage_tracker,
        client=client,
    )
