"""Databricks model-serving provider.

Endpoint: POST {host}/serving-endpoints/{model_name}/invocations
Headers:
    Authorization: Bearer <token>

The model is selected by the path, so request bodies never carry "model".

Environment Configuration:
    DATABRICKS_HOST: Workspace URL (required)
    DATABRICKS_TOKEN: Personal access or service-principal token (required)
    DATABRICKS_IMAGE_FORMAT: openai | anthropic (default openai)
    DATABRICKS_TIMEOUT: Request timeout in seconds (default 60)

Usage is tracked under the configured model name (ModelConfig.model_name).
"""

import httpx
from pydantic import Field

from polyllm.formats.databricks import DatabricksFormat
from polyllm.providers.base import HttpProvider
from polyllm.providers.settings import ProviderSettings
from polyllm.token_counter import CLAUDE_ENCODING, TiktokenCounter, TokenCounter
from polyllm.types import ImageFormat, ModelConfig
from polyllm.usage_tracker import TokenUsageTracker

DATABRICKS_DEFAULT_MODEL = "databricks-claude-3-7-sonnet"
# Databricks can pass through to many models; these are the ones we default to
DATABRICKS_KNOWN_MODELS = [
    "databricks-meta-llama-3-3-70b-instruct",
    "databricks-claude-3-7-sonnet",
]

DEFAULT_TIMEOUT_S = 60


class DatabricksProviderConfig(ProviderSettings):
    """Connection parameters for a Databricks workspace."""

    host: str = Field(alias="DATABRICKS_HOST", min_length=1)
    token: str = Field(alias="DATABRICKS_TOKEN", min_length=1, repr=False)
    image_format: ImageFormat = Field(default=ImageFormat.OPENAI, alias="DATABRICKS_IMAGE_FORMAT")
    timeout: float = Field(default=DEFAULT_TIMEOUT_S, alias="DATABRICKS_TIMEOUT", gt=0)


class DatabricksProvider(HttpProvider):
    """Provider for Databricks serving endpoints."""

    name = "databricks"
    format = DatabricksFormat()

    def __init__(
        self,
        config: DatabricksProviderConfig,
        model: ModelConfig,
        token_counter: TokenCounter,
        usage_tracker: TokenUsageTracker | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(
            model,
            token_counter,
            usage_tracker,
            timeout_s=config.timeout,
            client=client,
        )
        self.config = config

    @classmethod
    def from_env(
        cls,
        model: ModelConfig | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> "DatabricksProvider":
        """Build a provider from DATABRICKS_* variables with a Claude-approximating counter."""
        return cls(
            DatabricksProviderConfig.from_env(),
            model or ModelConfig(DATABRICKS_DEFAULT_MODEL),
            TiktokenCounter(CLAUDE_ENCODING),
            TokenUsageTracker(),
            client=client,
        )

    def endpoint_url(self) -> httpx.URL:
        path = f"serving-endpoints/{self.model.model_name}/invocations"
        return self.join_url(self.config.host, path)

    def build_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.config.token}"}

    def image_format(self) -> ImageFormat:
        return self.config.image_format

    def usage_key(self) -> str:
        return self.model.model_name
