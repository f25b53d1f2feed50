"""OpenAI (and OpenAI-compatible) provider.

Endpoint: POST {host}/{base_path}   (default https://api.openai.com/v1/chat/completions)
Headers:
    Authorization: Bearer <api_key>
    OpenAI-Organization: <organization>   (optional)
    OpenAI-Project: <project>             (optional)
    <custom headers>                      (optional)

Environment Configuration:
    OPENAI_API_KEY: API key (required)
    OPENAI_HOST: Base URL (default https://api.openai.com)
    OPENAI_BASE_PATH: Path joined onto the host (default v1/chat/completions)
    OPENAI_ORGANIZATION / OPENAI_PROJECT: Optional account scoping
    OPENAI_CUSTOM_HEADERS: JSON object of extra headers
    OPENAI_TIMEOUT: Request timeout in seconds (default 600)

Usage is tracked under the model's display id (ModelConfig.model_id).
"""

import httpx
from pydantic import Field

from polyllm.formats.openai import OpenAIFormat
from polyllm.providers.base import HttpProvider
from polyllm.providers.settings import ProviderSettings
from polyllm.token_counter import GPT_4O_ENCODING, TiktokenCounter, TokenCounter
from polyllm.types import ModelConfig
from polyllm.usage_tracker import TokenUsageTracker

OPENAI_DEFAULT_MODEL = "gpt-4o"
OPENAI_KNOWN_MODELS = ["gpt-4o", "gpt-4.1", "o1", "o3", "o4-mini"]

DEFAULT_HOST = "https://api.openai.com"
DEFAULT_BASE_PATH = "v1/chat/completions"
DEFAULT_TIMEOUT_S = 600


class OpenAIProviderConfig(ProviderSettings):
    """Connection parameters for an OpenAI-compatible endpoint.

    Construct explicitly by field name (the environment is not consulted),
    or with from_env() to read the OPENAI_* variables. A missing API key
    fails validation immediately.
    """

    api_key: str = Field(alias="OPENAI_API_KEY", min_length=1, repr=False)
    host: str = Field(default=DEFAULT_HOST, alias="OPENAI_HOST")
    base_path: str = Field(default=DEFAULT_BASE_PATH, alias="OPENAI_BASE_PATH")
    organization: str | None = Field(default=None, alias="OPENAI_ORGANIZATION")
    project: str | None = Field(default=None, alias="OPENAI_PROJECT")
    custom_headers: dict[str, str] | None = Field(
        default=None, alias="OPENAI_CUSTOM_HEADERS", repr=False
    )
    timeout: float = Field(default=DEFAULT_TIMEOUT_S, alias="OPENAI_TIMEOUT", gt=0)


class OpenAIProvider(HttpProvider):
    """Provider for the OpenAI chat-completions API."""

    name = "openai"
    format = OpenAIFormat()

    def __init__(
        self,
        config: OpenAIProviderConfig,
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
    ) -> "OpenAIProvider":
        """Build a provider from OPENAI_* variables with a tiktoken counter."""
        return cls(
            OpenAIProviderConfig.from_env(),
            model or ModelConfig(OPENAI_DEFAULT_MODEL),
            TiktokenCounter(GPT_4O_ENCODING),
            TokenUsageTracker(),
            client=client,
        )

    def endpoint_url(self) -> httpx.URL:
        return self.join_url(self.config.host, self.config.base_path)

    def build_headers(self) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self.config.api_key}"}

        if self.config.organization:
            headers["OpenAI-Organization"] = self.config.organization

        if self.config.project:
            headers["OpenAI-Project"] = self.config.project

        if self.config.custom_headers:
            headers.update(self.config.custom_headers)

        return headers

    def usage_key(self) -> str:
        return self.model.model_id
