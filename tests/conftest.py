"""Pytest configuration and fixtures for polyllm tests.

Test isolation strategy:
- Provider environment variables are cleared for every test; tests that
  exercise from_env() set exactly what they need with monkeypatch
- POLYLLM_ENV=test so the log guard raises on forbidden keys
- A whitespace token counter stands in for tiktoken so expected usage
  numbers are exact and no encoding files are downloaded
"""

import httpx
import pytest

from polyllm.config import clear_settings_cache
from polyllm.message import Message
from polyllm.token_counter import TokenCounter
from polyllm.types import ModelConfig
from polyllm.usage_tracker import TokenUsageTracker

PROVIDER_ENV_VARS = (
    "OPENAI_API_KEY",
    "OPENAI_HOST",
    "OPENAI_BASE_PATH",
    "OPENAI_ORGANIZATION",
    "OPENAI_PROJECT",
    "OPENAI_CUSTOM_HEADERS",
    "OPENAI_TIMEOUT",
    "DATABRICKS_HOST",
    "DATABRICKS_TOKEN",
    "DATABRICKS_IMAGE_FORMAT",
    "DATABRICKS_TIMEOUT",
)


class WhitespaceTokenCounter(TokenCounter):
    """Counts whitespace-separated words. Deterministic and offline."""

    def count_tokens(self, text: str) -> int:
        return len(text.split())


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Strip provider credentials and pin the test environment."""
    for name in PROVIDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("POLYLLM_ENV", "test")
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def token_counter() -> WhitespaceTokenCounter:
    return WhitespaceTokenCounter()


@pytest.fixture
def usage_tracker() -> TokenUsageTracker:
    return TokenUsageTracker()


@pytest.fixture
def httpx_client():
    """Create an httpx AsyncClient for testing."""
    return httpx.AsyncClient()


@pytest.fixture
def user_messages() -> list[Message]:
    return [Message.user().with_text("Hello!")]


@pytest.fixture
def openai_model() -> ModelConfig:
    return ModelConfig("gpt-4o", temperature=0.7)


@pytest.fixture
def databricks_model() -> ModelConfig:
    return ModelConfig("databricks-claude-3-7-sonnet")
