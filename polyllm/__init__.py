"""Provider abstraction layer for chat completion and structured extraction.

This package provides one interface over wire-incompatible LLM backends
(OpenAI-compatible APIs, Databricks serving endpoints). It includes:

- Providers with async complete/extract over httpx.AsyncClient
- Per-vendor format adapters (request building, response parsing)
- Error classification into one shared taxonomy
- Usage reconciliation and a shared, thread-safe usage tracker

Usage:
    from polyllm import Message, ModelConfig, OpenAIProvider

    provider = OpenAIProvider.from_env(ModelConfig("gpt-4o"))
    response = await provider.complete(
        "You are a helpful assistant.",
        [Message.user().with_text("Hello!")],
    )
    totals = provider.usage_tracker().get_usage("gpt-4o")

Rules:
- No retries inside providers; rate limits and server errors surface to the caller
- No streaming
- No logging of prompts, message content, response bodies or credentials
"""

from polyllm.errors import (
    CONTEXT_LENGTH_PHRASES,
    ProviderError,
    ProviderErrorClass,
    UsageError,
    classify_response,
    classify_transport_error,
)
from polyllm.message import (
    ImageContent,
    Message,
    TextContent,
    ToolCall,
    ToolRequest,
    ToolResponse,
)
from polyllm.providers import (
    DatabricksProvider,
    DatabricksProviderConfig,
    HttpProvider,
    OpenAIProvider,
    OpenAIProviderConfig,
    Provider,
    create_provider,
)
from polyllm.token_counter import TiktokenCounter, TokenCounter
from polyllm.types import (
    ImageFormat,
    ModelConfig,
    ProviderCompleteResponse,
    ProviderExtractResponse,
    Tool,
    Usage,
)
from polyllm.usage_tracker import ProviderUsage, TokenUsageTracker

__all__ = [
    # Core types
    "ModelConfig",
    "Tool",
    "Usage",
    "ImageFormat",
    "ProviderCompleteResponse",
    "ProviderExtractResponse",
    # Messages
    "Message",
    "TextContent",
    "ImageContent",
    "ToolCall",
    "ToolRequest",
    "ToolResponse",
    # Providers
    "Provider",
    "HttpProvider",
    "OpenAIProvider",
    "OpenAIProviderConfig",
    "DatabricksProvider",
    "DatabricksProviderConfig",
    "create_provider",
    # Usage
    "TokenUsageTracker",
    "ProviderUsage",
    "TokenCounter",
    "TiktokenCounter",
    # Errors
    "ProviderError",
    "ProviderErrorClass",
    "UsageError",
    "CONTEXT_LENGTH_PHRASES",
    "classify_response",
    "classify_transport_error",
]
