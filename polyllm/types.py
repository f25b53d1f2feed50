"""Shared type definitions for the provider layer.

- ModelConfig: which model a provider targets, plus sampling parameters
- Tool: a tool declaration (name, description, JSON-schema parameters)
- ImageFormat: how image content is encoded in a request payload
- Usage: token usage exactly as the vendor reported it
- ParsedResponse: output of a format adapter's parse_response
- ProviderCompleteResponse / ProviderExtractResponse: results handed to callers

Usage invariants:
- None means "not reported"; 0 means "reported as zero"
- Usage on a response is never the locally calculated value; reconciled
  totals only go to the usage tracker
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from polyllm.message import Message


class ImageFormat(str, Enum):
    """Encoding used for image content in request payloads."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"


@dataclass(frozen=True)
class ModelConfig:
    """Target model and sampling parameters.

    Attributes:
        model_name: Vendor model identifier sent on the wire (or in the URL)
        model_id: Display identifier; defaults to model_name
        temperature: Sampling temperature, None uses the vendor default
        max_tokens: Completion token cap, None uses the vendor default
        context_limit: Context window size, informational
    """

    model_name: str
    model_id: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    context_limit: int | None = None

    def __post_init__(self):
        if not self.model_name:
            raise ValueError("model_name must be a non-empty string")
        if self.model_id is None:
            object.__setattr__(self, "model_id", self.model_name)

    def with_temperature(self, temperature: float | None) -> "ModelConfig":
        return replace(self, temperature=temperature)

    def with_max_tokens(self, max_tokens: int | None) -> "ModelConfig":
        return replace(self, max_tokens=max_tokens)


@dataclass(frozen=True)
class Tool:
    """Tool declaration offered to the model.

    Attributes:
        name: Function name (vendors require [a-zA-Z0-9_-]+)
        description: What the tool does
        input_schema: JSON schema for the arguments object
    """

    name: str
    description: str
    input_schema: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Usage:
    """Token usage as reported by the vendor.

    Attributes:
        input_tokens: Prompt tokens
        output_tokens: Completion tokens
        total_tokens: Total tokens (reported, or input + output)
    """

    input_tokens: int | None = None
    output_tokens: int | None = None
    total_tokens: int | None = None


@dataclass(frozen=True)
class ParsedResponse:
    """Vendor response converted to common types."""

    message: Message
    usage: Usage
    model: str


@dataclass(frozen=True)
class ProviderCompleteResponse:
    """Result of Provider.complete."""

    message: Message
    model: str
    usage: Usage


@dataclass(frozen=True)
class ProviderExtractResponse:
    """Result of Provider.extract.

    Attributes:
        data: Parsed JSON value conforming to the requested schema
        model: Resolved model name
        usage: Vendor-reported usage
    """

    data: Any
    model: str
    usage: Usage
