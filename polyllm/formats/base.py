"""Abstract base class for vendor format adapters.

A format adapter is a pair of pure functions over JSON-like values:
- build_request: (model, system, messages, tools, image_format) -> payload
- parse_response: payload -> (message, usage, model name)

Rules:
- No HTTP, no retries, no usage tracking inside adapters
- Absent usage fields are "not reported" (None), never zero
- A malformed usage block raises UsageError from get_usage; parse_response
  swallows it into an empty Usage so the call still succeeds
"""

import json
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from polyllm.errors import ProviderError, ProviderErrorClass, UsageError, response_parse_error
from polyllm.logging import get_logger
from polyllm.message import ImageContent, Message, ToolCall, ToolRequest
from polyllm.types import ImageFormat, ModelConfig, ParsedResponse, Tool, Usage

logger = get_logger(__name__)

EXTRACTION_SCHEMA_NAME = "extraction"

REASONING_EFFORTS = ("low", "medium", "high")
DEFAULT_REASONING_EFFORT = "medium"
O_SERIES_PREFIXES = ("o1", "o3", "o4")

_VALID_FUNCTION_NAME = re.compile(r"^[a-zA-Z0-9_-]+$")
_INVALID_FUNCTION_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


def is_valid_function_name(name: str) -> bool:
    """Vendors only accept [a-zA-Z0-9_-]+ as function names."""
    return bool(_VALID_FUNCTION_NAME.match(name))


def sanitize_function_name(name: str) -> str:
    """Replace characters vendors reject in function names with '_'."""
    return _INVALID_FUNCTION_CHARS.sub("_", name)


def convert_image(image: ImageContent, image_format: ImageFormat) -> dict[str, Any]:
    """Encode an image content segment for a request payload."""
    if image_format == ImageFormat.ANTHROPIC:
        return {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": image.mime_type,
                "data": image.data,
            },
        }
    return {
        "type": "image_url",
        "image_url": {"url": f"data:{image.mime_type};base64,{image.data}"},
    }


def parse_reasoning_model(model_name: str) -> tuple[bool, str, str | None]:
    """Split an o-series model name into (is_o_series, wire name, effort).

    "o3-mini-high" -> (True, "o3-mini", "high"); effort defaults to medium.
    Non o-series models pass through with effort None.
    """
    if not model_name.startswith(O_SERIES_PREFIXES):
        return False, model_name, None

    base, _, suffix = model_name.rpartition("-")
    if base and suffix in REASONING_EFFORTS:
        return True, base, suffix
    return True, model_name, DEFAULT_REASONING_EFFORT


def tools_to_spec(tools: Sequence[Tool]) -> list[dict[str, Any]]:
    """Convert tool declarations to the function-calling shape.

    Raises:
        ProviderError: If two tools share a name.
    """
    seen: set[str] = set()
    spec = []
    for tool in tools:
        if tool.name in seen:
            raise ProviderError(
                ProviderErrorClass.REQUEST_FAILED,
                f"Duplicate tool name: {tool.name}",
            )
        seen.add(tool.name)
        spec.append(
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.input_schema,
                },
            }
        )
    return spec


def tool_call_to_spec(request_id: str, tool_call: ToolCall) -> dict[str, Any]:
    """Convert a successful tool request into a tool_calls entry."""
    return {
        "id": request_id,
        "type": "function",
        "function": {
            "name": sanitize_function_name(tool_call.name),
            "arguments": json.dumps(tool_call.arguments),
        },
    }


def tool_calls_to_requests(tool_calls: Any) -> list[ToolRequest]:
    """Convert a response's tool_calls array into ToolRequest segments.

    Unusable entries become ToolRequests carrying an error rather than
    failing the whole response.
    """
    if not isinstance(tool_calls, list):
        return []

    requests = []
    for tool_call in tool_calls:
        if not isinstance(tool_call, dict):
            continue
        request_id = str(tool_call.get("id", ""))
        function = tool_call.get("function") or {}
        function_name = function.get("name", "") if isinstance(function, dict) else ""
        raw_arguments = function.get("arguments", "") if isinstance(function, dict) else ""

        if not isinstance(function_name, str) or not is_valid_function_name(function_name):
            requests.append(
                ToolRequest(
                    id=request_id,
                    error=(
                        f"The provided function name '{function_name}' had invalid characters, "
                        "it must match this regex [a-zA-Z0-9_-]+"
                    ),
                )
            )
            continue

        if isinstance(raw_arguments, dict):
            arguments: Any = raw_arguments
        else:
            try:
                arguments = json.loads(raw_arguments) if raw_arguments else {}
            except (TypeError, json.JSONDecodeError) as e:
                requests.append(
                    ToolRequest(
                        id=request_id,
                        error=f"Could not interpret tool use parameters for id {request_id}: {e}",
                    )
                )
                continue

        if not isinstance(arguments, dict):
            requests.append(
                ToolRequest(
                    id=request_id,
                    error=(
                        f"Could not interpret tool use parameters for id {request_id}: "
                        f"expected an object, got {type(arguments).__name__}"
                    ),
                )
            )
            continue

        requests.append(
            ToolRequest(id=request_id, tool_call=ToolCall(name=function_name, arguments=arguments))
        )
    return requests


def first_choice_message(payload: Any) -> dict[str, Any]:
    """Return choices[0].message of a chat-completion envelope.

    Raises:
        ProviderError: RESPONSE_PARSE_ERROR if the envelope has no message.
    """
    choices = payload.get("choices") if isinstance(payload, dict) else None
    if not isinstance(choices, list) or not choices:
        raise response_parse_error("Response missing choices")
    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    if not isinstance(message, dict):
        raise response_parse_error("Response missing choices[0].message")
    return message


def _as_token_count(value: Any, field_name: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise UsageError(f"Usage field {field_name} is not an integer: {value!r}")
    return value


class FormatAdapter(ABC):
    """Vendor request/response shaping.

    Each vendor supplies one implementation; the shared provider
    orchestration never branches on vendor identity.
    """

    name: str = "base"

    @abstractmethod
    def build_request(
        self,
        model: ModelConfig,
        system: str,
        messages: Sequence[Message],
        tools: Sequence[Tool],
        image_format: ImageFormat,
    ) -> dict[str, Any]:
        """Build the JSON request payload.

        Args:
            model: Target model and sampling parameters.
            system: System prompt.
            messages: Conversation history.
            tools: Tool declarations (empty for extract).
            image_format: How to encode image content.

        Returns:
            Mutable payload dict.
        """

    @abstractmethod
    def response_to_message(self, payload: dict[str, Any]) -> Message:
        """Convert the response envelope into an assistant Message."""

    def get_usage(self, payload: dict[str, Any]) -> Usage:
        """Read vendor-reported usage from a chat-completion envelope.

        Raises:
            UsageError: If there is no usage object or a field is malformed.
        """
        usage = payload.get("usage")
        if usage is None:
            raise UsageError("No usage data in response")
        if not isinstance(usage, dict):
            raise UsageError(f"Usage is not an object: {usage!r}")

        input_tokens = _as_token_count(usage.get("prompt_tokens"), "prompt_tokens")
        output_tokens = _as_token_count(usage.get("completion_tokens"), "completion_tokens")
        total_tokens = _as_token_count(usage.get("total_tokens"), "total_tokens")
        if total_tokens is None and input_tokens is not None and output_tokens is not None:
            total_tokens = input_tokens + output_tokens

        return Usage(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=total_tokens,
        )

    def get_model(self, payload: dict[str, Any], model: ModelConfig) -> str:
        """Vendor-echoed model name, else the configured one."""
        echoed = payload.get("model")
        if isinstance(echoed, str) and echoed:
            return echoed
        return model.model_name

    def safe_get_usage(self, payload: dict[str, Any]) -> Usage:
        """get_usage, with UsageError replaced by an empty Usage."""
        try:
            return self.get_usage(payload)
        except UsageError as e:
            logger.debug("provider.usage.unavailable", format=self.name, reason=str(e))
            return Usage()

    def parse_response(self, payload: dict[str, Any], model: ModelConfig) -> ParsedResponse:
        """Convert a 2xx chat-completion body into common types."""
        message = self.response_to_message(payload)
        return ParsedResponse(
            message=message,
            usage=self.safe_get_usage(payload),
            model=self.get_model(payload, model),
        )

    def add_extraction_format(self, payload: dict[str, Any], schema: Any) -> dict[str, Any]:
        """Inject the strict JSON-schema response format used by extract."""
        payload["response_format"] = {
            "type": "json_schema",
            "json_schema": {
                "name": EXTRACTION_SCHEMA_NAME,
                "schema": schema,
                "strict": True,
            },
        }
        return payload

    def parse_extract_response(self, payload: dict[str, Any]) -> Any:
        """Pull the extracted JSON value out of choices[0].message.content.

        Raises:
            ProviderError: RESPONSE_PARSE_ERROR if the content is missing,
                is a string that is not JSON, or has an unexpected shape.
        """
        try:
            message = first_choice_message(payload)
        except ProviderError:
            raise response_parse_error("Missing content in extract response") from None

        if "content" not in message:
            raise response_parse_error("Missing content in extract response")

        raw = message["content"]
        if isinstance(raw, str):
            try:
                return json.loads(raw)
            except json.JSONDecodeError as e:
                raise response_parse_error(f"Invalid JSON: {e}") from e
        if isinstance(raw, (dict, list)):
            return raw
        raise response_parse_error(f"Unexpected content type: {raw!r}")
