"""Databricks serving-endpoint format adapter.

Databricks endpoints speak the chat-completions shape with two differences:
- Message content is always a list of typed parts
  ({"type": "text", "text": "..."}, images), never a bare string
- The model is selected by the URL path (/serving-endpoints/{model}/invocations),
  so the body must not carry a "model" key

Responses may return content as a string or as a list of parts; reasoning
parts ({"type": "reasoning", ...}) are not surfaced as message text.
"""

from collections.abc import Sequence
from typing import Any

from polyllm.formats.base import first_choice_message, tool_calls_to_requests
from polyllm.formats.openai import OpenAIFormat
from polyllm.logging import get_logger
from polyllm.message import Message, MessageContent, TextContent
from polyllm.types import ImageFormat, ModelConfig, Tool

logger = get_logger(__name__)


class DatabricksFormat(OpenAIFormat):
    """Request/response shaping for Databricks model serving."""

    name = "databricks"

    def build_request(
        self,
        model: ModelConfig,
        system: str,
        messages: Sequence[Message],
        tools: Sequence[Tool],
        image_format: ImageFormat,
    ) -> dict[str, Any]:
        payload = super().build_request(model, system, messages, tools, image_format)
        # Model is part of the endpoint path
        payload.pop("model", None)
        return payload

    def render_content(self, texts: list[str], images: list[dict[str, Any]]) -> Any:
        parts = [{"type": "text", "text": text} for text in texts] + images
        return parts or None

    def response_to_message(self, payload: dict[str, Any]) -> Message:
        original = first_choice_message(payload)

        content: list[MessageContent] = []
        raw = original.get("content")
        if isinstance(raw, str):
            if raw:
                content.append(TextContent(raw))
        elif isinstance(raw, list):
            for part in raw:
                if not isinstance(part, dict):
                    continue
                part_type = part.get("type")
                if part_type == "text" and isinstance(part.get("text"), str):
                    content.append(TextContent(part["text"]))
                elif part_type != "reasoning":
                    logger.debug("databricks.content_part.skipped", part_type=part_type)

        content.extend(tool_calls_to_requests(original.get("tool_calls")))
        return Message(role="assistant", content=tuple(content))
