"""OpenAI chat-completions format adapter.

Request body:
{
  "model": "<model_name>",
  "messages": [
    {"role": "system", "content": "..."},
    {"role": "user", "content": "..."},
    {"role": "assistant", "content": "...", "tool_calls": [...]},
    {"role": "tool", "content": "...", "tool_call_id": "..."}
  ],
  "tools": [{"type": "function", "function": {...}}],
  "temperature": 0.7,
  "max_tokens": 1024
}

o-series models ("o1", "o3", "o4-mini-high", ...) use a "developer" system
role, take reasoning_effort from the model-name suffix, use
max_completion_tokens and ignore temperature.

Response (extract):
{
  "model": "gpt-4o-2024-08-06",
  "choices": [{"message": {"content": "...", "tool_calls": [...]}}],
  "usage": {"prompt_tokens": 100, "completion_tokens": 50, "total_tokens": 150}
}
"""

from collections.abc import Sequence
from typing import Any

from polyllm.formats.base import (
    FormatAdapter,
    convert_image,
    first_choice_message,
    parse_reasoning_model,
    tool_call_to_spec,
    tool_calls_to_requests,
    tools_to_spec,
)
from polyllm.message import (
    ImageContent,
    Message,
    MessageContent,
    TextContent,
    ToolRequest,
    ToolResponse,
)
from polyllm.types import ImageFormat, ModelConfig, Tool

IMAGE_IN_NEXT_MESSAGE = "This tool result included an image that is uploaded in the next message."


class OpenAIFormat(FormatAdapter):
    """Chat-completions request/response shaping for OpenAI-compatible APIs."""

    name = "openai"

    def build_request(
        self,
        model: ModelConfig,
        system: str,
        messages: Sequence[Message],
        tools: Sequence[Tool],
        image_format: ImageFormat,
    ) -> dict[str, Any]:
        is_o_series, model_name, reasoning_effort = parse_reasoning_model(model.model_name)

        system_message = {
            "role": "developer" if is_o_series else "system",
            "content": system,
        }

        payload: dict[str, Any] = {
            "model": model_name,
            "messages": [system_message, *self.messages_to_spec(messages, image_format)],
        }

        if reasoning_effort is not None:
            payload["reasoning_effort"] = reasoning_effort

        if tools:
            payload["tools"] = tools_to_spec(tools)

        if model.temperature is not None and not is_o_series:
            payload["temperature"] = model.temperature

        if model.max_tokens is not None:
            key = "max_completion_tokens" if is_o_series else "max_tokens"
            payload[key] = model.max_tokens

        return payload

    def messages_to_spec(
        self,
        messages: Sequence[Message],
        image_format: ImageFormat,
    ) -> list[dict[str, Any]]:
        """Convert conversation turns to the vendor message array.

        One Message may expand to several entries: the turn itself followed
        by one "tool" entry per tool response (and per failed tool request).
        """
        spec: list[dict[str, Any]] = []
        for message in messages:
            converted: dict[str, Any] = {"role": message.role}
            texts: list[str] = []
            images: list[dict[str, Any]] = []
            tool_calls: list[dict[str, Any]] = []
            output: list[dict[str, Any]] = []

            for content in message.content:
                if isinstance(content, TextContent):
                    if content.text:
                        texts.append(content.text)
                elif isinstance(content, ImageContent):
                    images.append(convert_image(content, image_format))
                elif isinstance(content, ToolRequest):
                    if content.tool_call is not None:
                        tool_calls.append(tool_call_to_spec(content.id, content.tool_call))
                    else:
                        output.append(
                            {
                                "role": "tool",
                                "content": f"Error: {content.error}",
                                "tool_call_id": content.id,
                            }
                        )
                elif isinstance(content, ToolResponse):
                    output.extend(self.tool_response_to_spec(content, image_format))

            rendered = self.render_content(texts, images)
            if rendered is not None:
                converted["content"] = rendered
            if tool_calls:
                converted["tool_calls"] = tool_calls
            if rendered is not None or tool_calls:
                spec.append(converted)
            spec.extend(output)

        return spec

    def render_content(self, texts: list[str], images: list[dict[str, Any]]) -> Any:
        """Message content value: a string, or typed parts when images are present."""
        if images:
            return [{"type": "text", "text": text} for text in texts] + images
        if texts:
            return "\n".join(texts)
        return None

    def tool_response_to_spec(
        self,
        response: ToolResponse,
        image_format: ImageFormat,
    ) -> list[dict[str, Any]]:
        """Tool result entry, plus a user entry per image the tool returned."""
        if response.tool_result is None:
            return [
                {
                    "role": "tool",
                    "content": f"The tool call returned the following error:\n{response.error}",
                    "tool_call_id": response.id,
                }
            ]

        parts: list[str] = []
        image_messages: list[dict[str, Any]] = []
        for item in response.tool_result:
            if isinstance(item, ImageContent):
                parts.append(IMAGE_IN_NEXT_MESSAGE)
                image_messages.append(
                    {"role": "user", "content": [convert_image(item, image_format)]}
                )
            else:
                parts.append(item.text)

        return [
            {"role": "tool", "content": " ".join(parts), "tool_call_id": response.id},
            *image_messages,
        ]

    def response_to_message(self, payload: dict[str, Any]) -> Message:
        original = first_choice_message(payload)

        content: list[MessageContent] = []
        text = original.get("content")
        if isinstance(text, str) and text:
            content.append(TextContent(text))
        content.extend(tool_calls_to_requests(original.get("tool_calls")))

        return Message(role="assistant", content=tuple(content))
