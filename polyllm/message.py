"""Provider-agnostic conversation model.

A Message is one conversation turn with a role and an ordered list of content
segments. Format adapters convert messages to and from each vendor's shape;
nothing in this module knows about any vendor.

Content variants:
- TextContent: plain text
- ImageContent: base64 image data with its MIME type
- ToolRequest: the assistant asking for a tool call (or a malformed request)
- ToolResponse: the result of a tool call (or the error it produced)
"""

import time
from dataclasses import dataclass, field, replace
from typing import Any, Literal

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class TextContent:
    """Plain text segment."""

    text: str


@dataclass(frozen=True)
class ImageContent:
    """Base64-encoded image segment.

    Attributes:
        data: Base64 image bytes (no data-URL prefix)
        mime_type: e.g. "image/png"
    """

    data: str
    mime_type: str


@dataclass(frozen=True)
class ToolCall:
    """A named tool invocation with JSON arguments."""

    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolRequest:
    """Assistant request to run a tool.

    Exactly one of tool_call / error is set. A vendor may return a tool call
    we cannot use (bad function name, unparseable arguments); that is kept as
    an error so the conversation can report it back instead of failing.
    """

    id: str
    tool_call: ToolCall | None = None
    error: str | None = None

    @property
    def is_error(self) -> bool:
        return self.tool_call is None


@dataclass(frozen=True)
class ToolResponse:
    """Result of a tool call, keyed by the originating request id."""

    id: str
    tool_result: tuple["TextContent | ImageContent", ...] | None = None
    error: str | None = None

    @property
    def is_error(self) -> bool:
        return self.tool_result is None

    def text(self) -> str:
        """Concatenated text of the result (empty for errors)."""
        if self.tool_result is None:
            return ""
        return "\n".join(c.text for c in self.tool_result if isinstance(c, TextContent))


MessageContent = TextContent | ImageContent | ToolRequest | ToolResponse


@dataclass(frozen=True)
class Message:
    """One conversation turn.

    Attributes:
        role: "user" or "assistant"
        content: Ordered content segments
        created: Unix timestamp (seconds) of creation
    """

    role: Role
    content: tuple[MessageContent, ...] = ()
    created: int = field(default_factory=lambda: int(time.time()))

    @classmethod
    def user(cls) -> "Message":
        return cls(role="user")

    @classmethod
    def assistant(cls) -> "Message":
        return cls(role="assistant")

    def with_content(self, content: MessageContent) -> "Message":
        """Return a copy with one more content segment."""
        return replace(self, content=self.content + (content,))

    def with_text(self, text: str) -> "Message":
        return self.with_content(TextContent(text))

    def with_image(self, data: str, mime_type: str) -> "Message":
        return self.with_content(ImageContent(data=data, mime_type=mime_type))

    def with_tool_request(
        self,
        id: str,
        tool_call: ToolCall | None = None,
        error: str | None = None,
    ) -> "Message":
        return self.with_content(ToolRequest(id=id, tool_call=tool_call, error=error))

    def with_tool_response(
        self,
        id: str,
        result: list[TextContent | ImageContent] | None = None,
        error: str | None = None,
    ) -> "Message":
        tool_result = tuple(result) if result is not None else None
        return self.with_content(ToolResponse(id=id, tool_result=tool_result, error=error))

    def first_text(self) -> str | None:
        """Text of the first text segment, if any."""
        for content in self.content:
            if isinstance(content, TextContent):
                return content.text
        return None

    def tool_requests(self) -> list[ToolRequest]:
        """All tool-request segments, in order."""
        return [c for c in self.content if isinstance(c, ToolRequest)]

    def as_concat_text(self) -> str:
        """All text segments joined by newlines."""
        return "\n".join(c.text for c in self.content if isinstance(c, TextContent))
