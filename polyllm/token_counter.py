"""Local token counting used when a vendor does not report usage.

TokenCounter defines the two operations providers rely on:
- count_tokens(text)
- count_chat_tokens(system, messages, tools)

Subclasses only implement count_tokens; the chat accounting (per-message
overhead, tool schema overhead, reply primer) is shared.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

import tiktoken

from polyllm.message import Message, TextContent, ToolRequest, ToolResponse
from polyllm.types import Tool

GPT_4O_ENCODING = "o200k_base"
# Claude does not publish a tokenizer; cl100k_base is the usual approximation.
CLAUDE_ENCODING = "cl100k_base"

TOKENS_PER_MESSAGE = 4
REPLY_PRIMER_TOKENS = 3

# Tool schema overhead, per function and per property.
FUNC_INIT = 7
PROP_INIT = 3
PROP_KEY = 3
ENUM_INIT = -3
ENUM_ITEM = 3
FUNC_END = 12


class TokenCounter(ABC):
    """Counts tokens for prompts, messages and tool declarations."""

    @abstractmethod
    def count_tokens(self, text: str) -> int:
        """Number of tokens in text."""

    def count_tokens_for_tools(self, tools: Sequence[Tool]) -> int:
        """Approximate prompt overhead of the tool declarations."""
        if not tools:
            return 0

        count = 0
        for tool in tools:
            count += FUNC_INIT
            description = tool.description.rstrip(".")
            count += self.count_tokens(f"{tool.name}:{description}")

            properties = tool.input_schema.get("properties")
            if isinstance(properties, dict) and properties:
                count += PROP_INIT
                for key, value in properties.items():
                    count += PROP_KEY
                    value = value if isinstance(value, dict) else {}
                    p_type = value.get("type") if isinstance(value.get("type"), str) else ""
                    p_desc = value.get("description") if isinstance(value.get("description"), str) else ""
                    count += self.count_tokens(f"{key}:{p_type}:{p_desc.rstrip('.')}")

                    enum_values = value.get("enum")
                    if isinstance(enum_values, list):
                        count = max(0, count + ENUM_INIT)
                        for item in enum_values:
                            if isinstance(item, str):
                                count += ENUM_ITEM
                                count += self.count_tokens(item)

        return count + FUNC_END

    def count_chat_tokens(
        self,
        system: str,
        messages: Sequence[Message],
        tools: Sequence[Tool],
    ) -> int:
        """Approximate input tokens of a full chat request."""
        num_tokens = 0
        if system:
            num_tokens += self.count_tokens(system) + TOKENS_PER_MESSAGE

        for message in messages:
            num_tokens += TOKENS_PER_MESSAGE
            for content in message.content:
                if isinstance(content, TextContent):
                    num_tokens += self.count_tokens(content.text)
                elif isinstance(content, ToolRequest) and content.tool_call is not None:
                    call = content.tool_call
                    num_tokens += self.count_tokens(f"{content.id}:{call.name}:{call.arguments}")
                elif isinstance(content, ToolResponse):
                    num_tokens += self.count_tokens(content.text())

        num_tokens += self.count_tokens_for_tools(tools)
        return num_tokens + REPLY_PRIMER_TOKENS


class TiktokenCounter(TokenCounter):
    """Token counter backed by a tiktoken encoding.

    The encoding is loaded on first use, since tiktoken may need to fetch
    the BPE ranks.
    """

    def __init__(self, encoding_name: str = GPT_4O_ENCODING):
        self.encoding_name = encoding_name
        self._encoding: tiktoken.Encoding | None = None

    @property
    def encoding(self) -> tiktoken.Encoding:
        if self._encoding is None:
            self._encoding = tiktoken.get_encoding(self.encoding_name)
        return self._encoding

    def count_tokens(self, text: str) -> int:
        if not text:
            return 0
        return len(self.encoding.encode(text, disallowed_special=()))
