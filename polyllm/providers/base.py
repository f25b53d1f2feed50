"""Provider contract and the shared HTTP orchestration.

Every provider implements:
- complete(system, messages, tools) -> ProviderCompleteResponse
- extract(system, messages, schema) -> ProviderExtractResponse
- usage_tracker() -> TokenUsageTracker (the shared instance, not a copy)

HttpProvider implements the contract once for all vendors:
    build payload (format adapter) -> POST -> classify non-200 ->
    parse body (format adapter) -> reconcile usage -> record usage

Vendors only supply the endpoint URL, headers, tracking key and format
adapter. Nothing in this module branches on vendor identity.

Rules:
- No retries; every ProviderError is terminal for the call
- Exactly one usage record per successful call
- Only positive vendor-reported counts are trusted; otherwise the local
  token counter supplies the number
- No logging of prompts, message content, response bodies or credentials
"""

import asyncio
import json
import time
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any

import httpx

from polyllm.errors import (
    CONTEXT_LENGTH_PHRASES,
    ProviderError,
    classify_response,
    classify_transport_error,
    invalid_url_error,
    response_parse_error,
)
from polyllm.formats.base import FormatAdapter
from polyllm.logging import bind_call_context, clear_call_context, get_logger
from polyllm.message import Message
from polyllm.redact import hash_text, safe_kv
from polyllm.token_counter import TokenCounter
from polyllm.types import (
    ImageFormat,
    ModelConfig,
    ProviderCompleteResponse,
    ProviderExtractResponse,
    Tool,
    Usage,
)
from polyllm.usage_tracker import TokenUsageTracker

logger = get_logger(__name__)


class Provider(ABC):
    """Uniform contract over one vendor's chat API."""

    name: str

    @abstractmethod
    async def complete(
        self,
        system: str,
        messages: Sequence[Message],
        tools: Sequence[Tool] = (),
    ) -> ProviderCompleteResponse:
        """Request free-form assistant output, possibly with tool calls.

        Args:
            system: System prompt.
            messages: Conversation history, oldest first.
            tools: Tools the model may call.

        Returns:
            The assistant message, resolved model name and vendor usage.

        Raises:
            ProviderError: Classified failure; never retried here.
        """

    @abstractmethod
    async def extract(
        self,
        system: str,
        messages: Sequence[Message],
        schema: dict[str, Any],
    ) -> ProviderExtractResponse:
        """Request one JSON value conforming to schema, with tool use disabled.

        Raises:
            ProviderError: Classified failure, including RESPONSE_PARSE_ERROR
                when the returned content is not usable JSON.
        """

    @abstractmethod
    def usage_tracker(self) -> TokenUsageTracker:
        """The tracker this provider records into."""


def _safe_parse_json(response: httpx.Response) -> Any:
    """Decode a JSON body, returning None on failure."""
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


class HttpProvider(Provider):
    """Provider over a JSON-over-HTTPS chat endpoint.

    Subclasses set `name` and `format`, and implement endpoint_url,
    build_headers and usage_key.
    """

    name = "http"
    format: FormatAdapter
    context_length_phrases: tuple[str, ...] = CONTEXT_LENGTH_PHRASES

    def __init__(
        self,
        model: ModelConfig,
        token_counter: TokenCounter,
        usage_tracker: TokenUsageTracker | None = None,
        *,
        timeout_s: float,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize provider.

        Args:
            model: Target model.
            token_counter: Local counter used when the vendor omits usage.
            usage_tracker: Tracker to record into; a fresh one if omitted.
            timeout_s: Timeout applied to the whole HTTP exchange.
            client: Shared httpx.AsyncClient for connection pooling. When
                omitted the provider owns a client and aclose() closes it.
        """
        self.model = model
        self.token_counter = token_counter
        self._usage_tracker = usage_tracker if usage_tracker is not None else TokenUsageTracker()
        self._timeout_s = timeout_s
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient()

    @abstractmethod
    def endpoint_url(self) -> httpx.URL:
        """Absolute URL to POST to.

        Raises:
            ProviderError: REQUEST_FAILED if the URL cannot be built.
        """

    @abstractmethod
    def build_headers(self) -> dict[str, str]:
        """Request headers, including authentication."""

    @abstractmethod
    def usage_key(self) -> str:
        """Key this provider's usage is recorded under."""

    def image_format(self) -> ImageFormat:
        return ImageFormat.OPENAI

    def usage_tracker(self) -> TokenUsageTracker:
        return self._usage_tracker

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpProvider":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def join_url(self, host: str, path: str) -> httpx.URL:
        """Join a relative endpoint path onto a base host URL."""
        try:
            base_url = httpx.URL(host)
        except httpx.InvalidURL as e:
            raise invalid_url_error(f"Invalid base URL: {e}", provider=self.name) from e

        if base_url.scheme not in ("http", "https") or not base_url.host:
            raise invalid_url_error(
                f"Invalid base URL: {host!r} is not an absolute http(s) URL",
                provider=self.name,
            )

        try:
            return base_url.join(path)
        except httpx.InvalidURL as e:
            raise invalid_url_error(
                f"Failed to construct endpoint URL: {e}", provider=self.name
            ) from e

    async def post(self, payload: dict[str, Any]) -> dict[str, Any]:
        """POST the payload and return the decoded 200 body.

        Raises:
            ProviderError: Classified from the status/body or the transport failure.
        """
        url = self.endpoint_url()

        try:
            # httpx.Timeout bounds each phase; the outer deadline bounds the whole exchange
            async with asyncio.timeout(self._timeout_s):
                response = await self._client.post(
                    url,
                    headers=self.build_headers(),
                    json=payload,
                    timeout=httpx.Timeout(self._timeout_s),
                )
        except (httpx.HTTPError, httpx.InvalidURL, TimeoutError) as e:
            raise classify_transport_error(e, provider=self.name) from e

        json_body = _safe_parse_json(response)
        error = classify_response(
            response.status_code,
            json_body,
            provider=self.name,
            context_length_phrases=self.context_length_phrases,
            raw_body=response.text,
        )
        if error is not None:
            raise error

        if not isinstance(json_body, dict):
            raise response_parse_error(
                f"Response body is not a JSON object: {type(json_body).__name__}",
                provider=self.name,
            )
        return json_body

    def reconcile_usage(
        self,
        usage: Usage,
        calculated_input_tokens: int,
        count_output_tokens: Callable[[], int],
    ) -> tuple[int, int]:
        """Pick the (input, output) totals to record.

        A vendor count is used only when it is positive; absent or zero
        counts are replaced by the local calculation.
        """
        if (usage.input_tokens or 0) > 0:
            input_tokens = usage.input_tokens
        else:
            input_tokens = calculated_input_tokens

        if (usage.output_tokens or 0) > 0:
            output_tokens = usage.output_tokens
        else:
            output_tokens = count_output_tokens()

        return input_tokens, output_tokens

    def _record(self, operation: str, input_tokens: int, output_tokens: int, usage: Usage) -> None:
        key = self.usage_key()
        self._usage_tracker.record_usage(key, input_tokens, output_tokens)
        logger.info(
            "provider.usage.recorded",
            **safe_kv(
                operation=operation,
                usage_key=key,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                reported_input_tokens=usage.input_tokens,
                reported_output_tokens=usage.output_tokens,
            ),
        )

    async def _send(self, operation: str, payload: dict[str, Any], **log_fields) -> dict[str, Any]:
        """post() wrapped with request lifecycle events."""
        logger.info(
            "provider.request.started",
            **safe_kv(operation=operation, **log_fields),
        )

        start = time.monotonic()
        try:
            response = await self.post(payload)
        except ProviderError as e:
            latency_ms = int((time.monotonic() - start) * 1000)
            logger.error(
                "provider.request.failed",
                **safe_kv(
                    operation=operation,
                    outcome="error",
                    error_class=e.error_class.value,
                    status_code=e.status_code,
                    latency_ms=latency_ms,
                ),
            )
            raise

        latency_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "provider.request.finished",
            **safe_kv(operation=operation, outcome="success", latency_ms=latency_ms),
        )
        return response

    async def complete(
        self,
        system: str,
        messages: Sequence[Message],
        tools: Sequence[Tool] = (),
    ) -> ProviderCompleteResponse:
        bind_call_context(uuid.uuid4().hex, provider=self.name, model_name=self.model.model_name)
        try:
            payload = self.format.build_request(
                self.model, system, messages, tools, self.image_format()
            )
            calculated_input_tokens = self.token_counter.count_chat_tokens(system, messages, tools)

            response = await self._send(
                "complete",
                payload,
                system_chars=len(system),
                message_count=len(messages),
                tool_count=len(tools),
            )

            try:
                parsed = self.format.parse_response(response, self.model)
            except ProviderError as e:
                e.provider = self.name
                logger.warning(
                    "provider.response.unusable",
                    **safe_kv(operation="complete", error_class=e.error_class.value),
                )
                raise

            def count_output_tokens() -> int:
                return self.token_counter.count_tokens(parsed.message.first_text() or "")

            input_tokens, output_tokens = self.reconcile_usage(
                parsed.usage, calculated_input_tokens, count_output_tokens
            )
            self._record("complete", input_tokens, output_tokens, parsed.usage)

            return ProviderCompleteResponse(
                message=parsed.message,
                model=parsed.model,
                usage=parsed.usage,
            )
        finally:
            clear_call_context()

    async def extract(
        self,
        system: str,
        messages: Sequence[Message],
        schema: dict[str, Any],
    ) -> ProviderExtractResponse:
        bind_call_context(uuid.uuid4().hex, provider=self.name, model_name=self.model.model_name)
        try:
            payload = self.format.build_request(
                self.model, system, messages, [], self.image_format()
            )
            self.format.add_extraction_format(payload, schema)
            calculated_input_tokens = self.token_counter.count_chat_tokens(system, messages, [])

            response = await self._send(
                "extract",
                payload,
                system_chars=len(system),
                message_count=len(messages),
                schema_sha256=hash_text(json.dumps(schema, sort_keys=True)),
            )

            try:
                data = self.format.parse_extract_response(response)
            except ProviderError as e:
                e.provider = self.name
                logger.warning(
                    "provider.response.unusable",
                    **safe_kv(operation="extract", error_class=e.error_class.value),
                )
                raise

            usage = self.format.safe_get_usage(response)
            model = self.format.get_model(response, self.model)

            def count_output_tokens() -> int:
                try:
                    return self.token_counter.count_tokens(json.dumps(data))
                except (TypeError, ValueError):
                    return 0

            input_tokens, output_tokens = self.reconcile_usage(
                usage, calculated_input_tokens, count_output_tokens
            )
            self._record("extract", input_tokens, output_tokens, usage)

            return ProviderExtractResponse(data=data, model=model, usage=usage)
        finally:
            clear_call_context()
