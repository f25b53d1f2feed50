"""Provider error classification and normalization.

Classifies vendor HTTP responses and transport failures into one shared
taxonomy. Classification is a pure function of (status code, decoded body)
so it can be unit-tested without any network code.

Error classes:
- E_PROVIDER_AUTHENTICATION: Authentication failure (401/403)
- E_PROVIDER_CONTEXT_LENGTH_EXCEEDED: 400 whose body reads like a context overflow
- E_PROVIDER_RATE_LIMIT_EXCEEDED: Rate limit exceeded (429)
- E_PROVIDER_SERVER_ERROR: Provider failure (500/503)
- E_PROVIDER_REQUEST_FAILED: Any other status, transport failure, or bad URL
- E_PROVIDER_RESPONSE_PARSE_ERROR: 200 response whose body cannot be used

None of these are retried here. UsageError is separate: it never aborts a
call and is replaced by an empty Usage at the point of extraction.
"""

import json
from collections.abc import Iterable
from enum import Enum
from typing import Any

import httpx

from polyllm.logging import get_logger

logger = get_logger(__name__)

# Lower-cased phrases that mark a 400 body as a context-window overflow.
CONTEXT_LENGTH_PHRASES: tuple[str, ...] = (
    "too long",
    "context length",
    "context_length_exceeded",
    "reduce the length",
    "token count",
    "exceeds",
    "exceed context limit",
    "input length",
    "max_tokens",
    "decrease input length",
    "context limit",
)

AUTHENTICATION_HINT = (
    "Authentication failed. Please ensure your API keys are valid "
    "and have the required permissions."
)


class ProviderErrorClass(str, Enum):
    """Normalized provider error classifications."""

    AUTHENTICATION = "E_PROVIDER_AUTHENTICATION"
    CONTEXT_LENGTH_EXCEEDED = "E_PROVIDER_CONTEXT_LENGTH_EXCEEDED"
    RATE_LIMIT_EXCEEDED = "E_PROVIDER_RATE_LIMIT_EXCEEDED"
    SERVER_ERROR = "E_PROVIDER_SERVER_ERROR"
    REQUEST_FAILED = "E_PROVIDER_REQUEST_FAILED"
    RESPONSE_PARSE_ERROR = "E_PROVIDER_RESPONSE_PARSE_ERROR"


class ProviderError(Exception):
    """Exception for provider call failures.

    Attributes:
        error_class: The normalized error classification
        message: Human-readable error message with the original context
            (status code, raw or lower-cased body, underlying cause)
        provider: The provider that produced the error (if known)
        status_code: HTTP status code (if the failure came from a response)
    """

    def __init__(
        self,
        error_class: ProviderErrorClass,
        message: str,
        provider: str | None = None,
        status_code: int | None = None,
    ):
        self.error_class = error_class
        self.message = message
        self.provider = provider
        self.status_code = status_code
        super().__init__(message)

    def __repr__(self) -> str:
        return f"ProviderError({self.error_class.name}, {self.message!r})"


class UsageError(Exception):
    """Usage block present in a response but not usable.

    Recoverable: callers substitute an empty Usage and continue.
    """


def render_body(json_body: Any, raw_body: str | None = None) -> str:
    """Serialize a decoded body for embedding in an error message.

    A body that did not decode as JSON is reported by its raw text, if any.
    """
    if json_body is None:
        return raw_body if raw_body else "None"
    try:
        return json.dumps(json_body)
    except (TypeError, ValueError):
        return repr(json_body)


def _extract_error_message(json_body: Any) -> str:
    """Pull a human message out of a 400 body.

    Looks at `message`, then the vendor-specific
    `external_model_message.message`, then gives up.
    """
    if not isinstance(json_body, dict):
        return "Unknown error"

    message = json_body.get("message")
    if isinstance(message, str):
        return message

    external = json_body.get("external_model_message")
    if isinstance(external, dict) and isinstance(external.get("message"), str):
        return external["message"]

    return "Unknown error"


def is_context_length_body(
    json_body: Any,
    phrases: Iterable[str] = CONTEXT_LENGTH_PHRASES,
) -> tuple[bool, str]:
    """Check a 400 body against the context-length phrase set.

    Returns:
        (matched, lower-cased serialized body)
    """
    try:
        body_str = json.dumps(json_body).lower()
    except (TypeError, ValueError):
        body_str = ""
    return any(phrase in body_str for phrase in phrases), body_str


def classify_response(
    status_code: int,
    json_body: Any,
    *,
    provider: str | None = None,
    context_length_phrases: Iterable[str] = CONTEXT_LENGTH_PHRASES,
    raw_body: str | None = None,
) -> ProviderError | None:
    """Classify an HTTP response into a typed error.

    Args:
        status_code: HTTP status code of the response.
        json_body: Decoded JSON body, or None if the body did not decode.
        provider: Provider name recorded on the error.
        context_length_phrases: Phrases that mark a 400 as a context overflow.
        raw_body: Undecoded response text, quoted in messages when json_body is None.

    Returns:
        None for a 200 with a decoded body; otherwise the ProviderError
        the caller should raise.
    """
    if status_code == 200:
        if json_body is None:
            return ProviderError(
                ProviderErrorClass.REQUEST_FAILED,
                "Response body is not valid JSON",
                provider=provider,
                status_code=status_code,
            )
        return None

    if status_code in (401, 403):
        return ProviderError(
            ProviderErrorClass.AUTHENTICATION,
            f"{AUTHENTICATION_HINT} Status: {status_code}. "
            f"Response: {render_body(json_body, raw_body)}",
            provider=provider,
            status_code=status_code,
        )

    if status_code == 400:
        matched, body_str = is_context_length_body(json_body, context_length_phrases)
        if matched:
            return ProviderError(
                ProviderErrorClass.CONTEXT_LENGTH_EXCEEDED,
                body_str,
                provider=provider,
                status_code=status_code,
            )

        error_msg = _extract_error_message(json_body)
        logger.debug("provider.request.rejected", status_code=status_code, provider=provider)
        return ProviderError(
            ProviderErrorClass.REQUEST_FAILED,
            f"Request failed with status: {status_code}. Message: {error_msg}",
            provider=provider,
            status_code=status_code,
        )

    if status_code == 429:
        return ProviderError(
            ProviderErrorClass.RATE_LIMIT_EXCEEDED,
            render_body(json_body, raw_body),
            provider=provider,
            status_code=status_code,
        )

    if status_code in (500, 503):
        return ProviderError(
            ProviderErrorClass.SERVER_ERROR,
            render_body(json_body, raw_body),
            provider=provider,
            status_code=status_code,
        )

    logger.debug("provider.request.rejected", status_code=status_code, provider=provider)
    return ProviderError(
        ProviderErrorClass.REQUEST_FAILED,
        f"Request failed with status: {status_code}",
        provider=provider,
        status_code=status_code,
    )


def classify_transport_error(exception: Exception, provider: str | None = None) -> ProviderError:
    """Classify a transport-level failure (no HTTP response available).

    Connection errors, timeouts (httpx phase timeouts and the overall
    deadline) and malformed URLs all become REQUEST_FAILED with the
    underlying cause in the message.
    """
    if isinstance(exception, (httpx.TimeoutException, TimeoutError)):
        detail = f"Request timed out: {str(exception) or 'deadline exceeded'}"
    elif isinstance(exception, (httpx.InvalidURL, httpx.UnsupportedProtocol)):
        detail = f"Invalid request URL: {exception}"
    elif isinstance(exception, httpx.NetworkError):
        detail = f"Network error: {exception}"
    else:
        detail = f"{type(exception).__name__}: {exception}"

    return ProviderError(ProviderErrorClass.REQUEST_FAILED, detail, provider=provider)


def invalid_url_error(message: str, provider: str | None = None) -> ProviderError:
    """Error for a base URL or endpoint URL that cannot be built."""
    return ProviderError(ProviderErrorClass.REQUEST_FAILED, message, provider=provider)


def response_parse_error(message: str, provider: str | None = None) -> ProviderError:
    """Error for a 2xx response whose body is not usable."""
    return ProviderError(ProviderErrorClass.RESPONSE_PARSE_ERROR, message, provider=provider)
