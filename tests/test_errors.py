"""Tests for provider error classification.

Classification is a pure function of (status code, decoded body), so these
tests need no HTTP mocking.
"""

import httpx
import pytest

from polyllm.errors import (
    AUTHENTICATION_HINT,
    CONTEXT_LENGTH_PHRASES,
    ProviderError,
    ProviderErrorClass,
    classify_response,
    classify_transport_error,
    is_context_length_body,
    render_body,
)


class TestClassifyResponse:
    def test_200_with_body_is_not_an_error(self):
        assert classify_response(200, {"choices": []}) is None

    def test_200_without_json_body_fails(self):
        error = classify_response(200, None, provider="openai")

        assert error.error_class == ProviderErrorClass.REQUEST_FAILED
        assert error.message == "Response body is not valid JSON"
        assert error.provider == "openai"

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_statuses(self, status):
        body = {"error": {"message": "bad key"}}
        error = classify_response(status, body)

        assert error.error_class == ProviderErrorClass.AUTHENTICATION
        assert error.status_code == status
        assert error.message.startswith(AUTHENTICATION_HINT)
        assert f"Status: {status}." in error.message
        assert '"bad key"' in error.message

    def test_429_is_rate_limit_with_body(self):
        body = {"error": {"message": "slow down"}}
        error = classify_response(429, body)

        assert error.error_class == ProviderErrorClass.RATE_LIMIT_EXCEEDED
        assert error.message == render_body(body)

    @pytest.mark.parametrize("status", [500, 503])
    def test_server_errors(self, status):
        error = classify_response(status, {"error": "boom"})

        assert error.error_class == ProviderErrorClass.SERVER_ERROR
        assert "boom" in error.message

    def test_server_error_without_body(self):
        error = classify_response(503, None)

        assert error.error_class == ProviderErrorClass.SERVER_ERROR
        assert error.message == "None"

    @pytest.mark.parametrize("status", [401, 429, 503])
    def test_undecodable_body_keeps_raw_text(self, status):
        error = classify_response(status, None, raw_body="<html>upstream gone</html>")

        assert "<html>upstream gone</html>" in error.message

    def test_decoded_body_wins_over_raw_text(self):
        error = classify_response(429, {"error": "slow"}, raw_body="ignored")

        assert error.message == render_body({"error": "slow"})

    @pytest.mark.parametrize("status", [201, 404, 418, 502])
    def test_other_statuses_are_request_failed(self, status):
        error = classify_response(status, {"anything": True})

        assert error.error_class == ProviderErrorClass.REQUEST_FAILED
        assert error.message == f"Request failed with status: {status}"
        assert error.status_code == status


class TestBadRequestHeuristic:
    def test_context_phrase_maps_to_context_length(self):
        body = {"message": "Input is TOO LONG for requested model."}
        error = classify_response(400, body)

        assert error.error_class == ProviderErrorClass.CONTEXT_LENGTH_EXCEEDED
        # Message carries the lower-cased serialized body
        assert error.message == render_body(body).lower()

    @pytest.mark.parametrize("phrase", CONTEXT_LENGTH_PHRASES)
    def test_every_phrase_matches(self, phrase):
        body = {"error": {"detail": f"xx {phrase.upper()} yy"}}
        error = classify_response(400, body)

        assert error.error_class == ProviderErrorClass.CONTEXT_LENGTH_EXCEEDED

    def test_400_without_phrase_uses_message(self):
        body = {"message": "Invalid parameter: temperature must be between 0 and 1."}
        error = classify_response(400, body)

        assert error.error_class == ProviderErrorClass.REQUEST_FAILED
        assert error.message == (
            "Request failed with status: 400. "
            "Message: Invalid parameter: temperature must be between 0 and 1."
        )

    def test_400_falls_back_to_external_model_message(self):
        body = {
            "error_code": "BAD_REQUEST",
            "external_model_message": {"type": "error", "message": "roles must alternate"},
        }
        error = classify_response(400, body)

        assert error.error_class == ProviderErrorClass.REQUEST_FAILED
        assert error.message.endswith("Message: roles must alternate")

    def test_400_without_any_message(self):
        error = classify_response(400, {"error_code": "BAD_REQUEST"})

        assert error.message == "Request failed with status: 400. Message: Unknown error"

    def test_400_without_body(self):
        error = classify_response(400, None)

        assert error.error_class == ProviderErrorClass.REQUEST_FAILED
        assert error.message.endswith("Unknown error")

    def test_custom_phrase_set(self):
        body = {"message": "prompt overflow"}

        default = classify_response(400, body)
        custom = classify_response(400, body, context_length_phrases=("overflow",))

        assert default.error_class == ProviderErrorClass.REQUEST_FAILED
        assert custom.error_class == ProviderErrorClass.CONTEXT_LENGTH_EXCEEDED

    def test_phrase_only_applies_to_400(self):
        error = classify_response(422, {"message": "too long"})

        assert error.error_class == ProviderErrorClass.REQUEST_FAILED

    def test_is_context_length_body_returns_lowered_body(self):
        matched, body_str = is_context_length_body({"Message": "Context Limit"})

        assert matched is True
        assert body_str == '{"message": "context limit"}'


class TestClassifyTransportError:
    def test_timeout(self):
        error = classify_transport_error(httpx.ReadTimeout("Read timed out"), provider="openai")

        assert error.error_class == ProviderErrorClass.REQUEST_FAILED
        assert error.message == "Request timed out: Read timed out"
        assert error.provider == "openai"
        assert error.status_code is None

    def test_overall_deadline(self):
        error = classify_transport_error(TimeoutError(), provider="databricks")

        assert error.error_class == ProviderErrorClass.REQUEST_FAILED
        assert error.message == "Request timed out: deadline exceeded"

    def test_connect_error(self):
        error = classify_transport_error(httpx.ConnectError("Connection refused"))

        assert error.error_class == ProviderErrorClass.REQUEST_FAILED
        assert error.message == "Network error: Connection refused"

    def test_unsupported_protocol(self):
        error = classify_transport_error(httpx.UnsupportedProtocol("ftp"))

        assert error.message.startswith("Invalid request URL: ")

    def test_other_http_error(self):
        error = classify_transport_error(httpx.DecodingError("bad gzip"))

        assert error.message == "DecodingError: bad gzip"


class TestProviderError:
    def test_is_exception_with_message(self):
        error = ProviderError(ProviderErrorClass.SERVER_ERROR, "down", provider="databricks")

        assert isinstance(error, Exception)
        assert str(error) == "down"
        assert "SERVER_ERROR" in repr(error)

    def test_error_class_values(self):
        assert ProviderErrorClass.AUTHENTICATION.value == "E_PROVIDER_AUTHENTICATION"
        assert ProviderErrorClass.RESPONSE_PARSE_ERROR.value == "E_PROVIDER_RESPONSE_PARSE_ERROR"
