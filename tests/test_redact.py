"""Tests for the log guard and call-scoped logging context."""

import pytest

from polyllm.logging import (
    add_call_context,
    bind_call_context,
    clear_call_context,
    get_call_id,
)
from polyllm.redact import hash_text, safe_kv


class TestSafeKv:
    def test_allowed_keys_pass_through(self):
        kv = safe_kv(provider="openai", input_tokens=5, status_code=429)
        assert kv == {"provider": "openai", "input_tokens": 5, "status_code": 429}

    def test_redacted_suffixes_allowed(self):
        kv = safe_kv(system_chars=120, prompt_sha256="abc", content_length=9)
        assert kv["system_chars"] == 120

    @pytest.mark.parametrize("key", ["system", "content", "api_key", "payload", "data"])
    def test_forbidden_key_raises_in_test_env(self, key):
        with pytest.raises(ValueError, match="Forbidden log keys"):
            safe_kv(**{key: "x"})

    def test_forbidden_key_warns_when_not_strict(self):
        kv = safe_kv(_strict=False, messages=["hi"])
        assert kv == {"messages": ["hi"]}

    def test_hash_text_is_stable(self):
        assert hash_text("abc") == hash_text("abc")
        assert len(hash_text("abc")) == 64
        assert hash_text("abc") != hash_text("abd")


class TestCallContext:
    def test_bind_and_clear(self):
        bind_call_context("call-1", provider="openai", model_name="gpt-4o")
        try:
            assert get_call_id() == "call-1"
            event = add_call_context(None, "info", {"event": "x"})
            assert event == {
                "event": "x",
                "call_id": "call-1",
                "provider": "openai",
                "model_name": "gpt-4o",
            }
        finally:
            clear_call_context()

        assert get_call_id() is None
        assert add_call_context(None, "info", {"event": "x"}) == {"event": "x"}

    def test_explicit_fields_win(self):
        bind_call_context("call-2", provider="openai")
        try:
            event = add_call_context(None, "info", {"event": "x", "provider": "other"})
            assert event["provider"] == "other"
        finally:
            clear_call_context()
