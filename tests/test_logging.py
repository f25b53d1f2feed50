"""Tests for structlog configuration.

- Default routing: events reach stdlib loggers, nothing is rendered by us
- configure_logging: one JSON line per event with call context injected
"""

import json
import logging

import pytest
import respx
import structlog

from polyllm.logging import (
    bind_call_context,
    clear_call_context,
    configure_logging,
    get_logger,
)
from polyllm.message import Message
from polyllm.providers import OpenAIProvider, OpenAIProviderConfig
from polyllm.types import ModelConfig


@pytest.fixture
def restore_logging():
    """Put structlog and the root logger back the way the test found them."""
    original_config = structlog.get_config()
    root_logger = logging.getLogger()
    original_handlers = list(root_logger.handlers)
    original_level = root_logger.level

    yield

    structlog.configure(**original_config)
    root_logger.handlers[:] = original_handlers
    root_logger.setLevel(original_level)


class TestDefaultRouting:
    @pytest.mark.asyncio
    @respx.mock
    async def test_events_reach_stdlib_logger(self, caplog, httpx_client, token_counter):
        caplog.set_level(logging.INFO, logger="polyllm")
        respx.post("https://api.openai.com/v1/chat/completions").respond(
            200,
            json={
                "model": "gpt-4o",
                "choices": [{"message": {"role": "assistant", "content": "Hi"}}],
                "usage": {"prompt_tokens": 3, "completion_tokens": 1},
            },
        )
        provider = OpenAIProvider(
            OpenAIProviderConfig(api_key="sk-test"),
            ModelConfig("gpt-4o"),
            token_counter,
            client=httpx_client,
        )

        await provider.complete("Be brief.", [Message.user().with_text("Hello!")])

        records = {r.getMessage(): r for r in caplog.records if r.name.startswith("polyllm")}
        assert "provider.request.started" in records
        recorded = records["provider.usage.recorded"]
        assert recorded.name == "polyllm.providers.base"
        assert recorded.levelno == logging.INFO
        assert recorded.input_tokens == 3
        assert recorded.provider == "openai"
        assert recorded.model_name == "gpt-4o"


class TestConfigureLogging:
    def test_json_event_carries_call_context(self, capsys, restore_logging):
        configure_logging(json_format=True, level="INFO")
        logger = get_logger("polyllm.tests")

        bind_call_context("call-123", provider="databricks", model_name="databricks-dbrx")
        try:
            logger.info("provider.request.started", operation="extract")
        finally:
            clear_call_context()

        lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
        assert len(lines) == 1
        event = json.loads(lines[0])
        assert event["event"] == "provider.request.started"
        assert event["operation"] == "extract"
        assert event["call_id"] == "call-123"
        assert event["provider"] == "databricks"
        assert event["model_name"] == "databricks-dbrx"
        assert event["level"] == "info"
        assert event["logger"] == "polyllm.tests"
        assert "timestamp" in event

    def test_level_filters_events(self, capsys, restore_logging):
        configure_logging(json_format=True, level="WARNING")
        logger = get_logger("polyllm.tests")

        logger.info("provider.request.started")
        logger.warning("provider.response.unusable")

        lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
        assert [json.loads(line)["event"] for line in lines] == ["provider.response.unusable"]

    def test_defaults_come_from_settings(self, monkeypatch, capsys, restore_logging):
        monkeypatch.setenv("POLYLLM_LOG_JSON", "false")
        monkeypatch.setenv("POLYLLM_LOG_LEVEL", "error")

        configure_logging()

        assert logging.getLogger().level == logging.ERROR
        get_logger("polyllm.tests").error("provider.request.failed")
        out = capsys.readouterr().out
        assert "provider.request.failed" in out
        with pytest.raises(json.JSONDecodeError):
            json.loads(out.strip().splitlines()[-1])
