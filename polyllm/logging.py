"""Structured logging configuration using structlog.

Provides JSON-formatted logs with consistent context including:
- call_id: Correlation ID for one provider call (complete/extract)
- provider: Vendor name of the provider handling the call
- model_name: Configured model of that provider
- timestamp: ISO8601 formatted timestamp

Usage:
    from polyllm.logging import get_logger, configure_logging

    # Configure once at startup (optional for library users)
    configure_logging()

    # Get a logger for a module
    logger = get_logger(__name__)
    logger.info("something_happened", extra_field="value")

Providers bind the call context themselves; callers never need to.

Until configure_logging() (or the host's own structlog.configure) runs, events
are handed to the standard library logging module under their module name,
so the host's logging config decides what is emitted. Nothing is printed
to stdout by default.
"""

import logging
import sys
from contextvars import ContextVar

import structlog

from polyllm.config import get_settings

# Context variables for call-scoped logging
call_id_var: ContextVar[str | None] = ContextVar("call_id", default=None)
provider_var: ContextVar[str | None] = ContextVar("provider", default=None)
model_name_var: ContextVar[str | None] = ContextVar("model_name", default=None)


def add_call_context(logger: logging.Logger, method_name: str, event_dict: dict) -> dict:
    """Add provider call context to all log entries.

    Injects all non-None ContextVar values into the log event dict.
    Explicit fields on the event win over context values.
    """
    call_id = call_id_var.get()
    provider = provider_var.get()
    model_name = model_name_var.get()

    if call_id:
        event_dict.setdefault("call_id", call_id)
    if provider:
        event_dict.setdefault("provider", provider)
    if model_name:
        event_dict.setdefault("model_name", model_name)

    return event_dict


def route_to_stdlib() -> None:
    """Send structlog events to stdlib loggers with no rendering of our own.

    Each event becomes one record on logging.getLogger(<module>) whose message
    is the event name and whose extra fields are the event's key-values.
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            add_call_context,
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def configure_logging(json_format: bool | None = None, level: str | None = None) -> None:
    """Configure structlog for the library.

    Args:
        json_format: If True, output JSON logs. If False, output console-friendly logs.
            Defaults to POLYLLM_LOG_JSON.
        level: Root log level name. Defaults to POLYLLM_LOG_LEVEL.
    """
    settings = get_settings()
    if json_format is None:
        json_format = settings.log_json
    if level is None:
        level = settings.log_level

    shared_processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_call_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Silence noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger for the given name.

    Args:
        name: Logger name (typically __name__).

    Returns:
        A bound structlog logger.
    """
    return structlog.get_logger(name)


def bind_call_context(
    call_id: str | None,
    provider: str | None = None,
    model_name: str | None = None,
) -> None:
    """Set provider call context for the current async context.

    Args:
        call_id: Correlation ID for this call.
        provider: Vendor name (optional).
        model_name: Configured model name (optional).
    """
    call_id_var.set(call_id)
    if provider is not None:
        provider_var.set(provider)
    if model_name is not None:
        model_name_var.set(model_name)


def clear_call_context() -> None:
    """Clear all call-scoped context at the end of a call."""
    call_id_var.set(None)
    provider_var.set(None)
    model_name_var.set(None)


def get_call_id() -> str | None:
    """Get the current call ID from context."""
    return call_id_var.get()


if not structlog.is_configured():
    route_to_stdlib()
