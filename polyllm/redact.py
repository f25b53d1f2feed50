"""Log guard utilities.

Never-log policy:
- API keys and bearer tokens
- System prompts and message content
- Raw response bodies
- Extracted data

Allowed (with suffix):
- _chars, _length: length of text
- _sha256, _hash: hash of text
- Token counts, status codes, model names
"""

import hashlib

from polyllm.config import get_settings

FORBIDDEN_KEYS = frozenset(
    {
        "prompt",
        "system",
        "content",
        "messages",
        "api_key",
        "bearer",
        "token",
        "authorization",
        "secret",
        "payload",
        "raw_body",
        "data",
    }
)

REDACTED_SUFFIXES = ("_sha256", "_hash", "_length", "_chars")


def hash_text(value: str) -> str:
    """SHA-256 hex digest of a string, for log correlation without content."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def _has_redacted_suffix(key: str) -> bool:
    """Check if key ends with a recognized redacted suffix."""
    return any(key.endswith(suffix) for suffix in REDACTED_SUFFIXES)


def safe_kv(*, _strict: bool | None = None, **kwargs) -> dict:
    """Validate that no forbidden keys are present unless already redacted.

    Raises ValueError in local/test environments if a forbidden key is used
    without a redacted suffix. In staging/prod, logs a warning instead.

    Usage:
        logger.info("provider.request.started", **safe_kv(
            provider="openai",
            model_name="gpt-4o",
            system_chars=1234,        # OK: _chars suffix
            # system="You are...",    # BLOCKED: forbidden key
        ))

    Args:
        _strict: Override for the environment check (test-only).
        **kwargs: Keyword arguments to validate and return.

    Returns:
        The same kwargs dict, after validation.

    Raises:
        ValueError: In local/test, if a forbidden key is used without redacted suffix.
    """
    violations = [key for key in kwargs if key in FORBIDDEN_KEYS and not _has_redacted_suffix(key)]

    if violations:
        msg = f"Forbidden log keys without redacted suffix: {violations}"
        strict = get_settings().is_strict_env if _strict is None else _strict
        if strict:
            raise ValueError(msg)
        else:
            import structlog

            _logger = structlog.get_logger("polyllm.redact")
            _logger.warning("safe_kv_violation", forbidden_keys=violations)

    return kwargs
