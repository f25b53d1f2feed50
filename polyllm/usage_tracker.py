"""Cross-provider token usage accounting.

A TokenUsageTracker is a lock-guarded map from a provider/model key to
cumulative input/output token totals. Entries are created on first record
and only ever grow. Several providers may share one tracker by being given
the same instance; nothing here is a process-wide singleton.
"""

import threading
from dataclasses import dataclass, replace


@dataclass
class ProviderUsage:
    """Cumulative token usage for one provider/model key."""

    input_tokens: int = 0
    output_tokens: int = 0


class TokenUsageTracker:
    """Thread-safe accumulator of usage totals keyed by provider/model.

    The lock is held only for the lookup-and-update of one entry, never
    across a network call.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._usage_by_provider: dict[str, ProviderUsage] = {}

    def record_usage(self, provider_id: str, input_tokens: int, output_tokens: int) -> None:
        """Add token deltas to the totals for provider_id.

        Args:
            provider_id: Tracking key (model name or display id).
            input_tokens: Input tokens to add (must be >= 0).
            output_tokens: Output tokens to add (must be >= 0).

        Raises:
            ValueError: If a delta is negative; totals never decrease.
        """
        if input_tokens < 0 or output_tokens < 0:
            raise ValueError(
                f"Usage deltas must be non-negative, got ({input_tokens}, {output_tokens})"
            )

        with self._lock:
            provider_usage = self._usage_by_provider.get(provider_id)
            if provider_usage is None:
                provider_usage = ProviderUsage()
                self._usage_by_provider[provider_id] = provider_usage
            provider_usage.input_tokens += input_tokens
            provider_usage.output_tokens += output_tokens

    def get_usage(self, provider_id: str) -> ProviderUsage | None:
        """Snapshot of the totals for provider_id, or None if never recorded."""
        with self._lock:
            provider_usage = self._usage_by_provider.get(provider_id)
            return replace(provider_usage) if provider_usage is not None else None

    def get_all_usage(self) -> dict[str, ProviderUsage]:
        """Snapshot copy of every key's totals."""
        with self._lock:
            return {key: replace(usage) for key, usage in self._usage_by_provider.items()}
