"""Tests for the cross-provider usage tracker."""

import threading

import pytest

from polyllm.usage_tracker import ProviderUsage, TokenUsageTracker


class TestTokenUsageTracker:
    def test_record_and_get_usage(self):
        tracker = TokenUsageTracker()

        tracker.record_usage("test_provider", 100, 200)
        usage = tracker.get_usage("test_provider")
        assert usage == ProviderUsage(input_tokens=100, output_tokens=200)

        tracker.record_usage("test_provider", 50, 75)
        usage = tracker.get_usage("test_provider")
        assert usage == ProviderUsage(input_tokens=150, output_tokens=275)

    def test_get_all_usage(self):
        tracker = TokenUsageTracker()
        tracker.record_usage("provider1", 10, 20)
        tracker.record_usage("provider2", 30, 40)

        all_usage = tracker.get_all_usage()
        assert len(all_usage) == 2
        assert all_usage["provider1"].input_tokens == 10
        assert all_usage["provider2"].output_tokens == 40

    def test_get_usage_unknown_key_is_none(self):
        tracker = TokenUsageTracker()
        assert tracker.get_usage("non_existent_provider") is None
        assert tracker.get_all_usage() == {}

    def test_snapshots_are_copies(self):
        tracker = TokenUsageTracker()
        tracker.record_usage("p", 1, 1)

        snapshot = tracker.get_usage("p")
        snapshot.input_tokens = 999
        all_usage = tracker.get_all_usage()
        all_usage["p"].output_tokens = 999
        all_usage["q"] = ProviderUsage(5, 5)

        assert tracker.get_usage("p") == ProviderUsage(1, 1)
        assert tracker.get_usage("q") is None

    def test_record_order_does_not_matter(self):
        forward = TokenUsageTracker()
        forward.record_usage("k", 3, 4)
        forward.record_usage("k", 10, 20)

        backward = TokenUsageTracker()
        backward.record_usage("k", 10, 20)
        backward.record_usage("k", 3, 4)

        assert forward.get_usage("k") == backward.get_usage("k") == ProviderUsage(13, 24)

    def test_zero_delta_creates_entry(self):
        tracker = TokenUsageTracker()
        tracker.record_usage("k", 0, 0)
        assert tracker.get_usage("k") == ProviderUsage(0, 0)

    def test_negative_delta_rejected(self):
        tracker = TokenUsageTracker()
        tracker.record_usage("k", 5, 5)

        with pytest.raises(ValueError, match="non-negative"):
            tracker.record_usage("k", -1, 0)

        assert tracker.get_usage("k") == ProviderUsage(5, 5)

    def test_concurrent_records_are_not_lost(self):
        tracker = TokenUsageTracker()
        threads_count = 8
        per_thread = 500

        def worker():
            for _ in range(per_thread):
                tracker.record_usage("shared", 1, 2)

        threads = [threading.Thread(target=worker) for _ in range(threads_count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        usage = tracker.get_usage("shared")
        assert usage.input_tokens == threads_count * per_thread
        assert usage.output_tokens == 2 * threads_count * per_thread
