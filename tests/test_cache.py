"""
Tests for the owner-scoped result cache.
"""
from unittest.mock import Mock
import pytest
from src.core.cache import OwnerScopedCache


class FakeTime:
    def __init__(self):
        self.value = 1000.0

    def __call__(self):
        return self.value


class TestOwnerScopedCache:
    """Test suite for OwnerScopedCache."""

    @pytest.fixture
    def fake_time(self):
        return FakeTime()

    @pytest.fixture
    def cache(self, fake_time):
        return OwnerScopedCache(ttl_seconds=60, time_func=fake_time)

    def test_hit_within_ttl(self, cache):
        compute = Mock(return_value="result")

        assert cache.get_or_compute("search", "alice", ("apap",), compute) == "result"
        assert cache.get_or_compute("search", "alice", ("apap",), compute) == "result"
        compute.assert_called_once()

    def test_expires_after_ttl(self, cache, fake_time):
        compute = Mock(side_effect=["first", "second"])

        cache.get_or_compute("search", "alice", ("apap",), compute)
        fake_time.value += 61

        assert cache.get_or_compute("search", "alice", ("apap",), compute) == "second"

    def test_keys_include_owner_operation_and_args(self, cache):
        compute = Mock(side_effect=lambda: object())

        values = {
            cache.get_or_compute("search", "alice", ("apap",), compute),
            cache.get_or_compute("search", "bob", ("apap",), compute),
            cache.get_or_compute("get_drug", "alice", ("apap",), compute),
            cache.get_or_compute("search", "alice", ("ibuprom",), compute),
        }

        assert len(values) == 4
        assert compute.call_count == 4

    def test_invalidate_owner_only_drops_that_owner(self, cache):
        cache.get_or_compute("search", "alice", (), lambda: "alice-old")
        cache.get_or_compute("search", "bob", (), lambda: "bob-old")

        cache.invalidate_owner("alice")

        assert cache.get_or_compute("search", "alice", (), lambda: "alice-new") == "alice-new"
        assert cache.get_or_compute("search", "bob", (), lambda: "bob-new") == "bob-old"

    def test_zero_ttl_disables_caching(self, fake_time):
        cache = OwnerScopedCache(ttl_seconds=0, time_func=fake_time)
        compute = Mock(return_value="value")

        cache.get_or_compute("search", "alice", (), compute)
        cache.get_or_compute("search", "alice", (), compute)

        assert compute.call_count == 2

    def test_errors_are_not_cached(self, cache):
        compute = Mock(side_effect=[RuntimeError("boom"), "ok"])

        with pytest.raises(RuntimeError):
            cache.get_or_compute("search", "alice", (), compute)
        assert cache.get_or_compute("search", "alice", (), compute) == "ok"

    def test_clear(self, cache):
        cache.get_or_compute("search", "alice", (), lambda: "old")
        cache.clear()
        assert cache.get_or_compute("search", "alice", (), lambda: "new") == "new"

    def test_value_computed_across_invalidation_is_not_stored(self, cache):
        def compute_during_write():
            cache.invalidate_owner("alice")
            return "stale"

        assert cache.get_or_compute("search", "alice", (), compute_during_write) == "stale"
        assert cache.get_or_compute("search", "alice", (), lambda: "fresh") == "fresh"
        assert cache.get_or_compute("search", "alice", (), lambda: "newer") == "fresh"

    def test_invalidation_of_other_owner_does_not_block_storing(self, cache):
        def compute_during_other_write():
            cache.invalidate_owner("bob")
            return "alice-value"

        cache.get_or_compute("search", "alice", (), compute_during_other_write)
        assert cache.get_or_compute("search", "alice", (), lambda: "recomputed") == "alice-value"
