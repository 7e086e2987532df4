"""Unit tests for the request cache and key builder."""
import threading
import time

import pytest

from cache.request_cache import CacheEntry, RequestCache
from cache.request_key import build_key
from client.exceptions import UpstreamError


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return RequestCache(clock=clock)


class Counter:
    """compute_fn that counts calls and returns a new value each time."""

    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return f"value-{self.calls}"


def failing():
    raise UpstreamError("Eventbrite API: service unavailable")


class TestBuildKey:
    """Test cases for build_key."""

    def test_without_params(self):
        assert build_key('user_list_events') == 'eventbrite-request-user_list_events'
        assert build_key('user_list_events', {}) == 'eventbrite-request-user_list_events'

    def test_params_order_does_not_matter(self):
        a = build_key('user_list_events', {'event_statuses': 'live,started', 'display': 'repeat_schedule'})
        b = build_key('user_list_events', {'display': 'repeat_schedule', 'event_statuses': 'live,started'})
        assert a == b

    def test_params_change_the_key(self):
        base = build_key('user_list_events')
        a = build_key('user_list_events', {'display': 'repeat_schedule'})
        b = build_key('user_list_events', {'display': 'description'})
        assert len({base, a, b}) == 3
        assert a.startswith(base + '-')
        assert len(a) == len(base) + 9


class TestRequestCache:
    """Test cases for RequestCache."""

    def test_fresh_value_is_not_recomputed(self, cache, clock):
        compute = Counter()

        assert cache.get_or_compute('k', compute) == 'value-1'
        clock.now += 1199
        assert cache.get_or_compute('k', compute) == 'value-1'
        assert compute.calls == 1

    def test_expired_value_is_recomputed(self, cache, clock):
        compute = Counter()

        cache.get_or_compute('k', compute)
        clock.now += 1200

        assert cache.get_or_compute('k', compute) == 'value-2'
        assert compute.calls == 2

    def test_force_refresh_recomputes_fresh_value(self, cache):
        compute = Counter()

        cache.get_or_compute('k', compute)

        assert cache.get_or_compute('k', compute, force_refresh=True) == 'value-2'

    def test_failure_without_value_propagates(self, cache):
        with pytest.raises(UpstreamError):
            cache.get_or_compute('k', failing)
        assert cache.get_entry('k') is None

    def test_forced_refresh_failure_serves_old_value_with_grace(self, cache, clock):
        cache.get_or_compute('k', lambda: 'old')
        clock.now += 100

        value = cache.get_or_compute('k', failing, force_refresh=True)

        assert value == 'old'
        assert cache.get_entry('k').expires_at == clock.now + 300

    def test_expired_failure_serves_stale_value_during_grace(self, cache, clock):
        compute = Counter()
        cache.get_or_compute('k', lambda: 'old')
        clock.now += 5000

        assert cache.get_or_compute('k', failing) == 'old'

        clock.now += 299
        assert cache.get_or_compute('k', compute) == 'old'
        assert compute.calls == 0

        clock.now += 1
        assert cache.get_or_compute('k', compute) == 'value-1'
        assert cache.get_entry('k').grace_until is None

    def test_evict_forces_recompute(self, cache):
        compute = Counter()
        cache.get_or_compute('k', compute)

        cache.evict('k')

        assert cache.get_or_compute('k', compute) == 'value-2'

    def test_evict_missing_key(self, cache):
        cache.evict('missing')
        assert cache.get_entry('missing') is None

    def test_concurrent_callers_share_one_computation(self):
        cache = RequestCache()
        calls = []
        start = threading.Barrier(10)
        results = []

        def compute():
            calls.append(1)
            time.sleep(0.2)
            return {'events': []}

        def worker():
            start.wait()
            results.append(cache.get_or_compute('shared', compute))

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(calls) == 1
        assert results == [{'events': []}] * 10

    def test_concurrent_callers_share_failure(self):
        cache = RequestCache()
        calls = []
        start = threading.Barrier(5)
        errors = []

        def compute():
            calls.append(1)
            time.sleep(0.2)
            raise UpstreamError("down")

        def worker():
            start.wait()
            try:
                cache.get_or_compute('shared', compute)
            except UpstreamError as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(errors) == 5
        assert len(calls) == 1


def test_cache_entry_expiry():
    entry = CacheEntry(value='v', fresh_until=100.0)
    assert entry.expires_at == 100.0
    assert entry.is_fresh(99.9)
    assert not entry.is_fresh(100.0)

    entry.grace_until = 400.0
    assert entry.expires_at == 400.0
