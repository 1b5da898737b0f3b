import threading

import pytest

from smartwater.client.query_cache import QueryCache, key_path, matches


class CountingFetch:
    """Fetch function that blocks until released and counts its calls"""

    def __init__(self, values=None):
        self.calls = 0
        self.release = threading.Event()
        self.started = threading.Event()
        self.values = list(values or [])

    def __call__(self):
        self.calls += 1
        self.started.set()
        self.release.wait(5)
        value = self.values.pop(0) if self.values else f'value-{self.calls}'
        if isinstance(value, Exception):
            raise value
        return value


@pytest.fixture
def cache():
    cache = QueryCache(max_workers=4)
    yield cache
    cache.shutdown()


def test_key_path_skips_none_parts():
    assert key_path(('/api/projects', 7, 'phases')) == '/api/projects/7/phases'
    assert key_path(('/api/clients', None)) == '/api/clients'


def test_matches_prefix():
    assert matches(('/api/projects', 7, 'phases'), ('/api/projects',))
    assert matches(('/api/projects', 7, 'phases'), ('/api/projects', 7))
    assert not matches(('/api/projects', 7), ('/api/projects', 8))
    assert matches(('/api/repairs',), ())


def test_concurrent_reads_share_one_request(cache):
    fetch = CountingFetch()

    first = cache.get_query(('/api/projects',), fetch)
    second = cache.get_query(('/api/projects',), fetch)
    assert first.is_loading and second.is_loading
    assert cache.is_fetching() == 1

    fetch.release.set()
    cache.wait_until_idle()

    assert fetch.calls == 1
    assert cache.get_query(('/api/projects',), fetch).data == 'value-1'
    assert fetch.calls == 1


def test_blocking_readers_get_the_shared_result(cache):
    fetch = CountingFetch()
    results = []
    threads = [threading.Thread(target=lambda: results.append(cache.fetch_query(('k',), fetch))) for _ in range(3)]
    for thread in threads:
        thread.start()
    fetch.started.wait(5)
    fetch.release.set()
    for thread in threads:
        thread.join(5)

    assert results == ['value-1'] * 3
    assert fetch.calls == 1


def test_invalidated_entry_serves_stale_data_while_refetching(cache):
    fetch = CountingFetch(['old', 'new'])
    fetch.release.set()
    states = []
    cache.subscribe(('k',), states.append, fetch)
    cache.wait_until_idle()
    assert cache.get_query_data(('k',)) == 'old'

    fetch.release.clear()
    cache.invalidate_queries(('k',))
    state = cache.get_query(('k',))
    assert state.data == 'old'
    assert state.is_fetching

    fetch.release.set()
    cache.wait_until_idle()
    assert cache.get_query_data(('k',)) == 'new'
    assert states[-1].data == 'new' and not states[-1].is_fetching


def test_invalidation_without_subscribers_refetches_on_next_read(cache):
    fetch = CountingFetch(['old', 'new'])
    fetch.release.set()
    assert cache.fetch_query(('k',), fetch) == 'old'

    cache.invalidate_queries(('k',))
    cache.wait_until_idle()
    assert fetch.calls == 1
    assert cache.get_query_state(('k',)).is_invalidated

    assert cache.fetch_query(('k',)) == 'new'
    assert fetch.calls == 2


def test_fresh_data_is_not_refetched(cache):
    fetch = CountingFetch()
    fetch.release.set()
    cache.fetch_query(('k',), fetch)
    cache.get_query(('k',))
    cache.fetch_query(('k',))
    assert fetch.calls == 1


def test_stale_time_expires_data(cache):
    cache.stale_time = 0
    fetch = CountingFetch()
    fetch.release.set()
    cache.fetch_query(('k',), fetch)
    cache.fetch_query(('k',))
    assert fetch.calls == 2


def test_failure_keeps_previous_data_and_is_not_retried(cache):
    fetch = CountingFetch(['good', RuntimeError('boom')])
    fetch.release.set()
    cache.fetch_query(('k',), fetch)
    cache.invalidate_queries(('k',))

    with pytest.raises(RuntimeError, match='boom'):
        cache.fetch_query(('k',))

    state = cache.get_query_state(('k',))
    assert state.is_error
    assert str(state.error) == 'boom'
    assert state.data == 'good'
    assert fetch.calls == 2


def test_invalidation_during_flight_triggers_one_follow_up(cache):
    fetch = CountingFetch(['first', 'second'])
    states = []
    cache.subscribe(('k',), states.append, fetch)
    fetch.started.wait(5)

    cache.invalidate_queries(('k',))
    fetch.release.set()
    cache.wait_until_idle()

    assert fetch.calls == 2
    assert cache.get_query_data(('k',)) == 'second'
    assert not cache.get_query_state(('k',)).is_invalidated


def test_prefix_invalidation_reaches_nested_keys(cache):
    fetch = CountingFetch()
    fetch.release.set()
    cache.fetch_query(('/api/projects',), fetch)
    cache.fetch_query(('/api/projects', 1, 'phases'), fetch)
    cache.fetch_query(('/api/clients',), fetch)

    cache.invalidate_queries(('/api/projects',))

    assert cache.get_query_state(('/api/projects',)).is_invalidated
    assert cache.get_query_state(('/api/projects', 1, 'phases')).is_invalidated
    assert not cache.get_query_state(('/api/clients',)).is_invalidated


def test_unsubscribe_stops_notifications(cache):
    fetch = CountingFetch()
    states = []
    unsubscribe = cache.subscribe(('k',), states.append, fetch)
    seen = len(states)
    unsubscribe()

    fetch.release.set()
    cache.wait_until_idle()
    assert len(states) == seen
    assert cache.get_query_data(('k',)) == 'value-1'


def test_subscriber_errors_do_not_break_the_cache(cache):
    def broken(state):
        raise ValueError('listener failed')

    fetch = CountingFetch()
    fetch.release.set()
    cache.subscribe(('k',), broken, fetch)
    cache.wait_until_idle()
    assert cache.get_query_data(('k',)) == 'value-1'


def test_set_query_data_accepts_an_updater(cache):
    cache.set_query_data(('k',), [1])
    cache.set_query_data(('k',), lambda old: old + [2])
    assert cache.get_query_data(('k',)) == [1, 2]
    assert cache.get_query_state(('k',)).is_success


def test_remove_and_clear(cache):
    cache.set_query_data(('/api/projects', 1), 'a')
    cache.set_query_data(('/api/clients',), 'b')
    cache.remove_queries(('/api/projects',))
    assert cache.keys() == [('/api/clients',)]
    cache.clear()
    assert cache.keys() == []


def test_default_fetch_requires_an_api():
    cache = QueryCache()
    with pytest.raises(RuntimeError):
        cache.get_query(('/api/projects',))
    cache.shutdown()
