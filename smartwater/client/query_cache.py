"""
Query cache with request de-duplication and stale-while-revalidate reads.

A query is identified by a key, a tuple such as ``('/api/projects', 7, 'phases')``.
Reading a key returns whatever is cached right away and, when the entry is
missing, invalidated or stale, starts one background fetch for it. Callers
that ask for the same key while that fetch is running share it, so at most
one request per key is ever in flight.

Data only goes stale through invalidation unless a ``stale_time`` is given.
Failed fetches are not retried; the error is stored next to any data the
entry already had.
"""
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryState:
    data: object = None
    error: Exception = None
    status: str = 'pending'  # 'pending' | 'success' | 'error'
    is_fetching: bool = False
    is_invalidated: bool = False
    data_updated_at: float = 0.0

    @property
    def is_loading(self):
        return self.status == 'pending' and self.is_fetching

    @property
    def is_success(self):
        return self.status == 'success'

    @property
    def is_error(self):
        return self.status == 'error'


@dataclass
class _Entry:
    fetch: object = None
    state: QueryState = field(default_factory=QueryState)
    future: object = None
    generation: int = 0
    subscribers: list = field(default_factory=list)


def key_path(key):
    """REST path for a key: the non-None parts joined with '/'"""
    return '/'.join(str(part) for part in key if part is not None)


def matches(key, prefix):
    prefix = tuple(prefix)
    return tuple(key[:len(prefix)]) == prefix


class QueryCache:

    def __init__(self, api=None, stale_time=None, max_workers=4):
        self.api = api
        self.stale_time = stale_time
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._running = 0
        self._entries = {}
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='query')

    # Fetch functions

    def default_fetch(self, key, on_401='throw'):
        if self.api is None:
            raise RuntimeError(f"No fetch function for query {key!r} and no API client configured")
        return lambda: self.api.get(key_path(key), on_401=on_401)

    def _entry(self, key, fetch):
        """Caller holds the lock"""
        key = tuple(key)
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = _Entry()
        if fetch is not None:
            entry.fetch = fetch
        return entry

    def _needs_fetch(self, entry):
        state = entry.state
        if state.status != 'success' or state.is_invalidated:
            return True
        if self.stale_time is not None:
            return time.monotonic() - state.data_updated_at > self.stale_time
        return False

    # Fetching

    def _start_fetch(self, key, entry):
        """Caller holds the lock; joins the in-flight fetch when there is one"""
        if entry.future is not None:
            return entry.future, None
        if entry.fetch is None:
            entry.fetch = self.default_fetch(key)
        entry.state = replace(entry.state, is_fetching=True)
        self._running += 1
        entry.future = self._executor.submit(self._run, key, entry.fetch, entry.generation)
        return entry.future, self._notification(entry)

    def _run(self, key, fetch, generation):
        try:
            return self._complete(key, fetch, generation)
        finally:
            with self._idle:
                self._running -= 1
                self._idle.notify_all()

    def _complete(self, key, fetch, generation):
        try:
            data, error = fetch(), None
        except Exception as e:
            data, error = None, e
            logger.warning(f"Query {key!r} failed: {e}")

        notification = follow_up = None
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                entry.future = None
                # Invalidated while in flight: the result is stored but stays stale
                invalidated = entry.generation != generation
                if error is None:
                    entry.state = QueryState(
                        data=data, status='success', is_invalidated=invalidated,
                        data_updated_at=time.monotonic(),
                    )
                else:
                    entry.state = replace(entry.state, error=error, status='error',
                                          is_fetching=False, is_invalidated=invalidated)
                notification = self._notification(entry)
                if invalidated and entry.subscribers:
                    _, follow_up = self._start_fetch(key, entry)

        self._notify(notification)
        self._notify(follow_up)
        if error is not None:
            raise error
        return data

    def _notification(self, entry):
        return (list(entry.subscribers), entry.state)

    def _notify(self, notification):
        if not notification:
            return
        subscribers, state = notification
        for callback in subscribers:
            try:
                callback(state)
            except Exception:
                logger.exception("Query subscriber failed")

    # Reads

    def get_query(self, key, fetch=None):
        """Current state; starts a background fetch when the entry needs one"""
        key = tuple(key)
        notification = None
        with self._lock:
            entry = self._entry(key, fetch)
            if self._needs_fetch(entry):
                _, notification = self._start_fetch(key, entry)
            state = entry.state
        self._notify(notification)
        return state

    def fetch_query(self, key, fetch=None, timeout=None):
        """Blocking read: fresh data is returned as-is, otherwise waits for the fetch and re-raises its error"""
        key = tuple(key)
        notification = None
        with self._lock:
            entry = self._entry(key, fetch)
            if not self._needs_fetch(entry) and entry.future is None:
                return entry.state.data
            future, notification = self._start_fetch(key, entry)
        self._notify(notification)
        return future.result(timeout=timeout)

    def get_query_data(self, key):
        with self._lock:
            entry = self._entries.get(tuple(key))
            return entry.state.data if entry else None

    def get_query_state(self, key):
        with self._lock:
            entry = self._entries.get(tuple(key))
            return entry.state if entry else None

    def set_query_data(self, key, data):
        """Write data directly; ``data`` may be a function of the previous value"""
        key = tuple(key)
        with self._lock:
            entry = self._entry(key, None)
            if callable(data):
                data = data(entry.state.data)
            entry.state = replace(entry.state, data=data, error=None, status='success',
                                  is_invalidated=False, data_updated_at=time.monotonic())
            notification = self._notification(entry)
        self._notify(notification)
        return data

    # Invalidation

    def invalidate_queries(self, prefix=()):
        """Mark every key starting with ``prefix`` stale and refetch the ones with subscribers"""
        notifications = []
        futures = []
        with self._lock:
            for key, entry in self._entries.items():
                if not matches(key, prefix):
                    continue
                entry.generation += 1
                entry.state = replace(entry.state, is_invalidated=True)
                if not entry.subscribers:
                    continue
                # An in-flight fetch predates the invalidation; it refetches when it lands
                if entry.future is None:
                    future, notification = self._start_fetch(key, entry)
                    futures.append(future)
                    notifications.append(notification)
                else:
                    futures.append(entry.future)
        for notification in notifications:
            self._notify(notification)
        return futures

    def remove_queries(self, prefix=()):
        with self._lock:
            for key in [key for key in self._entries if matches(key, prefix)]:
                del self._entries[key]

    def keys(self):
        with self._lock:
            return list(self._entries)

    # Subscriptions

    def subscribe(self, key, callback, fetch=None):
        """Call ``callback(state)`` on every change to ``key``; returns the unsubscribe function"""
        key = tuple(key)
        notification = None
        with self._lock:
            entry = self._entry(key, fetch)
            entry.subscribers.append(callback)
            if self._needs_fetch(entry):
                _, notification = self._start_fetch(key, entry)
        self._notify(notification)

        def unsubscribe():
            with self._lock:
                entry = self._entries.get(key)
                if entry is not None and callback in entry.subscribers:
                    entry.subscribers.remove(callback)

        return unsubscribe

    def is_fetching(self, prefix=()):
        with self._lock:
            return sum(1 for key, entry in self._entries.items()
                       if matches(key, prefix) and entry.future is not None)

    def wait_until_idle(self, timeout=5):
        """Block until no fetch is running (follow-up refetches included)"""
        with self._idle:
            return self._idle.wait_for(lambda: self._running == 0, timeout=timeout)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def shutdown(self):
        self._executor.shutdown(wait=True)
