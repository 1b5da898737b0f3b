import logging

from smartwater.client.api import ApiError
from smartwater.client.toasts import Toaster

logger = logging.getLogger(__name__)


class EntityView:
    """
    Screen state shared by every view model.

    A view subscribes to the queries it shows so they refetch as soon as a
    mutation invalidates them, and calls ``on_change`` whenever one of them
    changes. ``close()`` drops every subscription.
    """

    def __init__(self, api, cache, toaster=None, on_change=None):
        self.api = api
        self.cache = cache
        self.toaster = toaster or Toaster()
        self.on_change = on_change
        self._unsubscribers = []
        self.closed = False

    def watch(self, key, fetch=None):
        unsubscribe = self.cache.subscribe(key, self._changed, fetch)
        self._unsubscribers.append(unsubscribe)
        return unsubscribe

    def _changed(self, state):
        if self.on_change and not self.closed:
            self.on_change(state)

    def state(self, key):
        return self.cache.get_query_state(key)

    def data(self, key, default=None):
        state = self.state(key)
        if state is None or state.data is None:
            return default
        return state.data

    def is_loading(self, key):
        state = self.state(key)
        return state is None or state.is_loading

    def get(self, path, failure='Error'):
        """One-off read outside the cache; API failures become a destructive toast"""
        try:
            return self.api.get(path)
        except ApiError as e:
            self.toaster.error(failure, e)
            return None

    def run(self, mutation, variables=None, success=None, failure='Error'):
        """Apply a mutation; API failures become a destructive toast and return None"""
        try:
            result = mutation.mutate(variables)
        except ApiError as e:
            logger.info(f"{type(self).__name__}: {e}")
            self.toaster.error(failure, e)
            return None
        if isinstance(success, str):
            success = (success,)
        if success:
            self.toaster.success(*success)
        return result

    def form_errors(self, form, title='Please check the form'):
        self.toaster.toast(title, '; '.join(f"{field}: {message}" for field, message in form.errors.items()),
                           'destructive')

    def close(self):
        self.closed = True
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
