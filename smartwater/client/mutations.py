"""Write operations: call the API, then invalidate the affected queries"""
import logging

logger = logging.getLogger(__name__)


class Mutation:
    """
    One create/update/delete operation.

    ``invalidates`` lists key prefixes to mark stale once the server has
    confirmed the write. An entry may be a tuple or a function of
    ``(variables, result)`` returning one, for keys that depend on the
    record that was written. Nothing is written to the cache before the
    server answers and nothing is retried.
    """

    def __init__(self, cache, mutation_fn, invalidates=(), on_success=None, on_error=None):
        self.cache = cache
        self.mutation_fn = mutation_fn
        self.invalidates = list(invalidates)
        self.on_success = on_success
        self.on_error = on_error
        self.reset()

    def reset(self):
        self.status = 'idle'
        self.data = None
        self.error = None

    @property
    def is_pending(self):
        return self.status == 'pending'

    @property
    def is_success(self):
        return self.status == 'success'

    @property
    def is_error(self):
        return self.status == 'error'

    def prefixes(self, variables, result):
        for prefix in self.invalidates:
            if callable(prefix):
                prefix = prefix(variables, result)
            if prefix is not None:
                yield tuple(prefix)

    def mutate(self, variables=None):
        self.status = 'pending'
        self.error = None
        try:
            result = self.mutation_fn(variables)
        except Exception as e:
            self.status = 'error'
            self.error = e
            logger.info(f"Mutation failed: {e}")
            if self.on_error:
                self.on_error(e, variables)
            raise

        self.status = 'success'
        self.data = result
        for prefix in self.prefixes(variables, result):
            self.cache.invalidate_queries(prefix)
        if self.on_success:
            self.on_success(result, variables)
        return result
