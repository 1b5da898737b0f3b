"""
Typed access to each REST resource.

A repository owns the cache keys of one entity, so views never build key
tuples by hand and every write invalidates the same keys its reads use.
"""
from smartwater.client.mutations import Mutation


class ResourceRepository:

    def __init__(self, api, cache, list_key, item_path, create_path=None, invalidates=()):
        self.api = api
        self.cache = cache
        self.list_key = tuple(list_key)
        self.item_path = item_path
        self.create_path = create_path or item_path
        self.invalidates = [tuple(prefix) for prefix in invalidates]

    # Keys

    def item_key(self, record_id):
        return (self.item_path, record_id)

    def item_url(self, record_id):
        return f"{self.item_path}/{record_id}"

    def affected(self, record_id=None):
        keys = [self.list_key, *self.invalidates]
        if record_id is not None:
            keys.append(self.item_key(record_id))
        return keys

    # Reads

    def list(self):
        """Cached list state; refreshes in the background when stale"""
        return self.cache.get_query(self.list_key)

    def get(self, record_id):
        return self.cache.get_query(self.item_key(record_id))

    def fetch(self, record_id):
        return self.cache.fetch_query(self.item_key(record_id))

    def subscribe(self, record_id, callback):
        return self.cache.subscribe(self.item_key(record_id), callback)

    # Writes

    def create_mutation(self, **callbacks):
        return Mutation(
            self.cache,
            lambda body: self.api.post(self.create_path, json=body),
            invalidates=self.affected(),
            **callbacks,
        )

    def update_mutation(self, **callbacks):
        """Variables are ``(record_id, changes)``; the body is sent as a PATCH"""
        return Mutation(
            self.cache,
            lambda variables: self.api.patch(self.item_url(variables[0]), json=variables[1]),
            invalidates=[*self.affected(), lambda variables, result: self.item_key(variables[0])],
            **callbacks,
        )

    def delete_mutation(self, **callbacks):
        return Mutation(
            self.cache,
            lambda record_id: self.api.delete(self.item_url(record_id)),
            invalidates=[*self.affected(), lambda record_id, result: self.item_key(record_id)],
            **callbacks,
        )

    def create(self, body):
        return self.create_mutation().mutate(body)

    def update(self, record_id, changes):
        return self.update_mutation().mutate((record_id, changes))

    def delete(self, record_id):
        return self.delete_mutation().mutate(record_id)


BUSINESS_RESOURCES = ('expenses', 'inventory', 'vendors', 'purchase-orders', 'licenses', 'insurance', 'reports')

SESSION_KEY = ('/api/auth', 'session')
DASHBOARD_KEY = ('/api/dashboard', 'summary')


def projects(api, cache):
    return ResourceRepository(api, cache, ('/api/projects',), '/api/projects', invalidates=[DASHBOARD_KEY])


def project_phases(api, cache, project_id):
    return ResourceRepository(
        api, cache,
        list_key=('/api/projects', project_id, 'phases'),
        item_path='/api/project-phases',
        create_path=f'/api/projects/{project_id}/phases',
    )


def project_documents(api, cache, project_id):
    return ResourceRepository(
        api, cache,
        list_key=('/api/projects', project_id, 'documents'),
        item_path='/api/documents',
        create_path=f'/api/projects/{project_id}/documents',
    )


def clients(api, cache):
    return ResourceRepository(api, cache, ('/api/clients',), '/api/clients', invalidates=[DASHBOARD_KEY])


def work_orders(api, cache):
    return ResourceRepository(api, cache, ('/api/work-orders',), '/api/work-orders', invalidates=[DASHBOARD_KEY])


def maintenances(api, cache):
    return ResourceRepository(api, cache, ('/api/maintenances',), '/api/maintenances', invalidates=[DASHBOARD_KEY])


def repairs(api, cache):
    return ResourceRepository(api, cache, ('/api/repairs',), '/api/repairs', invalidates=[DASHBOARD_KEY])


def business(api, cache, resource):
    if resource not in BUSINESS_RESOURCES:
        raise ValueError(f"Unknown business resource: {resource}")
    return ResourceRepository(
        api, cache,
        list_key=('/api/business', resource),
        item_path=f'/api/business/{resource}',
        invalidates=[('/api/business', 'dashboard')],
    )


def communication_providers(api, cache):
    return ResourceRepository(api, cache, ('/api/communication-providers',), '/api/communication-providers')


def emails(api, cache):
    return ResourceRepository(api, cache, ('/api/emails',), '/api/emails')


def session(cache):
    """Current session, or None when signed out"""
    return cache.get_query(SESSION_KEY, cache.default_fetch(SESSION_KEY, on_401='return_null'))
