"""
Python client for the SmartWater API: cached queries, mutations that
invalidate them, schema-backed forms and per-screen view models.
"""

from smartwater.client.api import ApiClient, ApiError
from smartwater.client.query_cache import QueryCache, QueryState
from smartwater.client.mutations import Mutation
from smartwater.client.forms import Form
from smartwater.client.toasts import Toast, Toaster
from smartwater.client.events import open_tab, TabRequest, TabManager, request_tab
from smartwater.client.resources import ResourceRepository

__all__ = [
    'ApiClient', 'ApiError', 'QueryCache', 'QueryState', 'Mutation', 'Form',
    'Toast', 'Toaster', 'open_tab', 'TabRequest', 'TabManager', 'request_tab',
    'ResourceRepository',
]
