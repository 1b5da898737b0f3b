"""HTTP access to the SmartWater API"""
import logging

import requests

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-2xx response; str() reads "<status>: <body>" as shown in toasts"""

    def __init__(self, status, message):
        super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message

    @property
    def is_not_found(self):
        return self.status == 404


class NetworkError(ApiError):
    """The server could not be reached; carries no HTTP status"""

    def __init__(self, message='Could not connect to the server'):
        Exception.__init__(self, message)
        self.status = None
        self.message = message


class ApiClient:
    """
    Thin wrapper over a requests session.

    ``session`` may be any object with the ``requests.Session.request``
    signature, which is how tests drive the real Flask app in-process.
    """

    def __init__(self, base_url='', session=None, token=None, timeout=30):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.token = token
        self.timeout = timeout

    def url(self, path):
        return f"{self.base_url}{path}"

    def request(self, method, path, json=None, params=None, data=None, files=None, on_401='throw'):
        headers = {'Accept': 'application/json'}
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'

        try:
            response = self.session.request(
                method, self.url(path),
                json=json, params=params, data=data, files=files,
                headers=headers, timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise NetworkError() from e

        if on_401 == 'return_null' and response.status_code == 401:
            return None
        if response.status_code >= 400:
            message = response.text or response.reason
            logger.debug(f"{method} {path} failed: {response.status_code} {message}")
            raise ApiError(response.status_code, message)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def get(self, path, params=None, on_401='throw'):
        return self.request('GET', path, params=params, on_401=on_401)

    def post(self, path, json=None, data=None, files=None):
        return self.request('POST', path, json=json, data=data, files=files)

    def patch(self, path, json=None):
        return self.request('PATCH', path, json=json)

    def put(self, path, json=None):
        return self.request('PUT', path, json=json)

    def delete(self, path):
        return self.request('DELETE', path)
