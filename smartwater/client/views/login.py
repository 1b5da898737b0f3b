"""Login screen: password sign-in, Google sign-in and OAuth error codes"""
from dataclasses import dataclass
from typing import Optional

from smartwater.client import resources
from smartwater.client.api import ApiError
from smartwater.client.forms import Form
from smartwater.client.views.base import EntityView
from smartwater.schemas.auth import LoginSchema, RegisterSchema


@dataclass(frozen=True)
class LoginError:
    code: str
    title: str
    message: str
    variant: str = 'error'  # 'error' | 'warning'
    redirect: Optional[str] = None


LOGIN_ERRORS = {
    'google-auth-failed': LoginError(
        'google-auth-failed', 'Google Authentication Failed',
        'We could not sign you in with Google. Please try again.'),
    'no-organization': LoginError(
        'no-organization', 'Organization Setup Required',
        'Your account is not associated with an organization. Please complete the subscription process.',
        'warning', '/pricing'),
    'no-subscription': LoginError(
        'no-subscription', 'Subscription Required',
        "Your organization doesn't have an active subscription. Please subscribe to continue.",
        'warning', '/pricing'),
    'invalid-subscription': LoginError(
        'invalid-subscription', 'Subscription Issue',
        'There was an issue with your subscription. Please contact support or update your subscription.'),
    'inactive-subscription': LoginError(
        'inactive-subscription', 'Subscription Expired',
        'Your subscription is not active. Please renew your subscription to continue.',
        'warning'),
    'authentication-timeout': LoginError(
        'authentication-timeout', 'Authentication Timeout',
        'The sign-in request took too long to complete. Please try again.'),
    'state-mismatch': LoginError(
        'state-mismatch', 'Security Check Failed',
        'The sign-in request could not be verified. Please try again.'),
    'network-error': LoginError(
        'network-error', 'Connection Problem',
        'We could not reach the sign-in service. Please check your internet connection and try again.'),
    'access-denied': LoginError(
        'access-denied', 'Access Denied',
        'You cancelled the authentication or did not grant the required permissions.',
        'warning'),
    'server-error': LoginError(
        'server-error', 'Server Error',
        'Something went wrong on our side. Please try again in a few moments.'),
}


def login_error_for(code):
    """Display text for an ``?error=`` code; unknown codes get a generic message"""
    if not code:
        return None
    known = LOGIN_ERRORS.get(code)
    if known is not None:
        return known
    return LoginError(code, 'Authentication Error',
                      f'Sign-in failed with an unknown error code ({code}). Please try again.')


class LoginView(EntityView):

    def __init__(self, api, cache, query_params=None, **kwargs):
        super().__init__(api, cache, **kwargs)
        self.query_params = dict(query_params or {})
        self.error = login_error_for(self.query_params.get('error'))
        self.redirect_path = self.query_params.get('redirect') or '/dashboard'

    @property
    def redirect_after_error(self):
        return self.error.redirect if self.error else None

    def login(self, username, password):
        """Returns the session payload on success; failures become a destructive toast"""
        form = Form(LoginSchema, {'username': username, 'password': password})
        if not form.validate():
            self.form_errors(form, 'Enter your username and password')
            return None
        try:
            session = self.api.post('/api/auth/login', json=form.payload())
        except ApiError as e:
            self.toaster.error('Login failed', e)
            return None

        self.api.token = session['token']
        self.cache.set_query_data(resources.SESSION_KEY, session)
        self.error = None
        self.toaster.success('Login successful', 'Welcome back!')
        return session

    def register(self, values):
        form = Form(RegisterSchema, values)
        if not form.validate():
            self.form_errors(form)
            return None
        try:
            session = self.api.post('/api/auth/register', json=form.payload())
        except ApiError as e:
            self.toaster.error('Registration error', e)
            return None

        self.api.token = session['token']
        self.cache.set_query_data(resources.SESSION_KEY, session)
        self.toaster.success('Registration successful', 'Your account has been created, and you are now logged in.')
        return session

    def google_login_url(self):
        """Start URL for Google sign-in, carrying a freshly signed state"""
        prepared = self.get('/api/auth/prepare-oauth', failure='Login error')
        return prepared['authUrl'] if prepared else None

    def complete_oauth(self, token):
        """Token from the ``/oauth-complete#token=`` redirect"""
        self.api.token = token
        self.cache.invalidate_queries(resources.SESSION_KEY)
        return self.cache.fetch_query(resources.SESSION_KEY,
                                      self.cache.default_fetch(resources.SESSION_KEY, on_401='return_null'))

    def logout(self):
        self.api.post('/api/auth/logout')
        self.api.token = None
        self.cache.clear()
