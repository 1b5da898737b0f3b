import json
from datetime import date

import pytest

from config import TestingConfig
from smartwater import create_app, db
from smartwater.client.api import ApiClient
from smartwater.client.query_cache import QueryCache
from smartwater.client.toasts import Toaster
from smartwater.models import Organization, User, Client, Project, ProjectPhase
from smartwater.utils.auth import issue_access_token


@pytest.fixture
def app(tmp_path):
    class Config(TestingConfig):
        # A file database lets the query cache's worker threads use their own connections
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'smartwater.db'}"
        UPLOAD_FOLDER = str(tmp_path / 'uploads')

    app = create_app(Config)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def make_org(name='Blue Lagoon Pools', slug=None, status='active'):
    org = Organization(name=name, slug=slug or name.lower().replace(' ', '-'), subscription_status=status)
    db.session.add(org)
    db.session.commit()
    return org


def make_user(org, username='admin', role='org_admin', password='password123', **kwargs):
    user = User(
        username=username,
        name=kwargs.pop('name', username.title()),
        email=kwargs.pop('email', f'{username}@example.com'),
        role=role,
        organization_id=org.id if org else None,
        **kwargs,
    )
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


def make_client(org, username='jsmith', **kwargs):
    user = make_user(org, username=username, role='client', name=kwargs.pop('name', 'John Smith'))
    record = Client(user_id=user.id, organization_id=org.id, **kwargs)
    db.session.add(record)
    db.session.commit()
    return record


def make_project(client_record, name='Backyard Pool', **kwargs):
    kwargs.setdefault('start_date', date(2024, 5, 1))
    project = Project(client_id=client_record.id, name=name, **kwargs)
    db.session.add(project)
    db.session.commit()
    return project


def make_phase(project, name, order=0, **kwargs):
    phase = ProjectPhase(project_id=project.id, name=name, order=order, **kwargs)
    db.session.add(phase)
    db.session.commit()
    return phase


def auth_headers(user):
    return {'Authorization': f'Bearer {issue_access_token(user)}'}


@pytest.fixture
def org(app):
    return make_org()


@pytest.fixture
def admin(org):
    return make_user(org)


@pytest.fixture
def headers(admin):
    return auth_headers(admin)


@pytest.fixture
def pool_client(org):
    return make_client(org, company_name='Smith Residence')


@pytest.fixture
def project(pool_client):
    return make_project(pool_client)


class FlaskResponse:
    """The parts of requests.Response that ApiClient reads"""

    def __init__(self, response):
        self.status_code = response.status_code
        self.content = response.get_data()
        self.text = response.get_data(as_text=True)
        self.reason = response.status.split(' ', 1)[-1]
        self.headers = response.headers

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return json.loads(self.text)


class FlaskSession:
    """Stand-in for requests.Session that dispatches into the Flask app in-process"""

    def __init__(self, app):
        self.app = app
        self.calls = []

    def request(self, method, url, json=None, params=None, data=None, files=None, headers=None, timeout=None):
        self.calls.append((method, url, json))
        kwargs = {'headers': headers or {}, 'query_string': params}
        if json is not None:
            kwargs['json'] = json
        if files:
            form = dict(data or {})
            for field, (filename, stream, content_type) in files.items():
                form[field] = (stream, filename, content_type)
            kwargs['data'] = form
            kwargs['content_type'] = 'multipart/form-data'
        elif data is not None:
            kwargs['data'] = data
        response = self.app.test_client().open(url, method=method, **kwargs)
        return FlaskResponse(response)

    def requests_for(self, method, path=None):
        return [call for call in self.calls if call[0] == method and (path is None or call[1] == path)]


@pytest.fixture
def session(app):
    return FlaskSession(app)


@pytest.fixture
def api(session, admin):
    return ApiClient(session=session, token=issue_access_token(admin))


@pytest.fixture
def cache(api):
    cache = QueryCache(api, max_workers=1)
    yield cache
    cache.wait_until_idle()
    cache.shutdown()


@pytest.fixture
def toaster():
    return Toaster()
