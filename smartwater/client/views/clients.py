"""Client list and client details"""
from smartwater.client import resources
from smartwater.client.api import ApiError
from smartwater.client.events import request_tab
from smartwater.client.forms import Form
from smartwater.client.views.base import EntityView
from smartwater.schemas.service import ClientSchema

CLIENT_NOT_FOUND = 'Client not found'


def flatten_client(record):
    """The nested API record as the flat field set the client form edits"""
    if not record:
        return {}
    flat = dict(record.get('client') or {})
    user = record.get('user') or {}
    for key in ('name', 'email', 'phone', 'address'):
        flat[key] = user.get(key)
    return flat


class ClientListView(EntityView):

    def __init__(self, api, cache, **kwargs):
        super().__init__(api, cache, **kwargs)
        self.repository = resources.clients(api, cache)
        self.search = ''
        self.watch(self.repository.list_key)

    @property
    def clients(self):
        clients = self.data(self.repository.list_key, [])
        if not self.search:
            return clients
        term = self.search.lower()
        return [client for client in clients
                if term in (flatten_client(client).get('name') or '').lower()
                or term in (client.get('companyName') or '').lower()]

    def create_client(self, values):
        form = Form(ClientSchema, values)
        if not form.validate():
            self.form_errors(form)
            return None
        return self.run(self.repository.create_mutation(), form.payload(),
                        success='Client created', failure='Could not create client')

    def delete_client(self, client_id):
        return self.run(self.repository.delete_mutation(), client_id,
                        success='Client deleted', failure='Could not delete client')

    def open_client(self, client_id):
        client = next((client for client in self.clients if client['id'] == client_id), None)
        title = flatten_client(client).get('name') or f'Client {client_id}'
        return request_tab(self, f'/clients/{client_id}', title, icon='user')


class ClientDetailsView(EntityView):

    def __init__(self, api, cache, client_id, **kwargs):
        super().__init__(api, cache, **kwargs)
        self.client_id = client_id
        self.repository = resources.clients(api, cache)
        self.key = self.repository.item_key(client_id)
        self.emails_key = ('/api/emails', 'by-client', client_id)
        self.watch(self.key)
        self.watch(self.emails_key)

    @property
    def client(self):
        return self.data(self.key)

    @property
    def not_found(self):
        state = self.state(self.key)
        return bool(state and isinstance(state.error, ApiError) and state.error.is_not_found
                    and state.data is None)

    @property
    def empty_state(self):
        if self.not_found:
            return CLIENT_NOT_FOUND
        return None

    @property
    def emails(self):
        """Linked emails"""
        return self.data(self.emails_key, [])

    def edit_form(self):
        return Form.from_record(ClientSchema, flatten_client(self.client))

    def save(self, form):
        if not form.validate():
            self.form_errors(form)
            return None
        changes = form.changed_fields()
        if not changes:
            return None
        return self.run(self.repository.update_mutation(), (self.client_id, changes),
                        success='Client updated', failure='Could not update client')

    def update(self, values):
        form = self.edit_form()
        form.update(values)
        return self.save(form)
