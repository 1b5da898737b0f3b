"""Email inbox, providers, SMS and the communication log"""
from smartwater.client import resources
from smartwater.client.forms import Form
from smartwater.client.mutations import Mutation
from smartwater.client.views.base import EntityView
from smartwater.schemas.communication import (
    CommunicationProviderSchema, SendEmailSchema, SendSmsSchema, EmailLinkSchema
)

LOG_KEY = ('/api/communications', 'log')


class CommunicationsView(EntityView):

    def __init__(self, api, cache, **kwargs):
        super().__init__(api, cache, **kwargs)
        self.providers_repository = resources.communication_providers(api, cache)
        self.emails_repository = resources.emails(api, cache)
        self.watch(self.providers_repository.list_key)
        self.watch(self.emails_repository.list_key)
        self.watch(LOG_KEY)

    @property
    def providers(self):
        return self.data(self.providers_repository.list_key, [])

    @property
    def inbox(self):
        return self.data(self.emails_repository.list_key, {}).get('emails', [])

    @property
    def log(self):
        return self.data(LOG_KEY, [])

    # Providers

    def add_provider(self, values):
        form = Form(CommunicationProviderSchema, values)
        if not form.validate():
            self.form_errors(form)
            return None
        return self.run(self.providers_repository.create_mutation(), form.payload(),
                        success='Provider added', failure='Could not add provider')

    def update_provider(self, provider_id, changes):
        return self.run(self.providers_repository.update_mutation(), (provider_id, changes),
                        success='Provider updated', failure='Could not update provider')

    def remove_provider(self, provider_id):
        return self.run(self.providers_repository.delete_mutation(), provider_id,
                        success='Provider removed', failure='Could not remove provider')

    # Email

    def send_email(self, values):
        form = Form(SendEmailSchema, values)
        if not form.validate():
            self.form_errors(form)
            return None
        mutation = Mutation(
            self.cache,
            lambda body: self.api.post('/api/emails/send', json=body),
            invalidates=[self.emails_repository.list_key],
        )
        return self.run(mutation, form.payload(), success='Email sent', failure='Could not send email')

    def sync(self, provider_id=None, max_results=25):
        mutation = Mutation(
            self.cache,
            lambda body: self.api.post('/api/emails/sync', json=body),
            invalidates=[self.emails_repository.list_key],
        )
        result = self.run(mutation, {'providerId': provider_id, 'maxResults': max_results}, failure='Sync failed')
        if result is not None:
            self.toaster.success('Inbox synced', f"{result['synced']} new message(s)")
        return result

    def link_email(self, email_id, link_type, target_id):
        form = Form(EmailLinkSchema, {'linkType': link_type, 'targetId': target_id})
        if not form.validate():
            self.form_errors(form)
            return None
        mutation = Mutation(
            self.cache,
            lambda body: self.api.post(f'/api/emails/{email_id}/link', json=body),
            invalidates=[self.emails_repository.list_key],
        )
        return self.run(mutation, form.payload(), success='Email linked', failure='Could not link email')

    def unlink_email(self, link_id):
        mutation = Mutation(
            self.cache,
            lambda variables: self.api.delete(f'/api/emails/link/{link_id}'),
            invalidates=[self.emails_repository.list_key],
        )
        return self.run(mutation, success='Link removed', failure='Could not remove link')

    # SMS

    def send_sms(self, values):
        form = Form(SendSmsSchema, values)
        if not form.validate():
            self.form_errors(form)
            return None
        mutation = Mutation(
            self.cache,
            lambda body: self.api.post('/api/sms/send', json=body),
            invalidates=[LOG_KEY],
        )
        return self.run(mutation, form.payload(), success='Message sent', failure='Could not send message')
