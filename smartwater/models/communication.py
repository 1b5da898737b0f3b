from smartwater import db
from smartwater.utils.helpers import iso, mask_secret
from datetime import datetime, timezone

PROVIDER_TYPES = ('gmail', 'outlook', 'sendgrid', 'twilio', 'ringcentral')
EMAIL_LINK_TYPES = ('project', 'repair', 'client')

class CommunicationProvider(db.Model):
    """Credentials for an email / SMS / voice provider configured by an organization"""
    __tablename__ = 'communication_providers'

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey('organizations.id'), nullable=False, index=True)

    type = db.Column(db.Enum(*PROVIDER_TYPES, name='communication_provider_type_enum'), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    is_default = db.Column(db.Boolean, default=False)
    is_active = db.Column(db.Boolean, default=True)

    # Credentials
    client_id = db.Column(db.String(255))
    client_secret = db.Column(db.Text)
    api_key = db.Column(db.Text)
    account_sid = db.Column(db.String(255))
    auth_token = db.Column(db.Text)
    phone_number = db.Column(db.String(30))
    email = db.Column(db.String(255))
    access_token = db.Column(db.Text)
    refresh_token = db.Column(db.Text)
    token_expires_at = db.Column(db.DateTime(timezone=True))

    settings = db.Column(db.JSON, default=dict)
    last_used_at = db.Column(db.DateTime(timezone=True))

    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    SECRET_FIELDS = ('client_secret', 'api_key', 'auth_token', 'access_token', 'refresh_token')

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'name': self.name,
            'isDefault': bool(self.is_default),
            'isActive': bool(self.is_active),
            'clientId': self.client_id,
            'clientSecret': mask_secret(self.client_secret),
            'apiKey': mask_secret(self.api_key),
            'accountSid': self.account_sid,
            'authToken': mask_secret(self.auth_token),
            'phoneNumber': self.phone_number,
            'email': self.email,
            'accessToken': mask_secret(self.access_token),
            'refreshToken': mask_secret(self.refresh_token),
            'tokenExpiresAt': iso(self.token_expires_at),
            'settings': self.settings or {},
            'lastUsedAt': iso(self.last_used_at),
        }

    def __repr__(self):
        return f'<CommunicationProvider {self.type}:{self.name}>'


class Email(db.Model):
    __tablename__ = 'emails'
    __table_args__ = (db.UniqueConstraint('organization_id', 'external_id', name='uq_email_org_external'),)

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey('organizations.id'), nullable=False, index=True)
    provider_id = db.Column(db.Integer, db.ForeignKey('communication_providers.id', ondelete='SET NULL'))

    external_id = db.Column(db.String(255))
    thread_id = db.Column(db.String(255))
    subject = db.Column(db.String(998))
    body = db.Column(db.Text)
    from_address = db.Column(db.String(255))
    to_addresses = db.Column(db.JSON, default=list)
    cc = db.Column(db.JSON, default=list)
    is_read = db.Column(db.Boolean, default=False)
    is_outbound = db.Column(db.Boolean, default=False)
    received_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)

    links = db.relationship('EmailLink', backref='email', lazy='dynamic', cascade='all, delete-orphan')

    def to_dict(self, include_links=False):
        data = {
            'id': self.id,
            'providerId': self.provider_id,
            'externalId': self.external_id,
            'threadId': self.thread_id,
            'subject': self.subject,
            'body': self.body,
            'from': self.from_address,
            'to': self.to_addresses or [],
            'cc': self.cc or [],
            'isRead': bool(self.is_read),
            'isOutbound': bool(self.is_outbound),
            'receivedAt': iso(self.received_at),
        }
        if include_links:
            data['links'] = [link.to_dict() for link in self.links]
        return data

    def __repr__(self):
        return f'<Email {self.subject}>'


class EmailLink(db.Model):
    """Attaches an email to a project, repair or client"""
    __tablename__ = 'email_links'
    __table_args__ = (db.UniqueConstraint('email_id', 'link_type', 'target_id', name='uq_email_link'),)

    id = db.Column(db.Integer, primary_key=True)
    email_id = db.Column(db.Integer, db.ForeignKey('emails.id', ondelete='CASCADE'), nullable=False, index=True)
    link_type = db.Column(db.Enum(*EMAIL_LINK_TYPES, name='email_link_type_enum'), nullable=False)
    target_id = db.Column(db.Integer, nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            'id': self.id,
            'emailId': self.email_id,
            'linkType': self.link_type,
            'targetId': self.target_id,
            'createdAt': iso(self.created_at),
        }


class CommunicationLog(db.Model):
    """SMS and voice activity (voice is recorded only, never controlled)"""
    __tablename__ = 'communication_logs'

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey('organizations.id'), nullable=False, index=True)
    provider_id = db.Column(db.Integer, db.ForeignKey('communication_providers.id', ondelete='SET NULL'))
    client_id = db.Column(db.Integer, db.ForeignKey('clients.id', ondelete='SET NULL'))

    channel = db.Column(db.Enum('sms', 'voice', name='communication_channel_enum'), nullable=False)
    direction = db.Column(db.Enum('inbound', 'outbound', name='communication_direction_enum'), default='outbound')
    from_number = db.Column(db.String(30))
    to_number = db.Column(db.String(30))
    body = db.Column(db.Text)
    status = db.Column(db.String(50))
    external_id = db.Column(db.String(255))
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'providerId': self.provider_id,
            'clientId': self.client_id,
            'channel': self.channel,
            'direction': self.direction,
            'from': self.from_number,
            'to': self.to_number,
            'body': self.body,
            'status': self.status,
            'externalId': self.external_id,
            'createdAt': iso(self.created_at),
        }
