"""Communication provider, email and SMS schemas"""
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, field_validator

from smartwater.schemas.base import FormSchema

ProviderType = Literal['gmail', 'outlook', 'sendgrid', 'twilio', 'ringcentral']


def split_addresses(value):
    if isinstance(value, str):
        return [part.strip() for part in value.replace(';', ',').split(',') if part.strip()]
    return value


class CommunicationProviderSchema(FormSchema):
    type: ProviderType
    name: str = Field(min_length=1, max_length=255)
    is_default: bool = False
    is_active: bool = True
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    api_key: Optional[str] = None
    account_sid: Optional[str] = None
    auth_token: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    settings: Dict[str, Any] = Field(default_factory=dict)


class SendEmailSchema(FormSchema):
    provider_id: Optional[int] = None
    to: List[str] = Field(min_length=1)
    cc: List[str] = Field(default_factory=list)
    subject: str = Field(min_length=1, max_length=998)
    body: str = ''
    project_id: Optional[int] = None
    client_id: Optional[int] = None
    repair_id: Optional[int] = None

    @field_validator('to', 'cc', mode='before')
    @classmethod
    def split_recipients(cls, value):
        return split_addresses(value)


class SyncEmailSchema(FormSchema):
    provider_id: Optional[int] = None
    max_results: int = Field(default=25, ge=1, le=500)


class EmailLinkSchema(FormSchema):
    link_type: Literal['project', 'repair', 'client']
    target_id: int


class SendSmsSchema(FormSchema):
    provider_id: Optional[int] = None
    to: str = Field(min_length=7, max_length=30)
    body: str = Field(min_length=1, max_length=1600)
    client_id: Optional[int] = None
