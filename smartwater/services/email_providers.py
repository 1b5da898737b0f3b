"""
Email provider clients.

Gmail and Outlook are read (sync) and written (send) with the provider's
OAuth tokens; SendGrid only sends. Fetched messages are returned as plain
dicts keyed by Email column names so the caller decides what to persist.
"""
import base64
import logging
from datetime import datetime, timedelta, timezone
from email.message import EmailMessage
from email.utils import getaddresses, parsedate_to_datetime

import requests
from flask import current_app

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = 'https://oauth2.googleapis.com/token'
GMAIL_API = 'https://gmail.googleapis.com/gmail/v1/users/me'
GRAPH_API = 'https://graph.microsoft.com/v1.0/me'
SENDGRID_SEND_URL = 'https://api.sendgrid.com/v3/mail/send'
TIMEOUT = 15


class ProviderError(Exception):
    """Upstream provider rejected or failed a request"""


def _check(response, action):
    if response.status_code >= 400:
        logger.error(f"{action} failed with {response.status_code}: {response.text[:200]}")
        raise ProviderError(f"{action} failed ({response.status_code})")
    return response


def refresh_google_token(provider):
    """Refresh the provider's Gmail access token when it is missing or about to expire"""
    expires_at = provider.token_expires_at
    if expires_at is not None and expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    if provider.access_token and expires_at and expires_at > datetime.now(timezone.utc) + timedelta(minutes=1):
        return provider.access_token
    if not provider.refresh_token:
        if provider.access_token:
            return provider.access_token
        raise ProviderError('Gmail provider is not connected')

    response = _check(requests.post(GOOGLE_TOKEN_URL, data={
        'client_id': provider.client_id or current_app.config.get('GOOGLE_CLIENT_ID'),
        'client_secret': provider.client_secret or current_app.config.get('GOOGLE_CLIENT_SECRET'),
        'refresh_token': provider.refresh_token,
        'grant_type': 'refresh_token',
    }, timeout=TIMEOUT), 'Gmail token refresh')
    data = response.json()
    provider.access_token = data['access_token']
    provider.token_expires_at = datetime.now(timezone.utc) + timedelta(seconds=data.get('expires_in', 3600))
    return provider.access_token


def _header(headers, name):
    for header in headers:
        if header.get('name', '').lower() == name.lower():
            return header.get('value')
    return None


def _addresses(value):
    return [address for _, address in getaddresses([value])] if value else []


def _gmail_body(payload):
    """First text/plain part of a Gmail message payload"""
    if payload.get('mimeType') == 'text/plain' and payload.get('body', {}).get('data'):
        return base64.urlsafe_b64decode(payload['body']['data'] + '==').decode('utf-8', errors='replace')
    for part in payload.get('parts', []) or []:
        body = _gmail_body(part)
        if body:
            return body
    return ''


def parse_gmail_message(message):
    payload = message.get('payload', {})
    headers = payload.get('headers', [])
    date_header = _header(headers, 'Date')
    try:
        received_at = parsedate_to_datetime(date_header) if date_header else None
    except (TypeError, ValueError):
        received_at = None
    return {
        'external_id': message['id'],
        'thread_id': message.get('threadId'),
        'subject': _header(headers, 'Subject') or '(no subject)',
        'from_address': _header(headers, 'From'),
        'to_addresses': _addresses(_header(headers, 'To')),
        'cc': _addresses(_header(headers, 'Cc')),
        'body': _gmail_body(payload) or message.get('snippet', ''),
        'is_read': 'UNREAD' not in message.get('labelIds', []),
        'received_at': received_at,
    }


def fetch_gmail(provider, max_results=25):
    token = refresh_google_token(provider)
    headers = {'Authorization': f'Bearer {token}'}
    listing = _check(requests.get(f'{GMAIL_API}/messages', headers=headers,
                                  params={'maxResults': max_results}, timeout=TIMEOUT), 'Gmail list')
    messages = []
    for ref in listing.json().get('messages', []):
        detail = _check(requests.get(f"{GMAIL_API}/messages/{ref['id']}", headers=headers,
                                     params={'format': 'full'}, timeout=TIMEOUT), 'Gmail fetch')
        messages.append(parse_gmail_message(detail.json()))
    return messages


def parse_outlook_message(message):
    received = message.get('receivedDateTime')
    return {
        'external_id': message['id'],
        'thread_id': message.get('conversationId'),
        'subject': message.get('subject') or '(no subject)',
        'from_address': (message.get('from') or {}).get('emailAddress', {}).get('address'),
        'to_addresses': [r['emailAddress']['address'] for r in message.get('toRecipients', [])],
        'cc': [r['emailAddress']['address'] for r in message.get('ccRecipients', [])],
        'body': (message.get('body') or {}).get('content', ''),
        'is_read': bool(message.get('isRead')),
        'received_at': datetime.fromisoformat(received.replace('Z', '+00:00')) if received else None,
    }


def fetch_outlook(provider, max_results=25):
    if not provider.access_token:
        raise ProviderError('Outlook provider is not connected')
    response = _check(requests.get(f'{GRAPH_API}/messages', headers={'Authorization': f'Bearer {provider.access_token}'},
                                   params={'$top': max_results}, timeout=TIMEOUT), 'Outlook list')
    return [parse_outlook_message(message) for message in response.json().get('value', [])]


def fetch_messages(provider, max_results=25):
    if provider.type == 'gmail':
        return fetch_gmail(provider, max_results)
    if provider.type == 'outlook':
        return fetch_outlook(provider, max_results)
    raise ProviderError(f"Provider type '{provider.type}' does not support email sync")


def build_mime(sender, to, cc, subject, body):
    message = EmailMessage()
    if sender:
        message['From'] = sender
    message['To'] = ', '.join(to)
    if cc:
        message['Cc'] = ', '.join(cc)
    message['Subject'] = subject
    message.set_content(body or '')
    return message


def send_gmail(provider, to, cc, subject, body):
    token = refresh_google_token(provider)
    raw = base64.urlsafe_b64encode(build_mime(provider.email, to, cc, subject, body).as_bytes()).decode()
    response = _check(requests.post(f'{GMAIL_API}/messages/send', headers={'Authorization': f'Bearer {token}'},
                                    json={'raw': raw}, timeout=TIMEOUT), 'Gmail send')
    data = response.json()
    return {'external_id': data.get('id'), 'thread_id': data.get('threadId')}


def send_outlook(provider, to, cc, subject, body):
    if not provider.access_token:
        raise ProviderError('Outlook provider is not connected')
    message = {
        'subject': subject,
        'body': {'contentType': 'Text', 'content': body or ''},
        'toRecipients': [{'emailAddress': {'address': address}} for address in to],
        'ccRecipients': [{'emailAddress': {'address': address}} for address in cc],
    }
    _check(requests.post(f'{GRAPH_API}/sendMail', headers={'Authorization': f'Bearer {provider.access_token}'},
                         json={'message': message, 'saveToSentItems': True}, timeout=TIMEOUT), 'Outlook send')
    return {'external_id': None, 'thread_id': None}


def send_sendgrid(provider, to, cc, subject, body):
    api_key = provider.api_key or current_app.config.get('SENDGRID_API_KEY')
    if not api_key:
        raise ProviderError('SendGrid API key is not configured')
    personalization = {'to': [{'email': address} for address in to]}
    if cc:
        personalization['cc'] = [{'email': address} for address in cc]
    response = _check(requests.post(SENDGRID_SEND_URL, headers={'Authorization': f'Bearer {api_key}'}, json={
        'personalizations': [personalization],
        'from': {'email': provider.email},
        'subject': subject,
        'content': [{'type': 'text/plain', 'value': body or ' '}],
    }, timeout=TIMEOUT), 'SendGrid send')
    return {'external_id': response.headers.get('X-Message-Id'), 'thread_id': None}


SENDERS = {
    'gmail': send_gmail,
    'outlook': send_outlook,
    'sendgrid': send_sendgrid,
}


def send_message(provider, to, cc, subject, body):
    sender = SENDERS.get(provider.type)
    if sender is None:
        raise ProviderError(f"Provider type '{provider.type}' cannot send email")
    result = sender(provider, to, cc, subject, body)
    logger.info(f"Sent email via {provider.type} provider {provider.id} to {len(to)} recipient(s)")
    return result
