"""Outbound SMS through Twilio's REST API"""
import logging

import requests

from smartwater.services.email_providers import ProviderError

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = 'https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json'


def send_sms(provider, to, body):
    if provider.type != 'twilio':
        raise ProviderError(f"Provider type '{provider.type}' cannot send SMS")
    if not (provider.account_sid and provider.auth_token and provider.phone_number):
        raise ProviderError('Twilio provider is missing account SID, auth token or phone number')

    response = requests.post(
        TWILIO_MESSAGES_URL.format(sid=provider.account_sid),
        auth=(provider.account_sid, provider.auth_token),
        data={'To': to, 'From': provider.phone_number, 'Body': body},
        timeout=15,
    )
    if response.status_code >= 400:
        logger.error(f"Twilio send failed with {response.status_code}: {response.text[:200]}")
        raise ProviderError(f"Twilio send failed ({response.status_code})")

    data = response.json()
    logger.info(f"Sent SMS {data.get('sid')} via provider {provider.id}")
    return {'external_id': data.get('sid'), 'status': data.get('status', 'queued'), 'from': provider.phone_number}
