"""Helper utility functions"""
from datetime import datetime


def iso(value):
    """ISO-8601 string for a date/time/datetime, or None"""
    return value.isoformat() if value is not None else None

def as_float(value):
    """Numeric columns come back as Decimal; JSON wants float"""
    return float(value) if value is not None else None

def parse_iso_datetime(value):
    """Parse an ISO timestamp, accepting a trailing 'Z' for UTC"""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value.replace('Z', '+00:00'))

def mask_secret(value):
    """Mask sensitive tokens in responses (show only last 4 chars)"""
    if not value:
        return value
    return '***' + value[-4:] if len(value) > 4 else '***'

def parse_bool_arg(value, default=False):
    """Interpret a query-string flag such as ?includeArchived=true"""
    if value is None:
        return default
    return value.lower() in ('1', 'true', 'yes')
