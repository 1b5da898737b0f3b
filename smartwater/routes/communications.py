from flask import Blueprint, request, jsonify, current_app
from smartwater import db
from smartwater.models.client import Client
from smartwater.models.communication import CommunicationProvider, CommunicationLog
from smartwater.schemas.base import validate_create, validate_update
from smartwater.schemas.communication import CommunicationProviderSchema, SendSmsSchema
from smartwater.services.email_providers import ProviderError
from smartwater.services.sms import send_sms
from smartwater.utils.auth import require_auth, require_role, STAFF_ROLES
from smartwater.utils.tenancy import get_owned_or_404, scoped, current_org_id
from datetime import datetime, timezone

bp = Blueprint('communications', __name__)


def drop_masked(data):
    """Masked secrets echoed back by a form must not overwrite the stored value"""
    return {
        field: value for field, value in data.items()
        if not (field in CommunicationProvider.SECRET_FIELDS and isinstance(value, str) and value.startswith('***'))
    }


def clear_other_defaults(provider):
    if provider.is_default:
        CommunicationProvider.query.filter(
            CommunicationProvider.organization_id == provider.organization_id,
            CommunicationProvider.type == provider.type,
            CommunicationProvider.id != provider.id,
        ).update({'is_default': False})


def resolve_provider(provider_id, types):
    """Explicit provider, else the organization's default (or first active) of the given types"""
    if provider_id:
        provider = get_owned_or_404(CommunicationProvider, provider_id, 'Provider')
        return provider if provider.type in types and provider.is_active else None
    query = scoped(CommunicationProvider.query, CommunicationProvider).filter(
        CommunicationProvider.type.in_(types), CommunicationProvider.is_active.is_(True)
    )
    return query.order_by(CommunicationProvider.is_default.desc(), CommunicationProvider.id).first()


@bp.route('/communication-providers', methods=['GET'])
@require_auth
@require_role(*STAFF_ROLES)
def get_providers():
    """
    Configured communication providers (secrets masked)
    ---
    tags:
      - Communications
    security:
      - Bearer: []
    responses:
      200:
        description: Providers of the caller's organization
    """
    providers = scoped(CommunicationProvider.query, CommunicationProvider) \
        .order_by(CommunicationProvider.type, CommunicationProvider.name).all()
    return jsonify([provider.to_dict() for provider in providers]), 200


@bp.route('/communication-providers/<int:provider_id>', methods=['GET'])
@require_auth
@require_role(*STAFF_ROLES)
def get_provider(provider_id):
    return jsonify(get_owned_or_404(CommunicationProvider, provider_id, 'Provider').to_dict()), 200


@bp.route('/communication-providers', methods=['POST'])
@require_auth
@require_role('org_admin', 'admin')
def create_provider():
    data = validate_create(CommunicationProviderSchema, request.get_json(silent=True))
    provider = CommunicationProvider(organization_id=current_org_id(), **data)
    db.session.add(provider)
    db.session.flush()
    clear_other_defaults(provider)
    db.session.commit()

    current_app.logger.info(f"Added {provider.type} provider {provider.id}")
    return jsonify(provider.to_dict()), 201


@bp.route('/communication-providers/<int:provider_id>', methods=['PATCH'])
@require_auth
@require_role('org_admin', 'admin')
def update_provider(provider_id):
    provider = get_owned_or_404(CommunicationProvider, provider_id, 'Provider')
    changes = validate_update(CommunicationProviderSchema, provider.to_dict(), request.get_json(silent=True))
    for field, value in drop_masked(changes).items():
        setattr(provider, field, value)
    clear_other_defaults(provider)
    db.session.commit()
    return jsonify(provider.to_dict()), 200


@bp.route('/communication-providers/<int:provider_id>', methods=['DELETE'])
@require_auth
@require_role('org_admin', 'admin')
def delete_provider(provider_id):
    provider = get_owned_or_404(CommunicationProvider, provider_id, 'Provider')
    db.session.delete(provider)
    db.session.commit()
    return jsonify({'message': 'Provider deleted successfully'}), 200


@bp.route('/sms/send', methods=['POST'])
@require_auth
@require_role(*STAFF_ROLES, 'technician')
def send_text_message():
    data = SendSmsSchema.model_validate(request.get_json(silent=True) or {})
    if data.client_id:
        get_owned_or_404(Client, data.client_id, 'Client')

    provider = resolve_provider(data.provider_id, ('twilio',))
    if provider is None:
        return jsonify({'error': 'No active SMS provider configured'}), 400

    try:
        result = send_sms(provider, data.to, data.body)
    except ProviderError as e:
        return jsonify({'error': str(e)}), 502

    log = CommunicationLog(
        organization_id=provider.organization_id,
        provider_id=provider.id,
        client_id=data.client_id,
        channel='sms',
        direction='outbound',
        from_number=result['from'],
        to_number=data.to,
        body=data.body,
        status=result['status'],
        external_id=result['external_id'],
    )
    provider.last_used_at = datetime.now(timezone.utc)
    db.session.add(log)
    db.session.commit()
    return jsonify(log.to_dict()), 201


@bp.route('/communications/log', methods=['GET'])
@require_auth
@require_role(*STAFF_ROLES)
def get_communication_log():
    """SMS and voice history, newest first; filter with channel and clientId"""
    query = scoped(CommunicationLog.query, CommunicationLog)
    channel = request.args.get('channel')
    if channel:
        query = query.filter(CommunicationLog.channel == channel)
    client_id = request.args.get('clientId', type=int)
    if client_id:
        query = query.filter(CommunicationLog.client_id == client_id)
    limit = min(request.args.get('limit', 100, type=int), 500)
    entries = query.order_by(CommunicationLog.created_at.desc(), CommunicationLog.id.desc()).limit(limit).all()
    return jsonify([entry.to_dict() for entry in entries]), 200
