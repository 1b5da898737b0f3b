from flask import Blueprint, request, jsonify, current_app
from smartwater import db
from smartwater.models.client import Client
from smartwater.models.communication import Email, EmailLink
from smartwater.models.project import Project
from smartwater.models.repair import Repair
from smartwater.routes.communications import resolve_provider
from smartwater.schemas.communication import SendEmailSchema, SyncEmailSchema, EmailLinkSchema
from smartwater.services.email_providers import fetch_messages, send_message, ProviderError
from smartwater.utils.auth import require_auth, require_role, STAFF_ROLES
from smartwater.utils.tenancy import get_owned_or_404, scoped
from datetime import datetime, timezone

bp = Blueprint('emails', __name__)

LINK_TARGETS = {
    'project': (Project, 'Project'),
    'repair': (Repair, 'Repair'),
    'client': (Client, 'Client'),
}


def linked_emails(link_type, target_id):
    model, label = LINK_TARGETS[link_type]
    get_owned_or_404(model, target_id, label)
    emails = scoped(Email.query, Email).join(EmailLink, EmailLink.email_id == Email.id) \
        .filter(EmailLink.link_type == link_type, EmailLink.target_id == target_id) \
        .order_by(Email.received_at.desc()).all()
    return jsonify([email.to_dict() for email in emails]), 200


def add_link(email, link_type, target_id):
    model, label = LINK_TARGETS[link_type]
    get_owned_or_404(model, target_id, label)
    link = EmailLink.query.filter_by(email_id=email.id, link_type=link_type, target_id=target_id).first()
    if link:
        return link, False
    link = EmailLink(email_id=email.id, link_type=link_type, target_id=target_id)
    db.session.add(link)
    return link, True


@bp.route('', methods=['GET'])
@require_auth
@require_role(*STAFF_ROLES)
def get_emails():
    """
    Paginated inbox
    ---
    tags:
      - Communications
    security:
      - Bearer: []
    parameters:
      - name: page
        in: query
        schema:
          type: integer
          default: 1
      - name: perPage
        in: query
        schema:
          type: integer
          default: 20
      - name: search
        in: query
        schema:
          type: string
      - name: providerId
        in: query
        schema:
          type: integer
    responses:
      200:
        description: One page of emails, newest first
    """
    page = request.args.get('page', 1, type=int)
    per_page = min(request.args.get('perPage', current_app.config['POSTS_PER_PAGE'], type=int), 100)

    query = scoped(Email.query, Email)
    provider_id = request.args.get('providerId', type=int)
    if provider_id:
        query = query.filter(Email.provider_id == provider_id)
    search = request.args.get('search')
    if search:
        pattern = f"%{search.lower()}%"
        query = query.filter(db.or_(
            db.func.lower(Email.subject).like(pattern),
            db.func.lower(Email.from_address).like(pattern),
            db.func.lower(Email.body).like(pattern),
        ))

    pagination = query.order_by(Email.received_at.desc(), Email.id.desc()) \
        .paginate(page=page, per_page=per_page, error_out=False)
    return jsonify({
        'emails': [email.to_dict() for email in pagination.items],
        'total': pagination.total,
        'page': page,
        'perPage': per_page,
        'pages': pagination.pages,
    }), 200


@bp.route('/<int:email_id>', methods=['GET'])
@require_auth
@require_role(*STAFF_ROLES)
def get_email(email_id):
    email = get_owned_or_404(Email, email_id, 'Email')
    return jsonify(email.to_dict(include_links=True)), 200


@bp.route('/by-project/<int:project_id>', methods=['GET'])
@require_auth
@require_role(*STAFF_ROLES)
def get_project_emails(project_id):
    return linked_emails('project', project_id)


@bp.route('/by-client/<int:client_id>', methods=['GET'])
@require_auth
@require_role(*STAFF_ROLES)
def get_client_emails(client_id):
    return linked_emails('client', client_id)


@bp.route('/by-repair/<int:repair_id>', methods=['GET'])
@require_auth
@require_role(*STAFF_ROLES)
def get_repair_emails(repair_id):
    return linked_emails('repair', repair_id)


@bp.route('/sync', methods=['POST'])
@require_auth
@require_role(*STAFF_ROLES)
def sync_emails():
    """Pull recent messages from a Gmail or Outlook provider"""
    data = SyncEmailSchema.model_validate(request.get_json(silent=True) or {})
    provider = resolve_provider(data.provider_id, ('gmail', 'outlook'))
    if provider is None:
        return jsonify({'error': 'No active email provider configured'}), 400

    try:
        messages = fetch_messages(provider, data.max_results)
    except ProviderError as e:
        db.session.commit()  # keep a refreshed access token
        return jsonify({'error': str(e)}), 502

    created = 0
    for message in messages:
        existing = Email.query.filter_by(
            organization_id=provider.organization_id, external_id=message['external_id']
        ).first()
        if existing:
            existing.is_read = message['is_read']
            continue
        if message['received_at'] is None:
            message['received_at'] = datetime.now(timezone.utc)
        db.session.add(Email(organization_id=provider.organization_id, provider_id=provider.id, **message))
        created += 1

    provider.last_used_at = datetime.now(timezone.utc)
    db.session.commit()

    current_app.logger.info(f"Synced {len(messages)} message(s) from provider {provider.id}, {created} new")
    return jsonify({'synced': created, 'fetched': len(messages), 'providerId': provider.id}), 200


@bp.route('/send', methods=['POST'])
@require_auth
@require_role(*STAFF_ROLES)
def send_email():
    data = SendEmailSchema.model_validate(request.get_json(silent=True) or {})
    provider = resolve_provider(data.provider_id, ('gmail', 'outlook', 'sendgrid'))
    if provider is None:
        return jsonify({'error': 'No active email provider configured'}), 400

    try:
        result = send_message(provider, data.to, data.cc, data.subject, data.body)
    except ProviderError as e:
        return jsonify({'error': str(e)}), 502

    email = Email(
        organization_id=provider.organization_id,
        provider_id=provider.id,
        external_id=result['external_id'],
        thread_id=result['thread_id'],
        subject=data.subject,
        body=data.body,
        from_address=provider.email,
        to_addresses=data.to,
        cc=data.cc,
        is_read=True,
        is_outbound=True,
    )
    db.session.add(email)
    db.session.flush()

    for link_type, target_id in (('project', data.project_id), ('client', data.client_id), ('repair', data.repair_id)):
        if target_id:
            add_link(email, link_type, target_id)

    provider.last_used_at = datetime.now(timezone.utc)
    db.session.commit()
    return jsonify(email.to_dict(include_links=True)), 201


@bp.route('/<int:email_id>/link', methods=['POST'])
@require_auth
@require_role(*STAFF_ROLES)
def link_email(email_id):
    email = get_owned_or_404(Email, email_id, 'Email')
    data = EmailLinkSchema.model_validate(request.get_json(silent=True) or {})
    link, created = add_link(email, data.link_type, data.target_id)
    if not created:
        return jsonify({'error': 'Email is already linked to this record'}), 409
    db.session.commit()
    return jsonify(link.to_dict()), 201


@bp.route('/link/<int:link_id>', methods=['DELETE'])
@require_auth
@require_role(*STAFF_ROLES)
def unlink_email(link_id):
    link = get_owned_or_404(EmailLink, link_id, 'Email link')
    db.session.delete(link)
    db.session.commit()
    return jsonify({'message': 'Email link removed'}), 200
