from flask import Blueprint, request, jsonify, current_app
from smartwater import db
from smartwater.models.client import Client
from smartwater.models.user import User
from smartwater.schemas.base import validate_create, validate_update
from smartwater.schemas.service import ClientSchema
from smartwater.utils.auth import require_auth, require_role, STAFF_ROLES
from smartwater.utils.tenancy import get_owned_or_404, scoped, current_org_id
import re
import secrets

bp = Blueprint('clients', __name__)


def unique_username(email, name):
    """Derive a free username from the email local part (or the name)"""
    base = re.sub(r'[^a-z0-9._-]+', '', (email.split('@')[0] if email else name).lower()) or 'client'
    candidate, suffix = base, 1
    while User.query.filter_by(username=candidate).first():
        suffix += 1
        candidate = f"{base}{suffix}"
    return candidate


def flatten(client):
    """Single-level camelCase view of a client used as the PATCH baseline"""
    data = dict(client.to_dict()['client'])
    data.update({
        'name': client.user.name,
        'email': client.user.email,
        'phone': client.user.phone,
        'address': client.user.address,
    })
    return data


def can_view(client):
    user = request.current_user
    return user.role != 'client' or client.user_id == user.id


@bp.route('', methods=['GET'])
@require_auth
def get_clients():
    """
    List clients of the caller's organization
    ---
    tags:
      - Clients
    security:
      - Bearer: []
    parameters:
      - name: search
        in: query
        schema:
          type: string
    responses:
      200:
        description: List of clients with their user record
    """
    query = scoped(Client.query, Client).join(User, Client.user_id == User.id)
    if request.current_user.role == 'client':
        query = query.filter(Client.user_id == request.current_user.id)

    search = request.args.get('search')
    if search:
        pattern = f"%{search.lower()}%"
        query = query.filter(db.or_(
            db.func.lower(User.name).like(pattern),
            db.func.lower(User.email).like(pattern),
            db.func.lower(Client.company_name).like(pattern),
        ))

    clients = query.order_by(User.name).all()
    return jsonify([client.to_dict() for client in clients]), 200


@bp.route('/<int:client_id>', methods=['GET'])
@require_auth
def get_client(client_id):
    client = get_owned_or_404(Client, client_id, 'Client')
    if not can_view(client):
        return jsonify({'error': 'Forbidden'}), 403
    return jsonify(client.to_dict()), 200


@bp.route('', methods=['POST'])
@require_auth
@require_role(*STAFF_ROLES)
def create_client():
    data = validate_create(ClientSchema, request.get_json(silent=True))

    email = data['email'].lower()
    if User.query.filter(db.func.lower(User.email) == email).first():
        return jsonify({'error': 'A user with this email already exists'}), 409

    username = data.get('username') or unique_username(email, data['name'])
    if User.query.filter_by(username=username).first():
        return jsonify({'error': 'Username already taken'}), 409

    user = User(
        username=username,
        name=data['name'],
        email=email,
        phone=data.get('phone'),
        address=data.get('address'),
        role='client',
        organization_id=current_org_id(),
    )
    # Clients without a password sign in with Google
    user.set_password(data.get('password') or secrets.token_urlsafe(16))
    db.session.add(user)
    db.session.flush()

    client = Client(user_id=user.id, organization_id=current_org_id(),
                    **{field: data.get(field) for field in ClientSchema.PROFILE_FIELDS})
    db.session.add(client)
    db.session.commit()

    current_app.logger.info(f"Created client {client.id} ({user.username})")
    return jsonify(client.to_dict()), 201


@bp.route('/<int:client_id>', methods=['PATCH'])
@require_auth
def update_client(client_id):
    client = get_owned_or_404(Client, client_id, 'Client')
    user = request.current_user
    if not (user.is_staff or user.role == 'system_admin' or client.user_id == user.id):
        return jsonify({'error': 'Forbidden'}), 403

    changes = validate_update(ClientSchema, flatten(client), request.get_json(silent=True))

    if 'email' in changes:
        changes['email'] = changes['email'].lower()
        clash = User.query.filter(db.func.lower(User.email) == changes['email'], User.id != client.user_id).first()
        if clash:
            return jsonify({'error': 'A user with this email already exists'}), 409

    for field, value in changes.items():
        if field in ClientSchema.USER_FIELDS:
            setattr(client.user, field, value)
        elif field in ClientSchema.PROFILE_FIELDS:
            setattr(client, field, value)

    db.session.commit()
    return jsonify(client.to_dict()), 200


@bp.route('/<int:client_id>', methods=['DELETE'])
@require_auth
@require_role(*STAFF_ROLES)
def delete_client(client_id):
    client = get_owned_or_404(Client, client_id, 'Client')
    user = client.user
    db.session.delete(client)
    if user is not None:
        db.session.delete(user)
    db.session.commit()
    return jsonify({'message': 'Client deleted successfully'}), 200
