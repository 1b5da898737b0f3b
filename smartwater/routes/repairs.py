from flask import Blueprint, request, jsonify, current_app
from smartwater import db
from smartwater.models.client import Client
from smartwater.models.communication import EmailLink
from smartwater.models.repair import Repair
from smartwater.schemas.base import validate_create, validate_update
from smartwater.schemas.service import RepairSchema
from smartwater.utils.auth import require_auth, require_role, STAFF_ROLES
from smartwater.utils.tenancy import get_owned_or_404, current_org_id
from datetime import datetime, timezone

bp = Blueprint('repairs', __name__)


def repair_query():
    user = request.current_user
    query = Repair.query.join(Client, Repair.client_id == Client.id)
    if user.role != 'system_admin':
        query = query.filter(Client.organization_id == current_org_id())
    if user.role == 'client':
        query = query.filter(Client.user_id == user.id)
    return query


@bp.route('', methods=['GET'])
@require_auth
def get_repairs():
    """List repairs, filterable by clientId, status and technicianId"""
    query = repair_query()
    client_id = request.args.get('clientId', type=int)
    if client_id:
        query = query.filter(Repair.client_id == client_id)
    status = request.args.get('status')
    if status:
        query = query.filter(Repair.status == status)
    technician_id = request.args.get('technicianId', type=int)
    if technician_id:
        query = query.filter(Repair.technician_id == technician_id)

    repairs = query.order_by(Repair.reported_date.desc(), Repair.id.desc()).all()
    return jsonify([repair.to_dict() for repair in repairs]), 200


@bp.route('/<int:repair_id>', methods=['GET'])
@require_auth
def get_repair(repair_id):
    repair = repair_query().filter(Repair.id == repair_id).first()
    if not repair:
        get_owned_or_404(Repair, repair_id, 'Repair')
        return jsonify({'error': 'Forbidden'}), 403
    return jsonify(repair.to_dict()), 200


@bp.route('', methods=['POST'])
@require_auth
def create_repair():
    """Staff log repairs for any client; clients raise them for themselves"""
    body = dict(request.get_json(silent=True) or {})
    user = request.current_user
    if user.role == 'client':
        if not user.client_profile:
            return jsonify({'error': 'No client profile for this account'}), 403
        body.pop('client_id', None)
        body['clientId'] = user.client_profile.id

    data = validate_create(RepairSchema, body)
    get_owned_or_404(Client, data['client_id'], 'Client')
    if user.role == 'client':
        # Scheduling and assignment are staff decisions
        data.update(status='pending', technician_id=None, scheduled_date=None, scheduled_time=None)

    repair = Repair(**data)
    db.session.add(repair)
    db.session.commit()

    current_app.logger.info(f"Repair {repair.id} reported for client {repair.client_id}")
    return jsonify(repair.to_dict()), 201


@bp.route('/<int:repair_id>', methods=['PATCH'])
@require_auth
@require_role(*STAFF_ROLES, 'technician')
def update_repair(repair_id):
    repair = get_owned_or_404(Repair, repair_id, 'Repair')
    changes = validate_update(RepairSchema, repair.to_dict(), request.get_json(silent=True))
    if 'client_id' in changes:
        get_owned_or_404(Client, changes['client_id'], 'Client')

    for field, value in changes.items():
        setattr(repair, field, value)
    if changes.get('status') == 'completed' and not repair.completion_date:
        repair.completion_date = datetime.now(timezone.utc)
    elif 'technician_id' in changes and changes['technician_id'] and repair.status == 'pending':
        repair.status = 'assigned'
    db.session.commit()
    return jsonify(repair.to_dict()), 200


@bp.route('/<int:repair_id>', methods=['DELETE'])
@require_auth
@require_role(*STAFF_ROLES)
def delete_repair(repair_id):
    repair = get_owned_or_404(Repair, repair_id, 'Repair')
    EmailLink.query.filter_by(link_type='repair', target_id=repair.id).delete()
    db.session.delete(repair)
    db.session.commit()
    return jsonify({'message': 'Repair deleted successfully'}), 200
