from flask import Blueprint, request, jsonify
from smartwater import db
from smartwater.models.maintenance import Maintenance
from smartwater.models.project import Project
from smartwater.models.repair import Repair
from smartwater.models.work_order import WorkOrder
from smartwater.schemas.base import validate_create, validate_update
from smartwater.schemas.project import WorkOrderSchema
from smartwater.utils.auth import require_auth, require_role, STAFF_ROLES
from smartwater.utils.tenancy import get_owned_or_404, scoped, current_org_id

bp = Blueprint('work_orders', __name__)

ORIGINS = (('project_id', Project, 'Project'), ('repair_id', Repair, 'Repair'), ('maintenance_id', Maintenance, 'Maintenance'))


def check_origins(data):
    for field, model, label in ORIGINS:
        if data.get(field):
            get_owned_or_404(model, data[field], label)


@bp.route('', methods=['GET'])
@require_auth
@require_role(*STAFF_ROLES, 'technician')
def get_work_orders():
    """List work orders, filterable by projectId, status and technicianId"""
    query = scoped(WorkOrder.query, WorkOrder)
    if request.current_user.role == 'technician':
        query = query.filter(WorkOrder.technician_id == request.current_user.id)

    project_id = request.args.get('projectId', type=int)
    if project_id:
        query = query.filter(WorkOrder.project_id == project_id)
    status = request.args.get('status')
    if status:
        query = query.filter(WorkOrder.status == status)
    technician_id = request.args.get('technicianId', type=int)
    if technician_id:
        query = query.filter(WorkOrder.technician_id == technician_id)

    work_orders = query.order_by(WorkOrder.scheduled_date.desc(), WorkOrder.id.desc()).all()
    return jsonify([work_order.to_dict() for work_order in work_orders]), 200


@bp.route('/<int:work_order_id>', methods=['GET'])
@require_auth
@require_role(*STAFF_ROLES, 'technician')
def get_work_order(work_order_id):
    work_order = get_owned_or_404(WorkOrder, work_order_id, 'Work order')
    if request.current_user.role == 'technician' and work_order.technician_id != request.current_user.id:
        return jsonify({'error': 'Forbidden'}), 403
    return jsonify(work_order.to_dict()), 200


@bp.route('', methods=['POST'])
@require_auth
@require_role(*STAFF_ROLES)
def create_work_order():
    data = validate_create(WorkOrderSchema, request.get_json(silent=True))
    check_origins(data)
    work_order = WorkOrder(organization_id=current_org_id(), **data)
    db.session.add(work_order)
    db.session.commit()
    return jsonify(work_order.to_dict()), 201


@bp.route('/<int:work_order_id>', methods=['PATCH'])
@require_auth
@require_role(*STAFF_ROLES, 'technician')
def update_work_order(work_order_id):
    work_order = get_owned_or_404(WorkOrder, work_order_id, 'Work order')
    changes = validate_update(WorkOrderSchema, work_order.to_dict(), request.get_json(silent=True))
    check_origins(changes)
    for field, value in changes.items():
        setattr(work_order, field, value)
    db.session.commit()
    return jsonify(work_order.to_dict()), 200


@bp.route('/<int:work_order_id>', methods=['DELETE'])
@require_auth
@require_role(*STAFF_ROLES)
def delete_work_order(work_order_id):
    work_order = get_owned_or_404(WorkOrder, work_order_id, 'Work order')
    db.session.delete(work_order)
    db.session.commit()
    return jsonify({'message': 'Work order deleted successfully'}), 200
