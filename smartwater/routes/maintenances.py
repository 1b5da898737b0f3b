from flask import Blueprint, request, jsonify, current_app
from smartwater import db
from smartwater.models.client import Client
from smartwater.models.maintenance import Maintenance, ServiceReport
from smartwater.models.user import User
from smartwater.schemas.base import validate_create, validate_update
from smartwater.schemas.service import MaintenanceSchema, ServiceReportSchema, TechnicianAssignmentSchema
from smartwater.utils.auth import require_auth, require_role, STAFF_ROLES
from smartwater.utils.helpers import parse_iso_datetime
from smartwater.utils.tenancy import get_owned_or_404, current_org_id

bp = Blueprint('maintenances', __name__)


def maintenance_query():
    user = request.current_user
    query = Maintenance.query.join(Client, Maintenance.client_id == Client.id)
    if user.role != 'system_admin':
        query = query.filter(Client.organization_id == current_org_id())
    if user.role == 'client':
        query = query.filter(Client.user_id == user.id)
    return query


def get_technician_or_none(technician_id):
    """A technician must be a technician of the caller's organization"""
    if technician_id is None:
        return None
    technician = get_owned_or_404(User, technician_id, 'Technician')
    if technician.role != 'technician':
        return False
    return technician


@bp.route('', methods=['GET'])
@require_auth
def get_maintenances():
    """
    List scheduled maintenance visits
    ---
    tags:
      - Maintenance
    security:
      - Bearer: []
    parameters:
      - name: clientId
        in: query
        schema:
          type: integer
      - name: technicianId
        in: query
        schema:
          type: integer
      - name: status
        in: query
        schema:
          type: string
      - name: from
        in: query
        schema:
          type: string
          format: date
      - name: to
        in: query
        schema:
          type: string
          format: date
    responses:
      200:
        description: Maintenance visits ordered by date
    """
    query = maintenance_query()
    client_id = request.args.get('clientId', type=int)
    if client_id:
        query = query.filter(Maintenance.client_id == client_id)
    technician_id = request.args.get('technicianId', type=int)
    if technician_id:
        query = query.filter(Maintenance.technician_id == technician_id)
    status = request.args.get('status')
    if status:
        query = query.filter(Maintenance.status == status)
    try:
        start = parse_iso_datetime(request.args.get('from'))
        end = parse_iso_datetime(request.args.get('to'))
    except ValueError:
        return jsonify({'error': 'from and to must be ISO dates'}), 400
    if start:
        query = query.filter(Maintenance.scheduled_date >= start.date())
    if end:
        query = query.filter(Maintenance.scheduled_date <= end.date())

    maintenances = query.order_by(Maintenance.scheduled_date, Maintenance.scheduled_time).all()
    return jsonify([maintenance.to_dict() for maintenance in maintenances]), 200


@bp.route('/<int:maintenance_id>', methods=['GET'])
@require_auth
def get_maintenance(maintenance_id):
    maintenance = maintenance_query().filter(Maintenance.id == maintenance_id).first()
    if not maintenance:
        get_owned_or_404(Maintenance, maintenance_id, 'Maintenance')
        return jsonify({'error': 'Forbidden'}), 403
    return jsonify(maintenance.to_dict()), 200


@bp.route('', methods=['POST'])
@require_auth
@require_role(*STAFF_ROLES)
def create_maintenance():
    data = validate_create(MaintenanceSchema, request.get_json(silent=True))
    get_owned_or_404(Client, data['client_id'], 'Client')
    if get_technician_or_none(data.get('technician_id')) is False:
        return jsonify({'error': 'Assigned user is not a technician'}), 400

    maintenance = Maintenance(**data)
    db.session.add(maintenance)
    db.session.commit()
    return jsonify(maintenance.to_dict()), 201


@bp.route('/<int:maintenance_id>', methods=['PATCH'])
@require_auth
@require_role(*STAFF_ROLES, 'technician')
def update_maintenance(maintenance_id):
    maintenance = get_owned_or_404(Maintenance, maintenance_id, 'Maintenance')
    changes = validate_update(MaintenanceSchema, maintenance.to_dict(), request.get_json(silent=True))
    if 'client_id' in changes:
        get_owned_or_404(Client, changes['client_id'], 'Client')
    if get_technician_or_none(changes.get('technician_id')) is False:
        return jsonify({'error': 'Assigned user is not a technician'}), 400

    for field, value in changes.items():
        setattr(maintenance, field, value)
    if changes.get('status') == 'completed':
        maintenance.completed = True
    db.session.commit()
    return jsonify(maintenance.to_dict()), 200


@bp.route('/<int:maintenance_id>/technician', methods=['PATCH'])
@require_auth
@require_role(*STAFF_ROLES)
def assign_technician(maintenance_id):
    """Assign (or with technicianId null, unassign) the technician of a visit"""
    maintenance = get_owned_or_404(Maintenance, maintenance_id, 'Maintenance')
    data = TechnicianAssignmentSchema.model_validate(request.get_json(silent=True) or {})
    if get_technician_or_none(data.technician_id) is False:
        return jsonify({'error': 'Assigned user is not a technician'}), 400

    maintenance.technician_id = data.technician_id
    db.session.commit()
    current_app.logger.info(f"Maintenance {maintenance.id} assigned to technician {data.technician_id}")
    return jsonify(maintenance.to_dict()), 200


@bp.route('/<int:maintenance_id>', methods=['DELETE'])
@require_auth
@require_role(*STAFF_ROLES)
def delete_maintenance(maintenance_id):
    maintenance = get_owned_or_404(Maintenance, maintenance_id, 'Maintenance')
    db.session.delete(maintenance)
    db.session.commit()
    return jsonify({'message': 'Maintenance deleted successfully'}), 200


@bp.route('/<int:maintenance_id>/service-report', methods=['POST'])
@require_auth
@require_role(*STAFF_ROLES, 'technician')
def submit_service_report(maintenance_id):
    """
    Record the technician's report for a visit
    ---
    tags:
      - Maintenance
    security:
      - Bearer: []
    requestBody:
      required: true
      content:
        application/json:
          schema:
            type: object
            properties:
              tasksCompleted:
                type: array
                items:
                  type: string
              notes:
                type: string
              ph:
                type: number
                minimum: 0
                maximum: 14
              chlorine:
                type: number
                minimum: 0
                maximum: 10
              alkalinity:
                type: number
              cyanuricAcid:
                type: number
              calcium:
                type: number
              phosphate:
                type: number
              salinity:
                type: number
              tds:
                type: number
              temperature:
                type: number
              markCompleted:
                type: boolean
                default: true
    responses:
      201:
        description: Saved report and the updated visit
      400:
        description: Reading out of range
    """
    maintenance = get_owned_or_404(Maintenance, maintenance_id, 'Maintenance')
    data = ServiceReportSchema.model_validate(request.get_json(silent=True) or {})
    if get_technician_or_none(data.technician_id) is False:
        return jsonify({'error': 'Reporting user is not a technician'}), 400

    report = ServiceReport(
        maintenance_id=maintenance.id,
        client_id=maintenance.client_id,
        technician_id=data.technician_id or request.current_user.id,
        tasks_completed=data.tasks_completed,
        notes=data.notes,
        **{field: getattr(data, field) for field in ServiceReport.READING_FIELDS},
    )
    db.session.add(report)
    if data.mark_completed:
        maintenance.status = 'completed'
        maintenance.completed = True
    db.session.commit()

    return jsonify({'report': report.to_dict(), 'maintenance': maintenance.to_dict()}), 201


@bp.route('/<int:maintenance_id>/water-readings', methods=['GET'])
@require_auth
def get_water_readings(maintenance_id):
    maintenance = maintenance_query().filter(Maintenance.id == maintenance_id).first()
    if not maintenance:
        get_owned_or_404(Maintenance, maintenance_id, 'Maintenance')
        return jsonify({'error': 'Forbidden'}), 403
    reports = maintenance.service_reports.order_by(ServiceReport.created_at.desc(), ServiceReport.id.desc()).all()
    return jsonify([report.to_dict() for report in reports]), 200
