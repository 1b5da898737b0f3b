from flask import Blueprint, request, jsonify
from smartwater import db
from smartwater.models.project import Project, ProjectPhase
from smartwater.routes.documents import get_client_project
from smartwater.schemas.base import validate_create, validate_update
from smartwater.schemas.project import PhaseSchema
from smartwater.utils.auth import require_auth, require_role, STAFF_ROLES
from smartwater.utils.tenancy import get_owned_or_404

bp = Blueprint('phases', __name__)


def add_phase(body):
    data = validate_create(PhaseSchema, body)
    get_owned_or_404(Project, data['project_id'], 'Project')
    phase = ProjectPhase(**data)
    db.session.add(phase)
    db.session.commit()
    return jsonify(phase.to_dict()), 201


@bp.route('/projects/<int:project_id>/phases', methods=['GET'])
@require_auth
def get_project_phases(project_id):
    """
    Phases of a project, in display order
    ---
    tags:
      - Projects
    security:
      - Bearer: []
    parameters:
      - name: project_id
        in: path
        required: true
        schema:
          type: integer
    responses:
      200:
        description: Ordered list of phases
      403:
        description: Project belongs to another organization or client
      404:
        description: Project not found
    """
    project = get_client_project(project_id)
    if project is None:
        return jsonify({'error': 'Forbidden'}), 403
    phases = project.phases.order_by(None).order_by(ProjectPhase.order, ProjectPhase.id).all()
    return jsonify([phase.to_dict() for phase in phases]), 200


@bp.route('/projects/<int:project_id>/phases', methods=['POST'])
@require_auth
@require_role(*STAFF_ROLES)
def create_project_phase(project_id):
    body = dict(request.get_json(silent=True) or {})
    body.pop('project_id', None)
    body['projectId'] = project_id
    return add_phase(body)


@bp.route('/project-phases', methods=['POST'])
@require_auth
@require_role(*STAFF_ROLES)
def create_phase():
    return add_phase(request.get_json(silent=True))


@bp.route('/project-phases/<int:phase_id>', methods=['PATCH', 'PUT'])
@require_auth
@require_role(*STAFF_ROLES)
def update_phase(phase_id):
    """Partial update; only the fields present in the body are written"""
    phase = get_owned_or_404(ProjectPhase, phase_id, 'Phase')
    changes = validate_update(PhaseSchema, phase.to_dict(), request.get_json(silent=True))
    # A phase never moves between projects
    changes.pop('project_id', None)

    for field, value in changes.items():
        setattr(phase, field, value)
    db.session.commit()
    return jsonify(phase.to_dict()), 200


@bp.route('/project-phases/<int:phase_id>', methods=['DELETE'])
@require_auth
@require_role(*STAFF_ROLES)
def delete_phase(phase_id):
    phase = get_owned_or_404(ProjectPhase, phase_id, 'Phase')
    db.session.delete(phase)
    db.session.commit()
    return jsonify({'message': 'Phase deleted successfully'}), 200
