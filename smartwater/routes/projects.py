from flask import Blueprint, request, jsonify, current_app
from smartwater import db
from smartwater.models.client import Client
from smartwater.models.communication import EmailLink
from smartwater.models.project import Project
from smartwater.schemas.base import validate_create, validate_update
from smartwater.schemas.project import ProjectSchema
from smartwater.services.storage import delete_file
from smartwater.utils.auth import require_auth, require_role, STAFF_ROLES
from smartwater.utils.helpers import parse_bool_arg
from smartwater.utils.tenancy import get_owned_or_404, current_org_id

bp = Blueprint('projects', __name__)


def project_query():
    """Projects visible to the caller: the organization's, or a client's own"""
    user = request.current_user
    query = Project.query.join(Client, Project.client_id == Client.id)
    if user.role != 'system_admin':
        query = query.filter(Client.organization_id == current_org_id())
    if user.role == 'client':
        query = query.filter(Client.user_id == user.id)
    return query


def project_detail(project):
    data = project.to_dict()
    data['client'] = project.client.to_summary() if project.client else None
    return data


def deletion_counts(project):
    return {
        'phases': project.phases.count(),
        'documents': project.documents.count(),
        'workOrders': project.work_orders.count(),
        'emailLinks': EmailLink.query.filter_by(link_type='project', target_id=project.id).count(),
    }


@bp.route('', methods=['GET'])
@require_auth
def get_projects():
    """
    List projects
    ---
    tags:
      - Projects
    security:
      - Bearer: []
    parameters:
      - name: clientId
        in: query
        schema:
          type: integer
      - name: status
        in: query
        schema:
          type: string
      - name: includeArchived
        in: query
        description: Archived projects are included unless this is "false"
        schema:
          type: boolean
    responses:
      200:
        description: List of projects
    """
    query = project_query()
    client_id = request.args.get('clientId', type=int)
    if client_id:
        query = query.filter(Project.client_id == client_id)
    status = request.args.get('status')
    if status:
        query = query.filter(Project.status == status)
    if not parse_bool_arg(request.args.get('includeArchived'), default=True):
        query = query.filter(Project.is_archived.is_(False))

    projects = query.order_by(Project.start_date.desc(), Project.id.desc()).all()
    return jsonify([project_detail(project) for project in projects]), 200


@bp.route('/<int:project_id>', methods=['GET'])
@require_auth
def get_project(project_id):
    project = project_query().filter(Project.id == project_id).first()
    if not project:
        # Distinguish another tenant's project (403) from a missing one (404)
        get_owned_or_404(Project, project_id, 'Project')
        return jsonify({'error': 'Forbidden'}), 403
    return jsonify(project_detail(project)), 200


@bp.route('', methods=['POST'])
@require_auth
@require_role(*STAFF_ROLES)
def create_project():
    data = validate_create(ProjectSchema, request.get_json(silent=True))
    get_owned_or_404(Client, data['client_id'], 'Client')

    project = Project(**data)
    db.session.add(project)
    db.session.commit()

    current_app.logger.info(f"Created project {project.id} for client {project.client_id}")
    return jsonify(project_detail(project)), 201


@bp.route('/<int:project_id>', methods=['PATCH'])
@require_auth
@require_role(*STAFF_ROLES)
def update_project(project_id):
    """
    Update a project (partial)
    ---
    tags:
      - Projects
    security:
      - Bearer: []
    requestBody:
      required: true
      content:
        application/json:
          schema:
            type: object
            properties:
              isArchived:
                type: boolean
              percentComplete:
                type: integer
                minimum: 0
                maximum: 100
    responses:
      200:
        description: Updated project
      400:
        description: Invalid request data
      404:
        description: Project not found
    """
    project = get_owned_or_404(Project, project_id, 'Project')
    changes = validate_update(ProjectSchema, project.to_dict(), request.get_json(silent=True))
    if 'client_id' in changes:
        get_owned_or_404(Client, changes['client_id'], 'Client')

    for field, value in changes.items():
        setattr(project, field, value)
    db.session.commit()
    return jsonify(project_detail(project)), 200


@bp.route('/<int:project_id>/deletion-preview', methods=['GET'])
@require_auth
@require_role(*STAFF_ROLES)
def deletion_preview(project_id):
    """Counts of the records that go away together with the project"""
    project = get_owned_or_404(Project, project_id, 'Project')
    return jsonify({
        'project': {'id': project.id, 'name': project.name},
        'counts': deletion_counts(project),
    }), 200


@bp.route('/<int:project_id>', methods=['DELETE'])
@require_auth
@require_role(*STAFF_ROLES)
def delete_project(project_id):
    project = get_owned_or_404(Project, project_id, 'Project')
    counts = deletion_counts(project)
    storage_keys = [document.storage_key for document in project.documents]

    EmailLink.query.filter_by(link_type='project', target_id=project.id).delete()
    db.session.delete(project)
    db.session.commit()

    for key in storage_keys:
        delete_file(key)

    current_app.logger.info(f"Deleted project {project_id} with {counts}")
    return jsonify({'message': 'Project deleted successfully', 'deleted': counts}), 200
