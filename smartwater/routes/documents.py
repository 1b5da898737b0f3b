from flask import Blueprint, request, jsonify, current_app, send_from_directory
from smartwater import db
from smartwater.models.document import ProjectDocument, DOCUMENT_TYPES
from smartwater.models.project import Project, ProjectPhase
from smartwater.schemas.base import validate_create, validate_update
from smartwater.schemas.project import DocumentSchema
from smartwater.services.storage import save_project_file, download_url, delete_file, local_upload_root, StorageError
from smartwater.utils.auth import require_auth, require_role, STAFF_ROLES
from smartwater.utils.tenancy import get_owned_or_404

bp = Blueprint('documents', __name__)


def visible(query):
    """Clients only ever see the documents shared with them"""
    if request.current_user.role == 'client':
        query = query.filter(ProjectDocument.is_public.is_(True))
    return query


def get_client_project(project_id):
    project = get_owned_or_404(Project, project_id, 'Project')
    user = request.current_user
    if user.role == 'client' and project.client.user_id != user.id:
        return None
    return project


def get_document(document_id):
    document = get_owned_or_404(ProjectDocument, document_id, 'Document')
    if request.current_user.role == 'client':
        if not document.is_public or document.project.client.user_id != request.current_user.id:
            return None
    return document


@bp.route('/projects/<int:project_id>/documents', methods=['GET'])
@require_auth
def get_project_documents(project_id):
    project = get_client_project(project_id)
    if project is None:
        return jsonify({'error': 'Forbidden'}), 403
    documents = visible(project.documents).order_by(ProjectDocument.upload_date.desc()).all()
    return jsonify([document.to_dict() for document in documents]), 200


@bp.route('/projects/<int:project_id>/documents/type/<document_type>', methods=['GET'])
@require_auth
def get_project_documents_by_type(project_id, document_type):
    if document_type not in DOCUMENT_TYPES:
        return jsonify({'error': f'Unknown document type: {document_type}'}), 400
    project = get_client_project(project_id)
    if project is None:
        return jsonify({'error': 'Forbidden'}), 403
    documents = visible(project.documents.filter(ProjectDocument.document_type == document_type)) \
        .order_by(ProjectDocument.upload_date.desc()).all()
    return jsonify([document.to_dict() for document in documents]), 200


@bp.route('/phases/<int:phase_id>/documents', methods=['GET'])
@require_auth
def get_phase_documents(phase_id):
    phase = get_owned_or_404(ProjectPhase, phase_id, 'Phase')
    if get_client_project(phase.project_id) is None:
        return jsonify({'error': 'Forbidden'}), 403
    documents = visible(phase.documents).order_by(ProjectDocument.upload_date.desc()).all()
    return jsonify([document.to_dict() for document in documents]), 200


@bp.route('/projects/<int:project_id>/documents', methods=['POST'])
@require_auth
@require_role(*STAFF_ROLES, 'technician')
def upload_document(project_id):
    """
    Upload a document to a project
    ---
    tags:
      - Documents
    security:
      - Bearer: []
    requestBody:
      required: true
      content:
        multipart/form-data:
          schema:
            type: object
            required:
              - file
              - title
            properties:
              file:
                type: string
                format: binary
              title:
                type: string
              description:
                type: string
              documentType:
                type: string
                enum: [blueprint, permit, contract, invoice, photo, report, render, other]
              phaseId:
                type: integer
              isPublic:
                type: boolean
              tags:
                type: string
                description: Comma-separated tags
    responses:
      201:
        description: Stored document
      400:
        description: Missing file or invalid metadata
      413:
        description: File larger than 50MB
    """
    project = get_owned_or_404(Project, project_id, 'Project')

    if 'file' not in request.files:
        return jsonify({'error': 'No file provided'}), 400
    file = request.files['file']
    if file.filename == '':
        return jsonify({'error': 'No file selected'}), 400

    form = request.form.to_dict()
    if not form.get('title', '').strip():
        form['title'] = file.filename
    metadata = validate_create(DocumentSchema, form)
    if metadata.get('phase_id'):
        phase = db.session.get(ProjectPhase, metadata['phase_id'])
        if not phase or phase.project_id != project.id:
            return jsonify({'error': 'Phase does not belong to this project'}), 400

    try:
        stored = save_project_file(file, project.id)
    except StorageError as e:
        return jsonify({'error': str(e)}), 502

    document = ProjectDocument(
        project_id=project.id,
        uploaded_by=request.current_user.id,
        filename=stored.filename,
        original_name=stored.original_name,
        mime_type=stored.mime_type,
        size=stored.size,
        storage_key=stored.storage_key,
        url=stored.url,
        **metadata,
    )
    db.session.add(document)
    db.session.commit()

    current_app.logger.info(f"Uploaded document {document.id} to project {project.id}")
    return jsonify(document.to_dict()), 201


@bp.route('/documents/<int:document_id>', methods=['GET'])
@require_auth
def get_document_by_id(document_id):
    document = get_document(document_id)
    if document is None:
        return jsonify({'error': 'Forbidden'}), 403
    return jsonify(document.to_dict()), 200


@bp.route('/documents/<int:document_id>', methods=['PATCH'])
@require_auth
@require_role(*STAFF_ROLES)
def update_document(document_id):
    document = get_owned_or_404(ProjectDocument, document_id, 'Document')
    changes = validate_update(DocumentSchema, document.to_dict(), request.get_json(silent=True))
    if changes.get('phase_id'):
        phase = db.session.get(ProjectPhase, changes['phase_id'])
        if not phase or phase.project_id != document.project_id:
            return jsonify({'error': 'Phase does not belong to this project'}), 400

    for field, value in changes.items():
        setattr(document, field, value)
    db.session.commit()
    return jsonify(document.to_dict()), 200


@bp.route('/documents/<int:document_id>', methods=['DELETE'])
@require_auth
@require_role(*STAFF_ROLES)
def delete_document(document_id):
    document = get_owned_or_404(ProjectDocument, document_id, 'Document')
    storage_key = document.storage_key
    db.session.delete(document)
    db.session.commit()
    delete_file(storage_key)
    return jsonify({'message': 'Document deleted successfully'}), 200


@bp.route('/documents/<int:document_id>/download', methods=['GET'])
@require_auth
def get_download_url(document_id):
    document = get_document(document_id)
    if document is None:
        return jsonify({'error': 'Forbidden'}), 403
    try:
        url = download_url(document.storage_key, document.original_name)
    except StorageError as e:
        return jsonify({'error': str(e)}), 502
    return jsonify({'url': url, 'filename': document.original_name, 'mimeType': document.mime_type}), 200


@bp.route('/uploads/<path:filename>', methods=['GET'])
@require_auth
def serve_upload(filename):
    """Files stored on local disk when no S3 bucket is configured"""
    document = ProjectDocument.query.filter_by(storage_key=filename).first_or_404(description='Document not found')
    if get_document(document.id) is None:
        return jsonify({'error': 'Forbidden'}), 403
    return send_from_directory(local_upload_root(), filename)
