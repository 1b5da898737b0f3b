from smartwater import db
from datetime import datetime, timezone

DOCUMENT_TYPES = ('blueprint', 'permit', 'contract', 'invoice', 'photo', 'report', 'render', 'other')

class ProjectDocument(db.Model):
    """Uploaded file attached to a project (and optionally one of its phases)"""
    __tablename__ = 'project_documents'

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True)
    phase_id = db.Column(db.Integer, db.ForeignKey('project_phases.id', ondelete='SET NULL'), index=True)
    uploaded_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))

    # Metadata
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    document_type = db.Column(db.String(50), default='other', index=True)
    is_public = db.Column(db.Boolean, default=False)
    tags = db.Column(db.JSON, default=list)

    # File
    filename = db.Column(db.String(255), nullable=False)
    original_name = db.Column(db.String(255), nullable=False)
    mime_type = db.Column(db.String(100), nullable=False)
    size = db.Column(db.Integer, nullable=False)
    storage_key = db.Column(db.String(512), nullable=False)
    url = db.Column(db.Text, nullable=False)

    upload_date = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    uploader = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'projectId': self.project_id,
            'phaseId': self.phase_id,
            'phaseName': self.phase.name if self.phase else None,
            'title': self.title,
            'description': self.description,
            'documentType': self.document_type,
            'isPublic': bool(self.is_public),
            'tags': self.tags or [],
            'filename': self.filename,
            'originalName': self.original_name,
            'mimeType': self.mime_type,
            'size': self.size,
            'url': self.url,
            'uploadDate': self.upload_date.isoformat() if self.upload_date else None,
            'uploadedBy': self.uploaded_by,
            'uploadedByName': self.uploader.name if self.uploader else 'Unknown',
        }

    def __repr__(self):
        return f'<ProjectDocument {self.title}>'
