from smartwater import db
from smartwater.utils.helpers import iso, as_float
from datetime import datetime, timezone

PROJECT_STATUSES = ('planning', 'pending', 'in_progress', 'review', 'completed', 'delayed', 'on_hold', 'cancelled')
PHASE_STATUSES = ('planning', 'pending', 'in_progress', 'completed', 'delayed')

class Project(db.Model):
    """Construction / renovation project for a client"""
    __tablename__ = 'projects'

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    project_type = db.Column(db.String(50), default='construction')

    # Schedule
    start_date = db.Column(db.Date, nullable=False)
    estimated_completion_date = db.Column(db.Date)
    actual_completion_date = db.Column(db.Date)

    # Progress
    status = db.Column(db.Enum(*PROJECT_STATUSES, name='project_status_enum'), default='pending', index=True)
    current_phase = db.Column(db.String(255))
    percent_complete = db.Column(db.Integer, default=0)

    budget = db.Column(db.Numeric(12, 2))
    permit_details = db.Column(db.Text)
    notes = db.Column(db.Text)
    is_archived = db.Column(db.Boolean, default=False, nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    phases = db.relationship('ProjectPhase', backref='project', lazy='dynamic', cascade='all, delete-orphan', order_by='ProjectPhase.order')
    documents = db.relationship('ProjectDocument', backref='project', lazy='dynamic', cascade='all, delete-orphan')
    work_orders = db.relationship('WorkOrder', backref='project', lazy='dynamic', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'clientId': self.client_id,
            'name': self.name,
            'description': self.description,
            'projectType': self.project_type,
            'startDate': iso(self.start_date),
            'estimatedCompletionDate': iso(self.estimated_completion_date),
            'actualCompletionDate': iso(self.actual_completion_date),
            'status': self.status,
            'currentPhase': self.current_phase,
            'percentComplete': self.percent_complete or 0,
            'budget': as_float(self.budget),
            'permitDetails': self.permit_details,
            'notes': self.notes,
            'isArchived': bool(self.is_archived),
            'createdAt': iso(self.created_at),
            'updatedAt': iso(self.updated_at),
        }

    def __repr__(self):
        return f'<Project {self.name}>'


class ProjectPhase(db.Model):
    """Named stage of a project with status and completion percentage"""
    __tablename__ = 'project_phases'

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    status = db.Column(db.Enum(*PHASE_STATUSES, name='phase_status_enum'), default='pending')
    order = db.Column(db.Integer, default=0)
    percent_complete = db.Column(db.Integer, default=0)

    # Schedule & cost
    start_date = db.Column(db.Date)
    end_date = db.Column(db.Date)
    estimated_duration = db.Column(db.Integer)  # days
    actual_duration = db.Column(db.Integer)  # days
    cost = db.Column(db.Numeric(12, 2))

    # Permits & inspections
    permit_required = db.Column(db.Boolean, default=False)
    inspection_required = db.Column(db.Boolean, default=False)
    inspection_date = db.Column(db.Date)
    inspection_passed = db.Column(db.Boolean)
    inspection_notes = db.Column(db.Text)

    notes = db.Column(db.Text)

    # Timestamps
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    documents = db.relationship('ProjectDocument', backref='phase', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'projectId': self.project_id,
            'name': self.name,
            'description': self.description,
            'status': self.status,
            'order': self.order,
            'percentComplete': self.percent_complete or 0,
            'startDate': iso(self.start_date),
            'endDate': iso(self.end_date),
            'estimatedDuration': self.estimated_duration,
            'actualDuration': self.actual_duration,
            'cost': as_float(self.cost),
            'permitRequired': bool(self.permit_required),
            'inspectionRequired': bool(self.inspection_required),
            'inspectionDate': iso(self.inspection_date),
            'inspectionPassed': self.inspection_passed,
            'inspectionNotes': self.inspection_notes,
            'notes': self.notes,
        }

    def __repr__(self):
        return f'<ProjectPhase {self.name}>'
