from smartwater import db
from smartwater.utils.helpers import iso
from datetime import datetime, timezone

class Repair(db.Model):
    """Repair request raised by or for a client"""
    __tablename__ = 'repairs'

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False, index=True)
    technician_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))

    issue_type = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=False)
    reported_date = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    status = db.Column(db.Enum(
        'pending',
        'assigned',
        'scheduled',
        'in_progress',
        'completed',
        name='repair_status_enum'
    ), default='pending', index=True)
    priority = db.Column(db.Enum('low', 'medium', 'high', name='repair_priority_enum'), default='medium')

    scheduled_date = db.Column(db.Date)
    scheduled_time = db.Column(db.Time)
    completion_date = db.Column(db.DateTime(timezone=True))
    notes = db.Column(db.Text)

    technician = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'clientId': self.client_id,
            'technicianId': self.technician_id,
            'issueType': self.issue_type,
            'description': self.description,
            'reportedDate': iso(self.reported_date),
            'status': self.status,
            'priority': self.priority,
            'scheduledDate': iso(self.scheduled_date),
            'scheduledTime': iso(self.scheduled_time),
            'completionDate': iso(self.completion_date),
            'notes': self.notes,
            'client': self.client.to_summary() if self.client else None,
            'technician': self.technician.to_summary() if self.technician else None,
        }

    def __repr__(self):
        return f'<Repair {self.id}>'
