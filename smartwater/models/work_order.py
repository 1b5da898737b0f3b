from smartwater import db
from smartwater.utils.helpers import iso
from datetime import datetime, timezone

class WorkOrder(db.Model):
    """Dispatchable unit of field work, spawned from a project, repair or maintenance"""
    __tablename__ = 'work_orders'

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey('organizations.id'), nullable=False, index=True)

    # Origin (at most one is normally set)
    project_id = db.Column(db.Integer, db.ForeignKey('projects.id', ondelete='CASCADE'), index=True)
    repair_id = db.Column(db.Integer, db.ForeignKey('repairs.id', ondelete='SET NULL'))
    maintenance_id = db.Column(db.Integer, db.ForeignKey('maintenances.id', ondelete='SET NULL'))

    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    status = db.Column(db.Enum(
        'pending',
        'scheduled',
        'in_progress',
        'completed',
        'cancelled',
        name='work_order_status_enum'
    ), default='pending', index=True)
    priority = db.Column(db.Enum('low', 'medium', 'high', 'urgent', name='work_order_priority_enum'), default='medium')
    scheduled_date = db.Column(db.Date)
    technician_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))

    # Timestamps
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            'id': self.id,
            'organizationId': self.organization_id,
            'projectId': self.project_id,
            'repairId': self.repair_id,
            'maintenanceId': self.maintenance_id,
            'title': self.title,
            'description': self.description,
            'status': self.status,
            'priority': self.priority,
            'scheduledDate': iso(self.scheduled_date),
            'technicianId': self.technician_id,
            'createdAt': iso(self.created_at),
            'updatedAt': iso(self.updated_at),
        }

    def __repr__(self):
        return f'<WorkOrder {self.id}>'
