from smartwater import db
from smartwater.utils.helpers import iso, as_float
from datetime import datetime, timezone

MAINTENANCE_TYPES = ('cleaning', 'inspection', 'chemical_balance', 'filter_change', 'equipment_service', 'other')
MAINTENANCE_STATUSES = ('scheduled', 'in_progress', 'completed', 'cancelled')

class Maintenance(db.Model):
    """Scheduled service visit at a client's pool"""
    __tablename__ = 'maintenances'

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False, index=True)
    technician_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), index=True)

    scheduled_date = db.Column(db.Date, nullable=False, index=True)
    scheduled_time = db.Column(db.Time)
    type = db.Column(db.Enum(*MAINTENANCE_TYPES, name='maintenance_type_enum'), nullable=False)
    status = db.Column(db.Enum(*MAINTENANCE_STATUSES, name='maintenance_status_enum'), default='scheduled', index=True)
    description = db.Column(db.Text)
    completed = db.Column(db.Boolean, default=False)
    notes = db.Column(db.Text)

    # Timestamps
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    technician = db.relationship('User')
    service_reports = db.relationship('ServiceReport', backref='maintenance', lazy='dynamic', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'clientId': self.client_id,
            'technicianId': self.technician_id,
            'scheduledDate': iso(self.scheduled_date),
            'scheduledTime': iso(self.scheduled_time),
            'type': self.type,
            'status': self.status,
            'description': self.description,
            'completed': bool(self.completed),
            'notes': self.notes,
            'client': self.client.to_summary() if self.client else None,
            'technician': self.technician.to_summary() if self.technician else None,
        }

    def __repr__(self):
        return f'<Maintenance {self.id}>'


class ServiceReport(db.Model):
    """Technician's report for a visit: completed tasks plus water chemistry readings"""
    __tablename__ = 'service_reports'

    id = db.Column(db.Integer, primary_key=True)
    maintenance_id = db.Column(db.Integer, db.ForeignKey('maintenances.id', ondelete='CASCADE'), nullable=False, index=True)
    client_id = db.Column(db.Integer, db.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False, index=True)
    technician_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))

    tasks_completed = db.Column(db.JSON, default=list)
    notes = db.Column(db.Text)

    # Water readings
    ph = db.Column(db.Numeric(4, 2))
    chlorine = db.Column(db.Numeric(5, 2))  # ppm
    alkalinity = db.Column(db.Numeric(6, 1))  # ppm
    cyanuric_acid = db.Column(db.Numeric(6, 1))  # ppm
    calcium = db.Column(db.Numeric(7, 1))  # ppm
    phosphate = db.Column(db.Numeric(7, 1))  # ppb
    salinity = db.Column(db.Numeric(7, 1))  # ppm
    tds = db.Column(db.Numeric(8, 1))  # ppm
    temperature = db.Column(db.Numeric(5, 1))  # F

    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    READING_FIELDS = ('ph', 'chlorine', 'alkalinity', 'cyanuric_acid', 'calcium', 'phosphate', 'salinity', 'tds', 'temperature')

    def readings(self):
        return {
            'ph': as_float(self.ph),
            'chlorine': as_float(self.chlorine),
            'alkalinity': as_float(self.alkalinity),
            'cyanuricAcid': as_float(self.cyanuric_acid),
            'calcium': as_float(self.calcium),
            'phosphate': as_float(self.phosphate),
            'salinity': as_float(self.salinity),
            'tds': as_float(self.tds),
            'temperature': as_float(self.temperature),
        }

    def to_dict(self):
        return {
            'id': self.id,
            'maintenanceId': self.maintenance_id,
            'clientId': self.client_id,
            'technicianId': self.technician_id,
            'tasksCompleted': self.tasks_completed or [],
            'notes': self.notes,
            'waterReadings': self.readings(),
            'createdAt': iso(self.created_at),
        }

    def __repr__(self):
        return f'<ServiceReport {self.id}>'
