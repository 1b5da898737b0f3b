from smartwater import db
from datetime import datetime, timezone

class Client(db.Model):
    """Client profile attached to a user with role 'client'"""
    __tablename__ = 'clients'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False)
    organization_id = db.Column(db.Integer, db.ForeignKey('organizations.id'), nullable=False, index=True)

    company_name = db.Column(db.String(255))
    contract_type = db.Column(db.Enum('residential', 'commercial', 'service', name='contract_type_enum'), default='residential')

    # Geo-location for maintenance routing
    latitude = db.Column(db.Numeric(10, 8))
    longitude = db.Column(db.Numeric(11, 8))

    custom_instructions = db.Column(db.Text)

    # Timestamps
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    user = db.relationship('User', backref=db.backref('client_profile', uselist=False))
    projects = db.relationship('Project', backref='client', lazy='dynamic', cascade='all, delete-orphan')
    maintenances = db.relationship('Maintenance', backref='client', lazy='dynamic', cascade='all, delete-orphan')
    repairs = db.relationship('Repair', backref='client', lazy='dynamic', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'client': {
                'id': self.id,
                'userId': self.user_id,
                'organizationId': self.organization_id,
                'companyName': self.company_name,
                'contractType': self.contract_type,
                'latitude': float(self.latitude) if self.latitude is not None else None,
                'longitude': float(self.longitude) if self.longitude is not None else None,
                'customInstructions': self.custom_instructions,
            },
            'user': self.user.to_dict() if self.user else None,
            # Convenience fields
            'id': self.id,
            'companyName': self.company_name,
            'contractType': self.contract_type,
        }

    def to_summary(self):
        user = self.user
        return {
            'id': self.id,
            'name': user.name if user else None,
            'email': user.email if user else None,
            'phone': user.phone if user else None,
            'address': user.address if user else None,
        }

    def __repr__(self):
        return f'<Client {self.id}>'
