from smartwater import db
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime, timezone

USER_ROLES = ('system_admin', 'org_admin', 'admin', 'manager', 'office_staff', 'technician', 'client')

class User(db.Model):
    """Login identity; clients and technicians are users with a matching role"""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey('organizations.id'), index=True)

    # Authentication
    username = db.Column(db.String(100), unique=True, nullable=False)
    password_hash = db.Column(db.String(255))
    google_id = db.Column(db.String(255), unique=True, index=True)
    auth_provider = db.Column(db.String(20), default='local')  # 'local', 'google'

    # Profile Info
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, index=True)
    role = db.Column(db.Enum(*USER_ROLES, name='user_role_enum'), nullable=False, default='client')
    phone = db.Column(db.String(30))
    address = db.Column(db.Text)
    address_lat = db.Column(db.Numeric(10, 8))
    address_lng = db.Column(db.Numeric(11, 8))
    photo_url = db.Column(db.Text)
    active = db.Column(db.Boolean, default=True)

    # Timestamps
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def is_staff(self):
        return self.role in ('system_admin', 'org_admin', 'admin', 'manager', 'office_staff')

    def to_dict(self):
        # Sanitized: password hash and google id never leave the server
        return {
            'id': self.id,
            'username': self.username,
            'name': self.name,
            'email': self.email,
            'role': self.role,
            'phone': self.phone,
            'address': self.address,
            'addressLat': float(self.address_lat) if self.address_lat is not None else None,
            'addressLng': float(self.address_lng) if self.address_lng is not None else None,
            'photoUrl': self.photo_url,
            'active': self.active,
            'organizationId': self.organization_id,
            'authProvider': self.auth_provider,
        }

    def to_summary(self):
        return {'id': self.id, 'name': self.name, 'email': self.email}

    def __repr__(self):
        return f'<User {self.username}>'
