from smartwater import db
from datetime import datetime, timezone

class Organization(db.Model):
    """Tenant: every business record belongs to exactly one organization"""
    __tablename__ = 'organizations'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(100), unique=True, nullable=False, index=True)

    # Subscription gate checked at OAuth login
    subscription_status = db.Column(db.Enum(
        'active',
        'trialing',
        'past_due',
        'canceled',
        'none',
        name='subscription_status_enum'
    ), default='trialing')

    # Timestamps
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    users = db.relationship('User', backref='organization', lazy='dynamic')

    @property
    def has_active_subscription(self):
        return self.subscription_status in ('active', 'trialing')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'subscriptionStatus': self.subscription_status,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Organization {self.slug}>'
