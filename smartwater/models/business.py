from smartwater import db
from smartwater.utils.helpers import iso, as_float
from datetime import datetime, timezone

PURCHASE_ORDER_STATUSES = ('draft', 'pending', 'approved', 'ordered', 'received', 'cancelled')
OUTSTANDING_ORDER_STATUSES = ('pending', 'approved', 'ordered')


class Vendor(db.Model):
    __tablename__ = 'vendors'

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey('organizations.id'), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(100))
    contact_name = db.Column(db.String(255))
    email = db.Column(db.String(255))
    phone = db.Column(db.String(30))
    address = db.Column(db.Text)
    website = db.Column(db.String(255))
    notes = db.Column(db.Text)
    is_active = db.Column(db.Boolean, default=True)

    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'category': self.category,
            'contactName': self.contact_name,
            'email': self.email,
            'phone': self.phone,
            'address': self.address,
            'website': self.website,
            'notes': self.notes,
            'isActive': bool(self.is_active),
            'createdAt': iso(self.created_at),
        }

    def __repr__(self):
        return f'<Vendor {self.name}>'


class Expense(db.Model):
    __tablename__ = 'expenses'

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey('organizations.id'), nullable=False, index=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey('vendors.id', ondelete='SET NULL'))

    date = db.Column(db.Date, nullable=False, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    category = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)
    payment_method = db.Column(db.String(50))
    receipt_url = db.Column(db.Text)
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    vendor = db.relationship('Vendor')

    def to_dict(self):
        return {
            'id': self.id,
            'date': iso(self.date),
            'amount': as_float(self.amount),
            'category': self.category,
            'description': self.description,
            'vendorId': self.vendor_id,
            'vendorName': self.vendor.name if self.vendor else None,
            'paymentMethod': self.payment_method,
            'receiptUrl': self.receipt_url,
            'notes': self.notes,
        }

    def __repr__(self):
        return f'<Expense {self.id}>'


class PurchaseOrder(db.Model):
    __tablename__ = 'purchase_orders'

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey('organizations.id'), nullable=False, index=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey('vendors.id', ondelete='SET NULL'))

    order_number = db.Column(db.String(100), nullable=False)
    order_date = db.Column(db.Date, nullable=False)
    expected_delivery = db.Column(db.Date)
    status = db.Column(db.Enum(*PURCHASE_ORDER_STATUSES, name='purchase_order_status_enum'), default='draft', index=True)
    total = db.Column(db.Numeric(12, 2), default=0)
    items = db.Column(db.JSON, default=list)  # [{description, quantity, unitCost}]
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    vendor = db.relationship('Vendor')

    def to_dict(self):
        return {
            'id': self.id,
            'orderNumber': self.order_number,
            'vendorId': self.vendor_id,
            'vendorName': self.vendor.name if self.vendor else None,
            'orderDate': iso(self.order_date),
            'expectedDelivery': iso(self.expected_delivery),
            'status': self.status,
            'total': as_float(self.total),
            'items': self.items or [],
            'notes': self.notes,
        }

    def __repr__(self):
        return f'<PurchaseOrder {self.order_number}>'


class InventoryItem(db.Model):
    __tablename__ = 'inventory_items'

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey('organizations.id'), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(100))
    category = db.Column(db.String(100))
    description = db.Column(db.Text)
    unit_cost = db.Column(db.Numeric(12, 2), default=0)
    quantity = db.Column(db.Integer, default=0)
    minimum_stock = db.Column(db.Integer, default=0)
    location = db.Column(db.String(255))
    is_active = db.Column(db.Boolean, default=True)

    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    @property
    def is_low_stock(self):
        return (self.quantity or 0) <= (self.minimum_stock or 0)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'sku': self.sku,
            'category': self.category,
            'description': self.description,
            'unitCost': as_float(self.unit_cost),
            'quantity': self.quantity or 0,
            'minimumStock': self.minimum_stock or 0,
            'location': self.location,
            'isActive': bool(self.is_active),
            'isLowStock': self.is_low_stock,
        }

    def __repr__(self):
        return f'<InventoryItem {self.name}>'


class License(db.Model):
    __tablename__ = 'licenses'

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey('organizations.id'), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    license_number = db.Column(db.String(100), nullable=False)
    issuing_authority = db.Column(db.String(255))
    issue_date = db.Column(db.Date)
    expiry_date = db.Column(db.Date)
    status = db.Column(db.String(50), default='active')
    notes = db.Column(db.Text)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'licenseNumber': self.license_number,
            'issuingAuthority': self.issuing_authority,
            'issueDate': iso(self.issue_date),
            'expiryDate': iso(self.expiry_date),
            'status': self.status,
            'notes': self.notes,
        }

    def __repr__(self):
        return f'<License {self.license_number}>'


class InsurancePolicy(db.Model):
    __tablename__ = 'insurance_policies'

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey('organizations.id'), nullable=False, index=True)

    provider = db.Column(db.String(255), nullable=False)
    policy_number = db.Column(db.String(100), nullable=False)
    type = db.Column(db.String(100))
    start_date = db.Column(db.Date)
    end_date = db.Column(db.Date)
    premium = db.Column(db.Numeric(12, 2))
    coverage_amount = db.Column(db.Numeric(14, 2))
    status = db.Column(db.String(50), default='active')
    notes = db.Column(db.Text)

    def to_dict(self):
        return {
            'id': self.id,
            'provider': self.provider,
            'policyNumber': self.policy_number,
            'type': self.type,
            'startDate': iso(self.start_date),
            'endDate': iso(self.end_date),
            'premium': as_float(self.premium),
            'coverageAmount': as_float(self.coverage_amount),
            'status': self.status,
            'notes': self.notes,
        }

    def __repr__(self):
        return f'<InsurancePolicy {self.policy_number}>'


class FinancialReport(db.Model):
    __tablename__ = 'financial_reports'

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey('organizations.id'), nullable=False, index=True)

    title = db.Column(db.String(255), nullable=False)
    report_type = db.Column(db.String(50), nullable=False)  # 'profit_loss', 'cash_flow', ...
    period_start = db.Column(db.Date, nullable=False)
    period_end = db.Column(db.Date, nullable=False)
    data = db.Column(db.JSON, default=dict)
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'reportType': self.report_type,
            'periodStart': iso(self.period_start),
            'periodEnd': iso(self.period_end),
            'data': self.data or {},
            'notes': self.notes,
            'createdAt': iso(self.created_at),
        }

    def __repr__(self):
        return f'<FinancialReport {self.title}>'
