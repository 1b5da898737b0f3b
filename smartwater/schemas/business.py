"""Business table schemas (expenses, vendors, purchasing, inventory, compliance, reports)"""
import datetime as dt
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, model_validator

from smartwater.schemas.base import FormSchema, ensure_order


class ExpenseSchema(FormSchema):
    date: dt.date
    amount: float = Field(gt=0)
    category: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    vendor_id: Optional[int] = None
    payment_method: Optional[str] = None
    receipt_url: Optional[str] = None
    notes: Optional[str] = None


class VendorSchema(FormSchema):
    name: str = Field(min_length=1, max_length=255)
    category: Optional[str] = None
    contact_name: Optional[str] = None
    email: Optional[str] = Field(default=None, pattern=r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
    phone: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool = True


class PurchaseOrderSchema(FormSchema):
    order_number: str = Field(min_length=1, max_length=100)
    vendor_id: Optional[int] = None
    order_date: dt.date
    expected_delivery: Optional[dt.date] = None
    status: Literal['draft', 'pending', 'approved', 'ordered', 'received', 'cancelled'] = 'draft'
    total: float = Field(default=0, ge=0)
    items: List[Dict[str, Any]] = Field(default_factory=list)
    notes: Optional[str] = None

    @model_validator(mode='after')
    def check_dates(self):
        ensure_order(self.order_date, self.expected_delivery,
                     'Expected delivery must be on or after the order date')
        return self


class InventoryItemSchema(FormSchema):
    name: str = Field(min_length=1, max_length=255)
    sku: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    unit_cost: float = Field(default=0, ge=0)
    quantity: int = Field(default=0, ge=0)
    minimum_stock: int = Field(default=0, ge=0)
    location: Optional[str] = None
    is_active: bool = True


class LicenseSchema(FormSchema):
    name: str = Field(min_length=1, max_length=255)
    license_number: str = Field(min_length=1, max_length=100)
    issuing_authority: Optional[str] = None
    issue_date: Optional[dt.date] = None
    expiry_date: Optional[dt.date] = None
    status: str = 'active'
    notes: Optional[str] = None

    @model_validator(mode='after')
    def check_dates(self):
        ensure_order(self.issue_date, self.expiry_date, 'Expiry date must be on or after the issue date')
        return self


class InsurancePolicySchema(FormSchema):
    provider: str = Field(min_length=1, max_length=255)
    policy_number: str = Field(min_length=1, max_length=100)
    type: Optional[str] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    premium: Optional[float] = Field(default=None, ge=0)
    coverage_amount: Optional[float] = Field(default=None, ge=0)
    status: str = 'active'
    notes: Optional[str] = None

    @model_validator(mode='after')
    def check_dates(self):
        ensure_order(self.start_date, self.end_date, 'End date must be on or after the start date')
        return self


class FinancialReportSchema(FormSchema):
    title: str = Field(min_length=1, max_length=255)
    report_type: str = Field(min_length=1, max_length=50)
    period_start: dt.date
    period_end: dt.date
    data: Dict[str, Any] = Field(default_factory=dict)
    notes: Optional[str] = None

    @model_validator(mode='after')
    def check_dates(self):
        ensure_order(self.period_start, self.period_end, 'Period end must be on or after the period start')
        return self
