"""
Validation schemas shared by the API blueprints and the client form layer.
"""

from smartwater.schemas.base import FormSchema, validate_create, validate_update, validation_details
from smartwater.schemas.auth import LoginSchema, RegisterSchema
from smartwater.schemas.project import ProjectSchema, PhaseSchema, DocumentSchema, WorkOrderSchema
from smartwater.schemas.service import (
    ClientSchema, MaintenanceSchema, TechnicianAssignmentSchema,
    WaterReadingSchema, ServiceReportSchema, RepairSchema
)
from smartwater.schemas.business import (
    ExpenseSchema, VendorSchema, PurchaseOrderSchema, InventoryItemSchema,
    LicenseSchema, InsurancePolicySchema, FinancialReportSchema
)
from smartwater.schemas.communication import (
    CommunicationProviderSchema, SendEmailSchema, SyncEmailSchema,
    EmailLinkSchema, SendSmsSchema
)

__all__ = [
    'FormSchema', 'validate_create', 'validate_update', 'validation_details',
    'LoginSchema', 'RegisterSchema',
    'ProjectSchema', 'PhaseSchema', 'DocumentSchema', 'WorkOrderSchema',
    'ClientSchema', 'MaintenanceSchema', 'TechnicianAssignmentSchema',
    'WaterReadingSchema', 'ServiceReportSchema', 'RepairSchema',
    'ExpenseSchema', 'VendorSchema', 'PurchaseOrderSchema', 'InventoryItemSchema',
    'LicenseSchema', 'InsurancePolicySchema', 'FinancialReportSchema',
    'CommunicationProviderSchema', 'SendEmailSchema', 'SyncEmailSchema',
    'EmailLinkSchema', 'SendSmsSchema',
]
