"""
SQLAlchemy Models Package

This package contains all database models organized by domain:
- Tenancy: Organization, User, Client
- Projects: Project, ProjectPhase, ProjectDocument, WorkOrder
- Field Service: Maintenance, ServiceReport, Repair
- Business: Vendor, Expense, PurchaseOrder, InventoryItem, License, InsurancePolicy, FinancialReport
- Communication: CommunicationProvider, Email, EmailLink, CommunicationLog
"""

# Tenancy
from smartwater.models.organization import Organization
from smartwater.models.user import User
from smartwater.models.client import Client

# Projects
from smartwater.models.project import Project, ProjectPhase
from smartwater.models.document import ProjectDocument
from smartwater.models.work_order import WorkOrder

# Field Service
from smartwater.models.maintenance import Maintenance, ServiceReport
from smartwater.models.repair import Repair

# Business
from smartwater.models.business import (
    Vendor, Expense, PurchaseOrder, InventoryItem,
    License, InsurancePolicy, FinancialReport
)

# Communication
from smartwater.models.communication import (
    CommunicationProvider, Email, EmailLink, CommunicationLog
)

__all__ = [
    # Tenancy
    'Organization',
    'User',
    'Client',
    # Projects
    'Project',
    'ProjectPhase',
    'ProjectDocument',
    'WorkOrder',
    # Field Service
    'Maintenance',
    'ServiceReport',
    'Repair',
    # Business
    'Vendor',
    'Expense',
    'PurchaseOrder',
    'InventoryItem',
    'License',
    'InsurancePolicy',
    'FinancialReport',
    # Communication
    'CommunicationProvider',
    'Email',
    'EmailLink',
    'CommunicationLog',
]
