"""Client, maintenance, service report and repair schemas"""
from datetime import date, datetime, time
from typing import ClassVar, List, Literal, Optional

from pydantic import Field, field_validator

from smartwater.schemas.base import FormSchema

MaintenanceType = Literal['cleaning', 'inspection', 'chemical_balance', 'filter_change', 'equipment_service', 'other']
MaintenanceStatus = Literal['scheduled', 'in_progress', 'completed', 'cancelled']
RepairStatus = Literal['pending', 'assigned', 'scheduled', 'in_progress', 'completed']


class ClientSchema(FormSchema):
    # User fields
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(pattern=r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
    phone: Optional[str] = None
    address: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=8)

    # Client profile fields
    company_name: Optional[str] = None
    contract_type: Literal['residential', 'commercial', 'service'] = 'residential'
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    custom_instructions: Optional[str] = None

    USER_FIELDS: ClassVar[tuple] = ('name', 'email', 'phone', 'address')
    PROFILE_FIELDS: ClassVar[tuple] = ('company_name', 'contract_type', 'latitude', 'longitude', 'custom_instructions')


class MaintenanceSchema(FormSchema):
    client_id: int
    technician_id: Optional[int] = None
    scheduled_date: date
    scheduled_time: Optional[time] = None
    type: MaintenanceType
    status: MaintenanceStatus = 'scheduled'
    description: Optional[str] = None
    completed: bool = False
    notes: Optional[str] = None


class TechnicianAssignmentSchema(FormSchema):
    technician_id: Optional[int] = None


class WaterReadingSchema(FormSchema):
    """Pool chemistry; every reading is optional but must be physically plausible"""
    ph: Optional[float] = Field(default=None, ge=0, le=14)
    chlorine: Optional[float] = Field(default=None, ge=0, le=10)
    alkalinity: Optional[float] = Field(default=None, ge=0, le=300)
    cyanuric_acid: Optional[float] = Field(default=None, ge=0, le=300)
    calcium: Optional[float] = Field(default=None, ge=0, le=1000)
    phosphate: Optional[float] = Field(default=None, ge=0, le=2000)
    salinity: Optional[float] = Field(default=None, ge=0, le=5000)
    tds: Optional[float] = Field(default=None, ge=0, le=10000)
    temperature: Optional[float] = Field(default=None, ge=0, le=120)


class ServiceReportSchema(WaterReadingSchema):
    tasks_completed: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    technician_id: Optional[int] = None
    mark_completed: bool = True

    @field_validator('tasks_completed', mode='before')
    @classmethod
    def split_tasks(cls, value):
        if isinstance(value, str):
            return [task.strip() for task in value.splitlines() if task.strip()]
        return value


class RepairSchema(FormSchema):
    client_id: int
    issue_type: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1)
    status: RepairStatus = 'pending'
    priority: Literal['low', 'medium', 'high'] = 'medium'
    technician_id: Optional[int] = None
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[time] = None
    completion_date: Optional[datetime] = None
    notes: Optional[str] = None
