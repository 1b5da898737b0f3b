"""Project, phase and document schemas"""
from datetime import date
from typing import List, Literal, Optional

from pydantic import Field, field_validator, model_validator

from smartwater.schemas.base import FormSchema, ensure_order

ProjectStatus = Literal['planning', 'pending', 'in_progress', 'review', 'completed', 'delayed', 'on_hold', 'cancelled']
PhaseStatus = Literal['planning', 'pending', 'in_progress', 'completed', 'delayed']
DocumentType = Literal['blueprint', 'permit', 'contract', 'invoice', 'photo', 'report', 'render', 'other']


class ProjectSchema(FormSchema):
    client_id: int
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    project_type: str = 'construction'
    start_date: date
    estimated_completion_date: Optional[date] = None
    actual_completion_date: Optional[date] = None
    status: ProjectStatus = 'pending'
    current_phase: Optional[str] = None
    percent_complete: int = Field(default=0, ge=0, le=100)
    budget: Optional[float] = Field(default=None, ge=0)
    permit_details: Optional[str] = None
    notes: Optional[str] = None
    is_archived: bool = False

    @model_validator(mode='after')
    def check_dates(self):
        ensure_order(self.start_date, self.estimated_completion_date,
                     'Estimated completion date must be on or after the start date')
        ensure_order(self.start_date, self.actual_completion_date,
                     'Actual completion date must be on or after the start date')
        return self


class PhaseSchema(FormSchema):
    project_id: int
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    status: PhaseStatus = 'pending'
    order: int = Field(default=0, ge=0)
    percent_complete: int = Field(default=0, ge=0, le=100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    estimated_duration: Optional[int] = Field(default=None, ge=0)
    actual_duration: Optional[int] = Field(default=None, ge=0)
    cost: Optional[float] = Field(default=None, ge=0)
    permit_required: bool = False
    inspection_required: bool = False
    inspection_date: Optional[date] = None
    inspection_passed: Optional[bool] = None
    inspection_notes: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode='after')
    def check_dates(self):
        ensure_order(self.start_date, self.end_date, 'End date must be on or after the start date')
        return self


class DocumentSchema(FormSchema):
    """Document metadata; the file itself travels as multipart form data"""
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    document_type: DocumentType = 'other'
    phase_id: Optional[int] = None
    is_public: bool = False
    tags: List[str] = Field(default_factory=list)

    @field_validator('tags', mode='before')
    @classmethod
    def split_tags(cls, value):
        if isinstance(value, str):
            return [tag.strip() for tag in value.split(',') if tag.strip()]
        return value


class WorkOrderSchema(FormSchema):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    status: Literal['pending', 'scheduled', 'in_progress', 'completed', 'cancelled'] = 'pending'
    priority: Literal['low', 'medium', 'high', 'urgent'] = 'medium'
    scheduled_date: Optional[date] = None
    technician_id: Optional[int] = None
    project_id: Optional[int] = None
    repair_id: Optional[int] = None
    maintenance_id: Optional[int] = None
