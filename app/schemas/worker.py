"""
Labor Administration - Worker and Employment Record Schemas

Pydantic schemas for workers, their employment record and labor changes.
"""

from datetime import date, datetime
from typing import Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models.hr import EmploymentState, HealthInsurance, LaborChangeType, PensionFund


# ===========================================
# WORKER SCHEMAS
# ===========================================

class WorkerBase(BaseModel):
    """Base worker schema."""
    rut: str = Field(..., min_length=9, max_length=12, description="RUT, e.g. 12.345.678-5")
    first_names: str = Field(..., min_length=1, max_length=100)
    paternal_surname: str = Field(..., min_length=1, max_length=100)
    maternal_surname: str = Field(..., min_length=1, max_length=100)
    birth_date: Optional[date] = None
    phone: str = Field(..., min_length=8, max_length=12)
    email: EmailStr
    emergency_phone: Optional[str] = Field(None, min_length=8, max_length=12)
    address: str = Field(..., min_length=1, max_length=255)
    hire_date: date


class WorkerCreate(WorkerBase):
    """
    Create worker request.

    The initial employment terms are optional; missing values fall back to the
    placeholder defaults of a new employment record.
    """
    job_title: Optional[str] = Field(None, min_length=1, max_length=100)
    department: Optional[str] = Field(None, min_length=1, max_length=100)
    contract_type: Optional[str] = Field(None, min_length=1, max_length=50)
    work_schedule: Optional[str] = Field(None, max_length=50)
    base_salary: Optional[Union[int, float]] = Field(None, ge=0)
    contract_start_date: Optional[date] = None


class WorkerUpdate(BaseModel):
    """Update worker request (identity and contact fields only)."""
    rut: Optional[str] = Field(None, min_length=9, max_length=12)
    first_names: Optional[str] = Field(None, min_length=1, max_length=100)
    paternal_surname: Optional[str] = Field(None, min_length=1, max_length=100)
    maternal_surname: Optional[str] = Field(None, min_length=1, max_length=100)
    birth_date: Optional[date] = None
    phone: Optional[str] = Field(None, min_length=8, max_length=12)
    email: Optional[EmailStr] = None
    emergency_phone: Optional[str] = Field(None, min_length=8, max_length=12)
    address: Optional[str] = Field(None, min_length=1, max_length=255)

    model_config = ConfigDict(extra="forbid")


class WorkerSummary(BaseModel):
    """Worker reference embedded in other responses."""
    id: UUID
    rut: str
    full_name: str
    in_system: bool

    model_config = ConfigDict(from_attributes=True)


# ===========================================
# EMPLOYMENT RECORD SCHEMAS
# ===========================================

class EmploymentRecordUpdate(BaseModel):
    """
    Direct HR edit of an employment record.

    Only the non-protected fields are accepted; title, department, contract
    type, schedule, salary and state change through labor changes and leave
    approvals.
    """
    health_insurance: Optional[HealthInsurance] = None
    pension_fund: Optional[PensionFund] = None
    unemployment_insurance: Optional[bool] = None
    contract_end_date: Optional[date] = None

    model_config = ConfigDict(extra="forbid")


class EmploymentRecordResponse(BaseModel):
    """Employment record response."""
    id: UUID
    worker_id: UUID
    job_title: str
    department: str
    contract_type: str
    work_schedule: Optional[str] = None
    base_salary: int
    health_insurance: Optional[HealthInsurance] = None
    pension_fund: Optional[PensionFund] = None
    unemployment_insurance: Optional[bool] = None
    contract_start_date: date
    contract_end_date: Optional[date] = None
    state: EmploymentState
    termination_reason: Optional[str] = None
    leave_start_date: Optional[date] = None
    leave_end_date: Optional[date] = None
    leave_reason: Optional[str] = None
    contract_file: Optional[str] = None
    worker: Optional[WorkerSummary] = None
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WorkerResponse(WorkerBase):
    """Worker response."""
    id: UUID
    full_name: str
    in_system: bool
    created_at: datetime
    employment_record: Optional[EmploymentRecordResponse] = None

    model_config = ConfigDict(from_attributes=True)


# ===========================================
# LABOR CHANGE SCHEMAS
# ===========================================

LaborChangeKind = Literal[
    "termination", "role_change", "department_change",
    "contract_type_change", "salary_change", "schedule_change",
]


class LaborChangeRequest(BaseModel):
    """
    Labor change applied to a worker.

    The field that carries the new value depends on the change type:
    role_change -> job_title, department_change -> department,
    contract_type_change -> contract_type, salary_change -> base_salary,
    schedule_change -> work_schedule. Termination requires a reason.
    """
    change_type: LaborChangeKind
    effective_date: Optional[date] = Field(None, description="Defaults to today")
    reason: Optional[str] = Field(None, max_length=500)
    job_title: Optional[str] = Field(None, min_length=1, max_length=100)
    department: Optional[str] = Field(None, min_length=1, max_length=100)
    contract_type: Optional[str] = Field(None, min_length=1, max_length=50)
    work_schedule: Optional[str] = Field(None, min_length=1, max_length=50)
    base_salary: Optional[Union[int, float]] = None


class ChangeSummaryResponse(BaseModel):
    """Outcome of a labor change."""
    change_type: LaborChangeType
    worker_id: UUID
    message: str
    effective_date: date
    employment_record_updated: bool
    history_updated: bool
    worker_updated: bool

    model_config = ConfigDict(from_attributes=True)
