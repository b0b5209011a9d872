"""
Labor Administration - Employment History Schemas
"""

from datetime import date, datetime
from typing import Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.hr import EmploymentState, LaborChangeType


class HistoryEntryResponse(BaseModel):
    """Employment history entry response."""
    id: UUID
    worker_id: UUID
    change_type: LaborChangeType
    employment_state: EmploymentState
    job_title: str
    department: str
    contract_type: str
    work_schedule: Optional[str] = None
    base_salary: int
    start_date: date
    end_date: Optional[date] = None
    end_reason: Optional[str] = None
    contract_file: Optional[str] = None
    leave_request_id: Optional[UUID] = None
    registered_by_id: Optional[UUID] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ManualHistoryEntryCreate(BaseModel):
    """Manually registered history period (for workers without an open entry)."""
    worker_id: UUID
    job_title: str = Field(..., min_length=1, max_length=100)
    department: str = Field(..., min_length=1, max_length=100)
    contract_type: str = Field(..., min_length=1, max_length=50)
    work_schedule: Optional[str] = Field(None, max_length=50)
    base_salary: Union[int, float] = Field(0, ge=0)
    employment_state: EmploymentState = EmploymentState.ACTIVE
    start_date: date
    end_date: Optional[date] = None
    end_reason: Optional[str] = Field(None, max_length=500)


class HistoryEntryClose(BaseModel):
    """Close an open history entry."""
    end_date: date
    reason: Optional[str] = Field(None, max_length=500)


class UnifiedHistoryItem(BaseModel):
    """
    One row of the unified worker history.

    source="change" rows come from the history ledger (kind is the change
    type); source="leave" rows come from leave requests (kind is the leave
    type, status is the review status).
    """
    source: Literal["change", "leave"]
    id: UUID
    kind: str
    start_date: date
    end_date: Optional[date] = None
    employment_state: Optional[EmploymentState] = None
    job_title: Optional[str] = None
    department: Optional[str] = None
    base_salary: Optional[int] = None
    status: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime
