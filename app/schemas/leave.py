"""
Labor Administration - Leave/Permission Request Schemas
"""

from datetime import date, datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.hr import LeaveRequestStatus, LeaveType
from app.schemas.worker import WorkerSummary


class LeaveReviewRequest(BaseModel):
    """HR decision on a pending leave request."""
    status: Literal["approved", "rejected"]
    comment: Optional[str] = Field(None, max_length=500)


class LeaveRequestResponse(BaseModel):
    """Leave request response."""
    id: UUID
    worker_id: UUID
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str
    attachment_file: Optional[str] = None
    status: LeaveRequestStatus
    reviewer_comment: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by_id: Optional[UUID] = None
    worker: Optional[WorkerSummary] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ExpirySweepResponse(BaseModel):
    """Result of a leave expiry sweep."""
    run_date: date
    reverted: int
