"""
Labor Administration - Training Schemas
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.worker import WorkerSummary


class TrainingCreate(BaseModel):
    """Training registration (sent as multipart form fields with the certificate)."""
    course_name: str = Field(..., min_length=2, max_length=200)
    institution: str = Field(..., min_length=2, max_length=200)
    training_date: date
    duration: str = Field(..., min_length=1, max_length=50)


class TrainingUpdate(BaseModel):
    """Partial training update. The certificate is not replaceable."""
    course_name: Optional[str] = Field(None, min_length=2, max_length=200)
    institution: Optional[str] = Field(None, min_length=2, max_length=200)
    training_date: Optional[date] = None
    duration: Optional[str] = Field(None, min_length=1, max_length=50)

    model_config = ConfigDict(extra="forbid")


class TrainingResponse(BaseModel):
    """Training response."""
    id: UUID
    worker_id: UUID
    course_name: str
    institution: str
    training_date: date
    duration: str
    certificate_file: Optional[str] = None
    worker: Optional[WorkerSummary] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
