"""
Labor Administration - Schemas Package

Pydantic schemas for request/response validation.
"""

from app.schemas.common import ApiResponse, PaginatedData
from app.schemas.auth import UserRegisterRequest, LoginRequest, UserResponse, TokenResponse
from app.schemas.worker import (
    WorkerCreate,
    WorkerUpdate,
    WorkerResponse,
    WorkerSummary,
    EmploymentRecordUpdate,
    EmploymentRecordResponse,
    LaborChangeRequest,
    ChangeSummaryResponse,
)
from app.schemas.history import (
    HistoryEntryResponse,
    ManualHistoryEntryCreate,
    HistoryEntryClose,
    UnifiedHistoryItem,
)
from app.schemas.leave import LeaveReviewRequest, LeaveRequestResponse, ExpirySweepResponse
from app.schemas.bonus import (
    BonusCreate,
    BonusUpdate,
    BonusResponse,
    BonusAssignmentCreate,
    BonusAssignmentUpdate,
    BonusAssignmentResponse,
)
from app.schemas.training import TrainingCreate, TrainingUpdate, TrainingResponse

__all__ = [
    "ApiResponse",
    "PaginatedData",
    "UserRegisterRequest",
    "LoginRequest",
    "UserResponse",
    "TokenResponse",
    "WorkerCreate",
    "WorkerUpdate",
    "WorkerResponse",
    "WorkerSummary",
    "EmploymentRecordUpdate",
    "EmploymentRecordResponse",
    "LaborChangeRequest",
    "ChangeSummaryResponse",
    "HistoryEntryResponse",
    "ManualHistoryEntryCreate",
    "HistoryEntryClose",
    "UnifiedHistoryItem",
    "LeaveReviewRequest",
    "LeaveRequestResponse",
    "ExpirySweepResponse",
    "BonusCreate",
    "BonusUpdate",
    "BonusResponse",
    "BonusAssignmentCreate",
    "BonusAssignmentUpdate",
    "BonusAssignmentResponse",
    "TrainingCreate",
    "TrainingUpdate",
    "TrainingResponse",
]
