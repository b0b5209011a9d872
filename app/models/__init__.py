"""
Labor Administration - SQLAlchemy Models Package

This package contains all database models for the application.
"""

from app.models.base import BaseModel, TimestampMixin
from app.models.user import User, UserRole, HR_ROLES, HR_READ_ROLES
from app.models.hr import (
    Worker,
    EmploymentRecord,
    EmploymentHistoryEntry,
    LeaveRequest,
    EmploymentState,
    HealthInsurance,
    PensionFund,
    LaborChangeType,
    LeaveType,
    LeaveRequestStatus,
    LEAVE_STATES,
)
from app.models.bonus import Bonus, BonusAssignment, BonusCategory, BonusRecurrence
from app.models.training import Training

__all__ = [
    "BaseModel",
    "TimestampMixin",
    "User",
    "UserRole",
    "HR_ROLES",
    "HR_READ_ROLES",
    "Worker",
    "EmploymentRecord",
    "EmploymentHistoryEntry",
    "LeaveRequest",
    "EmploymentState",
    "HealthInsurance",
    "PensionFund",
    "LaborChangeType",
    "LeaveType",
    "LeaveRequestStatus",
    "LEAVE_STATES",
    "Bonus",
    "BonusAssignment",
    "BonusCategory",
    "BonusRecurrence",
    "Training",
]
