"""
Labor Administration - Services Package

Business logic services.
"""

from app.services.auth_service import AuthService
from app.services.file_storage_service import FileStorageService, FileCategory, PdfUpload
from app.services.worker_service import WorkerService
from app.services.employment_history_service import EmploymentHistoryService
from app.services.employment_record_service import EmploymentRecordService
from app.services.labor_change_service import LaborChangeService, ChangeSummary
from app.services.leave_request_service import LeaveRequestService
from app.services.bonus_service import BonusService, compute_end_date, format_amount
from app.services.training_service import TrainingService

__all__ = [
    # Core Services
    "AuthService",
    "FileStorageService",
    "FileCategory",
    "PdfUpload",
    # HR Services
    "WorkerService",
    "EmploymentHistoryService",
    "EmploymentRecordService",
    "LaborChangeService",
    "ChangeSummary",
    "LeaveRequestService",
    # Bonuses
    "BonusService",
    "compute_end_date",
    "format_amount",
    # Trainings
    "TrainingService",
]
