"""
Labor Administration - Training Service

Trainings (capacitaciones) completed by workers.

Only workers still in the system can have trainings registered, and a training
date is never in the future. The optional certificate is a PDF kept under
FileCategory.TRAINING_CERTIFICATE and removed together with the training.
"""

import logging
import uuid
from datetime import date
from pathlib import Path
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import transactional
from app.models.hr import Worker
from app.models.training import Training
from app.schemas.training import TrainingCreate, TrainingUpdate
from app.services.file_storage_service import FileCategory, FileStorageService, PdfUpload
from app.utils.calendar_dates import today
from app.utils.error_handling import (
    BusinessRuleException,
    DatabaseException,
    ErrorCode,
    NotFoundException,
    ServiceResult,
    ValidationException,
    WorkerNotFoundException,
)

logger = logging.getLogger(__name__)


def _check_not_future(training_date: date) -> Optional[ValidationException]:
    if training_date > today():
        return ValidationException(
            "The training date cannot be in the future",
            field="training_date",
            code=ErrorCode.INVALID_DATE_RANGE,
        )
    return None


def _clean_text(value: str, field: str, min_length: int = 2) -> Tuple[Optional[str], Optional[ValidationException]]:
    value = (value or "").strip()
    if len(value) < min_length:
        return None, ValidationException(f"{field} must have at least {min_length} characters", field=field)
    return value, None


class TrainingService:
    """Service for worker trainings."""

    def __init__(self, db: AsyncSession, storage: Optional[FileStorageService] = None):
        self.db = db
        self.storage = storage or FileStorageService()

    async def _load(self, training_id: uuid.UUID) -> Optional[Training]:
        result = await self.db.execute(
            select(Training)
            .where(Training.id == training_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    # ===========================================
    # CREATE
    # ===========================================

    async def create_training(
        self,
        worker_id: uuid.UUID,
        data: TrainingCreate,
        certificate: Optional[PdfUpload] = None,
    ) -> ServiceResult[Training]:
        """
        Register a training for a worker.

        Args:
            worker_id: Worker who completed the training
            data: Course, institution, date and duration
            certificate: Optional PDF certificate

        Returns:
            The stored training, or the validation error
        """
        result = await self.db.execute(select(Worker).where(Worker.id == worker_id))
        worker = result.scalar_one_or_none()
        if worker is None:
            return None, WorkerNotFoundException(worker_id)

        if not worker.in_system:
            return None, BusinessRuleException(
                "Cannot register trainings for a worker who is no longer in the system",
                rule="WORKER_IN_SYSTEM",
                code=ErrorCode.WORKER_TERMINATED,
            )

        course_name, error = _clean_text(data.course_name, "course_name")
        if error:
            return None, error
        institution, error = _clean_text(data.institution, "institution")
        if error:
            return None, error
        duration, error = _clean_text(data.duration, "duration", min_length=1)
        if error:
            return None, error

        error = _check_not_future(data.training_date)
        if error:
            return None, error

        if certificate is not None:
            error = self.storage.validate_pdf(certificate)
            if error:
                return None, error

        stored_file = None
        if certificate is not None:
            stored_file = self.storage.save_pdf(certificate, FileCategory.TRAINING_CERTIFICATE)

        training = Training(
            worker_id=worker_id,
            course_name=course_name,
            institution=institution,
            training_date=data.training_date,
            duration=duration,
            certificate_file=stored_file,
        )

        try:
            async with transactional(self.db):
                self.db.add(training)
                await self.db.flush()
                training_id = training.id
        except Exception as e:
            logger.error(f"Failed to register training for worker {worker_id}: {e}", exc_info=True)
            self.storage.delete_file(stored_file, FileCategory.TRAINING_CERTIFICATE)
            return None, DatabaseException(original_error=e)

        logger.info(f"Registered training {training_id} for worker {worker_id}")
        return await self._load(training_id), None

    # ===========================================
    # READ
    # ===========================================

    async def list_trainings(
        self,
        worker_id: Optional[uuid.UUID] = None,
        institution: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[Training], int]:
        """List trainings with filters and pagination, most recent first."""
        query = select(Training)

        if worker_id:
            query = query.where(Training.worker_id == worker_id)
        if institution:
            query = query.where(Training.institution.ilike(f"%{institution}%"))
        if date_from:
            query = query.where(Training.training_date >= date_from)
        if date_to:
            query = query.where(Training.training_date <= date_to)

        count_result = await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )
        total = count_result.scalar()

        query = (
            query.order_by(Training.training_date.desc(), Training.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def list_for_worker(self, worker_id: uuid.UUID) -> ServiceResult[List[Training]]:
        """Every training of a worker, most recent first."""
        result = await self.db.execute(select(Worker.id).where(Worker.id == worker_id))
        if result.scalar_one_or_none() is None:
            return None, WorkerNotFoundException(worker_id)

        result = await self.db.execute(
            select(Training)
            .where(Training.worker_id == worker_id)
            .order_by(Training.training_date.desc(), Training.created_at.desc())
        )
        return list(result.scalars().all()), None

    async def get_training(self, training_id: uuid.UUID) -> ServiceResult[Training]:
        """Get a training by ID."""
        training = await self._load(training_id)
        if training is None:
            return None, NotFoundException("Training", training_id, code=ErrorCode.TRAINING_NOT_FOUND)
        return training, None

    async def get_certificate_path(self, training_id: uuid.UUID) -> ServiceResult[Path]:
        """Path of a training's certificate."""
        training, error = await self.get_training(training_id)
        if error:
            return None, error

        path = self.storage.resolve_path(training.certificate_file, FileCategory.TRAINING_CERTIFICATE)
        if path is None:
            return None, NotFoundException(
                "Certificate",
                message="This training has no certificate",
                code=ErrorCode.FILE_NOT_FOUND,
            )
        return path, None

    # ===========================================
    # UPDATE / DELETE
    # ===========================================

    async def update_training(self, training_id: uuid.UUID, data: TrainingUpdate) -> ServiceResult[Training]:
        """Update the course data of a training."""
        training, error = await self.get_training(training_id)
        if error:
            return None, error

        changes = data.model_dump(exclude_unset=True)

        for field in ("course_name", "institution", "duration"):
            if changes.get(field) is None:
                changes.pop(field, None)
                continue
            changes[field], error = _clean_text(
                changes[field], field, min_length=1 if field == "duration" else 2,
            )
            if error:
                return None, error

        if "training_date" in changes:
            if changes["training_date"] is None:
                return None, ValidationException(
                    "The training date cannot be cleared", field="training_date",
                )
            error = _check_not_future(changes["training_date"])
            if error:
                return None, error

        try:
            async with transactional(self.db):
                for field, value in changes.items():
                    setattr(training, field, value)
        except Exception as e:
            logger.error(f"Failed to update training {training_id}: {e}", exc_info=True)
            return None, DatabaseException(original_error=e)

        logger.info(f"Updated training {training_id}")
        return await self._load(training_id), None

    async def delete_training(self, training_id: uuid.UUID) -> ServiceResult[bool]:
        """Delete a training and its certificate."""
        training, error = await self.get_training(training_id)
        if error:
            return None, error

        stored_file = training.certificate_file
        try:
            async with transactional(self.db):
                await self.db.delete(training)
        except Exception as e:
            logger.error(f"Failed to delete training {training_id}: {e}", exc_info=True)
            return None, DatabaseException(original_error=e)

        self.storage.delete_file(stored_file, FileCategory.TRAINING_CERTIFICATE)
        logger.info(f"Deleted training {training_id}")
        return True, None
