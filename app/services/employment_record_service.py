"""
Labor Administration - Employment Record Service

Reads and direct HR edits of employment records, plus the contract PDF.

Direct edits only reach the non-protected fields (health insurance, pension
fund, unemployment insurance, contract end date). Terminated records are
read-only.
"""

import logging
import uuid
from pathlib import Path
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import transactional
from app.models.hr import EmploymentHistoryEntry, EmploymentRecord, EmploymentState, Worker
from app.schemas.worker import EmploymentRecordUpdate
from app.services.file_storage_service import FileCategory, FileStorageService, PdfUpload
from app.utils.error_handling import (
    DatabaseException,
    EmploymentRecordNotFoundException,
    ErrorCode,
    InvalidDateRangeException,
    NotFoundException,
    ServiceResult,
    WorkerTerminatedException,
)

logger = logging.getLogger(__name__)


class EmploymentRecordService:
    """Service for employment records."""

    def __init__(self, db: AsyncSession, storage: Optional[FileStorageService] = None):
        self.db = db
        self.storage = storage or FileStorageService()

    async def _load(self, record_id: uuid.UUID) -> Optional[EmploymentRecord]:
        result = await self.db.execute(
            select(EmploymentRecord)
            .where(EmploymentRecord.id == record_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    # ===========================================
    # READ
    # ===========================================

    async def list_records(
        self,
        state: Optional[EmploymentState] = None,
        department: Optional[str] = None,
        job_title: Optional[str] = None,
        contract_type: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[EmploymentRecord]:
        """List employment records with filters."""
        query = select(EmploymentRecord).join(Worker, EmploymentRecord.worker_id == Worker.id)

        if state:
            query = query.where(EmploymentRecord.state == state)
        if department:
            query = query.where(EmploymentRecord.department.ilike(f"%{department}%"))
        if job_title:
            query = query.where(EmploymentRecord.job_title.ilike(f"%{job_title}%"))
        if contract_type:
            query = query.where(EmploymentRecord.contract_type == contract_type)
        if search:
            search_term = f"%{search}%"
            query = query.where(
                or_(
                    Worker.first_names.ilike(search_term),
                    Worker.paternal_surname.ilike(search_term),
                    Worker.maternal_surname.ilike(search_term),
                    Worker.rut.ilike(search_term),
                )
            )

        query = query.order_by(Worker.paternal_surname, Worker.first_names)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_record(self, record_id: uuid.UUID) -> ServiceResult[EmploymentRecord]:
        """Get an employment record by ID."""
        record = await self._load(record_id)
        if record is None:
            return None, EmploymentRecordNotFoundException(record_id)
        return record, None

    async def get_record_by_worker(self, worker_id: uuid.UUID) -> ServiceResult[EmploymentRecord]:
        """Get the employment record of a worker."""
        result = await self.db.execute(
            select(EmploymentRecord)
            .where(EmploymentRecord.worker_id == worker_id)
            .execution_options(populate_existing=True)
        )
        record = result.scalar_one_or_none()
        if record is None:
            return None, EmploymentRecordNotFoundException(
                message=f"No employment record for worker {worker_id}",
            )
        return record, None

    # ===========================================
    # UPDATE
    # ===========================================

    async def update_record(
        self,
        record_id: uuid.UUID,
        data: EmploymentRecordUpdate,
    ) -> ServiceResult[EmploymentRecord]:
        """Edit the non-protected fields of an employment record."""
        record, error = await self.get_record(record_id)
        if error:
            return None, error

        if record.is_terminated:
            return None, WorkerTerminatedException(
                record.worker_id, message="The employment record of a terminated worker is read-only",
            )

        changes = data.model_dump(exclude_unset=True)

        end_date = changes.get("contract_end_date")
        if end_date is not None and end_date < record.contract_start_date:
            return None, InvalidDateRangeException(
                record.contract_start_date,
                end_date,
                message="The contract end date cannot be before the contract start date",
            )

        try:
            async with transactional(self.db):
                for key, value in changes.items():
                    setattr(record, key, value)
        except Exception as e:
            logger.error(f"Failed to update employment record {record_id}: {e}", exc_info=True)
            return None, DatabaseException(original_error=e)

        logger.info(f"Updated employment record {record_id}: {sorted(changes)}")
        return await self._load(record_id), None

    # ===========================================
    # CONTRACT FILE
    # ===========================================

    async def attach_contract(
        self,
        record_id: uuid.UUID,
        upload: PdfUpload,
    ) -> ServiceResult[EmploymentRecord]:
        """
        Attach (or replace) the contract PDF of a record.

        History entries are snapshots and keep the contract they were written
        with; the next labor change records the new one.
        """
        record, error = await self.get_record(record_id)
        if error:
            return None, error

        if record.is_terminated:
            return None, WorkerTerminatedException(
                record.worker_id, message="The employment record of a terminated worker is read-only",
            )

        error = self.storage.validate_pdf(upload)
        if error:
            return None, error

        old_file = record.contract_file
        stored_file = self.storage.save_pdf(upload, FileCategory.CONTRACT)

        try:
            async with transactional(self.db):
                record.contract_file = stored_file
        except Exception as e:
            logger.error(f"Failed to attach contract to record {record_id}: {e}", exc_info=True)
            self.storage.delete_file(stored_file, FileCategory.CONTRACT)
            return None, DatabaseException(original_error=e)

        # History entries keep pointing at the contract in force when they were written
        if old_file and not await self._is_referenced(old_file):
            self.storage.delete_file(old_file, FileCategory.CONTRACT)

        logger.info(f"Attached contract to employment record {record_id}")
        return await self._load(record_id), None

    async def get_contract_path(self, record_id: uuid.UUID) -> ServiceResult[Path]:
        """Path of a record's contract PDF."""
        record, error = await self.get_record(record_id)
        if error:
            return None, error

        path = self.storage.resolve_path(record.contract_file, FileCategory.CONTRACT)
        if path is None:
            return None, NotFoundException(
                "Contract file",
                message="This employment record has no contract file",
                code=ErrorCode.FILE_NOT_FOUND,
            )
        return path, None

    async def remove_contract(self, record_id: uuid.UUID) -> ServiceResult[EmploymentRecord]:
        """Detach the contract PDF from a record."""
        record, error = await self.get_record(record_id)
        if error:
            return None, error

        if record.is_terminated:
            return None, WorkerTerminatedException(
                record.worker_id, message="The employment record of a terminated worker is read-only",
            )

        if not record.contract_file:
            return None, NotFoundException(
                "Contract file",
                message="This employment record has no contract file",
                code=ErrorCode.FILE_NOT_FOUND,
            )

        old_file = record.contract_file
        try:
            async with transactional(self.db):
                record.contract_file = None
        except Exception as e:
            logger.error(f"Failed to remove contract of record {record_id}: {e}", exc_info=True)
            return None, DatabaseException(original_error=e)

        if not await self._is_referenced(old_file):
            self.storage.delete_file(old_file, FileCategory.CONTRACT)

        logger.info(f"Removed contract from employment record {record_id}")
        return await self._load(record_id), None

    async def _is_referenced(self, stored_file: str) -> bool:
        result = await self.db.execute(
            select(EmploymentHistoryEntry.id).where(EmploymentHistoryEntry.contract_file == stored_file)
        )
        return result.first() is not None
