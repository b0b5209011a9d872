"""
Labor Administration - Employment History Service

The employment history is an append-only ledger of the terms in force over
time. At most one entry per worker is open (end_date IS NULL); every labor
transition closes it and, unless the worker is terminated, opens the next one.

The ledger primitives (close_current, open_entry, close_current_and_open_new)
never commit: they run inside the caller's transaction so the record update and
the ledger write succeed or fail together.
"""

import logging
import uuid
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import transactional
from app.models.hr import (
    EmploymentHistoryEntry,
    EmploymentRecord,
    LaborChangeType,
    LeaveRequest,
    Worker,
)
from app.schemas.history import ManualHistoryEntryCreate
from app.services.file_storage_service import FileCategory, FileStorageService
from app.utils.calendar_dates import today
from app.utils.error_handling import (
    BusinessRuleException,
    DatabaseException,
    ErrorCode,
    InvalidDateRangeException,
    NotFoundException,
    ServiceResult,
    ValidationException,
    WorkerNotFoundException,
)

logger = logging.getLogger(__name__)


def snapshot_terms(record: EmploymentRecord) -> Dict[str, Any]:
    """Employment terms of a record as history entry column values."""
    return {
        "employment_state": record.state,
        "job_title": record.job_title,
        "department": record.department,
        "contract_type": record.contract_type,
        "work_schedule": record.work_schedule,
        "base_salary": record.base_salary,
        "contract_file": record.contract_file,
    }


class EmploymentHistoryService:
    """Service for the employment history ledger."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ===========================================
    # LEDGER PRIMITIVES (no commit)
    # ===========================================

    async def get_open_entry(self, worker_id: uuid.UUID) -> Optional[EmploymentHistoryEntry]:
        """The worker's open history entry, if any."""
        result = await self.db.execute(
            select(EmploymentHistoryEntry)
            .where(
                EmploymentHistoryEntry.worker_id == worker_id,
                EmploymentHistoryEntry.end_date.is_(None),
            )
            .order_by(EmploymentHistoryEntry.start_date.desc())
        )
        return result.scalars().first()

    async def check_effective_date(
        self,
        worker_id: uuid.UUID,
        effective_date: date,
    ) -> Optional[ValidationException]:
        """A transition may not be dated before the start of the open period."""
        current = await self.get_open_entry(worker_id)
        if current is not None and effective_date < current.start_date:
            return ValidationException(
                f"The effective date {effective_date} is before the start of the "
                f"current employment period ({current.start_date})",
                field="effective_date",
                code=ErrorCode.INVALID_DATE_RANGE,
            )
        return None

    async def open_entry(
        self,
        record: EmploymentRecord,
        change_type: LaborChangeType,
        start_date: date,
        registered_by_id: Optional[uuid.UUID] = None,
        leave_request_id: Optional[uuid.UUID] = None,
    ) -> EmploymentHistoryEntry:
        """Open a new entry with the record's current terms."""
        entry = EmploymentHistoryEntry(
            worker_id=record.worker_id,
            change_type=change_type,
            start_date=start_date,
            registered_by_id=registered_by_id,
            leave_request_id=leave_request_id,
            **snapshot_terms(record),
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def close_current(
        self,
        record: EmploymentRecord,
        end_date: date,
        reason: Optional[str] = None,
        previous: Optional[Dict[str, Any]] = None,
        registered_by_id: Optional[uuid.UUID] = None,
    ) -> EmploymentHistoryEntry:
        """
        Close the worker's open entry at end_date.

        When no entry is open, the terms in force until now (previous, or the
        record's current terms) are preserved as a closed entry running from the
        contract start, so the change is never lost from the ledger.

        Raises:
            InvalidDateRangeException: end_date is before the open entry's start
        """
        current = await self.get_open_entry(record.worker_id)

        if current is not None:
            if end_date < current.start_date:
                raise InvalidDateRangeException(
                    current.start_date,
                    end_date,
                    message=f"Cannot close the {current.change_type.value} entry starting "
                            f"{current.start_date} at {end_date}",
                )
            current.end_date = end_date
            current.end_reason = reason
        else:
            terms = previous if previous is not None else snapshot_terms(record)
            start = record.contract_start_date
            if start is None or start > end_date:
                start = end_date
            current = EmploymentHistoryEntry(
                worker_id=record.worker_id,
                change_type=LaborChangeType.MANUAL,
                start_date=start,
                end_date=end_date,
                end_reason=reason,
                registered_by_id=registered_by_id,
                **terms,
            )
            self.db.add(current)
            logger.warning(
                f"No open history entry for worker {record.worker_id}; "
                f"recorded closed snapshot up to {end_date}"
            )

        await self.db.flush()
        return current

    async def close_current_and_open_new(
        self,
        record: EmploymentRecord,
        change_type: LaborChangeType,
        effective_date: date,
        reason: Optional[str] = None,
        previous: Optional[Dict[str, Any]] = None,
        registered_by_id: Optional[uuid.UUID] = None,
        leave_request_id: Optional[uuid.UUID] = None,
    ) -> EmploymentHistoryEntry:
        """
        Close the open entry at effective_date and open the next one.

        Args:
            record: Employment record already carrying the post-change terms
            change_type: Kind of change that opens the new entry
            effective_date: End of the old period and start of the new one
            reason: Reason stamped on the closed entry
            previous: Pre-change terms, used when no entry was open

        Returns:
            The newly opened entry
        """
        await self.close_current(
            record,
            effective_date,
            reason=reason,
            previous=previous,
            registered_by_id=registered_by_id,
        )
        return await self.open_entry(
            record,
            change_type,
            effective_date,
            registered_by_id=registered_by_id,
            leave_request_id=leave_request_id,
        )

    # ===========================================
    # QUERIES
    # ===========================================

    async def _get_worker(self, worker_id: uuid.UUID) -> Optional[Worker]:
        result = await self.db.execute(select(Worker).where(Worker.id == worker_id))
        return result.scalar_one_or_none()

    async def get_by_worker(
        self,
        worker_id: uuid.UUID,
    ) -> ServiceResult[List[EmploymentHistoryEntry]]:
        """All history entries of a worker, newest first."""
        if await self._get_worker(worker_id) is None:
            return None, WorkerNotFoundException(worker_id)

        result = await self.db.execute(
            select(EmploymentHistoryEntry)
            .where(EmploymentHistoryEntry.worker_id == worker_id)
            .order_by(
                EmploymentHistoryEntry.start_date.desc(),
                EmploymentHistoryEntry.created_at.desc(),
            )
        )
        return list(result.scalars().all()), None

    async def get_unified_history(self, worker_id: uuid.UUID) -> ServiceResult[List[Dict[str, Any]]]:
        """
        Merge history entries and leave requests of a worker into one timeline.

        Returns:
            Items tagged source="change" or source="leave", newest first
        """
        entries, error = await self.get_by_worker(worker_id)
        if error:
            return None, error

        result = await self.db.execute(
            select(LeaveRequest).where(LeaveRequest.worker_id == worker_id)
        )
        leave_requests = result.scalars().all()

        items = [
            {
                "source": "change",
                "id": entry.id,
                "kind": entry.change_type.value,
                "start_date": entry.start_date,
                "end_date": entry.end_date,
                "employment_state": entry.employment_state,
                "job_title": entry.job_title,
                "department": entry.department,
                "base_salary": entry.base_salary,
                "description": entry.end_reason,
                "created_at": entry.created_at,
            }
            for entry in entries
        ]
        items.extend(
            {
                "source": "leave",
                "id": leave.id,
                "kind": leave.leave_type.value,
                "start_date": leave.start_date,
                "end_date": leave.end_date,
                "status": leave.status.value,
                "description": leave.reason,
                "created_at": leave.created_at,
            }
            for leave in leave_requests
        )

        items.sort(key=lambda item: (item["start_date"], item["created_at"]), reverse=True)
        return items, None

    async def get_entry(self, entry_id: uuid.UUID) -> ServiceResult[EmploymentHistoryEntry]:
        """Get a history entry by ID."""
        result = await self.db.execute(
            select(EmploymentHistoryEntry).where(EmploymentHistoryEntry.id == entry_id)
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            return None, NotFoundException(
                "History entry", entry_id, code=ErrorCode.HISTORY_ENTRY_NOT_FOUND,
            )
        return entry, None

    async def get_entry_contract_path(
        self,
        entry_id: uuid.UUID,
        storage: Optional[FileStorageService] = None,
    ) -> ServiceResult[Path]:
        """Path of the contract referenced by a history entry."""
        entry, error = await self.get_entry(entry_id)
        if error:
            return None, error

        storage = storage or FileStorageService()
        path = storage.resolve_path(entry.contract_file, FileCategory.CONTRACT)
        if path is None:
            return None, NotFoundException(
                "Contract file",
                message="This history entry has no contract file",
                code=ErrorCode.FILE_NOT_FOUND,
            )
        return path, None

    # ===========================================
    # MANUAL REGISTRATION
    # ===========================================

    async def create_manual_entry(
        self,
        data: ManualHistoryEntryCreate,
        acting_user_id: Optional[uuid.UUID] = None,
    ) -> ServiceResult[EmploymentHistoryEntry]:
        """
        Register a history period by hand.

        Only allowed for workers in the system without an open entry; the start
        date may not be in the future and the end date may not precede it.
        """
        worker = await self._get_worker(data.worker_id)
        if worker is None:
            return None, WorkerNotFoundException(data.worker_id)

        if not worker.in_system:
            return None, BusinessRuleException(
                "Cannot register history for a worker who is no longer in the system",
                rule="WORKER_IN_SYSTEM",
            )

        if await self.get_open_entry(worker.id) is not None:
            return None, BusinessRuleException(
                "The worker already has an open history entry; close it first",
                rule="SINGLE_OPEN_ENTRY",
                code=ErrorCode.OPEN_HISTORY_ENTRY,
            )

        if data.start_date > today():
            return None, ValidationException(
                "The start date cannot be in the future",
                field="start_date",
                code=ErrorCode.INVALID_DATE_RANGE,
            )

        if data.end_date is not None and data.end_date < data.start_date:
            return None, InvalidDateRangeException(data.start_date, data.end_date)

        entry = EmploymentHistoryEntry(
            worker_id=worker.id,
            change_type=LaborChangeType.MANUAL,
            employment_state=data.employment_state,
            job_title=data.job_title,
            department=data.department,
            contract_type=data.contract_type,
            work_schedule=data.work_schedule,
            base_salary=int(round(data.base_salary)),
            start_date=data.start_date,
            end_date=data.end_date,
            end_reason=data.end_reason,
            registered_by_id=acting_user_id,
        )

        try:
            async with transactional(self.db):
                self.db.add(entry)
        except Exception as e:
            logger.error(f"Failed to register history entry for worker {data.worker_id}: {e}", exc_info=True)
            return None, DatabaseException(original_error=e)

        logger.info(f"Registered manual history entry {entry.id} for worker {data.worker_id}")
        return entry, None

    async def close_entry(
        self,
        entry_id: uuid.UUID,
        end_date: date,
        reason: Optional[str] = None,
    ) -> ServiceResult[EmploymentHistoryEntry]:
        """Close an open entry. Closed entries are immutable."""
        entry, error = await self.get_entry(entry_id)
        if error:
            return None, error

        if not entry.is_open:
            return None, BusinessRuleException(
                "This history entry is already closed and cannot be modified",
                rule="CLOSED_ENTRY_IMMUTABLE",
                code=ErrorCode.HISTORY_ENTRY_CLOSED,
            )

        if end_date < entry.start_date:
            return None, InvalidDateRangeException(entry.start_date, end_date)

        try:
            async with transactional(self.db):
                entry.end_date = end_date
                entry.end_reason = reason
        except Exception as e:
            logger.error(f"Failed to close history entry {entry_id}: {e}", exc_info=True)
            return None, DatabaseException(original_error=e)

        logger.info(f"Closed history entry {entry_id} at {end_date}")
        return entry, None
