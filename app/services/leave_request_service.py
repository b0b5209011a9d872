"""
Labor Administration - Leave Request Service

Medical leave / administrative permit workflow:

    PENDING -> APPROVED   record enters the leave state, ledger opens a LEAVE entry
    PENDING -> REJECTED   request fields only

Approved leaves end through the expiry sweep: every record still in a leave
state whose leave end date is before today returns to ACTIVE. The sweep, the
scheduled task and the manual HR endpoint all go through end_leave(), the single
definition of what ending a leave means.
"""

import logging
import uuid
from datetime import date, datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import transactional
from app.models.hr import (
    EmploymentRecord,
    EmploymentState,
    LaborChangeType,
    LeaveRequest,
    LeaveRequestStatus,
    LeaveType,
    LEAVE_STATES,
    Worker,
)
from app.services.employment_history_service import EmploymentHistoryService, snapshot_terms
from app.services.file_storage_service import FileCategory, FileStorageService, PdfUpload
from app.utils.calendar_dates import today as current_date
from app.utils.error_handling import (
    AppException,
    BusinessRuleException,
    DatabaseException,
    EmploymentRecordNotFoundException,
    ErrorCode,
    InvalidDateRangeException,
    NotFoundException,
    ServiceResult,
    ValidationException,
    WorkerNotFoundException,
    WorkerTerminatedException,
)

logger = logging.getLogger(__name__)


class LeaveRequestService:
    """Service for leave/permission requests and leave expiry."""

    def __init__(self, db: AsyncSession, storage: Optional[FileStorageService] = None):
        self.db = db
        self.history = EmploymentHistoryService(db)
        self.storage = storage or FileStorageService()

    async def _load(self, request_id: uuid.UUID) -> Optional[LeaveRequest]:
        result = await self.db.execute(
            select(LeaveRequest)
            .where(LeaveRequest.id == request_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _load_record(self, worker_id: uuid.UUID) -> Optional[EmploymentRecord]:
        result = await self.db.execute(
            select(EmploymentRecord)
            .where(EmploymentRecord.worker_id == worker_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    # ===========================================
    # CREATE
    # ===========================================

    async def create_request(
        self,
        worker_id: uuid.UUID,
        leave_type: Union[LeaveType, str],
        start_date: date,
        end_date: date,
        reason: str,
        attachment: Optional[PdfUpload] = None,
    ) -> ServiceResult[LeaveRequest]:
        """
        Register a leave request in PENDING status.

        Medical leaves must carry a PDF attachment (the medical certificate).
        Requests overlapping another pending or approved request of the same
        worker are rejected.
        """
        try:
            leave_type = LeaveType(leave_type)
        except ValueError:
            return None, ValidationException(f"Invalid leave type: {leave_type}", field="leave_type")

        worker = (
            await self.db.execute(
                select(Worker)
                .where(Worker.id == worker_id)
                .execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()
        if worker is None:
            return None, WorkerNotFoundException(worker_id)

        record = worker.employment_record
        if record is None:
            return None, EmploymentRecordNotFoundException(
                message=f"Worker {worker_id} has no employment record",
            )
        if record.is_terminated or not worker.in_system:
            return None, WorkerTerminatedException(
                worker_id, message="A terminated worker cannot request leave",
            )

        reason = (reason or "").strip()
        if not reason:
            return None, ValidationException("A reason is required", field="reason")

        if end_date <= start_date:
            return None, InvalidDateRangeException(start_date, end_date)

        if leave_type == LeaveType.MEDICAL_LEAVE and attachment is None:
            return None, ValidationException(
                "A medical leave requires a PDF attachment",
                field="attachment",
                code=ErrorCode.MISSING_FIELD,
            )

        if attachment is not None:
            error = self.storage.validate_pdf(attachment)
            if error:
                return None, error

        overlapping = await self.db.execute(
            select(LeaveRequest.id).where(
                LeaveRequest.worker_id == worker_id,
                LeaveRequest.status.in_([LeaveRequestStatus.PENDING, LeaveRequestStatus.APPROVED]),
                and_(LeaveRequest.start_date <= end_date, LeaveRequest.end_date >= start_date),
            )
        )
        if overlapping.first():
            logger.warning(f"Rejected overlapping leave request for worker {worker_id}")
            return None, BusinessRuleException(
                "The requested period overlaps another pending or approved request",
                rule="NO_OVERLAPPING_LEAVE",
                code=ErrorCode.LEAVE_OVERLAP,
            )

        stored_file = None
        if attachment is not None:
            stored_file = self.storage.save_pdf(attachment, FileCategory.LEAVE_ATTACHMENT)

        leave_request = LeaveRequest(
            worker_id=worker_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            attachment_file=stored_file,
            status=LeaveRequestStatus.PENDING,
        )

        try:
            async with transactional(self.db):
                self.db.add(leave_request)
                await self.db.flush()
                request_id = leave_request.id
        except Exception as e:
            logger.error(f"Failed to create leave request for worker {worker_id}: {e}", exc_info=True)
            self.storage.delete_file(stored_file, FileCategory.LEAVE_ATTACHMENT)
            return None, DatabaseException(original_error=e)

        logger.info(f"Created {leave_type.value} request {request_id} for worker {worker_id}")
        return await self._load(request_id), None

    # ===========================================
    # READ
    # ===========================================

    async def list_requests(
        self,
        status: Optional[LeaveRequestStatus] = None,
        leave_type: Optional[LeaveType] = None,
        worker_id: Optional[uuid.UUID] = None,
    ) -> List[LeaveRequest]:
        """List leave requests, newest first."""
        query = select(LeaveRequest)

        if status:
            query = query.where(LeaveRequest.status == status)
        if leave_type:
            query = query.where(LeaveRequest.leave_type == leave_type)
        if worker_id:
            query = query.where(LeaveRequest.worker_id == worker_id)

        query = query.order_by(LeaveRequest.created_at.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_for_worker(self, worker_id: uuid.UUID) -> List[LeaveRequest]:
        """A worker's own requests (self-service)."""
        return await self.list_requests(worker_id=worker_id)

    async def get_request(self, request_id: uuid.UUID) -> ServiceResult[LeaveRequest]:
        """Get a leave request by ID."""
        leave_request = await self._load(request_id)
        if leave_request is None:
            return None, NotFoundException(
                "Leave request", request_id, code=ErrorCode.LEAVE_REQUEST_NOT_FOUND,
            )
        return leave_request, None

    async def get_attachment_path(self, request_id: uuid.UUID) -> ServiceResult[Path]:
        """Path of a request's attachment."""
        leave_request, error = await self.get_request(request_id)
        if error:
            return None, error

        path = self.storage.resolve_path(leave_request.attachment_file, FileCategory.LEAVE_ATTACHMENT)
        if path is None:
            return None, NotFoundException(
                "Attachment",
                message="This request has no attachment",
                code=ErrorCode.FILE_NOT_FOUND,
            )
        return path, None

    # ===========================================
    # REVIEW
    # ===========================================

    async def review_request(
        self,
        request_id: uuid.UUID,
        decision: Union[LeaveRequestStatus, str],
        reviewer_id: Optional[uuid.UUID] = None,
        comment: Optional[str] = None,
    ) -> ServiceResult[LeaveRequest]:
        """
        Approve or reject a pending request.

        Approval puts the employment record in the matching leave state, stamps
        the leave dates and reason, closes the open history entry and opens a
        LEAVE entry dated at the leave start, all in one transaction.
        """
        try:
            decision = LeaveRequestStatus(decision)
        except ValueError:
            return None, ValidationException(f"Invalid decision: {decision}", field="status")
        if decision == LeaveRequestStatus.PENDING:
            return None, ValidationException(
                "A review must approve or reject the request", field="status",
            )

        leave_request, error = await self.get_request(request_id)
        if error:
            return None, error

        if not leave_request.is_pending:
            logger.warning(f"Rejected re-review of leave request {request_id} ({leave_request.status.value})")
            return None, BusinessRuleException(
                f"This request was already {leave_request.status.value}",
                rule="REVIEW_ONCE",
                code=ErrorCode.ALREADY_REVIEWED,
            )

        record = None
        if decision == LeaveRequestStatus.APPROVED:
            record = await self._load_record(leave_request.worker_id)
            if record is None:
                return None, EmploymentRecordNotFoundException(
                    message=f"Worker {leave_request.worker_id} has no employment record",
                )
            if record.is_terminated:
                return None, WorkerTerminatedException(
                    leave_request.worker_id,
                    message="A leave cannot be approved for a terminated worker",
                )
            if record.state != EmploymentState.ACTIVE:
                return None, BusinessRuleException(
                    "The worker is already on leave",
                    rule="LEAVE_REQUIRES_ACTIVE",
                    details={"current_state": record.state.value},
                )
            error = await self.history.check_effective_date(
                leave_request.worker_id, leave_request.start_date,
            )
            if error:
                return None, error

        try:
            async with transactional(self.db):
                leave_request.status = decision
                leave_request.reviewed_by_id = reviewer_id
                leave_request.reviewer_comment = comment
                leave_request.reviewed_at = datetime.now(timezone.utc)

                if record is not None:
                    previous = snapshot_terms(record)
                    record.state = leave_request.leave_type.employment_state
                    record.leave_start_date = leave_request.start_date
                    record.leave_end_date = leave_request.end_date
                    record.leave_reason = leave_request.reason
                    await self.history.close_current_and_open_new(
                        record,
                        LaborChangeType.LEAVE,
                        leave_request.start_date,
                        reason=f"Leave approved ({leave_request.leave_type.value})",
                        previous=previous,
                        registered_by_id=reviewer_id,
                        leave_request_id=leave_request.id,
                    )
        except AppException as e:
            logger.warning(f"Rejected review of leave request {request_id}: {e.message}")
            return None, e
        except Exception as e:
            logger.error(f"Failed to review leave request {request_id}: {e}", exc_info=True)
            return None, DatabaseException(original_error=e)

        logger.info(f"Leave request {request_id} {decision.value}")
        return await self._load(request_id), None

    # ===========================================
    # DELETE
    # ===========================================

    async def delete_request(self, request_id: uuid.UUID) -> ServiceResult[bool]:
        """Delete a request. Only pending requests may be deleted."""
        leave_request, error = await self.get_request(request_id)
        if error:
            return None, error

        if not leave_request.is_pending:
            return None, BusinessRuleException(
                "Only pending requests can be deleted",
                rule="DELETE_PENDING_ONLY",
                code=ErrorCode.CANNOT_DELETE,
            )

        stored_file = leave_request.attachment_file
        try:
            async with transactional(self.db):
                await self.db.delete(leave_request)
        except Exception as e:
            logger.error(f"Failed to delete leave request {request_id}: {e}", exc_info=True)
            return None, DatabaseException(original_error=e)

        self.storage.delete_file(stored_file, FileCategory.LEAVE_ATTACHMENT)
        logger.info(f"Deleted leave request {request_id}")
        return True, None

    # ===========================================
    # LEAVE EXPIRY
    # ===========================================

    async def end_leave(
        self,
        record: EmploymentRecord,
        end_date: date,
        acting_user_id: Optional[uuid.UUID] = None,
    ) -> None:
        """
        End a record's leave at end_date (runs in the caller's transaction).

        The record returns to ACTIVE, the open leave entry closes at end_date,
        a LEAVE_END entry in ACTIVE state opens from end_date and the leave
        fields are cleared.
        """
        previous = snapshot_terms(record)
        record.state = EmploymentState.ACTIVE
        await self.history.close_current_and_open_new(
            record,
            LaborChangeType.LEAVE_END,
            end_date,
            reason="Leave ended",
            previous=previous,
            registered_by_id=acting_user_id,
        )
        record.clear_leave()

    async def expire_leaves(
        self,
        today: Optional[date] = None,
        acting_user_id: Optional[uuid.UUID] = None,
    ) -> int:
        """
        Return every record whose leave ended before today to ACTIVE.

        Each record is reverted in its own transaction; a failure on one record
        is logged and does not stop the others.

        Returns:
            Number of records reverted
        """
        today = today or current_date()

        result = await self.db.execute(
            select(EmploymentRecord.id).where(
                EmploymentRecord.state.in_(LEAVE_STATES),
                EmploymentRecord.leave_end_date < today,
            )
        )
        record_ids = list(result.scalars().all())

        reverted = 0
        for record_id in record_ids:
            try:
                async with transactional(self.db):
                    record = (
                        await self.db.execute(
                            select(EmploymentRecord)
                            .where(EmploymentRecord.id == record_id)
                            .execution_options(populate_existing=True)
                        )
                    ).scalar_one()
                    await self.end_leave(record, record.leave_end_date, acting_user_id)
                reverted += 1
            except Exception as e:
                logger.error(f"Failed to end leave of employment record {record_id}: {e}", exc_info=True)

        if reverted:
            logger.info(f"Leave expiry sweep for {today}: {reverted} record(s) returned to active")
        else:
            logger.debug(f"Leave expiry sweep for {today}: nothing to revert")
        return reverted
