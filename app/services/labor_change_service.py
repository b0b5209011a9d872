"""
Labor Administration - Labor Change Service

Applies labor changes to a worker's employment record:

- TERMINATION: the record becomes TERMINATED (absorbing), the contract ends at
  the effective date, the worker leaves the system and the open history entry is
  closed. No new entry is opened.
- ROLE / DEPARTMENT / CONTRACT_TYPE / SALARY / SCHEDULE change: the open history
  entry is closed at the effective date, the record takes the new value and a
  new entry with the post-change terms opens at the effective date.

Every precondition is checked before the transaction starts; the record update
and the ledger write are committed together or not at all.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import transactional
from app.models.hr import EmploymentState, LaborChangeType, Worker
from app.schemas.worker import LaborChangeRequest
from app.services.employment_history_service import EmploymentHistoryService, snapshot_terms
from app.services.leave_request_service import LeaveRequestService
from app.utils.calendar_dates import today
from app.utils.error_handling import (
    AppException,
    BusinessRuleException,
    DatabaseException,
    EmploymentRecordNotFoundException,
    ErrorCode,
    ServiceResult,
    ValidationException,
    WorkerNotFoundException,
    WorkerTerminatedException,
)

logger = logging.getLogger(__name__)


# Record field that carries the new value of each change type
CHANGE_FIELDS = {
    LaborChangeType.ROLE_CHANGE: "job_title",
    LaborChangeType.DEPARTMENT_CHANGE: "department",
    LaborChangeType.CONTRACT_TYPE_CHANGE: "contract_type",
    LaborChangeType.SALARY_CHANGE: "base_salary",
    LaborChangeType.SCHEDULE_CHANGE: "work_schedule",
}

CHANGE_MESSAGES = {
    LaborChangeType.TERMINATION: "Worker terminated successfully",
    LaborChangeType.ROLE_CHANGE: "Job title updated successfully",
    LaborChangeType.DEPARTMENT_CHANGE: "Department updated successfully",
    LaborChangeType.CONTRACT_TYPE_CHANGE: "Contract type updated successfully",
    LaborChangeType.SALARY_CHANGE: "Salary updated successfully",
    LaborChangeType.SCHEDULE_CHANGE: "Work schedule updated successfully",
}


@dataclass
class ChangeSummary:
    """What a labor change touched."""
    change_type: LaborChangeType
    worker_id: uuid.UUID
    message: str
    effective_date: date
    employment_record_updated: bool = True
    history_updated: bool = True
    worker_updated: bool = False


class LaborChangeService:
    """Service for labor changes (status transitions of an employment record)."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.history = EmploymentHistoryService(db)

    async def apply_labor_change(
        self,
        change_type: Union[LaborChangeType, str],
        worker_id: uuid.UUID,
        payload: LaborChangeRequest,
        acting_user_id: Optional[uuid.UUID] = None,
    ) -> ServiceResult[ChangeSummary]:
        """
        Apply a labor change to a worker.

        Args:
            change_type: TERMINATION or one of the term changes
            worker_id: Worker to change
            payload: New value, reason and effective date (defaults to today)
            acting_user_id: User registering the change

        Returns:
            (ChangeSummary, None) on success, (None, error) otherwise
        """
        try:
            change_type = LaborChangeType(change_type)
        except ValueError:
            return None, ValidationException(
                f"Unsupported change type: {change_type}", field="change_type",
            )

        if change_type != LaborChangeType.TERMINATION and change_type not in CHANGE_FIELDS:
            return None, ValidationException(
                f"Unsupported change type: {change_type.value}", field="change_type",
            )

        result = await self.db.execute(
            select(Worker)
            .where(Worker.id == worker_id)
            .execution_options(populate_existing=True)
        )
        worker = result.scalar_one_or_none()
        if worker is None:
            return None, WorkerNotFoundException(worker_id)

        record = worker.employment_record
        if record is None:
            return None, EmploymentRecordNotFoundException(
                message=f"Worker {worker_id} has no employment record",
            )

        if record.is_terminated:
            logger.warning(f"Rejected {change_type.value} for terminated worker {worker_id}")
            return None, WorkerTerminatedException(worker_id)

        effective_date = payload.effective_date or today()
        error = await self.history.check_effective_date(worker_id, effective_date)
        if error:
            return None, error

        if change_type == LaborChangeType.TERMINATION:
            reason = (payload.reason or "").strip()
            if not reason:
                return None, ValidationException(
                    "A termination reason is required", field="reason",
                )
            if effective_date < record.contract_start_date:
                return None, ValidationException(
                    "The termination date cannot be before the contract start date",
                    field="effective_date",
                    code=ErrorCode.INVALID_DATE_RANGE,
                )
            new_value = None
        else:
            new_value, error = self._validate_new_value(change_type, payload, record)
            if error:
                logger.warning(f"Rejected {change_type.value} for worker {worker_id}: {error.message}")
                return None, error

        # A leave that was already over by the effective date ends first, so the
        # leave entry closes at its own end date and not at this change
        finished_leave_end = None
        if record.is_on_leave and record.leave_end_date and record.leave_end_date < effective_date:
            finished_leave_end = record.leave_end_date

        try:
            async with transactional(self.db):
                if finished_leave_end is not None:
                    await LeaveRequestService(self.db).end_leave(record, finished_leave_end, acting_user_id)

                if change_type == LaborChangeType.TERMINATION:
                    await self.history.close_current(
                        record,
                        effective_date,
                        reason=reason,
                        registered_by_id=acting_user_id,
                    )
                    record.state = EmploymentState.TERMINATED
                    record.contract_end_date = effective_date
                    record.termination_reason = reason
                    record.clear_leave()
                    worker.in_system = False
                else:
                    previous = snapshot_terms(record)
                    setattr(record, CHANGE_FIELDS[change_type], new_value)
                    await self.history.close_current_and_open_new(
                        record,
                        change_type,
                        effective_date,
                        reason=payload.reason,
                        previous=previous,
                        registered_by_id=acting_user_id,
                    )
        except AppException as e:
            logger.warning(f"Rejected {change_type.value} for worker {worker_id}: {e.message}")
            return None, e
        except Exception as e:
            logger.error(
                f"Failed to apply {change_type.value} to worker {worker_id}: {e}",
                exc_info=True,
            )
            return None, DatabaseException(original_error=e)

        logger.info(f"Applied {change_type.value} to worker {worker_id} effective {effective_date}")
        return ChangeSummary(
            change_type=change_type,
            worker_id=worker_id,
            message=CHANGE_MESSAGES[change_type],
            effective_date=effective_date,
            worker_updated=change_type == LaborChangeType.TERMINATION,
        ), None

    def _validate_new_value(self, change_type, payload, record):
        field = CHANGE_FIELDS[change_type]
        value = getattr(payload, field)

        if isinstance(value, str):
            value = value.strip()

        if value is None or value == "":
            return None, ValidationException(
                f"The field '{field}' is required for a {change_type.value}",
                field=field,
                code=ErrorCode.MISSING_FIELD,
            )

        if change_type == LaborChangeType.SALARY_CHANGE:
            if value <= 0:
                return None, ValidationException(
                    "The new salary must be greater than zero",
                    field=field,
                    code=ErrorCode.INVALID_AMOUNT,
                )
            value = int(round(value))
            if value <= record.base_salary:
                return None, BusinessRuleException(
                    f"The new salary must be greater than the current salary ({record.base_salary})",
                    rule="SALARY_MUST_INCREASE",
                    code=ErrorCode.SALARY_DECREASE,
                    details={"current_salary": record.base_salary, "requested_salary": value},
                )
            return value, None

        if value == getattr(record, field):
            return None, BusinessRuleException(
                f"The new {field} is the same as the current one",
                rule="CHANGE_MUST_DIFFER",
            )

        return value, None
