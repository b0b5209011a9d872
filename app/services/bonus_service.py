"""
Labor Administration - Bonus Service

Bonus catalog and bonus assignments.

Assignment end dates derive from the bonus recurrence:
- PERMANENT: no end date
- ONE_OFF:   ends the day it is granted
- RECURRING: assignment date + duration_months (clamped to month end)

They are computed when the assignment is written and recomputed for every
active assignment when the bonus recurrence or duration changes.
"""

import logging
import uuid
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Tuple, Union

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import transactional
from app.models.bonus import Bonus, BonusAssignment, BonusCategory, BonusRecurrence
from app.models.hr import EmploymentRecord, Worker
from app.schemas.bonus import (
    BonusAssignmentCreate,
    BonusAssignmentUpdate,
    BonusCreate,
    BonusUpdate,
)
from app.utils.calendar_dates import add_months, today
from app.utils.error_handling import (
    BusinessRuleException,
    DatabaseException,
    DuplicateEntryException,
    EmploymentRecordNotFoundException,
    ErrorCode,
    NotFoundException,
    ServiceResult,
    ValidationException,
    WorkerNotFoundException,
    WorkerTerminatedException,
)

logger = logging.getLogger(__name__)


def compute_end_date(
    recurrence: BonusRecurrence,
    start_date: date,
    duration_months: Optional[int] = None,
) -> Optional[date]:
    """End date of an assignment granted on start_date."""
    if recurrence == BonusRecurrence.PERMANENT:
        return None
    if recurrence == BonusRecurrence.ONE_OFF:
        return start_date
    if not duration_months or duration_months <= 0:
        raise ValueError("duration_months must be positive for recurring bonuses")
    return add_months(start_date, duration_months)


def format_amount(amount: Union[Decimal, int, float, str]) -> str:
    """Canonical two-decimal string of an amount ("150000.00")."""
    return str(Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


class BonusService:
    """Service for the bonus catalog and bonus assignments."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ===========================================
    # CATALOG
    # ===========================================

    async def _check_unique(
        self,
        name: str,
        recurrence: BonusRecurrence,
        amount: str,
        taxable: bool,
        duration_months: Optional[int],
        exclude_id: Optional[uuid.UUID] = None,
    ) -> Optional[DuplicateEntryException]:
        query = select(Bonus.id).where(func.lower(Bonus.name) == name.lower())
        if exclude_id:
            query = query.where(Bonus.id != exclude_id)
        if (await self.db.execute(query)).first():
            return DuplicateEntryException(
                "Bonus", "name", name, message=f"A bonus named '{name}' already exists",
            )

        query = select(Bonus.id).where(
            Bonus.recurrence == recurrence,
            Bonus.amount == amount,
            Bonus.taxable == taxable,
            Bonus.duration_months.is_(None)
            if duration_months is None
            else Bonus.duration_months == duration_months,
        )
        if exclude_id:
            query = query.where(Bonus.id != exclude_id)
        if (await self.db.execute(query)).first():
            return DuplicateEntryException(
                "Bonus",
                "signature",
                f"{recurrence.value}/{amount}/{taxable}/{duration_months}",
                message="A bonus with the same recurrence, amount, taxability and duration already exists",
            )

        return None

    async def create_bonus(self, data: BonusCreate) -> ServiceResult[Bonus]:
        """Create a bonus definition."""
        amount = format_amount(data.amount)
        duration = data.duration_months if data.recurrence == BonusRecurrence.RECURRING else None
        name = data.name.strip()

        duplicate = await self._check_unique(name, data.recurrence, amount, data.taxable, duration)
        if duplicate:
            logger.warning(f"Rejected bonus creation: {duplicate.message}")
            return None, duplicate

        bonus = Bonus(
            name=name,
            amount=amount,
            category=data.category,
            recurrence=data.recurrence,
            taxable=data.taxable,
            duration_months=duration,
            description=data.description,
        )

        try:
            async with transactional(self.db):
                self.db.add(bonus)
        except Exception as e:
            logger.error(f"Failed to create bonus '{name}': {e}", exc_info=True)
            return None, DatabaseException(original_error=e)

        logger.info(f"Created bonus '{name}' ({bonus.id})")
        return bonus, None

    async def list_bonuses(
        self,
        name: Optional[str] = None,
        category: Optional[BonusCategory] = None,
        recurrence: Optional[BonusRecurrence] = None,
        taxable: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Bonus], int]:
        """List bonuses with filters and pagination."""
        query = select(Bonus)

        if name:
            query = query.where(Bonus.name.ilike(f"%{name}%"))
        if category:
            query = query.where(Bonus.category == category)
        if recurrence:
            query = query.where(Bonus.recurrence == recurrence)
        if taxable is not None:
            query = query.where(Bonus.taxable == taxable)

        count_result = await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )
        total = count_result.scalar()

        query = query.order_by(Bonus.name).offset(offset).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def get_bonus(self, bonus_id: uuid.UUID) -> ServiceResult[Bonus]:
        """Get a bonus by ID."""
        result = await self.db.execute(select(Bonus).where(Bonus.id == bonus_id))
        bonus = result.scalar_one_or_none()
        if bonus is None:
            return None, NotFoundException("Bonus", bonus_id, code=ErrorCode.BONUS_NOT_FOUND)
        return bonus, None

    async def update_bonus(self, bonus_id: uuid.UUID, data: BonusUpdate) -> ServiceResult[Bonus]:
        """
        Update a bonus definition.

        When the recurrence or duration changes, the end date of every active
        assignment is recomputed in the same transaction.
        """
        bonus, error = await self.get_bonus(bonus_id)
        if error:
            return None, error

        changes = data.model_dump(exclude_unset=True)

        name = (changes.get("name") or bonus.name).strip()
        amount = format_amount(changes["amount"]) if changes.get("amount") is not None else bonus.amount
        recurrence = changes.get("recurrence") or bonus.recurrence
        taxable = changes["taxable"] if changes.get("taxable") is not None else bonus.taxable
        duration = changes["duration_months"] if "duration_months" in changes else bonus.duration_months

        if recurrence == BonusRecurrence.RECURRING:
            if not duration:
                return None, ValidationException(
                    "duration_months is required for recurring bonuses", field="duration_months",
                )
        else:
            duration = None

        duplicate = await self._check_unique(name, recurrence, amount, taxable, duration, exclude_id=bonus_id)
        if duplicate:
            logger.warning(f"Rejected bonus update: {duplicate.message}")
            return None, duplicate

        schedule_changed = recurrence != bonus.recurrence or duration != bonus.duration_months

        try:
            async with transactional(self.db):
                bonus.name = name
                bonus.amount = amount
                bonus.recurrence = recurrence
                bonus.taxable = taxable
                bonus.duration_months = duration
                if changes.get("category") is not None:
                    bonus.category = changes["category"]
                if "description" in changes:
                    bonus.description = changes["description"]

                recomputed = 0
                if schedule_changed:
                    result = await self.db.execute(
                        select(BonusAssignment).where(
                            BonusAssignment.bonus_id == bonus_id,
                            BonusAssignment.is_active.is_(True),
                        )
                    )
                    for assignment in result.scalars().all():
                        assignment.end_date = compute_end_date(
                            recurrence, assignment.assignment_date, duration,
                        )
                        recomputed += 1
        except Exception as e:
            logger.error(f"Failed to update bonus {bonus_id}: {e}", exc_info=True)
            return None, DatabaseException(original_error=e)

        if schedule_changed:
            logger.info(f"Updated bonus {bonus_id}; recomputed {recomputed} assignment end date(s)")
        else:
            logger.info(f"Updated bonus {bonus_id}")
        return bonus, None

    async def delete_bonus(self, bonus_id: uuid.UUID) -> ServiceResult[bool]:
        """Delete a bonus. Refused while any assignment references it."""
        bonus, error = await self.get_bonus(bonus_id)
        if error:
            return None, error

        count_result = await self.db.execute(
            select(func.count(BonusAssignment.id)).where(BonusAssignment.bonus_id == bonus_id)
        )
        assignments = count_result.scalar()
        if assignments:
            return None, BusinessRuleException(
                f"The bonus has {assignments} assignment(s) and cannot be deleted",
                rule="BONUS_IN_USE",
                code=ErrorCode.CANNOT_DELETE,
            )

        try:
            async with transactional(self.db):
                await self.db.delete(bonus)
        except Exception as e:
            logger.error(f"Failed to delete bonus {bonus_id}: {e}", exc_info=True)
            return None, DatabaseException(original_error=e)

        logger.info(f"Deleted bonus {bonus_id}")
        return True, None

    # ===========================================
    # ASSIGNMENTS
    # ===========================================

    async def _load_assignment(self, assignment_id: uuid.UUID) -> Optional[BonusAssignment]:
        result = await self.db.execute(
            select(BonusAssignment)
            .where(BonusAssignment.id == assignment_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def assign_bonus(self, data: BonusAssignmentCreate) -> ServiceResult[BonusAssignment]:
        """Grant a bonus to a worker still in the system."""
        worker = (
            await self.db.execute(
                select(Worker)
                .where(Worker.id == data.worker_id)
                .execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()
        if worker is None:
            return None, WorkerNotFoundException(data.worker_id)

        record = worker.employment_record
        if record is None:
            return None, EmploymentRecordNotFoundException(
                message=f"Worker {data.worker_id} has no employment record",
            )
        if record.is_terminated or not worker.in_system:
            return None, WorkerTerminatedException(
                data.worker_id, message="Bonuses cannot be assigned to a terminated worker",
            )

        bonus, error = await self.get_bonus(data.bonus_id)
        if error:
            return None, error

        existing = await self.db.execute(
            select(BonusAssignment.id).where(
                BonusAssignment.bonus_id == bonus.id,
                BonusAssignment.employment_record_id == record.id,
                BonusAssignment.is_active.is_(True),
            )
        )
        if existing.first():
            return None, DuplicateEntryException(
                "Bonus assignment",
                "bonus_id",
                bonus.id,
                message=f"The worker already has an active '{bonus.name}' assignment",
            )

        assignment_date = data.assignment_date or today()
        assignment = BonusAssignment(
            bonus_id=bonus.id,
            employment_record_id=record.id,
            assignment_date=assignment_date,
            end_date=compute_end_date(bonus.recurrence, assignment_date, bonus.duration_months),
            is_active=True,
            notes=data.notes,
        )

        try:
            async with transactional(self.db):
                self.db.add(assignment)
                await self.db.flush()
                assignment_id = assignment.id
        except Exception as e:
            logger.error(f"Failed to assign bonus {bonus.id} to worker {data.worker_id}: {e}", exc_info=True)
            return None, DatabaseException(original_error=e)

        logger.info(f"Assigned bonus {data.bonus_id} to worker {data.worker_id}")
        return await self._load_assignment(assignment_id), None

    async def list_assignments(
        self,
        worker_id: Optional[uuid.UUID] = None,
        bonus_id: Optional[uuid.UUID] = None,
        is_active: Optional[bool] = None,
    ) -> List[BonusAssignment]:
        """List bonus assignments with filters."""
        query = select(BonusAssignment)

        if worker_id:
            query = query.join(
                EmploymentRecord, BonusAssignment.employment_record_id == EmploymentRecord.id,
            ).where(EmploymentRecord.worker_id == worker_id)
        if bonus_id:
            query = query.where(BonusAssignment.bonus_id == bonus_id)
        if is_active is not None:
            query = query.where(BonusAssignment.is_active == is_active)

        query = query.order_by(BonusAssignment.assignment_date.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_assignment(self, assignment_id: uuid.UUID) -> ServiceResult[BonusAssignment]:
        """Get a bonus assignment by ID."""
        assignment = await self._load_assignment(assignment_id)
        if assignment is None:
            return None, NotFoundException("Bonus assignment", assignment_id)
        return assignment, None

    async def update_assignment(
        self,
        assignment_id: uuid.UUID,
        data: BonusAssignmentUpdate,
    ) -> ServiceResult[BonusAssignment]:
        """Update an active assignment; a new date recomputes the end date."""
        assignment, error = await self.get_assignment(assignment_id)
        if error:
            return None, error

        if not assignment.is_active:
            return None, BusinessRuleException(
                "An inactive assignment cannot be modified",
                rule="ASSIGNMENT_ACTIVE",
            )

        changes = data.model_dump(exclude_unset=True)

        try:
            async with transactional(self.db):
                if changes.get("assignment_date") is not None:
                    assignment.assignment_date = changes["assignment_date"]
                    assignment.end_date = compute_end_date(
                        assignment.bonus.recurrence,
                        assignment.assignment_date,
                        assignment.bonus.duration_months,
                    )
                if "notes" in changes:
                    assignment.notes = changes["notes"]
        except Exception as e:
            logger.error(f"Failed to update bonus assignment {assignment_id}: {e}", exc_info=True)
            return None, DatabaseException(original_error=e)

        logger.info(f"Updated bonus assignment {assignment_id}")
        return await self._load_assignment(assignment_id), None

    async def deactivate_assignment(self, assignment_id: uuid.UUID) -> ServiceResult[BonusAssignment]:
        """Deactivate an assignment (assignments are never deleted)."""
        assignment, error = await self.get_assignment(assignment_id)
        if error:
            return None, error

        if not assignment.is_active:
            return None, BusinessRuleException(
                "The assignment is already inactive",
                rule="ASSIGNMENT_ACTIVE",
            )

        try:
            async with transactional(self.db):
                assignment.is_active = False
        except Exception as e:
            logger.error(f"Failed to deactivate bonus assignment {assignment_id}: {e}", exc_info=True)
            return None, DatabaseException(original_error=e)

        logger.info(f"Deactivated bonus assignment {assignment_id}")
        return await self._load_assignment(assignment_id), None
