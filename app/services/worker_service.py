"""
Labor Administration - Worker Service

Business logic for worker registration and maintenance.

Registering a worker creates, in one transaction:
- the Worker identity
- its EmploymentRecord (placeholder terms unless given)
- the opening HIRE entry of the employment history
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import transactional
from app.models.hr import EmploymentRecord, EmploymentState, LaborChangeType, Worker
from app.schemas.worker import WorkerCreate, WorkerUpdate
from app.services.employment_history_service import EmploymentHistoryService
from app.utils.error_handling import (
    DatabaseException,
    DuplicateEntryException,
    InvalidRUTException,
    ServiceResult,
    WorkerNotFoundException,
    WorkerTerminatedException,
)
from app.utils.rut import format_rut, validate_rut

logger = logging.getLogger(__name__)


# Placeholder terms of a freshly created employment record
DEFAULT_JOB_TITLE = "Sin cargo"
DEFAULT_DEPARTMENT = "Sin área"
DEFAULT_CONTRACT_TYPE = "Indefinido"


class WorkerService:
    """Service for worker operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.history = EmploymentHistoryService(db)

    async def _load(self, worker_id: uuid.UUID) -> Optional[Worker]:
        result = await self.db.execute(
            select(Worker)
            .where(Worker.id == worker_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _find_duplicate(
        self,
        rut: Optional[str] = None,
        email: Optional[str] = None,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> Optional[DuplicateEntryException]:
        if rut is not None:
            query = select(Worker.id).where(Worker.rut == rut)
            if exclude_id:
                query = query.where(Worker.id != exclude_id)
            if (await self.db.execute(query)).first():
                return DuplicateEntryException(
                    "Worker", "rut", rut, message=f"A worker with RUT {rut} already exists",
                )

        if email is not None:
            query = select(Worker.id).where(func.lower(Worker.email) == email.lower())
            if exclude_id:
                query = query.where(Worker.id != exclude_id)
            if (await self.db.execute(query)).first():
                return DuplicateEntryException(
                    "Worker", "email", email, message=f"A worker with email {email} already exists",
                )

        return None

    # ===========================================
    # CREATE
    # ===========================================

    async def create_worker(
        self,
        data: WorkerCreate,
        acting_user_id: Optional[uuid.UUID] = None,
    ) -> ServiceResult[Worker]:
        """
        Register a worker with their employment record and opening history entry.

        Returns:
            (worker, None) on success, (None, error) otherwise
        """
        if not validate_rut(data.rut):
            return None, InvalidRUTException(data.rut)

        rut = format_rut(data.rut)
        email = data.email.lower()

        duplicate = await self._find_duplicate(rut=rut, email=email)
        if duplicate:
            logger.warning(f"Rejected worker registration: {duplicate.message}")
            return None, duplicate

        try:
            async with transactional(self.db):
                worker = Worker(
                    rut=rut,
                    first_names=data.first_names.strip(),
                    paternal_surname=data.paternal_surname.strip(),
                    maternal_surname=data.maternal_surname.strip(),
                    birth_date=data.birth_date,
                    phone=data.phone,
                    email=email,
                    emergency_phone=data.emergency_phone,
                    address=data.address.strip(),
                    hire_date=data.hire_date,
                    in_system=True,
                )
                self.db.add(worker)
                await self.db.flush()

                record = EmploymentRecord(
                    worker_id=worker.id,
                    job_title=data.job_title or DEFAULT_JOB_TITLE,
                    department=data.department or DEFAULT_DEPARTMENT,
                    contract_type=data.contract_type or DEFAULT_CONTRACT_TYPE,
                    work_schedule=data.work_schedule,
                    base_salary=data.base_salary,
                    contract_start_date=data.contract_start_date or data.hire_date,
                    state=EmploymentState.ACTIVE,
                )
                self.db.add(record)
                await self.db.flush()

                await self.history.open_entry(
                    record,
                    LaborChangeType.HIRE,
                    record.contract_start_date,
                    registered_by_id=acting_user_id,
                )
                worker_id = worker.id
        except Exception as e:
            logger.error(f"Failed to register worker {rut}: {e}", exc_info=True)
            return None, DatabaseException(original_error=e)

        logger.info(f"Registered worker {rut} ({worker_id})")
        return await self._load(worker_id), None

    # ===========================================
    # READ
    # ===========================================

    async def get_worker(self, worker_id: uuid.UUID) -> ServiceResult[Worker]:
        """Get worker by ID."""
        worker = await self._load(worker_id)
        if worker is None:
            return None, WorkerNotFoundException(worker_id)
        return worker, None

    async def get_worker_by_rut(self, rut: str) -> ServiceResult[Worker]:
        """Get worker by RUT (any accepted RUT spelling)."""
        if not validate_rut(rut):
            return None, InvalidRUTException(rut)

        result = await self.db.execute(select(Worker).where(Worker.rut == format_rut(rut)))
        worker = result.scalar_one_or_none()
        if worker is None:
            return None, WorkerNotFoundException(message=f"No worker registered with RUT {format_rut(rut)}")
        return worker, None

    async def list_workers(
        self,
        in_system: Optional[bool] = True,
        search: Optional[str] = None,
    ) -> List[Worker]:
        """List workers, by default only those still in the system."""
        query = select(Worker)

        if in_system is not None:
            query = query.where(Worker.in_system == in_system)

        if search:
            search_term = f"%{search}%"
            query = query.where(
                or_(
                    Worker.first_names.ilike(search_term),
                    Worker.paternal_surname.ilike(search_term),
                    Worker.maternal_surname.ilike(search_term),
                    Worker.rut.ilike(search_term),
                    Worker.email.ilike(search_term),
                )
            )

        query = query.order_by(Worker.paternal_surname, Worker.first_names)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    # ===========================================
    # UPDATE
    # ===========================================

    async def update_worker(
        self,
        worker_id: uuid.UUID,
        data: WorkerUpdate,
    ) -> ServiceResult[Worker]:
        """Update identity and contact fields of a worker."""
        worker = await self._load(worker_id)
        if worker is None:
            return None, WorkerNotFoundException(worker_id)

        if worker.employment_record is not None and worker.employment_record.is_terminated:
            return None, WorkerTerminatedException(
                worker_id, message="A terminated worker cannot be edited",
            )

        changes = data.model_dump(exclude_unset=True)

        if "rut" in changes:
            if not changes["rut"] or not validate_rut(changes["rut"]):
                return None, InvalidRUTException(changes["rut"])
            changes["rut"] = format_rut(changes["rut"])

        if changes.get("email"):
            changes["email"] = changes["email"].lower()

        duplicate = await self._find_duplicate(
            rut=changes.get("rut"),
            email=changes.get("email"),
            exclude_id=worker_id,
        )
        if duplicate:
            logger.warning(f"Rejected worker update: {duplicate.message}")
            return None, duplicate

        try:
            async with transactional(self.db):
                for key, value in changes.items():
                    if value is not None or key in ("birth_date", "emergency_phone"):
                        setattr(worker, key, value)
        except Exception as e:
            logger.error(f"Failed to update worker {worker_id}: {e}", exc_info=True)
            return None, DatabaseException(original_error=e)

        logger.info(f"Updated worker {worker_id}: {sorted(changes)}")
        return await self._load(worker_id), None
