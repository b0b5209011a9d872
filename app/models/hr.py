"""
Labor Administration - Human Resources Models

Workers, their current employment record, the employment history ledger and
leave/permission requests.

Labor states:
    ACTIVE <-> MEDICAL_LEAVE
    ACTIVE <-> ADMINISTRATIVE_PERMIT
    any    ->  TERMINATED  (absorbing)

The employment record carries only the current terms. Every change of terms is
recorded in the history ledger, where at most one entry per worker is open
(end_date IS NULL) at any time.
"""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Boolean, Date, DateTime, ForeignKey, Integer, String, Text, Uuid,
    Enum as SQLEnum, CheckConstraint, Index, text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from app.models.base import BaseModel

if TYPE_CHECKING:
    from app.models.user import User


# ===========================================
# ENUMS
# ===========================================

class EmploymentState(str, Enum):
    """Current labor state of an employment record."""
    ACTIVE = "active"
    MEDICAL_LEAVE = "medical_leave"
    ADMINISTRATIVE_PERMIT = "administrative_permit"
    TERMINATED = "terminated"


LEAVE_STATES = (EmploymentState.MEDICAL_LEAVE, EmploymentState.ADMINISTRATIVE_PERMIT)


class HealthInsurance(str, Enum):
    """Health insurance affiliation."""
    FONASA = "fonasa"
    ISAPRE = "isapre"


class PensionFund(str, Enum):
    """AFP pension fund administrators."""
    HABITAT = "habitat"
    PROVIDA = "provida"
    MODELO = "modelo"
    CUPRUM = "cuprum"
    CAPITAL = "capital"
    PLANVITAL = "planvital"
    UNO = "uno"


class LaborChangeType(str, Enum):
    """Kind of change recorded by a history entry."""
    HIRE = "hire"
    TERMINATION = "termination"
    ROLE_CHANGE = "role_change"
    DEPARTMENT_CHANGE = "department_change"
    CONTRACT_TYPE_CHANGE = "contract_type_change"
    SALARY_CHANGE = "salary_change"
    SCHEDULE_CHANGE = "schedule_change"
    LEAVE = "leave"
    LEAVE_END = "leave_end"
    MANUAL = "manual"


class LeaveType(str, Enum):
    """Type of leave/permission request."""
    MEDICAL_LEAVE = "medical_leave"
    ADMINISTRATIVE_PERMIT = "administrative_permit"

    @property
    def employment_state(self) -> EmploymentState:
        """Employment state a worker enters when this leave is approved."""
        return EmploymentState(self.value)


class LeaveRequestStatus(str, Enum):
    """Review status of a leave request. APPROVED and REJECTED are terminal."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# ===========================================
# WORKER
# ===========================================

class Worker(BaseModel):
    """
    Canonical identity of an employee.

    Workers are never hard-deleted: in_system flips to False on termination.
    """

    __tablename__ = "workers"

    rut: Mapped[str] = mapped_column(
        String(12), unique=True, nullable=False, index=True,
        comment="Chilean national ID, formatted 12.345.678-5",
    )
    first_names: Mapped[str] = mapped_column(String(100), nullable=False)
    paternal_surname: Mapped[str] = mapped_column(String(100), nullable=False)
    maternal_surname: Mapped[str] = mapped_column(String(100), nullable=False)
    birth_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    phone: Mapped[str] = mapped_column(String(12), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    emergency_phone: Mapped[Optional[str]] = mapped_column(String(12), nullable=True)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    hire_date: Mapped[date] = mapped_column(Date, nullable=False)
    in_system: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    employment_record: Mapped[Optional["EmploymentRecord"]] = relationship(
        "EmploymentRecord",
        back_populates="worker",
        uselist=False,
        lazy="selectin",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_names} {self.paternal_surname} {self.maternal_surname}"

    def __repr__(self) -> str:
        return f"<Worker(id={self.id}, rut={self.rut})>"


# ===========================================
# EMPLOYMENT RECORD
# ===========================================

class EmploymentRecord(BaseModel):
    """
    Current contractual state of a worker (one per worker).

    Title, department, contract type, schedule, salary, state and leave fields
    are protected: they only change through the labor change service or the
    leave workflow, which also write the history ledger.
    """

    __tablename__ = "employment_records"

    worker_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("workers.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    job_title: Mapped[str] = mapped_column(String(100), nullable=False)
    department: Mapped[str] = mapped_column(String(100), nullable=False)
    contract_type: Mapped[str] = mapped_column(String(50), nullable=False)
    work_schedule: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    base_salary: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    health_insurance: Mapped[Optional[HealthInsurance]] = mapped_column(
        SQLEnum(HealthInsurance), nullable=True,
    )
    pension_fund: Mapped[Optional[PensionFund]] = mapped_column(
        SQLEnum(PensionFund), nullable=True,
    )
    unemployment_insurance: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    contract_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    contract_end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    state: Mapped[EmploymentState] = mapped_column(
        SQLEnum(EmploymentState),
        default=EmploymentState.ACTIVE,
        nullable=False,
        index=True,
    )
    termination_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    leave_start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    leave_end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    leave_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    contract_file: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    worker: Mapped["Worker"] = relationship(
        "Worker",
        back_populates="employment_record",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("base_salary >= 0", name="base_salary_non_negative"),
    )

    @validates("base_salary")
    def _normalize_base_salary(self, key, value):
        if value is None:
            return 0
        return int(round(value))

    @property
    def is_terminated(self) -> bool:
        return self.state == EmploymentState.TERMINATED

    @property
    def is_on_leave(self) -> bool:
        return self.state in LEAVE_STATES

    def clear_leave(self) -> None:
        self.leave_start_date = None
        self.leave_end_date = None
        self.leave_reason = None


# ===========================================
# EMPLOYMENT HISTORY (LEDGER)
# ===========================================

class EmploymentHistoryEntry(BaseModel):
    """
    Snapshot of the employment terms in force during one period.

    Rows are append-only. The single permitted mutation is closing the open
    entry (stamping end_date) when the next change happens.
    """

    __tablename__ = "employment_history"

    worker_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("workers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    change_type: Mapped[LaborChangeType] = mapped_column(
        SQLEnum(LaborChangeType), nullable=False,
    )
    employment_state: Mapped[EmploymentState] = mapped_column(
        SQLEnum(EmploymentState), nullable=False,
    )

    job_title: Mapped[str] = mapped_column(String(100), nullable=False)
    department: Mapped[str] = mapped_column(String(100), nullable=False)
    contract_type: Mapped[str] = mapped_column(String(50), nullable=False)
    work_schedule: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    base_salary: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    contract_file: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    leave_request_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("leave_requests.id", ondelete="SET NULL"),
        nullable=True,
    )
    registered_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    registered_by: Mapped[Optional["User"]] = relationship("User", lazy="selectin")

    __table_args__ = (
        # At most one open entry per worker
        Index(
            "ix_employment_history_one_open_per_worker",
            "worker_id",
            unique=True,
            postgresql_where=text("end_date IS NULL"),
            sqlite_where=text("end_date IS NULL"),
        ),
        CheckConstraint("end_date IS NULL OR end_date >= start_date", name="entry_dates_ordered"),
    )

    @property
    def is_open(self) -> bool:
        return self.end_date is None


# ===========================================
# LEAVE / PERMISSION REQUEST
# ===========================================

class LeaveRequest(BaseModel):
    """
    Medical leave or administrative permit requested by (or for) a worker.

    PENDING -> APPROVED | REJECTED. Reviews are one-way.
    """

    __tablename__ = "leave_requests"

    worker_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("workers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    leave_type: Mapped[LeaveType] = mapped_column(SQLEnum(LeaveType), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    attachment_file: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    status: Mapped[LeaveRequestStatus] = mapped_column(
        SQLEnum(LeaveRequestStatus),
        default=LeaveRequestStatus.PENDING,
        nullable=False,
        index=True,
    )
    reviewer_comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    worker: Mapped["Worker"] = relationship("Worker", lazy="selectin")
    reviewed_by: Mapped[Optional["User"]] = relationship("User", lazy="selectin")

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="leave_dates_ordered"),
    )

    @property
    def is_pending(self) -> bool:
        return self.status == LeaveRequestStatus.PENDING
