"""
Labor Administration - Bonus Models

Bonus catalog (reference pay additions) and per-worker bonus assignments.

The amount is stored as a formatted decimal string ("150000.00") rather than a
float so it never suffers locale or rounding ambiguity.
"""

import uuid
from datetime import date
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Date, ForeignKey, Integer, String, Text, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel
from app.models.hr import EmploymentRecord


class BonusCategory(str, Enum):
    """Who mandates the bonus."""
    STATE = "state"
    COMPANY = "company"


class BonusRecurrence(str, Enum):
    """How long an assignment of the bonus lasts."""
    PERMANENT = "permanent"
    RECURRING = "recurring"
    ONE_OFF = "one_off"


class Bonus(BaseModel):
    """
    Bonus definition.

    No two bonuses may share the (recurrence, amount, taxable, duration_months)
    signature.
    """

    __tablename__ = "bonuses"

    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    amount: Mapped[str] = mapped_column(String(20), nullable=False)
    category: Mapped[BonusCategory] = mapped_column(
        SQLEnum(BonusCategory), default=BonusCategory.COMPANY, nullable=False,
    )
    recurrence: Mapped[BonusRecurrence] = mapped_column(
        SQLEnum(BonusRecurrence), default=BonusRecurrence.ONE_OFF, nullable=False,
    )
    taxable: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    duration_months: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class BonusAssignment(BaseModel):
    """
    A bonus granted to a worker's employment record.

    end_date is derived from the bonus recurrence and persisted; it is
    recomputed whenever the bonus recurrence or duration changes.
    """

    __tablename__ = "bonus_assignments"

    bonus_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("bonuses.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    employment_record_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employment_records.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    assignment_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    bonus: Mapped["Bonus"] = relationship("Bonus", lazy="selectin")
    employment_record: Mapped["EmploymentRecord"] = relationship(
        "EmploymentRecord", lazy="selectin",
    )
