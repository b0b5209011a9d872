"""
Labor Administration - Bonus Schemas

Pydantic schemas for the bonus catalog and bonus assignments.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.bonus import BonusCategory, BonusRecurrence


# ===========================================
# BONUS SCHEMAS
# ===========================================

class BonusBase(BaseModel):
    """Base bonus schema."""
    name: str = Field(..., min_length=1, max_length=50)
    amount: Decimal = Field(..., gt=0, max_digits=17, decimal_places=2)
    category: BonusCategory = BonusCategory.COMPANY
    recurrence: BonusRecurrence = BonusRecurrence.ONE_OFF
    taxable: bool = True
    duration_months: Optional[int] = Field(None, gt=0, le=120)
    description: Optional[str] = Field(None, max_length=500)


class BonusCreate(BonusBase):
    """Create bonus request."""

    @model_validator(mode="after")
    def check_duration(self):
        if self.recurrence == BonusRecurrence.RECURRING and not self.duration_months:
            raise ValueError("duration_months is required for recurring bonuses")
        if self.recurrence != BonusRecurrence.RECURRING:
            self.duration_months = None
        return self


class BonusUpdate(BaseModel):
    """Update bonus request. Recurrence/duration consistency is checked on merge."""
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=17, decimal_places=2)
    category: Optional[BonusCategory] = None
    recurrence: Optional[BonusRecurrence] = None
    taxable: Optional[bool] = None
    duration_months: Optional[int] = Field(None, gt=0, le=120)
    description: Optional[str] = Field(None, max_length=500)

    model_config = ConfigDict(extra="forbid")


class BonusResponse(BaseModel):
    """Bonus response."""
    id: UUID
    name: str
    amount: str
    category: BonusCategory
    recurrence: BonusRecurrence
    taxable: bool
    duration_months: Optional[int] = None
    description: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ===========================================
# BONUS ASSIGNMENT SCHEMAS
# ===========================================

class BonusAssignmentCreate(BaseModel):
    """Assign a bonus to a worker."""
    worker_id: UUID
    bonus_id: UUID
    assignment_date: Optional[date] = Field(None, description="Defaults to today")
    notes: Optional[str] = Field(None, max_length=500)


class BonusAssignmentUpdate(BaseModel):
    """Update a bonus assignment. Changing the date recomputes the end date."""
    assignment_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=500)

    model_config = ConfigDict(extra="forbid")


class BonusAssignmentResponse(BaseModel):
    """Bonus assignment response."""
    id: UUID
    bonus_id: UUID
    employment_record_id: UUID
    assignment_date: date
    end_date: Optional[date] = None
    is_active: bool
    notes: Optional[str] = None
    bonus: BonusResponse
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
