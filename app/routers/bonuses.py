"""
Labor Administration - Bonuses Router

API endpoints for the bonus catalog ("bono") and bonus assignments.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import require_hr, require_hr_read
from app.models.bonus import BonusCategory, BonusRecurrence
from app.models.user import User
from app.schemas.bonus import (
    BonusAssignmentCreate,
    BonusAssignmentResponse,
    BonusAssignmentUpdate,
    BonusCreate,
    BonusResponse,
    BonusUpdate,
)
from app.schemas.common import ApiResponse, PaginatedData
from app.services.bonus_service import BonusService
from app.utils.error_handling import unwrap


router = APIRouter()


# ===========================================
# BONUS ASSIGNMENTS
# ===========================================
# Declared before "/{bonus_id}" so "asignaciones" never matches as an ID.

@router.post(
    "/asignaciones",
    response_model=ApiResponse[BonusAssignmentResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Assign a bonus to a worker",
)
async def assign_bonus(
    data: BonusAssignmentCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr),
):
    assignment = unwrap(await BonusService(db).assign_bonus(data))
    return ApiResponse(
        message="Bonus assigned successfully",
        data=BonusAssignmentResponse.model_validate(assignment),
    )


@router.get(
    "/asignaciones",
    response_model=ApiResponse[List[BonusAssignmentResponse]],
    summary="List bonus assignments",
)
async def list_assignments(
    worker_id: Optional[uuid.UUID] = Query(None),
    bonus_id: Optional[uuid.UUID] = Query(None),
    is_active: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr_read),
):
    assignments = await BonusService(db).list_assignments(
        worker_id=worker_id, bonus_id=bonus_id, is_active=is_active,
    )
    return ApiResponse(
        message=f"{len(assignments)} assignment(s) found",
        data=[BonusAssignmentResponse.model_validate(a) for a in assignments],
    )


@router.put(
    "/asignaciones/{assignment_id}",
    response_model=ApiResponse[BonusAssignmentResponse],
    summary="Update a bonus assignment",
)
async def update_assignment(
    assignment_id: uuid.UUID,
    data: BonusAssignmentUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr),
):
    assignment = unwrap(await BonusService(db).update_assignment(assignment_id, data))
    return ApiResponse(
        message="Bonus assignment updated successfully",
        data=BonusAssignmentResponse.model_validate(assignment),
    )


@router.delete(
    "/asignaciones/{assignment_id}",
    response_model=ApiResponse[BonusAssignmentResponse],
    summary="Deactivate a bonus assignment",
)
async def deactivate_assignment(
    assignment_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr),
):
    assignment = unwrap(await BonusService(db).deactivate_assignment(assignment_id))
    return ApiResponse(
        message="Bonus assignment deactivated successfully",
        data=BonusAssignmentResponse.model_validate(assignment),
    )


# ===========================================
# BONUS CATALOG
# ===========================================

@router.post(
    "/",
    response_model=ApiResponse[BonusResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create a bonus",
)
async def create_bonus(
    data: BonusCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr),
):
    bonus = unwrap(await BonusService(db).create_bonus(data))
    return ApiResponse(
        message="Bonus created successfully",
        data=BonusResponse.model_validate(bonus),
    )


@router.get(
    "/",
    response_model=ApiResponse[PaginatedData[BonusResponse]],
    summary="List bonuses",
)
async def list_bonuses(
    name: Optional[str] = Query(None, description="Name contains"),
    category: Optional[BonusCategory] = Query(None),
    recurrence: Optional[BonusRecurrence] = Query(None),
    taxable: Optional[bool] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr_read),
):
    bonuses, total = await BonusService(db).list_bonuses(
        name=name,
        category=category,
        recurrence=recurrence,
        taxable=taxable,
        limit=limit,
        offset=offset,
    )
    return ApiResponse(
        message=f"{total} bonus(es) found",
        data=PaginatedData(
            items=[BonusResponse.model_validate(b) for b in bonuses],
            total=total,
            limit=limit,
            offset=offset,
        ),
    )


@router.get(
    "/{bonus_id}",
    response_model=ApiResponse[BonusResponse],
    summary="Get a bonus",
)
async def get_bonus(
    bonus_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr_read),
):
    bonus = unwrap(await BonusService(db).get_bonus(bonus_id))
    return ApiResponse(
        message="Bonus found",
        data=BonusResponse.model_validate(bonus),
    )


@router.put(
    "/{bonus_id}",
    response_model=ApiResponse[BonusResponse],
    summary="Update a bonus",
    description="Changing recurrence or duration recomputes the end date of active assignments.",
)
async def update_bonus(
    bonus_id: uuid.UUID,
    data: BonusUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr),
):
    bonus = unwrap(await BonusService(db).update_bonus(bonus_id, data))
    return ApiResponse(
        message="Bonus updated successfully",
        data=BonusResponse.model_validate(bonus),
    )


@router.delete(
    "/{bonus_id}",
    response_model=ApiResponse,
    summary="Delete a bonus",
    description="Refused while the bonus has assignments.",
)
async def delete_bonus(
    bonus_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr),
):
    unwrap(await BonusService(db).delete_bonus(bonus_id))
    return ApiResponse(message="Bonus deleted successfully")
