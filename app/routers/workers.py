"""
Labor Administration - Workers Router

API endpoints for worker registration and maintenance.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import require_hr, require_hr_read
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.worker import WorkerCreate, WorkerResponse, WorkerUpdate
from app.services.worker_service import WorkerService
from app.utils.error_handling import unwrap


router = APIRouter()


@router.post(
    "/",
    response_model=ApiResponse[WorkerResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Register a worker",
    description="Creates the worker, their employment record and the opening HIRE history entry.",
)
async def create_worker(
    data: WorkerCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr),
):
    worker = unwrap(await WorkerService(db).create_worker(data, acting_user_id=current_user.id))
    return ApiResponse(
        message="Worker registered successfully",
        data=WorkerResponse.model_validate(worker),
    )


@router.get(
    "/",
    response_model=ApiResponse[List[WorkerResponse]],
    summary="List workers",
)
async def list_workers(
    include_terminated: bool = Query(False, description="Include workers no longer in the system"),
    search: Optional[str] = Query(None, description="Search by name, RUT or email"),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr_read),
):
    workers = await WorkerService(db).list_workers(
        in_system=None if include_terminated else True,
        search=search,
    )
    return ApiResponse(
        message=f"{len(workers)} worker(s) found",
        data=[WorkerResponse.model_validate(w) for w in workers],
    )


@router.get(
    "/{worker_id}",
    response_model=ApiResponse[WorkerResponse],
    summary="Get a worker",
)
async def get_worker(
    worker_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr_read),
):
    worker = unwrap(await WorkerService(db).get_worker(worker_id))
    return ApiResponse(
        message="Worker found",
        data=WorkerResponse.model_validate(worker),
    )


@router.put(
    "/{worker_id}",
    response_model=ApiResponse[WorkerResponse],
    summary="Update a worker",
    description="Identity and contact fields only; employment terms change through labor changes.",
)
async def update_worker(
    worker_id: uuid.UUID,
    data: WorkerUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr),
):
    worker = unwrap(await WorkerService(db).update_worker(worker_id, data))
    return ApiResponse(
        message="Worker updated successfully",
        data=WorkerResponse.model_validate(worker),
    )
