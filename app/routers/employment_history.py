"""
Labor Administration - Employment History Router

API endpoints for the employment history ledger ("historial laboral").
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import ensure_worker_id_access, get_current_user, get_current_worker, require_hr, require_hr_read
from app.models.hr import Worker
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.history import (
    HistoryEntryClose,
    HistoryEntryResponse,
    ManualHistoryEntryCreate,
    UnifiedHistoryItem,
)
from app.services.employment_history_service import EmploymentHistoryService
from app.services.file_storage_service import FileStorageService
from app.utils.error_handling import unwrap


router = APIRouter()


@router.get(
    "/mi-historial",
    response_model=ApiResponse[List[HistoryEntryResponse]],
    summary="My employment history",
)
async def my_history(
    db: AsyncSession = Depends(get_async_session),
    worker: Worker = Depends(get_current_worker),
):
    entries = unwrap(await EmploymentHistoryService(db).get_by_worker(worker.id))
    return ApiResponse(
        message="Employment history retrieved",
        data=[HistoryEntryResponse.model_validate(e) for e in entries],
    )


@router.get(
    "/trabajador/{worker_id}",
    response_model=ApiResponse[List[HistoryEntryResponse]],
    summary="Employment history of a worker",
)
async def get_worker_history(
    worker_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr_read),
):
    entries = unwrap(await EmploymentHistoryService(db).get_by_worker(worker_id))
    return ApiResponse(
        message="Employment history retrieved",
        data=[HistoryEntryResponse.model_validate(e) for e in entries],
    )


@router.get(
    "/trabajador/{worker_id}/unificado",
    response_model=ApiResponse[List[UnifiedHistoryItem]],
    summary="Unified history of a worker",
    description="History entries and leave requests merged into one timeline, newest first.",
)
async def get_unified_history(
    worker_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr_read),
):
    items = unwrap(await EmploymentHistoryService(db).get_unified_history(worker_id))
    return ApiResponse(
        message=f"{len(items)} item(s) found",
        data=[UnifiedHistoryItem(**item) for item in items],
    )


@router.get(
    "/{entry_id}",
    response_model=ApiResponse[HistoryEntryResponse],
    summary="Get a history entry",
)
async def get_entry(
    entry_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr_read),
):
    entry = unwrap(await EmploymentHistoryService(db).get_entry(entry_id))
    return ApiResponse(
        message="History entry found",
        data=HistoryEntryResponse.model_validate(entry),
    )


@router.post(
    "/",
    response_model=ApiResponse[HistoryEntryResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Register a history entry manually",
    description="Only for workers in the system without an open history entry.",
)
async def create_entry(
    data: ManualHistoryEntryCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr),
):
    entry = unwrap(
        await EmploymentHistoryService(db).create_manual_entry(data, acting_user_id=current_user.id)
    )
    return ApiResponse(
        message="History entry registered successfully",
        data=HistoryEntryResponse.model_validate(entry),
    )


@router.put(
    "/{entry_id}",
    response_model=ApiResponse[HistoryEntryResponse],
    summary="Close a history entry",
    description="Closed entries are immutable; this only stamps the end date of an open entry.",
)
async def close_entry(
    entry_id: uuid.UUID,
    data: HistoryEntryClose,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr),
):
    entry = unwrap(
        await EmploymentHistoryService(db).close_entry(entry_id, data.end_date, data.reason)
    )
    return ApiResponse(
        message="History entry closed successfully",
        data=HistoryEntryResponse.model_validate(entry),
    )


@router.get(
    "/{entry_id}/contrato",
    response_class=FileResponse,
    summary="Download the contract of a history entry",
)
async def download_entry_contract(
    entry_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = EmploymentHistoryService(db)
    entry = unwrap(await service.get_entry(entry_id))
    await ensure_worker_id_access(current_user, entry.worker_id, db)

    path = unwrap(await service.get_entry_contract_path(entry_id))
    return FileResponse(
        path,
        media_type="application/pdf",
        filename=FileStorageService.download_name(entry.contract_file),
    )
