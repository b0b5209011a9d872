"""
Labor Administration - Employment Records Router

API endpoints for employment records ("ficha empresa"), labor changes and the
contract PDF.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import ensure_worker_access, get_current_user, get_current_worker, require_hr, require_hr_read
from app.models.hr import EmploymentState, Worker
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.worker import (
    ChangeSummaryResponse,
    EmploymentRecordResponse,
    EmploymentRecordUpdate,
    LaborChangeRequest,
)
from app.services.employment_record_service import EmploymentRecordService
from app.services.file_storage_service import FileStorageService, read_upload
from app.services.labor_change_service import LaborChangeService
from app.utils.error_handling import unwrap


router = APIRouter()


# ===========================================
# READ ENDPOINTS
# ===========================================

@router.get(
    "/",
    response_model=ApiResponse[List[EmploymentRecordResponse]],
    summary="List employment records",
)
async def list_records(
    state: Optional[EmploymentState] = Query(None, description="Labor state filter"),
    department: Optional[str] = Query(None),
    job_title: Optional[str] = Query(None),
    contract_type: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Search by worker name or RUT"),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr_read),
):
    records = await EmploymentRecordService(db).list_records(
        state=state,
        department=department,
        job_title=job_title,
        contract_type=contract_type,
        search=search,
    )
    return ApiResponse(
        message=f"{len(records)} employment record(s) found",
        data=[EmploymentRecordResponse.model_validate(r) for r in records],
    )


@router.get(
    "/mi-ficha",
    response_model=ApiResponse[EmploymentRecordResponse],
    summary="My employment record",
)
async def my_record(
    db: AsyncSession = Depends(get_async_session),
    worker: Worker = Depends(get_current_worker),
):
    record = unwrap(await EmploymentRecordService(db).get_record_by_worker(worker.id))
    return ApiResponse(
        message="Employment record found",
        data=EmploymentRecordResponse.model_validate(record),
    )


@router.get(
    "/trabajador/{worker_id}",
    response_model=ApiResponse[EmploymentRecordResponse],
    summary="Employment record of a worker",
)
async def get_record_by_worker(
    worker_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr_read),
):
    record = unwrap(await EmploymentRecordService(db).get_record_by_worker(worker_id))
    return ApiResponse(
        message="Employment record found",
        data=EmploymentRecordResponse.model_validate(record),
    )


@router.get(
    "/{record_id}",
    response_model=ApiResponse[EmploymentRecordResponse],
    summary="Get an employment record",
)
async def get_record(
    record_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr_read),
):
    record = unwrap(await EmploymentRecordService(db).get_record(record_id))
    return ApiResponse(
        message="Employment record found",
        data=EmploymentRecordResponse.model_validate(record),
    )


# ===========================================
# WRITE ENDPOINTS
# ===========================================

@router.put(
    "/{record_id}",
    response_model=ApiResponse[EmploymentRecordResponse],
    summary="Update an employment record",
    description=(
        "Edits health insurance, pension fund, unemployment insurance and contract end date. "
        "Other terms change through labor changes."
    ),
)
async def update_record(
    record_id: uuid.UUID,
    data: EmploymentRecordUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr),
):
    record = unwrap(await EmploymentRecordService(db).update_record(record_id, data))
    return ApiResponse(
        message="Employment record updated successfully",
        data=EmploymentRecordResponse.model_validate(record),
    )


@router.post(
    "/trabajador/{worker_id}/cambios",
    response_model=ApiResponse[ChangeSummaryResponse],
    summary="Apply a labor change",
    description="Termination, or a change of job title, department, contract type, salary or schedule.",
)
async def apply_labor_change(
    worker_id: uuid.UUID,
    data: LaborChangeRequest,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr),
):
    summary = unwrap(
        await LaborChangeService(db).apply_labor_change(
            data.change_type, worker_id, data, acting_user_id=current_user.id,
        )
    )
    return ApiResponse(
        message=summary.message,
        data=ChangeSummaryResponse.model_validate(summary),
    )


# ===========================================
# CONTRACT FILE
# ===========================================

@router.post(
    "/{record_id}/contrato",
    response_model=ApiResponse[EmploymentRecordResponse],
    summary="Upload the contract PDF",
)
async def upload_contract(
    record_id: uuid.UUID,
    file: UploadFile = File(..., description="Contract PDF"),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr),
):
    upload = await read_upload(file)
    record = unwrap(await EmploymentRecordService(db).attach_contract(record_id, upload))
    return ApiResponse(
        message="Contract uploaded successfully",
        data=EmploymentRecordResponse.model_validate(record),
    )


@router.get(
    "/{record_id}/contrato",
    response_class=FileResponse,
    summary="Download the contract PDF",
)
async def download_contract(
    record_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = EmploymentRecordService(db)
    record = unwrap(await service.get_record(record_id))
    ensure_worker_access(current_user, record.worker)

    path = unwrap(await service.get_contract_path(record_id))
    return FileResponse(
        path,
        media_type="application/pdf",
        filename=FileStorageService.download_name(record.contract_file),
    )


@router.delete(
    "/{record_id}/contrato",
    response_model=ApiResponse[EmploymentRecordResponse],
    status_code=status.HTTP_200_OK,
    summary="Remove the contract PDF",
)
async def delete_contract(
    record_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr),
):
    record = unwrap(await EmploymentRecordService(db).remove_contract(record_id))
    return ApiResponse(
        message="Contract removed successfully",
        data=EmploymentRecordResponse.model_validate(record),
    )
