"""
Labor Administration - Leave Requests Router

API endpoints for medical leave / administrative permit requests
("licencia permiso") and the manual leave expiry sweep.
"""

import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import (
    ensure_worker_id_access,
    get_current_user,
    get_current_worker,
    require_hr,
    require_hr_read,
)
from app.models.hr import LeaveRequestStatus, LeaveType, Worker
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.leave import ExpirySweepResponse, LeaveRequestResponse, LeaveReviewRequest
from app.services.file_storage_service import FileStorageService, read_upload
from app.services.leave_request_service import LeaveRequestService
from app.utils.calendar_dates import today
from app.utils.error_handling import unwrap


router = APIRouter()


@router.post(
    "/",
    response_model=ApiResponse[LeaveRequestResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Request a leave or permit",
    description=(
        "Multipart form. Workers request for themselves; HR may pass worker_id to "
        "file a request on behalf of a worker. Medical leaves require a PDF attachment."
    ),
)
async def create_leave_request(
    leave_type: LeaveType = Form(...),
    start_date: date = Form(...),
    end_date: date = Form(...),
    reason: str = Form(..., min_length=1, max_length=500),
    worker_id: Optional[uuid.UUID] = Form(None),
    file: Optional[UploadFile] = File(None, description="PDF attachment"),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    if worker_id is None:
        worker = await get_current_worker(current_user, db)
        worker_id = worker.id
    elif not current_user.is_hr:
        await ensure_worker_id_access(current_user, worker_id, db, allow_readers=False)

    attachment = await read_upload(file) if file is not None and file.filename else None

    leave_request = unwrap(
        await LeaveRequestService(db).create_request(
            worker_id=worker_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            attachment=attachment,
        )
    )
    return ApiResponse(
        message="Leave request registered successfully",
        data=LeaveRequestResponse.model_validate(leave_request),
    )


@router.get(
    "/mis-solicitudes",
    response_model=ApiResponse[List[LeaveRequestResponse]],
    summary="My leave requests",
)
async def my_requests(
    db: AsyncSession = Depends(get_async_session),
    worker: Worker = Depends(get_current_worker),
):
    requests = await LeaveRequestService(db).list_for_worker(worker.id)
    return ApiResponse(
        message=f"{len(requests)} request(s) found",
        data=[LeaveRequestResponse.model_validate(r) for r in requests],
    )


@router.get(
    "/",
    response_model=ApiResponse[List[LeaveRequestResponse]],
    summary="List leave requests",
)
async def list_requests(
    status_filter: Optional[LeaveRequestStatus] = Query(None, alias="status"),
    leave_type: Optional[LeaveType] = Query(None),
    worker_id: Optional[uuid.UUID] = Query(None),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr_read),
):
    requests = await LeaveRequestService(db).list_requests(
        status=status_filter, leave_type=leave_type, worker_id=worker_id,
    )
    return ApiResponse(
        message=f"{len(requests)} request(s) found",
        data=[LeaveRequestResponse.model_validate(r) for r in requests],
    )


@router.post(
    "/verificar-vencimientos",
    response_model=ApiResponse[ExpirySweepResponse],
    summary="Run the leave expiry sweep now",
    description="Returns every worker whose leave ended before today to the active state.",
)
async def run_expiry_sweep(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr),
):
    run_date = today()
    reverted = await LeaveRequestService(db).expire_leaves(run_date, acting_user_id=current_user.id)
    return ApiResponse(
        message=f"{reverted} expired leave(s) ended",
        data=ExpirySweepResponse(run_date=run_date, reverted=reverted),
    )


@router.get(
    "/{request_id}",
    response_model=ApiResponse[LeaveRequestResponse],
    summary="Get a leave request",
)
async def get_request(
    request_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    leave_request = unwrap(await LeaveRequestService(db).get_request(request_id))
    await ensure_worker_id_access(current_user, leave_request.worker_id, db)
    return ApiResponse(
        message="Leave request found",
        data=LeaveRequestResponse.model_validate(leave_request),
    )


@router.put(
    "/{request_id}",
    response_model=ApiResponse[LeaveRequestResponse],
    summary="Review a leave request",
    description="Approve or reject a pending request. Reviews are final.",
)
async def review_request(
    request_id: uuid.UUID,
    data: LeaveReviewRequest,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_hr),
):
    leave_request = unwrap(
        await LeaveRequestService(db).review_request(
            request_id, data.status, reviewer_id=current_user.id, comment=data.comment,
        )
    )
    return ApiResponse(
        message=f"Leave request {leave_request.status.value}",
        data=LeaveRequestResponse.model_validate(leave_request),
    )


@router.delete(
    "/{request_id}",
    response_model=ApiResponse,
    summary="Delete a pending leave request",
)
async def delete_request(
    request_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = LeaveRequestService(db)
    leave_request = unwrap(await service.get_request(request_id))
    if not current_user.is_hr:
        await ensure_worker_id_access(current_user, leave_request.worker_id, db, allow_readers=False)

    unwrap(await service.delete_request(request_id))
    return ApiResponse(message="Leave request deleted successfully")


@router.get(
    "/{request_id}/archivo",
    response_class=FileResponse,
    summary="Download the attachment of a leave request",
)
async def download_attachment(
    request_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = LeaveRequestService(db)
    leave_request = unwrap(await service.get_request(request_id))
    await ensure_worker_id_access(current_user, leave_request.worker_id, db)

    path = unwrap(await service.get_attachment_path(request_id))
    return FileResponse(
        path,
        media_type="application/pdf",
        filename=FileStorageService.download_name(leave_request.attachment_file),
    )
