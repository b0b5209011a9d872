"""
Labor Administration - Trainings Router

API endpoints for worker trainings ("capacitación") and their certificates.
Any worker registers and maintains their own trainings; HR manages everyone's.
"""

import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import ensure_worker_id_access, get_current_user, get_current_worker
from app.models.hr import Worker
from app.models.user import User
from app.schemas.common import ApiResponse, PaginatedData
from app.schemas.training import TrainingCreate, TrainingResponse, TrainingUpdate
from app.services.file_storage_service import FileStorageService, read_upload
from app.services.training_service import TrainingService
from app.utils.error_handling import unwrap


router = APIRouter()


async def _ensure_can_modify(current_user: User, worker_id: uuid.UUID, db: AsyncSession) -> None:
    if not current_user.is_hr:
        await ensure_worker_id_access(current_user, worker_id, db, allow_readers=False)


@router.post(
    "/",
    response_model=ApiResponse[TrainingResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Register a training",
    description=(
        "Multipart form. Workers register their own trainings; HR may pass "
        "worker_id to register one for any worker. The PDF certificate is optional."
    ),
)
async def create_training(
    course_name: str = Form(..., min_length=2, max_length=200),
    institution: str = Form(..., min_length=2, max_length=200),
    training_date: date = Form(...),
    duration: str = Form(..., min_length=1, max_length=50),
    worker_id: Optional[uuid.UUID] = Form(None),
    file: Optional[UploadFile] = File(None, description="PDF certificate"),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    if worker_id is None:
        worker = await get_current_worker(current_user, db)
        worker_id = worker.id
    else:
        await _ensure_can_modify(current_user, worker_id, db)

    certificate = await read_upload(file) if file is not None and file.filename else None

    training = unwrap(
        await TrainingService(db).create_training(
            worker_id,
            TrainingCreate(
                course_name=course_name,
                institution=institution,
                training_date=training_date,
                duration=duration,
            ),
            certificate=certificate,
        )
    )
    return ApiResponse(
        message="Training registered successfully",
        data=TrainingResponse.model_validate(training),
    )


@router.get(
    "/",
    response_model=ApiResponse[PaginatedData[TrainingResponse]],
    summary="List trainings",
    description="HR readers see every worker's trainings; other users only their own.",
)
async def list_trainings(
    worker_id: Optional[uuid.UUID] = Query(None),
    institution: Optional[str] = Query(None, description="Institution contains"),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    if not current_user.can_read_hr_data:
        worker = await get_current_worker(current_user, db)
        worker_id = worker.id

    trainings, total = await TrainingService(db).list_trainings(
        worker_id=worker_id,
        institution=institution,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )
    return ApiResponse(
        message=f"{total} training(s) found",
        data=PaginatedData(
            items=[TrainingResponse.model_validate(t) for t in trainings],
            total=total,
            limit=limit,
            offset=offset,
        ),
    )


@router.get(
    "/mis-capacitaciones",
    response_model=ApiResponse[List[TrainingResponse]],
    summary="My trainings",
)
async def my_trainings(
    db: AsyncSession = Depends(get_async_session),
    worker: Worker = Depends(get_current_worker),
):
    trainings = unwrap(await TrainingService(db).list_for_worker(worker.id))
    return ApiResponse(
        message=f"{len(trainings)} training(s) found",
        data=[TrainingResponse.model_validate(t) for t in trainings],
    )


@router.get(
    "/trabajador/{worker_id}",
    response_model=ApiResponse[List[TrainingResponse]],
    summary="Trainings of a worker",
)
async def worker_trainings(
    worker_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    await ensure_worker_id_access(current_user, worker_id, db)
    trainings = unwrap(await TrainingService(db).list_for_worker(worker_id))
    return ApiResponse(
        message=f"{len(trainings)} training(s) found",
        data=[TrainingResponse.model_validate(t) for t in trainings],
    )


@router.get(
    "/{training_id}",
    response_model=ApiResponse[TrainingResponse],
    summary="Get a training",
)
async def get_training(
    training_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    training = unwrap(await TrainingService(db).get_training(training_id))
    await ensure_worker_id_access(current_user, training.worker_id, db)
    return ApiResponse(
        message="Training found",
        data=TrainingResponse.model_validate(training),
    )


@router.put(
    "/{training_id}",
    response_model=ApiResponse[TrainingResponse],
    summary="Update a training",
)
async def update_training(
    training_id: uuid.UUID,
    data: TrainingUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = TrainingService(db)
    training = unwrap(await service.get_training(training_id))
    await _ensure_can_modify(current_user, training.worker_id, db)

    training = unwrap(await service.update_training(training_id, data))
    return ApiResponse(
        message="Training updated successfully",
        data=TrainingResponse.model_validate(training),
    )


@router.delete(
    "/{training_id}",
    response_model=ApiResponse,
    summary="Delete a training",
)
async def delete_training(
    training_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = TrainingService(db)
    training = unwrap(await service.get_training(training_id))
    await _ensure_can_modify(current_user, training.worker_id, db)

    unwrap(await service.delete_training(training_id))
    return ApiResponse(message="Training deleted successfully")


@router.get(
    "/{training_id}/certificado",
    response_class=FileResponse,
    summary="Download the certificate of a training",
)
async def download_certificate(
    training_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = TrainingService(db)
    training = unwrap(await service.get_training(training_id))
    await ensure_worker_id_access(current_user, training.worker_id, db)

    path = unwrap(await service.get_certificate_path(training_id))
    return FileResponse(
        path,
        media_type="application/pdf",
        filename=FileStorageService.download_name(training.certificate_file),
    )
