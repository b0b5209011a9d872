"""
Labor Administration - Authentication Router

API endpoints for user registration, login and the current user.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_async_session
from app.dependencies import get_current_user, get_optional_user
from app.models.user import User
from app.schemas.auth import LoginRequest, TokenResponse, UserRegisterRequest, UserResponse
from app.schemas.common import ApiResponse
from app.services.auth_service import AuthService
from app.utils.error_handling import unwrap


router = APIRouter()


@router.post(
    "/register",
    response_model=ApiResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Register a user account",
    description="Anyone may register a regular user; elevated roles require an administrator token.",
)
async def register(
    data: UserRegisterRequest,
    db: AsyncSession = Depends(get_async_session),
    current_user: Optional[User] = Depends(get_optional_user),
):
    service = AuthService(db)

    if not service.can_assign_role(current_user, data.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You are not allowed to create accounts with role '{data.role.value}'",
        )

    user = unwrap(await service.register_user(data))
    return ApiResponse(
        message="User registered successfully",
        data=UserResponse.model_validate(user),
    )


@router.post(
    "/login",
    response_model=ApiResponse[TokenResponse],
    summary="Log in",
)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_async_session),
):
    user, token = unwrap(await AuthService(db).login(data.email, data.password))
    return ApiResponse(
        message="Login successful",
        data=TokenResponse(
            access_token=token,
            expires_in=settings.access_token_expire_minutes * 60,
            user=UserResponse.model_validate(user),
        ),
    )


@router.get(
    "/me",
    response_model=ApiResponse[UserResponse],
    summary="Current user",
)
async def me(current_user: User = Depends(get_current_user)):
    return ApiResponse(
        message="Current user",
        data=UserResponse.model_validate(current_user),
    )
