"""
Labor Administration - FastAPI Dependencies

Shared dependencies for authentication, database sessions, and RBAC.

This module provides dependency injection for:
1. Database sessions
2. Current user authentication
3. Role-based access control
4. Self-service: the worker linked to the current user (matched by RUT)
"""

import uuid
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.models.hr import Worker
from app.models.user import User, UserRole, HR_ROLES, HR_READ_ROLES
from app.utils.error_handling import AuthorizationException
from app.utils.security import verify_access_token


# HTTP Bearer token security
security = HTTPBearer(auto_error=False)


async def _user_from_credentials(
    credentials: Optional[HTTPAuthorizationCredentials],
    db: AsyncSession,
) -> Optional[User]:
    if not credentials:
        return None

    payload = verify_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_uuid = uuid.UUID(payload.get("sub", ""))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID in token",
        )

    result = await db.execute(select(User).where(User.id == user_uuid))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account is deactivated",
        )

    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_async_session),
) -> User:
    """
    Get the current authenticated user from the Bearer token.

    Raises:
        HTTPException: 401 if the token is missing or invalid, or the user is
            unknown or deactivated
    """
    user = await _user_from_credentials(credentials, db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_async_session),
) -> Optional[User]:
    """Current user when a token is sent, None for anonymous requests."""
    return await _user_from_credentials(credentials, db)


def require_roles(*allowed_roles: UserRole):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.post("/")
        async def hr_endpoint(user: User = Depends(require_roles(*HR_ROLES))):
            ...
    """
    async def role_checker(
        current_user: User = Depends(get_current_user),
    ) -> User:
        if current_user.role not in allowed_roles:
            raise AuthorizationException(
                message="Access denied for your role",
                required_roles=[r.value for r in allowed_roles],
            )
        return current_user

    return role_checker


# Shortcuts for the two permission levels of HR data
require_hr = require_roles(*HR_ROLES)
require_hr_read = require_roles(*HR_READ_ROLES)


async def get_current_worker(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> Worker:
    """
    The worker linked to the current user (same RUT).

    Raises:
        HTTPException: 404 if no worker is registered with the user's RUT
    """
    result = await db.execute(
        select(Worker)
        .where(Worker.rut == current_user.rut)
        .execution_options(populate_existing=True)
    )
    worker = result.scalar_one_or_none()
    if worker is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No worker is linked to your account",
        )
    return worker


def ensure_worker_access(current_user: User, worker: Worker) -> None:
    """HR readers see every worker; other users only the one sharing their RUT."""
    if current_user.can_read_hr_data:
        return
    if worker.rut != current_user.rut:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only access your own information",
        )


async def ensure_worker_id_access(
    current_user: User,
    worker_id: uuid.UUID,
    db: AsyncSession,
    allow_readers: bool = True,
) -> None:
    """
    Same rule as ensure_worker_access, for callers holding only the worker ID.

    With allow_readers=False only the worker themself passes (write access).
    """
    if allow_readers and current_user.can_read_hr_data:
        return
    result = await db.execute(select(Worker.rut).where(Worker.id == worker_id))
    if result.scalar_one_or_none() != current_user.rut:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only access your own information",
        )
