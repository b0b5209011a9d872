"""
Labor Administration - Authentication Service

Business logic for user authentication and registration.
"""

import logging
import uuid
from datetime import timedelta
from typing import Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import transactional
from app.models.user import User, UserRole
from app.schemas.auth import UserRegisterRequest
from app.utils.error_handling import (
    AuthenticationException,
    DatabaseException,
    DuplicateEntryException,
    ErrorCode,
    InvalidRUTException,
    ServiceResult,
)
from app.utils.rut import format_rut, validate_rut
from app.utils.security import create_access_token, get_password_hash, verify_password

logger = logging.getLogger(__name__)


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email address."""
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """Get user by ID."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate user with email and password.

        Returns:
            User if authentication successful, None otherwise
        """
        user = await self.get_user_by_email(email)

        if not user:
            return None

        if not verify_password(password, user.hashed_password):
            return None

        return user

    async def register_user(self, data: UserRegisterRequest) -> ServiceResult[User]:
        """Register a new user account."""
        if not validate_rut(data.rut):
            return None, InvalidRUTException(data.rut)

        rut = format_rut(data.rut)
        email = data.email.lower()

        result = await self.db.execute(
            select(User).where(or_(User.rut == rut, func.lower(User.email) == email))
        )
        existing = result.scalars().first()
        if existing is not None:
            field, value = ("rut", rut) if existing.rut == rut else ("email", email)
            return None, DuplicateEntryException(
                "User", field, value, message=f"A user with this {field} is already registered",
            )

        user = User(
            name=data.name.strip(),
            rut=rut,
            email=email,
            hashed_password=get_password_hash(data.password),
            role=data.role,
            is_active=True,
        )

        try:
            async with transactional(self.db):
                self.db.add(user)
        except Exception as e:
            logger.error(f"Failed to register user {email}: {e}", exc_info=True)
            return None, DatabaseException(original_error=e)

        logger.info(f"Registered user {email} with role {data.role.value}")
        return user, None

    async def login(self, email: str, password: str) -> ServiceResult[Tuple[User, str]]:
        """
        Check credentials and issue an access token.

        Returns:
            ((user, token), None) on success, (None, error) otherwise
        """
        user = await self.authenticate_user(email, password)
        if user is None:
            logger.warning(f"Failed login attempt for {email}")
            return None, AuthenticationException("Invalid email or password")

        if not user.is_active:
            return None, AuthenticationException(
                "User account is deactivated", code=ErrorCode.ACCOUNT_DISABLED,
            )

        token = self.create_token(user)
        logger.info(f"User {user.email} logged in")
        return (user, token), None

    async def get_or_create_super_admin(
        self,
        email: str,
        password: str,
        rut: str,
        name: str = "Super Admin",
    ) -> User:
        """
        Return the super admin with this email, creating it when missing.

        Raises:
            ValueError: If the RUT is invalid
        """
        user = await self.get_user_by_email(email)
        if user is not None:
            return user

        if not validate_rut(rut):
            raise ValueError(f"Invalid super admin RUT: {rut}")

        user = User(
            name=name,
            rut=format_rut(rut),
            email=email.lower(),
            hashed_password=get_password_hash(password),
            role=UserRole.SUPER_ADMIN,
            is_active=True,
        )
        async with transactional(self.db):
            self.db.add(user)

        logger.info(f"Created super admin {user.email}")
        return user

    @staticmethod
    def create_token(user: User) -> str:
        """Access token for a user."""
        return create_access_token(
            {"sub": str(user.id), "email": user.email, "role": user.role.value},
            expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
        )

    @staticmethod
    def can_assign_role(actor: Optional[User], role: UserRole) -> bool:
        """Only administrators may create accounts with elevated roles."""
        if role == UserRole.USER:
            return True
        if actor is None:
            return False
        if role == UserRole.SUPER_ADMIN:
            return actor.role == UserRole.SUPER_ADMIN
        return actor.role in (UserRole.SUPER_ADMIN, UserRole.ADMIN)
