"""
Labor Administration - User Model

System users with role-based access control.

Roles:
- Super Admin / Admin: Full access
- HR (Recursos Humanos): Manages workers, labor changes, leave reviews, bonuses
- Management (Gerencia): Read access to HR data
- User: Self-service access to their own worker data (matched by RUT)
"""

from enum import Enum

from sqlalchemy import Boolean, String, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel


class UserRole(str, Enum):
    """User roles."""
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    HR = "hr"
    MANAGEMENT = "management"
    USER = "user"


# Roles allowed to mutate HR data
HR_ROLES = (UserRole.SUPER_ADMIN, UserRole.ADMIN, UserRole.HR)

# Roles allowed to read HR data of any worker
HR_READ_ROLES = HR_ROLES + (UserRole.MANAGEMENT,)


class User(BaseModel):
    """User model for authentication and authorization."""

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    rut: Mapped[str] = mapped_column(
        String(12),
        unique=True,
        nullable=False,
        index=True,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole),
        default=UserRole.USER,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    @property
    def is_hr(self) -> bool:
        return self.role in HR_ROLES

    @property
    def can_read_hr_data(self) -> bool:
        return self.role in HR_READ_ROLES
