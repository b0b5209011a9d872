"""
Labor Administration - Training Models

Courses and trainings (capacitaciones) completed by workers, with an optional
PDF certificate.
"""

import uuid
from datetime import date
from typing import Optional

from sqlalchemy import Date, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel
from app.models.hr import Worker


class Training(BaseModel):
    """A training completed by a worker. The date is never in the future."""

    __tablename__ = "trainings"

    worker_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("workers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    course_name: Mapped[str] = mapped_column(String(200), nullable=False)
    institution: Mapped[str] = mapped_column(String(200), nullable=False)
    training_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    duration: Mapped[str] = mapped_column(
        String(50), nullable=False, comment="Free text, e.g. '40 horas'",
    )
    certificate_file: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    worker: Mapped[Worker] = relationship("Worker", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Training(id={self.id}, course={self.course_name})>"
