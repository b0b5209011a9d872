"""
Labor Administration - File Storage Service

Local storage for PDF documents.

File Types:
- Employment contracts
- Leave request attachments (medical certificates)
- Training certificates

Stored values have the form "<category>/<uuid>_<sanitized name>". Downloads are
resolved from the stored value's basename only, inside the category folder, so a
tampered value can never point outside the storage root.
"""

import logging
import os
import re
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from app.config import settings
from app.utils.error_handling import InvalidFileException

logger = logging.getLogger(__name__)


PDF_CONTENT_TYPE = "application/pdf"
PDF_MAGIC = b"%PDF"


class FileCategory(str, Enum):
    """File category types (one folder each)."""
    CONTRACT = "contracts"
    LEAVE_ATTACHMENT = "leave_attachments"
    TRAINING_CERTIFICATE = "training_certificates"


@dataclass
class PdfUpload:
    """An uploaded file, already read into memory."""
    filename: str
    content_type: Optional[str]
    content: bytes


class FileStorageService:
    """File storage service for PDF documents on the local filesystem."""

    def __init__(self, base_path: Optional[str] = None, max_size_bytes: Optional[int] = None):
        self.base_path = Path(base_path or settings.storage_local_path).resolve()
        self.max_size_bytes = max_size_bytes or settings.max_upload_size_bytes

    @staticmethod
    def _sanitize_filename(filename: str) -> str:
        name = os.path.basename(filename or "").strip()
        name = re.sub(r"[^A-Za-z0-9._-]", "_", name)
        return name or "document.pdf"

    def validate_pdf(self, upload: PdfUpload) -> Optional[InvalidFileException]:
        """
        Check that an upload is an acceptable PDF.

        Returns:
            None when valid, otherwise the validation error
        """
        if not upload.content:
            return InvalidFileException("The file is empty")

        if upload.content_type != PDF_CONTENT_TYPE:
            return InvalidFileException("Only PDF files are allowed")

        if not upload.filename or not upload.filename.lower().endswith(".pdf"):
            return InvalidFileException("The file must have a .pdf extension")

        if not upload.content.startswith(PDF_MAGIC):
            return InvalidFileException("The file content is not a valid PDF")

        if len(upload.content) > self.max_size_bytes:
            return InvalidFileException(
                f"The file exceeds the maximum size of {self.max_size_bytes // (1024 * 1024)} MB"
            )

        return None

    def save_pdf(self, upload: PdfUpload, category: FileCategory) -> str:
        """
        Write a validated PDF to storage.

        Returns:
            The stored value to persist on the owning record
        """
        stored_name = f"{uuid.uuid4().hex}_{self._sanitize_filename(upload.filename)}"
        folder = self.base_path / category.value
        folder.mkdir(parents=True, exist_ok=True)

        with open(folder / stored_name, "wb") as f:
            f.write(upload.content)

        logger.info(f"Stored {category.value} file {stored_name} ({len(upload.content)} bytes)")
        return f"{category.value}/{stored_name}"

    def resolve_path(self, stored_value: Optional[str], category: FileCategory) -> Optional[Path]:
        """Resolve a stored value to an existing file path, or None."""
        if not stored_value:
            return None

        folder = (self.base_path / category.value).resolve()
        file_path = (folder / os.path.basename(stored_value)).resolve()

        if not file_path.is_relative_to(folder):
            logger.warning(f"Refused file path outside storage: {stored_value}")
            return None

        if not file_path.is_file():
            return None

        return file_path

    def delete_file(self, stored_value: Optional[str], category: FileCategory) -> bool:
        """Delete a stored file. Returns True when a file was removed."""
        file_path = self.resolve_path(stored_value, category)
        if file_path is None:
            return False

        file_path.unlink()
        logger.info(f"Deleted {category.value} file {file_path.name}")
        return True

    @staticmethod
    def download_name(stored_value: str) -> str:
        """Original-looking file name for a download (without the uuid prefix)."""
        name = os.path.basename(stored_value)
        _, _, original = name.partition("_")
        return original or name


async def read_upload(file: UploadFile) -> PdfUpload:
    """Read a multipart upload into memory."""
    return PdfUpload(
        filename=file.filename or "",
        content_type=file.content_type,
        content=await file.read(),
    )
