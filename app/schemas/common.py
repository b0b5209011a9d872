"""
Labor Administration - Common Schemas

The single response envelope used by every endpoint.
"""

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """{success, message, data} envelope."""
    success: bool = True
    message: str
    data: Optional[T] = None


class PaginatedData(BaseModel, Generic[T]):
    """A page of items plus the total count."""
    items: List[T]
    total: int
    limit: int
    offset: int
