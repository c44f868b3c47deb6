# app/schemas/common.py
"""Common schemas used across multiple modules."""
from pydantic import BaseModel, Field
from typing import Generic, TypeVar, List, Optional
from math import ceil
from datetime import datetime

from app.models.volunteer import utc_now

T = TypeVar('T')

class PaginationMetadata(BaseModel):
    """Pagination metadata for list responses."""
    total: int = Field(..., description="Total number of items")
    page: int = Field(..., ge=1, description="Current page number (1-indexed)")
    page_size: int = Field(..., ge=1, description="Number of items per page")
    total_pages: int = Field(..., ge=0, description="Total number of pages")
    has_next: bool = Field(..., description="Whether there is a next page")
    has_previous: bool = Field(..., description="Whether there is a previous page")

class PaginatedResponse(BaseModel, Generic[T]):
    """
    Generic paginated response wrapper.

    Usage:
        PaginatedResponse[VolunteerResponse](
            data=[...],
            metadata=PaginationMetadata(...)
        )
    """
    data: List[T] = Field(..., description="List of items for current page")
    metadata: PaginationMetadata = Field(..., description="Pagination metadata")

    class Config:
        from_attributes = True

def create_pagination_metadata(
    total: int,
    page: int,
    page_size: int
) -> PaginationMetadata:
    """
    Helper function to create pagination metadata.

    Args:
        total: Total number of items
        page: Current page number (1-indexed)
        page_size: Number of items per page

    Returns:
        PaginationMetadata object
    """
    total_pages = ceil(total / page_size) if page_size > 0 else 0

    return PaginationMetadata(
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_previous=page > 1
    )

class ErrorResponse(BaseModel):
    """Standard error response format."""
    error: str = Field(..., description="Error type or code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[dict] = Field(None, description="Additional error details")

class ApiResponse(BaseModel, Generic[T]):
    """Envelope wrapping every volunteer and skill API payload."""
    success: bool = Field(True, description="Operation success status")
    message: Optional[str] = Field(None, description="Human-readable message")
    data: Optional[T] = Field(None, description="Response payload")
    timestamp: datetime = Field(default_factory=utc_now, description="Server time (UTC)")

def api_response(data: Optional[T] = None, message: Optional[str] = None) -> ApiResponse[T]:
    return ApiResponse(data=data, message=message)
