"""Common schemas used across the application."""

from typing import Generic, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """Generic paginated response wrapper.

    Usage:
        response_model=PaginatedResponse[ShipmentSummary]

    Returns:
        {
            "items": [...],
            "total": 150,
            "limit": 50,
            "offset": 0
        }
    """
    items: list[T]
    total: int
    limit: int
    offset: int


class EditCheck(BaseModel):
    """Answer to "may this container's data be edited?"."""
    can_edit: bool
    reason: str | None = None
    action: str | None = None


class DeleteCheck(BaseModel):
    """Answer to "may this container be deleted?"."""
    can_delete: bool
    reason: str | None = None
