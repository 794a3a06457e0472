"""
Pydantic schemas shared across endpoints: error bodies and pagination.
"""

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class StandardError(BaseModel):
    """Application-wide error body for resource and database errors."""
    timestamp: datetime
    status: int
    error: str
    path: str
    message: str


class ErrorResponse(BaseModel):
    """Compact error body used by endpoints that report their own errors."""
    status: int
    message: str


class PageRequest(BaseModel):
    """
    Pagination parameters as received from the client.

    page is 0-based. sort is "field" or "field,asc" / "field,desc"; the
    service validates the field name against the sortable columns.
    """
    page: int = 0
    size: int = 20
    sort: str | None = None

    @property
    def offset(self) -> int:
        return self.page * self.size


class Page(BaseModel, Generic[T]):
    """One page of results plus the totals needed to render a pager."""
    content: list[T]
    page: int
    size: int
    total_elements: int
    total_pages: int
