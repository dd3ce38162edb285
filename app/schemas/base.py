"""
Base schemas and common response models.
"""
import math
from datetime import datetime
from typing import Generic, TypeVar, Optional, List, Sequence
from uuid import UUID
from pydantic import BaseModel, ConfigDict


# Generic type for paginated responses
T = TypeVar("T")


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )


class TimestampSchema(BaseSchema):
    created_at: datetime
    updated_at: datetime


class IDSchema(BaseSchema):
    id: UUID


class PaginatedResponse(BaseSchema, Generic[T]):
    """Generic paginated response."""

    items: List[T]
    total: int
    page: int
    limit: int
    pages: int

    @classmethod
    def build(cls, items: Sequence[T], total: int, page: int, limit: int) -> "PaginatedResponse[T]":
        return cls(
            items=list(items),
            total=total,
            page=page,
            limit=limit,
            pages=math.ceil(total / limit) if limit else 0,
        )


class MessageResponse(BaseSchema):
    message: str


class ErrorDetail(BaseSchema):
    code: str
    message: str
    details: Optional[object] = None


class ErrorResponse(BaseSchema):
    """Body returned by the APIException handler."""

    error: ErrorDetail
