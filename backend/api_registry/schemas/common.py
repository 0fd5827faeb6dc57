"""Common API response schemas."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Consistent JSON envelope for API responses."""

    data: T


class ErrorDetail(BaseModel):
    """Body of ``HTTPException.detail`` for engine errors."""

    code: str
    message: str
    validation: dict[str, object] | None = None


class ErrorResponse(BaseModel):
    detail: ErrorDetail
