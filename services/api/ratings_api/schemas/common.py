"""Common schemas used across the API."""

from math import ceil
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, EmailStr, Field, StringConstraints

from ratings_api.services.passwords import password_policy_errors

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def _check_password_policy(value: str) -> str:
    errors = password_policy_errors(value)
    if errors:
        raise ValueError("; ".join(errors))
    return value


# Shared field types
PersonName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=60)]
StoreName = PersonName
Address = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=400)]
Email = Annotated[EmailStr, AfterValidator(str.lower)]
Password = Annotated[str, AfterValidator(_check_password_policy)]


class ErrorDetail(BaseModel):
    """Structured error detail."""

    code: str
    message: str
    detail: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Standard error response format.

    Format: { "error": { "code": str, "message": str, "detail": object } }
    """

    error: ErrorDetail


class MessageResponse(BaseModel):
    message: str


class Pagination(BaseModel):
    """Page metadata returned with every list endpoint."""

    current_page: int = Field(alias="currentPage", ge=1)
    total_pages: int = Field(alias="totalPages", ge=0)
    total_count: int = Field(alias="totalCount", ge=0)
    has_next_page: bool = Field(alias="hasNextPage")
    has_prev_page: bool = Field(alias="hasPrevPage")

    model_config = {"populate_by_name": True}

    @classmethod
    def build(cls, *, page: int, limit: int, total_count: int) -> "Pagination":
        total_pages = ceil(total_count / limit) if limit else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_count=total_count,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )
