"""Pydantic schemas for API request/response validation."""

from ratings_api.schemas.common import ErrorDetail, ErrorResponse, MessageResponse, Pagination
from ratings_api.schemas.auth import UserOut
from ratings_api.schemas.ratings import RatingOut, RatingWithRater
from ratings_api.schemas.stores import StoreListItem, StoreOut

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "MessageResponse",
    "Pagination",
    "RatingOut",
    "RatingWithRater",
    "StoreListItem",
    "StoreOut",
    "UserOut",
]
