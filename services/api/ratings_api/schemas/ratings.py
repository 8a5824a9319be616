"""Schemas for the ratings endpoints (/v1/ratings)."""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints

from ratings_api.models.rating import MAX_COMMENT_LENGTH, MAX_RATING, MIN_RATING

Comment = Annotated[str, StringConstraints(strip_whitespace=True, max_length=MAX_COMMENT_LENGTH)]


class SubmitRatingRequest(BaseModel):
    """Create or replace the caller's rating for a store."""

    store_id: int = Field(alias="storeId", ge=1)
    rating: int = Field(ge=MIN_RATING, le=MAX_RATING)
    comment: Comment = ""

    model_config = {"populate_by_name": True}


class UpdateRatingRequest(BaseModel):
    """Partial update; omitted fields keep their value."""

    rating: int | None = Field(default=None, ge=MIN_RATING, le=MAX_RATING)
    comment: Comment | None = None


class RatingOut(BaseModel):
    id: int
    user_id: int = Field(alias="userId")
    store_id: int = Field(alias="storeId")
    rating: int
    comment: str
    created_at: datetime | None = Field(alias="createdAt", default=None)
    updated_at: datetime | None = Field(alias="updatedAt", default=None)

    model_config = {"populate_by_name": True, "from_attributes": True}


class RaterSummary(BaseModel):
    id: int
    name: str
    email: str
    address: str | None = None


class RatingWithRater(RatingOut):
    """Rating as seen by admins and store owners."""

    user: RaterSummary


class StoreSummary(BaseModel):
    id: int
    name: str
    email: str
    address: str
    average_rating: float = Field(alias="averageRating")
    total_ratings: int = Field(alias="totalRatings", default=0)

    model_config = {"populate_by_name": True, "from_attributes": True}


class RatingWithStore(RatingOut):
    """Rating as seen by the user who wrote it."""

    store: StoreSummary


class RatingResponse(BaseModel):
    message: str
    rating: RatingOut


class UserStoreRatingResponse(BaseModel):
    message: str
    rating: RatingWithStore


class MyRatingsResponse(BaseModel):
    message: str
    ratings: list[RatingWithStore]
    total_ratings: int = Field(alias="totalRatings", ge=0)

    model_config = {"populate_by_name": True}


class StoreRatingsResponse(BaseModel):
    message: str
    ratings: list[RatingWithRater]
    total_ratings: int = Field(alias="totalRatings", ge=0)

    model_config = {"populate_by_name": True}


class TopStore(BaseModel):
    id: int
    name: str
    average_rating: float = Field(alias="averageRating")
    total_ratings: int = Field(alias="totalRatings")

    model_config = {"populate_by_name": True, "from_attributes": True}


class RatingStats(BaseModel):
    total_ratings: int = Field(alias="totalRatings", ge=0)
    overall_average_rating: float = Field(alias="overallAverageRating", ge=0, le=5)
    rating_distribution: dict[str, int] = Field(alias="ratingDistribution")
    top_stores: list[TopStore] = Field(alias="topStores", max_length=10)

    model_config = {"populate_by_name": True}


class RatingStatsResponse(BaseModel):
    message: str
    stats: RatingStats
