"""Schemas for the stores endpoints (/v1/stores)."""

from datetime import datetime

from pydantic import BaseModel, Field

from ratings_api.models import UserRole
from ratings_api.schemas.common import Address, Email, Pagination, StoreName
from ratings_api.schemas.ratings import RatingWithRater


class CreateStoreRequest(BaseModel):
    name: StoreName
    email: Email
    address: Address
    owner_id: int = Field(alias="ownerId", ge=1)

    model_config = {"populate_by_name": True}


class UpdateStoreRequest(BaseModel):
    """Partial update; omitted fields keep their value."""

    name: StoreName | None = None
    email: Email | None = None
    address: Address | None = None


class OwnerSummary(BaseModel):
    id: int
    name: str
    email: str
    # Admin-only fields
    address: str | None = None
    role: UserRole | None = None


class UserRatingSummary(BaseModel):
    """The calling normal user's own rating of a store."""

    rating: int
    comment: str
    rating_id: int = Field(alias="ratingId")

    model_config = {"populate_by_name": True}


class StoreOut(BaseModel):
    id: int
    name: str
    email: str
    address: str
    owner_id: int = Field(alias="ownerId")
    average_rating: float = Field(alias="averageRating", ge=0, le=5)
    total_ratings: int = Field(alias="totalRatings", ge=0)
    is_active: bool = Field(alias="isActive", default=True)
    created_at: datetime | None = Field(alias="createdAt", default=None)
    updated_at: datetime | None = Field(alias="updatedAt", default=None)

    model_config = {"populate_by_name": True, "from_attributes": True}


class StoreListItem(StoreOut):
    owner: OwnerSummary | None = None
    user_rating: UserRatingSummary | None = Field(alias="userRating", default=None)


class StoreResponse(BaseModel):
    message: str
    store: StoreOut


class StoreListResponse(BaseModel):
    message: str
    stores: list[StoreListItem]
    pagination: Pagination


class StoreDetailResponse(BaseModel):
    """Store detail.

    user_rating is filled for normal users; ratings (20 newest) for admins
    and the owning store owner. Both are null otherwise.
    """

    message: str
    store: StoreListItem
    user_rating: UserRatingSummary | None = Field(alias="userRating", default=None)
    ratings: list[RatingWithRater] | None = None

    model_config = {"populate_by_name": True}


class StoreDashboard(BaseModel):
    store: StoreOut
    rating_distribution: dict[str, int] = Field(alias="ratingDistribution")
    recent_ratings: list[RatingWithRater] = Field(alias="recentRatings", max_length=10)
    total_raters: int = Field(alias="totalRaters", ge=0)

    model_config = {"populate_by_name": True}


class StoreDashboardResponse(BaseModel):
    message: str
    dashboard: StoreDashboard
