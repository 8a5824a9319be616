"""Schemas for the admin user-management endpoints (/v1/users)."""

from pydantic import BaseModel, Field

from ratings_api.models import UserRole
from ratings_api.schemas.auth import UserOut
from ratings_api.schemas.common import Address, Email, Pagination, Password, PersonName
from ratings_api.schemas.ratings import RatingWithRater


class AdminCreateUserRequest(BaseModel):
    """Admin-created account; unlike registration the role is required."""

    name: PersonName
    email: Email
    password: Password
    address: Address
    role: UserRole


class UpdateUserRequest(BaseModel):
    """Partial update; omitted fields keep their value."""

    name: PersonName | None = None
    email: Email | None = None
    address: Address | None = None
    role: UserRole | None = None
    is_active: bool | None = Field(alias="isActive", default=None)

    model_config = {"populate_by_name": True}


class UserResponse(BaseModel):
    message: str
    user: UserOut


class UserListResponse(BaseModel):
    message: str
    users: list[UserOut]
    pagination: Pagination


class OwnedStoreDetail(BaseModel):
    """Store section of a store owner's detail view."""

    id: int
    name: str
    email: str
    address: str
    average_rating: float = Field(alias="averageRating")
    total_ratings: int = Field(alias="totalRatings")
    ratings_count: int = Field(alias="ratingsCount")
    recent_ratings: list[RatingWithRater] = Field(alias="recentRatings", max_length=5)

    model_config = {"populate_by_name": True}


class UserDetailResponse(BaseModel):
    message: str
    user: UserOut
    store: OwnedStoreDetail | None = None


class DashboardStats(BaseModel):
    total_users: int = Field(alias="totalUsers", ge=0)
    total_stores: int = Field(alias="totalStores", ge=0)
    total_ratings: int = Field(alias="totalRatings", ge=0)

    model_config = {"populate_by_name": True}


class DashboardStatsResponse(BaseModel):
    message: str
    stats: DashboardStats
