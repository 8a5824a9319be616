"""Schemas for the auth endpoints (/v1/auth)."""

from datetime import datetime

from pydantic import BaseModel, Field

from ratings_api.models import UserRole
from ratings_api.schemas.common import Address, Email, Password, PersonName


class RegisterRequest(BaseModel):
    """Self-registration; always creates a normal user."""

    name: PersonName
    email: Email
    password: Password
    address: Address


class LoginRequest(BaseModel):
    email: Email
    password: str = Field(min_length=1)


class PasswordUpdateRequest(BaseModel):
    current_password: str = Field(alias="currentPassword", min_length=1)
    new_password: Password = Field(alias="newPassword")

    model_config = {"populate_by_name": True}


class UserOut(BaseModel):
    """Public view of an account (never includes the password hash)."""

    id: int
    name: str
    email: str
    address: str
    role: UserRole
    is_active: bool = Field(alias="isActive", default=True)
    store_id: int | None = Field(alias="storeId", default=None)
    created_at: datetime | None = Field(alias="createdAt", default=None)
    updated_at: datetime | None = Field(alias="updatedAt", default=None)

    model_config = {"populate_by_name": True, "from_attributes": True}


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserOut


class ProfileStore(BaseModel):
    id: int
    name: str
    email: str
    address: str
    average_rating: float = Field(alias="averageRating")

    model_config = {"populate_by_name": True, "from_attributes": True}


class ProfileResponse(BaseModel):
    message: str
    user: UserOut
    store: ProfileStore | None = None


class VerifyResponse(BaseModel):
    message: str
    user: UserOut
