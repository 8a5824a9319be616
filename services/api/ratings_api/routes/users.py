"""Admin user-management endpoints (/v1/users).

All endpoints require role admin. Deletion is a soft delete.
"""

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ratings_api.models import User, UserRole
from ratings_api.routes.deps import db_session, require_admin
from ratings_api.schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, MessageResponse
from ratings_api.schemas.users import (
    AdminCreateUserRequest,
    DashboardStatsResponse,
    UpdateUserRequest,
    UserDetailResponse,
    UserListResponse,
    UserResponse,
)
from ratings_api.services import users as user_service

router = APIRouter()


@router.get("/dashboard/stats", response_model=DashboardStatsResponse)
async def get_dashboard_stats(
    _admin: User = Depends(require_admin),
    session: AsyncSession = Depends(db_session),
) -> DashboardStatsResponse:
    """Active users, active stores and total ratings."""
    return DashboardStatsResponse(
        message="Dashboard statistics retrieved successfully",
        stats=await user_service.dashboard_stats(session),
    )


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: AdminCreateUserRequest,
    _admin: User = Depends(require_admin),
    session: AsyncSession = Depends(db_session),
) -> UserResponse:
    user = await user_service.create_user(
        session,
        name=request.name,
        email=request.email,
        password=request.password,
        address=request.address,
        role=request.role,
    )
    return UserResponse(message="User created successfully", user=user_service.to_user_out(user))


@router.get("", response_model=UserListResponse)
async def list_users(
    name: str | None = Query(default=None, min_length=1, description="Case-insensitive substring"),
    email: str | None = Query(default=None, min_length=1, description="Case-insensitive substring"),
    address: str | None = Query(default=None, min_length=1, description="Case-insensitive substring"),
    role: UserRole | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    _admin: User = Depends(require_admin),
    session: AsyncSession = Depends(db_session),
) -> UserListResponse:
    users, pagination = await user_service.list_users(
        session,
        name=name.strip() if name else None,
        email=email.strip() if email else None,
        address=address.strip() if address else None,
        role=role,
        page=page,
        limit=limit,
    )
    return UserListResponse(message="Users retrieved successfully", users=users, pagination=pagination)


@router.get("/{user_id}", response_model=UserDetailResponse)
async def get_user(
    user_id: int = Path(ge=1),
    _admin: User = Depends(require_admin),
    session: AsyncSession = Depends(db_session),
) -> UserDetailResponse:
    user, store = await user_service.get_user_detail(session, user_id)
    return UserDetailResponse(message="User retrieved successfully", user=user, store=store)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    request: UpdateUserRequest,
    user_id: int = Path(ge=1),
    _admin: User = Depends(require_admin),
    session: AsyncSession = Depends(db_session),
) -> UserResponse:
    user = await user_service.update_user(session, user_id, request)
    return UserResponse(message="User updated successfully", user=user_service.to_user_out(user))


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int = Path(ge=1),
    _admin: User = Depends(require_admin),
    session: AsyncSession = Depends(db_session),
) -> MessageResponse:
    await user_service.deactivate_user(session, user_id)
    return MessageResponse(message="User deleted successfully")
