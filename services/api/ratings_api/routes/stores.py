"""Store endpoints (/v1/stores).

Listing and detail are open to every authenticated role; what each role
sees differs (see services.stores). Create/update/delete are admin only,
the dashboard is for the owning store owner or an admin.
"""

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ratings_api.models import User
from ratings_api.routes.deps import db_session, get_current_user, require_admin, require_admin_or_owner
from ratings_api.schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, MessageResponse
from ratings_api.schemas.stores import (
    CreateStoreRequest,
    StoreDashboardResponse,
    StoreDetailResponse,
    StoreListResponse,
    StoreResponse,
    UpdateStoreRequest,
)
from ratings_api.services import stores as store_service
from ratings_api.services.stores import SortOrder, StoreSortField

router = APIRouter()


@router.post("", response_model=StoreResponse, status_code=status.HTTP_201_CREATED)
async def create_store(
    request: CreateStoreRequest,
    _admin: User = Depends(require_admin),
    session: AsyncSession = Depends(db_session),
) -> StoreResponse:
    store = await store_service.create_store(session, request)
    return StoreResponse(message="Store created successfully", store=store_service.to_store_out(store))


@router.get("", response_model=StoreListResponse)
async def list_stores(
    name: str | None = Query(default=None, min_length=1, description="Case-insensitive substring"),
    address: str | None = Query(default=None, min_length=1, description="Case-insensitive substring"),
    sort_by: StoreSortField = Query(default=StoreSortField.CREATED_AT, alias="sortBy"),
    sort_order: SortOrder = Query(default=SortOrder.DESC, alias="sortOrder"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> StoreListResponse:
    stores, pagination = await store_service.list_stores(
        session,
        user,
        name=name.strip() if name else None,
        address=address.strip() if address else None,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return StoreListResponse(message="Stores retrieved successfully", stores=stores, pagination=pagination)


@router.get("/{store_id}", response_model=StoreDetailResponse)
async def get_store(
    store_id: int = Path(ge=1),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> StoreDetailResponse:
    store, user_rating, ratings = await store_service.get_store_detail(session, user, store_id)
    return StoreDetailResponse(
        message="Store retrieved successfully",
        store=store,
        user_rating=user_rating,
        ratings=ratings,
    )


@router.get("/{store_id}/dashboard", response_model=StoreDashboardResponse)
async def get_store_dashboard(
    store_id: int = Path(ge=1),
    user: User = Depends(require_admin_or_owner),
    session: AsyncSession = Depends(db_session),
) -> StoreDashboardResponse:
    return StoreDashboardResponse(
        message="Store dashboard retrieved successfully",
        dashboard=await store_service.store_dashboard(session, user, store_id),
    )


@router.put("/{store_id}", response_model=StoreResponse)
async def update_store(
    request: UpdateStoreRequest,
    store_id: int = Path(ge=1),
    _admin: User = Depends(require_admin),
    session: AsyncSession = Depends(db_session),
) -> StoreResponse:
    store = await store_service.update_store(session, store_id, request)
    return StoreResponse(message="Store updated successfully", store=store_service.to_store_out(store))


@router.delete("/{store_id}", response_model=MessageResponse)
async def delete_store(
    store_id: int = Path(ge=1),
    _admin: User = Depends(require_admin),
    session: AsyncSession = Depends(db_session),
) -> MessageResponse:
    await store_service.deactivate_store(session, store_id)
    return MessageResponse(message="Store deleted successfully")
