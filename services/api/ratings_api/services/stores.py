"""Stores: admin management, listings, detail and owner dashboard.

Store rows are never hard-deleted. Deactivated stores disappear from
listings and lookups, cannot be rated, and keep their email reserved.
"""

from enum import Enum
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ratings_api.models import Rating, Store, User, UserRole
from ratings_api.schemas.common import Pagination
from ratings_api.schemas.ratings import RatingWithRater
from ratings_api.schemas.stores import (
    CreateStoreRequest,
    OwnerSummary,
    StoreDashboard,
    StoreListItem,
    StoreOut,
    UpdateStoreRequest,
    UserRatingSummary,
)
from ratings_api.services.errors import Conflict, NotFound, PermissionDenied, ValidationFailed
from ratings_api.services.ratings import rating_distribution, recent_store_ratings
from ratings_api.services.users import get_owned_store

logger = logging.getLogger("uvicorn.error")

RATINGS_IN_STORE_DETAIL = 20
RATINGS_IN_DASHBOARD = 10
ACTIVE_OWNER_INDEX = "uq_stores_active_owner"


class StoreSortField(str, Enum):
    NAME = "name"
    EMAIL = "email"
    ADDRESS = "address"
    AVERAGE_RATING = "averageRating"
    CREATED_AT = "createdAt"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


_SORT_COLUMNS = {
    StoreSortField.NAME: Store.name,
    StoreSortField.EMAIL: Store.email,
    StoreSortField.ADDRESS: Store.address,
    StoreSortField.AVERAGE_RATING: Store.average_rating,
    StoreSortField.CREATED_AT: Store.created_at,
}


def to_store_out(store: Store) -> StoreOut:
    return StoreOut(
        id=store.id,
        name=store.name,
        email=store.email,
        address=store.address,
        owner_id=store.owner_id,
        average_rating=store.average_rating,
        total_ratings=store.total_ratings,
        is_active=store.is_active,
        created_at=store.created_at,
        updated_at=store.updated_at,
    )


def _owner_summary(owner: User, viewer: User) -> OwnerSummary:
    if viewer.role == UserRole.ADMIN:
        return OwnerSummary(
            id=owner.id, name=owner.name, email=owner.email, address=owner.address, role=owner.role
        )
    return OwnerSummary(id=owner.id, name=owner.name, email=owner.email)


def _list_item(store: Store, viewer: User, user_rating: UserRatingSummary | None = None) -> StoreListItem:
    return StoreListItem(
        **to_store_out(store).model_dump(),
        owner=_owner_summary(store.owner, viewer),
        user_rating=user_rating,
    )


async def get_active_store(session: AsyncSession, store_id: int) -> Store:
    """Load an active store with its owner, or raise NotFound (STORE_NOT_FOUND)."""
    result = await session.execute(
        select(Store).options(selectinload(Store.owner)).where(Store.id == store_id)
    )
    store = result.scalar_one_or_none()
    if store is None or not store.is_active:
        raise NotFound("Store not found", code="STORE_NOT_FOUND", detail={"store_id": store_id})
    return store


async def _user_ratings_by_store(
    session: AsyncSession, user: User, store_ids: list[int]
) -> dict[int, UserRatingSummary]:
    if not store_ids:
        return {}
    result = await session.execute(
        select(Rating).where(Rating.user_id == user.id, Rating.store_id.in_(store_ids))
    )
    return {
        r.store_id: UserRatingSummary(rating=r.rating, comment=r.comment, rating_id=r.id)
        for r in result.scalars().all()
    }


def _is_active_owner_violation(exc: IntegrityError) -> bool:
    """True if the insert hit uq_stores_active_owner (PostgreSQL names it, SQLite names the column)."""
    message = str(exc.orig)
    return ACTIVE_OWNER_INDEX in message or "stores.owner_id" in message


async def create_store(session: AsyncSession, request: CreateStoreRequest) -> Store:
    """Create a store for a store owner who has no active store yet.

    Raises:
        Conflict: STORE_EXISTS if the email is taken.
        ValidationFailed: INVALID_OWNER / OWNER_HAS_STORE.
    """
    existing = await session.execute(select(Store.id).where(Store.email == request.email))
    if existing.scalar_one_or_none() is not None:
        raise Conflict(
            "Store already exists with this email",
            code="STORE_EXISTS",
            detail={"email": request.email},
        )

    owner = await session.get(User, request.owner_id)
    if owner is None or not owner.is_active or owner.role != UserRole.STORE_OWNER:
        raise ValidationFailed("Invalid store owner", code="INVALID_OWNER", detail={"owner_id": request.owner_id})

    if await get_owned_store(session, owner.id) is not None:
        raise ValidationFailed(
            "Store owner already has a store",
            code="OWNER_HAS_STORE",
            detail={"owner_id": owner.id},
        )

    store = Store(
        name=request.name,
        email=request.email,
        address=request.address,
        owner_id=owner.id,
        average_rating=0.0,
        total_ratings=0,
        is_active=True,
    )
    session.add(store)
    try:
        await session.flush()
    except IntegrityError as exc:
        if _is_active_owner_violation(exc):
            # Another request gave this owner a store after the check above.
            raise ValidationFailed(
                "Store owner already has a store",
                code="OWNER_HAS_STORE",
                detail={"owner_id": request.owner_id},
            )
        raise Conflict(
            "Store already exists with this email",
            code="STORE_EXISTS",
            detail={"email": request.email},
        )

    logger.info("[stores] created store_id=%s owner_id=%s", store.id, owner.id)
    return store


async def list_stores(
    session: AsyncSession,
    viewer: User,
    *,
    name: str | None = None,
    address: str | None = None,
    sort_by: StoreSortField = StoreSortField.CREATED_AT,
    sort_order: SortOrder = SortOrder.DESC,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[StoreListItem], Pagination]:
    """List active stores; normal users also see their own rating of each store."""
    conditions = [Store.is_active.is_(True)]
    if name:
        conditions.append(Store.name.icontains(name, autoescape=True))
    if address:
        conditions.append(Store.address.icontains(address, autoescape=True))

    column = _SORT_COLUMNS[sort_by]
    ordering = column.asc() if sort_order == SortOrder.ASC else column.desc()
    tiebreak = Store.id.asc() if sort_order == SortOrder.ASC else Store.id.desc()

    total_count = await session.scalar(select(func.count()).select_from(Store).where(*conditions)) or 0
    result = await session.execute(
        select(Store)
        .options(selectinload(Store.owner))
        .where(*conditions)
        .order_by(ordering, tiebreak)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    stores = list(result.scalars().all())

    user_ratings: dict[int, UserRatingSummary] = {}
    if viewer.role == UserRole.USER:
        user_ratings = await _user_ratings_by_store(session, viewer, [s.id for s in stores])

    items = [_list_item(s, viewer, user_ratings.get(s.id)) for s in stores]
    return items, Pagination.build(page=page, limit=limit, total_count=total_count)


async def get_store_detail(
    session: AsyncSession,
    viewer: User,
    store_id: int,
) -> tuple[StoreListItem, UserRatingSummary | None, list[RatingWithRater] | None]:
    """Store detail plus what the viewer is allowed to see.

    Returns:
        (store, user_rating, ratings): user_rating for normal users, the 20
        newest ratings for admins and the owning store owner.
    """
    store = await get_active_store(session, store_id)

    user_rating = None
    if viewer.role == UserRole.USER:
        user_rating = (await _user_ratings_by_store(session, viewer, [store.id])).get(store.id)

    ratings = None
    if viewer.role == UserRole.ADMIN or (
        viewer.role == UserRole.STORE_OWNER and store.owner_id == viewer.id
    ):
        ratings = await recent_store_ratings(session, store.id, limit=RATINGS_IN_STORE_DETAIL)

    return _list_item(store, viewer, user_rating), user_rating, ratings


async def store_dashboard(session: AsyncSession, viewer: User, store_id: int) -> StoreDashboard:
    """Owner dashboard: distribution, newest ratings and rater count."""
    store = await get_active_store(session, store_id)
    if viewer.role != UserRole.ADMIN and store.owner_id != viewer.id:
        raise PermissionDenied(
            "Access denied. You can only access your own store.",
            code="NOT_YOUR_STORE",
            detail={"store_id": store_id},
        )

    total_raters = await session.scalar(
        select(func.count()).select_from(Rating).where(Rating.store_id == store.id)
    ) or 0
    return StoreDashboard(
        store=to_store_out(store),
        rating_distribution=await rating_distribution(session, store.id),
        recent_ratings=await recent_store_ratings(
            session, store.id, limit=RATINGS_IN_DASHBOARD, include_address=True
        ),
        total_raters=total_raters,
    )


async def update_store(session: AsyncSession, store_id: int, changes: UpdateStoreRequest) -> Store:
    store = await session.get(Store, store_id)
    if store is None:
        raise NotFound("Store not found", code="STORE_NOT_FOUND", detail={"store_id": store_id})

    fields = changes.model_dump(exclude_unset=True, exclude_none=True)
    new_email = fields.get("email")
    if new_email and new_email != store.email:
        clash = await session.execute(
            select(Store.id).where(Store.email == new_email, Store.id != store.id)
        )
        if clash.scalar_one_or_none() is not None:
            raise Conflict("Email already exists", code="EMAIL_EXISTS", detail={"email": new_email})

    for field, value in fields.items():
        setattr(store, field, value)

    try:
        await session.flush()
    except IntegrityError:
        raise Conflict("Email already exists", code="EMAIL_EXISTS", detail={"email": new_email})

    logger.info("[stores] updated store_id=%s fields=%s", store.id, sorted(fields))
    return store


async def deactivate_store(session: AsyncSession, store_id: int) -> None:
    store = await session.get(Store, store_id)
    if store is None:
        raise NotFound("Store not found", code="STORE_NOT_FOUND", detail={"store_id": store_id})
    store.is_active = False
    await session.flush()
    logger.info("[stores] deactivated store_id=%s owner_id=%s", store_id, store.owner_id)
