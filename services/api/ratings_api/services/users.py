"""User accounts: registration, authentication, admin management.

Soft delete only: deactivated users keep their rows (and ratings) but can no
longer authenticate and are hidden from listings and lookups.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ratings_api.models import Rating, Store, User, UserRole
from ratings_api.schemas.auth import UserOut
from ratings_api.schemas.common import Pagination
from ratings_api.schemas.users import DashboardStats, OwnedStoreDetail, UpdateUserRequest
from ratings_api.services.errors import AuthenticationFailed, Conflict, NotFound, ValidationFailed
from ratings_api.services.passwords import hash_password, verify_password
from ratings_api.services.ratings import recent_store_ratings

logger = logging.getLogger("uvicorn.error")

RECENT_RATINGS_IN_USER_DETAIL = 5


def to_user_out(user: User, store_id: int | None = None) -> UserOut:
    """Serialize a user; store_id is only meaningful for store owners."""
    return UserOut(
        id=user.id,
        name=user.name,
        email=user.email,
        address=user.address,
        role=user.role,
        is_active=user.is_active,
        store_id=store_id,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def get_active_user(session: AsyncSession, user_id: int) -> User:
    """Load an active user or raise NotFound (USER_NOT_FOUND)."""
    user = await session.get(User, user_id)
    if user is None or not user.is_active:
        raise NotFound("User not found", code="USER_NOT_FOUND", detail={"user_id": user_id})
    return user


async def get_owned_store(session: AsyncSession, owner_id: int) -> Store | None:
    """Return the owner's active store, if any."""
    result = await session.execute(
        select(Store)
        .where(Store.owner_id == owner_id, Store.is_active.is_(True))
        .order_by(Store.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def owned_store_ids(session: AsyncSession, owner_ids: list[int]) -> dict[int, int]:
    """Map owner id -> active store id for the given owners."""
    if not owner_ids:
        return {}
    result = await session.execute(
        select(Store.owner_id, Store.id).where(Store.owner_id.in_(owner_ids), Store.is_active.is_(True))
    )
    return {owner_id: store_id for owner_id, store_id in result.all()}


async def create_user(
    session: AsyncSession,
    *,
    name: str,
    email: str,
    password: str,
    address: str,
    role: UserRole = UserRole.USER,
) -> User:
    """Create an account. Input is expected to be schema-validated already.

    Raises:
        Conflict: USER_EXISTS if the email is taken (active or not).
    """
    email = email.lower()
    if await get_user_by_email(session, email) is not None:
        raise Conflict("User already exists with this email", code="USER_EXISTS", detail={"email": email})

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        address=address,
        role=role,
        is_active=True,
    )
    session.add(user)
    try:
        await session.flush()
    except IntegrityError:
        raise Conflict("User already exists with this email", code="USER_EXISTS", detail={"email": email})

    logger.info("[users] created user_id=%s role=%s", user.id, role.value)
    return user


async def authenticate(session: AsyncSession, email: str, password: str) -> User:
    """Check credentials.

    Unknown email, inactive account and wrong password are indistinguishable
    to the caller.
    """
    user = await get_user_by_email(session, email)
    if user is None or not user.is_active or not verify_password(password, user.password_hash):
        logger.info("[auth] login failed")
        raise AuthenticationFailed("Invalid email or password", code="INVALID_CREDENTIALS")
    logger.info("[auth] login ok user_id=%s", user.id)
    return user


async def change_password(session: AsyncSession, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password_hash):
        raise ValidationFailed("Current password is incorrect", code="INVALID_CURRENT_PASSWORD")
    user.password_hash = hash_password(new_password)
    await session.flush()
    logger.info("[auth] password changed user_id=%s", user.id)


async def list_users(
    session: AsyncSession,
    *,
    name: str | None = None,
    email: str | None = None,
    address: str | None = None,
    role: UserRole | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[UserOut], Pagination]:
    """List active users, newest first, with optional filters."""
    conditions = [User.is_active.is_(True)]
    if name:
        conditions.append(User.name.icontains(name, autoescape=True))
    if email:
        conditions.append(User.email.icontains(email, autoescape=True))
    if address:
        conditions.append(User.address.icontains(address, autoescape=True))
    if role is not None:
        conditions.append(User.role == role)

    total_count = await session.scalar(select(func.count()).select_from(User).where(*conditions)) or 0
    result = await session.execute(
        select(User)
        .where(*conditions)
        .order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    users = list(result.scalars().all())

    store_ids = await owned_store_ids(
        session, [u.id for u in users if u.role == UserRole.STORE_OWNER]
    )
    items = [to_user_out(u, store_ids.get(u.id)) for u in users]
    return items, Pagination.build(page=page, limit=limit, total_count=total_count)


async def get_user_detail(session: AsyncSession, user_id: int) -> tuple[UserOut, OwnedStoreDetail | None]:
    """Admin view of a user; store owners also get their store and its newest ratings."""
    user = await get_active_user(session, user_id)
    if user.role != UserRole.STORE_OWNER:
        return to_user_out(user), None

    store = await get_owned_store(session, user.id)
    if store is None:
        return to_user_out(user), None

    ratings_count = await session.scalar(
        select(func.count()).select_from(Rating).where(Rating.store_id == store.id)
    ) or 0
    recent = await recent_store_ratings(session, store.id, limit=RECENT_RATINGS_IN_USER_DETAIL)
    detail = OwnedStoreDetail(
        id=store.id,
        name=store.name,
        email=store.email,
        address=store.address,
        average_rating=store.average_rating,
        total_ratings=store.total_ratings,
        ratings_count=ratings_count,
        recent_ratings=recent,
    )
    return to_user_out(user, store.id), detail


async def update_user(session: AsyncSession, user_id: int, changes: UpdateUserRequest) -> User:
    """Apply a partial update.

    Raises:
        NotFound: USER_NOT_FOUND (missing users only; inactive users can be reactivated).
        Conflict: EMAIL_EXISTS if the new email belongs to another user.
    """
    user = await session.get(User, user_id)
    if user is None:
        raise NotFound("User not found", code="USER_NOT_FOUND", detail={"user_id": user_id})

    fields = changes.model_dump(exclude_unset=True, exclude_none=True)
    new_email = fields.get("email")
    if new_email and new_email != user.email:
        existing = await get_user_by_email(session, new_email)
        if existing is not None and existing.id != user.id:
            raise Conflict("Email already exists", code="EMAIL_EXISTS", detail={"email": new_email})

    for field, value in fields.items():
        setattr(user, field, value)

    try:
        await session.flush()
    except IntegrityError:
        raise Conflict("Email already exists", code="EMAIL_EXISTS", detail={"email": new_email})

    logger.info("[users] updated user_id=%s fields=%s", user.id, sorted(fields))
    return user


async def deactivate_user(session: AsyncSession, user_id: int) -> None:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFound("User not found", code="USER_NOT_FOUND", detail={"user_id": user_id})
    user.is_active = False
    await session.flush()
    logger.info("[users] deactivated user_id=%s", user_id)


async def dashboard_stats(session: AsyncSession) -> DashboardStats:
    total_users = await session.scalar(
        select(func.count()).select_from(User).where(User.is_active.is_(True))
    )
    total_stores = await session.scalar(
        select(func.count()).select_from(Store).where(Store.is_active.is_(True))
    )
    total_ratings = await session.scalar(select(func.count()).select_from(Rating))
    return DashboardStats(
        total_users=total_users or 0,
        total_stores=total_stores or 0,
        total_ratings=total_ratings or 0,
    )
