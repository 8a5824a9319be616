"""Ratings and the per-store average-rating counter.

Every rating write (insert, update, delete) is followed, in the same
session/transaction, by recompute_store_rating(), which re-runs one
aggregation over the store's ratings:

    average_rating = round_half_up(avg(rating), 1)
    total_ratings  = count(*)

A store with no ratings has average 0.0 and total 0.
"""

from decimal import ROUND_HALF_UP, Decimal
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ratings_api.models import Rating, Store, User, UserRole
from ratings_api.models.rating import MAX_RATING, MIN_RATING
from ratings_api.schemas.ratings import (
    RaterSummary,
    RatingOut,
    RatingStats,
    RatingWithRater,
    RatingWithStore,
    StoreSummary,
    TopStore,
    UpdateRatingRequest,
)
from ratings_api.services.errors import Conflict, NotFound, PermissionDenied

logger = logging.getLogger("uvicorn.error")

TOP_STORES_LIMIT = 10


def round_rating(value: float | Decimal | None) -> float:
    """Round an average to one decimal, halves away from zero (4.25 -> 4.3)."""
    if value is None:
        return 0.0
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def empty_distribution() -> dict[str, int]:
    return {str(score): 0 for score in range(MAX_RATING, MIN_RATING - 1, -1)}


def rating_out(rating: Rating) -> RatingOut:
    return RatingOut(
        id=rating.id,
        user_id=rating.user_id,
        store_id=rating.store_id,
        rating=rating.rating,
        comment=rating.comment,
        created_at=rating.created_at,
        updated_at=rating.updated_at,
    )


def rating_with_rater(rating: Rating, *, include_address: bool = False) -> RatingWithRater:
    """Serialize a rating with its author; rating.user must be loaded."""
    return RatingWithRater(
        id=rating.id,
        user_id=rating.user_id,
        store_id=rating.store_id,
        rating=rating.rating,
        comment=rating.comment,
        created_at=rating.created_at,
        updated_at=rating.updated_at,
        user=RaterSummary(
            id=rating.user.id,
            name=rating.user.name,
            email=rating.user.email,
            address=rating.user.address if include_address else None,
        ),
    )


def store_summary(store: Store) -> StoreSummary:
    return StoreSummary(
        id=store.id,
        name=store.name,
        email=store.email,
        address=store.address,
        average_rating=store.average_rating,
        total_ratings=store.total_ratings,
    )


def rating_with_store(rating: Rating) -> RatingWithStore:
    """Serialize a rating with its store; rating.store must be loaded."""
    return RatingWithStore(
        **rating_out(rating).model_dump(),
        store=store_summary(rating.store),
    )


# ============================================================
# Average-rating counter
# ============================================================


async def recompute_store_rating(session: AsyncSession, store_id: int) -> Store | None:
    """Recompute the denormalized average/count for one store.

    Must run in the same session as the rating write so both commit together.
    """
    row = (
        await session.execute(
            select(func.avg(Rating.rating), func.count(Rating.id)).where(Rating.store_id == store_id)
        )
    ).one()
    avg_value, count_value = row

    store = await session.get(Store, store_id)
    if store is None:
        return None

    store.total_ratings = int(count_value or 0)
    store.average_rating = round_rating(avg_value) if store.total_ratings else 0.0
    await session.flush()

    logger.info(
        "[ratings] recomputed store_id=%s average=%.1f total=%s",
        store_id,
        store.average_rating,
        store.total_ratings,
    )
    return store


async def rating_distribution(session: AsyncSession, store_id: int | None = None) -> dict[str, int]:
    """Count ratings per score ("5".."1"); all stores when store_id is None."""
    query = select(Rating.rating, func.count(Rating.id)).group_by(Rating.rating)
    if store_id is not None:
        query = query.where(Rating.store_id == store_id)
    distribution = empty_distribution()
    for score, count in (await session.execute(query)).all():
        distribution[str(score)] = int(count)
    return distribution


# ============================================================
# Rating operations
# ============================================================


async def _get_rateable_store(session: AsyncSession, store_id: int) -> Store:
    store = await session.get(Store, store_id)
    if store is None or not store.is_active:
        raise NotFound("Store not found", code="STORE_NOT_FOUND", detail={"store_id": store_id})
    return store


async def _get_rating(session: AsyncSession, rating_id: int) -> Rating:
    rating = await session.get(Rating, rating_id)
    if rating is None:
        raise NotFound("Rating not found", code="RATING_NOT_FOUND", detail={"rating_id": rating_id})
    return rating


async def _find_user_rating(session: AsyncSession, user_id: int, store_id: int) -> Rating | None:
    result = await session.execute(
        select(Rating).where(Rating.user_id == user_id, Rating.store_id == store_id)
    )
    return result.scalar_one_or_none()


async def submit_rating(
    session: AsyncSession,
    user: User,
    *,
    store_id: int,
    score: int,
    comment: str = "",
) -> tuple[Rating, bool]:
    """Create the user's rating for a store, or replace it if one exists.

    Returns:
        (rating, created) where created is False when an existing rating was updated.
    """
    await _get_rateable_store(session, store_id)

    rating = await _find_user_rating(session, user.id, store_id)
    created = rating is None

    if rating is None:
        rating = Rating(user_id=user.id, store_id=store_id, rating=score, comment=comment)
        session.add(rating)
        try:
            await session.flush()
        except IntegrityError:
            # Concurrent submit by the same user won the unique (user_id, store_id) race.
            raise Conflict(
                "Rating already exists for this store",
                code="RATING_EXISTS",
                detail={"store_id": store_id},
            )
    else:
        rating.rating = score
        rating.comment = comment

    await recompute_store_rating(session, store_id)
    logger.info(
        "[ratings] %s rating_id=%s user_id=%s store_id=%s score=%s",
        "created" if created else "replaced",
        rating.id,
        user.id,
        store_id,
        score,
    )
    return rating, created


async def get_user_rating_for_store(session: AsyncSession, user: User, store_id: int) -> RatingWithStore:
    result = await session.execute(
        select(Rating)
        .options(selectinload(Rating.store))
        .where(Rating.user_id == user.id, Rating.store_id == store_id)
    )
    rating = result.scalar_one_or_none()
    if rating is None:
        raise NotFound("No rating found for this store", code="RATING_NOT_FOUND", detail={"store_id": store_id})
    return rating_with_store(rating)


async def list_store_ratings(session: AsyncSession, viewer: User, store_id: int) -> list[RatingWithRater]:
    """All ratings of a store, newest first (admins and the owning store owner)."""
    store = await session.get(Store, store_id)
    if store is None:
        raise NotFound("Store not found", code="STORE_NOT_FOUND", detail={"store_id": store_id})
    if viewer.role == UserRole.STORE_OWNER and store.owner_id != viewer.id:
        raise PermissionDenied(
            "Access denied. You can only view ratings for your own store.",
            code="ACCESS_DENIED",
        )
    return await recent_store_ratings(session, store_id)


async def recent_store_ratings(
    session: AsyncSession,
    store_id: int,
    *,
    limit: int | None = None,
    include_address: bool = False,
) -> list[RatingWithRater]:
    query = (
        select(Rating)
        .options(selectinload(Rating.user))
        .where(Rating.store_id == store_id)
        .order_by(Rating.created_at.desc(), Rating.id.desc())
    )
    if limit is not None:
        query = query.limit(limit)
    result = await session.execute(query)
    return [rating_with_rater(r, include_address=include_address) for r in result.scalars().all()]


async def list_user_ratings(session: AsyncSession, user: User) -> list[RatingWithStore]:
    """The user's own ratings, newest first, each with a store summary."""
    result = await session.execute(
        select(Rating)
        .options(selectinload(Rating.store))
        .where(Rating.user_id == user.id)
        .order_by(Rating.created_at.desc(), Rating.id.desc())
    )
    return [rating_with_store(r) for r in result.scalars().all()]


async def update_rating(
    session: AsyncSession,
    user: User,
    rating_id: int,
    changes: UpdateRatingRequest,
) -> Rating:
    rating = await _get_rating(session, rating_id)
    if rating.user_id != user.id:
        raise PermissionDenied("Access denied. You can only update your own ratings.", code="ACCESS_DENIED")
    await _get_rateable_store(session, rating.store_id)

    if changes.rating is not None:
        rating.rating = changes.rating
    if changes.comment is not None:
        rating.comment = changes.comment

    await recompute_store_rating(session, rating.store_id)
    logger.info("[ratings] updated rating_id=%s user_id=%s", rating.id, user.id)
    return rating


async def delete_rating(session: AsyncSession, viewer: User, rating_id: int) -> None:
    """Delete a rating: its author (role user) or any admin."""
    rating = await _get_rating(session, rating_id)
    can_delete = viewer.role == UserRole.ADMIN or (
        viewer.role == UserRole.USER and rating.user_id == viewer.id
    )
    if not can_delete:
        raise PermissionDenied("Access denied. You can only delete your own ratings.", code="ACCESS_DENIED")

    store_id = rating.store_id
    await session.delete(rating)
    await session.flush()
    await recompute_store_rating(session, store_id)
    logger.info("[ratings] deleted rating_id=%s by user_id=%s", rating_id, viewer.id)


async def rating_stats(session: AsyncSession) -> RatingStats:
    """Platform-wide overview for admins."""
    avg_value, total = (
        await session.execute(select(func.avg(Rating.rating), func.count(Rating.id)))
    ).one()

    result = await session.execute(
        select(Store)
        .where(Store.is_active.is_(True))
        .order_by(Store.average_rating.desc(), Store.total_ratings.desc(), Store.id.asc())
        .limit(TOP_STORES_LIMIT)
    )
    top_stores = [
        TopStore(id=s.id, name=s.name, average_rating=s.average_rating, total_ratings=s.total_ratings)
        for s in result.scalars().all()
    ]

    return RatingStats(
        total_ratings=int(total or 0),
        overall_average_rating=round_rating(avg_value) if total else 0.0,
        rating_distribution=await rating_distribution(session),
        top_stores=top_stores,
    )
