"""Rating endpoints (/v1/ratings).

Only normal users write ratings; every write recomputes the store's
average-rating counter in the same transaction.
"""

from fastapi import APIRouter, Depends, Path, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ratings_api.models import User
from ratings_api.routes.deps import (
    db_session,
    get_current_user,
    require_admin,
    require_admin_or_owner,
    require_normal_user,
)
from ratings_api.schemas.common import MessageResponse
from ratings_api.schemas.ratings import (
    MyRatingsResponse,
    RatingResponse,
    RatingStatsResponse,
    StoreRatingsResponse,
    SubmitRatingRequest,
    UpdateRatingRequest,
    UserStoreRatingResponse,
)
from ratings_api.services import ratings as rating_service

router = APIRouter()


@router.post(
    "",
    response_model=RatingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={200: {"model": RatingResponse, "description": "Existing rating replaced"}},
)
async def submit_rating(
    request: SubmitRatingRequest,
    response: Response,
    user: User = Depends(require_normal_user),
    session: AsyncSession = Depends(db_session),
) -> RatingResponse:
    """Submit a rating, or replace the caller's existing rating for the store."""
    rating, created = await rating_service.submit_rating(
        session,
        user,
        store_id=request.store_id,
        score=request.rating,
        comment=request.comment,
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return RatingResponse(
        message="Rating submitted successfully" if created else "Rating updated successfully",
        rating=rating_service.rating_out(rating),
    )


@router.get("/me", response_model=MyRatingsResponse)
async def my_ratings(
    user: User = Depends(require_normal_user),
    session: AsyncSession = Depends(db_session),
) -> MyRatingsResponse:
    ratings = await rating_service.list_user_ratings(session, user)
    return MyRatingsResponse(
        message="User ratings retrieved successfully",
        ratings=ratings,
        total_ratings=len(ratings),
    )


@router.get("/stats/overview", response_model=RatingStatsResponse)
async def rating_stats(
    _admin: User = Depends(require_admin),
    session: AsyncSession = Depends(db_session),
) -> RatingStatsResponse:
    return RatingStatsResponse(
        message="Rating statistics retrieved successfully",
        stats=await rating_service.rating_stats(session),
    )


@router.get("/store/{store_id}/user", response_model=UserStoreRatingResponse)
async def my_rating_for_store(
    store_id: int = Path(ge=1),
    user: User = Depends(require_normal_user),
    session: AsyncSession = Depends(db_session),
) -> UserStoreRatingResponse:
    return UserStoreRatingResponse(
        message="Rating retrieved successfully",
        rating=await rating_service.get_user_rating_for_store(session, user, store_id),
    )


@router.get("/store/{store_id}", response_model=StoreRatingsResponse)
async def store_ratings(
    store_id: int = Path(ge=1),
    user: User = Depends(require_admin_or_owner),
    session: AsyncSession = Depends(db_session),
) -> StoreRatingsResponse:
    ratings = await rating_service.list_store_ratings(session, user, store_id)
    return StoreRatingsResponse(
        message="Store ratings retrieved successfully",
        ratings=ratings,
        total_ratings=len(ratings),
    )


@router.put("/{rating_id}", response_model=RatingResponse)
async def update_rating(
    request: UpdateRatingRequest,
    rating_id: int = Path(ge=1),
    user: User = Depends(require_normal_user),
    session: AsyncSession = Depends(db_session),
) -> RatingResponse:
    rating = await rating_service.update_rating(session, user, rating_id, request)
    return RatingResponse(message="Rating updated successfully", rating=rating_service.rating_out(rating))


@router.delete("/{rating_id}", response_model=MessageResponse)
async def delete_rating(
    rating_id: int = Path(ge=1),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> MessageResponse:
    await rating_service.delete_rating(session, user, rating_id)
    return MessageResponse(message="Rating deleted successfully")
