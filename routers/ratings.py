from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.security import get_current_user
from models.user import User
from schemas.rating import (
    CanRateResponse,
    RatingCreate,
    RatingListResponse,
    RatingSubmitResponse,
    RatingSummary,
)
from services import ratings

router = APIRouter(prefix="/ratings", tags=["ratings"])


@router.post(
    "/submit",
    response_model=RatingSubmitResponse,
    summary="Оценить пользователя после взаимного матча",
)
async def submit_rating(
    payload: RatingCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RatingSubmitResponse:
    outcome = await ratings.record_rating(
        db, current_user.id, payload.rated_user_id, payload.score
    )
    return RatingSubmitResponse(
        average_rating=outcome.average_rating,
        match_status=outcome.match.status.value,
    )


@router.get(
    "/user/{user_id}",
    response_model=RatingSummary,
    summary="Средняя оценка пользователя",
)
async def user_rating(
    user_id: int,
    db: AsyncSession = Depends(get_db),
) -> RatingSummary:
    return await ratings.rating_summary(db, user_id)


@router.get(
    "/can-rate/{user_id}",
    response_model=CanRateResponse,
    summary="Можно ли оценить пользователя",
)
async def can_rate(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CanRateResponse:
    allowed, reason = await ratings.can_rate(db, current_user.id, user_id)
    return CanRateResponse(can_rate=allowed, reason=reason)


@router.get(
    "/user/{user_id}/all",
    response_model=RatingListResponse,
    summary="Все оценки пользователя",
)
async def user_ratings(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RatingListResponse:
    return RatingListResponse(ratings=await ratings.list_ratings(db, user_id))
