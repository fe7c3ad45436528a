from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.security import get_current_user
from models.user import User
from schemas.match import (
    LikeResponse,
    MatchStateResponse,
    MutualMatchRead,
    PendingMatchRead,
    PotentialMatchRead,
    RejectResponse,
)
from services import matching
from services.directory import hobby_ids_of, require_user
from services.notifications import dispatch_mutual_match

router = APIRouter(prefix="/matching", tags=["matching"])


@router.get(
    "/potential",
    response_model=List[PotentialMatchRead],
    summary="Кандидаты с общими хобби",
)
async def potential_matches(
    limit: Optional[int] = Query(None, ge=1, le=100, description="Сколько кандидатов вернуть"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[PotentialMatchRead]:
    return await matching.list_potential(db, current_user.id, limit)


@router.post(
    "/accept/{user_id}",
    response_model=LikeResponse,
    status_code=status.HTTP_200_OK,
    summary="Поставить лайк и узнать, образовался ли матч",
)
async def accept_match(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> LikeResponse:
    # Проверяем, что цель существует, и берём хобби обеих сторон
    await require_user(db, user_id)
    acting_hobbies = await hobby_ids_of(db, current_user.id)
    target_hobbies = await hobby_ids_of(db, user_id)

    result = await matching.like(
        db,
        current_user.id,
        user_id,
        acting_hobbies,
        target_hobbies,
        on_mutual=dispatch_mutual_match,
    )
    match = result.match

    if result.outcome is matching.LikeOutcome.ALREADY_MATCHED:
        message = "Already matched"
    elif result.is_mutual:
        message = "It's a match! 🎉"
    else:
        message = "Like sent! They'll see you in their pending matches."

    return LikeResponse(
        message=message,
        is_mutual=result.is_mutual,
        already_matched=result.outcome is matching.LikeOutcome.ALREADY_MATCHED,
        match_id=match.id,
        shared_hobbies=list(match.shared_hobbies),
        matched_at=match.matched_at,
    )


@router.post(
    "/reject/{user_id}",
    response_model=RejectResponse,
    summary="Отклонить кандидата",
)
async def reject_match(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RejectResponse:
    await require_user(db, user_id)
    await matching.reject(db, current_user.id, user_id)
    return RejectResponse()


@router.get(
    "/pending",
    response_model=List[PendingMatchRead],
    summary="Кто поставил вам лайк и ждёт ответа",
)
async def pending_matches(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[PendingMatchRead]:
    return await matching.list_pending(db, current_user.id)


@router.get(
    "/matches",
    response_model=List[MutualMatchRead],
    summary="Взаимные матчи, свежие сверху",
)
async def mutual_matches(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[MutualMatchRead]:
    return await matching.list_mutual(db, current_user.id)


@router.post(
    "/end/{user_id}",
    response_model=MatchStateResponse,
    summary="Завершить взаимный матч",
)
async def end_match(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MatchStateResponse:
    match = await matching.end_match(db, current_user.id, user_id)
    return MatchStateResponse(message="Match ended", status=match.status.value)


@router.delete(
    "/matches/{user_id}",
    response_model=MatchStateResponse,
    summary="Скрыть матч из списка (история сохраняется)",
)
async def deactivate_match(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MatchStateResponse:
    match = await matching.deactivate_match(db, current_user.id, user_id)
    return MatchStateResponse(message="Match deactivated", status=match.status.value)
