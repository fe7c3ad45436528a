import logging
from dataclasses import dataclass
from typing import List, Tuple

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.errors import AlreadyRated, InvalidScore, NoEligibleMatch, StorageUnavailable
from models.match import Match, MatchStatus
from models.rating import Rating
from schemas.rating import RatingRead, RatingSummary
from services.directory import require_user
from services.matching import compare_and_swap, find_match, storage_guard, utcnow

logger = logging.getLogger(__name__)

MIN_SCORE = 1
MAX_SCORE = 10
RATEABLE_STATUSES = (MatchStatus.MUTUAL, MatchStatus.ENDED)


@dataclass
class RatingOutcome:
    rating: Rating
    match: Match
    average_rating: float
    total_ratings: int


def validate_score(score) -> int:
    if isinstance(score, bool) or not isinstance(score, int):
        raise InvalidScore()
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise InvalidScore()
    return score


async def _eligible_match(db: AsyncSession, rater_id: int, rated_user_id: int) -> Match:
    match = None
    if rater_id != rated_user_id:
        match = await find_match(db, rater_id, rated_user_id)
    if match is None or match.status not in RATEABLE_STATUSES:
        raise NoEligibleMatch()
    return match


async def _refresh_aggregate(db: AsyncSession, rated_user_id: int) -> Tuple[float, int]:
    """Пересчитывает среднюю оценку пользователя по всем его оценкам."""
    res = await db.execute(
        select(func.avg(Rating.score), func.count(Rating.id)).where(
            Rating.rated_user_id == rated_user_id
        )
    )
    avg, total = res.one()
    average = round(float(avg or 0), 1)

    user = await require_user(db, rated_user_id)
    user.average_rating = average
    user.total_ratings = total
    return average, total


@storage_guard
async def record_rating(
    db: AsyncSession, rater_id: int, rated_user_id: int, score: int
) -> RatingOutcome:
    """
    Оценка собеседника после взаимного матча.

    В одной транзакции: отметка на матче (CAS), запись Rating и пересчёт
    средней оценки. По умолчанию матч завершается после первой же оценки
    (END_MATCH_ON_FIRST_RATING), иначе только когда оценили обе стороны.
    """
    score = validate_score(score)

    for _ in range(settings.MATCH_WRITE_RETRIES):
        match = await _eligible_match(db, rater_id, rated_user_id)
        if match.has_rated(rater_id):
            raise AlreadyRated()

        rater_is_a = match.is_user_a(rater_id)
        other_rated = match.user_b_rated if rater_is_a else match.user_a_rated
        values = {
            "user_a_rated" if rater_is_a else "user_b_rated": True,
            "last_interaction": utcnow(),
        }
        if settings.END_MATCH_ON_FIRST_RATING or other_rated:
            values["status"] = MatchStatus.ENDED

        if not await compare_and_swap(db, match, **values):
            await db.rollback()
            continue

        rating = Rating(
            rater_id=rater_id,
            rated_user_id=rated_user_id,
            match_id=match.id,
            score=score,
        )
        db.add(rating)
        await db.flush()
        average, total = await _refresh_aggregate(db, rated_user_id)
        await db.commit()
        await db.refresh(match)
        await db.refresh(rating)

        logger.info(
            "User %s rated %s with %s, match %s is %s",
            rater_id, rated_user_id, score, match.id, match.status.value,
        )
        return RatingOutcome(rating=rating, match=match, average_rating=average, total_ratings=total)

    raise StorageUnavailable("Match record is busy, try again")


async def can_rate(db: AsyncSession, rater_id: int, rated_user_id: int) -> Tuple[bool, str]:
    try:
        match = await _eligible_match(db, rater_id, rated_user_id)
    except NoEligibleMatch:
        return False, "No match found"
    if match.has_rated(rater_id):
        return False, "Already rated"
    return True, "Can rate"


async def rating_summary(db: AsyncSession, user_id: int) -> RatingSummary:
    user = await require_user(db, user_id)
    return RatingSummary(
        average_rating=user.average_rating or 0.0,
        total_ratings=user.total_ratings or 0,
    )


async def list_ratings(db: AsyncSession, user_id: int) -> List[RatingRead]:
    await require_user(db, user_id)
    res = await db.execute(
        select(Rating)
        .where(Rating.rated_user_id == user_id)
        .order_by(desc(Rating.created_at), desc(Rating.id))
    )
    output: List[RatingRead] = []
    for rating in res.scalars().all():
        rater = rating.rater
        rater_name = " ".join(
            part for part in (rater.first_name, rater.last_name) if part
        ) if rater else ""
        output.append(
            RatingRead(
                id=rating.id,
                rater_name=rater_name,
                score=rating.score,
                created_at=rating.created_at,
            )
        )
    return output
