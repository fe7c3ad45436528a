"""
Сверка лайков и матчей между двумя пользователями.

Запись Match одна на неупорядоченную пару (user_a_id < user_b_id).
Каждое изменение делается через compare-and-swap по колонке version:
UPDATE ... WHERE id = :id AND version = :seen. Если строку успел изменить
другой запрос, перечитываем запись и принимаем решение заново. Гонку при
создании решает уникальный индекс пары: проигравший INSERT получает
IntegrityError и повторяет попытку уже с существующей записью.
"""
import enum
import functools
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from sqlalchemy import and_, desc, func, or_, select, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.errors import NoEligibleMatch, SelfMatch, StorageUnavailable
from models.hobby import HobbyId
from models.match import Match, MatchStatus, canonical_pair
from models.user import User, user_hobbies
from schemas.match import MutualMatchRead, PendingMatchRead, PotentialMatchRead
from services.directory import hobby_ids_of, hobby_names, names_for
from utils.user_helpers import to_user_brief

logger = logging.getLogger(__name__)

# вызывается ровно один раз на каждый переход pending -> mutual
MutualCallback = Callable[[int, int], None]


class LikeOutcome(str, enum.Enum):
    LIKED = "liked"
    MUTUAL = "mutual"
    ALREADY_MATCHED = "already_matched"


@dataclass
class LikeResult:
    outcome: LikeOutcome
    match: Match

    @property
    def is_mutual(self) -> bool:
        return self.outcome is LikeOutcome.MUTUAL


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def shared_hobbies_of(first: Iterable[HobbyId], second: Iterable[HobbyId]) -> List[int]:
    return sorted(set(first) & set(second))


def storage_guard(func):
    """Ошибки соединения с БД наружу отдаём как StorageUnavailable."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except (OperationalError, InterfaceError) as exc:
            logger.exception("Storage failure in %s", func.__name__)
            raise StorageUnavailable() from exc

    return wrapper


def _match_busy() -> StorageUnavailable:
    return StorageUnavailable("Match record is busy, try again")


async def find_match(db: AsyncSession, first_id: int, second_id: int) -> Optional[Match]:
    user_a_id, user_b_id = canonical_pair(first_id, second_id)
    res = await db.execute(
        select(Match)
        .where(Match.user_a_id == user_a_id, Match.user_b_id == user_b_id)
        .execution_options(populate_existing=True)
    )
    return res.scalar_one_or_none()


async def compare_and_swap(db: AsyncSession, match: Match, **values) -> bool:
    """
    Обновляет запись, только если её version не изменилась с момента чтения.
    Не коммитит: при False вызывающий делает rollback и перечитывает запись.
    """
    values["version"] = match.version + 1
    res = await db.execute(
        update(Match)
        .where(Match.id == match.id, Match.version == match.version)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount == 1:
        return True
    logger.debug("CAS conflict on match %s (version %s)", match.id, match.version)
    return False


async def _create(db: AsyncSession, match: Match) -> bool:
    db.add(match)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.debug("Match %s↔%s created concurrently", match.user_a_id, match.user_b_id)
        return False
    await db.refresh(match)
    return True


async def _swap_and_commit(db: AsyncSession, match: Match, **values) -> bool:
    if not await compare_and_swap(db, match, **values):
        await db.rollback()
        return False
    await db.commit()
    await db.refresh(match)
    return True


@storage_guard
async def like(
    db: AsyncSession,
    acting_user_id: int,
    target_user_id: int,
    acting_hobbies: Iterable[HobbyId],
    target_hobbies: Iterable[HobbyId],
    on_mutual: Optional[MutualCallback] = None,
) -> LikeResult:
    if acting_user_id == target_user_id:
        raise SelfMatch()

    user_a_id, user_b_id = canonical_pair(acting_user_id, target_user_id)
    acting_is_a = acting_user_id == user_a_id
    liked_column = "user_a_liked" if acting_is_a else "user_b_liked"
    acting_hobbies = frozenset(acting_hobbies)
    target_hobbies = frozenset(target_hobbies)

    for _ in range(settings.MATCH_WRITE_RETRIES):
        match = await find_match(db, acting_user_id, target_user_id)
        now = utcnow()

        # 1) Записи нет: создаём pending с лайком от текущего пользователя
        if match is None:
            match = Match(
                user_a_id=user_a_id,
                user_b_id=user_b_id,
                user_a_liked=acting_is_a,
                user_b_liked=not acting_is_a,
                shared_hobbies=shared_hobbies_of(acting_hobbies, target_hobbies),
                status=MatchStatus.PENDING,
                last_interaction=now,
                version=1,
            )
            if not await _create(db, match):
                continue
            return LikeResult(LikeOutcome.LIKED, match)

        # 2) Уже взаимно (или матч завершён): ничего не меняем
        if match.status in (MatchStatus.MUTUAL, MatchStatus.ENDED):
            return LikeResult(LikeOutcome.ALREADY_MATCHED, match)

        # 3) Вторая сторона уже лайкнула: взаимный матч
        if target_user_id in match.liked_by:
            swapped = await _swap_and_commit(
                db,
                match,
                status=MatchStatus.MUTUAL,
                matched_at=now,
                last_interaction=now,
                **{liked_column: True},
            )
            if not swapped:
                continue
            logger.info("Mutual match %s↔%s", match.user_a_id, match.user_b_id)
            if on_mutual is not None:
                on_mutual(match.user_a_id, match.user_b_id)
            return LikeResult(LikeOutcome.MUTUAL, match)

        # 4) Повторный лайк той же стороны идемпотентен
        if acting_user_id in match.liked_by:
            return LikeResult(LikeOutcome.LIKED, match)

        if not await _swap_and_commit(db, match, last_interaction=now, **{liked_column: True}):
            continue
        return LikeResult(LikeOutcome.LIKED, match)

    raise _match_busy()


@storage_guard
async def reject(db: AsyncSession, acting_user_id: int, target_user_id: int) -> Match:
    """
    Переводит матч пары в rejected, создавая запись при необходимости.
    Перезаписывает любой предыдущий статус, включая mutual; liked_by не трогает.
    """
    if acting_user_id == target_user_id:
        raise SelfMatch()

    user_a_id, user_b_id = canonical_pair(acting_user_id, target_user_id)
    for _ in range(settings.MATCH_WRITE_RETRIES):
        match = await find_match(db, acting_user_id, target_user_id)
        now = utcnow()
        if match is None:
            match = Match(
                user_a_id=user_a_id,
                user_b_id=user_b_id,
                shared_hobbies=[],
                status=MatchStatus.REJECTED,
                last_interaction=now,
                version=1,
            )
            if await _create(db, match):
                return match
            continue

        if await _swap_and_commit(db, match, status=MatchStatus.REJECTED, last_interaction=now):
            logger.info("Match %s↔%s rejected by %s", user_a_id, user_b_id, acting_user_id)
            return match

    raise _match_busy()


@storage_guard
async def end_match(db: AsyncSession, user_id: int, other_user_id: int) -> Match:
    """Явное завершение взаимного матча: mutual -> ended."""
    for _ in range(settings.MATCH_WRITE_RETRIES):
        match = await find_match(db, user_id, other_user_id)
        if match is None or match.status != MatchStatus.MUTUAL:
            raise NoEligibleMatch("No mutual match to end")
        if await _swap_and_commit(db, match, status=MatchStatus.ENDED, last_interaction=utcnow()):
            return match
    raise _match_busy()


@storage_guard
async def deactivate_match(db: AsyncSession, user_id: int, other_user_id: int) -> Match:
    """Скрывает матч из списков, запись остаётся в истории."""
    for _ in range(settings.MATCH_WRITE_RETRIES):
        match = await find_match(db, user_id, other_user_id)
        if match is None:
            raise NoEligibleMatch("No match found")
        if not match.is_active:
            return match
        if await _swap_and_commit(db, match, is_active=False, last_interaction=utcnow()):
            return match
    raise _match_busy()


def _involving(user_id: int):
    return or_(Match.user_a_id == user_id, Match.user_b_id == user_id)


@storage_guard
async def list_pending(db: AsyncSession, user_id: int) -> List[PendingMatchRead]:
    """Кто лайкнул пользователя, а он ещё не ответил."""
    res = await db.execute(
        select(Match)
        .where(
            Match.status == MatchStatus.PENDING,
            or_(
                and_(
                    Match.user_a_id == user_id,
                    Match.user_b_liked.is_(True),
                    Match.user_a_liked.is_(False),
                ),
                and_(
                    Match.user_b_id == user_id,
                    Match.user_a_liked.is_(True),
                    Match.user_b_liked.is_(False),
                ),
            ),
        )
        .order_by(desc(Match.last_interaction))
    )
    matches = res.scalars().all()

    names = await hobby_names(db, {h for m in matches for h in m.shared_hobbies})
    output: List[PendingMatchRead] = []
    for match in matches:
        other = match.user_b if match.is_user_a(user_id) else match.user_a
        output.append(
            PendingMatchRead(
                id=match.id,
                user=to_user_brief(other),
                shared_hobbies=list(match.shared_hobbies),
                shared_hobby_names=names_for(match.shared_hobbies, names),
                liked_at=match.last_interaction,
            )
        )
    return output


@storage_guard
async def list_mutual(db: AsyncSession, user_id: int) -> List[MutualMatchRead]:
    res = await db.execute(
        select(Match)
        .where(
            _involving(user_id),
            Match.status == MatchStatus.MUTUAL,
            Match.is_active.is_(True),
        )
        .order_by(desc(Match.last_interaction))
    )
    matches = res.scalars().all()

    names = await hobby_names(db, {h for m in matches for h in m.shared_hobbies})
    output: List[MutualMatchRead] = []
    for match in matches:
        other = match.user_b if match.is_user_a(user_id) else match.user_a
        output.append(
            MutualMatchRead(
                id=match.id,
                user=to_user_brief(other),
                shared_hobbies=list(match.shared_hobbies),
                shared_hobby_names=names_for(match.shared_hobbies, names),
                matched_at=match.matched_at,
                last_interaction=match.last_interaction,
            )
        )
    return output


@storage_guard
async def list_potential(
    db: AsyncSession, user_id: int, limit: Optional[int] = None
) -> List[PotentialMatchRead]:
    """Кандидаты с общими хобби, без тех, с кем матч отклонён. Чем больше общих хобби, тем выше."""
    limit = limit or settings.POTENTIAL_MATCHES_LIMIT
    my_hobbies = await hobby_ids_of(db, user_id)
    if not my_hobbies:
        return []

    res = await db.execute(
        select(Match.user_a_id, Match.user_b_id).where(
            _involving(user_id), Match.status == MatchStatus.REJECTED
        )
    )
    rejected_ids = {a if b == user_id else b for a, b in res.all()}

    shared_count = func.count(user_hobbies.c.hobby_id).label("shared_count")
    stmt = (
        select(user_hobbies.c.user_id, shared_count)
        .where(
            user_hobbies.c.hobby_id.in_(sorted(my_hobbies)),
            user_hobbies.c.user_id != user_id,
        )
        .group_by(user_hobbies.c.user_id)
        .order_by(desc(shared_count), user_hobbies.c.user_id)
        .limit(limit)
    )
    if rejected_ids:
        stmt = stmt.where(user_hobbies.c.user_id.notin_(sorted(rejected_ids)))
    candidate_ids = [row[0] for row in (await db.execute(stmt)).all()]
    if not candidate_ids:
        return []

    res = await db.execute(select(User).where(User.id.in_(candidate_ids)))
    users = {u.id: u for u in res.scalars().all()}

    shared_by_user = {
        uid: shared_hobbies_of(my_hobbies, (h.id for h in users[uid].hobbies))
        for uid in candidate_ids
        if uid in users
    }
    names = await hobby_names(db, {h for ids in shared_by_user.values() for h in ids})

    output: List[PotentialMatchRead] = []
    for uid in candidate_ids:
        if uid not in users:
            continue
        shared = shared_by_user[uid]
        output.append(
            PotentialMatchRead(
                user=to_user_brief(users[uid]),
                shared_hobbies=shared,
                shared_hobby_names=names_for(shared, names),
                shared_hobby_count=len(shared),
            )
        )
    return output
