"""Справочники пользователей и хобби для ядра матчинга."""
from typing import Dict, FrozenSet, Iterable, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import UserNotFound
from models.hobby import Hobby, HobbyId
from models.user import User, user_hobbies


async def require_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise UserNotFound()
    return user


async def hobby_ids_of(db: AsyncSession, user_id: int) -> FrozenSet[HobbyId]:
    """Множество ID хобби пользователя."""
    res = await db.execute(
        select(user_hobbies.c.hobby_id).where(user_hobbies.c.user_id == user_id)
    )
    return frozenset(HobbyId(row[0]) for row in res.all())


async def hobby_names(db: AsyncSession, hobby_ids: Iterable[int]) -> Dict[int, str]:
    ids = set(hobby_ids)
    if not ids:
        return {}
    res = await db.execute(select(Hobby.id, Hobby.name).where(Hobby.id.in_(sorted(ids))))
    return {row[0]: row[1] for row in res.all()}


def names_for(ids: Iterable[int], names: Dict[int, str]) -> List[str]:
    # неизвестный ID показываем как есть, чтобы не терять хобби в выдаче
    return [names.get(hobby_id, str(hobby_id)) for hobby_id in ids]


async def list_hobbies(db: AsyncSession) -> List[Hobby]:
    res = await db.execute(
        select(Hobby).where(Hobby.is_active.is_(True)).order_by(Hobby.order)
    )
    return list(res.scalars().all())

