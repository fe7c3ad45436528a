import asyncio

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from models.base import Base
from models.hobby import Hobby
from models.match import Match  # noqa: F401
from models.rating import Rating  # noqa: F401
from models.user import User

ALICE, BOB, CAROL, DAVE = 10, 20, 30, 40
TENNIS, HIKING, CHESS = 101, 102, 103

HOBBIES = {
    TENNIS: ("Tennis", "Sports & Fitness", "🎾"),
    HIKING: ("Hiking", "Outdoor Activities", "🏔️"),
    CHESS: ("Chess", "Social Activities", "♟️"),
}

# id -> (имя, хобби, push token)
USERS = {
    ALICE: ("Alice", [TENNIS, HIKING], "ExponentPushToken[alice]"),
    BOB: ("Bob", [HIKING, CHESS], None),
    CAROL: ("Carol", [CHESS], None),
    DAVE: ("Dave", [], None),
}


async def _seed(factory):
    async with factory() as db:
        hobbies = {}
        for order, (hobby_id, (name, category, icon)) in enumerate(HOBBIES.items(), start=1):
            hobbies[hobby_id] = Hobby(id=hobby_id, name=name, category=category, icon=icon, order=order)
            db.add(hobbies[hobby_id])
        for user_id, (name, hobby_ids, push_token) in USERS.items():
            db.add(
                User(
                    id=user_id,
                    email=f"{name.lower()}@example.com",
                    first_name=name,
                    push_token=push_token,
                    hobbies=[hobbies[h] for h in hobby_ids],
                )
            )
        await db.commit()


@pytest.fixture
def db_factory(tmp_path):
    """Фабрика сессий над временной SQLite-базой с тестовыми пользователями и хобби."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )
    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    async def setup():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await _seed(factory)

    asyncio.run(setup())
    try:
        yield factory
    finally:
        asyncio.run(engine.dispose())
