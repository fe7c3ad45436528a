# utils/seed_db.py
import asyncio
import logging
import random

from sqlalchemy import select

from core.database import AsyncSessionLocal, engine
from models.base import Base
from models.hobby import Hobby
from models.match import Match  # noqa: F401
from models.rating import Rating  # noqa: F401
from models.user import User
from services import matching

log = logging.getLogger(__name__)

# Константы для семплов
NUM_USERS = 20
MAX_HOBBIES_PER_USER = 6
NUM_LIKES = 60

# Каталог хобби в порядке показа
HOBBY_CATALOGUE = [
    ("Tennis", "Sports & Fitness", "🎾"),
    ("Soccer", "Sports & Fitness", "⚽"),
    ("Basketball", "Sports & Fitness", "🏀"),
    ("Volleyball", "Sports & Fitness", "🏐"),
    ("Kayaking", "Sports & Fitness", "🛶"),
    ("Cycling", "Sports & Fitness", "🚴‍♂️"),
    ("Surfing", "Sports & Fitness", "🏄‍♂️"),
    ("Baseball", "Sports & Fitness", "⚾"),
    ("Gym", "Sports & Fitness", "💪"),
    ("Ski", "Sports & Fitness", "⛷️"),
    ("Fishing", "Sports & Fitness", "🎣"),
    ("Running", "Sports & Fitness", "🏃‍♂️"),
    ("Swimming", "Sports & Fitness", "🏊‍♂️"),
    ("Gaming", "Technology", "🎮"),
    ("Dancing", "Creative Arts", "💃"),
    ("Programming", "Technology", "💻"),
    ("Crafting", "Creative Arts", "🧶"),
    ("Painting", "Creative Arts", "🎨"),
    ("Board Games", "Social Activities", "🎲"),
    ("Photography", "Creative Arts", "📸"),
    ("Language Learning", "Learning & Education", "🗣️"),
    ("Reading", "Learning & Education", "📚"),
    ("Tea, Coffee", "Social Activities", "☕"),
    ("Cooking", "Creative Arts", "👨‍🍳"),
    ("Rock Climbing", "Sports & Fitness", "🧗‍♂️"),
    ("Hiking", "Sports & Fitness", "🏔️"),
    ("Concerts", "Music & Entertainment", "🎵"),
    ("Theater", "Music & Entertainment", "🎭"),
    ("Movies", "Music & Entertainment", "🎬"),
    ("Karaoke", "Music & Entertainment", "🎤"),
    ("Travel", "Travel & Adventure", "✈️"),
    ("Road Trips", "Travel & Adventure", "🚗"),
]

FIRST_NAMES = [
    "Alex", "Sam", "Jordan", "Taylor", "Morgan", "Casey", "Jamie", "Reese", "Drew", "Quinn",
    "Riley", "Avery", "Cameron", "Logan", "Hayden", "Peyton", "Skyler", "Dakota", "Emerson", "Kai"
]
BIO_TEMPLATES = [
    "Love hiking and outdoor adventures.",
    "Coffee fanatic and book lover.",
    "Tech enthusiast and amateur chef.",
    "Travel addict exploring the world.",
    "Music is life. Always at concerts.",
]


async def seed_hobbies(session) -> list:
    """Добавляет недостающие хобби каталога, существующие не трогает."""
    existing = {h.name: h for h in (await session.execute(select(Hobby))).scalars().all()}
    for order, (name, category, icon) in enumerate(HOBBY_CATALOGUE, start=1):
        if name in existing:
            continue
        hobby = Hobby(name=name, category=category, icon=icon, order=order)
        session.add(hobby)
        existing[name] = hobby
    await session.commit()
    return list(existing.values())


async def seed():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        hobbies = await seed_hobbies(session)
        log.info("Hobby catalogue: %s items", len(hobbies))

        # 1. Пользователи со случайными хобби
        users = []
        for i in range(NUM_USERS):
            user = User(
                email=f"user{i}_{random.randint(1000, 9999)}@example.com",
                first_name=random.choice(FIRST_NAMES),
                bio=random.choice(BIO_TEMPLATES),
                age=random.randint(18, 45),
                hobbies=random.sample(hobbies, random.randint(1, MAX_HOBBIES_PER_USER)),
            )
            session.add(user)
            users.append(user)
        await session.commit()

        # 2. Лайки через движок матчинга, часть из них станет взаимной
        hobby_sets = {u.id: [h.id for h in u.hobbies] for u in users}
        user_ids = list(hobby_sets)
        mutual = 0
        for _ in range(NUM_LIKES):
            liker_id, liked_id = random.sample(user_ids, 2)
            result = await matching.like(
                session, liker_id, liked_id, hobby_sets[liker_id], hobby_sets[liked_id]
            )
            if result.is_mutual:
                mutual += 1

    log.info("DB seeded: %s users, %s likes, %s mutual matches", NUM_USERS, NUM_LIKES, mutual)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())
