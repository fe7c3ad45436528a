"""Утилиты для преобразования моделей пользователей в схемы Pydantic."""
from collections.abc import Iterable
from typing import List

from models.user import User
from schemas.user import UserBrief


def to_user_brief(user: User) -> UserBrief:
    """Сконвертировать модель пользователя в UserBrief со списком ID хобби."""
    return UserBrief(
        user_id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        bio=user.bio,
        location=user.location,
        age=user.age,
        average_rating=user.average_rating or 0.0,
        total_ratings=user.total_ratings or 0,
        hobbies=sorted(h.id for h in user.hobbies),
        created_at=user.created_at,
    )


def to_user_briefs(users: Iterable[User]) -> List[UserBrief]:
    return [to_user_brief(user) for user in users]
