from typing import Optional, List
from datetime import datetime

from pydantic import BaseModel, Field


class UserBrief(BaseModel):
    """Публичная карточка пользователя в выдаче матчинга."""
    user_id: int = Field(..., description="PK в базе данных")
    first_name: Optional[str] = Field(None, description="Имя")
    last_name: Optional[str] = Field(None, description="Фамилия")
    bio: Optional[str] = Field(None, description="О себе")
    location: Optional[str] = Field(None, description="Город / район")
    age: Optional[int] = Field(None, description="Возраст")
    average_rating: float = Field(0.0, description="Средняя оценка (1-10)")
    total_ratings: int = Field(0, description="Количество оценок")
    hobbies: List[int] = Field([], description="ID хобби пользователя")
    created_at: Optional[datetime] = Field(None, description="Дата создания аккаунта")

    class Config:
        from_attributes = True
        validate_by_name = True
