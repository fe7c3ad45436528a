# models/hobby.py
from typing import NewType

from sqlalchemy import Column, BigInteger, Boolean, DateTime, Integer, String
from sqlalchemy.sql import func

from .base import Base

# Ядро матчинга оперирует только множествами HobbyId, названия подтягиваются на границе
HobbyId = NewType("HobbyId", int)

HOBBY_CATEGORIES = (
    "Sports & Fitness",
    "Creative Arts",
    "Technology",
    "Outdoor Activities",
    "Social Activities",
    "Learning & Education",
    "Food & Cooking",
    "Music & Entertainment",
    "Travel & Adventure",
    "Other",
)


class Hobby(Base):
    __tablename__ = "hobbies"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(BigInteger, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)
    category = Column(String(64), nullable=False, default="Other")
    icon = Column(String(10), nullable=False, default="")
    description = Column(String(200), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    order = Column(Integer, unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Hobby id={self.id} name={self.name}>"
