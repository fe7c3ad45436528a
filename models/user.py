# models/user.py
from sqlalchemy import Column, BigInteger, DateTime, Float, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .base import Base
from .hobby import Hobby

# У пользователя набор хобби без повторов: составной первичный ключ
user_hobbies = Table(
    "user_hobbies",
    Base.metadata,
    Column("user_id", BigInteger, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("hobby_id", BigInteger, ForeignKey("hobbies.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(BigInteger, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False)

    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    bio = Column(Text, nullable=True)
    location = Column(String(128), nullable=True)
    age = Column(Integer, nullable=True)
    push_token = Column(String(255), nullable=True)

    average_rating = Column(Float, default=0.0, nullable=False)
    total_ratings = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    hobbies = relationship(Hobby, secondary=user_hobbies, lazy="selectin")

    def __repr__(self):
        return f"<User id={self.id} email={self.email}>"
