# models/match.py
import enum
from typing import Set, Tuple

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    BigInteger,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    JSON,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .base import Base
from .user import User


class MatchStatus(str, enum.Enum):
    PENDING = "pending"
    MUTUAL = "mutual"
    REJECTED = "rejected"
    ENDED = "ended"


def canonical_pair(first_id: int, second_id: int) -> Tuple[int, int]:
    """Неупорядоченная пара пользователей -> (меньший id, больший id)."""
    u1, u2 = sorted([first_id, second_id])
    return u1, u2


class Match(Base):
    __tablename__ = "matches"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(BigInteger, primary_key=True, index=True)
    user_a_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_b_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    user_a_liked = Column(Boolean, default=False, nullable=False)
    user_b_liked = Column(Boolean, default=False, nullable=False)
    # снимок пересечения хобби на момент создания
    shared_hobbies = Column(JSON, default=list, nullable=False)

    status = Column(
        Enum(
            MatchStatus,
            name="match_status",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        default=MatchStatus.PENDING,
        nullable=False,
    )
    matched_at = Column(DateTime(timezone=True), nullable=True)
    last_interaction = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    user_a_rated = Column(Boolean, default=False, nullable=False)
    user_b_rated = Column(Boolean, default=False, nullable=False)

    version = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user_a = relationship(User, foreign_keys=[user_a_id], lazy="selectin")
    user_b = relationship(User, foreign_keys=[user_b_id], lazy="selectin")

    __table_args__ = (
        UniqueConstraint("user_a_id", "user_b_id", name="uq_matches_pair"),
        CheckConstraint("user_a_id < user_b_id", name="pair_order"),
        Index("idx_matches_user_a", "user_a_id"),
        Index("idx_matches_user_b", "user_b_id"),
    )

    @property
    def liked_by(self) -> Set[int]:
        liked = set()
        if self.user_a_liked:
            liked.add(self.user_a_id)
        if self.user_b_liked:
            liked.add(self.user_b_id)
        return liked

    def is_user_a(self, user_id: int) -> bool:
        if user_id == self.user_a_id:
            return True
        if user_id == self.user_b_id:
            return False
        raise ValueError(f"User {user_id} is not part of match {self.id}")

    def other_user_id(self, user_id: int) -> int:
        return self.user_b_id if self.is_user_a(user_id) else self.user_a_id

    def has_rated(self, user_id: int) -> bool:
        return self.user_a_rated if self.is_user_a(user_id) else self.user_b_rated

    def __repr__(self):
        return f"<Match {self.user_a_id}↔{self.user_b_id} {self.status}>"
