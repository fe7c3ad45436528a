# models/rating.py
from sqlalchemy import CheckConstraint, Column, BigInteger, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .base import Base
from .user import User


class Rating(Base):
    __tablename__ = "ratings"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(BigInteger, primary_key=True, index=True)
    rater_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    rated_user_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    match_id = Column(BigInteger, ForeignKey("matches.id", ondelete="SET NULL"), nullable=True)
    score = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    rater = relationship(User, foreign_keys=[rater_id], lazy="selectin")

    __table_args__ = (
        CheckConstraint("score BETWEEN 1 AND 10", name="score_range"),
    )

    def __repr__(self):
        return f"<Rating {self.rater_id}→{self.rated_user_id} score={self.score}>"
