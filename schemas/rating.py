from typing import Any, List
from datetime import datetime

from pydantic import BaseModel, Field


class RatingCreate(BaseModel):
    rated_user_id: int = Field(..., description="Кого оцениваем")
    # тип и диапазон проверяет сервис, чтобы вернуть InvalidScore, а не 422
    score: Any = Field(..., description="Оценка от 1 до 10")


class RatingSubmitResponse(BaseModel):
    success: bool = True
    message: str = "Rating submitted successfully"
    average_rating: float
    match_status: str


class RatingSummary(BaseModel):
    success: bool = True
    average_rating: float
    total_ratings: int


class CanRateResponse(BaseModel):
    success: bool = True
    can_rate: bool
    reason: str


class RatingRead(BaseModel):
    id: int
    rater_name: str
    score: int
    created_at: datetime


class RatingListResponse(BaseModel):
    success: bool = True
    ratings: List[RatingRead]
