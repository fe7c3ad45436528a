from typing import Optional, List
from datetime import datetime

from pydantic import BaseModel, Field

from schemas.user import UserBrief


class LikeResponse(BaseModel):
    success: bool = True
    message: str
    is_mutual: bool = Field(False, description="Образовалась ли взаимная симпатия")
    already_matched: bool = Field(False, description="Матч уже был взаимным")
    match_id: Optional[int] = None
    shared_hobbies: List[int] = []
    matched_at: Optional[datetime] = None


class RejectResponse(BaseModel):
    success: bool = True
    message: str = "Match rejected"


class PotentialMatchRead(BaseModel):
    user: UserBrief
    shared_hobbies: List[int]
    shared_hobby_names: List[str]
    shared_hobby_count: int


class PendingMatchRead(BaseModel):
    id: int = Field(..., description="ID матча")
    user: UserBrief
    shared_hobbies: List[int]
    shared_hobby_names: List[str]
    liked_at: datetime


class MutualMatchRead(BaseModel):
    id: int = Field(..., description="ID матча")
    user: UserBrief
    shared_hobbies: List[int]
    shared_hobby_names: List[str]
    matched_at: Optional[datetime]
    last_interaction: datetime


class MatchStateResponse(BaseModel):
    success: bool = True
    message: str
    status: str
