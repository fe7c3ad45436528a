from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from schemas.hobby import HobbyRead
from services.directory import list_hobbies

router = APIRouter(prefix="/hobbies", tags=["hobbies"])


@router.get(
    "/",
    response_model=List[HobbyRead],
    summary="Каталог активных хобби",
)
async def get_hobbies(db: AsyncSession = Depends(get_db)) -> List[HobbyRead]:
    hobbies = await list_hobbies(db)
    return [HobbyRead.model_validate(h) for h in hobbies]
