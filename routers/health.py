# routers/health.py
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db

router = APIRouter()
logger = logging.getLogger("uvicorn.error")


@router.get("/health", summary="Health check")
async def healthcheck(db: AsyncSession = Depends(get_db)):
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Health check: database unavailable: %s", exc)
        return {"status": "degraded", "database": "unavailable"}
    return {"status": "ok", "database": "ok"}
