import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.database import engine
from core.errors import MatchingError
from models.base import Base
from models.hobby import Hobby  # noqa: F401  регистрируем таблицы в metadata
from models.match import Match  # noqa: F401
from models.rating import Rating  # noqa: F401
from models.user import User  # noqa: F401

from routers.matching import router as matching_router
from routers.ratings import router as ratings_router
from routers.hobbies import router as hobbies_router
from routers.health import router as health_router

app = FastAPI(
    title="Hobby Match Backend",
    version="0.1.0",
    description="Матчинг пользователей по общим хобби: лайки, взаимные матчи, оценки",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],        # Или список ваших фронтенд-адресов
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger = logging.getLogger("uvicorn.error")


@app.middleware("http")
async def log_request_time(request: Request, call_next):
    start_time = time.perf_counter()
    response = await call_next(request)
    process_time = (time.perf_counter() - start_time) * 1000
    logger.info(
        f"{request.method} {request.url.path} completed in {process_time:.2f} ms"
    )
    return response


@app.exception_handler(MatchingError)
async def matching_error_handler(request: Request, exc: MatchingError):
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


app.include_router(matching_router)
app.include_router(ratings_router)
app.include_router(hobbies_router)
app.include_router(health_router)


@app.on_event("startup")
async def on_startup():
    # Сначала создаём все таблицы
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@app.get("/")
async def root():
    return {"message": "Hobby Match Backend"}


@app.on_event("shutdown")
async def shutdown():
    # Закрываем все соединения пула
    await engine.dispose()
