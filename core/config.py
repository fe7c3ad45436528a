from typing import Optional

from pydantic.v1 import BaseSettings


class Settings(BaseSettings):

    DATABASE_URL: str = "sqlite+aiosqlite:///./hobbymatch.db"
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"

    EXPO_PUSH_URL: str = "https://exp.host/--/api/v2/push/send"
    PUSH_NOTIFICATIONS_ENABLED: bool = True
    PUSH_TIMEOUT_SECONDS: float = 5.0
    PROXY: Optional[str] = None

    # сколько раз повторяем CAS-запись матча при конкурентном обновлении
    MATCH_WRITE_RETRIES: int = 5
    END_MATCH_ON_FIRST_RATING: bool = True
    POTENTIAL_MATCHES_LIMIT: int = 10

    DEBUG: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Создаём глобальный объект, который будем импортировать везде
settings = Settings()
