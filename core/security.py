# core/security.py
from datetime import datetime, timedelta

from fastapi import HTTPException, Depends
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status

from core.config import settings
from core.database import get_db
from models.user import User

# токены выпускает внешний сервис авторизации, здесь только проверка
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def decode_access_token(token: str) -> int:
    """
    Проверяет подпись и срок действия JWT и возвращает user_id из payload.
    Бросает HTTPException(401), если токен невалиден.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        user_id = payload.get("user_id")
        if user_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    try:
        return int(user_id)
    except (TypeError, ValueError):
        raise credentials_exception


def create_access_token(user_id: int, expires_minutes: int = 60) -> str:
    """Выпускает токен в том же формате, что и сервис авторизации (для тестов и DEBUG)."""
    expires = datetime.utcnow() + timedelta(minutes=expires_minutes)
    return jwt.encode(
        {"user_id": user_id, "exp": expires},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    user_id = decode_access_token(token)

    stmt = select(User).where(User.id == user_id)
    result = await db.execute(stmt)
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user
