"""Ошибки сервисов матчинга и рейтингов.

Сервисы бросают эти исключения, а обработчик в main.py превращает их
в JSON-ответ того же вида, что и HTTPException: {"detail": ...}.
"""
from starlette import status


class MatchingError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Matching error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class UserNotFound(MatchingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "User not found"


class SelfMatch(MatchingError):
    default_detail = "You cannot match with yourself"


class AlreadyRated(MatchingError):
    default_detail = "You have already rated this user"


class NoEligibleMatch(MatchingError):
    default_detail = "You can only rate users you have matched with"


class InvalidScore(MatchingError):
    default_detail = "Score must be between 1 and 10"


class StorageUnavailable(MatchingError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Storage is temporarily unavailable"
