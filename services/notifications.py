import asyncio
import logging
from typing import Optional, Set

from aiohttp import ClientError, ClientSession, ClientTimeout

from core.config import settings
from core.database import AsyncSessionLocal
from models.user import User

logger = logging.getLogger(__name__)

MATCH_TITLE = "It's a match! 🎉"
MATCH_BODY = "You both liked each other. Start a conversation!"

_background_tasks: Set[asyncio.Task] = set()


async def send_push(token: Optional[str], title: str, body: str) -> bool:
    """
    Отправляет push через Expo Push API.
    Ошибки доставки только логируются: уведомление не должно ломать матчинг.
    """
    if not token:
        logger.debug("Push token is missing, skip notification")
        return False
    if not settings.PUSH_NOTIFICATIONS_ENABLED:
        logger.debug("Push notifications disabled, skip %s", title)
        return False

    payload = {
        "to": token,
        "sound": "default",
        "title": title,
        "body": body,
    }
    timeout = ClientTimeout(total=settings.PUSH_TIMEOUT_SECONDS)
    try:
        async with ClientSession(timeout=timeout) as session:
            async with session.post(
                settings.EXPO_PUSH_URL,
                json=payload,
                proxy=settings.PROXY or None,
            ) as resp:
                data = await resp.json(content_type=None)
    except (ClientError, asyncio.TimeoutError) as exc:
        logger.warning("Push delivery failed: %s", exc)
        return False

    result = (data or {}).get("data") or {}
    if isinstance(result, dict) and result.get("status") == "error":
        logger.error("Expo push error: %s", result)
        return False
    return True


async def notify_mutual_match(user_a_id: int, user_b_id: int) -> int:
    """Уведомляет обе стороны о взаимном матче, возвращает число доставленных push."""
    async with AsyncSessionLocal() as db:
        user_a = await db.get(User, user_a_id)
        user_b = await db.get(User, user_b_id)

    delivered = 0
    for user in (user_a, user_b):
        if user is None:
            continue
        if await send_push(user.push_token, MATCH_TITLE, MATCH_BODY):
            delivered += 1
    logger.info("Mutual match %s↔%s: %s push delivered", user_a_id, user_b_id, delivered)
    return delivered


def dispatch_mutual_match(user_a_id: int, user_b_id: int) -> None:
    """Ставит уведомление в фон, не задерживая ответ API."""
    task = asyncio.create_task(notify_mutual_match(user_a_id, user_b_id))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
