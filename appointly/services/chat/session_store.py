# appointly/services/chat/session_store.py
"""Redis backed booking state for chat sessions"""
import json
import logging
from typing import Any, Dict, Optional

import redis.asyncio as redis

from appointly.config.redis import RedisKeys, get_redis
from appointly.config.settings import get_settings

logger = logging.getLogger(__name__)


class ChatSessionStore:
    """
    Keeps the partially collected booking fields for a chat session.

    The TTL is refreshed on every write, so an idle conversation is
    forgotten after CHAT_SESSION_TTL_SECONDS.
    """

    def __init__(self, redis_client: Optional[redis.Redis] = None, ttl_seconds: Optional[int] = None):
        self._client = redis_client
        self.ttl_seconds = ttl_seconds or get_settings().CHAT_SESSION_TTL_SECONDS

    @staticmethod
    def _key(session_id: str) -> str:
        return RedisKeys.CHAT_BOOKING_STATE.format(session_id=session_id)

    async def _run(self, fn):
        # A pooled client is opened per call and closed afterwards; an
        # injected client belongs to the caller.
        if self._client is not None:
            return await fn(self._client)

        redis_client = await get_redis()
        try:
            return await fn(redis_client)
        finally:
            await redis_client.close()

    async def get(self, session_id: str) -> Dict[str, Any]:
        async def _get(client):
            raw = await client.get(self._key(session_id))
            if not raw:
                return {}
            try:
                return json.loads(raw)
            except json.JSONDecodeError:
                logger.warning(f"Discarding unreadable chat state for session {session_id}")
                return {}

        return await self._run(_get)

    async def merge(self, session_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Overlay non-empty fields onto the stored state and return the result"""
        state = await self.get(session_id)
        state.update({k: v for k, v in fields.items() if v not in (None, "")})

        async def _set(client):
            await client.setex(self._key(session_id), self.ttl_seconds, json.dumps(state))

        await self._run(_set)
        return state

    async def clear(self, session_id: str) -> None:
        async def _delete(client):
            await client.delete(self._key(session_id))

        await self._run(_delete)
        logger.info(f"Cleared chat booking state for session {session_id}")
