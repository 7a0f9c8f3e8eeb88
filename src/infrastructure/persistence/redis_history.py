"""
infrastructure.persistence.redis_history - Durable conversation history.

One Redis list per session under "chat_history:<session_id>", one JSON
message per element. Appends push and refresh the TTL inside a single
MULTI/EXEC transaction, so a multi-message append is all-or-nothing.
Reads never touch the TTL.
"""

from __future__ import annotations

import json
import logging
from typing import Optional, Sequence

import redis.asyncio as redis
from redis.exceptions import RedisError

from domain.entities import ConversationMessage
from domain.exceptions import MemoryBackendError

logger = logging.getLogger(__name__)

KEY_PREFIX = "chat_history:"


class RedisChatHistoryStore:
    """Redis implementation of ChatHistoryStore."""

    def __init__(self, client: redis.Redis, ttl_seconds: Optional[int] = 3600):
        self.client = client
        self._ttl = ttl_seconds

    @classmethod
    def from_url(cls, url: str, ttl_seconds: Optional[int] = 3600) -> RedisChatHistoryStore:
        return cls(redis.from_url(url, decode_responses=True), ttl_seconds)

    def key(self, session_id: str) -> str:
        return f"{KEY_PREFIX}{session_id}"

    async def append(
        self, session_id: str, messages: Sequence[ConversationMessage],
    ) -> None:
        if not messages:
            return
        payload = [json.dumps(m.to_dict(), ensure_ascii=False) for m in messages]
        key = self.key(session_id)
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.rpush(key, *payload)
                if self._ttl:
                    pipe.expire(key, self._ttl)
                await pipe.execute()
        except (RedisError, OSError) as exc:
            raise MemoryBackendError(f"Could not store messages for {session_id}: {exc}") from exc

    async def list(self, session_id: str) -> list[ConversationMessage]:
        try:
            raw = await self.client.lrange(self.key(session_id), 0, -1)
        except (RedisError, OSError) as exc:
            raise MemoryBackendError(f"Could not load history for {session_id}: {exc}") from exc

        try:
            return [ConversationMessage.from_dict(json.loads(item)) for item in raw]
        except (ValueError, KeyError) as exc:
            raise MemoryBackendError(f"Corrupted history for {session_id}: {exc}") from exc

    async def clear(self, session_id: str) -> None:
        try:
            await self.client.delete(self.key(session_id))
        except (RedisError, OSError) as exc:
            raise MemoryBackendError(f"Could not clear history for {session_id}: {exc}") from exc

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except (RedisError, OSError):
            logger.warning("Redis ping failed", exc_info=True)
            return False

    async def close(self) -> None:
        await self.client.aclose()
