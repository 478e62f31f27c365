"""Redis implementations of ConversationStore and ProgressStore.

Conversations are kept as one JSON list per user (newest first), trimmed
to a bounded length and expiring after ``conversation_ttl`` seconds.
Progress counters live in one hash per user.
"""

import json
from datetime import datetime, timezone

import redis.asyncio as redis

from fafsa_assistant.config import get_redis_client, settings
from fafsa_assistant.entities import ChatTurn

MAX_STORED_TURNS = 500


class RedisConversationStore:
    """Redis implementation of ConversationStore protocol.

    This class satisfies the ConversationStore protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        store = RedisConversationStore.create()
        await store.append("conv-1", "user-1", turn)
        turns = await store.query("user-1", limit=10)
        ```
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        key_prefix: str | None = None,
        ttl: int | None = None,
        max_turns: int = MAX_STORED_TURNS,
    ) -> None:
        """Initialize the Redis conversation store.

        Args:
            redis_client: Redis client instance. If None, creates default.
            key_prefix: Namespace for keys. Defaults to settings.
            ttl: Expiry of a user's history in seconds. Defaults to settings.
            max_turns: Turns kept per user; older ones are trimmed.
        """
        self._client = redis_client if redis_client is not None else get_redis_client()
        self._prefix = key_prefix or settings.key_prefix
        self._ttl = ttl or settings.conversation_ttl
        self._max_turns = max_turns

    @classmethod
    def create(cls, key_prefix: str | None = None, ttl: int | None = None) -> "RedisConversationStore":
        """Factory method to create RedisConversationStore with defaults."""
        return cls(key_prefix=key_prefix, ttl=ttl)

    def _key(self, user_id: str) -> str:
        return f"{self._prefix}:conversations:{user_id}"

    async def append(self, conversation_id: str, user_id: str, turn: ChatTurn) -> None:
        key = self._key(user_id)
        payload = json.dumps({**turn.to_dict(), "conversation_id": conversation_id})

        async with self._client.pipeline(transaction=True) as pipe:
            pipe.lpush(key, payload)
            pipe.ltrim(key, 0, self._max_turns - 1)
            pipe.expire(key, self._ttl)
            await pipe.execute()

    async def query(self, user_id: str, limit: int) -> list[ChatTurn]:
        raw = await self._client.lrange(self._key(user_id), 0, limit - 1)
        return [ChatTurn.from_dict(json.loads(item)) for item in raw]

    async def clear(self, user_id: str) -> None:
        await self._client.delete(self._key(user_id))

    async def health_check(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            return bool(await self._client.ping())
        except redis.RedisError:
            return False

    async def close(self) -> None:
        await self._client.aclose()


class RedisProgressStore:
    """Redis implementation of ProgressStore protocol."""

    def __init__(self, redis_client: redis.Redis | None = None, key_prefix: str | None = None) -> None:
        self._client = redis_client if redis_client is not None else get_redis_client()
        self._prefix = key_prefix or settings.key_prefix

    @classmethod
    def create(cls, key_prefix: str | None = None) -> "RedisProgressStore":
        return cls(key_prefix=key_prefix)

    def _key(self, user_id: str) -> str:
        return f"{self._prefix}:progress:{user_id}"

    async def increment_interaction_count(self, user_id: str) -> int:
        key = self._key(user_id)
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.hincrby(key, "total_interactions", 1)
            pipe.hset(key, "updated_at", datetime.now(timezone.utc).isoformat())
            total, _ = await pipe.execute()
        return int(total)

    async def get_interaction_count(self, user_id: str) -> int:
        value = await self._client.hget(self._key(user_id), "total_interactions")
        return int(value or 0)

    async def close(self) -> None:
        await self._client.aclose()
