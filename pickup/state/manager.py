"""Redis-based state manager for order documents and their indices."""

import json
from typing import Any

import redis.asyncio as redis
from redis.asyncio.client import Pipeline

from pickup.config import get_settings
from pickup.utils.logging import get_logger

logger = get_logger(__name__)


class StateManager:
    """Centralized state management using Redis."""

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        settings = get_settings()
        self.redis_client: redis.Redis | None = redis_client
        self.redis_url = settings.redis_url

    async def connect(self) -> None:
        """Establish Redis connection."""
        if self.redis_client is None:
            self.redis_client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            logger.info("redis_connected", url=self.redis_url)

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.redis_client:
            await self.redis_client.aclose()
            self.redis_client = None
            logger.info("redis_disconnected")

    async def client(self) -> redis.Redis:
        if not self.redis_client:
            await self.connect()
        return self.redis_client

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Set a value in Redis with optional TTL."""
        client = await self.client()

        if isinstance(value, (dict, list)):
            value = json.dumps(value)

        await client.set(key, value, ex=ttl)
        logger.debug("state_set", key=key, ttl=ttl)

    async def get(self, key: str) -> Any:
        """Get a value from Redis."""
        client = await self.client()

        value = await client.get(key)

        if value:
            try:
                return json.loads(value)
            except (json.JSONDecodeError, TypeError):
                return value

        return None

    async def get_many(self, keys: list[str]) -> list[Any]:
        """Get several JSON values in one round trip."""
        if not keys:
            return []
        client = await self.client()

        values = await client.mget(keys)
        return [json.loads(value) if value else None for value in values]

    async def delete(self, *keys: str) -> None:
        """Delete keys from Redis."""
        client = await self.client()

        await client.delete(*keys)
        logger.debug("state_deleted", keys=keys)

    async def smembers(self, key: str) -> "set[str]":
        """Get all members of a set."""
        client = await self.client()

        return set(await client.smembers(key))

    async def scan_keys(self, pattern: str) -> list[str]:
        """Collect keys matching a pattern without blocking the server."""
        client = await self.client()

        return [key async for key in client.scan_iter(match=pattern)]

    async def increment(self, key: str, amount: int = 1) -> int:
        """Increment a counter."""
        client = await self.client()

        return await client.incrby(key, amount)

    async def pipeline(self) -> Pipeline:
        """Transactional pipeline for WATCH/MULTI/EXEC updates."""
        client = await self.client()

        return client.pipeline(transaction=True)


# Global state manager instance
_state_manager: StateManager | None = None


async def get_state_manager() -> StateManager:
    """Get the global state manager instance."""
    global _state_manager
    if _state_manager is None:
        _state_manager = StateManager()
        await _state_manager.connect()
    return _state_manager
