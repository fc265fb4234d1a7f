"""Invitation Cache — Redis, in-process and no-op implementations of InvitationCache.

Invariants:
    - get() returns None on miss or on any backend failure (fail open)
    - set()/delete() never raise; failures are logged at WARNING
    - Values are whole record lists: one record for RECORD keys, the unfiltered
      superset for TO_USER / FROM_USER keys
    - The cache never decides results, only latency

Design Decisions:
    - JSON via a pydantic TypeAdapter over the record dataclass: no custom encoder
    - Lazy Redis connection created on first use, closed on shutdown
"""

import logging

import redis.asyncio as redis
from pydantic import TypeAdapter, ValidationError
from redis.exceptions import RedisError

from invitations.core.cache_keys import CacheKey
from invitations.core.domain_types import CacheBackend
from invitations.core.invitation_record import InvitationRecord

logger = logging.getLogger(__name__)

_records_adapter = TypeAdapter(list[InvitationRecord])


class RedisInvitationCache:
    """Cache backed by Redis with a TTL per entry."""

    def __init__(self, redis_url: str, ttl_seconds: int = 3600, prefix: str = "invitations"):
        self._redis_url = redis_url
        self._ttl_seconds = ttl_seconds
        self._prefix = prefix
        self._redis: redis.Redis | None = None

    async def _get_redis(self) -> redis.Redis:
        """Get or create Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(self._redis_url, decode_responses=True)
        return self._redis

    async def get(self, key: CacheKey) -> list[InvitationRecord] | None:
        try:
            client = await self._get_redis()
            data = await client.get(key.as_string(self._prefix))
            if data is None:
                logger.debug("Invitation cache miss", extra={"cache_scope": key.scope.value})
                return None
            return _records_adapter.validate_json(data)
        except (RedisError, ValidationError) as e:
            logger.warning(
                f"Invitation cache get failed: {e}",
                extra={"cache_scope": key.scope.value},
            )
            return None

    async def set(self, key: CacheKey, records: list[InvitationRecord]) -> None:
        try:
            client = await self._get_redis()
            payload = _records_adapter.dump_json(records).decode()
            await client.setex(key.as_string(self._prefix), self._ttl_seconds, payload)
        except RedisError as e:
            logger.warning(
                f"Invitation cache set failed: {e}",
                extra={"cache_scope": key.scope.value},
            )

    async def delete(self, key: CacheKey) -> None:
        try:
            client = await self._get_redis()
            await client.delete(key.as_string(self._prefix))
        except RedisError as e:
            logger.warning(
                f"Invitation cache delete failed: {e}",
                extra={"cache_scope": key.scope.value},
            )

    async def ping(self) -> bool:
        try:
            client = await self._get_redis()
            return bool(await client.ping())
        except RedisError as e:
            logger.warning(f"Invitation cache ping failed: {e}")
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None


class MemoryInvitationCache:
    """Process-local cache. Used in tests and single-process deployments."""

    def __init__(self) -> None:
        self._entries: dict[CacheKey, tuple[InvitationRecord, ...]] = {}

    async def get(self, key: CacheKey) -> list[InvitationRecord] | None:
        entry = self._entries.get(key)
        return list(entry) if entry is not None else None

    async def set(self, key: CacheKey, records: list[InvitationRecord]) -> None:
        self._entries[key] = tuple(records)

    async def delete(self, key: CacheKey) -> None:
        self._entries.pop(key, None)

    async def ping(self) -> bool:
        return True

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    async def close(self) -> None:
        self._entries.clear()


class NullInvitationCache:
    """Never stores anything; every read is a miss."""

    async def get(self, key: CacheKey) -> list[InvitationRecord] | None:
        return None

    async def set(self, key: CacheKey, records: list[InvitationRecord]) -> None:
        return None

    async def delete(self, key: CacheKey) -> None:
        return None

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


def build_cache(
    backend: CacheBackend, redis_url: str = "", ttl_seconds: int = 3600,
    prefix: str = "invitations",
) -> RedisInvitationCache | MemoryInvitationCache | NullInvitationCache:
    if backend == CacheBackend.REDIS:
        return RedisInvitationCache(redis_url, ttl_seconds, prefix)
    if backend == CacheBackend.MEMORY:
        return MemoryInvitationCache()
    return NullInvitationCache()
