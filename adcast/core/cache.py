import json
import logging
from typing import Any, Dict, Optional

from redis.asyncio import Redis

logger = logging.getLogger(__name__)

# Delete the key only if it still holds our token
_RELEASE_LOCK_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""

# Push the expiry out only while the key still holds our token
_EXTEND_LOCK_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("expire", KEYS[1], ARGV[2])
else
    return 0
end
"""


class CacheService:
    """Thin wrapper around an async Redis client.

    If *redis_client* is ``None`` (Redis unavailable), every operation
    degrades to a no-op; callers never need to check for ``None``.
    """

    def __init__(self, redis_client: Optional[Redis] = None) -> None:
        self._redis: Optional[Redis] = redis_client

    # ------------------------------------------------------------------
    # Core get / set / delete
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Optional[str]:
        """Return the raw string value for *key*, or ``None``."""
        if self._redis is None:
            return None
        try:
            return await self._redis.get(key)
        except Exception:
            logger.warning("Redis GET failed for key %s", key)
            return None

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        """Store a raw string value, optionally with a TTL (seconds)."""
        if self._redis is None:
            return
        try:
            if ttl:
                await self._redis.setex(key, ttl, value)
            else:
                await self._redis.set(key, value)
        except Exception:
            logger.warning("Redis SET failed for key %s", key)

    async def delete(self, key: str) -> None:
        """Remove *key* from the cache (best-effort)."""
        if self._redis is None:
            return
        try:
            await self._redis.delete(key)
        except Exception:
            logger.warning("Redis DELETE failed for key %s", key)

    # ------------------------------------------------------------------
    # JSON helpers: pipeline stats are cached as JSON
    # ------------------------------------------------------------------

    async def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        """Deserialise a JSON-encoded value from Redis."""
        raw = await self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Invalid JSON in cache key %s", key)
            return None

    async def set_json(
        self, key: str, data: Dict[str, Any], ttl: int | None = None
    ) -> None:
        """Serialise *data* to JSON and store it in Redis."""
        try:
            payload = json.dumps(data, default=str)
        except (TypeError, ValueError):
            logger.warning("Failed to serialise data for cache key %s", key)
            return
        await self.set(key, payload, ttl=ttl)

    # ------------------------------------------------------------------
    # Advisory lock used by the pipeline run-lock
    # ------------------------------------------------------------------

    async def acquire_lock(self, key: str, token: str, ttl: int) -> Optional[bool]:
        """Try to take *key* with ``SET NX EX``.

        Returns ``True``/``False`` for acquired/held elsewhere, or
        ``None`` when Redis is unavailable so the caller can rely on
        its in-process lock alone.
        """
        if self._redis is None:
            return None
        try:
            return bool(await self._redis.set(key, token, nx=True, ex=ttl))
        except Exception:
            logger.warning("Redis lock acquire failed for key %s", key)
            return None

    async def release_lock(self, key: str, token: str) -> None:
        """Release *key* if it is still held by *token* (best-effort)."""
        if self._redis is None:
            return
        try:
            await self._redis.eval(_RELEASE_LOCK_SCRIPT, 1, key, token)
        except Exception:
            logger.warning("Redis lock release failed for key %s", key)

    async def extend_lock(self, key: str, token: str, ttl: int) -> Optional[bool]:
        """Reset the TTL of *key* if *token* still owns it.

        Returns ``False`` when the lock expired or changed hands, and
        ``None`` when Redis is unavailable.
        """
        if self._redis is None:
            return None
        try:
            return bool(await self._redis.eval(_EXTEND_LOCK_SCRIPT, 1, key, token, ttl))
        except Exception:
            logger.warning("Redis lock extend failed for key %s", key)
            return None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def is_available(self) -> bool:
        """Return ``True`` if a Redis client is configured."""
        return self._redis is not None
