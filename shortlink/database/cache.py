"""Redis read-through cache for resolved short links."""

import logging
from typing import Any, Awaitable, Callable, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError


class RedisCache:
    """Caches identifier -> target lookups in Redis.

    Every entry carries a TTL no longer than ``ttl_seconds``. Redis errors are
    logged and reported as a miss or a failed write; they never reach callers.
    """

    KEY_PREFIX = "shortlink:url:"

    def __init__(
        self,
        redis_url: Optional[str] = None,
        ttl_seconds: int = 3600,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize Redis cache.

        Args:
            redis_url: Redis connection URL (e.g., redis://localhost:6379/0).
                Caching is disabled when None.
            ttl_seconds: Upper bound on entry lifetime
            logger: Optional logger instance
        """
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self.logger = logger or logging.getLogger(__name__)
        self.enabled = redis_url is not None
        self.client: Optional[redis.Redis] = None

        if self.enabled:
            self.logger.info(f"Redis cache enabled with TTL={ttl_seconds}s")

    @property
    def available(self) -> bool:
        return self.enabled and self.client is not None

    def key_for(self, identifier: str) -> str:
        return f"{self.KEY_PREFIX}{identifier}"

    async def connect(self) -> None:
        """Connect to Redis, disabling the cache if it cannot be reached."""
        if not self.enabled:
            return

        self.client = redis.from_url(self.redis_url, encoding="utf-8", decode_responses=True)
        if await self.ping():
            self.logger.info("Connected to Redis")
        else:
            self.logger.error("Redis unreachable, caching disabled")
            self.enabled = False

    async def _guard(self, operation: str, call: Callable[[], Awaitable[Any]], default: Any) -> Any:
        if not self.available:
            return default
        try:
            return await call()
        except (RedisError, OSError) as e:
            self.logger.error(f"Cache {operation} error: {e}")
            return default

    async def get_target(self, identifier: str) -> Optional[str]:
        """Cached target for an identifier, or None on a miss."""
        return await self._guard("get", lambda: self.client.get(self.key_for(identifier)), None)

    async def put_target(self, identifier: str, target: str, ttl: Optional[int] = None) -> bool:
        """Cache a target.

        Args:
            identifier: Short identifier
            target: Target URL
            ttl: Requested lifetime in seconds; capped at ``ttl_seconds``.
                Nothing is written when it is not positive.

        Returns:
            True if the entry was written
        """
        ttl = self.ttl_seconds if ttl is None else min(ttl, self.ttl_seconds)
        if ttl <= 0:
            return False

        async def write():
            await self.client.setex(self.key_for(identifier), ttl, target)
            return True

        return await self._guard("set", write, False)

    async def invalidate(self, identifier: str) -> bool:
        """Drop the cached entry for an identifier. True if one existed."""

        async def drop():
            return await self.client.delete(self.key_for(identifier)) > 0

        return await self._guard("delete", drop, False)

    async def purge(self, batch_size: int = 500) -> int:
        """Drop every cached target.

        Needed when rows are deleted earlier than their entries' TTLs allow,
        e.g. a sweep with a shorter retention than the configured one.

        Returns:
            Number of keys removed
        """

        async def drop_all():
            removed = 0
            batch = []
            async for key in self.client.scan_iter(match=f"{self.KEY_PREFIX}*", count=batch_size):
                batch.append(key)
                if len(batch) >= batch_size:
                    removed += await self.client.delete(*batch)
                    batch = []
            if batch:
                removed += await self.client.delete(*batch)
            return removed

        removed = await self._guard("purge", drop_all, 0)
        self.logger.info(f"Purged {removed} cached targets")
        return removed

    async def ping(self) -> bool:
        async def check():
            return bool(await self.client.ping())

        return await self._guard("ping", check, False)

    async def close(self) -> None:
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            self.client = None
            self.logger.info("Redis connection closed")
