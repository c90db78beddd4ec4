"""Business logic service for short links."""

import logging
from datetime import timedelta
from typing import Dict, Optional

from .common.validators import is_valid_identifier, is_valid_target
from .database.base import MappingStoreBase
from .database.cache import RedisCache
from .database.models import Mapping, utcnow
from .errors import (
    CreateFailed,
    DuplicateIdentifierError,
    IdentifierCollisionError,
    InvalidTargetError,
    LinkNotFound,
    MappingNotFoundError,
    ResolveUnavailable,
    StorageFailure,
)
from .identifier import IdentifierGenerator


class MappingService:
    """Orchestrates creation, resolution and deletion of short links.

    Holds no mapping state of its own. Uniqueness and atomicity come from the
    store, so one instance can serve any number of concurrent requests.
    """

    def __init__(
        self,
        store: MappingStoreBase,
        generator: Optional[IdentifierGenerator] = None,
        cache: Optional[RedisCache] = None,
        logger: Optional[logging.Logger] = None,
        max_create_attempts: int = 5,
        created_by: str = "user",
        retention: timedelta = timedelta(days=30),
    ):
        """Initialize mapping service.

        Args:
            store: Mapping store
            generator: Identifier generator (6 characters by default)
            cache: Optional cache for resolve lookups
            logger: Optional logger
            max_create_attempts: Identifiers tried per create before giving up
            created_by: Attribution tag written on every mapping
            retention: Age after which the sweep may delete a mapping
        """
        if max_create_attempts < 1:
            raise ValueError("max_create_attempts must be at least 1")

        self.store = store
        self.generator = generator or IdentifierGenerator()
        self.cache = cache
        self.logger = logger or logging.getLogger(__name__)
        self.max_create_attempts = max_create_attempts
        self.created_by = created_by
        self.retention = retention

    async def create(self, target: str) -> Mapping:
        """Create a new short link.

        Args:
            target: The original long URL

        Returns:
            The stored mapping

        Raises:
            InvalidTargetError: If the target is empty
            IdentifierCollisionError: If every attempt collided
            CreateFailed: If the store failed
        """
        is_valid, error = is_valid_target(target)
        if not is_valid:
            raise InvalidTargetError(f"Invalid URL: {error}")

        attempt = 0
        while attempt < self.max_create_attempts:
            attempt += 1
            identifier = self.generator.next()

            try:
                mapping = await self.store.insert(identifier, target, self.created_by)
            except DuplicateIdentifierError:
                self.logger.warning(
                    f"Identifier collision on {identifier} "
                    f"(attempt {attempt}/{self.max_create_attempts})"
                )
                continue
            except StorageFailure as e:
                self.logger.error(f"Failed to store mapping for {target}: {e}")
                raise CreateFailed("Failed to create short url") from e

            await self._cache_mapping(mapping)
            self.logger.info(f"Created short URL: {mapping.identifier} -> {target}")
            return mapping

        self.logger.error(f"Giving up after {attempt} identifier collisions for {target}")
        raise IdentifierCollisionError(attempt)

    async def resolve(self, identifier: str) -> str:
        """Get the target URL for an identifier.

        Args:
            identifier: The short identifier

        Returns:
            The original URL

        Raises:
            LinkNotFound: If no mapping exists
            ResolveUnavailable: If the store failed
        """
        if self.cache:
            cached = await self.cache.get_target(identifier)
            if cached:
                self.logger.debug(f"Cache hit for {identifier}")
                return cached

        mapping = await self.get_mapping(identifier)
        await self._cache_mapping(mapping)

        self.logger.debug(f"Resolved {identifier} -> {mapping.target}")
        return mapping.target

    async def get_mapping(self, identifier: str) -> Mapping:
        """Get the full stored mapping, bypassing the cache.

        Raises:
            LinkNotFound: If no mapping exists
            ResolveUnavailable: If the store failed
        """
        is_valid, _ = is_valid_identifier(identifier)
        if not is_valid:
            self.logger.warning(f"Rejected malformed identifier: {identifier!r}")
            raise LinkNotFound("Failed to get url", identifier)

        try:
            return await self.store.lookup_by_identifier(identifier)
        except MappingNotFoundError as e:
            self.logger.warning(f"Identifier not found: {identifier}")
            raise LinkNotFound("Failed to get url", identifier) from e
        except StorageFailure as e:
            self.logger.error(f"Lookup failed for {identifier}: {e}")
            raise ResolveUnavailable("Failed to get url", identifier) from e

    async def delete(self, identifier: str) -> None:
        """Delete a short link.

        Raises:
            LinkNotFound: If no mapping exists
            ResolveUnavailable: If the store failed
        """
        try:
            await self.store.delete(identifier)
        except MappingNotFoundError as e:
            raise LinkNotFound("Failed to delete url", identifier) from e
        except StorageFailure as e:
            self.logger.error(f"Delete failed for {identifier}: {e}")
            raise ResolveUnavailable("Failed to delete url", identifier) from e
        finally:
            # After the store call, so a resolve racing the delete cannot re-cache the row
            if self.cache:
                await self.cache.invalidate(identifier)

        self.logger.info(f"Deleted short URL: {identifier}")

    async def health_check(self) -> Dict[str, bool]:
        """Perform health check.

        Returns:
            Dictionary with health status
        """
        db_healthy = await self.store.health_check()

        cache_healthy = True
        if self.cache and self.cache.enabled:
            cache_healthy = await self.cache.ping()

        return {
            "database": db_healthy,
            "cache": cache_healthy,
            "overall": db_healthy and cache_healthy,
        }

    async def close(self) -> None:
        """Close store and cache connections."""
        await self.store.close()
        if self.cache:
            await self.cache.close()

    async def _cache_mapping(self, mapping: Mapping) -> None:
        # Entries must expire before the sweep is allowed to delete the row
        if not self.cache:
            return

        ttl = None
        if mapping.created_at is not None:
            remaining = mapping.created_at + self.retention - utcnow()
            ttl = int(remaining.total_seconds())
            if ttl <= 0:
                return

        await self.cache.put_target(mapping.identifier, mapping.target, ttl)
