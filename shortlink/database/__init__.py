"""Storage layer for short links."""

import logging
from typing import Optional
from urllib.parse import urlparse

from .base import MappingStoreBase
from .cache import RedisCache
from .memory import InMemoryMappingStore
from .models import Mapping
from .postgres import PostgresMappingStore


def create_store(
    database_url: str,
    pool_min_size: int = 1,
    pool_max_size: int = 10,
    acquire_timeout_seconds: float = 3.0,
    command_timeout_seconds: float = 30.0,
    logger: Optional[logging.Logger] = None,
) -> MappingStoreBase:
    """Build a store for the given connection URL.

    Args:
        database_url: ``postgresql://...``, ``postgres://...`` or ``memory://``
        pool_min_size: Minimum pool size (PostgreSQL only)
        pool_max_size: Maximum pool size (PostgreSQL only)
        acquire_timeout_seconds: Bounded wait for a connection (PostgreSQL only)
        command_timeout_seconds: Per-statement timeout (PostgreSQL only)
        logger: Optional logger instance

    Returns:
        Store instance

    Raises:
        ValueError: If the URL scheme is not supported
    """
    scheme = urlparse(database_url).scheme.lower()

    if scheme in ("postgres", "postgresql"):
        return PostgresMappingStore(
            db_config=database_url,
            pool_min_size=pool_min_size,
            pool_max_size=pool_max_size,
            acquire_timeout_seconds=acquire_timeout_seconds,
            command_timeout_seconds=command_timeout_seconds,
            logger=logger,
        )
    if scheme == "memory":
        return InMemoryMappingStore(db_config=database_url, logger=logger)

    raise ValueError(f"Unsupported database URL scheme: {scheme or database_url!r}")


__all__ = [
    "MappingStoreBase",
    "PostgresMappingStore",
    "InMemoryMappingStore",
    "RedisCache",
    "Mapping",
    "create_store",
]
