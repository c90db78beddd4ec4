"""In-process implementation of the mapping store.

Used for local development (``DATABASE_URL=memory://``) and tests. Contents
live only as long as the process.
"""

import asyncio
import itertools
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from ..errors import DuplicateIdentifierError, MappingNotFoundError
from .base import MappingStoreBase
from .models import Mapping, as_utc, utcnow


class InMemoryMappingStore(MappingStoreBase):
    """Dictionary-backed mapping store guarded by an asyncio lock."""

    def __init__(
        self,
        db_config: str = "memory://",
        clock: Callable[[], datetime] = utcnow,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize in-memory store.

        Args:
            db_config: Connection string (informational only)
            clock: Source of creation timestamps (aware UTC)
            logger: Optional logger instance
        """
        super().__init__(db_config)
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock
        self._rows: Dict[str, Mapping] = {}
        self._ids = itertools.count(1)
        self._last_created_at: Optional[datetime] = None
        self._lock = asyncio.Lock()

    def _next_created_at(self) -> datetime:
        now = self.clock()
        # Never step backwards, even if the wall clock does
        if self._last_created_at is not None and now < self._last_created_at:
            now = self._last_created_at
        self._last_created_at = now
        return now

    async def insert(self, identifier: str, target: str, created_by: str) -> Mapping:
        async with self._lock:
            if identifier in self._rows:
                raise DuplicateIdentifierError(identifier)

            mapping = Mapping(
                id=next(self._ids),
                identifier=identifier,
                target=target,
                created_at=self._next_created_at(),
                created_by=created_by,
            )
            self._rows[identifier] = mapping

        self.logger.debug(f"Inserted mapping {identifier} (id={mapping.id})")
        return mapping

    async def lookup_by_identifier(self, identifier: str) -> Mapping:
        async with self._lock:
            mapping = self._rows.get(identifier)

        if mapping is None:
            raise MappingNotFoundError(identifier)
        return mapping

    async def delete_older_than(self, cutoff: datetime) -> int:
        # Naive cutoffs are UTC, matching the PostgreSQL store
        cutoff = as_utc(cutoff)
        async with self._lock:
            expired = [
                identifier
                for identifier, mapping in self._rows.items()
                if mapping.created_at is not None and mapping.created_at < cutoff
            ]
            for identifier in expired:
                del self._rows[identifier]

        return len(expired)

    async def delete(self, identifier: str) -> None:
        async with self._lock:
            if self._rows.pop(identifier, None) is None:
                raise MappingNotFoundError(identifier)

        self.logger.info(f"Deleted mapping {identifier}")

    async def migrate(self) -> List[int]:
        return []

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        pass

    def __len__(self) -> int:
        return len(self._rows)
