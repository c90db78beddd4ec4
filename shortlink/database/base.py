"""Abstract base class for mapping store implementations."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from .models import Mapping


class MappingStoreBase(ABC):
    """Abstract base class for mapping store operations.

    Every method may block on connection acquisition and must report storage
    problems as ``StorageFailure`` rather than letting driver errors escape.
    """

    def __init__(self, db_config: str):
        """Initialize store.

        Args:
            db_config: Database connection string
        """
        self.db_config = db_config

    @abstractmethod
    async def insert(self, identifier: str, target: str, created_by: str) -> Mapping:
        """Atomically insert a new mapping.

        The store assigns ``created_at``. Either the row is durably present or
        nothing was written.

        Args:
            identifier: The short identifier (must be unique)
            target: The original long URL
            created_by: Attribution tag

        Returns:
            The stored mapping, including its assigned creation time

        Raises:
            DuplicateIdentifierError: If the identifier is already taken
            StorageFailure: On any other storage problem
        """
        pass

    @abstractmethod
    async def lookup_by_identifier(self, identifier: str) -> Mapping:
        """Get the mapping for an identifier.

        Args:
            identifier: The short identifier to look up

        Returns:
            The stored mapping

        Raises:
            MappingNotFoundError: If no mapping exists
            StorageFailure: On storage problems
        """
        pass

    @abstractmethod
    async def delete_older_than(self, cutoff: datetime) -> int:
        """Delete every mapping created strictly before the cutoff.

        Runs as one bulk operation.

        Args:
            cutoff: Mappings with ``created_at < cutoff`` are removed

        Returns:
            Number of deleted mappings

        Raises:
            StorageFailure: On storage problems
        """
        pass

    @abstractmethod
    async def delete(self, identifier: str) -> None:
        """Delete a single mapping.

        Args:
            identifier: The short identifier to delete

        Raises:
            MappingNotFoundError: If no mapping exists
            StorageFailure: On storage problems
        """
        pass

    @abstractmethod
    async def migrate(self) -> List[int]:
        """Bring the schema to the current version.

        Safe to call repeatedly.

        Returns:
            Versions applied by this call (empty when already current)
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store is reachable.

        Returns:
            True if healthy, False otherwise
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release connections."""
        pass
