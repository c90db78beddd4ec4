"""Data models for the short link store."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping as MappingType, Optional


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from the database."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def to_naive_utc(value: datetime) -> datetime:
    """Convert to naive UTC for comparison against TIMESTAMP columns."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class Mapping:
    """A persisted identifier -> target URL association.

    Mappings are immutable once stored: they are only ever created or deleted.
    """

    identifier: str
    target: str
    created_at: Optional[datetime]
    created_by: str
    id: Optional[int] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "identifier": self.identifier,
            "target": self.target,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "created_by": self.created_by,
        }

    @classmethod
    def from_record(cls, record: MappingType[str, Any]) -> "Mapping":
        """Create from a row of the ``url`` table.

        Args:
            record: asyncpg Record or dict keyed by column name

        Returns:
            Mapping instance
        """
        return cls(
            id=record["id"],
            identifier=record["short_url"],
            target=record["name"],
            created_at=as_utc(record["created_at"]),
            created_by=record["created_by"],
        )
