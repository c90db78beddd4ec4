"""Exception types for the short link service."""

from typing import Optional


class ShortlinkError(Exception):
    """Base class for all short link errors."""


class StorageFailure(ShortlinkError):
    """The store could not complete an operation.

    Covers connection acquisition timeouts, refused connections and failed
    statements. Never retried automatically by the service except where a
    create collides.
    """


class DuplicateIdentifierError(ShortlinkError):
    """An insert violated the uniqueness of the identifier column."""

    def __init__(self, identifier: str):
        super().__init__(f"Identifier already exists: {identifier}")
        self.identifier = identifier


class MappingNotFoundError(ShortlinkError):
    """No mapping exists for the requested identifier."""

    def __init__(self, identifier: str):
        super().__init__(f"No mapping for identifier: {identifier}")
        self.identifier = identifier


class CreateFailed(ShortlinkError):
    """Creating a short link failed."""


class InvalidTargetError(CreateFailed, ValueError):
    """The target URL was rejected before any store call."""


class IdentifierCollisionError(CreateFailed):
    """Every attempted identifier collided with an existing mapping."""

    def __init__(self, attempts: int):
        super().__init__(f"Unable to allocate a unique identifier after {attempts} attempts")
        self.attempts = attempts


class ResolveFailed(ShortlinkError):
    """Resolving a short link failed."""

    def __init__(self, message: str, identifier: Optional[str] = None):
        super().__init__(message)
        self.identifier = identifier


class LinkNotFound(ResolveFailed):
    """The identifier does not name a live mapping."""


class ResolveUnavailable(ResolveFailed):
    """The store is degraded and the identifier could not be looked up."""
