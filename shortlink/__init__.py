"""Core business logic for the short link service."""

from .identifier import IdentifierGenerator
from .service import MappingService
from .sweeper import ExpirySweeper

__all__ = ["IdentifierGenerator", "MappingService", "ExpirySweeper"]
