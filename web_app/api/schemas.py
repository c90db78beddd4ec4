"""Pydantic schemas for API requests and responses."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ShortenRequest(BaseModel):
    """Request to shorten a URL."""

    # Emptiness is checked by the service so the client gets a 400, not a 422
    url: str = Field(..., description="The URL to shorten")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"url": "https://example.com/very/long/path/to/resource"},
            ]
        }
    }


class ShortenResponse(BaseModel):
    """Response after shortening a URL."""

    identifier: str = Field(..., description="The generated identifier")
    short_url: str = Field(..., description="The complete short URL")
    target: str = Field(..., description="The original long URL")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "identifier": "abc123",
                    "short_url": "https://short.link/abc123",
                    "target": "https://example.com/very/long/path",
                    "created_at": "2024-01-01T12:00:00Z"
                }
            ]
        }
    }


class MappingInfoResponse(BaseModel):
    """Stored mapping details."""

    identifier: str
    target: str
    created_at: Optional[datetime] = None
    created_by: str
    expires_at: Optional[datetime] = Field(
        None, description="Earliest time the expiry sweep may delete this mapping"
    )


class SweeperStatus(BaseModel):
    """Expiry sweeper state."""

    running: bool
    last_run_at: Optional[datetime] = None
    last_deleted: Optional[int] = None
    consecutive_failures: int = 0


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    database: str = Field(..., description="Database status")
    cache: str = Field(..., description="Cache status")
    sweeper: Optional[SweeperStatus] = Field(None, description="Expiry sweeper state")
    timestamp: datetime = Field(..., description="Check timestamp")


class CreateRequest(BaseModel):
    """Body of ``POST /create``."""

    url: str


class CreateSuccess(BaseModel):
    """Successful ``POST /create``: ``url`` holds the identifier."""

    url: str


class MessageResponse(BaseModel):
    """Error body of the root routes."""

    message: str
