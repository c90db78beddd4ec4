"""FastAPI application factory."""

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shortlink.service import MappingService
from shortlink.sweeper import ExpirySweeper

from .api import api_router
from .middleware.logging import LoggingMiddleware
from .web import web_router


def create_app(
    service: Optional[MappingService],
    sweeper: Optional[ExpirySweeper],
    config,
) -> FastAPI:
    """Create and configure FastAPI application.
    
    Args:
        service: Mapping service (may be set later, e.g. in a lifespan)
        sweeper: Expiry sweeper, reported by the health endpoint
        config: Configuration instance
        
    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Shortlink",
        description="URL shortening service with time-based expiry",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )
    
    app.state.service = service
    app.state.sweeper = sweeper
    app.state.config = config
    
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    
    # API first: the root router ends with a catch-all /{identifier}
    app.include_router(api_router, prefix="/api", tags=["API"])
    app.include_router(web_router, tags=["Redirect"])
    
    return app
