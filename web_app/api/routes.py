"""API routes implementation."""

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request, Response, status

from shortlink.common.headers import build_base_url, forwarded_path_prefix
from shortlink.common.url_builder import build_short_url
from shortlink.errors import CreateFailed, InvalidTargetError, LinkNotFound, ResolveUnavailable

from .schemas import (
    HealthResponse,
    MappingInfoResponse,
    ShortenRequest,
    ShortenResponse,
    SweeperStatus,
)

router = APIRouter()


@router.post(
    "/shorten",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid URL"},
        503: {"description": "Store unavailable or identifiers exhausted"},
    },
    summary="Create short URL",
)
async def shorten_url(request: Request, body: ShortenRequest):
    """Create a shortened URL."""
    service = request.app.state.service
    config = request.app.state.config

    try:
        mapping = await service.create(body.url)
    except InvalidTargetError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except CreateFailed as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    base_url = build_base_url(
        headers=request.headers,
        fallback_base_url=config.base_url,
        request_scheme=request.url.scheme,
        request_host=request.headers.get("host"),
    )
    short_url = build_short_url(
        identifier=mapping.identifier,
        base_url=base_url,
        path_prefix=forwarded_path_prefix(request.headers) or config.path_prefix,
    )

    return ShortenResponse(
        identifier=mapping.identifier,
        short_url=short_url,
        target=mapping.target,
        created_at=mapping.created_at,
    )


@router.get(
    "/urls/{identifier}",
    response_model=MappingInfoResponse,
    responses={
        404: {"description": "Identifier not found"},
        503: {"description": "Store unavailable"},
    },
    summary="Get mapping information",
)
async def get_url_info(request: Request, identifier: str):
    """Get the stored mapping for an identifier."""
    service = request.app.state.service

    try:
        mapping = await service.get_mapping(identifier)
    except LinkNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Identifier '{identifier}' not found",
        )
    except ResolveUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    expires_at = mapping.created_at + service.retention if mapping.created_at else None
    return MappingInfoResponse(
        identifier=mapping.identifier,
        target=mapping.target,
        created_at=mapping.created_at,
        created_by=mapping.created_by,
        expires_at=expires_at,
    )


@router.delete(
    "/urls/{identifier}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        404: {"description": "Identifier not found"},
        503: {"description": "Store unavailable"},
    },
    summary="Delete a mapping",
)
async def delete_url(request: Request, identifier: str):
    """Delete a short URL before it expires."""
    service = request.app.state.service

    try:
        await service.delete(identifier)
    except LinkNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Identifier '{identifier}' not found",
        )
    except ResolveUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health_check(request: Request):
    """Health check endpoint for load balancers and monitoring."""
    service = request.app.state.service
    sweeper = getattr(request.app.state, "sweeper", None)

    health = await service.health_check()

    return HealthResponse(
        status="healthy" if health["overall"] else "unhealthy",
        database="healthy" if health["database"] else "unhealthy",
        cache="healthy" if health["cache"] else "unhealthy",
        sweeper=SweeperStatus(**sweeper.status()) if sweeper else None,
        timestamp=datetime.now(timezone.utc),
    )
