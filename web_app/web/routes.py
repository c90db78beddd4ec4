"""Root routes: create and redirect."""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse

from shortlink.errors import CreateFailed, InvalidTargetError, LinkNotFound, ResolveUnavailable

from ..api.schemas import CreateRequest, CreateSuccess, MessageResponse

router = APIRouter()


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=MessageResponse(message=message).model_dump(),
    )


@router.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def index():
    return "Hello, World!"


@router.post(
    "/create",
    status_code=status.HTTP_201_CREATED,
    response_model=CreateSuccess,
    responses={
        400: {"model": MessageResponse, "description": "Invalid URL"},
        503: {"model": MessageResponse, "description": "Store unavailable"},
    },
)
async def create_url(request: Request, body: CreateRequest):
    """Create a short link; the response ``url`` is the new identifier."""
    service = request.app.state.service

    try:
        mapping = await service.create(body.url)
    except InvalidTargetError:
        return _message(status.HTTP_400_BAD_REQUEST, "Failed to create short url")
    except CreateFailed:
        return _message(status.HTTP_503_SERVICE_UNAVAILABLE, "Failed to create short url")

    return CreateSuccess(url=mapping.identifier)


@router.get(
    "/{identifier}",
    responses={
        404: {"model": MessageResponse, "description": "Identifier not found"},
        503: {"model": MessageResponse, "description": "Store unavailable"},
    },
)
async def redirect_to_url(request: Request, identifier: str):
    """Redirect to the original URL."""
    service = request.app.state.service
    config = request.app.state.config

    try:
        target = await service.resolve(identifier)
    except LinkNotFound:
        return _message(status.HTTP_404_NOT_FOUND, "Failed to get url")
    except ResolveUnavailable:
        return _message(status.HTTP_503_SERVICE_UNAVAILABLE, "Failed to get url")

    return RedirectResponse(url=target, status_code=config.redirect_status_code)
