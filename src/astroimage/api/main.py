"""Astro Image - FastAPI Application.

This module is the single entry point for the web application.  It defines
the application factory, the module-level ``app`` instance, all REST API
routes, and the ``main()`` CLI function that launches the uvicorn server.

Architecture
------------
The application follows a stateless REST pattern:

- **Configuration** comes from :data:`~astroimage.core.config.config`
  (``ASTROIMAGE_*`` environment variables and env files).
- **Services** (:class:`~astroimage.core.workflow.ImageWorkflow` and
  :class:`~astroimage.core.user_service.UserService`) are built once in the
  lifespan from MongoDB, S3 and the generation API, or handed to
  :func:`create_app` ready-made (tests pass in-memory fakes).
- **Errors** are domain exceptions turned into the JSON error envelope by
  the exception handlers registered here.
- **Route handlers** are plain ``def`` functions: the stores and clients are
  blocking, so FastAPI runs each request in its threadpool.
- **Request logging** is attached per route by
  :class:`~astroimage.api.request_logging.LoggingRoute`; the image view route
  opts out with ``@skip_logging``.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
GET       ``/``                         Service banner
POST      ``/images``                   Generate, store and record an image
GET       ``/images/user/{userId}``     List a user's images
GET       ``/images/view/{imageId}``    Stream the stored PNG bytes
POST      ``/users``                    Create or update a user profile
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    astroimage

Direct invocation::

    python -m astroimage.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Iterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from astroimage import __version__
from astroimage.api.models import (
    CreateImageRequest,
    CreateUserRequest,
    ErrorResponse,
    SuccessResponse,
    UpsertUserData,
    utc_timestamp,
)
from astroimage.api.request_logging import LoggingRoute, skip_logging
from astroimage.core.blob_store import S3BlobStore
from astroimage.core.config import AstroImageConfig, config
from astroimage.core.database import MongoImageStore, MongoUserStore, connect
from astroimage.core.errors import AppError, ErrorCode
from astroimage.core.generation_client import ImageGenerationClient
from astroimage.core.models import ImageSummary, UpsertStatus
from astroimage.core.user_service import UserService
from astroimage.core.workflow import CreateImageCommand, ImageWorkflow

logger = logging.getLogger(__name__)

CACHE_CONTROL = "public, max-age=31536000"


@dataclass
class Services:
    """Operations the routes call, plus an optional shutdown hook."""

    workflow: ImageWorkflow
    users: UserService
    close: Callable[[], None] | None = None


def build_services(settings: AstroImageConfig) -> Services:
    """Wire MongoDB, S3 and the generation API into the services.

    Args:
        settings: Application configuration.

    Returns:
        Ready services whose ``close`` hook disconnects MongoDB.
    """
    client, database = connect(settings)
    user_store = MongoUserStore(database["users"])
    image_store = MongoImageStore(database["images"])
    user_store.ensure_indexes()
    image_store.ensure_indexes()

    generator = ImageGenerationClient(
        settings.image_api_url,
        settings.image_api_key,
        default_model=settings.image_model,
        size=settings.image_size,
        timeout=settings.http_timeout,
    )
    workflow = ImageWorkflow(user_store, image_store, S3BlobStore.from_config(settings), generator)
    return Services(workflow=workflow, users=UserService(user_store), close=client.close)


# ---------------------------------------------------------------------------
# Application lifecycle - service setup and teardown.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build services on startup (unless injected) and close them on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    settings: AstroImageConfig = app.state.settings
    if app.state.services is None:
        app.state.services = build_services(settings)
        logger.info(f"Services initialised (environment={settings.environment}).")

    yield  # Application runs here.

    services: Services = app.state.services
    if services.close is not None:
        services.close()
        logger.info("Services closed on shutdown.")


# ---------------------------------------------------------------------------
# Dependencies.
# ---------------------------------------------------------------------------


def get_workflow(request: Request) -> ImageWorkflow:
    return request.app.state.services.workflow


def get_user_service(request: Request) -> UserService:
    return request.app.state.services.users


# ---------------------------------------------------------------------------
# Exception handlers - every failure leaves as an error envelope.
# ---------------------------------------------------------------------------


def _error_response(
    request: Request, status_code: int, error_code: ErrorCode, message: str
) -> JSONResponse:
    body = ErrorResponse(error_code=error_code, message=message, path=request.url.path)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True, mode="json"))


async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    logger.warning(f"{exc.error_code.value} on {request.url.path}: {exc.message}")
    return _error_response(request, exc.status_code, exc.error_code, exc.message)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    return _error_response(
        request, status.HTTP_400_BAD_REQUEST, ErrorCode.VALIDATION_ERROR, details
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.url.path}", exc_info=exc)
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorCode.INTERNAL_ERROR,
        "Internal server error",
    )


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------

router = APIRouter(route_class=LoggingRoute)


@router.get("/")
def index(request: Request) -> dict:
    """Return the service banner.

    Returns:
        Dictionary with ``message``, ``appName``, ``apiVersion``,
        ``environment``, ``database`` and ``timestamp``.
    """
    settings: AstroImageConfig = request.app.state.settings
    return {
        "message": "Hello World!",
        "appName": settings.app_name,
        "apiVersion": __version__,
        "environment": settings.environment,
        "database": "Connected" if settings.database_url else "Not configured",
        "timestamp": utc_timestamp(),
    }


@router.post("/images", status_code=status.HTTP_201_CREATED)
def create_image(
    req: CreateImageRequest,
    workflow: ImageWorkflow = Depends(get_workflow),
) -> SuccessResponse[ImageSummary]:
    """Generate an image for a user, store it, and charge one credit.

    Args:
        req: Validated :class:`CreateImageRequest` payload.

    Returns:
        Success envelope whose ``data`` is the stored image summary.

    Raises:
        AppError: ``USER_NOT_FOUND`` (404), ``IMAGE_GENERATION_FAILED``
            (500), ``INVALID_IMAGE_FORMAT`` (400), ``IMAGE_UPLOAD_FAILED``
            (500).
    """
    summary = workflow.create_image(
        CreateImageCommand(
            image_type=req.image_type,
            user_id=req.user_id,
            prompt=req.prompt,
            ai_model=req.ai_model,
        )
    )
    return SuccessResponse(data=summary, message="Image created successfully")


@router.get("/images/user/{user_id}")
def get_user_images(
    user_id: str,
    workflow: ImageWorkflow = Depends(get_workflow),
) -> SuccessResponse[list[ImageSummary]]:
    """Return the user's images, newest first.

    Raises:
        AppError: ``IMAGE_NOT_FOUND`` (404) when the user has no images.
    """
    images = workflow.list_by_user(user_id)
    return SuccessResponse(data=images, message="Images retrieved successfully")


def _guard_stream(chunks: Iterator[bytes], image_id: str) -> Iterator[bytes]:
    # Headers are already sent once streaming starts; a failure can only be logged.
    try:
        yield from chunks
    except Exception:
        logger.exception(f"Error streaming image {image_id}")


@router.get("/images/view/{image_id}", response_model=None)
@skip_logging
def view_image(
    image_id: str,
    request: Request,
    workflow: ImageWorkflow = Depends(get_workflow),
) -> StreamingResponse | JSONResponse:
    """Stream the stored PNG bytes of an image.

    A single ``Range: bytes=...`` header is forwarded to storage and answered
    with ``206 Partial Content``.  Any failure to open the image yields a 404
    error envelope.
    """
    try:
        stream = workflow.stream_by_id(image_id, request.headers.get("range"))
    except AppError as e:
        logger.warning(f"Image {image_id} could not be opened: {e.message}")
        return _error_response(
            request, status.HTTP_404_NOT_FOUND, ErrorCode.IMAGE_NOT_FOUND, "Image not found"
        )

    headers = {"Cache-Control": CACHE_CONTROL, "Accept-Ranges": "bytes"}
    if stream.content_length is not None:
        headers["Content-Length"] = str(stream.content_length)
    if stream.content_range:
        headers["Content-Range"] = stream.content_range

    return StreamingResponse(
        _guard_stream(stream.chunks, image_id),
        status_code=status.HTTP_206_PARTIAL_CONTENT if stream.content_range else status.HTTP_200_OK,
        media_type="image/png",
        headers=headers,
    )


@router.post("/users", status_code=status.HTTP_201_CREATED)
def upsert_user(
    req: CreateUserRequest,
    users: UserService = Depends(get_user_service),
) -> SuccessResponse[UpsertUserData]:
    """Create a user, or overwrite the profile of an existing one.

    Returns:
        Success envelope whose ``data`` holds ``userId`` and ``status``
        (``created`` or ``updated``).
    """
    result = users.upsert(req)
    if result.status == UpsertStatus.CREATED:
        message = "User created successfully"
    else:
        message = "User updated successfully"
    return SuccessResponse(
        data=UpsertUserData(user_id=result.user.user_id, status=result.status),
        message=message,
    )


# ---------------------------------------------------------------------------
# Application factory.
# ---------------------------------------------------------------------------


def create_app(
    services: Services | None = None,
    settings: AstroImageConfig | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        services: Ready services.  When ``None``, the lifespan builds them
            from *settings* on startup.
        settings: Configuration; defaults to the global ``config``.

    Returns:
        The configured application.
    """
    app = FastAPI(
        title="Astro Image",
        description="Astrology-themed AI image generation API.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings or config
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(router)
    return app


app = create_app()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Configure logging and launch the uvicorn ASGI server.

    Reads host and port from :data:`~astroimage.core.config.config` (which
    loads from ``ASTROIMAGE_SERVER_HOST`` and ``ASTROIMAGE_SERVER_PORT``).
    Defaults to ``0.0.0.0:3000``.

    This function is registered as the ``astroimage`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logger.info(f"Application is running on: http://localhost:{config.server_port}")
    logger.info(f"Environment: {config.environment}")

    uvicorn.run(
        "astroimage.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
