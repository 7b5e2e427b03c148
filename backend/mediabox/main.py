"""Mediabox Backend Application.

This is the main entry point for the Mediabox upload service. Clients upload
images, audio and video over multipart HTTP; files are validated, stored
below the upload directory and served back at ``/uploads/...``.

Modules:
    - uploads: validation, storage and the /api/upload endpoints
    - config: YAML + environment configuration
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from mediabox import __version__
from mediabox.config import AppConfig, get_config
from mediabox.uploads.errors import MissingFileError, UploadError
from mediabox.uploads.paths import ensure_directory_exists, resolve_directory
from mediabox.uploads.router import MISSING_FILE_MESSAGES, router as upload_router
from mediabox.uploads.schemas import MediaCategory, StorageBackend
from mediabox.uploads.service import UploadService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# python-multipart logs every parsed part at DEBUG.
for _noisy in ("multipart", "multipart.multipart", "python_multipart"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "Content-Security-Policy": (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline'; "
        "style-src 'self' 'unsafe-inline'; "
        "img-src 'self' data: https:; "
        "connect-src 'self'; "
        "font-src 'self'; "
        "object-src 'none'; "
        "media-src 'self'; "
        "frame-src 'none'"
    ),
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
}


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """Build the FastAPI application for *config* (the global config by default)."""
    config = config or get_config()
    policy = config.upload_policy()
    backend = config.storage_backend()

    if backend == StorageBackend.DISK:
        for category in MediaCategory:
            ensure_directory_exists(resolve_directory(category, policy), writable=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager for startup/shutdown events."""
        # Apply configured log level to root logger so that
        # `logging.level: "debug"` in mediabox.settings.yaml activates DEBUG output.
        configured_level = getattr(logging, config.logging.level.upper(), None)
        if configured_level is not None:
            logging.getLogger().setLevel(configured_level)
            logger.info("Root logger level set to %s", config.logging.level.upper())

        if backend == StorageBackend.DISK:
            logger.info("Upload directory: %s", policy.upload_dir.resolve())
        else:
            logger.info("Read-only deployment: uploads are returned as buffers, not written")

        logger.info(
            "Environment: %s, max file size: %d bytes",
            config.server.environment,
            policy.max_file_size,
        )

        yield  # Application runs here

        logger.info("Application shutdown complete")

    app = FastAPI(
        title="Mediabox API",
        description="Upload service for images, audio and video",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.upload_service = UploadService(policy, backend)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.server.allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    @app.exception_handler(UploadError)
    async def upload_error_handler(request: Request, exc: UploadError):
        logger.warning("Upload rejected (%s): %s", exc.kind, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        # A text field sent under a file field name counts as no file at all.
        for error in exc.errors():
            loc = tuple(error.get("loc", ()))
            if len(loc) >= 2 and loc[0] == "body" and loc[1] in MISSING_FILE_MESSAGES:
                return await upload_error_handler(request, MissingFileError(MISSING_FILE_MESSAGES[loc[1]]))
        return await request_validation_exception_handler(request, exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content={"success": False, "message": "Route not found"})
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled error: %s", exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Internal server error"},
        )

    app.include_router(upload_router)

    @app.get("/health")
    async def health() -> dict:
        """Health check endpoint.

        Returns:
            dict: Status object indicating the server is running.
        """
        return {
            "success": True,
            "message": "Server is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/api")
    async def api_info() -> dict:
        """List the available endpoints."""
        return {
            "success": True,
            "message": "File Upload API",
            "version": __version__,
            "endpoints": {
                "health": "/health",
                "uploadInfo": "/api/upload/info",
                "uploadSingle": "/api/upload/single",
                "uploadMultiple": "/api/upload/multiple",
            },
        }

    if backend == StorageBackend.DISK:
        app.mount(
            "/uploads",
            StaticFiles(directory=str(policy.upload_dir.resolve())),
            name="uploads",
        )

    return app

