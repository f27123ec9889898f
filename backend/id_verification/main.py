"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .api import router
from .models import FailedResponse
from .services import RequestShapeError
from .config import get_settings
from . import __version__

# Configure logging
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def _failed(status_code: int, reason: str, headers: dict = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=FailedResponse(reason=reason).model_dump(),
        headers=headers,
    )


class BodySizeLimitMiddleware:
    """
    Cap request bodies at ``max_body_bytes``.

    A declared Content-Length over the cap is refused before the app runs.
    Bodies sent without one (chunked uploads) are counted as they arrive and
    refused as soon as the running total passes the cap.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int, reason: str):
        self.app = app
        self.max_body_bytes = max_body_bytes
        self.reason = reason

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_body_bytes:
            logger.warning(f"Rejected {content_length} byte request to {scope['path']}")
            await _failed(413, self.reason)(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    logger.warning(f"Rejected streamed request to {scope['path']} after {received} bytes")
                    # Raised inside body parsing; rendered by the HTTPException handler
                    raise HTTPException(status_code=413, detail=self.reason)
            return message

        await self.app(scope, limited_receive, send)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - handles startup and shutdown."""
    # Startup
    settings = get_settings()
    logger.info("Starting ID Verification API...")
    # Engines are per request; nothing to warm up here
    logger.info(
        f"API ready - Version {__version__}, OCR backend '{settings.ocr_backend}', "
        f"timeout {settings.ocr_timeout_seconds:g}s"
    )

    yield

    # Shutdown
    logger.info("Shutting down ID Verification API...")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()
    max_body_bytes = settings.max_request_size_mb * 1024 * 1024

    app = FastAPI(
        title=settings.app_name,
        description="""
## Marketplace ID Verification API

Automatic first-pass verification of seller/buyer ID photos.

### Pipeline
- **Preprocessing**: grayscale, contrast normalization, JPEG re-encode
- **OCR**: EasyOCR or Tesseract, bounded by a timeout
- **Extraction**: name, birthdate and ID number from the card text
- **Validation**: cross-check against the claimed identity

Every upload ends as `verified` or `manual_review`; failures never surface as 5xx.
        """,
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        BodySizeLimitMiddleware,
        max_body_bytes=max_body_bytes,
        reason=f"Request body exceeds {settings.max_request_size_mb}MB limit.",
    )

    # Configure CORS - restrict to allowed frontend origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestShapeError)
    async def request_shape_error_handler(request: Request, exc: RequestShapeError):
        return _failed(exc.status_code, exc.reason)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.info(f"Malformed request to {request.url.path}: {exc.errors()}")
        return _failed(400, "Malformed request body.")

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            return _failed(405, "Method not allowed", headers=exc.headers)
        if exc.status_code == 413:
            return _failed(413, exc.detail)
        return await http_exception_handler(request, exc)

    # Include routes
    app.include_router(router, prefix="/api/v1")

    # Root redirect to docs
    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "message": settings.app_name,
            "version": __version__,
            "docs": "/docs"
        }

    return app


# Create app instance
app = create_app()
