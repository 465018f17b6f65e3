"""FastAPI application entry point."""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from backend.api.health import router as health_router
from backend.api.posts import post_router
from backend.api.posts import router as posts_router
from backend.api.preview import router as preview_router
from backend.cms.prismic import PrismicClient
from backend.config import Settings
from backend.exceptions import (
    ContentSourceError,
    InvalidCursorError,
    InvalidTokenError,
    MalformedDocumentError,
    PostNotFoundError,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from backend.cms.base import ContentSource

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool) -> None:
    """Configure application logging."""
    level = logging.DEBUG if debug else logging.INFO
    fmt = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
    logging.basicConfig(
        level=level,
        format=fmt,
        stream=sys.stdout,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.INFO if debug else logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan: startup and shutdown."""
    settings: Settings = app.state.settings
    settings.validate_runtime_security()
    _configure_logging(settings.debug)
    logger.info("Starting blog content service (debug=%s)", settings.debug)

    http_client: httpx.AsyncClient | None = None
    if getattr(app.state, "content_source", None) is None:
        http_client = httpx.AsyncClient(
            timeout=settings.cms_timeout_seconds,
            headers={"Accept": "application/json"},
        )
        app.state.content_source = PrismicClient(
            settings.cms_api_url,
            http_client,
            access_token=settings.cms_access_token,
            max_retries=settings.cms_max_retries,
            backoff_seconds=settings.cms_retry_backoff_seconds,
            preview_hosts=settings.cms_preview_hosts,
        )
        logger.info("Using content source at %s", settings.cms_api_url)

    yield

    if http_client is not None:
        try:
            await http_client.aclose()
        except Exception as exc:
            logger.error("Error during HTTP client shutdown: %s", exc, exc_info=True)
        app.state.content_source = None

    logger.info("Blog content service stopped")


def create_app(
    settings: Settings | None = None,
    content_source: ContentSource | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = Settings()

    docs_enabled = settings.debug or settings.expose_docs

    app = FastAPI(
        title="Blog content service",
        description="Content assembly for a headless-CMS blog",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )
    app.state.settings = settings
    app.state.content_source = content_source

    app.add_middleware(GZipMiddleware, minimum_size=500)

    cors_origins = (
        settings.cors_origins
        if settings.cors_origins
        else (["http://localhost:3000", "http://localhost:8000"] if settings.debug else [])
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(posts_router)
    app.include_router(post_router)
    app.include_router(preview_router)

    # Global exception handlers

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = []
        for err in exc.errors():
            loc = err.get("loc", ())
            field = str(loc[-1]) if loc else "unknown"
            errors.append({"field": field, "message": err.get("msg", "Invalid value")})
        logger.warning(
            "RequestValidationError in %s %s: %s",
            request.method,
            request.url.path,
            errors,
        )
        return JSONResponse(status_code=422, content={"detail": errors})

    @app.exception_handler(InvalidTokenError)
    async def invalid_token_handler(request: Request, exc: InvalidTokenError) -> JSONResponse:
        logger.warning("InvalidTokenError in %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=401, content={"message": "Invalid token"})

    @app.exception_handler(PostNotFoundError)
    async def not_found_handler(request: Request, exc: PostNotFoundError) -> JSONResponse:
        logger.info("PostNotFoundError in %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=404, content={"detail": "Post not found"})

    @app.exception_handler(MalformedDocumentError)
    async def malformed_document_handler(
        request: Request, exc: MalformedDocumentError
    ) -> JSONResponse:
        logger.error(
            "MalformedDocumentError in %s %s: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Malformed content document"},
        )

    @app.exception_handler(InvalidCursorError)
    async def invalid_cursor_handler(request: Request, exc: InvalidCursorError) -> JSONResponse:
        logger.warning("InvalidCursorError in %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=400, content={"detail": "Invalid cursor"})

    @app.exception_handler(ContentSourceError)
    async def content_source_error_handler(
        request: Request, exc: ContentSourceError
    ) -> JSONResponse:
        logger.error(
            "ContentSourceError in %s %s: %s", request.method, request.url.path, exc, exc_info=exc
        )
        return JSONResponse(
            status_code=502,
            content={"detail": "Content source unavailable"},
        )

    return app


app = create_app()


def cli_entry() -> None:
    """CLI entry point for running the server."""
    import uvicorn

    settings: Settings = app.state.settings
    uvicorn.run(
        "backend.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
