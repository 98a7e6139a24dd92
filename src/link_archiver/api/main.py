"""FastAPI application factory and entry point.

Creates the application instance, registers the request-logging middleware
and mounts the archive and system routers.

Usage::

    # Development server (from project root)
    uvicorn link_archiver.api.main:app --reload
"""

from __future__ import annotations

import time
import uuid
from typing import Callable

import structlog
from fastapi import FastAPI, Request, Response

from link_archiver import __version__
from link_archiver.api.routes import archives, health
from link_archiver.config.settings import Settings, get_settings
from link_archiver.core.logging_config import configure_logging
from link_archiver.resolver import Resolver, get_default_resolver, get_default_state
from link_archiver.titles import TitleExtractor

logger = structlog.get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    resolver: Resolver | None = None,
    title_extractor: TitleExtractor | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    Separated from the module-level ``app`` singleton so that tests can
    build an application around their own settings, resolver or title
    extractor.

    Args:
        settings: Optional settings override; defaults to :func:`get_settings`.
        resolver: Resolver serving the archive routes; by default one built
            on the process-wide :class:`~link_archiver.resolver.ResolverState`.
        title_extractor: Title extractor; by default one sharing the
            process-wide title cache.

    Returns:
        A fully configured ``FastAPI`` instance.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    application = FastAPI(
        title=settings.app_name,
        description="Resolve URLs to their best archived snapshot.",
        version=__version__,
    )

    state = get_default_state()
    application.state.resolver = resolver or get_default_resolver(settings)
    application.state.title_extractor = title_extractor or TitleExtractor(
        settings=settings, title_cache=state.title_cache
    )

    # ---- Request logging middleware ----------------------------------------

    @application.middleware("http")
    async def request_logging_middleware(
        request: Request, call_next: Callable
    ) -> Response:
        """Log every incoming request and its response status + duration.

        Attaches a unique ``request_id`` to the structlog context so that all
        log lines emitted during a request can be correlated.  The ID is
        echoed back in the ``X-Request-ID`` response header.
        """
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as exc:
            logger.error("unhandled_exception", exc_info=exc)
            raise
        finally:
            elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
            log_fn = logger.warning if status_code >= 400 else logger.info
            log_fn("request_complete", status_code=status_code, elapsed_ms=elapsed_ms)

        response.headers["X-Request-ID"] = request_id
        return response

    # ---- Routers ----------------------------------------------------------

    application.include_router(health.router)
    application.include_router(archives.router, prefix="/archives")

    logger.info(
        "application_configured",
        app_name=settings.app_name,
        archive_service=application.state.resolver.service,
        log_level=settings.log_level,
    )
    return application


app = create_app()
"""The FastAPI application instance.

This is the ASGI callable passed to Uvicorn.
"""
