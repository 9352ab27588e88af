"""FastAPI application factory.

Lifespan
--------
On startup the app reports which AI providers have credentials and starts a
housekeeping task that periodically sweeps expired cache entries and idle
rate-limit windows.  On shutdown the task is cancelled.

Routers
-------
    /api/analyze   — page -> JSON Feed (heuristic or AI)
    /api/extract   — extraction preview
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pagefeed import __version__
from pagefeed.api.routers import analyze as analyze_router
from pagefeed.config import Settings
from pagefeed.config import settings as default_settings
from pagefeed.service.orchestrator import AnalyzeOrchestrator

logger = logging.getLogger(__name__)


def _log_provider_status(settings: Settings) -> None:
    for provider in settings.providers.values():
        if provider.has_credential:
            logger.info("AI provider %s configured (model=%s)", provider.name, provider.model)
        else:
            logger.warning("Missing environment variable: %s_API_KEY", provider.name.upper())


async def _housekeeping(orchestrator: AnalyzeOrchestrator, interval: float) -> None:
    """Evict expired cache entries and stale rate windows every *interval* s."""
    while True:
        await asyncio.sleep(interval)
        evicted = orchestrator.cache.sweep()
        forgotten = orchestrator.limiter.sweep()
        if evicted or forgotten:
            logger.debug("Housekeeping: %d cache entries, %d rate windows removed", evicted, forgotten)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start the housekeeping task on startup and cancel it on shutdown."""
    settings: Settings = app.state.settings
    _log_provider_status(settings)
    task = asyncio.create_task(
        _housekeeping(app.state.orchestrator, settings.housekeeping_interval)
    )
    try:
        yield
    finally:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(status_code=500, content={"status": "error", "message": "Internal server error"})


def create_app(
    settings: Settings | None = None,
    orchestrator: AnalyzeOrchestrator | None = None,
) -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    settings = settings or default_settings
    app = FastAPI(
        title="PageFeed API",
        description=(
            "Fetches a web page, extracts its main content and returns it as a "
            "JSON Feed 1.1 document, built heuristically or by an AI provider."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.orchestrator = orchestrator or AnalyzeOrchestrator(settings)

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["RateLimit-Limit", "RateLimit-Remaining", "RateLimit-Reset", "Retry-After"],
    )
    app.add_exception_handler(Exception, _unhandled_error)

    app.include_router(analyze_router.router, prefix="/api", tags=["analyze"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn pagefeed.api.app:app --reload
app = create_app()
