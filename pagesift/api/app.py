"""FastAPI application factory.

Lifespan
--------
On startup the app configures logging and builds a single
:class:`~pagesift.scraper.pipeline.ScrapePipeline` (shared across all
requests via ``request.app.state.pipeline``).  Browser launch options are
resolved from settings at this point, not per request.

Routers
-------
    /scrape    — fetch-or-render a URL and extract its content
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pagesift.config import settings
from pagesift.logging_config import configure_logging
from pagesift.scraper.pipeline import ScrapePipeline, build_pipeline

from pagesift.api.routers import scrape as scrape_router


def create_app(pipeline: Optional[ScrapePipeline] = None) -> FastAPI:
    """Return a fully-configured FastAPI application instance.

    Args:
        pipeline: Pipeline to serve; built from settings when omitted.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings.log_format, settings.log_level)
        app.state.pipeline = pipeline or build_pipeline(settings)
        yield

    app = FastAPI(
        title="pagesift API",
        description=(
            "Retrieves an arbitrary web page, escalating from a direct fetch "
            "to stealth and plain headless browsers when bot protection is "
            "detected, and returns its title, description and main content."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(scrape_router.router, prefix="/scrape", tags=["scrape"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn pagesift.api.app:app --reload
app = create_app()
