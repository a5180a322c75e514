"""FastAPI application factory and lifecycle management."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from ess import __version__
from ess.api.deps import set_pipeline
from ess.api.router import router
from ess.config.settings import Settings
from ess.core.pipeline import ResponsePipeline
from ess.observability.logging import setup_logging

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from environment.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        # Auto-detect ess-config.yaml if present
        yaml_path = Path("ess-config.yaml")
        if yaml_path.exists():
            logger.info("Loading configuration from %s", yaml_path)
            settings = Settings.from_yaml(yaml_path)
        else:
            settings = Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Manage application lifecycle (startup/shutdown)."""
        setup_logging(settings.observability)
        logger.info("Starting ESS v%s", __version__)

        pipeline = ResponsePipeline(settings)
        await pipeline.initialize()
        set_pipeline(pipeline)

        app.state.settings = settings
        app.state.pipeline = pipeline

        if not settings.search.bases:
            logger.warning("No bases configured; every search will be rejected")
        logger.info("ESS is ready to serve requests on port %d", settings.server.port)
        yield

        logger.info("Shutting down ESS...")
        await pipeline.shutdown()
        set_pipeline(None)
        logger.info("ESS shutdown complete")

    app = FastAPI(
        title="ESS",
        description=(
            "External Search Service - forwards searches to an SRU search proxy "
            "and formats each returned record."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.include_router(router)

    return app
