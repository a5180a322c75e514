"""Health and metrics endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, Field

from ess import __version__
from ess.api.deps import get_pipeline
from ess.core.pipeline import ResponsePipeline

router = APIRouter()


class HealthResponse(BaseModel):
    """System health check response."""

    status: str = Field(description="Health status (e.g. 'healthy')")
    version: str = Field(description="ESS server version")
    service: str = Field(description="Service name ('ess')")
    bases: list[str] = Field(description="Bases callers may search")
    sru_url: str = Field(description="SRU backend base URL")
    worker_pool: dict[str, Any] = Field(description="Formatting worker pool statistics")


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="System Health Check",
    description="Returns service version, configured bases, and worker pool state.",
)
async def health_check(
    pipeline: ResponsePipeline = Depends(get_pipeline),
) -> HealthResponse:
    """Basic health check endpoint."""
    pool_stats = pipeline.pool.stats()
    return HealthResponse(
        status="healthy" if pool_stats["running"] else "unhealthy",
        version=__version__,
        service="ess",
        bases=sorted(pipeline.normalizer.known_bases),
        sru_url=pipeline.backend.base_url,
        worker_pool=pool_stats,
    )


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Prometheus exposition of the process metrics."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
