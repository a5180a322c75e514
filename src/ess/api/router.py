"""API Router - search, health, and metrics endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from ess.api.endpoints.health import router as health_router
from ess.api.endpoints.search import router as search_router

router = APIRouter()
router.include_router(health_router)
router.include_router(search_router)
