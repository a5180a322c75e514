"""API dependencies: dependency injection for FastAPI endpoints."""

from __future__ import annotations

from ess.core.pipeline import ResponsePipeline

# Global pipeline instance (set during application lifespan)
_pipeline: ResponsePipeline | None = None


def set_pipeline(pipeline: ResponsePipeline | None) -> None:
    """Set the global pipeline instance (called during app lifespan)."""
    global _pipeline
    _pipeline = pipeline


def get_pipeline() -> ResponsePipeline:
    """Get the global ESS pipeline instance.

    Returns:
        The initialized ResponsePipeline.

    Raises:
        RuntimeError: If the pipeline is not initialized.
    """
    if _pipeline is None:
        raise RuntimeError("ESS pipeline not initialized. Is the server running?")
    return _pipeline
