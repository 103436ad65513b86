"""Health check endpoint.

GET /health: liveness plus a summary of configured collaborators.
"""

from __future__ import annotations

from fastapi import APIRouter

from .. import __version__
from ..api_models import ApiResponse, HealthResponse
from .state import AppState


def create_health_router(state: AppState) -> APIRouter:
    router = APIRouter(tags=["health"])

    @router.get("/health", response_model=ApiResponse)
    async def health_check() -> ApiResponse:
        """Health check; always 200 while the process is up."""
        payload = HealthResponse(
            version=__version__,
            store_backend=type(state.store).__name__,
            agents=len(state.registry),
            narrative_enabled=state.narrative is not None,
            scheduler_running=state.scheduler.is_running,
            dev_mode=state.settings.dev_mode,
        )
        return ApiResponse(data=payload.model_dump())

    return router
