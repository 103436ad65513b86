"""Agent execution and status endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Query

from ..api_models import ApiResponse, RunAgentRequest, SchedulerStatusResponse
from .state import AppState

logger = logging.getLogger("opspilot.routes.agents")


def create_agents_router(state: AppState) -> APIRouter:
    router = APIRouter(prefix="/api/v1/agents", tags=["agents"])

    @router.post("/run/{name}", response_model=ApiResponse)
    async def run_agent(
        name: str,
        body: RunAgentRequest | None = Body(default=None),
    ) -> ApiResponse:
        """Run one agent. NotFoundError/UnitExecutionError map to 404/500."""
        data = body.data if body else {}
        result = await state.orchestrator.run_one(name, data)
        return ApiResponse(data=result.model_dump(mode="json"))

    @router.post("/run-all", response_model=ApiResponse)
    async def run_all_agents() -> ApiResponse:
        """Run every agent once. Per-agent failures are reported in the batch."""
        entries = await state.orchestrator.run_all()
        return ApiResponse(data=[e.model_dump(mode="json") for e in entries])

    @router.get("/status", response_model=ApiResponse)
    async def agent_status() -> ApiResponse:
        return ApiResponse(
            data=[s.model_dump(mode="json") for s in state.registry.status()]
        )

    @router.get("/activity", response_model=ApiResponse)
    async def agent_activity(limit: int = Query(default=10, ge=1, le=100)) -> ApiResponse:
        """Most recent audit records, newest first."""
        return ApiResponse(data=await state.audit.recent(limit))

    @router.get("/scheduler", response_model=ApiResponse)
    async def scheduler_status() -> ApiResponse:
        payload = SchedulerStatusResponse(
            enabled=state.settings.scheduler_enabled,
            **state.scheduler.status(),
        )
        return ApiResponse(data=payload.model_dump(mode="json"))

    return router
