"""API request/response models for the OpsPilot agent service.

Every response uses the same envelope:

    success -> {"success": true,  "data": ...,  "timestamp": ...}
    failure -> {"success": false, "error": {code, message, detail}, "timestamp": ...}
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .models import utcnow

# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error body."""

    code: str
    message: str
    detail: str | None = None


class ApiResponse(BaseModel):
    """Success envelope."""

    success: bool = True
    data: Any = None
    timestamp: datetime = Field(default_factory=utcnow)


class ApiErrorResponse(BaseModel):
    """Failure envelope."""

    success: bool = False
    error: ErrorResponse
    timestamp: datetime = Field(default_factory=utcnow)


# ---------------------------------------------------------------------------
# Agents
# ---------------------------------------------------------------------------


class RunAgentRequest(BaseModel):
    """Request body for POST /api/v1/agents/run/{name}."""

    data: dict[str, Any] = Field(default_factory=dict)


class SchedulerStatusResponse(BaseModel):
    """Payload of GET /api/v1/agents/scheduler."""

    enabled: bool
    running: bool
    interval_seconds: float
    tick_count: int
    last_tick_at: datetime | None = None
    last_error: str | None = None


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Payload of GET /health."""

    status: str = "ok"
    version: str
    store_backend: str
    agents: int
    narrative_enabled: bool
    scheduler_running: bool
    dev_mode: bool = False
