"""OpsPilot agent service API.

FastAPI application exposing the agent orchestrator over HTTP.

Endpoints:
    GET  /health                         health check
    POST /api/v1/agents/run/{name}       run one agent
    POST /api/v1/agents/run-all          run every agent once
    GET  /api/v1/agents/status           registry status
    GET  /api/v1/agents/activity         recent audit records
    GET  /api/v1/agents/scheduler        scheduler status
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .agents import build_default_registry
from .api_models import ApiErrorResponse, ErrorResponse
from .audit import AuditLogWriter
from .config import OpsPilotSettings, get_settings
from .data_store import create_data_store
from .errors import NotFoundError, OpsPilotError, UnitExecutionError
from .narrative import create_narrative_service
from .orchestrator import AgentOrchestrator
from .routes import AppState, create_agents_router, create_health_router
from .sample_data import seed_sample_data
from .scheduler import AgentScheduler

logger = logging.getLogger("opspilot.server")


def build_state(settings: OpsPilotSettings) -> AppState:
    """Wire the store, narrative service, registry, orchestrator and scheduler."""
    store = create_data_store(
        settings.supabase_url,
        settings.supabase_service_key,
        timeout=settings.supabase_timeout_seconds,
    )
    narrative = create_narrative_service(
        settings.anthropic_api_key,
        model=settings.narrative_model,
        max_tokens=settings.narrative_max_tokens,
        timeout=settings.narrative_timeout_seconds,
    )
    registry = build_default_registry()
    audit = AuditLogWriter(store)
    orchestrator = AgentOrchestrator(
        registry, audit, store, narrative=narrative, settings=settings
    )
    scheduler = AgentScheduler(
        orchestrator, interval=settings.scheduler_interval_seconds
    )
    return AppState(
        settings=settings,
        store=store,
        registry=registry,
        audit=audit,
        orchestrator=orchestrator,
        scheduler=scheduler,
        narrative=narrative,
    )


def _error(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    body = ApiErrorResponse(
        error=ErrorResponse(code=code, message=message, detail=detail)
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def create_app(
    settings: OpsPilotSettings | None = None,
    state: AppState | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = state.settings if state is not None else get_settings()
    if state is None:
        state = build_state(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Starting OpsPilot v%s with %d agents (%s)",
            __version__,
            len(state.registry),
            type(state.store).__name__,
        )
        if settings.seed_sample_data:
            await seed_sample_data(state.store)
        if settings.scheduler_enabled:
            state.scheduler.start()
        yield
        await state.scheduler.stop()
        await state.store.close()
        logger.info("OpsPilot shut down")

    app = FastAPI(
        title="OpsPilot Agents",
        version=__version__,
        description="Multi-agent supply chain analysis for retail operations.",
        lifespan=lifespan,
    )
    app.state.opspilot = state

    origins = ["*"] if settings.dev_mode else ["http://localhost:3000"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------
    # Error handlers
    # -----------------------------------------------------------------

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return _error(404, "AGENT_NOT_FOUND", str(exc))

    @app.exception_handler(UnitExecutionError)
    async def unit_error_handler(
        request: Request, exc: UnitExecutionError
    ) -> JSONResponse:
        return _error(500, "AGENT_EXECUTION_FAILED", str(exc), detail=exc.agent)

    @app.exception_handler(OpsPilotError)
    async def opspilot_error_handler(
        request: Request, exc: OpsPilotError
    ) -> JSONResponse:
        logger.error("Request failed: %s", exc)
        return _error(500, "OPSPILOT_ERROR", str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error(
            422,
            "VALIDATION_ERROR",
            "Invalid request",
            detail=str(exc.errors()) if settings.dev_mode else None,
        )

    @app.exception_handler(Exception)
    async def general_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error: %s", exc)
        return _error(
            500,
            "INTERNAL_ERROR",
            "An unexpected error occurred",
            detail=str(exc) if settings.dev_mode else None,
        )

    app.include_router(create_health_router(state))
    app.include_router(create_agents_router(state))

    return app
