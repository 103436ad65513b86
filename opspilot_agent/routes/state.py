"""Shared application state for route modules.

Created once in server.create_app() and injected into each router factory
function, so routes never reach for module-level singletons.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..audit import AuditLogWriter
from ..config import OpsPilotSettings
from ..data_store import DataStore
from ..narrative import NarrativeService
from ..orchestrator import AgentOrchestrator
from ..registry import AgentRegistry
from ..scheduler import AgentScheduler


@dataclass
class AppState:
    """Shared state created during app startup."""

    settings: OpsPilotSettings
    store: DataStore
    registry: AgentRegistry
    audit: AuditLogWriter
    orchestrator: AgentOrchestrator
    scheduler: AgentScheduler
    narrative: NarrativeService | None = None
