"""OpsPilot: multi-agent orchestration for retail supply chain operations.

Registers independent analysis agents (vendors, invoices, shipments,
customs, ESG, procurement), runs them on demand or on a fixed schedule,
isolates their failures from one another, and keeps an audit trail of
every execution.

Usage:
    from opspilot_agent import (
        AgentOrchestrator, AuditLogWriter, InMemoryDataStore,
        build_default_registry,
    )

    store = InMemoryDataStore()
    orchestrator = AgentOrchestrator(
        build_default_registry(), AuditLogWriter(store), store
    )
    entries = await orchestrator.run_all()
"""

__version__ = "0.1.0"

from .agents import AgentContext, AnalysisUnit, build_default_registry
from .audit import AuditLogWriter
from .config import OpsPilotSettings, get_settings
from .data_store import (
    DataStore,
    InMemoryDataStore,
    SupabaseDataStore,
    create_data_store,
)
from .errors import (
    AuditWriteError,
    NarrativeServiceError,
    NotFoundError,
    OpsPilotError,
    StorageError,
    UnitExecutionError,
)
from .models import AgentStatus, AnalysisResult, AuditRecord, BatchEntry, Outcome
from .narrative import ClaudeNarrativeService, NarrativeService
from .orchestrator import AgentOrchestrator
from .registry import AgentRegistry
from .scheduler import AgentScheduler

__all__ = [
    "AgentContext",
    "AgentOrchestrator",
    "AgentRegistry",
    "AgentScheduler",
    "AgentStatus",
    "AnalysisResult",
    "AnalysisUnit",
    "AuditLogWriter",
    "AuditRecord",
    "AuditWriteError",
    "BatchEntry",
    "ClaudeNarrativeService",
    "DataStore",
    "InMemoryDataStore",
    "NarrativeService",
    "NarrativeServiceError",
    "NotFoundError",
    "OpsPilotError",
    "OpsPilotSettings",
    "Outcome",
    "StorageError",
    "SupabaseDataStore",
    "UnitExecutionError",
    "__version__",
    "build_default_registry",
    "create_data_store",
    "get_settings",
]
