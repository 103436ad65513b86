"""Shared fixtures for the OpsPilot test suite."""

from __future__ import annotations

import pytest
from opspilot_agent.agents.base import AgentContext, AnalysisUnit
from opspilot_agent.audit import AuditLogWriter
from opspilot_agent.config import OpsPilotSettings
from opspilot_agent.data_store import AGENT_ACTIONS, InMemoryDataStore
from opspilot_agent.errors import StorageError
from opspilot_agent.models import AnalysisResult
from opspilot_agent.orchestrator import AgentOrchestrator
from opspilot_agent.registry import AgentRegistry


class StubUnit(AnalysisUnit):
    """Configurable unit: succeeds, reports findings, or raises."""

    def __init__(
        self,
        name: str,
        *,
        error: Exception | None = None,
        degraded: bool = False,
        entity_type: str = "test",
    ):
        self.name = name
        self.display_name = f"{name} agent"
        self.entity_type = entity_type
        self.error = error
        self.degraded = degraded
        self.calls = 0
        self.last_context: AgentContext | None = None

    async def execute(self, context: AgentContext) -> AnalysisResult:
        self.calls += 1
        self.last_context = context
        if self.error is not None:
            raise self.error
        return self.build_result(
            summary=f"{self.name} finished",
            payload={"input": context.input},
            recommendations=[],
            degraded=self.degraded,
        )


class AuditFailingStore(InMemoryDataStore):
    """In-memory store whose audit table rejects every write."""

    async def insert(self, table, records):
        if table == AGENT_ACTIONS:
            raise StorageError("agent_actions unavailable")
        return await super().insert(table, records)


@pytest.fixture
def settings():
    return OpsPilotSettings(scheduler_enabled=False, anthropic_api_key="")


@pytest.fixture
def store():
    return InMemoryDataStore()


@pytest.fixture
def make_unit():
    return StubUnit


@pytest.fixture
def make_orchestrator(store, settings):
    """Build an orchestrator over the given units (registered in order)."""

    def _make(*units, data_store=None):
        registry = AgentRegistry()
        for unit in units:
            registry.register(unit.name, unit)
        backend = data_store or store
        return AgentOrchestrator(
            registry, AuditLogWriter(backend), backend, settings=settings
        )

    return _make


@pytest.fixture
def audit_failing_store():
    return AuditFailingStore()
