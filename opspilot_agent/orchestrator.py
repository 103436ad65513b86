"""Agent Orchestrator.

Runs registered analysis units one at a time, isolates their failures,
and appends exactly one audit record per execution attempt.

    run_one(name)  -> AnalysisResult, or raises NotFoundError /
                      UnitExecutionError
    run_all()      -> list[BatchEntry] in registry order; a failing unit
                      never stops the ones after it

Per-unit lifecycle: PENDING -> RUNNING -> SUCCEEDED | FAILED. There is no
retry and no duplicate suppression; every call is an independent run.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Any

from .agents.base import AgentContext, AnalysisUnit
from .audit import AuditLogWriter
from .config import OpsPilotSettings
from .data_store import DataStore
from .errors import UnitExecutionError
from .models import (
    AnalysisResult,
    AuditRecord,
    BatchEntry,
    Outcome,
    RunState,
    Trigger,
    utcnow,
)
from .narrative import NarrativeService
from .registry import AgentRegistry

logger = logging.getLogger("opspilot.orchestrator")


class AgentOrchestrator:
    """Executes agents from the registry with audit logging."""

    def __init__(
        self,
        registry: AgentRegistry,
        audit: AuditLogWriter,
        store: DataStore,
        *,
        narrative: NarrativeService | None = None,
        settings: OpsPilotSettings | None = None,
    ) -> None:
        self.registry = registry
        self.audit = audit
        self.store = store
        self.narrative = narrative
        self.settings = settings or OpsPilotSettings()

    def _context(self, input: dict[str, Any] | None) -> AgentContext:
        return AgentContext(
            store=self.store,
            narrative=self.narrative,
            input=dict(input or {}),
            now=utcnow(),
            settings=self.settings,
        )

    def _failure_record(
        self,
        name: str,
        unit: AnalysisUnit,
        run_id: str,
        trigger: Trigger,
        started: float,
        error: str,
    ) -> AuditRecord:
        duration_ms = round((time.perf_counter() - started) * 1000, 1)
        logger.error("%s [%s] %s: %s", name, run_id, RunState.FAILED.value, error)
        self.registry.record_run(name, utcnow(), Outcome.FAILED)
        return AuditRecord(
            agent=name,
            action=f"{unit.display_name or name} failed: {error}",
            status=Outcome.FAILED,
            entity_type=unit.entity_type,
            metadata={
                "run_id": run_id,
                "trigger": trigger.value,
                "duration_ms": duration_ms,
                "error": error,
            },
        )

    async def _execute(
        self,
        name: str,
        unit: AnalysisUnit,
        input: dict[str, Any] | None,
        trigger: Trigger,
    ) -> AnalysisResult:
        """Run one unit and audit it. Re-raises whatever the unit raised.

        A cancelled run is still audited as failed before the cancellation
        propagates.
        """
        run_id = uuid.uuid4().hex
        logger.debug("%s [%s] %s", name, run_id, RunState.PENDING.value)

        started = time.perf_counter()
        logger.info("%s [%s] %s (trigger=%s)", name, run_id, RunState.RUNNING.value, trigger.value)
        try:
            result = await unit.execute(self._context(input))
        except asyncio.CancelledError:
            record = self._failure_record(name, unit, run_id, trigger, started, "cancelled")
            await asyncio.shield(self.audit.append(record))
            raise
        except Exception as e:
            record = self._failure_record(name, unit, run_id, trigger, started, str(e))
            await self.audit.append(record)
            raise

        duration_ms = round((time.perf_counter() - started) * 1000, 1)
        logger.info(
            "%s [%s] %s outcome=%s (%.1fms)",
            name,
            run_id,
            RunState.SUCCEEDED.value,
            result.outcome.value,
            duration_ms,
        )
        self.registry.record_run(name, result.completed_at, result.outcome)
        await self.audit.append(
            AuditRecord(
                agent=name,
                action=result.summary,
                status=result.outcome,
                entity_type=unit.entity_type,
                metadata={
                    "run_id": run_id,
                    "trigger": trigger.value,
                    "duration_ms": duration_ms,
                },
            )
        )
        return result

    async def run_one(
        self,
        name: str,
        input: dict[str, Any] | None = None,
        *,
        trigger: Trigger = Trigger.MANUAL,
    ) -> AnalysisResult:
        """Execute a single agent by name.

        Raises:
            NotFoundError: ``name`` is not registered (nothing is audited).
            UnitExecutionError: the unit raised; carries its message.
        """
        unit = self.registry.lookup(name)
        try:
            return await self._execute(name, unit, input, trigger)
        except Exception as e:
            raise UnitExecutionError(name, str(e)) from e

    async def run_all(self, *, trigger: Trigger = Trigger.BATCH) -> list[BatchEntry]:
        """Execute every registered agent sequentially, in registry order."""
        names = self.registry.list_names()
        logger.info("Batch run of %d agent(s) (trigger=%s)", len(names), trigger.value)

        entries: list[BatchEntry] = []
        for name in names:
            unit = self.registry.lookup(name)
            try:
                result = await self._execute(name, unit, None, trigger)
            except Exception as e:
                entries.append(BatchEntry(name=name, status="failed", error=str(e)))
                continue
            entries.append(BatchEntry(name=name, status="success", result=result))

        failed = sum(1 for e in entries if not e.ok)
        logger.info("Batch run complete: %d ok, %d failed", len(entries) - failed, failed)
        return entries
