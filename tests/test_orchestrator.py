"""Tests for the agent orchestrator.

Covers run_one / run_all, failure isolation, and the one-audit-record-per-
execution guarantee.
"""

import pytest
from opspilot_agent.data_store import AGENT_ACTIONS
from opspilot_agent.errors import NotFoundError, UnitExecutionError
from opspilot_agent.models import Outcome, Trigger

# ---------------------------------------------------------------------------
# run_one
# ---------------------------------------------------------------------------


class TestRunOne:
    @pytest.mark.asyncio
    async def test_success_writes_one_audit_record(self, make_unit, make_orchestrator, store):
        orch = make_orchestrator(make_unit("vendor-monitor"))

        result = await orch.run_one("vendor-monitor")

        assert result.agent == "vendor-monitor"
        assert result.outcome == Outcome.SUCCESS
        rows = store.rows(AGENT_ACTIONS)
        assert len(rows) == 1
        assert rows[0]["agent"] == "vendor-monitor"
        assert rows[0]["status"] == "success"
        assert rows[0]["action"] == "vendor-monitor finished"
        assert rows[0]["entity_type"] == "test"

    @pytest.mark.asyncio
    async def test_degraded_outcome_is_audited_as_degraded(
        self, make_unit, make_orchestrator, store
    ):
        orch = make_orchestrator(make_unit("esg-risk", degraded=True))

        result = await orch.run_one("esg-risk")

        assert result.outcome == Outcome.DEGRADED
        assert store.rows(AGENT_ACTIONS)[0]["status"] == "degraded"

    @pytest.mark.asyncio
    async def test_unknown_agent_raises_and_writes_nothing(
        self, make_unit, make_orchestrator, store
    ):
        orch = make_orchestrator(make_unit("vendor-monitor"))

        with pytest.raises(NotFoundError) as exc_info:
            await orch.run_one("nonexistent")

        assert exc_info.value.name == "nonexistent"
        assert store.rows(AGENT_ACTIONS) == []

    @pytest.mark.asyncio
    async def test_unit_failure_propagates_with_its_message(
        self, make_unit, make_orchestrator, store
    ):
        cause = RuntimeError("db timeout")
        orch = make_orchestrator(make_unit("vendor-monitor", error=cause))

        with pytest.raises(UnitExecutionError) as exc_info:
            await orch.run_one("vendor-monitor")

        assert str(exc_info.value) == "db timeout"
        assert exc_info.value.agent == "vendor-monitor"
        assert exc_info.value.__cause__ is cause

        rows = store.rows(AGENT_ACTIONS)
        assert len(rows) == 1
        assert rows[0]["status"] == "failed"
        assert rows[0]["metadata"]["error"] == "db timeout"

    @pytest.mark.asyncio
    async def test_audit_failure_does_not_fail_the_run(
        self, make_unit, make_orchestrator, audit_failing_store
    ):
        orch = make_orchestrator(
            make_unit("vendor-monitor"), data_store=audit_failing_store
        )

        result = await orch.run_one("vendor-monitor")

        assert result.outcome == Outcome.SUCCESS

    @pytest.mark.asyncio
    async def test_unit_error_survives_audit_failure(
        self, make_unit, make_orchestrator, audit_failing_store
    ):
        orch = make_orchestrator(
            make_unit("vendor-monitor", error=RuntimeError("db timeout")),
            data_store=audit_failing_store,
        )

        with pytest.raises(UnitExecutionError, match="db timeout"):
            await orch.run_one("vendor-monitor")

        entries = await orch.run_all()
        assert [(e.name, e.status, e.error) for e in entries] == [
            ("vendor-monitor", "failed", "db timeout")
        ]

    @pytest.mark.asyncio
    async def test_input_reaches_the_unit(self, make_unit, make_orchestrator):
        unit = make_unit("invoice-validator")
        orch = make_orchestrator(unit)

        result = await orch.run_one("invoice-validator", {"invoice_id": "inv-1"})

        assert unit.last_context.input == {"invoice_id": "inv-1"}
        assert result.payload == {"input": {"invoice_id": "inv-1"}}

    @pytest.mark.asyncio
    async def test_metadata_records_trigger_and_run_id(
        self, make_unit, make_orchestrator, store
    ):
        orch = make_orchestrator(make_unit("vendor-monitor"))

        await orch.run_one("vendor-monitor")
        await orch.run_one("vendor-monitor", trigger=Trigger.SCHEDULED)

        first, second = store.rows(AGENT_ACTIONS)
        assert first["metadata"]["trigger"] == "manual"
        assert second["metadata"]["trigger"] == "scheduled"
        assert first["metadata"]["run_id"] != second["metadata"]["run_id"]
        assert first["metadata"]["duration_ms"] >= 0

    @pytest.mark.asyncio
    async def test_repeated_runs_are_independent(self, make_unit, make_orchestrator, store):
        unit = make_unit("vendor-monitor")
        orch = make_orchestrator(unit)

        await orch.run_one("vendor-monitor")
        await orch.run_one("vendor-monitor")

        assert unit.calls == 2
        assert len(store.rows(AGENT_ACTIONS)) == 2

    @pytest.mark.asyncio
    async def test_registry_status_tracks_last_run(self, make_unit, make_orchestrator):
        orch = make_orchestrator(
            make_unit("vendor-monitor"),
            make_unit("invoice-validator", error=RuntimeError("boom")),
        )

        await orch.run_one("vendor-monitor")
        with pytest.raises(UnitExecutionError):
            await orch.run_one("invoice-validator")

        status = {s.name: s for s in orch.registry.status()}
        assert status["vendor-monitor"].last_outcome == Outcome.SUCCESS
        assert status["vendor-monitor"].last_run_at is not None
        assert status["invoice-validator"].last_outcome == Outcome.FAILED


# ---------------------------------------------------------------------------
# run_all
# ---------------------------------------------------------------------------


class TestRunAll:
    @pytest.mark.asyncio
    async def test_one_record_per_unit_in_registry_order(
        self, make_unit, make_orchestrator, store
    ):
        names = ["vendor-monitor", "invoice-validator", "shipment-tracker"]
        orch = make_orchestrator(*(make_unit(n) for n in names))

        entries = await orch.run_all()

        assert [e.name for e in entries] == names
        assert [r["agent"] for r in store.rows(AGENT_ACTIONS)] == names
        assert all(r["metadata"]["trigger"] == "batch" for r in store.rows(AGENT_ACTIONS))

    @pytest.mark.asyncio
    async def test_failing_unit_does_not_stop_the_batch(
        self, make_unit, make_orchestrator, store
    ):
        orch = make_orchestrator(
            make_unit("vendor-monitor"),
            make_unit("invoice-validator", error=RuntimeError("db timeout")),
        )

        entries = await orch.run_all()

        assert [e.status for e in entries] == ["success", "failed"]
        assert entries[0].result is not None
        assert entries[1].error == "db timeout"
        assert entries[1].result is None

        rows = store.rows(AGENT_ACTIONS)
        assert [r["agent"] for r in rows] == ["vendor-monitor", "invoice-validator"]
        assert [r["status"] for r in rows] == ["success", "failed"]

    @pytest.mark.asyncio
    async def test_units_after_a_failure_still_run(self, make_unit, make_orchestrator):
        last = make_unit("esg-risk")
        orch = make_orchestrator(
            make_unit("vendor-monitor", error=ValueError("bad data")),
            last,
        )

        entries = await orch.run_all()

        assert last.calls == 1
        assert entries[-1].ok

    @pytest.mark.asyncio
    async def test_degraded_unit_counts_as_success(self, make_unit, make_orchestrator):
        orch = make_orchestrator(make_unit("esg-risk", degraded=True))

        (entry,) = await orch.run_all()

        assert entry.status == "success"
        assert entry.result.outcome == Outcome.DEGRADED

    @pytest.mark.asyncio
    async def test_empty_registry(self, make_orchestrator, store):
        orch = make_orchestrator()

        assert await orch.run_all() == []
        assert store.rows(AGENT_ACTIONS) == []

    @pytest.mark.asyncio
    async def test_audit_failures_do_not_change_entries(
        self, make_unit, make_orchestrator, audit_failing_store
    ):
        orch = make_orchestrator(
            make_unit("vendor-monitor"),
            make_unit("invoice-validator"),
            data_store=audit_failing_store,
        )

        entries = await orch.run_all()

        assert [e.status for e in entries] == ["success", "success"]

    @pytest.mark.asyncio
    async def test_default_agents_run_against_sample_data(self, store, settings):
        from opspilot_agent.agents import build_default_registry
        from opspilot_agent.audit import AuditLogWriter
        from opspilot_agent.orchestrator import AgentOrchestrator
        from opspilot_agent.sample_data import seed_sample_data

        await seed_sample_data(store)
        registry = build_default_registry()
        orch = AgentOrchestrator(registry, AuditLogWriter(store), store, settings=settings)

        entries = await orch.run_all()

        assert [e.name for e in entries] == registry.list_names()
        assert all(e.ok for e in entries), [e.error for e in entries]
        assert len(store.rows(AGENT_ACTIONS)) == 6
