"""Tests for core models and sample data."""

from datetime import UTC, datetime

import pytest
from opspilot_agent.data_store import ESG_SCORES, INVOICES, SHIPMENTS, VENDORS
from opspilot_agent.models import AnalysisResult, AuditRecord, BatchEntry, Outcome
from opspilot_agent.sample_data import build_sample_data, seed_sample_data
from pydantic import ValidationError


class TestAnalysisResult:
    def test_with_summary_returns_copy(self):
        result = AnalysisResult(agent="esg-risk", outcome=Outcome.SUCCESS, summary="ok")

        narrated = result.with_summary("All vendors compliant.")

        assert narrated.narrative == "All vendors compliant."
        assert result.narrative is None
        assert narrated.summary == "ok"

    def test_frozen(self):
        result = AnalysisResult(agent="esg-risk", outcome=Outcome.SUCCESS, summary="ok")
        with pytest.raises(ValidationError):
            result.summary = "changed"


class TestAuditRecord:
    def test_to_row_is_json_ready(self):
        record = AuditRecord(
            agent="vendor-monitor",
            action="Analyzed 5 vendors",
            status=Outcome.DEGRADED,
            entity_type="vendor",
            created_at=datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC),
        )

        row = record.to_row()

        assert row["status"] == "degraded"
        assert row["created_at"].startswith("2025-01-02T03:04:05")
        assert row["metadata"] is None


class TestBatchEntry:
    def test_ok(self):
        assert BatchEntry(name="a", status="success").ok
        assert not BatchEntry(name="a", status="failed", error="x").ok


class TestSampleData:
    def test_tables(self):
        data = build_sample_data(datetime(2025, 6, 1, tzinfo=UTC))

        assert len(data[VENDORS]) == 5
        assert len(data[ESG_SCORES]) == 4
        assert len(data[SHIPMENTS]) == 5
        assert len(data[INVOICES]) == 4

    def test_foreign_keys_resolve(self):
        data = build_sample_data()
        vendor_ids = {v["id"] for v in data[VENDORS]}

        for table in (ESG_SCORES, SHIPMENTS, INVOICES):
            assert {r["vendor_id"] for r in data[table]} <= vendor_ids

    @pytest.mark.asyncio
    async def test_seed_counts(self, store):
        counts = await seed_sample_data(store)

        assert counts == {VENDORS: 5, ESG_SCORES: 4, SHIPMENTS: 5, INVOICES: 4}
        assert len(store.rows(VENDORS)) == 5

    @pytest.mark.asyncio
    async def test_reseed_replaces_rows(self, store):
        await seed_sample_data(store)
        await seed_sample_data(store)

        for table, expected in {VENDORS: 5, ESG_SCORES: 4, SHIPMENTS: 5, INVOICES: 4}.items():
            assert len(store.rows(table)) == expected

    def test_ids_are_stable(self):
        first = build_sample_data(datetime(2025, 6, 1, tzinfo=UTC))
        second = build_sample_data(datetime(2025, 7, 1, tzinfo=UTC))

        for table in (VENDORS, ESG_SCORES, SHIPMENTS, INVOICES):
            assert [r["id"] for r in first[table]] == [r["id"] for r in second[table]]
