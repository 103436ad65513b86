"""Tests for the command line entry point."""

import json

import pytest
from opspilot_agent.__main__ import main
from opspilot_agent.config import get_settings


@pytest.fixture(autouse=True)
def in_memory_settings(monkeypatch):
    """Force the in-memory store and no narrative for every CLI test."""
    monkeypatch.setenv("OPSPILOT_SUPABASE_URL", "")
    monkeypatch.setenv("OPSPILOT_ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("OPSPILOT_SEED_SAMPLE_DATA", "false")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestCLI:
    def test_status_lists_agents(self, capsys):
        assert main(["status"]) == 0

        out = capsys.readouterr().out
        for name in ["vendor-monitor", "invoice-validator", "procurement"]:
            assert name in out

    def test_run_unknown_agent(self, capsys):
        assert main(["run", "ghost"]) == 1
        assert "Agent 'ghost' not found" in capsys.readouterr().err

    def test_run_with_seed_prints_result(self, capsys):
        assert main(["run", "vendor-monitor", "--seed"]) == 0

        result = json.loads(capsys.readouterr().out)
        assert result["agent"] == "vendor-monitor"
        assert result["payload"]["total_vendors"] == 5

    def test_run_all_with_seed(self, capsys):
        assert main(["run-all", "--seed"]) == 0

        entries = json.loads(capsys.readouterr().out)
        assert len(entries) == 6
        assert all(e["status"] == "success" for e in entries)

    def test_seed(self, capsys):
        assert main(["seed"]) == 0
        assert "vendors" in capsys.readouterr().out

    def test_no_command(self):
        assert main([]) == 1
