"""Core data models for agent execution.

AnalysisResult and AuditRecord are frozen: once a unit has produced a
result it is never mutated, only copied (see AnalysisResult.with_summary).
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(UTC)


class Outcome(str, Enum):
    """Outcome category of one unit execution."""

    SUCCESS = "success"
    DEGRADED = "degraded"
    FAILED = "failed"


class RunState(str, Enum):
    """Per-unit, per-invocation lifecycle. No retry state."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Trigger(str, Enum):
    """What started an execution."""

    MANUAL = "manual"
    BATCH = "batch"
    SCHEDULED = "scheduled"


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class AnalysisResult(BaseModel):
    """Result of one analysis unit execution."""

    model_config = ConfigDict(frozen=True)

    agent: str
    outcome: Outcome
    summary: str
    payload: dict[str, Any] = Field(default_factory=dict)
    recommendations: list[str] = Field(default_factory=list)
    completed_at: datetime = Field(default_factory=utcnow)
    narrative: str | None = None

    def with_summary(self, text: str) -> AnalysisResult:
        """Return a copy carrying a prose narrative."""
        return self.model_copy(update={"narrative": text})


class BatchEntry(BaseModel):
    """One unit's slot in a batch run."""

    name: str
    status: str  # "success" | "failed"
    result: AnalysisResult | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "success"


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------


class AuditRecord(BaseModel):
    """Append-only entry describing one execution attempt."""

    model_config = ConfigDict(frozen=True)

    agent: str
    action: str
    status: Outcome
    entity_type: str
    metadata: dict[str, Any] | None = None
    created_at: datetime = Field(default_factory=utcnow)

    def to_row(self) -> dict[str, Any]:
        """Serialize for insertion into the agent_actions table."""
        return self.model_dump(mode="json")


# ---------------------------------------------------------------------------
# Registry status
# ---------------------------------------------------------------------------


class AgentStatus(BaseModel):
    """Read-only status snapshot for one registered agent."""

    name: str
    display_name: str
    entity_type: str
    state: str = "active"
    last_run_at: datetime | None = None
    last_outcome: Outcome | None = None
