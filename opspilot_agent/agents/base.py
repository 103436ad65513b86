"""Analysis unit base class and execution context.

An analysis unit is a named, stateless computation: it reads the data it
needs from the Data Store in ``context``, computes findings and returns an
AnalysisResult. Units do not guard against their own exceptions; the
orchestrator isolates failures.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any

from ..config import OpsPilotSettings
from ..data_store import DataStore
from ..models import AnalysisResult, Outcome, utcnow
from ..narrative import NarrativeService

logger = logging.getLogger("opspilot.agents")


def parse_datetime(value: Any) -> datetime | None:
    """Coerce a row timestamp (ISO string, date or datetime) to aware UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass
class AgentContext:
    """Everything a unit needs to fetch and evaluate its own snapshot."""

    store: DataStore
    narrative: NarrativeService | None = None
    input: dict[str, Any] = field(default_factory=dict)
    now: datetime = field(default_factory=utcnow)
    settings: OpsPilotSettings = field(default_factory=OpsPilotSettings)


class AnalysisUnit(ABC):
    """Base class for all analysis agents."""

    name: str = ""
    display_name: str = ""
    entity_type: str = ""

    @abstractmethod
    async def execute(self, context: AgentContext) -> AnalysisResult: ...

    def build_result(
        self,
        *,
        summary: str,
        payload: dict[str, Any],
        recommendations: list[str],
        degraded: bool = False,
    ) -> AnalysisResult:
        """Degraded means the unit ran fine but has actionable findings."""
        return AnalysisResult(
            agent=self.name,
            outcome=Outcome.DEGRADED if degraded else Outcome.SUCCESS,
            summary=summary,
            payload=payload,
            recommendations=recommendations,
            completed_at=utcnow(),
        )

    async def attach_narrative(
        self,
        context: AgentContext,
        result: AnalysisResult,
        prompt: str,
    ) -> AnalysisResult:
        """Best-effort prose summary. Returns ``result`` unchanged on failure."""
        if context.narrative is None:
            return result
        try:
            text = await context.narrative.generate(prompt, result.payload)
        except Exception as e:
            logger.warning("%s: narrative generation failed (non-fatal): %s", self.name, e)
            return result
        return result.with_summary(text)
