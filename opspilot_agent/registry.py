"""Agent registry.

Maps agent names to analysis unit instances for the lifetime of the
process. Insertion order is preserved and defines the run_all order.

Every registered agent reports state "active": there is no enable/disable
lifecycle.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from .errors import NotFoundError
from .models import AgentStatus, Outcome

if TYPE_CHECKING:
    from .agents.base import AnalysisUnit

logger = logging.getLogger("opspilot.registry")


class AgentRegistry:
    """Name → AnalysisUnit lookup table."""

    def __init__(self) -> None:
        self._units: dict[str, AnalysisUnit] = {}
        self._last_run: dict[str, tuple[datetime, Outcome]] = {}

    def __len__(self) -> int:
        return len(self._units)

    def __contains__(self, name: object) -> bool:
        return name in self._units

    def register(self, name: str, unit: AnalysisUnit) -> None:
        """Insert or replace the mapping for ``name`` (last write wins)."""
        if not name:
            raise ValueError("Agent name must not be empty")
        if name in self._units:
            logger.info("Replacing registered agent %s", name)
        self._units[name] = unit

    def lookup(self, name: str) -> AnalysisUnit:
        try:
            return self._units[name]
        except KeyError:
            raise NotFoundError(name) from None

    def list_names(self) -> list[str]:
        return list(self._units)

    def record_run(self, name: str, at: datetime, outcome: Outcome) -> None:
        """Remember the latest execution of ``name`` for status reporting."""
        self._last_run[name] = (at, outcome)

    def status(self) -> list[AgentStatus]:
        statuses = []
        for name, unit in self._units.items():
            last_run_at, last_outcome = self._last_run.get(name, (None, None))
            statuses.append(
                AgentStatus(
                    name=name,
                    display_name=unit.display_name,
                    entity_type=unit.entity_type,
                    last_run_at=last_run_at,
                    last_outcome=last_outcome,
                )
            )
        return statuses
