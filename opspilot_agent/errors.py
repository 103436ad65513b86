"""Exception taxonomy for the agent orchestration layer.

Propagation rules:
    NotFoundError         : surfaced to the caller, never retried
    UnitExecutionError    : isolated per unit in run_all, re-raised by run_one
    AuditWriteError       : caught and logged by AuditLogWriter, never propagated
    NarrativeServiceError : caught inside the owning analysis unit
    StorageError          : raised by Data Store backends
"""

from __future__ import annotations


class OpsPilotError(Exception):
    """Base class for all OpsPilot errors."""


class NotFoundError(OpsPilotError):
    """Raised when an agent name is not registered."""

    def __init__(self, name: str):
        super().__init__(f"Agent '{name}' not found")
        self.name = name


class UnitExecutionError(OpsPilotError):
    """Raised when an analysis unit fails during run_one.

    The message is the unit's own error message so callers see exactly
    what the unit raised; the original exception is chained as __cause__.
    """

    def __init__(self, agent: str, message: str):
        super().__init__(message)
        self.agent = agent


class AuditWriteError(OpsPilotError):
    """Raised when an audit record could not be persisted."""


class NarrativeServiceError(OpsPilotError):
    """Raised when prose summary generation fails."""


class StorageError(OpsPilotError):
    """Raised when a Data Store operation fails."""
