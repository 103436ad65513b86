"""Analysis agents.

build_default_registry() registers the six built-in agents in their
canonical run order.
"""

from __future__ import annotations

from ..registry import AgentRegistry
from .base import AgentContext, AnalysisUnit
from .customs_compliance import CustomsComplianceAgent
from .esg_risk import ESGRiskAgent
from .invoice_validator import InvoiceValidatorAgent
from .procurement import ProcurementAgent
from .shipment_tracker import ShipmentTrackerAgent
from .vendor_monitor import VendorMonitorAgent

DEFAULT_AGENTS: tuple[type[AnalysisUnit], ...] = (
    VendorMonitorAgent,
    InvoiceValidatorAgent,
    ShipmentTrackerAgent,
    CustomsComplianceAgent,
    ESGRiskAgent,
    ProcurementAgent,
)


def build_default_registry() -> AgentRegistry:
    registry = AgentRegistry()
    for cls in DEFAULT_AGENTS:
        registry.register(cls.name, cls())
    return registry


__all__ = [
    "AgentContext",
    "AnalysisUnit",
    "CustomsComplianceAgent",
    "DEFAULT_AGENTS",
    "ESGRiskAgent",
    "InvoiceValidatorAgent",
    "ProcurementAgent",
    "ShipmentTrackerAgent",
    "VendorMonitorAgent",
    "build_default_registry",
]
