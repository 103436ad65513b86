"""Customs compliance checks for shipments awaiting clearance.

Read-only: the unit produces a compliance report and persists nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..data_store import SHIPMENTS, Record
from ..models import AnalysisResult
from .base import AgentContext, AnalysisUnit

logger = logging.getLogger("opspilot.agents.customs_compliance")

CLEARANCE_STATUSES = ["pending", "in-transit", "customs"]

REQUIRED_DOCUMENTS = (
    "Commercial Invoice",
    "Packing List",
    "Bill of Lading",
    "Certificate of Origin",
)

# (origin country, destination country) -> ad valorem duty rate
DUTY_RATES = {
    ("CN", "US"): 0.15,
    ("DE", "US"): 0.05,
    ("JP", "US"): 0.08,
    ("IN", "US"): 0.12,
}
DEFAULT_DUTY_RATE = 0.10

HS_CODE_LENGTH = 10
HS_CODE_DESCRIPTIONS = {
    "8471300000": "Portable automatic data processing machines",
    "8517120000": "Telephones for cellular networks",
    "6203420000": "Men's or boys' trousers of cotton",
    "9401800000": "Other seats",
    "8708100000": "Bumpers and parts thereof",
}

_COUNTRY_MARKERS = (
    ("US", ("USA", "United States")),
    ("CN", ("China",)),
    ("DE", ("Germany",)),
    ("JP", ("Japan",)),
    ("IN", ("India",)),
)


def extract_country(location: str | None) -> str:
    """Two-letter code for a free-text location, or "Unknown"."""
    if not location:
        return "Unknown"
    for code, markers in _COUNTRY_MARKERS:
        if any(m in location for m in markers):
            return code
    return "Unknown"


def is_international(shipment: Record) -> bool:
    return extract_country(shipment.get("origin")) != extract_country(
        shipment.get("destination")
    )


def validate_shipment(shipment: Record) -> list[str]:
    """Compliance issues for one shipment. Empty means compliant."""
    issues = []
    if not shipment.get("origin") or not shipment.get("destination"):
        issues.append("Missing origin or destination information")
    if float(shipment.get("value") or 0) <= 0:
        issues.append("Invalid or missing shipment value")
    if is_international(shipment) and not shipment.get("carrier"):
        issues.append("Missing carrier information for international shipment")
    if shipment.get("restricted_goods") and not shipment.get("permit_number"):
        issues.append("Restricted goods detected - requires special permit")
    return issues


def missing_documents(shipment: Record) -> list[str]:
    present = set(shipment.get("documents") or [])
    return [doc for doc in REQUIRED_DOCUMENTS if doc not in present]


def duty_rate(origin: str | None, destination: str | None) -> float:
    key = (extract_country(origin), extract_country(destination))
    return DUTY_RATES.get(key, DEFAULT_DUTY_RATE)


def calculate_duty(shipment: Record) -> dict:
    rate = duty_rate(shipment.get("origin"), shipment.get("destination"))
    value = float(shipment.get("value") or 0)
    return {
        "shipment_id": shipment.get("id"),
        "duty_rate": round(rate * 100, 2),
        "duty_amount": round(value * rate, 2),
        "currency": shipment.get("currency") or "USD",
    }


def validate_hs_code(shipment: Record) -> dict:
    hs_code = str(shipment.get("hs_code") or "")
    return {
        "shipment_id": shipment.get("id"),
        "hs_code": hs_code,
        "is_valid": len(hs_code) == HS_CODE_LENGTH and hs_code.isdigit(),
        "description": HS_CODE_DESCRIPTIONS.get(hs_code, "General merchandise"),
    }


@dataclass
class ComplianceReport:
    total_shipments: int = 0
    compliant_shipments: int = 0
    non_compliant_shipments: list[dict] = field(default_factory=list)
    documentation_issues: list[dict] = field(default_factory=list)
    duty_calculations: list[dict] = field(default_factory=list)
    hs_code_validations: list[dict] = field(default_factory=list)

    @property
    def invalid_hs_codes(self) -> int:
        return sum(1 for v in self.hs_code_validations if not v["is_valid"])

    @property
    def has_findings(self) -> bool:
        return bool(
            self.non_compliant_shipments
            or self.documentation_issues
            or self.invalid_hs_codes
        )

    def to_dict(self) -> dict:
        return {
            "total_shipments": self.total_shipments,
            "compliant_shipments": self.compliant_shipments,
            "non_compliant_shipments": self.non_compliant_shipments,
            "documentation_issues": self.documentation_issues,
            "duty_calculations": self.duty_calculations,
            "total_duty": round(
                sum(d["duty_amount"] for d in self.duty_calculations), 2
            ),
            "hs_code_validations": self.hs_code_validations,
        }


def check_compliance(shipments: list[Record]) -> ComplianceReport:
    report = ComplianceReport(total_shipments=len(shipments))
    for shipment in shipments:
        issues = validate_shipment(shipment)
        if issues:
            report.non_compliant_shipments.append(
                {"shipment_id": shipment.get("id"), "issues": issues}
            )
        else:
            report.compliant_shipments += 1

        missing = missing_documents(shipment)
        if missing:
            report.documentation_issues.append(
                {"shipment_id": shipment.get("id"), "missing_documents": missing}
            )

        report.duty_calculations.append(calculate_duty(shipment))
        report.hs_code_validations.append(validate_hs_code(shipment))
    return report


def customs_recommendations(report: ComplianceReport) -> list[str]:
    recommendations = []
    if report.non_compliant_shipments:
        recommendations.append(
            f"Address compliance issues for {len(report.non_compliant_shipments)} shipments"
        )
    if report.documentation_issues:
        recommendations.append(
            f"Complete missing documentation for {len(report.documentation_issues)} shipments"
        )
    if report.invalid_hs_codes:
        recommendations.append(
            f"Correct HS classification for {report.invalid_hs_codes} shipments"
        )
    recommendations.append("Set up pre-clearance documentation workflows")
    return recommendations


class CustomsComplianceAgent(AnalysisUnit):
    name = "customs-compliance"
    display_name = "Customs Compliance Agent"
    entity_type = "shipment"

    async def execute(self, context: AgentContext) -> AnalysisResult:
        shipments = await context.store.select(
            SHIPMENTS, {"status": CLEARANCE_STATUSES}
        )
        report = check_compliance(shipments)

        result = self.build_result(
            summary=(
                f"Compliance check completed for {report.total_shipments} shipments, "
                f"{len(report.non_compliant_shipments)} issues found"
            ),
            payload=report.to_dict(),
            recommendations=customs_recommendations(report),
            degraded=report.has_findings,
        )
        return await self.attach_narrative(
            context,
            result,
            "Summarize this customs compliance report with steps to reduce "
            "clearance risk.",
        )
