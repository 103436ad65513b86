"""ESG (environmental, social, governance) risk assessment of vendors.

A vendor is high risk when it has no ESG score on file or its overall
score is below the risk threshold. Specific risks found for high-risk
vendors are written to the esg_risks table.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..data_store import ESG_RISKS, ESG_SCORES, VENDORS, Record
from ..models import AnalysisResult
from .base import AgentContext, AnalysisUnit

logger = logging.getLogger("opspilot.agents.esg_risk")

HIGH_RISK_REGIONS = ("Southeast Asia", "South America", "Eastern Europe")

# Per score point below 100, when a vendor reports no footprint
FOOTPRINT_PER_SCORE_POINT = 10


def _num(row: Record | None, key: str) -> float:
    if row is None:
        return 0.0
    return float(row.get(key) or 0)


def identify_specific_risks(
    vendor: Record,
    esg: Record | None,
    *,
    risk_threshold: float = 60.0,
    governance_threshold: float = 50.0,
) -> list[dict]:
    risks = []
    if esg is None or _num(esg, "environmental_score") < risk_threshold:
        risks.append(
            {
                "type": "Environmental",
                "severity": "high",
                "description": "High carbon emissions or poor environmental practices",
            }
        )
    country = vendor.get("country") or ""
    if any(region in country for region in HIGH_RISK_REGIONS):
        risks.append(
            {
                "type": "Social",
                "severity": "medium",
                "description": "Potential labor compliance issues in high-risk region",
            }
        )
    if esg is None or _num(esg, "governance_score") < governance_threshold:
        risks.append(
            {
                "type": "Governance",
                "severity": "high",
                "description": "Poor governance practices or transparency issues",
            }
        )
    return risks


def carbon_footprint(vendors: list[Record], scores: dict[str, Record]) -> int:
    """Reported footprint where available, estimated from vendor score otherwise."""
    total = 0.0
    for vendor in vendors:
        esg = scores.get(vendor.get("id"))
        if esg is not None and esg.get("carbon_footprint"):
            total += float(esg["carbon_footprint"])
        else:
            total += (100 - _num(vendor, "score")) * FOOTPRINT_PER_SCORE_POINT
    return round(total)


@dataclass
class ESGAssessment:
    total_vendors: int = 0
    average_esg_score: float = 0.0
    high_risk_vendors: list[dict] = field(default_factory=list)
    environmental_risks: list[str] = field(default_factory=list)
    social_risks: list[str] = field(default_factory=list)
    governance_risks: list[str] = field(default_factory=list)
    carbon_footprint: int = 0

    @property
    def compliance_rate(self) -> float:
        if not self.total_vendors:
            return 100.0
        return (self.total_vendors - len(self.high_risk_vendors)) / self.total_vendors * 100

    @property
    def risk_rows(self) -> list[dict]:
        return [
            {"vendor_id": v["vendor_id"], **risk}
            for v in self.high_risk_vendors
            for risk in v["risks"]
        ]

    def to_dict(self) -> dict:
        return {
            "total_vendors": self.total_vendors,
            "average_esg_score": round(self.average_esg_score, 2),
            "high_risk_vendors": self.high_risk_vendors,
            "environmental_risks": self.environmental_risks,
            "social_risks": self.social_risks,
            "governance_risks": self.governance_risks,
            "compliance_rate": round(self.compliance_rate, 2),
            "carbon_footprint": self.carbon_footprint,
        }


def assess_esg_risks(
    vendors: list[Record],
    esg_scores: list[Record],
    *,
    risk_threshold: float = 60.0,
    governance_threshold: float = 50.0,
) -> ESGAssessment:
    assessment = ESGAssessment(total_vendors=len(vendors))
    if esg_scores:
        assessment.average_esg_score = sum(
            _num(s, "overall_score") for s in esg_scores
        ) / len(esg_scores)

    by_vendor = {s.get("vendor_id"): s for s in esg_scores}
    for vendor in vendors:
        vendor_id = vendor.get("id")
        esg = by_vendor.get(vendor_id)

        if esg is None or _num(esg, "overall_score") < risk_threshold:
            assessment.high_risk_vendors.append(
                {
                    "vendor_id": vendor_id,
                    "name": vendor.get("name"),
                    "esg_score": _num(esg, "overall_score"),
                    "risks": identify_specific_risks(
                        vendor,
                        esg,
                        risk_threshold=risk_threshold,
                        governance_threshold=governance_threshold,
                    ),
                }
            )

        if esg is not None:
            if _num(esg, "environmental_score") < risk_threshold:
                assessment.environmental_risks.append(vendor_id)
            if _num(esg, "social_score") < risk_threshold:
                assessment.social_risks.append(vendor_id)
            if _num(esg, "governance_score") < risk_threshold:
                assessment.governance_risks.append(vendor_id)

    assessment.carbon_footprint = carbon_footprint(vendors, by_vendor)
    return assessment


def esg_recommendations(assessment: ESGAssessment) -> list[str]:
    recommendations = []
    if assessment.high_risk_vendors:
        recommendations.append(
            f"Conduct ESG audits for {len(assessment.high_risk_vendors)} high-risk vendors"
        )
    if assessment.environmental_risks:
        recommendations.append(
            "Implement environmental improvement plans for "
            f"{len(assessment.environmental_risks)} vendors"
        )
    if assessment.social_risks:
        recommendations.append(
            f"Review labor practices for {len(assessment.social_risks)} vendors"
        )
    if assessment.compliance_rate < 90:
        recommendations.append("Strengthen ESG compliance requirements in vendor contracts")
    recommendations.append("Set carbon reduction targets for supply chain")
    return recommendations


class ESGRiskAgent(AnalysisUnit):
    name = "esg-risk"
    display_name = "ESG Risk Agent"
    entity_type = "esg"

    async def execute(self, context: AgentContext) -> AnalysisResult:
        settings = context.settings
        vendors = await context.store.select(VENDORS)
        esg_scores = await context.store.select(ESG_SCORES)

        assessment = assess_esg_risks(
            vendors,
            esg_scores,
            risk_threshold=settings.esg_risk_threshold,
            governance_threshold=settings.esg_governance_threshold,
        )
        rows = assessment.risk_rows
        if rows:
            await context.store.insert(ESG_RISKS, rows)
            logger.info("Recorded %d ESG risk(s)", len(rows))

        result = self.build_result(
            summary=(
                f"ESG assessment completed for {assessment.total_vendors} vendors, "
                f"{len(assessment.high_risk_vendors)} high-risk"
            ),
            payload=assessment.to_dict(),
            recommendations=esg_recommendations(assessment),
            degraded=bool(assessment.high_risk_vendors),
        )
        return await self.attach_narrative(
            context,
            result,
            "Summarize this ESG risk assessment with mitigation and "
            "sustainability priorities.",
        )
