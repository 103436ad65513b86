"""Vendor performance monitoring.

Aggregates vendor scores, surfaces top performers, and flags vendors
under the performance or on-time delivery thresholds. One vendor_risks
row is written per underperforming vendor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..data_store import VENDOR_RISKS, VENDORS, Record
from ..models import AnalysisResult
from .base import AgentContext, AnalysisUnit

logger = logging.getLogger("opspilot.agents.vendor_monitor")

MAX_TOP_PERFORMERS = 5


def _score(vendor: Record, key: str) -> float:
    return float(vendor.get(key) or 0.0)


def _brief(vendor: Record) -> dict:
    return {
        "id": vendor.get("id"),
        "name": vendor.get("name"),
        "score": _score(vendor, "score"),
        "on_time_delivery_rate": _score(vendor, "on_time_delivery_rate"),
    }


@dataclass
class VendorPerformance:
    """Aggregate vendor performance snapshot."""

    total_vendors: int = 0
    average_score: float = 0.0
    top_performers: list[dict] = field(default_factory=list)
    under_performers: list[dict] = field(default_factory=list)
    delivery_risk: list[dict] = field(default_factory=list)

    @property
    def has_findings(self) -> bool:
        return bool(self.under_performers or self.delivery_risk)

    def to_dict(self) -> dict:
        return {
            "total_vendors": self.total_vendors,
            "average_score": round(self.average_score, 2),
            "top_performers": self.top_performers,
            "under_performers": self.under_performers,
            "delivery_risk": self.delivery_risk,
        }


def analyze_vendor_performance(
    vendors: list[Record],
    *,
    top_score: float = 90.0,
    underperformer_score: float = 70.0,
    delivery_risk_rate: float = 80.0,
) -> VendorPerformance:
    perf = VendorPerformance(total_vendors=len(vendors))
    if not vendors:
        return perf

    perf.average_score = sum(_score(v, "score") for v in vendors) / len(vendors)
    perf.top_performers = [
        _brief(v) for v in vendors if _score(v, "score") >= top_score
    ][:MAX_TOP_PERFORMERS]
    perf.under_performers = [
        _brief(v) for v in vendors if _score(v, "score") < underperformer_score
    ]
    perf.delivery_risk = [
        _brief(v)
        for v in vendors
        if _score(v, "on_time_delivery_rate") < delivery_risk_rate
    ]
    return perf


def vendor_recommendations(perf: VendorPerformance) -> list[str]:
    recommendations = []
    if perf.under_performers:
        recommendations.append(
            f"Review {len(perf.under_performers)} underperforming vendors"
        )
    if perf.delivery_risk:
        recommendations.append(
            f"Address delivery issues with {len(perf.delivery_risk)} vendors"
        )
    if perf.total_vendors and perf.average_score < 80:
        recommendations.append("Implement vendor improvement program")
    recommendations.append("Schedule quarterly vendor performance reviews")
    return recommendations


class VendorMonitorAgent(AnalysisUnit):
    name = "vendor-monitor"
    display_name = "Vendor Monitor Agent"
    entity_type = "vendor"

    async def execute(self, context: AgentContext) -> AnalysisResult:
        settings = context.settings
        vendors = await context.store.select(VENDORS)

        perf = analyze_vendor_performance(
            vendors,
            top_score=settings.vendor_top_score,
            underperformer_score=settings.vendor_underperformer_score,
            delivery_risk_rate=settings.vendor_delivery_risk_rate,
        )

        annotations = [
            {
                "vendor_id": v["id"],
                "type": "performance",
                "severity": "high",
                "description": f"Vendor score {v['score']:.0f} below "
                f"{settings.vendor_underperformer_score:.0f}",
            }
            for v in perf.under_performers
        ]
        if annotations:
            await context.store.insert(VENDOR_RISKS, annotations)
            logger.info("Annotated %d vendor risk(s)", len(annotations))

        result = self.build_result(
            summary=(
                f"Analyzed {perf.total_vendors} vendors, average score "
                f"{perf.average_score:.1f}, {len(perf.under_performers)} underperforming"
            ),
            payload=perf.to_dict(),
            recommendations=vendor_recommendations(perf),
            degraded=perf.has_findings,
        )
        return await self.attach_narrative(
            context,
            result,
            "Analyze this vendor performance snapshot and recommend supply chain actions.",
        )
