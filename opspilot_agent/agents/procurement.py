"""Procurement optimization.

Spend analysis over recent invoices: vendor concentration, cost-saving
opportunities on high-spend underperforming vendors, per-vendor supply
risk, and a run-rate projection of next quarter's spend.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from ..data_store import INVOICES, VENDORS, Record
from ..models import AnalysisResult
from .base import AgentContext, AnalysisUnit, parse_datetime

logger = logging.getLogger("opspilot.agents.procurement")

SAVING_SPEND_FLOOR = 50_000.0
SAVING_SCORE_CEILING = 80.0
SAVING_RATE = 0.15
GEOGRAPHIC_RISK_COUNTRIES = ("China", "India", "Vietnam", "Bangladesh")
QUARTER_DAYS = 90

RISK_MITIGATION = {
    "high": "Identify alternative suppliers and implement dual sourcing",
    "medium": "Monitor closely and develop contingency plans",
    "low": "Continue current relationship with regular monitoring",
}


def vendor_spend(invoices: list[Record]) -> dict[str, float]:
    spend: dict[str, float] = defaultdict(float)
    for invoice in invoices:
        if invoice.get("vendor_id"):
            spend[invoice["vendor_id"]] += float(invoice.get("amount") or 0)
    return dict(spend)


def vendor_concentration(vendors: list[Record], spend: dict[str, float]) -> dict:
    """Spend share per vendor name, as a percentage of attributed spend."""
    total = sum(spend.values())
    names = {v.get("id"): v.get("name") for v in vendors}
    concentration = {}
    for vendor_id, amount in spend.items():
        name = names.get(vendor_id)
        if name is None:
            continue
        concentration[name] = {
            "spend": round(amount, 2),
            "percentage": round(amount / total * 100, 2) if total else 0.0,
        }
    return concentration


def cost_saving_opportunities(
    vendors: list[Record], spend: dict[str, float]
) -> list[dict]:
    opportunities = []
    for vendor in vendors:
        amount = spend.get(vendor.get("id"), 0.0)
        score = float(vendor.get("score") or 0)
        if amount > SAVING_SPEND_FLOOR and score < SAVING_SCORE_CEILING:
            opportunities.append(
                {
                    "type": "Vendor Optimization",
                    "vendor": vendor.get("name"),
                    "spend": round(amount, 2),
                    "potential_saving": round(amount * SAVING_RATE, 2),
                    "description": "Replace or negotiate better terms with "
                    "underperforming vendor",
                }
            )
    return opportunities


def classify_supply_risk(vendor: Record) -> dict:
    level = "low"
    factors = []
    country = vendor.get("country") or ""
    if any(c in country for c in GEOGRAPHIC_RISK_COUNTRIES):
        factors.append("Geographic concentration")
        level = "medium"
    if float(vendor.get("score") or 0) < 70:
        factors.append("Poor performance")
        level = "high"
    if float(vendor.get("on_time_delivery_rate") or 0) < 80:
        factors.append("Delivery reliability")
        if level != "high":
            level = "medium"
    return {
        "vendor": vendor.get("name"),
        "risk": level,
        "factors": factors,
        "recommendation": RISK_MITIGATION[level],
    }


def project_next_quarter(invoices: list[Record]) -> dict:
    """Naive run-rate projection: observed daily spend times 90 days."""
    total = sum(float(i.get("amount") or 0) for i in invoices)
    dates = [d for d in (parse_datetime(i.get("issue_date")) for i in invoices) if d]
    if len(dates) < 2:
        return {"expected_spend": round(total, 2), "basis_days": 0, "method": "run-rate"}
    days = max(1, (max(dates) - min(dates)).days)
    return {
        "expected_spend": round(total / days * QUARTER_DAYS, 2),
        "basis_days": days,
        "method": "run-rate",
    }


def procurement_recommendations(
    opportunities: list[dict], risks: list[dict]
) -> list[str]:
    recommendations = []
    if opportunities:
        total = sum(o["potential_saving"] for o in opportunities)
        recommendations.append(
            f"Implement cost-saving initiatives for potential ${round(total)} savings"
        )
    high = [r for r in risks if r["risk"] == "high"]
    if high:
        recommendations.append(
            f"Develop alternative suppliers for {len(high)} high-risk vendors"
        )
    recommendations.append("Establish vendor performance scorecards and SLAs")
    return recommendations


class ProcurementAgent(AnalysisUnit):
    name = "procurement"
    display_name = "Procurement Agent"
    entity_type = "procurement"

    async def execute(self, context: AgentContext) -> AnalysisResult:
        vendors = await context.store.select(VENDORS)
        invoices = await context.store.select(
            INVOICES,
            order="created_at.desc",
            limit=context.settings.procurement_batch_size,
        )

        spend = vendor_spend(invoices)
        opportunities = cost_saving_opportunities(vendors, spend)
        risks = [classify_supply_risk(v) for v in vendors]
        total_spend = sum(float(i.get("amount") or 0) for i in invoices)

        payload = {
            "total_spend": round(total_spend, 2),
            "vendor_concentration": vendor_concentration(vendors, spend),
            "cost_saving_opportunities": opportunities,
            "risk_diversification": risks,
            "demand_forecast": {"next_quarter": project_next_quarter(invoices)},
        }
        high_risk = sum(1 for r in risks if r["risk"] == "high")

        result = self.build_result(
            summary=(
                f"Procurement analysis completed, identified {len(opportunities)} "
                "cost-saving opportunities"
            ),
            payload=payload,
            recommendations=procurement_recommendations(opportunities, risks),
            degraded=bool(opportunities or high_risk),
        )
        return await self.attach_narrative(
            context,
            result,
            "Provide strategic procurement insights from this spend analysis.",
        )
