"""Shipment tracking.

Reads active shipments, advances their status from the tracking fields on
the row, and reports delays, customs holds and weather-exposed routes.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime

from ..data_store import SHIPMENTS, Record
from ..models import AnalysisResult
from .base import AgentContext, AnalysisUnit, parse_datetime

logger = logging.getLogger("opspilot.agents.shipment_tracker")

ACTIVE_STATUSES = ["pending", "in-transit", "customs"]
WEATHER_RISK_CITIES = ("Shanghai", "Mumbai", "Miami", "Houston")


def is_delayed(shipment: Record, now: datetime) -> bool:
    eta = parse_datetime(shipment.get("eta"))
    if eta is None:
        return False
    return now > eta and shipment.get("status") != "delivered"


def estimated_delay_hours(shipment: Record, now: datetime) -> int:
    """Whole hours past ETA, rounded up; 0 when on time."""
    if not is_delayed(shipment, now):
        return 0
    eta = parse_datetime(shipment["eta"])
    return max(1, math.ceil((now - eta).total_seconds() / 3600))


def next_status(shipment: Record, now: datetime) -> str | None:
    """Status the shipment should move to, or None if it stays put."""
    status = shipment.get("status")
    if status == "pending":
        departed = parse_datetime(shipment.get("departure_date"))
        if departed is not None and departed <= now:
            return "in-transit"
    elif status == "in-transit":
        if shipment.get("actual_delivery"):
            return "delivered"
        if shipment.get("customs_hold"):
            return "customs"
    return None


def has_weather_risk(shipment: Record) -> bool:
    route = f"{shipment.get('origin') or ''} {shipment.get('destination') or ''}"
    return any(city in route for city in WEATHER_RISK_CITIES)


def _brief(shipment: Record, **extra) -> dict:
    return {
        "id": shipment.get("id"),
        "shipment_id": shipment.get("shipment_id"),
        "origin": shipment.get("origin"),
        "destination": shipment.get("destination"),
        "status": shipment.get("status"),
        **extra,
    }


@dataclass
class ShipmentTracking:
    total_shipments: int = 0
    in_transit: int = 0
    on_time: int = 0
    delayed_shipments: list[dict] = field(default_factory=list)
    weather_impacted: list[dict] = field(default_factory=list)
    customs_delayed: list[dict] = field(default_factory=list)
    status_changes: list[dict] = field(default_factory=list)

    @property
    def has_findings(self) -> bool:
        return bool(
            self.delayed_shipments or self.weather_impacted or self.customs_delayed
        )

    def to_dict(self) -> dict:
        return {
            "total_shipments": self.total_shipments,
            "in_transit": self.in_transit,
            "on_time": self.on_time,
            "delayed": len(self.delayed_shipments),
            "delayed_shipments": self.delayed_shipments,
            "weather_impacted": self.weather_impacted,
            "customs_delayed": self.customs_delayed,
            "status_changes": self.status_changes,
        }


def track_shipments(shipments: list[Record], now: datetime) -> ShipmentTracking:
    """Evaluate ``shipments`` as of ``now``. Rows are not mutated."""
    tracking = ShipmentTracking(total_shipments=len(shipments))
    for row in shipments:
        new = next_status(row, now)
        shipment = {**row, "status": new} if new else row
        if new:
            tracking.status_changes.append(
                {"id": row.get("id"), "from": row.get("status"), "to": new}
            )

        status = shipment.get("status")
        if status == "in-transit":
            tracking.in_transit += 1
        elif status == "customs":
            tracking.customs_delayed.append(_brief(shipment))

        if is_delayed(shipment, now):
            tracking.delayed_shipments.append(
                _brief(shipment, estimated_delay_hours=estimated_delay_hours(shipment, now))
            )
        elif status == "in-transit":
            tracking.on_time += 1

        if has_weather_risk(shipment):
            tracking.weather_impacted.append(_brief(shipment))
    return tracking


def shipment_recommendations(tracking: ShipmentTracking) -> list[str]:
    recommendations = []
    if tracking.delayed_shipments:
        recommendations.append(
            f"Address {len(tracking.delayed_shipments)} delayed shipments"
        )
    if tracking.weather_impacted:
        recommendations.append(
            f"Monitor weather conditions for {len(tracking.weather_impacted)} shipments"
        )
    if tracking.customs_delayed:
        recommendations.append(
            f"Expedite customs clearance for {len(tracking.customs_delayed)} shipments"
        )
    recommendations.append("Implement proactive delay notification system")
    return recommendations


class ShipmentTrackerAgent(AnalysisUnit):
    name = "shipment-tracker"
    display_name = "Shipment Tracker Agent"
    entity_type = "shipment"

    async def execute(self, context: AgentContext) -> AnalysisResult:
        shipments = await context.store.select(
            SHIPMENTS, {"status": ACTIVE_STATUSES}
        )
        tracking = track_shipments(shipments, context.now)

        for change in tracking.status_changes:
            await context.store.update(
                SHIPMENTS,
                {"id": change["id"]},
                {"status": change["to"], "updated_at": context.now.isoformat()},
            )
            logger.info(
                "Shipment %s: %s -> %s", change["id"], change["from"], change["to"]
            )

        result = self.build_result(
            summary=(
                f"Tracked {tracking.total_shipments} shipments, "
                f"{len(tracking.delayed_shipments)} delayed"
            ),
            payload=tracking.to_dict(),
            recommendations=shipment_recommendations(tracking),
            degraded=tracking.has_findings,
        )
        return await self.attach_narrative(
            context,
            result,
            "Summarize this shipment tracking snapshot with insights for "
            "delay prevention and route optimization.",
        )
