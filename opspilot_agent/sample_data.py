"""Sample operational data for demos and local development.

Timestamps are relative to ``now`` so that the dataset always contains a
shipment past its ETA, a pending shipment that has departed, and invoices
within the recent window. Row ids are fixed UUIDs so that foreign keys
line up on both store backends and re-seeding replaces rows instead of
duplicating them.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta

from .data_store import ESG_SCORES, INVOICES, SHIPMENTS, VENDORS, DataStore, Record
from .models import utcnow

logger = logging.getLogger("opspilot.sample_data")

ACME = "5f0c2a9e-1b7d-4c1e-9a51-0c6f3b1d2a01"
GLOBAL_SUPPLIES = "5f0c2a9e-1b7d-4c1e-9a51-0c6f3b1d2a02"
SHANGHAI_ELECTRONICS = "5f0c2a9e-1b7d-4c1e-9a51-0c6f3b1d2a03"
MUMBAI_TEXTILES = "5f0c2a9e-1b7d-4c1e-9a51-0c6f3b1d2a04"
NORDIC_COMPONENTS = "5f0c2a9e-1b7d-4c1e-9a51-0c6f3b1d2a05"

SAMPLE_NAMESPACE = uuid.UUID("5f0c2a9e-1b7d-4c1e-9a51-0c6f3b1d2a00")

ALL_DOCUMENTS = [
    "Commercial Invoice",
    "Packing List",
    "Bill of Lading",
    "Certificate of Origin",
]


def _vendors() -> list[Record]:
    return [
        {
            "id": ACME,
            "name": "Acme Manufacturing Corp",
            "email": "contact@acme-mfg.com",
            "country": "USA",
            "score": 85,
            "on_time_delivery_rate": 92.5,
            "quality_score": 88.0,
        },
        {
            "id": GLOBAL_SUPPLIES,
            "name": "Global Supplies Ltd",
            "email": "info@globalsupplies.com",
            "country": "UK",
            "score": 78,
            "on_time_delivery_rate": 85.2,
            "quality_score": 82.5,
        },
        {
            "id": SHANGHAI_ELECTRONICS,
            "name": "Shanghai Electronics Co",
            "email": "sales@shanghai-elec.cn",
            "country": "China",
            "score": 72,
            "on_time_delivery_rate": 78.8,
            "quality_score": 85.2,
        },
        {
            "id": MUMBAI_TEXTILES,
            "name": "Mumbai Textiles Pvt Ltd",
            "email": "export@mumbai-textiles.in",
            "country": "India",
            "score": 68,
            "on_time_delivery_rate": 75.5,
            "quality_score": 79.8,
        },
        {
            "id": NORDIC_COMPONENTS,
            "name": "Nordic Components AB",
            "email": "orders@nordic-comp.se",
            "country": "Sweden",
            "score": 91,
            "on_time_delivery_rate": 96.2,
            "quality_score": 94.5,
        },
    ]


def _esg_scores() -> list[Record]:
    return [
        {
            "vendor_id": ACME,
            "overall_score": 82,
            "environmental_score": 78,
            "social_score": 85,
            "governance_score": 84,
            "carbon_footprint": 640.5,
        },
        {
            "vendor_id": GLOBAL_SUPPLIES,
            "overall_score": 74,
            "environmental_score": 70,
            "social_score": 77,
            "governance_score": 81,
            "carbon_footprint": 820.0,
        },
        {
            "vendor_id": SHANGHAI_ELECTRONICS,
            "overall_score": 55,
            "environmental_score": 48,
            "social_score": 62,
            "governance_score": 45,
            "carbon_footprint": 1410.25,
        },
        {
            "vendor_id": NORDIC_COMPONENTS,
            "overall_score": 93,
            "environmental_score": 95,
            "social_score": 90,
            "governance_score": 92,
            "carbon_footprint": 505.0,
        },
    ]


def _shipments(now: datetime) -> list[Record]:
    def at(days: float) -> str:
        return (now + timedelta(days=days)).isoformat()

    return [
        {
            "shipment_id": "SHP-34567",
            "vendor_id": SHANGHAI_ELECTRONICS,
            "origin": "Shanghai, China",
            "destination": "Los Angeles, USA",
            "carrier": "FastFreight Express",
            "status": "in-transit",
            "departure_date": at(-12),
            "eta": at(5),
            "value": 45200,
            "currency": "USD",
            "hs_code": "8471300000",
            "documents": ALL_DOCUMENTS,
        },
        {
            "shipment_id": "SHP-34568",
            "vendor_id": GLOBAL_SUPPLIES,
            "origin": "Hamburg, Germany",
            "destination": "New York, USA",
            "carrier": "OceanLine",
            "status": "customs",
            "departure_date": at(-9),
            "eta": at(2),
            "value": 32100,
            "currency": "USD",
            "hs_code": "9401800000",
            "documents": ["Commercial Invoice", "Packing List", "Bill of Lading"],
        },
        {
            "shipment_id": "SHP-34569",
            "vendor_id": ACME,
            "origin": "Tokyo, Japan",
            "destination": "Seattle, USA",
            "carrier": "PacificShip",
            "status": "in-transit",
            "departure_date": at(-15),
            "eta": at(-1.5),
            "value": 28900,
            "currency": "USD",
            "hs_code": "8517120000",
            "documents": ALL_DOCUMENTS,
        },
        {
            "shipment_id": "SHP-34570",
            "vendor_id": MUMBAI_TEXTILES,
            "origin": "Mumbai, India",
            "destination": "Houston, USA",
            "carrier": "IndianOcean",
            "status": "pending",
            "departure_date": at(-1),
            "eta": at(20),
            "value": 22300,
            "currency": "USD",
            "hs_code": "620342",
            "documents": ["Commercial Invoice", "Packing List"],
            "restricted_goods": True,
        },
        {
            "shipment_id": "SHP-34571",
            "vendor_id": NORDIC_COMPONENTS,
            "origin": "Rotterdam, Netherlands",
            "destination": "Boston, USA",
            "carrier": "AtlanticFreight",
            "status": "delivered",
            "departure_date": at(-20),
            "eta": at(-4),
            "actual_delivery": at(-2),
            "value": 19500,
            "currency": "USD",
            "hs_code": "8708100000",
            "documents": ALL_DOCUMENTS,
        },
    ]


def _invoices(now: datetime) -> list[Record]:
    def at(days: float) -> str:
        return (now + timedelta(days=days)).isoformat()

    return [
        {
            "invoice_number": "INV-2024-001",
            "vendor_id": ACME,
            "po_number": "PO-12345",
            "grn_number": "GRN-67890",
            "status": "pending",
            "amount": 15000,
            "po_amount": 15000,
            "quantity": 300,
            "po_quantity": 300,
            "currency": "USD",
            "issue_date": at(-5),
            "due_date": at(25),
            "created_at": at(-5),
        },
        {
            "invoice_number": "INV-2024-002",
            "vendor_id": GLOBAL_SUPPLIES,
            "po_number": "PO-12346",
            "grn_number": "GRN-67891",
            "status": "approved",
            "amount": 22500,
            "po_amount": 20000,
            "quantity": 450,
            "po_quantity": 450,
            "currency": "USD",
            "issue_date": at(-10),
            "due_date": at(20),
            "created_at": at(-10),
        },
        {
            "invoice_number": "INV-2024-003",
            "vendor_id": SHANGHAI_ELECTRONICS,
            "po_number": "PO-12347",
            "grn_number": "GRN-67892",
            "status": "paid",
            "amount": 58750,
            "po_amount": 58750,
            "quantity": 95,
            "po_quantity": 100,
            "currency": "USD",
            "issue_date": at(-20),
            "due_date": at(-5),
            "created_at": at(-20),
        },
        {
            "invoice_number": "INV-2024-004",
            "vendor_id": MUMBAI_TEXTILES,
            "po_number": None,
            "grn_number": "GRN-67893",
            "status": "pending",
            "amount": 150000,
            "po_amount": None,
            "quantity": 2000,
            "po_quantity": None,
            "currency": "USD",
            "issue_date": at(-15),
            "due_date": at(15),
            "created_at": at(-15),
        },
    ]


def build_sample_data(now: datetime | None = None) -> dict[str, list[Record]]:
    """Sample rows keyed by table, in foreign-key order."""
    now = now or utcnow()
    data = {
        VENDORS: _vendors(),
        ESG_SCORES: _esg_scores(),
        SHIPMENTS: _shipments(now),
        INVOICES: _invoices(now),
    }
    natural_keys = {
        ESG_SCORES: "vendor_id",
        SHIPMENTS: "shipment_id",
        INVOICES: "invoice_number",
    }
    for table, key in natural_keys.items():
        for row in data[table]:
            row["id"] = str(uuid.uuid5(SAMPLE_NAMESPACE, f"{table}:{row[key]}"))
    return data


async def seed_sample_data(store: DataStore, now: datetime | None = None) -> dict[str, int]:
    """Upsert the sample dataset into ``store``. Returns row counts per table.

    Safe to call on every startup: rows are keyed by fixed ids.
    """
    counts = {}
    for table, rows in build_sample_data(now).items():
        inserted = await store.upsert(table, rows)
        counts[table] = len(inserted) if inserted else len(rows)
    logger.info("Seeded sample data: %s", counts)
    return counts
