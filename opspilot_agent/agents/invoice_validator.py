"""Invoice validation: three-way match checks and fraud screening.

Each recent invoice is matched against its purchase order values
(``po_amount``, ``po_quantity``). Every mismatch is persisted to the
invoice_discrepancies table. Fraud screening counts simple risk factors
and flags an invoice once two or more are present.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..data_store import INVOICE_DISCREPANCIES, INVOICES, Record
from ..models import AnalysisResult
from .base import AgentContext, AnalysisUnit, parse_datetime

logger = logging.getLogger("opspilot.agents.invoice_validator")

FRAUD_FACTOR_THRESHOLD = 2


def fraud_risk_factors(invoice: Record, amount_ceiling: float = 100_000.0) -> list[str]:
    """Names of the fraud indicators present on ``invoice``."""
    factors = []
    if float(invoice.get("amount") or 0) > amount_ceiling:
        factors.append("high_amount")
    if not invoice.get("po_number"):
        factors.append("missing_po")
    if not invoice.get("grn_number"):
        factors.append("missing_grn")
    issued = parse_datetime(invoice.get("issue_date"))
    due = parse_datetime(invoice.get("due_date"))
    if issued is not None and due is not None and due < issued:
        factors.append("due_before_issue")
    return factors


def is_fraud_risk(invoice: Record, amount_ceiling: float = 100_000.0) -> bool:
    return len(fraud_risk_factors(invoice, amount_ceiling)) >= FRAUD_FACTOR_THRESHOLD


def check_invoice_discrepancies(invoice: Record, tolerance: float = 0.01) -> list[dict]:
    """Compare invoiced amount and quantity with the purchase order."""
    label = f"Invoice {invoice.get('invoice_number') or invoice.get('id')}"
    discrepancies = []

    amount = invoice.get("amount")
    po_amount = invoice.get("po_amount")
    if amount is not None and po_amount is not None:
        amount, po_amount = float(amount), float(po_amount)
        if po_amount == 0:
            mismatch = amount != 0
        else:
            mismatch = abs(amount - po_amount) / abs(po_amount) > tolerance
        if mismatch:
            discrepancies.append(
                {
                    "type": "Amount Mismatch",
                    "item": label,
                    "po_value": f"{po_amount:.2f}",
                    "invoice_value": f"{amount:.2f}",
                }
            )

    quantity = invoice.get("quantity")
    po_quantity = invoice.get("po_quantity")
    if quantity is not None and po_quantity is not None and quantity != po_quantity:
        discrepancies.append(
            {
                "type": "Quantity Mismatch",
                "item": label,
                "po_value": f"{po_quantity} units",
                "invoice_value": f"{quantity} units",
            }
        )
    return discrepancies


@dataclass
class InvoiceValidation:
    total_invoices: int = 0
    valid_invoices: int = 0
    discrepancies: list[dict] = field(default_factory=list)
    fraud_risk: list[dict] = field(default_factory=list)

    @property
    def accuracy_rate(self) -> float:
        if not self.total_invoices:
            return 100.0
        return self.valid_invoices / self.total_invoices * 100

    def to_dict(self) -> dict:
        return {
            "total_invoices": self.total_invoices,
            "valid_invoices": self.valid_invoices,
            "discrepancies": self.discrepancies,
            "fraud_risk": self.fraud_risk,
            "accuracy_rate": round(self.accuracy_rate, 2),
        }


def validate_invoices(
    invoices: list[Record],
    *,
    amount_ceiling: float = 100_000.0,
    tolerance: float = 0.01,
) -> InvoiceValidation:
    validation = InvoiceValidation(total_invoices=len(invoices))
    for invoice in invoices:
        found = check_invoice_discrepancies(invoice, tolerance)
        if found:
            for d in found:
                validation.discrepancies.append({"invoice_id": invoice.get("id"), **d})
        else:
            validation.valid_invoices += 1

        factors = fraud_risk_factors(invoice, amount_ceiling)
        if len(factors) >= FRAUD_FACTOR_THRESHOLD:
            validation.fraud_risk.append(
                {"invoice_id": invoice.get("id"), "factors": factors}
            )
    return validation


def invoice_recommendations(validation: InvoiceValidation) -> list[str]:
    recommendations = []
    if validation.discrepancies:
        recommendations.append(
            f"Review {len(validation.discrepancies)} invoice discrepancies"
        )
    if validation.fraud_risk:
        recommendations.append(
            f"Investigate {len(validation.fraud_risk)} invoices for fraud risk"
        )
    if validation.accuracy_rate < 95:
        recommendations.append("Implement stricter invoice validation controls")
    recommendations.append("Automate PO-GRN-Invoice matching process")
    return recommendations


class InvoiceValidatorAgent(AnalysisUnit):
    name = "invoice-validator"
    display_name = "Invoice Validator Agent"
    entity_type = "invoice"

    async def execute(self, context: AgentContext) -> AnalysisResult:
        settings = context.settings
        invoices = await context.store.select(
            INVOICES, order="created_at.desc", limit=settings.invoice_batch_size
        )

        validation = validate_invoices(
            invoices,
            amount_ceiling=settings.invoice_amount_ceiling,
            tolerance=settings.invoice_mismatch_tolerance,
        )
        if validation.discrepancies:
            await context.store.insert(INVOICE_DISCREPANCIES, validation.discrepancies)
            logger.info("Recorded %d invoice discrepancies", len(validation.discrepancies))

        result = self.build_result(
            summary=(
                f"Validated {validation.total_invoices} invoices, found "
                f"{len(validation.discrepancies)} discrepancies"
            ),
            payload=validation.to_dict(),
            recommendations=invoice_recommendations(validation),
            degraded=bool(validation.discrepancies or validation.fraud_risk),
        )
        return await self.attach_narrative(
            context,
            result,
            "Summarize these invoice validation results with a focus on "
            "fraud prevention and processing accuracy.",
        )
