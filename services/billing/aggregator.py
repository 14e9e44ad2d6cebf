"""Invoice-level aggregation and finalization."""

from collections.abc import Iterable
from datetime import UTC, datetime

from services.billing.calculator import compute_line
from services.billing.schema import (
    Invoice,
    InvoiceDraft,
    InvoiceStatus,
    InvoiceTotals,
    LineItem,
    TaxMode,
)


def aggregate(items: Iterable[LineItem], tax_mode: TaxMode) -> InvoiceTotals:
    """Sum line computations across an invoice's items.

    Order of items does not matter; no items yields all-zero totals.

    Args:
        items: Line items of the invoice
        tax_mode: Tax mode applied to every line

    Returns:
        InvoiceTotals with field-wise sums
    """
    totals = InvoiceTotals()
    for item in items:
        line = compute_line(item, tax_mode)
        totals.base_total += line.base
        totals.discount_total += line.discount_amount
        totals.subtotal += line.taxable_amount
        totals.tax_component_a_total += line.tax_component_a
        totals.tax_component_b_total += line.tax_component_b
        totals.tax_component_c_total += line.tax_component_c
        totals.total += line.total

    totals.tax_total = (
        totals.tax_component_a_total + totals.tax_component_b_total + totals.tax_component_c_total
    )
    return totals


def finalize_invoice(
    draft: InvoiceDraft,
    invoice_number: str,
    created_at: datetime | None = None,
) -> Invoice:
    """Turn a draft into an immutable invoice record.

    The aggregated totals are snapshotted onto the invoice; ``amount_due``
    starts equal to ``total`` (partial payments are not tracked).

    Args:
        draft: Form state being saved
        invoice_number: Display number issued for this invoice
        created_at: Creation timestamp (defaults to now, UTC)

    Returns:
        New Invoice with a fresh id
    """
    totals = aggregate(draft.items, draft.tax_mode)
    return Invoice(
        invoice_number=invoice_number,
        created_at=created_at or datetime.now(UTC),
        customer_name=draft.customer_name,
        contact_info=draft.contact_info,
        tax_id=draft.tax_id,
        tax_mode=draft.tax_mode,
        status=draft.status,
        items=tuple(draft.items),
        subtotal=totals.subtotal,
        tax_total=totals.tax_total,
        total=totals.total,
        amount_due=totals.total,
    )


def set_status(invoice: Invoice, status: InvoiceStatus) -> Invoice:
    """Return a copy of the invoice with a new status.

    Transitions are unrestricted; totals are left untouched.
    """
    return invoice.model_copy(update={"status": status})
