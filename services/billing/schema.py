"""Billing data models.

Line items, invoices and expenses as recorded by the billing tool, plus the
derived (never stored) computation results.
"""

import uuid
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from services.billing.coercion import ZERO, to_amount

Amount = Annotated[Decimal, BeforeValidator(to_amount)]

# Expense.date would otherwise shadow the type inside the class body
CalendarDate = date


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TaxMode(StrEnum):
    """How a line's tax rate is applied.

    SPLIT: intra-state, rate divided equally into two components.
    SINGLE: inter-state, one component carrying the full rate.
    """

    SPLIT = "SPLIT"
    SINGLE = "SINGLE"


class InvoiceStatus(StrEnum):
    """Invoice status. Any status may be set from any other."""

    DRAFT = "Draft"
    SENT = "Sent"
    PAID = "Paid"
    OVERDUE = "Overdue"


class ExpenseCategory(StrEnum):
    """Closed set of expense categories."""

    UTILITIES = "Utilities"
    RENT = "Rent"
    SALARIES = "Salaries"
    SOFTWARE = "Software"
    TRAVEL = "Travel"
    MISC = "Misc"


class LineItem(BaseModel):
    """A single invoice line as entered by the user.

    Numeric fields are coerced at validation time; missing or non-numeric
    values become 0. ``discount_percent`` is deliberately not limited to
    [0, 100].
    """

    model_config = ConfigDict(frozen=True)

    description: str = ""
    quantity: Amount = ZERO
    unit_price: Amount = ZERO
    discount_percent: Amount = ZERO
    tax_rate_percent: Amount = ZERO


class LineComputation(BaseModel):
    """Derived amounts for one line item under a tax mode."""

    base: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    tax_component_a: Decimal
    tax_component_b: Decimal
    tax_component_c: Decimal
    total: Decimal


class InvoiceTotals(BaseModel):
    """Field-wise sums of the line computations of an invoice.

    ``subtotal`` is the taxable amount (after discounts, before tax).
    """

    base_total: Decimal = ZERO
    discount_total: Decimal = ZERO
    subtotal: Decimal = ZERO
    tax_component_a_total: Decimal = ZERO
    tax_component_b_total: Decimal = ZERO
    tax_component_c_total: Decimal = ZERO
    tax_total: Decimal = ZERO
    total: Decimal = ZERO


class InvoiceDraft(BaseModel):
    """Unsaved invoice form state."""

    customer_name: str = ""
    contact_info: str = ""
    tax_id: str = Field("", description="Customer tax registration number")
    tax_mode: TaxMode = TaxMode.SPLIT
    status: InvoiceStatus = InvoiceStatus.DRAFT
    items: list[LineItem] = Field(default_factory=list)


class Invoice(BaseModel):
    """A finalized invoice.

    Totals are the snapshot taken when the invoice was saved and are never
    re-derived from ``items``. Only ``status`` changes after creation, by
    producing an updated copy.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    invoice_number: str = ""
    created_at: datetime = Field(default_factory=_utcnow)
    customer_name: str = ""
    contact_info: str = ""
    tax_id: str = ""
    tax_mode: TaxMode = TaxMode.SPLIT
    status: InvoiceStatus = InvoiceStatus.DRAFT
    items: tuple[LineItem, ...] = ()
    subtotal: Amount = ZERO
    tax_total: Amount = ZERO
    total: Amount = ZERO
    amount_due: Amount = ZERO


class Expense(BaseModel):
    """A recorded business expense."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    date: CalendarDate = Field(default_factory=lambda: _utcnow().date())
    category: ExpenseCategory = ExpenseCategory.UTILITIES
    description: str = ""
    amount: Amount = ZERO
    receipt: str | None = Field(None, description="Opaque attachment reference")


class MetricsSnapshot(BaseModel):
    """Global summary metrics."""

    revenue: Decimal = ZERO
    collected_tax: Decimal = ZERO
    expense_total: Decimal = ZERO
    net: Decimal = ZERO


class SeriesPoint(BaseModel):
    """One monthly bucket of a time series."""

    period: str
    value: Decimal


class MergedSeriesPoint(BaseModel):
    """Revenue and expenses for one month."""

    period: str
    revenue: Decimal = ZERO
    expenses: Decimal = ZERO


class ShareBreakdown(BaseModel):
    """Percent-of-revenue shares, each clamped to [0, 100]."""

    tax_share: float = 0.0
    expense_share: float = 0.0
    profit_share: float = 0.0
