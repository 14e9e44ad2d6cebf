"""Line-item tax calculation.

Pure function used both for live previews while a draft is edited and once
per item when an invoice is saved.
"""

from decimal import Decimal

from services.billing.coercion import ZERO
from services.billing.schema import LineComputation, LineItem, TaxMode

HUNDRED = Decimal(100)
TWO = Decimal(2)


def compute_line(item: LineItem, tax_mode: TaxMode) -> LineComputation:
    """Compute base, discount, taxable amount, tax components and total.

    Formula:
        base = quantity * unit_price
        discount = base * discount_percent / 100
        taxable = max(base - discount, 0)
        SPLIT:  A = B = taxable * (rate / 2) / 100, C = 0
        SINGLE: C = taxable * rate / 100, A = B = 0
        total = taxable + A + B + C

    Args:
        item: Line item (numeric fields already coerced)
        tax_mode: SPLIT or SINGLE

    Returns:
        LineComputation with all derived amounts
    """
    base = item.quantity * item.unit_price
    discount_amount = base * (item.discount_percent / HUNDRED)
    # Discounts above the base never produce a negative taxable amount
    taxable_amount = max(base - discount_amount, ZERO)

    component_a = component_b = component_c = ZERO
    if tax_mode == TaxMode.SINGLE:
        component_c = taxable_amount * (item.tax_rate_percent / HUNDRED)
    else:
        component_a = taxable_amount * ((item.tax_rate_percent / TWO) / HUNDRED)
        component_b = component_a

    return LineComputation(
        base=base,
        discount_amount=discount_amount,
        taxable_amount=taxable_amount,
        tax_component_a=component_a,
        tax_component_b=component_b,
        tax_component_c=component_c,
        total=taxable_amount + component_a + component_b + component_c,
    )
