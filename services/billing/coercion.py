"""Boundary parsing for loosely typed billing input.

Form fields and stored records arrive as strings, numbers or nothing at all.
Everything numeric is normalised to ``Decimal`` here, once, so the calculator
and metrics functions only ever see finite decimals.
"""

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

logger = logging.getLogger(__name__)

ZERO = Decimal(0)

# Largest accepted decimal exponent (either sign); products of a few such
# values stay far inside the default context's Emax
MAX_AMOUNT_EXPONENT = 99


def to_amount(value: Any) -> Decimal:
    """Parse a numeric field, falling back to zero.

    Missing values, blank or non-numeric strings, booleans, NaN, infinities
    and values whose magnitude lies outside ``1e-99 .. 1e99`` all become
    ``Decimal(0)``. Never raises.

    Args:
        value: Raw field value (str, int, float, Decimal or None)

    Returns:
        Finite Decimal value within the accepted magnitude range
    """
    if value is None:
        return ZERO

    if isinstance(value, bool):
        logger.debug(f"Boolean amount {value!r} treated as 0")
        return ZERO
    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, int):
        parsed = Decimal(value)
    elif isinstance(value, float):
        # str() keeps 0.1 as 0.1 instead of its binary expansion
        parsed = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return ZERO
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            logger.debug(f"Non-numeric amount {value!r} treated as 0")
            return ZERO
    else:
        logger.debug(f"Unsupported amount type {type(value).__name__} treated as 0")
        return ZERO

    if not parsed.is_finite():
        return ZERO
    if parsed and abs(parsed.adjusted()) > MAX_AMOUNT_EXPONENT:
        logger.debug(f"Out-of-range amount {value!r} treated as 0")
        return ZERO
    return parsed


def to_datetime(value: Any) -> datetime | None:
    """Read a record date as a datetime.

    Accepts datetime, date and ISO 8601 strings (``2024-03-05`` or
    ``2024-03-05T10:00:00Z``).

    Args:
        value: Raw date value

    Returns:
        Parsed datetime, or None when the value cannot be read
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def period_key(moment: date) -> str:
    """Return the ``YYYY-MM`` bucket for a date or datetime."""
    return f"{moment.year:04d}-{moment.month:02d}"
