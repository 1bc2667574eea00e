"""Utility functions for the payment plan calculator.

This module provides helpers for coercing user input into ``Decimal`` values,
clamping and rounding amounts to multiples, and for handling year-month dates,
including adding months and rendering Spanish month labels.
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal, InvalidOperation, getcontext
import calendar
from typing import Any, Optional

from .config import MONTH_NAMES_ES

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

ZERO = Decimal("0")


def to_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    """Coerce ``value`` into a finite ``Decimal``.

    Numbers and numeric strings are converted; ``None``, booleans, NaN,
    infinities and anything unparsable yield ``default`` instead of
    propagating through the arithmetic.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, (int, str)):
            result = Decimal(str(value).strip())
        else:
            # floats go through repr so 0.1 stays 0.1
            result = Decimal(repr(float(value)))
    except (InvalidOperation, TypeError, ValueError):
        return default
    if not result.is_finite():
        return default
    return result


def to_int(value: Any, default: int = 0) -> int:
    """Coerce ``value`` into an ``int``, truncating toward zero."""
    number = to_decimal(value, Decimal(default))
    return int(number)


def clamp(value, low, high):
    return max(low, min(high, value))


def round_up_to_multiple(n: Decimal, multiple: int) -> Decimal:
    """Round ``n`` up to the next multiple of ``multiple``.

    A ``multiple`` of zero (or less) rounds up to the next whole currency unit.
    """
    if not multiple or multiple <= 0:
        return n.to_integral_value(rounding=ROUND_CEILING)
    step = Decimal(multiple)
    return (n / step).to_integral_value(rounding=ROUND_CEILING) * step


def round_down_to_multiple(n: Decimal, multiple: int) -> Decimal:
    """Round ``n`` down to the previous multiple of ``multiple``."""
    if not multiple or multiple <= 0:
        return n.to_integral_value(rounding=ROUND_FLOOR)
    step = Decimal(multiple)
    return (n / step).to_integral_value(rounding=ROUND_FLOOR) * step


def parse_year_month(ym: str) -> date:
    """Parse a YYYY-MM string into a ``date`` object (first day of month).

    Parameters
    ----------
    ym: str
        A string in the form ``"YYYY-MM"``. The day component, if present,
        will be ignored.

    Returns
    -------
    date
        A date object representing the first day of the specified month.

    Raises
    ------
    ValueError
        If the string is not a valid year-month.
    """
    try:
        parts = ym.strip().split("-")
        if len(parts) < 2:
            raise ValueError
        year = int(parts[0])
        month = int(parts[1])
        return date(year, month, 1)
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid year-month string: {ym}") from exc


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def default_start_month(today: Optional[date] = None) -> date:
    """First day of the month after ``today``; the form's default anchor."""
    today = today or date.today()
    return add_months(date(today.year, today.month, 1), 1)


def format_month_es(dt: date) -> str:
    """Render a date as a Spanish month label, e.g. ``"enero 2025"``."""
    return f"{MONTH_NAMES_ES[dt.month - 1]} {dt.year}"


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and handles both integer and float-like
    strings. It raises ``ValueError`` if conversion fails.
    """
    try:
        cleaned = value.replace(",", "").strip()
        result = Decimal(cleaned)
    except (AttributeError, InvalidOperation) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return result
