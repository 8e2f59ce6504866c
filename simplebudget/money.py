"""
Money and Month Utilities

All currency in SimpleBudget is fixed-point: a Decimal quantized to cents.
Amounts are rounded once, when they enter the ledger. Sums over stored
amounts are exact and are never re-rounded except for display.

Months are identified by a canonical "YYYY-MM" key.
"""

import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union


CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

MONTH_KEY_PATTERN = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")

Numeric = Union[Decimal, int, float, str]


def to_money(value: Numeric) -> Decimal:
    """
    Coerce a user or JSON value to Decimal.

    Floats go through their shortest repr so 0.1 stays 0.1 rather than
    picking up binary artifacts.

    Raises:
        ValueError: If the value is not numeric
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a numeric amount: {value!r}")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"Not a numeric amount: {value!r}")


def round_currency(value: Numeric) -> Decimal:
    """Round to 2 decimal places, half away from zero."""
    return to_money(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def month_key(day: date) -> str:
    """Format a date as its YYYY-MM month key."""
    return f"{day.year:04d}-{day.month:02d}"


def is_month_key(key: str) -> bool:
    return isinstance(key, str) and MONTH_KEY_PATTERN.match(key) is not None


def parse_month_key(key: str) -> tuple[int, int]:
    """
    Split a month key into (year, month).

    Raises:
        ValueError: If the key is not a well-formed YYYY-MM string
    """
    match = MONTH_KEY_PATTERN.match(key) if isinstance(key, str) else None
    if match is None:
        raise ValueError(f"Invalid month key: {key!r}")
    return int(match.group(1)), int(match.group(2))


def year_of(key: str) -> int:
    """Integer year from the key prefix."""
    return parse_month_key(key)[0]


def month_start(key: str) -> date:
    """First calendar day of the month named by the key."""
    year, month = parse_month_key(key)
    return date(year, month, 1)


def months_remaining_in_year(day: date) -> int:
    """
    Months left in the year, counting the month of `day`.

    January -> 12, December -> 1.
    """
    return 12 - (day.month - 1)


def format_currency(value: Numeric, symbol: str = "$") -> str:
    """
    Display form of an amount: symbol plus the rounded magnitude with
    thousands separators. Sign is left to the caller.
    """
    amount = abs(round_currency(value))
    return f"{symbol}{amount:,.2f}"


def format_month_label(key: str) -> str:
    """'2024-03' -> 'March 2024'."""
    return month_start(key).strftime("%B %Y")
