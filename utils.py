"""
Utility functions for OweLedger
"""
from __future__ import annotations
import os
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Tuple, Union

CENT = Decimal("0.01")
# keeps every sum of shares well inside the 28-digit decimal context
MAX_AMOUNT = Decimal("1e15")


def today_str() -> str:
    """Get today's date as ISO string"""
    return date.today().isoformat()


def parse_date(s: Union[str, date]) -> date:
    """Parse YYYY-MM-DD date string"""
    if isinstance(s, datetime):
        return s.date()
    if isinstance(s, date):
        return s
    return datetime.strptime(s.strip(), "%Y-%m-%d").date()


def parse_amount(x: Union[str, int, float, Decimal]) -> Decimal:
    """
    Convert user input to a cent-precision Decimal.
    Floats go through str() so 0.1 stays 0.1.
    Raises ValueError for non-numeric or non-finite input, for values with
    more than two decimal places, and for values too large to hold cents.
    """
    if isinstance(x, bool):
        raise ValueError(f"not an amount: {x!r}")
    if isinstance(x, float):
        x = str(x)
    try:
        d = Decimal(x.strip() if isinstance(x, str) else x)
    except (InvalidOperation, TypeError):
        raise ValueError(f"not an amount: {x!r}") from None
    if not d.is_finite():
        raise ValueError(f"not an amount: {x!r}")
    try:
        cents = round_money(d)
    except InvalidOperation:
        raise ValueError(f"not an amount: {x!r} is too large") from None
    if cents != d:
        raise ValueError(f"not an amount: {x!r} has more than two decimal places")
    return cents


def round_money(d: Decimal) -> Decimal:
    """Round to cents, half away from zero"""
    return d.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(d: Decimal, sign: str = "") -> str:
    """Format as a 2-decimal string, optionally prefixed with a sign"""
    return f"{sign}{round_money(d)}"


def pair_key(x: str, y: str) -> Tuple[str, str]:
    """Lexically ordered key for an unordered pair"""
    return (x, y) if x <= y else (y, x)


def app_dir() -> str:
    """
    Get application data directory: $OWE_LEDGER_HOME or ~/.owe_ledger
    Creates directory if it doesn't exist.
    """
    path = os.environ.get("OWE_LEDGER_HOME") or os.path.join(os.path.expanduser("~"), ".owe_ledger")
    os.makedirs(path, exist_ok=True)
    return path
