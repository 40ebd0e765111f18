"""
Data models for OweLedger
"""
from __future__ import annotations
import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Tuple

from utils import MAX_AMOUNT, parse_amount, parse_date, round_money


class ExpenseValidationError(ValueError):
    """Raised when an expense record cannot be used for balance math"""


@dataclass(frozen=True)
class Expense:
    """Single shared expense, immutable once recorded"""
    date: date
    description: str
    amount: Decimal
    paid_by: str
    split_between: Tuple[str, ...]
    id: str = ""

    def __post_init__(self):
        # accept any iterable of names but store a tuple; a bare str is rejected
        if not isinstance(self.split_between, (tuple, str)):
            object.__setattr__(self, "split_between", tuple(self.split_between))
        validate_expense(self)

    @property
    def share(self) -> Decimal:
        """One member's portion, unrounded"""
        return self.amount / len(self.split_between)


def validate_expense(e: Expense) -> None:
    """Check the invariants the balance math depends on"""
    if not isinstance(e.date, date):
        raise ExpenseValidationError(f"date must be a date, got {e.date!r}")
    if not str(e.description or "").strip():
        raise ExpenseValidationError("description is required")
    if not isinstance(e.amount, Decimal) or not e.amount.is_finite():
        raise ExpenseValidationError(f"amount must be a finite Decimal, got {e.amount!r}")
    if e.amount < 0:
        raise ExpenseValidationError(f"amount must not be negative, got {e.amount}")
    if e.amount > MAX_AMOUNT:
        raise ExpenseValidationError(f"amount is too large, got {e.amount}")
    if round_money(e.amount) != e.amount:
        raise ExpenseValidationError(f"amount has more than two decimal places, got {e.amount}")
    if isinstance(e.split_between, str):
        raise ExpenseValidationError(f"split_between must be a collection of names, got {e.split_between!r}")
    if not e.paid_by:
        raise ExpenseValidationError("paid_by is required")
    if not e.split_between:
        raise ExpenseValidationError("split_between must not be empty")
    if any(not m for m in e.split_between):
        raise ExpenseValidationError("split_between contains an empty name")
    if len(set(e.split_between)) != len(e.split_between):
        raise ExpenseValidationError(f"split_between has duplicate members: {list(e.split_between)}")


@dataclass(frozen=True)
class Contribution:
    """One member's share of one expense, owed to the payer"""
    from_person: str
    to_person: str
    amount: Decimal
    date: date
    description: str = ""

    @property
    def reversed(self) -> bool:
        """True when from/to run against the lexical pair order"""
        return self.from_person > self.to_person


@dataclass
class PairBalance:
    """
    Running totals for an unordered pair, keyed as (a, b) with a < b.
    owed_ab is what a owes b gross, owed_ba the reverse.
    """
    a: str
    b: str
    owed_ab: Decimal = Decimal(0)
    owed_ba: Decimal = Decimal(0)
    contributions: List[Contribution] = field(default_factory=list)

    @property
    def net(self) -> Decimal:
        """Signed total: positive means a owes b"""
        return self.owed_ab - self.owed_ba

    @property
    def latest_date(self) -> date:
        return max(c.date for c in self.contributions)


@dataclass
class SettlementRow:
    """Display-ready net debt between two people"""
    from_person: str
    to_person: str
    total: Decimal  # rounded to cents
    breakdown: List[str]
    dates: List[date]

    @property
    def latest_date(self) -> date:
        return max(self.dates)


@dataclass
class ReportLine:
    """One expense as seen by a person who owes a share of it"""
    date: date
    description: str
    amount: Decimal
    share: Decimal


@dataclass
class PersonReportGroup:
    """Everything a person owes one payer, gross of netting"""
    lines: List[ReportLine] = field(default_factory=list)
    total: Decimal = Decimal(0)


def new_expense(date_value, description, amount, paid_by, split_between, id: str = "") -> Expense:
    """
    Build an Expense from raw input (strings from a form, CSV row or JSON).
    Every parse failure is reported as ExpenseValidationError.
    """
    try:
        d = parse_date(date_value)
    except (TypeError, ValueError, AttributeError):
        raise ExpenseValidationError(f"date must be YYYY-MM-DD, got {date_value!r}") from None
    try:
        amt = parse_amount(amount)
    except ValueError as ex:
        raise ExpenseValidationError(str(ex)) from None
    if isinstance(split_between, str):
        split_between = split_between.split(";")
    members = tuple(str(m).strip() for m in split_between)
    return Expense(
        date=d,
        description=str(description or "").strip(),
        amount=amt,
        paid_by=str(paid_by or "").strip(),
        split_between=members,
        id=id or uuid.uuid4().hex,
    )
