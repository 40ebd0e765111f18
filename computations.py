"""
Balance netting and settlement reporting for OweLedger.

Everything here is a pure function of the expense list it is given:
nothing is cached, nothing mutates the input, and every call rebuilds
its results from scratch.
"""
from __future__ import annotations
import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from models import (
    Contribution,
    Expense,
    PairBalance,
    PersonReportGroup,
    ReportLine,
    SettlementRow,
    validate_expense,
)
from utils import format_money, pair_key, round_money

logger = logging.getLogger(__name__)

NetBalances = Dict[str, Dict[str, Decimal]]


def expense_contributions(e: Expense) -> List[Contribution]:
    """One contribution per split member other than the payer"""
    share = e.share
    return [
        Contribution(m, e.paid_by, share, e.date, e.description)
        for m in e.split_between
        if m != e.paid_by
    ]


def build_contribution_ledger(expenses: Iterable[Expense]) -> Dict[Tuple[str, str], PairBalance]:
    """
    Group every contribution by its lexically ordered pair.

    Both the net balance table and the settlement rows are read off this
    ledger, so they can never disagree about a pair's total. Pairs keep
    the order in which they were first seen.
    """
    pairs: Dict[Tuple[str, str], PairBalance] = {}
    count = 0
    for e in expenses:
        validate_expense(e)
        for c in expense_contributions(e):
            a, b = pair_key(c.from_person, c.to_person)
            pb = pairs.get((a, b))
            if pb is None:
                pb = pairs[(a, b)] = PairBalance(a, b)
            if c.reversed:
                pb.owed_ba += c.amount
            else:
                pb.owed_ab += c.amount
            pb.contributions.append(c)
            count += 1
    logger.debug("ledger: %d contributions over %d pairs", count, len(pairs))
    return pairs


def _oriented(pb: PairBalance) -> Optional[Tuple[str, str, Decimal]]:
    """(debtor, creditor, rounded amount) or None when the pair is settled"""
    net = pb.net
    if net >= 0:
        debtor, creditor = pb.a, pb.b
    else:
        debtor, creditor = pb.b, pb.a
    amount = round_money(abs(net))
    if amount == 0:
        return None
    return debtor, creditor, amount


def compute_net_balances(expenses: Iterable[Expense]) -> NetBalances:
    """
    Net pairwise debts: debtor -> creditor -> amount owed.

    Opposing debts cancel; only the positive direction survives, rounded to
    cents. Pairs that net to zero (to the cent) do not appear at all.
    """
    net: NetBalances = {}
    for pb in build_contribution_ledger(expenses).values():
        oriented = _oriented(pb)
        if oriented is None:
            continue
        debtor, creditor, amount = oriented
        net.setdefault(debtor, {})[creditor] = amount
    return net


def compute_settlement_rows(expenses: Iterable[Expense]) -> List[SettlementRow]:
    """
    Summary rows, most recently active debts first.

    Each breakdown line is the share formatted to cents, prefixed "-" when
    the contribution runs in the row's direction and "+" when it runs
    against it. Rows with the same latest date keep encounter order.
    """
    rows = []
    for pb in build_contribution_ledger(expenses).values():
        oriented = _oriented(pb)
        if oriented is None:
            continue
        debtor, creditor, amount = oriented
        breakdown = [
            format_money(c.amount, "-" if c.from_person == debtor else "+")
            for c in pb.contributions
        ]
        rows.append(SettlementRow(
            from_person=debtor,
            to_person=creditor,
            total=amount,
            breakdown=breakdown,
            dates=[c.date for c in pb.contributions],
        ))
    # list.sort is stable, also with reverse=True
    rows.sort(key=lambda r: r.latest_date, reverse=True)
    return rows


def compute_person_report(expenses: Iterable[Expense], person: str) -> Dict[str, PersonReportGroup]:
    """
    Itemized gross shares `person` owes, grouped by payer.
    Not netted against what payers owe `person` back.
    """
    report: Dict[str, PersonReportGroup] = {}
    for e in expenses:
        if person not in e.split_between or e.paid_by == person:
            continue
        validate_expense(e)
        group = report.setdefault(e.paid_by, PersonReportGroup())
        share = e.share
        group.lines.append(ReportLine(e.date, e.description, e.amount, share))
        group.total += share
    return report


def list_participants(expenses: Iterable[Expense]) -> List[str]:
    """Everyone who paid for or shared in any expense, sorted"""
    people = set()
    for e in expenses:
        people.add(e.paid_by)
        people.update(e.split_between)
    return sorted(people)


def filter_expenses_by_date(
    expenses: Iterable[Expense],
    start: Optional[date],
    end: Optional[date]
) -> List[Expense]:
    """Filter expenses by date range (inclusive)"""
    out = []
    for e in expenses:
        if start and e.date < start:
            continue
        if end and e.date > end:
            continue
        out.append(e)
    return out


def compute_summary(expenses: Iterable[Expense]) -> Dict[str, dict]:
    """
    Compute gross totals for each person.
    Returns dict mapping person -> {paid, share, net}; net > 0 means the
    person is owed money overall. Values are unrounded.
    """
    expenses = list(expenses)
    people = list_participants(expenses)
    paid = {p: Decimal(0) for p in people}
    share = {p: Decimal(0) for p in people}

    for e in expenses:
        paid[e.paid_by] += e.amount
        s = e.share
        for m in e.split_between:
            share[m] += s

    return {
        p: {
            "paid": paid[p],
            "share": share[p],
            "net": paid[p] - share[p],
        } for p in people
    }
