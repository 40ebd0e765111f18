from datetime import date
from decimal import Decimal

import pytest

from computations import (
    build_contribution_ledger,
    compute_net_balances,
    compute_person_report,
    compute_settlement_rows,
    compute_summary,
    filter_expenses_by_date,
    list_participants,
)
from models import ExpenseValidationError, new_expense


def exp(amount, paid_by, split, d="2025-01-01", desc="item"):
    return new_expense(d, desc, amount, paid_by, split)


def flatten(net):
    return {(debtor, creditor): amount for debtor, row in net.items() for creditor, amount in row.items()}


MIXED = [
    exp(90, "A", ["A", "B", "C"], "2025-01-01"),
    exp(40, "B", ["A", "B"], "2025-01-02"),
    exp(60, "C", ["A", "B", "C", "D"], "2025-01-03"),
    exp(12, "D", ["A", "D"], "2025-01-04"),
    exp(30, "A", ["C", "D"], "2025-01-05"),
    exp(0, "B", ["A", "B", "C"], "2025-01-06"),
]


# ---------- net balances ----------

def test_single_expense_split_three_ways():
    net = compute_net_balances([exp(90, "A", ["A", "B", "C"])])
    assert net == {"B": {"A": Decimal("30.00")}, "C": {"A": Decimal("30.00")}}


def test_opposing_expenses_cancel():
    net = compute_net_balances([
        exp(100, "A", ["A", "B"]),
        exp(40, "B", ["A", "B"]),
    ])
    assert net == {"B": {"A": 30}}
    assert "A" not in net


def test_fractional_net():
    net = compute_net_balances([
        exp(10, "A", ["A", "B"]),
        exp(5, "B", ["A", "B"]),
    ])
    assert net == {"B": {"A": Decimal("2.50")}}


def test_zero_amount_creates_no_entries():
    assert compute_net_balances([exp(0, "A", ["A", "B", "C"])]) == {}
    assert compute_settlement_rows([exp(0, "A", ["A", "B", "C"])]) == []


def test_everyone_paying_equally_is_settled():
    expenses = [
        exp(30, "A", ["A", "B", "C"]),
        exp(30, "B", ["A", "B", "C"]),
        exp(30, "C", ["A", "B", "C"]),
    ]
    assert compute_net_balances(expenses) == {}
    assert compute_settlement_rows(expenses) == []


def test_directed_cycle_is_not_collapsed_across_pairs():
    # A owes B, B owes C, C owes A: three distinct pairs, nothing to cancel pairwise
    expenses = [
        exp(20, "B", ["A", "B"]),
        exp(20, "C", ["B", "C"]),
        exp(20, "A", ["C", "A"]),
    ]
    assert flatten(compute_net_balances(expenses)) == {
        ("A", "B"): Decimal("10.00"),
        ("B", "C"): Decimal("10.00"),
        ("C", "A"): Decimal("10.00"),
    }


def test_payer_never_owes_self():
    assert compute_net_balances([exp(50, "A", ["A"])]) == {}
    net = compute_net_balances([exp(40, "A", ["A", "B"])])
    assert net == {"B": {"A": Decimal("20.00")}}


def test_payer_outside_split():
    net = compute_net_balances([exp(30, "A", ["B", "C"])])
    assert net == {"B": {"A": Decimal("15.00")}, "C": {"A": Decimal("15.00")}}


def test_rounding_is_half_up():
    # share 0.025: half-up gives 0.03 where banker's rounding would give 0.02
    net = compute_net_balances([exp("0.05", "A", ["A", "B"])])
    assert net == {"B": {"A": Decimal("0.03")}}


def test_shares_are_not_rounded_before_netting():
    # three shares of 0.00333... add up to a full cent
    expenses = [exp("0.01", "A", ["A", "B", "C"]) for _ in range(3)]
    assert compute_net_balances(expenses) == {"B": {"A": Decimal("0.01")}, "C": {"A": Decimal("0.01")}}


def test_sub_cent_net_counts_as_settled():
    expenses = [exp("0.01", "A", ["A", "B", "C"])]
    assert compute_net_balances(expenses) == {}
    assert compute_settlement_rows(expenses) == []


def test_at_most_one_direction_per_pair():
    net = compute_net_balances(MIXED)
    for debtor, row in net.items():
        for creditor, amount in row.items():
            assert amount > 0
            assert debtor not in net.get(creditor, {})


def test_conservation():
    pairs = build_contribution_ledger(MIXED)
    gross = sum(pb.owed_ab + pb.owed_ba for pb in pairs.values())
    cancelled = sum(2 * min(pb.owed_ab, pb.owed_ba) for pb in pairs.values())
    net_total = sum(flatten(compute_net_balances(MIXED)).values())
    assert net_total == gross - cancelled
    assert net_total <= gross


def test_reporter_agrees_with_aggregator():
    rows = compute_settlement_rows(MIXED)
    assert {(r.from_person, r.to_person): r.total for r in rows} == flatten(compute_net_balances(MIXED))


def test_pure_and_repeatable():
    snapshot = list(MIXED)
    assert compute_net_balances(MIXED) == compute_net_balances(MIXED)
    assert compute_settlement_rows(MIXED) == compute_settlement_rows(MIXED)
    assert compute_person_report(MIXED, "A") == compute_person_report(MIXED, "A")
    assert MIXED == snapshot


def test_rejects_expense_that_bypassed_validation():
    e = exp(10, "A", ["A", "B"])
    object.__setattr__(e, "split_between", ())
    with pytest.raises(ExpenseValidationError):
        compute_net_balances([e])
    with pytest.raises(ExpenseValidationError):
        compute_settlement_rows([e])

    e = exp(10, "A", ["A", "B"])
    object.__setattr__(e, "amount", Decimal("-1"))
    with pytest.raises(ExpenseValidationError):
        compute_net_balances([e])


# ---------- settlement rows ----------

def test_settlement_row_breakdown():
    rows = compute_settlement_rows([
        exp(100, "A", ["A", "B"], "2025-01-01", "Hotel"),
        exp(40, "B", ["A", "B"], "2025-01-03", "Food"),
    ])
    assert len(rows) == 1
    row = rows[0]
    assert (row.from_person, row.to_person, row.total) == ("B", "A", Decimal("30.00"))
    # "-" for lines in the row's direction, "+" for lines against it
    assert row.breakdown == ["-50.00", "+20.00"]
    assert row.dates == [date(2025, 1, 1), date(2025, 1, 3)]
    assert row.latest_date == date(2025, 1, 3)


def test_breakdown_keeps_unrounded_shares_until_display():
    rows = compute_settlement_rows([exp(10, "A", ["A", "B", "C"])])
    assert [r.breakdown for r in rows] == [["-3.33"], ["-3.33"]]
    assert [r.total for r in rows] == [Decimal("3.33"), Decimal("3.33")]


def test_rows_sorted_by_latest_date_then_encounter_order():
    ab = exp(20, "A", ["A", "B"], "2025-01-05")
    bc = exp(20, "C", ["B", "C"], "2025-01-05")
    ac = exp(20, "A", ["A", "C"], "2025-02-01")

    rows = compute_settlement_rows([ab, bc, ac])
    assert [(r.from_person, r.to_person) for r in rows] == [("C", "A"), ("B", "A"), ("B", "C")]

    rows = compute_settlement_rows([bc, ab, ac])
    assert [(r.from_person, r.to_person) for r in rows] == [("C", "A"), ("B", "C"), ("B", "A")]


def test_settled_pair_is_dropped():
    rows = compute_settlement_rows([
        exp(10, "A", ["A", "B"]),
        exp(10, "B", ["A", "B"]),
        exp(10, "C", ["A", "C"]),
    ])
    assert [(r.from_person, r.to_person, r.total) for r in rows] == [("A", "C", Decimal("5.00"))]


# ---------- person report ----------

REPORT_EXPENSES = [
    exp(90, "A", ["A", "B", "C"], "2025-01-01", "Dinner"),
    exp(40, "B", ["A", "B"], "2025-01-02", "Taxi"),
    exp(30, "C", ["B", "C"], "2025-01-03", "Coffee"),
    exp(10, "A", ["A", "B"], "2025-01-04", "Snacks"),
]


def test_person_report_groups_by_payer():
    report = compute_person_report(REPORT_EXPENSES, "B")
    assert list(report) == ["A", "C"]
    assert [(l.description, l.share) for l in report["A"].lines] == [("Dinner", 30), ("Snacks", 5)]
    assert report["A"].total == Decimal("35")
    assert report["A"].lines[0].amount == Decimal("90.00")
    assert report["A"].lines[0].date == date(2025, 1, 1)
    assert report["C"].total == Decimal("15")


def test_person_report_is_gross():
    # A owes B 20 for the taxi but B's report still shows the full 35 owed to A
    assert compute_person_report(REPORT_EXPENSES, "B")["A"].total == 35
    assert compute_net_balances(REPORT_EXPENSES)["B"]["A"] == 15
    report = compute_person_report(REPORT_EXPENSES, "A")
    assert list(report) == ["B"]
    assert report["B"].total == 20


def test_person_report_for_stranger_is_empty():
    assert compute_person_report(REPORT_EXPENSES, "Z") == {}


# ---------- helpers ----------

def test_list_participants():
    assert list_participants(MIXED) == ["A", "B", "C", "D"]
    assert list_participants([]) == []


def test_filter_expenses_by_date_is_inclusive():
    out = filter_expenses_by_date(MIXED, date(2025, 1, 2), date(2025, 1, 4))
    assert [e.date.day for e in out] == [2, 3, 4]
    assert filter_expenses_by_date(MIXED, None, None) == MIXED


def test_summary():
    summary = compute_summary(REPORT_EXPENSES)
    assert summary["A"] == {"paid": 100, "share": 55, "net": 45}
    assert summary["B"] == {"paid": 40, "share": 70, "net": -30}
    assert summary["C"] == {"paid": 30, "share": 45, "net": -15}
    assert sum(s["net"] for s in summary.values()) == 0


def test_oversized_amount_is_a_validation_error_not_a_crash():
    e = exp(10, "A", ["A", "B"])
    object.__setattr__(e, "amount", Decimal("1e27"))
    with pytest.raises(ExpenseValidationError, match="too large"):
        compute_net_balances([e])
    with pytest.raises(ExpenseValidationError, match="too large"):
        compute_settlement_rows([e])


def test_largest_amounts_still_net():
    expenses = [exp("1000000000000000", "A", ["A", "B"]) for _ in range(3)]
    assert compute_net_balances(expenses) == {"B": {"A": Decimal("1500000000000000.00")}}
