"""
OweLedger command line
- Record shared expenses per user in a JSON store.
- Show net balances, settlement rows with breakdowns, and per-person reports.
- Import/export CSV, export an Excel report.

Run:
  python split_ledger.py --user alice add --date 2025-06-01 "Dinner" 90 A A B C
  python split_ledger.py --user alice balances

Dependencies:
  pip install openpyxl
"""
from __future__ import annotations
import argparse
import logging
import sys
from typing import List, Optional

from computations import (
    compute_net_balances,
    compute_person_report,
    compute_settlement_rows,
    compute_summary,
    filter_expenses_by_date,
)
from config import Settings, load_settings, setup_logging
from csv_handler import export_expenses_to_csv, import_expenses_from_csv
from excel_export import export_excel
from models import ExpenseValidationError, new_expense
from store import JsonExpenseStore, StoreError
from utils import format_money, parse_date, today_str

logger = logging.getLogger("split_ledger")


def _date_arg(s: str):
    try:
        return parse_date(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"dates must be YYYY-MM-DD, got {s!r}")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="owe-ledger", description="Track shared expenses and who owes whom.")
    p.add_argument("--store", help="path of the JSON expense store")
    p.add_argument("--user", default="local", help="ledger owner (default: local)")
    p.add_argument("-v", "--verbose", action="count", default=0)
    sub = p.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="record an expense")
    add.add_argument("--date", help="YYYY-MM-DD (default: today)")
    add.add_argument("description")
    add.add_argument("amount")
    add.add_argument("paid_by")
    add.add_argument("split_between", nargs="+")

    sub.add_parser("list", help="list expenses")

    for name, help_text in (("balances", "net pairwise debts"),
                            ("settlements", "net debts with their breakdown"),
                            ("summary", "paid / share / net per person"),
                            ("export-excel", "write an .xlsx report")):
        sp = sub.add_parser(name, help=help_text)
        if name == "export-excel":
            sp.add_argument("path")
        sp.add_argument("--start", type=_date_arg)
        sp.add_argument("--end", type=_date_arg)

    rep = sub.add_parser("report", help="what one person owes each payer")
    rep.add_argument("person")
    rep.add_argument("--start", type=_date_arg)
    rep.add_argument("--end", type=_date_arg)

    imp = sub.add_parser("import-csv", help="append (or --replace) expenses from CSV")
    imp.add_argument("path")
    imp.add_argument("--replace", action="store_true")

    exp = sub.add_parser("export-csv", help="write expenses to CSV")
    exp.add_argument("path")
    return p


def run(args: argparse.Namespace, settings: Settings, out=None) -> int:
    out = out or sys.stdout
    store = JsonExpenseStore(args.store or settings.ledger_file)
    expenses = store.list_expenses(args.user)
    if hasattr(args, "start"):
        expenses = filter_expenses_by_date(expenses, args.start, args.end)

    if args.command == "add":
        e = new_expense(args.date or today_str(), args.description, args.amount,
                        args.paid_by, args.split_between)
        store.add_expense(args.user, e)
        print(f"added {e.id}", file=out)

    elif args.command == "list":
        for e in expenses:
            print(f"{e.date.isoformat()}  {e.description:<24} {format_money(e.amount):>10}  "
                  f"{e.paid_by} -> {', '.join(e.split_between)}", file=out)

    elif args.command == "balances":
        net = compute_net_balances(expenses)
        if not net:
            print("All settled up!", file=out)
        for debtor in sorted(net):
            for creditor in sorted(net[debtor]):
                print(f"{debtor} owes {creditor}: {format_money(net[debtor][creditor])}", file=out)

    elif args.command == "settlements":
        rows = compute_settlement_rows(expenses)
        if not rows:
            print("All settled up!", file=out)
        for row in rows:
            print(f"{row.from_person} owes {row.to_person}: {format_money(row.total)}", file=out)
            print(f"  Breakdown: {' '.join(row.breakdown)}", file=out)

    elif args.command == "report":
        report = compute_person_report(expenses, args.person)
        if not report:
            print(f"{args.person} owes nobody.", file=out)
        for payer, group in report.items():
            print(f"{args.person} owes {payer}", file=out)
            for line in group.lines:
                print(f"  {line.date.isoformat()}  {line.description:<24} "
                      f"{format_money(line.amount):>10} {format_money(line.share, '+'):>10}", file=out)
            print(f"  {'Total':<36} {format_money(group.total):>21}", file=out)

    elif args.command == "summary":
        for person, s in compute_summary(expenses).items():
            print(f"{person:<16} paid {format_money(s['paid']):>10}  share {format_money(s['share']):>10}  "
                  f"net {format_money(s['net']):>10}", file=out)

    elif args.command == "import-csv":
        imported = import_expenses_from_csv(args.path)
        if args.replace:
            store.replace_expenses(args.user, imported)
        else:
            store.add_expenses(args.user, imported)
        print(f"imported {len(imported)} expenses", file=out)

    elif args.command == "export-csv":
        export_expenses_to_csv(expenses, args.path)
        print(f"exported {len(expenses)} expenses to {args.path}", file=out)

    elif args.command == "export-excel":
        export_excel(expenses, args.path)
        print(f"exported: {args.path}", file=out)

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application"""
    args = build_parser().parse_args(argv)
    settings = load_settings()
    level = "DEBUG" if args.verbose > 1 else "INFO" if args.verbose else settings.log_level
    setup_logging(level)
    try:
        return run(args, settings)
    except ExpenseValidationError as ex:
        logger.debug("validation failed", exc_info=True)
        print(f"invalid expense: {ex}", file=sys.stderr)
        return 2
    except (StoreError, OSError) as ex:
        logger.error("%s failed: %s", args.command, ex)
        print(f"error: {ex}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
