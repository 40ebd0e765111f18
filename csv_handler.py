"""
CSV export and import functionality for OweLedger
"""
from __future__ import annotations
import csv
import logging
from typing import List

from models import Expense, ExpenseValidationError, new_expense

logger = logging.getLogger(__name__)

CSV_COLUMNS = ['id', 'date', 'description', 'amount', 'paid_by', 'split_between']


def export_expenses_to_csv(expenses: List[Expense], filepath: str) -> None:
    """
    Export expenses list to CSV file
    CSV columns: id, date, description, amount, paid_by, split_between
    split_between members are joined with ';'
    """
    with open(filepath, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(CSV_COLUMNS)
        for e in expenses:
            writer.writerow([
                e.id,
                e.date.isoformat(),
                e.description,
                str(e.amount),
                e.paid_by,
                ';'.join(e.split_between),
            ])
    logger.info("exported %d expenses to %s", len(expenses), filepath)


def import_expenses_from_csv(filepath: str) -> List[Expense]:
    """
    Import expenses list from CSV file
    Every row is validated; the first bad row aborts the import.
    """
    expenses = []

    with open(filepath, 'r', encoding='utf-8', newline='') as f:
        reader = csv.DictReader(f)
        missing = [c for c in CSV_COLUMNS[1:] if c not in (reader.fieldnames or [])]
        if missing:
            raise ExpenseValidationError(f"{filepath}: missing column(s) {', '.join(missing)}")

        # row 1 is the header
        for lineno, row in enumerate(reader, start=2):
            try:
                expense = new_expense(
                    row['date'],
                    row['description'],
                    row['amount'],
                    row['paid_by'],
                    row['split_between'] or '',
                    id=row.get('id') or '',
                )
            except ExpenseValidationError as ex:
                raise ExpenseValidationError(f"{filepath}:{lineno}: {ex}") from ex
            expenses.append(expense)

    logger.info("imported %d expenses from %s", len(expenses), filepath)
    return expenses
