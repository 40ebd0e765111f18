"""
Excel export functionality for OweLedger
"""
from __future__ import annotations
import logging
import re
from datetime import date
from typing import List, Optional

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter

from models import Expense
from computations import (
    compute_net_balances,
    compute_person_report,
    compute_settlement_rows,
    compute_summary,
    filter_expenses_by_date,
    list_participants,
)
from utils import round_money

logger = logging.getLogger(__name__)

MONEY_FORMAT = "0.00"


def _style_header(ws, row=1):
    """Apply header styling to worksheet row"""
    header_font = Font(bold=True, color="FFFFFF")
    fill = PatternFill("solid", fgColor="4F81BD")
    align = Alignment(horizontal="center", vertical="center")
    thin = Side(style="thin", color="A0A0A0")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    for cell in ws[row]:
        cell.font = header_font
        cell.fill = fill
        cell.alignment = align
        cell.border = border


def _autosize_columns(ws, min_width=10, max_width=45):
    """Auto-size columns based on content"""
    for col in range(1, ws.max_column + 1):
        letter = get_column_letter(col)
        max_len = 0
        for cell in ws[letter]:
            if cell.value is None:
                continue
            max_len = max(max_len, len(str(cell.value)))
        ws.column_dimensions[letter].width = max(min_width, min(max_width, max_len + 2))


def sheet_title(name: str, taken: List[str]) -> str:
    """Excel-safe, unique sheet title (max 31 chars, no []:*?/\\)"""
    base = re.sub(r"[\[\]:*?/\\]", "_", name)[:31] or "Sheet"
    title = base
    n = 2
    while title.lower() in (t.lower() for t in taken):
        suffix = f" ({n})"
        title = base[:31 - len(suffix)] + suffix
        n += 1
    return title


def _money_column(ws, col: int, first_row: int = 2):
    for r in range(first_row, ws.max_row + 1):
        ws.cell(r, col).number_format = MONEY_FORMAT


def export_excel(
    expenses: List[Expense],
    filepath: str,
    start: Optional[date] = None,
    end: Optional[date] = None
) -> None:
    """
    Export balances to an Excel file with sheets:
    - Balances (net debts)
    - Settlements (net debts with their breakdown)
    - Summary (paid / share / net per person)
    - One report sheet per person
    """
    wb = Workbook()
    # remove default sheet
    wb.remove(wb.active)

    exps = filter_expenses_by_date(expenses, start, end)

    ws = wb.create_sheet("Balances")
    ws.append(["Debtor", "Creditor", "Amount"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for debtor, creditors in sorted(compute_net_balances(exps).items()):
        for creditor, amount in sorted(creditors.items()):
            ws.append([debtor, creditor, float(amount)])
    _money_column(ws, 3)
    _autosize_columns(ws)

    ws = wb.create_sheet("Settlements")
    ws.append(["From", "To", "Total", "Breakdown", "Latest"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for row in compute_settlement_rows(exps):
        ws.append([row.from_person, row.to_person, float(row.total),
                   " ".join(row.breakdown), row.latest_date.isoformat()])
    _money_column(ws, 3)
    _autosize_columns(ws)

    ws = wb.create_sheet("Summary")
    ws.append(["Person", "Paid", "Share", "Net (Paid-Share)"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for person, s in compute_summary(exps).items():
        ws.append([person] + [float(round_money(s[k])) for k in ("paid", "share", "net")])
    for c in range(2, 5):
        _money_column(ws, c)
    _autosize_columns(ws)

    for person in list_participants(exps):
        report = compute_person_report(exps, person)
        if not report:
            continue
        ws = wb.create_sheet(sheet_title(f"{person} report", wb.sheetnames))
        ws.append(["Date", "Description", "Amount", "Share"])
        _style_header(ws, 1)
        ws.freeze_panes = "A2"
        for payer, group in report.items():
            ws.append([f"{person} owes {payer}", "", "", ""])
            title_row = ws.max_row
            ws.cell(title_row, 1).font = Font(bold=True)
            ws.cell(title_row, 1).fill = PatternFill("solid", fgColor="D9E1F2")
            for line in group.lines:
                ws.append([line.date.isoformat(), line.description,
                           float(line.amount), float(round_money(line.share))])
            ws.append(["", "Total", "", float(round_money(group.total))])
            ws.cell(ws.max_row, 2).font = Font(bold=True)
            ws.cell(ws.max_row, 4).font = Font(bold=True)
            # blank line between groups
            ws.append([""] * 4)
        _money_column(ws, 3)
        _money_column(ws, 4)
        _autosize_columns(ws)

    wb.save(filepath)
    logger.info("exported workbook %s (%d sheets)", filepath, len(wb.sheetnames))
