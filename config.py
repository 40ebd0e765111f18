"""
Configuration and expense (de)serialization for OweLedger
"""
from __future__ import annotations
import json
import logging
import os
from dataclasses import dataclass
from typing import List, Optional

from models import Expense, new_expense
from utils import app_dir

DEFAULT_TOKEN_TTL = 24 * 60 * 60


@dataclass
class Settings:
    """Runtime settings"""
    data_dir: str
    ledger_file: str
    token_ttl_seconds: int = DEFAULT_TOKEN_TTL
    log_level: str = "WARNING"


def load_settings(path: Optional[str] = None) -> Settings:
    """
    Load settings from JSON file (default: settings.json in the data dir),
    then apply OWE_LEDGER_* environment overrides.
    """
    base = app_dir()
    path = path or os.path.join(base, "settings.json")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        data = {}

    data_dir = data.get("data_dir", base)
    settings = Settings(
        data_dir=data_dir,
        ledger_file=data.get("ledger_file") or os.path.join(data_dir, "expenses.json"),
        token_ttl_seconds=int(data.get("token_ttl_seconds", DEFAULT_TOKEN_TTL)),
        log_level=str(data.get("log_level", "WARNING")).upper(),
    )
    if os.environ.get("OWE_LEDGER_FILE"):
        settings.ledger_file = os.environ["OWE_LEDGER_FILE"]
    if os.environ.get("OWE_LEDGER_LOG_LEVEL"):
        settings.log_level = os.environ["OWE_LEDGER_LOG_LEVEL"].upper()
    return settings


def setup_logging(level: str = "WARNING") -> None:
    """Send log records to stderr"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def expense_to_dict(e: Expense) -> dict:
    """Convert Expense to a JSON-safe dictionary"""
    return {
        "id": e.id,
        "date": e.date.isoformat(),
        "description": e.description,
        "amount": str(e.amount),
        "paid_by": e.paid_by,
        "split_between": list(e.split_between),
    }


def dict_to_expense(d: dict) -> Expense:
    """Convert dictionary from JSON to Expense, validating it"""
    return new_expense(
        d.get("date"),
        d.get("description"),
        d.get("amount"),
        d.get("paid_by"),
        d.get("split_between") or [],
        id=d.get("id", ""),
    )


def expenses_to_list(expenses: List[Expense]) -> List[dict]:
    return [expense_to_dict(e) for e in expenses]


def list_to_expenses(items: List[dict]) -> List[Expense]:
    return [dict_to_expense(d) for d in items]
