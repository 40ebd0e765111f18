"""
Expense record stores for OweLedger.

Request handlers get a store passed in and read a snapshot per request;
the balance code in computations never touches a store directly.
"""
from __future__ import annotations
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from threading import Lock
from typing import Dict, List

from config import expenses_to_list, list_to_expenses
from models import Expense, validate_expense

logger = logging.getLogger(__name__)

STORE_VERSION = 1


class StoreError(Exception):
    """Store file cannot be read"""


class ExpenseStore(ABC):
    """Per-user list of expenses"""

    @abstractmethod
    def list_expenses(self, user: str) -> List[Expense]:
        """Snapshot of the user's expenses in insertion order"""

    @abstractmethod
    def add_expense(self, user: str, expense: Expense) -> None:
        """Validate and append one expense"""

    def add_expenses(self, user: str, expenses: List[Expense]) -> None:
        for e in expenses:
            self.add_expense(user, e)


class MemoryExpenseStore(ExpenseStore):
    """Process-local store, safe to share between threads"""

    def __init__(self):
        self._lock = Lock()
        self._expenses: Dict[str, List[Expense]] = {}

    def list_expenses(self, user: str) -> List[Expense]:
        with self._lock:
            return list(self._expenses.get(user, []))

    def add_expense(self, user: str, expense: Expense) -> None:
        validate_expense(expense)
        with self._lock:
            self._expenses.setdefault(user, []).append(expense)


class JsonExpenseStore(ExpenseStore):
    """
    Single JSON document holding every user's expenses:
        {"version": 1, "users": {"<user>": [<expense>, ...]}}
    The file is re-read on every call and replaced atomically on write.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = Lock()

    def _load(self) -> dict:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {"version": STORE_VERSION, "users": {}}
        except ValueError as ex:
            raise StoreError(f"{self.path}: not a valid expense store ({ex})") from ex
        if not isinstance(data, dict):
            raise StoreError(f"{self.path}: not a valid expense store")
        data.setdefault("users", {})
        return data

    def _save(self, data: dict) -> None:
        folder = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(folder, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=folder, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            os.unlink(tmp)
            raise

    def list_expenses(self, user: str) -> List[Expense]:
        with self._lock:
            data = self._load()
        return list_to_expenses(data["users"].get(user, []))

    def add_expense(self, user: str, expense: Expense) -> None:
        self.add_expenses(user, [expense])

    def add_expenses(self, user: str, expenses: List[Expense]) -> None:
        for e in expenses:
            validate_expense(e)
        with self._lock:
            data = self._load()
            data["users"].setdefault(user, []).extend(expenses_to_list(expenses))
            self._save(data)
        logger.info("stored %d expense(s) for %s in %s", len(expenses), user, self.path)

    def replace_expenses(self, user: str, expenses: List[Expense]) -> None:
        """Overwrite the user's whole list"""
        for e in expenses:
            validate_expense(e)
        with self._lock:
            data = self._load()
            data["users"][user] = expenses_to_list(expenses)
            self._save(data)
        logger.info("replaced expenses for %s with %d record(s)", user, len(expenses))
