"""
=============================================================================
BILL HISTORY STORES - local implementations
=============================================================================
Every store keeps bills in the order they were appended (oldest first) and
offers the same operations:

    append(bill)          add a new bill at the end
    get(bill_id)          one bill or None
    list_recent(n)        up to n bills, most recent first
    list_all()            every bill, oldest first
    delete_by_id(bill_id) True if a bill was removed
    clear()               remove everything

InMemoryBillStore - for tests and throwaway sessions
JsonlBillStore    - one JSON object per line in a local file (default store)

The DynamoDB store lives in backend/lib/dynamodb_service.py.
=============================================================================
"""

import json
import threading
from pathlib import Path
from typing import List, Optional

from backend.lib.tariff_engine.io import bill_from_record, bill_to_record
from backend.lib.tariff_engine.models import BillResult


class HistoryStoreError(Exception):
    """The storage backend could not complete an operation."""


class InMemoryBillStore:
    name = "memory"

    def __init__(self, bills=None):
        self._bills: List[BillResult] = list(bills or [])
        self._lock = threading.Lock()

    def append(self, bill: BillResult) -> None:
        with self._lock:
            self._bills.append(bill)

    def get(self, bill_id: str) -> Optional[BillResult]:
        with self._lock:
            for bill in self._bills:
                if bill.id == bill_id:
                    return bill
        return None

    def list_recent(self, n: int) -> List[BillResult]:
        with self._lock:
            if n <= 0:
                return []
            return list(reversed(self._bills[-n:]))

    def list_all(self) -> List[BillResult]:
        with self._lock:
            return list(self._bills)

    def delete_by_id(self, bill_id: str) -> bool:
        with self._lock:
            remaining = [b for b in self._bills if b.id != bill_id]
            removed = len(remaining) != len(self._bills)
            self._bills = remaining
            return removed

    def clear(self) -> None:
        with self._lock:
            self._bills = []


class JsonlBillStore:
    """
    Bill history in a JSON Lines file.

    Every change rewrites the whole file through a temporary file and an
    atomic replace; a failed write leaves the previous file intact.
    Histories are small: one line per billing period.
    """

    name = "jsonl"

    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> List[BillResult]:
        if not self.path.exists():
            return []  # No data yet
        bills = []
        try:
            with self.path.open("r", encoding="utf-8") as f:
                for line_no, line in enumerate(f, start=1):
                    if not line.strip():
                        continue
                    try:
                        bills.append(bill_from_record(json.loads(line)))
                    except (ValueError, KeyError, TypeError) as e:
                        raise HistoryStoreError(f"{self.path}:{line_no}: bad bill record ({e})")
        except OSError as e:
            raise HistoryStoreError(f"Failed to read {self.path}: {e}")
        return bills

    def _write(self, bills: List[BillResult]) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8") as f:
                for bill in bills:
                    f.write(json.dumps(bill_to_record(bill)) + "\n")
            tmp.replace(self.path)
        except OSError as e:
            raise HistoryStoreError(f"Failed to write {self.path}: {e}")

    def append(self, bill: BillResult) -> None:
        with self._lock:
            bills = self._read()
            bills.append(bill)
            self._write(bills)

    def get(self, bill_id: str) -> Optional[BillResult]:
        with self._lock:
            for bill in self._read():
                if bill.id == bill_id:
                    return bill
        return None

    def list_recent(self, n: int) -> List[BillResult]:
        if n <= 0:
            return []
        with self._lock:
            return list(reversed(self._read()[-n:]))

    def list_all(self) -> List[BillResult]:
        with self._lock:
            return self._read()

    def delete_by_id(self, bill_id: str) -> bool:
        with self._lock:
            bills = self._read()
            remaining = [b for b in bills if b.id != bill_id]
            if len(remaining) == len(bills):
                return False
            self._write(remaining)
            return True

    def clear(self) -> None:
        with self._lock:
            self._write([])
