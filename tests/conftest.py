# tests/conftest.py
from datetime import datetime, timezone

import pytest

from backend.lib.history_store import HistoryStoreError, InMemoryBillStore
from backend.lib.tracker_service import TrackerService
from backend.lib.tariff_engine.calculator import calculate_bill
from backend.lib.tariff_engine.tariff import default_schedule


class FailingStore(InMemoryBillStore):
    """A store whose backend is down for writes (and optionally reads)."""

    def __init__(self, fail_reads=False):
        super().__init__()
        self.fail_reads = fail_reads

    def append(self, bill):
        raise HistoryStoreError("disk full")

    def list_recent(self, n):
        if self.fail_reads:
            raise HistoryStoreError("connection reset")
        return super().list_recent(n)

    def list_all(self):
        if self.fail_reads:
            raise HistoryStoreError("connection reset")
        return super().list_all()


@pytest.fixture
def schedule():
    return default_schedule()


@pytest.fixture
def make_bill(schedule):
    """Bill for a given number of units, optionally dated."""
    counter = {"n": 0}

    def _make(units, when=None):
        counter["n"] += 1
        when = when or datetime(2025, 1, counter["n"], tzinfo=timezone.utc)
        return calculate_bill(0, units, schedule, timestamp=when, bill_id=f"bill-{counter['n']}")

    return _make


@pytest.fixture
def failing_store():
    return FailingStore()


@pytest.fixture
def broken_store():
    return FailingStore(fail_reads=True)


@pytest.fixture
def service(schedule):
    return TrackerService(InMemoryBillStore(), schedule)


@pytest.fixture
def client(monkeypatch, service):
    import backend.app as app_module
    monkeypatch.setattr(app_module, "service", service)
    app_module.app.config["TESTING"] = True
    return app_module.app.test_client()
