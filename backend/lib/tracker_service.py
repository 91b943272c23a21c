"""
=============================================================================
TRACKER SERVICE - ties the billing engine to a bill history store
=============================================================================
Flow for a new pair of meter readings:

    readings --> calculate_bill() --> BillResult --> store.append()
                                                  --> forecast cache dropped

The bill is computed first and persisted second: if the store fails the
caller still gets the bill back, flagged as not persisted.

The forecast is derived data. It is cached here and thrown away whenever
the history changes (append, delete, clear), then rebuilt from the full
remaining history on the next read.
=============================================================================
"""

import threading
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from backend.lib.history_store import HistoryStoreError
from backend.lib.tariff_engine.analytics import (
    DEFAULT_RATE_PER_UNIT, build_dashboard, generate_forecast,
)
from backend.lib.tariff_engine.calculator import BillCalculator
from backend.lib.tariff_engine.models import BillResult, DashboardSnapshot, Forecast, TariffSchedule
from backend.lib.tariff_engine.recommendations import personalized_tips


@dataclass
class Submission:
    bill: BillResult
    persisted: bool
    error: Optional[str] = None


class TrackerService:
    def __init__(self, store, schedule: TariffSchedule, default_rate=DEFAULT_RATE_PER_UNIT):
        """
        store: any bill history store (memory, JSONL file, DynamoDB)
        schedule: active tariff
        default_rate: per-unit price used by forecasts when the latest bill had no usage
        """
        self.store = store
        self.calculator = BillCalculator(schedule)
        self.default_rate = Decimal(str(default_rate))
        self._forecast: Optional[Forecast] = None
        # one writer at a time: the history change and the cache drop happen together
        self._lock = threading.RLock()

    @property
    def schedule(self) -> TariffSchedule:
        return self.calculator.schedule

    def _invalidate(self):
        self._forecast = None

    def submit_readings(self, previous_reading, current_reading) -> Submission:
        """
        Calculate a bill and try to store it.

        Raises InvalidReadingError / NegativeConsumptionError for bad input.
        Storage failures do not raise; they come back as persisted=False.
        """
        bill = self.calculator.calculate(previous_reading, current_reading)
        with self._lock:
            try:
                self.store.append(bill)
            except HistoryStoreError as e:
                print(f"Failed to save bill {bill.id}: {e}")
                return Submission(bill=bill, persisted=False, error=str(e))
            finally:
                # a failed append may still have written partially
                self._invalidate()
        return Submission(bill=bill, persisted=True)

    def recent_bills(self, limit: int) -> List[BillResult]:
        return self.store.list_recent(limit)

    def delete_bill(self, bill_id: str) -> bool:
        with self._lock:
            removed = self.store.delete_by_id(bill_id)
            if removed:
                self._invalidate()
            return removed

    def clear_history(self) -> None:
        with self._lock:
            try:
                self.store.clear()
            finally:
                self._invalidate()

    def forecast(self) -> Forecast:
        with self._lock:
            if self._forecast is None:
                self._forecast = generate_forecast(self.store.list_all(), self.default_rate)
            return self._forecast

    def dashboard(self) -> DashboardSnapshot:
        with self._lock:
            history = self.store.list_all()
            if self._forecast is None:
                self._forecast = generate_forecast(history, self.default_rate)
            return build_dashboard(history, self._forecast, self.default_rate)

    def tips(self):
        latest = self.store.list_recent(1)
        usage = latest[0].units_consumed if latest else 0
        return personalized_tips(usage)
