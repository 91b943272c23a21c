# backend/lib/tariff_engine/analytics.py
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Sequence

from .models import (
    BillResult, DashboardSnapshot, Forecast,
    TREND_DECREASING, TREND_INCREASING, TREND_STABLE,
)
from .recommendations import STARTER_RECOMMENDATIONS, generate_recommendations

DEFAULT_RATE_PER_UNIT = Decimal("5.5")
GROWTH_FACTOR = Decimal("1.05")
TREND_THRESHOLD_PCT = Decimal(5)
TREND_WINDOW = 3
HIGH_CONFIDENCE = 85
LOW_CONFIDENCE = 60
MONTHS_SHOWN = 6

# share of a period's usage attributed to each appliance group
APPLIANCE_SHARES = (
    ("Air Conditioning", Decimal("0.40")),
    ("Lighting", Decimal("0.20")),
    ("Water Heating", Decimal("0.15")),
    ("Refrigerator", Decimal("0.15")),
    ("Others", Decimal("0.10")),
)


def round_half_up(value) -> int:
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def percent_change(previous: Decimal, latest: Decimal) -> Decimal:
    """
    (latest - previous) / previous * 100.

    With previous == 0 any growth counts as +100%, no change as 0%.
    """
    if previous == 0:
        return Decimal(100) if latest > 0 else Decimal(0)
    return (latest - previous) / previous * 100


def blended_rate(bill: BillResult, default_rate=DEFAULT_RATE_PER_UNIT) -> Decimal:
    """Effective all-in cost per unit of a bill; default_rate when nothing was consumed."""
    if bill.units_consumed > 0:
        return bill.total_bill / bill.units_consumed
    return Decimal(str(default_rate))


class UsageAnalyzer:
    def __init__(self, history: Sequence[BillResult]):
        # history is chronological: oldest first, latest last
        self.history = list(history)

    @property
    def latest(self):
        return self.history[-1] if self.history else None

    def recent_window(self, n: int = TREND_WINDOW) -> List[BillResult]:
        return self.history[-n:]

    def average_usage(self) -> Decimal:
        """Long-run mean of units consumed across the whole history."""
        if not self.history:
            return Decimal(0)
        total = sum((b.units_consumed for b in self.history), Decimal(0))
        return total / len(self.history)

    def classify_trend(self) -> str:
        """
        Compare the two most recent periods.
        > +5% is increasing, < -5% is decreasing; exactly +/-5% is stable.
        """
        window = self.recent_window()
        if len(window) < 2:
            return TREND_STABLE
        change = percent_change(window[-2].units_consumed, window[-1].units_consumed)
        if change > TREND_THRESHOLD_PCT:
            return TREND_INCREASING
        if change < -TREND_THRESHOLD_PCT:
            return TREND_DECREASING
        return TREND_STABLE

    def efficiency_score(self) -> int:
        """Linear decay: 0 kWh average -> 100, 1000+ kWh -> 0. Heuristic only."""
        raw = Decimal(100) - self.average_usage() / 10
        return round_half_up(min(Decimal(100), max(Decimal(0), raw)))

    def confidence(self) -> int:
        return HIGH_CONFIDENCE if len(self.history) > 2 else LOW_CONFIDENCE

    def monthly_usage(self) -> Dict[str, Dict[str, Decimal]]:
        """
        Usage and cost totals keyed by 'YYYY-MM' of the bill timestamp.
        """
        monthly = defaultdict(lambda: {"usage": Decimal(0), "cost": Decimal(0)})
        for bill in self.history:
            month = bill.timestamp.strftime("%Y-%m")
            monthly[month]["usage"] += bill.units_consumed
            monthly[month]["cost"] += bill.total_bill
        return dict(monthly)


def empty_forecast(now: datetime = None) -> Forecast:
    return Forecast(
        next_period_usage=0,
        next_period_cost=0,
        efficiency_score=0,
        trend=TREND_STABLE,
        confidence=0,
        recommendations=list(STARTER_RECOMMENDATIONS),
        generated_at=now or datetime.now(timezone.utc),
    )


def generate_forecast(history: Sequence[BillResult],
                      default_rate=DEFAULT_RATE_PER_UNIT,
                      now: datetime = None) -> Forecast:
    """
    Next-period estimate from bill history (chronological order).

    Usage is the long-run average grown by a flat 5%; cost prices that usage
    at the latest bill's blended rate. Never raises; an empty history gives
    the zero placeholder.
    """
    analyzer = UsageAnalyzer(history)
    if not analyzer.history:
        return empty_forecast(now)

    average = analyzer.average_usage()
    next_usage = round_half_up(average * GROWTH_FACTOR)
    next_cost = round_half_up(next_usage * blended_rate(analyzer.latest, default_rate))
    efficiency = analyzer.efficiency_score()

    return Forecast(
        next_period_usage=next_usage,
        next_period_cost=next_cost,
        efficiency_score=efficiency,
        trend=analyzer.classify_trend(),
        confidence=analyzer.confidence(),
        recommendations=generate_recommendations(average, efficiency),
        generated_at=now or datetime.now(timezone.utc),
    )


def build_dashboard(history: Sequence[BillResult], forecast: Forecast,
                    default_rate=DEFAULT_RATE_PER_UNIT) -> DashboardSnapshot:
    analyzer = UsageAnalyzer(history)
    latest = analyzer.latest
    if latest is None:
        return DashboardSnapshot(
            current_usage=Decimal(0),
            current_bill=Decimal(0),
            ai_prediction=0,
            savings_potential=0,
            usage_breakdown=[{"category": name, "usage": 0} for name, _ in APPLIANCE_SHARES],
            last_updated=forecast.generated_at,
        )

    current = latest.units_consumed
    savings = (current - forecast.next_period_usage) * blended_rate(latest, default_rate)

    months = sorted(analyzer.monthly_usage().items())[-MONTHS_SHOWN:]
    return DashboardSnapshot(
        current_usage=current,
        current_bill=latest.total_bill,
        ai_prediction=forecast.next_period_usage,
        savings_potential=max(0, round_half_up(savings)),
        monthly_data=[
            {"month": month, "usage": totals["usage"], "cost": totals["cost"]}
            for month, totals in months
        ],
        usage_breakdown=[
            {"category": name, "usage": round_half_up(current * share)}
            for name, share in APPLIANCE_SHARES
        ],
        last_updated=forecast.generated_at,
    )
