# backend/lib/tariff_engine/models.py
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from .errors import TariffConfigError

TREND_INCREASING = "increasing"
TREND_DECREASING = "decreasing"
TREND_STABLE = "stable"


@dataclass(frozen=True)
class TariffSlab:
    lower_bound: Decimal
    upper_bound: Optional[Decimal]  # None = unbounded top slab
    rate_per_unit: Decimal

    @property
    def capacity(self) -> Optional[Decimal]:
        if self.upper_bound is None:
            return None
        return self.upper_bound - self.lower_bound

    @property
    def label(self) -> str:
        """
        Human readable range, e.g. '0-100 units', '101-200 units', 'Above 300 units'.
        """
        lower = _fmt(self.lower_bound)
        if self.upper_bound is None:
            return f"Above {lower} units"
        start = lower if self.lower_bound == 0 else _fmt(self.lower_bound + 1)
        return f"{start}-{_fmt(self.upper_bound)} units"


@dataclass(frozen=True)
class TariffSchedule:
    slabs: Tuple[TariffSlab, ...]
    fixed_charge: Decimal
    tax_rate: Decimal
    currency: str = "INR"
    decimal_places: int = 2

    def __post_init__(self):
        # Accept any iterable of slabs but always store a tuple
        object.__setattr__(self, "slabs", tuple(self.slabs))
        self.validate()

    def validate(self):
        if not self.slabs:
            raise TariffConfigError("tariff needs at least one slab")
        if self.fixed_charge < 0:
            raise TariffConfigError("fixed charge must be >= 0")
        if not (0 <= self.tax_rate < 1):
            raise TariffConfigError("tax rate must be in [0, 1)")
        if self.decimal_places < 0:
            raise TariffConfigError("decimal places must be >= 0")
        if self.slabs[0].lower_bound != 0:
            raise TariffConfigError("first slab must start at 0")

        for i, slab in enumerate(self.slabs):
            if slab.rate_per_unit < 0:
                raise TariffConfigError(f"slab {slab.label} has a negative rate")
            is_last = i == len(self.slabs) - 1
            if slab.upper_bound is None:
                if not is_last:
                    raise TariffConfigError("only the last slab may be unbounded")
                continue
            if is_last:
                raise TariffConfigError("last slab must be unbounded")
            if slab.upper_bound <= slab.lower_bound:
                raise TariffConfigError(
                    f"slab upper bound {slab.upper_bound} must exceed lower bound {slab.lower_bound}"
                )
            if self.slabs[i + 1].lower_bound != slab.upper_bound:
                raise TariffConfigError(
                    f"slabs must be contiguous: gap or overlap at {slab.upper_bound}"
                )


@dataclass(frozen=True)
class SlabCharge:
    range: str
    rate: Decimal
    units_in_slab: Decimal
    amount: Decimal


@dataclass(frozen=True)
class BillResult:
    id: str
    previous_reading: Decimal
    current_reading: Decimal
    units_consumed: Decimal
    per_slab_breakdown: Tuple[SlabCharge, ...]
    energy_charges: Decimal
    fixed_charges: Decimal
    taxes: Decimal
    total_bill: Decimal
    timestamp: datetime


@dataclass
class Forecast:
    next_period_usage: int
    next_period_cost: int
    efficiency_score: int
    trend: str
    confidence: int
    recommendations: List[str]
    generated_at: datetime


@dataclass
class EnergyTip:
    id: str
    category: str
    title: str
    description: str
    savings: str
    difficulty: str
    priority: str


@dataclass
class DashboardSnapshot:
    current_usage: Decimal
    current_bill: Decimal
    ai_prediction: int
    savings_potential: int
    monthly_data: List[dict] = field(default_factory=list)
    usage_breakdown: List[dict] = field(default_factory=list)
    last_updated: Optional[datetime] = None


def _fmt(value: Decimal) -> str:
    # 100 -> '100', 100.5 -> '100.5'
    return format(value.normalize(), "f")
