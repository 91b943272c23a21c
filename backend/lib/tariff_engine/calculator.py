# backend/lib/tariff_engine/calculator.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .errors import InvalidReadingError, NegativeConsumptionError
from .models import BillResult, SlabCharge, TariffSchedule


def round_money(value: Decimal, decimal_places: int = 2) -> Decimal:
    """Round half-up to the currency's minor unit (decimal_places=0 -> whole units)."""
    quantum = Decimal(1).scaleb(-decimal_places)
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


def parse_reading(value, name: str) -> Decimal:
    """
    Turn a meter reading (number or numeric string) into a Decimal.

    Raises InvalidReadingError for missing, non-numeric, non-finite or
    negative values.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidReadingError(f"{name} is required")
    # bool is an int subclass; True is not a meter reading
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise InvalidReadingError(f"{name} must be a number")
    try:
        reading = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidReadingError(f"{name} must be a number")
    if not reading.is_finite():
        raise InvalidReadingError(f"{name} must be a finite number")
    if reading < 0:
        raise InvalidReadingError(f"{name} cannot be negative")
    return reading


def split_into_slabs(units: Decimal, schedule: TariffSchedule):
    """
    Walk the slabs in order, filling each up to its capacity.
    Slabs that receive no units are left out.
    """
    breakdown = []
    remaining = units
    for slab in schedule.slabs:
        if remaining <= 0:
            break
        capacity = slab.capacity
        in_slab = remaining if capacity is None else min(remaining, capacity)
        breakdown.append(SlabCharge(
            range=slab.label,
            rate=slab.rate_per_unit,
            units_in_slab=in_slab,
            amount=in_slab * slab.rate_per_unit,
        ))
        remaining -= in_slab
    return tuple(breakdown)


def calculate_bill(previous_reading, current_reading, schedule: TariffSchedule,
                   timestamp: datetime = None, bill_id: str = None) -> BillResult:
    previous = parse_reading(previous_reading, "previousReading")
    current = parse_reading(current_reading, "currentReading")

    units = current - previous
    if units < 0:
        raise NegativeConsumptionError("Current reading cannot be less than previous reading")

    breakdown = split_into_slabs(units, schedule)
    energy = sum((row.amount for row in breakdown), Decimal(0))
    fixed = schedule.fixed_charge
    # tax is levied on the pre-tax subtotal, energy + fixed
    taxes = (energy + fixed) * schedule.tax_rate
    total = round_money(energy + fixed + taxes, schedule.decimal_places)

    return BillResult(
        id=bill_id or uuid.uuid4().hex,
        previous_reading=previous,
        current_reading=current,
        units_consumed=units,
        per_slab_breakdown=breakdown,
        energy_charges=energy,
        fixed_charges=fixed,
        taxes=taxes,
        total_bill=total,
        timestamp=timestamp or datetime.now(timezone.utc),
    )


class BillCalculator:
    def __init__(self, schedule: TariffSchedule):
        """
        schedule: the active tariff; it is never mutated after start-up
        """
        self.schedule = schedule

    def calculate(self, previous_reading, current_reading) -> BillResult:
        return calculate_bill(previous_reading, current_reading, self.schedule)

    def energy_charges(self, units) -> Decimal:
        """Energy component only, for a raw unit count."""
        units = parse_reading(units, "units")
        return sum((row.amount for row in split_into_slabs(units, self.schedule)), Decimal(0))
