# backend/lib/tariff_engine/tariff.py
"""
Tariff schedule configuration.

The default schedule is a four-slab domestic tariff:

    0-100 units      @ 3.50
    101-200 units    @ 4.50
    201-300 units    @ 6.00
    Above 300 units  @ 7.50
    fixed charge 50, tax 10% on (energy + fixed)

Deployments override it with a JSON file (TARIFF_FILE) or environment
variables (TARIFF_SLABS, FIXED_CHARGE, TAX_RATE, CURRENCY, CURRENCY_DECIMALS).
"""
import json
import os
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence, Tuple

from .errors import TariffConfigError
from .models import TariffSchedule, TariffSlab

DEFAULT_SLABS: Sequence[Tuple[float, Optional[float], float]] = (
    (0, 100, 3.50),
    (100, 200, 4.50),
    (200, 300, 6.00),
    (300, None, 7.50),
)
DEFAULT_FIXED_CHARGE = 50
DEFAULT_TAX_RATE = 0.10
DEFAULT_CURRENCY = "INR"
DEFAULT_DECIMAL_PLACES = 2


def to_decimal(value, what: str = "value") -> Decimal:
    """Convert a config value to Decimal via str() so 0.1 stays 0.1."""
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise TariffConfigError(f"{what} must be a number, got {value!r}")
    if not result.is_finite():
        raise TariffConfigError(f"{what} must be finite, got {value!r}")
    return result


def build_slabs(rows: Iterable[Tuple]) -> Tuple[TariffSlab, ...]:
    slabs = []
    for lower, upper, rate in rows:
        slabs.append(TariffSlab(
            lower_bound=to_decimal(lower, "slab lower bound"),
            upper_bound=None if upper is None else to_decimal(upper, "slab upper bound"),
            rate_per_unit=to_decimal(rate, "slab rate"),
        ))
    return tuple(slabs)


def build_schedule(slabs=DEFAULT_SLABS,
                   fixed_charge=DEFAULT_FIXED_CHARGE,
                   tax_rate=DEFAULT_TAX_RATE,
                   currency: str = DEFAULT_CURRENCY,
                   decimal_places: int = DEFAULT_DECIMAL_PLACES) -> TariffSchedule:
    return TariffSchedule(
        slabs=build_slabs(slabs),
        fixed_charge=to_decimal(fixed_charge, "fixed charge"),
        tax_rate=to_decimal(tax_rate, "tax rate"),
        currency=currency,
        decimal_places=int(decimal_places),
    )


def default_schedule() -> TariffSchedule:
    return build_schedule()


def parse_slab_string(text: str):
    """
    Parse an inline slab list such as '0-100:3.5,100-200:4.5,200-:6'.

    An empty upper bound marks the unbounded top slab.
    """
    rows = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            bounds, rate = part.split(":")
            lower, upper = bounds.split("-")
        except ValueError:
            raise TariffConfigError(f"bad slab entry {part!r}, expected 'lower-upper:rate'")
        rows.append((lower, upper.strip() or None, rate))
    return rows


def schedule_from_dict(data: Mapping) -> TariffSchedule:
    """
    Build a schedule from a JSON-style dict:

        {"slabs": [{"lower": 0, "upper": 100, "rate": 3.5}, ...],
         "fixedCharge": 50, "taxRate": 0.1, "currency": "INR", "decimalPlaces": 2}
    """
    try:
        rows = [(s["lower"], s.get("upper"), s["rate"]) for s in data["slabs"]]
    except (KeyError, TypeError):
        raise TariffConfigError("tariff 'slabs' must be a list of {lower, upper, rate}")
    return build_schedule(
        slabs=rows,
        fixed_charge=data.get("fixedCharge", DEFAULT_FIXED_CHARGE),
        tax_rate=data.get("taxRate", DEFAULT_TAX_RATE),
        currency=data.get("currency", DEFAULT_CURRENCY),
        decimal_places=data.get("decimalPlaces", DEFAULT_DECIMAL_PLACES),
    )


def schedule_to_dict(schedule: TariffSchedule) -> dict:
    return {
        "slabs": [
            {
                "range": s.label,
                "lower": float(s.lower_bound),
                "upper": None if s.upper_bound is None else float(s.upper_bound),
                "rate": float(s.rate_per_unit),
            }
            for s in schedule.slabs
        ],
        "fixedCharge": float(schedule.fixed_charge),
        "taxRate": float(schedule.tax_rate),
        "currency": schedule.currency,
        "decimalPlaces": schedule.decimal_places,
    }


def load_schedule_from_env(environ: Mapping = None) -> TariffSchedule:
    """
    Load the active tariff.

    Order of precedence:
    1. TARIFF_FILE - JSON file in the schedule_from_dict format
    2. TARIFF_SLABS / FIXED_CHARGE / TAX_RATE / CURRENCY / CURRENCY_DECIMALS
    3. the built-in default schedule
    """
    env = os.environ if environ is None else environ

    tariff_file = env.get("TARIFF_FILE")
    if tariff_file:
        try:
            data = json.loads(Path(tariff_file).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise TariffConfigError(f"could not read tariff file {tariff_file}: {e}")
        return schedule_from_dict(data)

    slabs = DEFAULT_SLABS
    if env.get("TARIFF_SLABS"):
        slabs = parse_slab_string(env["TARIFF_SLABS"])

    try:
        decimal_places = int(env.get("CURRENCY_DECIMALS", DEFAULT_DECIMAL_PLACES))
    except ValueError:
        raise TariffConfigError("CURRENCY_DECIMALS must be an integer")

    return build_schedule(
        slabs=slabs,
        fixed_charge=env.get("FIXED_CHARGE", DEFAULT_FIXED_CHARGE),
        tax_rate=env.get("TAX_RATE", DEFAULT_TAX_RATE),
        currency=env.get("CURRENCY", DEFAULT_CURRENCY),
        decimal_places=decimal_places,
    )
