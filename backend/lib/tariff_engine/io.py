# backend/lib/tariff_engine/io.py
"""
Conversions between engine objects and the camelCase dicts used in JSON
responses and storage records.
"""
from dataclasses import asdict
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Mapping

from .models import BillResult, DashboardSnapshot, EnergyTip, Forecast, SlabCharge

BILL_FIELDS = (
    "id", "previousReading", "currentReading", "unitsConsumed",
    "energyCharges", "fixedCharges", "taxes", "totalBill", "timestamp",
)


def number(value):
    """Decimal -> int when integral, else float, for JSON output."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


def parse_timestamp(text: str) -> datetime:
    # Convert timestamp with Z to +00:00 for fromisoformat
    return datetime.fromisoformat(str(text).replace("Z", "+00:00"))


def bill_to_dict(bill: BillResult) -> dict:
    return {
        "id": bill.id,
        "previousReading": number(bill.previous_reading),
        "currentReading": number(bill.current_reading),
        "unitsConsumed": number(bill.units_consumed),
        "energyCharges": number(bill.energy_charges),
        "fixedCharges": number(bill.fixed_charges),
        "taxes": number(bill.taxes),
        "totalBill": number(bill.total_bill),
        "perSlabBreakdown": [
            {
                "range": row.range,
                "rate": number(row.rate),
                "unitsInSlab": number(row.units_in_slab),
                "amount": number(row.amount),
            }
            for row in bill.per_slab_breakdown
        ],
        "timestamp": bill.timestamp.isoformat(),
    }


def bill_to_record(bill: BillResult) -> dict:
    """
    Storage form: same keys as bill_to_dict but numbers kept as exact strings
    so a reload gives back identical Decimals.
    """
    return {
        "id": bill.id,
        "previousReading": str(bill.previous_reading),
        "currentReading": str(bill.current_reading),
        "unitsConsumed": str(bill.units_consumed),
        "energyCharges": str(bill.energy_charges),
        "fixedCharges": str(bill.fixed_charges),
        "taxes": str(bill.taxes),
        "totalBill": str(bill.total_bill),
        "perSlabBreakdown": [
            {
                "range": row.range,
                "rate": str(row.rate),
                "unitsInSlab": str(row.units_in_slab),
                "amount": str(row.amount),
            }
            for row in bill.per_slab_breakdown
        ],
        "timestamp": bill.timestamp.isoformat(),
    }


def bill_from_record(obj: Mapping) -> BillResult:
    """
    Rebuild a BillResult from bill_to_record / bill_to_dict output.
    Numbers may be str, int, float or Decimal (DynamoDB).
    Missing fields and bad numbers raise ValueError.
    """
    if not isinstance(obj, Mapping):
        raise ValueError(f"Bill record must be an object, got {obj!r}")
    for key in BILL_FIELDS:
        if key not in obj:
            raise ValueError(f"Missing field {key!r} in bill record: {obj}")

    def dec(value):
        try:
            return Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Bad number {value!r} in bill record {obj.get('id')}")

    return BillResult(
        id=str(obj["id"]),
        previous_reading=dec(obj["previousReading"]),
        current_reading=dec(obj["currentReading"]),
        units_consumed=dec(obj["unitsConsumed"]),
        per_slab_breakdown=tuple(
            SlabCharge(
                range=row["range"],
                rate=dec(row["rate"]),
                units_in_slab=dec(row["unitsInSlab"]),
                amount=dec(row["amount"]),
            )
            for row in obj.get("perSlabBreakdown", [])
        ),
        energy_charges=dec(obj["energyCharges"]),
        fixed_charges=dec(obj["fixedCharges"]),
        taxes=dec(obj["taxes"]),
        total_bill=dec(obj["totalBill"]),
        timestamp=parse_timestamp(obj["timestamp"]),
    )


def forecast_to_dict(forecast: Forecast) -> dict:
    return {
        "nextPeriodUsage": forecast.next_period_usage,
        "nextPeriodCost": forecast.next_period_cost,
        "efficiencyScore": forecast.efficiency_score,
        "trend": forecast.trend,
        "confidence": forecast.confidence,
        "recommendations": list(forecast.recommendations),
        "generatedAt": forecast.generated_at.isoformat(),
    }


def dashboard_to_dict(snapshot: DashboardSnapshot) -> dict:
    return {
        "currentUsage": number(snapshot.current_usage),
        "currentBill": number(snapshot.current_bill),
        "aiPrediction": snapshot.ai_prediction,
        "savingsPotential": snapshot.savings_potential,
        "monthlyData": [
            {"month": m["month"], "usage": number(m["usage"]), "cost": number(m["cost"])}
            for m in snapshot.monthly_data
        ],
        "usageBreakdown": list(snapshot.usage_breakdown),
        "lastUpdated": snapshot.last_updated.isoformat() if snapshot.last_updated else None,
    }


def tip_to_dict(tip: EnergyTip) -> dict:
    return asdict(tip)
