# backend/run_local.py
import sys

from backend.lib.tariff_engine.calculator import calculate_bill
from backend.lib.tariff_engine.errors import InvalidReadingError
from backend.lib.tariff_engine.tariff import load_schedule_from_env


def main(previous, current):
    schedule = load_schedule_from_env()
    try:
        bill = calculate_bill(previous, current, schedule)
    except InvalidReadingError as e:
        print(f"Error: {e}")
        return 1
    print(f"Units consumed: {bill.units_consumed} kWh")
    for row in bill.per_slab_breakdown:
        print(f" - {row.range} @ {row.rate}/unit : {row.units_in_slab} units = {row.amount}")
    print(f"Energy charges: {bill.energy_charges}")
    print(f"Fixed charges: {bill.fixed_charges}")
    print(f"Taxes: {bill.taxes}")
    print(f"Total bill: {bill.total_bill} {schedule.currency}")
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("usage: python -m backend.run_local PREVIOUS_READING CURRENT_READING")
        sys.exit(2)
    sys.exit(main(sys.argv[1], sys.argv[2]))
