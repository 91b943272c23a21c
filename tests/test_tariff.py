# tests/test_tariff.py
import dataclasses
import json
from decimal import Decimal

import pytest

from backend.lib.tariff_engine.calculator import calculate_bill
from backend.lib.tariff_engine.errors import TariffConfigError
from backend.lib.tariff_engine.tariff import (
    build_schedule, load_schedule_from_env, parse_slab_string, schedule_to_dict,
)


def test_default_schedule(schedule):
    assert [s.label for s in schedule.slabs] == [
        "0-100 units", "101-200 units", "201-300 units", "Above 300 units",
    ]
    assert [s.rate_per_unit for s in schedule.slabs] == [
        Decimal("3.5"), Decimal("4.5"), Decimal("6"), Decimal("7.5"),
    ]
    assert schedule.fixed_charge == 50
    assert schedule.tax_rate == Decimal("0.1")
    assert schedule.currency == "INR"
    assert schedule.decimal_places == 2


def test_schedule_is_immutable(schedule):
    with pytest.raises(dataclasses.FrozenInstanceError):
        schedule.tax_rate = Decimal("0.18")
    assert isinstance(schedule.slabs, tuple)


@pytest.mark.parametrize("kwargs", [
    {"slabs": []},
    {"slabs": [(0, 100, 1), (150, None, 2)]},        # gap
    {"slabs": [(0, 100, 1), (90, None, 2)]},         # overlap
    {"slabs": [(0, None, 1), (100, None, 2)]},       # unbounded not last
    {"slabs": [(0, 100, 1), (100, 200, 2)]},         # no unbounded slab
    {"slabs": [(10, 100, 1), (100, None, 2)]},       # does not start at 0
    {"slabs": [(0, 100, -1), (100, None, 2)]},       # negative rate
    {"slabs": [(0, 0, 1), (0, None, 2)]},            # empty slab
    {"tax_rate": 1},
    {"tax_rate": -0.1},
    {"fixed_charge": -5},
    {"fixed_charge": "lots"},
])
def test_invalid_schedules_rejected(kwargs):
    with pytest.raises(TariffConfigError):
        build_schedule(**kwargs)


def test_parse_slab_string():
    assert parse_slab_string("0-50:2, 50-:4") == [("0", "50", "2"), ("50", None, "4")]
    with pytest.raises(TariffConfigError):
        parse_slab_string("0-50=2")


def test_load_from_env_variables():
    schedule = load_schedule_from_env({
        "TARIFF_SLABS": "0-50:2,50-:4",
        "FIXED_CHARGE": "0",
        "TAX_RATE": "0.18",
        "CURRENCY": "EUR",
        "CURRENCY_DECIMALS": "0",
    })
    assert len(schedule.slabs) == 2
    assert schedule.currency == "EUR"
    bill = calculate_bill(0, 60, schedule)
    # (50 * 2 + 10 * 4) * 1.18 = 165.2 -> whole units
    assert bill.total_bill == 165


def test_load_from_env_defaults(schedule):
    assert load_schedule_from_env({}) == schedule


def test_bad_decimals_setting():
    with pytest.raises(TariffConfigError):
        load_schedule_from_env({"CURRENCY_DECIMALS": "two"})


def test_load_from_tariff_file(tmp_path):
    path = tmp_path / "tariff.json"
    path.write_text(json.dumps({
        "slabs": [
            {"lower": 0, "upper": 100, "rate": 3},
            {"lower": 100, "upper": None, "rate": 5},
        ],
        "fixedCharge": 20,
        "taxRate": 0.18,
    }))
    schedule = load_schedule_from_env({"TARIFF_FILE": str(path), "TAX_RATE": "0.5"})
    # the file wins over individual variables
    assert schedule.tax_rate == Decimal("0.18")
    assert schedule.slabs[1].label == "Above 100 units"


def test_unreadable_tariff_file(tmp_path):
    with pytest.raises(TariffConfigError):
        load_schedule_from_env({"TARIFF_FILE": str(tmp_path / "missing.json")})
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"slabs": "nope"}))
    with pytest.raises(TariffConfigError):
        load_schedule_from_env({"TARIFF_FILE": str(bad)})


def test_schedule_to_dict(schedule):
    data = schedule_to_dict(schedule)
    assert data["slabs"][0] == {"range": "0-100 units", "lower": 0.0, "upper": 100.0, "rate": 3.5}
    assert data["slabs"][-1]["upper"] is None
    assert data["fixedCharge"] == 50.0
    assert data["taxRate"] == 0.1
    json.dumps(data)
