# tests/test_run_local.py
from backend.run_local import main


def test_prints_bill(capsys):
    assert main("1000", "1250") == 0
    out = capsys.readouterr().out
    assert "Units consumed: 250 kWh" in out
    assert "201-300 units" in out
    assert "Total bill: 1265.00 INR" in out


def test_reports_bad_readings(capsys):
    assert main("100", "90") == 1
    assert "cannot be less than" in capsys.readouterr().out
