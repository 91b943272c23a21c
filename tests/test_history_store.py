# tests/test_history_store.py
import json

import pytest

from backend.lib.history_store import HistoryStoreError, InMemoryBillStore, JsonlBillStore


@pytest.fixture(params=["memory", "jsonl"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryBillStore()
    return JsonlBillStore(tmp_path / "data" / "bills.jsonl")


def test_empty_store(store):
    assert store.list_all() == []
    assert store.list_recent(5) == []
    assert store.get("nope") is None


def test_append_and_query_order(store, make_bill):
    bills = [make_bill(u) for u in (100, 150, 200)]
    for b in bills:
        store.append(b)
    assert store.list_all() == bills
    assert store.list_recent(2) == [bills[2], bills[1]]
    assert store.list_recent(10) == list(reversed(bills))
    assert store.list_recent(0) == []
    assert store.get(bills[1].id) == bills[1]


def test_delete_and_clear(store, make_bill):
    bills = [make_bill(u) for u in (100, 150, 200)]
    for b in bills:
        store.append(b)
    assert store.delete_by_id(bills[1].id) is True
    assert store.delete_by_id(bills[1].id) is False
    assert store.list_all() == [bills[0], bills[2]]
    store.clear()
    assert store.list_all() == []


def test_jsonl_survives_restart(tmp_path, make_bill):
    path = tmp_path / "bills.jsonl"
    bill = make_bill(250)
    JsonlBillStore(path).append(bill)
    assert JsonlBillStore(path).list_all() == [bill]
    assert len(path.read_text().splitlines()) == 1


@pytest.mark.parametrize("line", ['{"id": "x"}', "5", "[1, 2]", "not json"])
def test_jsonl_corrupt_line(tmp_path, line):
    path = tmp_path / "bills.jsonl"
    path.write_text(line + "\n")
    with pytest.raises(HistoryStoreError):
        JsonlBillStore(path).list_all()


def test_jsonl_unwritable_path(tmp_path, make_bill):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    store = JsonlBillStore(blocker / "bills.jsonl")
    with pytest.raises(HistoryStoreError):
        store.append(make_bill(10))


def test_jsonl_non_numeric_value(tmp_path, make_bill):
    path = tmp_path / "bills.jsonl"
    store = JsonlBillStore(path)
    store.append(make_bill(100))
    record = json.loads(path.read_text())
    record["unitsConsumed"] = "abc"
    path.write_text(json.dumps(record) + "\n")
    with pytest.raises(HistoryStoreError):
        store.list_all()


def test_jsonl_failed_append_keeps_history(tmp_path, make_bill):
    path = tmp_path / "bills.jsonl"
    store = JsonlBillStore(path)
    first = make_bill(100)
    store.append(first)
    # a directory where the temporary file should go makes the write fail
    tmp = tmp_path / "bills.jsonl.tmp"
    tmp.mkdir()
    with pytest.raises(HistoryStoreError):
        store.append(make_bill(200))
    tmp.rmdir()
    assert store.list_all() == [first]
    second = make_bill(300)
    store.append(second)
    assert store.list_all() == [first, second]
