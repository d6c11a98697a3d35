from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from adapters.json_store import JsonOrderStore
from core.errors import StoreWriteError
from core.models import OrderRecord


def _record(order_id: str, **overrides) -> OrderRecord:
    values = {
        "customer_name": "Jane Doe",
        "order_id": order_id,
        "timestamp": "January 5, 2024 at 3:45 pm",
        "customer_address": "Jane Doe\n12 Market Street",
        "customer_email": "jane.doe@example.com",
        "phone_number": "+1 (555) 012-3456",
    }
    values.update(overrides)
    return OrderRecord(**values)


def test_missing_file_loads_as_empty(tmp_path: Path) -> None:
    store = JsonOrderStore(str(tmp_path / "orders.json"))

    assert store.load() == []


def test_first_append_creates_file_with_new_records(tmp_path: Path) -> None:
    path = tmp_path / "orders.json"
    store = JsonOrderStore(str(path))
    new_records = [_record("1"), _record("2", phone_number=None)]

    store.append_new(new_records)

    assert json.loads(path.read_text(encoding="utf-8")) == [record.to_dict() for record in new_records]


def test_persist_then_load_round_trips_in_order(tmp_path: Path) -> None:
    store = JsonOrderStore(str(tmp_path / "orders.json"))
    records = [_record(str(i), customer_email=None if i % 2 else "a@b.co") for i in range(5)]

    store.persist(records)

    assert store.load() == records


def test_append_keeps_existing_records_first(tmp_path: Path) -> None:
    store = JsonOrderStore(str(tmp_path / "orders.json"))
    store.append_new([_record("1")])
    store.append_new([_record("2"), _record("3")])

    assert [record.order_id for record in store.load()] == ["1", "2", "3"]


def test_file_is_pretty_printed_with_nulls(tmp_path: Path) -> None:
    path = tmp_path / "orders.json"
    JsonOrderStore(str(path)).persist([OrderRecord(order_id="7")])

    text = path.read_text(encoding="utf-8")

    assert text.startswith("[\n    {\n        \"customer_name\": null,")
    assert text.endswith("]\n")


def test_file_with_byte_order_mark_is_loaded(tmp_path: Path) -> None:
    path = tmp_path / "orders.json"
    path.write_bytes(b"\xef\xbb\xbf" + json.dumps([_record("1").to_dict()]).encode("utf-8"))
    store = JsonOrderStore(str(path))

    store.append_new([_record("2")])

    assert [record.order_id for record in store.load()] == ["1", "2"]
    assert list(tmp_path.glob("orders.json.corrupt-*")) == []


def test_empty_file_loads_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "orders.json"
    path.write_text("  \n", encoding="utf-8")

    assert JsonOrderStore(str(path)).load() == []


def test_invalid_json_loads_as_empty_and_is_logged(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "orders.json"
    path.write_text("[{not json", encoding="utf-8")

    with caplog.at_level(logging.ERROR):
        assert JsonOrderStore(str(path)).load() == []

    assert "Error reading or parsing JSON file" in caplog.text


def test_invalid_json_is_overwritten_and_backed_up(tmp_path: Path) -> None:
    path = tmp_path / "orders.json"
    path.write_text("[{not json", encoding="utf-8")
    store = JsonOrderStore(str(path))

    store.append_new([_record("9")])

    assert json.loads(path.read_text(encoding="utf-8")) == [_record("9").to_dict()]
    backups = list(tmp_path.glob("orders.json.corrupt-*"))
    assert len(backups) == 1
    assert backups[0].read_text(encoding="utf-8") == "[{not json"


def test_non_list_json_loads_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "orders.json"
    path.write_text('{"order_id": "1"}', encoding="utf-8")

    assert JsonOrderStore(str(path)).load() == []


def test_unknown_keys_and_non_objects_are_skipped(tmp_path: Path) -> None:
    path = tmp_path / "orders.json"
    path.write_text(json.dumps([{"order_id": "1", "legacy": True}, "junk", 3]), encoding="utf-8")

    assert JsonOrderStore(str(path)).load() == [OrderRecord(order_id="1")]


def test_write_failure_raises_store_write_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    store = JsonOrderStore(str(blocker / "orders.json"))

    with pytest.raises(StoreWriteError):
        store.persist([_record("1")])


def test_no_temp_files_are_left_behind(tmp_path: Path) -> None:
    store = JsonOrderStore(str(tmp_path / "orders.json"))
    store.persist([_record("1")])

    assert [p.name for p in tmp_path.iterdir()] == ["orders.json"]
