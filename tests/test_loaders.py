import json
from pathlib import Path

import pytest

from src.storefront_core.loaders import load_raw_records


def test_flat_array(tmp_path: Path):
    path = tmp_path / "orders.json"
    path.write_text(json.dumps([{"_id": "a"}, {"_id": "b"}, "junk"]), encoding="utf-8")

    assert load_raw_records(path) == [{"_id": "a"}, {"_id": "b"}]


@pytest.mark.parametrize("key", ["orders", "products", "results"])
def test_wrapped_collections(tmp_path: Path, key):
    path = tmp_path / "wrapped.json"
    path.write_text(json.dumps({key: [{"_id": "a"}]}), encoding="utf-8")

    assert load_raw_records(path) == [{"_id": "a"}]


def test_single_object_and_empty_file(tmp_path: Path):
    single = tmp_path / "single.json"
    single.write_text(json.dumps({"_id": "solo"}), encoding="utf-8")
    empty = tmp_path / "empty.json"
    empty.write_text("", encoding="utf-8")

    assert load_raw_records(single) == [{"_id": "solo"}]
    assert load_raw_records(empty) == []


def test_json_lines(tmp_path: Path):
    path = tmp_path / "orders.jsonl"
    path.write_text('{"_id": "a"}\n\n{"_id": "b"}\n', encoding="utf-8")

    assert [r["_id"] for r in load_raw_records(path)] == ["a", "b"]


def test_invalid_content_raises(tmp_path: Path):
    path = tmp_path / "broken.json"
    path.write_text('{"_id": "a"}\nnot json\n', encoding="utf-8")

    with pytest.raises(ValueError):
        load_raw_records(path)


def test_missing_file_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_raw_records(tmp_path / "nope.json")


def test_single_order_with_items_is_one_record(tmp_path: Path):
    order = {"_id": "o1", "items": [{"name": "Lamp", "price": 100, "quantity": 1}]}
    path = tmp_path / "order.json"
    path.write_text(json.dumps(order), encoding="utf-8")

    records = load_raw_records(path)

    assert records == [order]
    assert records[0]["_id"] == "o1"


def test_record_with_id_and_data_key_is_not_unwrapped(tmp_path: Path):
    record = {"id": "p1", "data": [{"k": "v"}]}
    path = tmp_path / "product.json"
    path.write_text(json.dumps(record), encoding="utf-8")

    assert load_raw_records(path) == [record]
