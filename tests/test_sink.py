from __future__ import annotations

import json
from pathlib import Path

import pytest

from amazon_order_history.models import PurchaseItem, PurchaseRecord
from amazon_order_history.sink import JsonResultSink


def _record() -> PurchaseRecord:
    return PurchaseRecord(
        order_date="12 March 2025",
        total="₹1,299.00",
        items=(
            PurchaseItem(product_name="Kindle Paperwhite", link="https://www.amazon.in/dp/B0CFPJYX7P"),
            PurchaseItem(product_name="Cover", link="https://www.amazon.in/dp/B0C1"),
        ),
    )


def test_emit_prints_and_overwrites_file_with_camel_case_json(tmp_path: Path) -> None:
    out = tmp_path / "nested" / "orders.json"
    out.parent.mkdir()
    out.write_text("stale", encoding="utf-8")
    printed: list[str] = []

    JsonResultSink(out, echo=printed.append).emit([_record()])

    data = json.loads(out.read_text(encoding="utf-8"))
    assert data == [
        {
            "orderDate": "12 March 2025",
            "total": "₹1,299.00",
            "items": [
                {"productName": "Kindle Paperwhite", "link": "https://www.amazon.in/dp/B0CFPJYX7P"},
                {"productName": "Cover", "link": "https://www.amazon.in/dp/B0C1"},
            ],
        }
    ]
    assert "₹1,299.00" in out.read_text(encoding="utf-8")
    assert json.loads(printed[0]) == data


def test_empty_result_is_written_as_empty_list(tmp_path: Path) -> None:
    out = tmp_path / "orders.json"
    JsonResultSink(out, echo=lambda _s: None).emit([])
    assert json.loads(out.read_text(encoding="utf-8")) == []


def test_record_requires_at_least_one_item() -> None:
    with pytest.raises(Exception):
        PurchaseRecord(order_date="N/A", total="N/A", items=())
