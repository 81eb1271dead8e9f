#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path


def _ensure_src_on_path() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src = repo_root / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))


def _read_text(path: str) -> str:
    p = Path(path)
    if not p.exists():
        raise SystemExit(f"File not found: {p}")
    return p.read_text(encoding="utf-8", errors="replace")


def main(argv: list[str] | None = None) -> int:
    _ensure_src_on_path()

    from amazon_order_history.harvest.extraction import extract_purchase_records
    from amazon_order_history.sink import records_to_json

    p = argparse.ArgumentParser(
        prog="extract_orders_from_snapshot",
        description=(
            "Run order extraction over Playwright-saved HTML snapshots (from data/debug/*.html).\n"
            "This is intended for debugging extraction regressions offline (no browser, no login)."
        ),
    )
    p.add_argument("files", nargs="+", help="One or more debug .html files captured from an order-history page")
    p.add_argument("--base-url", default="https://www.amazon.in", help="Origin used to absolutize product links")
    p.add_argument("--out", default="", help="Optional output JSON path (otherwise prints to stdout)")
    args = p.parse_args(argv)

    records = []
    for f in args.files:
        records.extend(extract_purchase_records(_read_text(f), base_url=args.base_url))

    out_json = records_to_json(records)
    if args.out:
        Path(args.out).write_text(out_json, encoding="utf-8")
    else:
        print(out_json)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
