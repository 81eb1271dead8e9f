from __future__ import annotations

import json
import zipfile
from pathlib import Path

from amazon_order_history.util.debug_bundle import create_debug_bundle


def test_create_debug_bundle_includes_snapshots_log_and_manifest(tmp_path: Path) -> None:
    debug_dir = tmp_path / "debug"
    debug_dir.mkdir()
    (debug_dir / "after_password_submit.png").write_bytes(b"png")
    (debug_dir / "order_page_check.html").write_text("<html/>", encoding="utf-8")

    log_file = tmp_path / "scraper.log"
    log_file.write_text("hello", encoding="utf-8")

    out = create_debug_bundle(
        debug_dir=str(debug_dir),
        log_file=str(log_file),
        out_dir=str(tmp_path),
        label="Login",
        state="second_factor_entry",
        reason="Verification code not accepted after 3 attempt(s)",
    )
    assert out.exists()
    assert out.suffix == ".zip"
    assert out.name.startswith("debug_bundle_login_")

    with zipfile.ZipFile(out, "r") as z:
        names = set(z.namelist())
        manifest = json.loads(z.read("manifest.json"))

    assert names == {
        "manifest.json",
        "scraper.log",
        "debug/after_password_submit.png",
        "debug/order_page_check.html",
    }
    assert manifest["label"] == "login"
    assert manifest["state"] == "second_factor_entry"
    assert manifest["reason"].startswith("Verification code")
    assert manifest["snapshots"] == ["after_password_submit.png", "order_page_check.html"]


def test_create_debug_bundle_tolerates_missing_inputs(tmp_path: Path) -> None:
    out = create_debug_bundle(
        debug_dir=str(tmp_path / "nope"),
        log_file=str(tmp_path / "missing.log"),
        out_dir=str(tmp_path / "out"),
    )
    assert out.name.startswith("debug_bundle_2")
    with zipfile.ZipFile(out, "r") as z:
        assert z.namelist() == ["manifest.json"]
        manifest = json.loads(z.read("manifest.json"))
    assert manifest["state"] is None
    assert manifest["snapshots"] == []
