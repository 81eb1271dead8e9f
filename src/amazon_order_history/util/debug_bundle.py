from __future__ import annotations

import json
import time
import zipfile
from pathlib import Path
from typing import Optional

from .. import __version__

MANIFEST_NAME = "manifest.json"


def _snapshot_files(debug_dir: Path) -> list[Path]:
    if not debug_dir.is_dir():
        return []
    return sorted(p for p in debug_dir.rglob("*") if p.is_file())


def create_debug_bundle(
    *,
    debug_dir: str,
    log_file: str,
    out_dir: str = "data",
    label: str = "",
    state: Optional[str] = None,
    reason: str = "",
) -> Path:
    """
    Zip the step snapshots and the run log so a failed login/harvest can be inspected offline.

    A `manifest.json` at the top of the archive records which run phase failed (`label`), the login state
    it failed in (if any) and the failure message. Never includes .env, config.yaml or the orders JSON.
    """
    out_root = Path(out_dir)
    out_root.mkdir(parents=True, exist_ok=True)

    stamp = time.strftime("%Y%m%d_%H%M%S")
    slug = (label or "").strip().lower()
    out_path = out_root / (f"debug_bundle_{slug}_{stamp}.zip" if slug else f"debug_bundle_{stamp}.zip")

    dbg = Path(debug_dir)
    log = Path(log_file) if log_file else None
    snapshots = _snapshot_files(dbg)

    manifest = {
        "label": slug or None,
        "state": state,
        "reason": reason,
        "createdAt": time.strftime("%Y-%m-%dT%H:%M:%S%z"),
        "version": __version__,
        "snapshots": [str(p.relative_to(dbg)) for p in snapshots],
    }

    with zipfile.ZipFile(out_path, "w", compression=zipfile.ZIP_DEFLATED) as z:
        z.writestr(MANIFEST_NAME, json.dumps(manifest, indent=2))
        if log is not None and log.is_file():
            z.write(log, arcname=log.name)
        for p in snapshots:
            # Files can vanish between listing and zipping.
            try:
                z.write(p, arcname=str(Path("debug") / p.relative_to(dbg)))
            except FileNotFoundError:
                continue

    return out_path
