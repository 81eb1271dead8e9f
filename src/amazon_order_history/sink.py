from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Callable, Sequence, Union

from .models import PurchaseRecord


logger = logging.getLogger(__name__)


def records_to_json(records: Sequence[PurchaseRecord]) -> str:
    return json.dumps([r.to_json_dict() for r in records], indent=2, ensure_ascii=False)


class JsonResultSink:
    """
    Prints the harvested records as JSON and overwrites `path` with the same document.
    """

    def __init__(self, path: Union[str, Path], *, echo: Callable[[str], None] = print) -> None:
        self.path = Path(path)
        self._echo = echo

    def emit(self, records: Sequence[PurchaseRecord]) -> Path:
        payload = records_to_json(records)
        self._echo(payload)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(payload + "\n", encoding="utf-8")
        logger.info("Wrote %d order(s) to %s", len(records), self.path)
        return self.path
