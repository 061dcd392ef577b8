"""
File-backed save store. Implements the same interface as
src.database.saves (in-memory stub), keeping one JSON document per slot.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from src.integrations.contracts.interfaces import SaveStore

logger = logging.getLogger(__name__)


class JsonFileSaveStore(SaveStore):
    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, slot: str) -> Path:
        safe_slot = slot.replace("/", "_")
        return self.root / f"{safe_slot}.json"

    def load(self, slot: str) -> Optional[Dict[str, Any]]:
        path = self._path(slot)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to read save slot %s from %s: %s", slot, path, e)
            return None
        return data if isinstance(data, dict) else None

    def save(self, slot: str, data: Dict[str, Any]) -> None:
        path = self._path(slot)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp_path.replace(path)

    def delete(self, slot: str) -> None:
        self._path(slot).unlink(missing_ok=True)
