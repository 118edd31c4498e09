from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, List

from .io import atomic_write_json, read_json_dict
from .memory import RecordStore, _TABLES


class JsonFileStore(RecordStore):
    """Record store persisted to a single JSON file, re-read on every call."""

    def __init__(self, path: str):
        self.path = Path(path)

    def _read(self) -> Dict[str, List[Dict[str, Any]]]:
        raw = read_json_dict(self.path)
        return {name: list(raw.get(name) or []) for name in _TABLES}

    def _write(self, db: Dict[str, List[Dict[str, Any]]]) -> None:
        atomic_write_json(self.path, db)
