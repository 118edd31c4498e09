from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Dict, List

from tasktalk.store.io import read_jsonl


class Ledger:
    """Append-only JSONL command history."""

    def __init__(self, path: str):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, rec: Dict[str, Any]) -> None:
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(rec, ensure_ascii=False, default=str) + "\n")

    def tail(self, user_id: str, limit: int = 20, kind: str = "command") -> List[Dict[str, Any]]:
        """Most recent records for ``user_id``, newest first."""
        rows = [r for r in read_jsonl(self.path) if r.get("user_id") == user_id and r.get("kind") == kind]
        return list(reversed(rows))[:limit]
