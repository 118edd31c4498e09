from __future__ import annotations
import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from .models import GOAL_ATTRS, OBJECTIVE_ATTRS, TASK_ATTRS, Goal, Objective, Task

_TABLES = ("tasks", "goals", "objectives")


def _empty_db() -> Dict[str, List[Dict[str, Any]]]:
    return {name: [] for name in _TABLES}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _require(data: Dict[str, Any], *keys: str) -> None:
    missing = [k for k in keys if not data.get(k)]
    if missing:
        raise ValueError(f"missing required fields: {', '.join(missing)}")


def _known(data: Dict[str, Any], attrs: Dict[str, str]) -> Dict[str, Any]:
    unknown = [k for k in data if k not in attrs]
    if unknown:
        raise ValueError(f"unknown fields: {', '.join(sorted(unknown))}")
    return dict(data)


class RecordStore:
    """Store over plain camelCase records kept in creation order.

    Subclasses decide where the records live by implementing ``_read``/``_write``.
    """

    def _read(self) -> Dict[str, List[Dict[str, Any]]]:
        raise NotImplementedError

    def _write(self, db: Dict[str, List[Dict[str, Any]]]) -> None:
        raise NotImplementedError

    def list_tasks(self, user_id: str, date_from: Optional[date] = None, date_to: Optional[date] = None) -> List[Task]:
        lo = date_from.isoformat() if date_from else None
        hi = date_to.isoformat() if date_to else None
        out: List[Task] = []
        for rec in self._read()["tasks"]:
            if rec.get("userId") != user_id:
                continue
            day = rec.get("scheduledDate") or ""
            if lo and day < lo:
                continue
            if hi and day > hi:
                continue
            out.append(Task.from_dict(rec))
        return out

    def update_task(self, task_id: str, fields: Dict[str, Any]) -> Task:
        fields = _known(fields, TASK_ATTRS)
        if "id" in fields or "userId" in fields:
            raise ValueError("id and userId are immutable")
        db = self._read()
        for rec in db["tasks"]:
            if rec.get("id") == task_id:
                rec.update(fields)
                self._write(db)
                return Task.from_dict(rec)
        raise KeyError(task_id)

    def delete_task(self, task_id: str) -> bool:
        db = self._read()
        kept = [rec for rec in db["tasks"] if rec.get("id") != task_id]
        if len(kept) == len(db["tasks"]):
            return False
        db["tasks"] = kept
        self._write(db)
        return True

    def list_goals(self, user_id: str) -> List[Goal]:
        return [Goal.from_dict(rec) for rec in self._read()["goals"] if rec.get("userId") == user_id]

    def list_objectives(self, user_id: str) -> List[Objective]:
        return [Objective.from_dict(rec) for rec in self._read()["objectives"] if rec.get("userId") == user_id]

    def create_goal(self, data: Dict[str, Any]) -> Goal:
        _require(data, "userId", "title")
        rec = {"targetYear": date.today().year}
        rec.update(_known(data, GOAL_ATTRS))
        return Goal.from_dict(self._insert("goals", rec))

    def create_objective(self, data: Dict[str, Any]) -> Objective:
        _require(data, "userId", "goalId", "title")
        today = date.today()
        rec = {"targetMonth": today.month, "targetYear": today.year}
        rec.update(_known(data, OBJECTIVE_ATTRS))
        return Objective.from_dict(self._insert("objectives", rec))

    def create_task(self, data: Dict[str, Any]) -> Task:
        _require(data, "userId", "title")
        rec = {"scheduledDate": date.today().isoformat()}
        rec.update(_known(data, TASK_ATTRS))
        return Task.from_dict(self._insert("tasks", rec))

    def _insert(self, table: str, rec: Dict[str, Any]) -> Dict[str, Any]:
        rec.setdefault("id", str(uuid.uuid4()))
        rec.setdefault("createdAt", _now_iso())
        db = self._read()
        db[table].append(rec)
        self._write(db)
        return rec


class MemoryStore(RecordStore):
    def __init__(self):
        self._db = _empty_db()

    def _read(self) -> Dict[str, List[Dict[str, Any]]]:
        return self._db

    def _write(self, db: Dict[str, List[Dict[str, Any]]]) -> None:
        self._db = db
