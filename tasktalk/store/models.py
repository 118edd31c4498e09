from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Canonical (wire) field name -> Task attribute.
TASK_ATTRS = {
    "id": "id",
    "userId": "user_id",
    "title": "title",
    "description": "description",
    "scheduledDate": "scheduled_date",
    "scheduledTime": "scheduled_time",
    "estimatedDuration": "estimated_duration",
    "priority": "priority",
    "status": "status",
    "location": "location",
    "objectiveId": "objective_id",
    "goalId": "goal_id",
    "tags": "tags",
    "createdAt": "created_at",
}

GOAL_ATTRS = {
    "id": "id",
    "userId": "user_id",
    "title": "title",
    "description": "description",
    "category": "category",
    "targetYear": "target_year",
    "priority": "priority",
    "status": "status",
    "createdAt": "created_at",
}

OBJECTIVE_ATTRS = {
    "id": "id",
    "userId": "user_id",
    "goalId": "goal_id",
    "title": "title",
    "description": "description",
    "targetMonth": "target_month",
    "targetYear": "target_year",
    "keyResults": "key_results",
    "status": "status",
    "createdAt": "created_at",
}


def _to_dict(obj: Any, attrs: Dict[str, str]) -> Dict[str, Any]:
    return {key: getattr(obj, attr) for key, attr in attrs.items()}


def _kwargs(raw: Dict[str, Any], attrs: Dict[str, str]) -> Dict[str, Any]:
    return {attr: raw[key] for key, attr in attrs.items() if key in raw}


@dataclass(frozen=True)
class Task:
    id: str
    user_id: str
    title: str
    scheduled_date: str
    description: str = ""
    scheduled_time: Optional[str] = None
    estimated_duration: int = 30
    priority: str = "medium"
    status: str = "pending"
    location: Optional[str] = None
    objective_id: Optional[str] = None
    goal_id: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return _to_dict(self, TASK_ATTRS)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Task":
        return cls(**_kwargs(raw, TASK_ATTRS))


@dataclass(frozen=True)
class Goal:
    id: str
    user_id: str
    title: str
    target_year: int
    description: str = ""
    category: str = "personal"
    priority: str = "medium"
    status: str = "active"
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return _to_dict(self, GOAL_ATTRS)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Goal":
        return cls(**_kwargs(raw, GOAL_ATTRS))


@dataclass(frozen=True)
class Objective:
    id: str
    user_id: str
    goal_id: str
    title: str
    target_month: int
    target_year: int
    description: str = ""
    key_results: List[Dict[str, Any]] = field(default_factory=list)
    status: str = "active"
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return _to_dict(self, OBJECTIVE_ATTRS)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Objective":
        return cls(**_kwargs(raw, OBJECTIVE_ATTRS))
