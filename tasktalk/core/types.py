from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional

from tasktalk.store.models import Task

Intent = Literal[
    "add_task",
    "modify_task",
    "delete_task",
    "schedule_task",
    "create_goal",
    "create_objective",
    "create_roadmap",
    "ask_question",
]

INTENTS = (
    "add_task",
    "modify_task",
    "delete_task",
    "schedule_task",
    "create_goal",
    "create_objective",
    "create_roadmap",
    "ask_question",
)

ENTRY_POINTS = ("text", "voice", "chat")


@dataclass(frozen=True)
class Utterance:
    text: str
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Classification:
    intent: Intent
    confidence: float


@dataclass(frozen=True)
class ParsedCommand:
    intent: Intent
    entities: Dict[str, Any] = field(default_factory=dict)
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"intent": self.intent, "entities": dict(self.entities), "confidence": self.confidence}

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ParsedCommand":
        return cls(
            intent=raw["intent"],
            entities=dict(raw.get("entities") or {}),
            confidence=float(raw.get("confidence", 0.0)),
        )


@dataclass(frozen=True)
class FieldUpdate:
    field: str
    value: str


@dataclass(frozen=True)
class ResolutionCandidate:
    task: Task
    score: float


@dataclass(frozen=True)
class Validation:
    valid: bool
    message: str = ""


@dataclass(frozen=True)
class CommandResult:
    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": self.success, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


@dataclass(frozen=True)
class Decision:
    command: ParsedCommand
    accepted: bool
    reason: str
