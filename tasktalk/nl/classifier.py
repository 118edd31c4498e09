from __future__ import annotations
from typing import List

from tasktalk.core.types import Classification
from .rules import IntentRule, first_intent, has, has_all, lacks, words

FALLBACK_CONFIDENCE = 0.3

_ROADMAP_WORDS = has("roadmap", "strategy", "journey", "complete plan", "full plan")
_TASK = has("task")
_FIELD_WORDS = has("priority", "date", "time", "title", "name", "duration", "status", "location", "description")
_EDIT = has("change", "update", "modify", "edit")
_RENAME = has("rename")
_STATUS_CHANGE = words("mark", "set")
_STATUS_VALUE = has("done", "finished", "complete", "completed", "pending", "in progress", "cancelled", "canceled", "todo")


def _status_change(text: str) -> bool:
    return bool(_STATUS_CHANGE.search(text)) and bool(has("as", "to")(text)) and _STATUS_VALUE(text)


def _schedule_change(text: str) -> bool:
    return has("move", "reschedule", "postpone", "push")(text) and has("to", "for", "on", "until")(text)


# Evaluated top to bottom; the first rule whose predicate holds decides the intent.
INTENT_RULES: List[IntentRule] = [
    IntentRule("create_roadmap", 0.9, has_all(has("create", "build", "make", "plan"), _ROADMAP_WORDS)),
    IntentRule("create_goal", 0.85, has_all(has("create", "add", "make", "set"), has("goal"), lacks(_ROADMAP_WORDS))),
    IntentRule("create_objective", 0.85, has_all(has("create", "add", "make", "set"), has("objective"))),
    IntentRule("add_task", 0.8, has_all(has("add", "create", "schedule"), _TASK)),
    IntentRule("modify_task", 0.7, lambda t: _RENAME(t) or (_EDIT(t) and (_TASK(t) or _FIELD_WORDS(t)))),
    IntentRule("delete_task", 0.8, has_all(has("delete", "remove", "cancel"), _TASK)),
    IntentRule("modify_task", 0.7, _status_change),
    IntentRule("schedule_task", 0.75, _schedule_change),
    IntentRule("ask_question", 0.6, has("what", "how", "when", "show", "list")),
]


class IntentClassifier:
    def __init__(self, rules: List[IntentRule] | None = None):
        self.rules = rules if rules is not None else INTENT_RULES

    def classify(self, text: str) -> Classification:
        rule = first_intent(self.rules, text or "")
        if rule is None:
            return Classification(intent="ask_question", confidence=FALLBACK_CONFIDENCE)
        return Classification(intent=rule.intent, confidence=rule.confidence)
