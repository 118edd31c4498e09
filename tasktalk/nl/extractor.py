"""Per-intent entity cascades.

Each intent owns an ordered list of rules. For every entity key the first rule
that matches wins; other keys keep being searched. A second, broader list runs
only when the primary cascade found none of its trigger keys.
"""

from __future__ import annotations
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from .datetime_phrases import DATE_WORD_PATTERN, WEEKDAY_PATTERN
from .rules import Rule, has, run_rules

MONTHS = ("january", "february", "march", "april", "may", "june", "july",
          "august", "september", "october", "november", "december")
_MONTH_PATTERN = "|".join(MONTHS)
_MONTH_ABBR = r"(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?"

_I = re.I
_QUOTED = r"[\"']([^\"']+)[\"']"
_DATE_VALUE = (
    rf"(?:next\s+)?(?:{DATE_WORD_PATTERN})"
    r"|\d{4}-\d{2}-\d{2}"
    r"|\d{1,2}/\d{1,2}(?:/\d{2,4})?"
    rf"|{_MONTH_ABBR}\s+\d{{1,2}}(?:st|nd|rd|th)?"
)
_TIME_VALUE = r"\d{1,2}:\d{2}(?:\s*[ap]m)?|\d{1,2}\s*[ap]m"
_DURATION_UNIT = r"hours?|hrs?|minutes?|mins?"
_FIELD_WORDS = r"priority|date|day|time|title|name|status|duration|location|description"

# Where a task title stops: trailing schedule, duration, priority and link phrases.
_TITLE_TAIL = re.compile(
    r"\s+(?:"
    rf"(?:(?:on|at|for|by|this|next|due)\s+)?(?:today|tomorrow|{WEEKDAY_PATTERN})\b"
    rf"|(?:on|at|by|due)\s+(?:{_TIME_VALUE}|\d{{4}}-\d{{2}}-\d{{2}}|{_MONTH_ABBR}\s+\d{{1,2}})\b"
    rf"|{_TIME_VALUE}\b"
    r"|at\s+\d{1,2}\b"
    rf"|(?:for|lasting)\s+\d+\s*(?:{_DURATION_UNIT})\b"
    r"|(?:with\s+)?(?:low|medium|high|critical)\s+priority\b"
    r"|(?:under|for|to|in)\s+(?:the\s+|my\s+)?(?:objective|goal)\b"
    r"|(?:to|in|on)\s+(?:my\s+)?(?:task\s*list|tasks?|list)\b"
    ")",
    _I,
)
_YEAR_TAIL = re.compile(r"\s+(?:(?:for|in|by|this|next)\s+)?(?:this year|next year|20\d{2})\b.*$", _I)
_GOAL_TAIL = re.compile(r"\s+(?:and\s+)?(?:break\s+(?:it\s+)?down|decompose|with\s+(?:monthly\s+)?objectives|with\s+(?:weekly\s+)?tasks)\b.*$", _I)
_NOT_SPAN = r"(?!\s*(?:weeks?|days?|months?|years?|hours?|hrs?|minutes?|mins?)\b)"
_MONTH_TAIL = re.compile(rf"\s+(?:for|in|by)\s+(?:{_MONTH_PATTERN}|\d{{1,2}})\b{_NOT_SPAN}.*$", _I)
_LINK_TAIL = re.compile(r"\s+(?:under|for|to)\s+(?:the\s+|my\s+)?goal\b.*$", _I)
_LEADING_CONNECTOR = re.compile(r"^(?:to|of|for|called|named|about)\s+", _I)

CATEGORY_KEYWORDS: List[Tuple[str, str, Tuple[str, ...]]] = [
    ("career", "high", ("developer", "career", "job", "programming", "coding", "promotion")),
    ("health", "medium", ("fitness", "health", "workout", "exercise", "marathon", "diet")),
    ("financial", "high", ("business", "startup", "company", "money", "financ", "saving", "invest")),
    ("education", "high", ("learn", "study", "course", "education", "grade", "subject", "degree", "school")),
]


def _clean(value: str) -> str:
    return value.strip().strip("\"'").strip(" .,!?;:").strip()


def _cut(value: str, *tails: re.Pattern) -> str:
    for tail in tails:
        value = tail.sub("", value)
    return value


def _task_title(value: str) -> str:
    m = _TITLE_TAIL.search(value)
    if m:
        value = value[:m.start()]
    return _clean(value)


def _title_action(m) -> Dict[str, Any]:
    title = _task_title(m.group(1))
    if title.lower() in ("", "task", "a task", "new task"):
        return {}
    return {"title": title}


def _to_minutes(amount: str, unit: Optional[str]) -> int:
    n = int(amount)
    return n * 60 if unit and unit.lower().startswith(("hour", "hr")) else n


def _year_value(token: str, today: date) -> int:
    token = token.lower()
    if token == "this year":
        return today.year
    if token == "next year":
        return today.year + 1
    return int(token)


def _month_value(token: str) -> Optional[int]:
    token = token.lower()
    if token in MONTHS:
        return MONTHS.index(token) + 1
    n = int(token)
    return n if 1 <= n <= 12 else None


def infer_category(text: str) -> Tuple[str, str]:
    """Topic keywords to (category, priority); unmatched text is personal/medium."""
    lowered = text.lower()
    for category, priority, keywords in CATEGORY_KEYWORDS:
        if any(re.search(rf"\b{k}", lowered) for k in keywords):
            return category, priority
    return "personal", "medium"


def _field_rule(name: str, when, pattern: str, transform=None) -> Rule:
    def action(m):
        raw = m.group(1)
        if raw is None:
            return {}
        value = transform(m) if transform else _clean(raw)
        if value in (None, ""):
            return {}
        return {"field": name, "newValue": value}
    return Rule("field", re.compile(pattern, _I), when=when, action=action)


# ---------------------------------------------------------------- tasks

_TIME_RULES = [
    Rule("time", re.compile(rf"\b({_TIME_VALUE})\b", _I)),
]
_DATE_RULES = [
    Rule("date", re.compile(rf"\b({_DATE_VALUE})\b", _I)),
]
_BARE_TIME_RULES = [
    Rule("time", re.compile(r"\bat\s+(\d{1,2})\b(?!\s*(?:" + _DURATION_UNIT + r"|/|-))", _I)),
]

_TASK_VERB = r"(?:add|create|schedule)\s+(?:(?:a|an|new|the|me)\s+)*(?:task\s+)?(?:to\s+|called\s+|named\s+|:\s*)?"

ADD_TASK_RULES = _TIME_RULES + _DATE_RULES + [
    Rule("duration", re.compile(rf"\b(\d+)\s*({_DURATION_UNIT})\b", _I),
         action=lambda m: {"duration": _to_minutes(m.group(1), m.group(2)), "durationUnit": m.group(2).lower()}),
    Rule("priority", re.compile(r"\b(low|medium|high|critical)\s+priority\b", _I),
         action=lambda m: {"priority": m.group(1).lower()}),
    Rule("priority", re.compile(r"\bpriority\s+(?:of\s+)?(low|medium|high|critical)\b", _I),
         action=lambda m: {"priority": m.group(1).lower()}),
    Rule("objective", re.compile(r"\b(?:under|for|to|in)\s+(?:the\s+|my\s+)?objective\s+[\"']?(.+?)[\"']?(?=\s+(?:on|at|by|for)\b|[,.]|$)", _I)),
    Rule("goal", re.compile(r"\b(?:under|for|to|in)\s+(?:the\s+|my\s+)?goal\s+[\"']?(.+?)[\"']?(?=\s+(?:on|at|by|for)\b|[,.]|$)", _I)),
    Rule("title", re.compile(_TASK_VERB + _QUOTED, _I)),
    Rule("title", re.compile(_TASK_VERB + r"(.+)", _I), action=_title_action),
]

# ------------------------------------------------------------- modify

_MODIFY_VERB = r"(?:change|update|modify|edit|set|mark|rename)"

MODIFY_TASK_RULES = [
    Rule("taskIdentifier", re.compile(rf"{_MODIFY_VERB}\s+(?:the\s+)?(?:task\s+)?{_QUOTED}", _I)),
    Rule("taskIdentifier", re.compile(
        rf"{_MODIFY_VERB}\s+(?:the\s+)?(?:{_FIELD_WORDS})\s+(?:of|for|on)\s+(?:the\s+)?(?:task\s+)?(.+?)\s+(?:to|as)\b", _I)),
    Rule("taskIdentifier", re.compile(
        rf"{_MODIFY_VERB}\s+(?:the\s+)?(?:task\s+)?(.+?)(?:\s+task)?(?:'s)?\s+(?:to|from|as|{_FIELD_WORDS})\b", _I)),
    Rule("taskIdentifier", re.compile(rf"{_MODIFY_VERB}\s+(?:the\s+)?(?:task\s+)?(.+?)\s*$", _I),
         action=lambda m: {"taskIdentifier": _clean(m.group(1))}),
    _field_rule("scheduledTime", lambda t: has("time")(t) and not has("duration")(t),
                rf"\b(?:to|at)\s+({_TIME_VALUE}|\d{{1,2}})\b"),
    _field_rule("scheduledDate", has("date", "day"), rf"\b(?:to|on|for)\s+({_DATE_VALUE})\b"),
    _field_rule("priority", has("priority"), r"\b(?:to|as)\s+([a-z]+)\s*$"),
    _field_rule("priority", has("priority"), r"\b(low|medium|high|critical)\b",
                transform=lambda m: m.group(1).lower()),
    _field_rule("estimatedDuration", has("duration"), rf"\b(?:to|for|duration)\s+(\d+)\s*({_DURATION_UNIT})?",
                transform=lambda m: str(_to_minutes(m.group(1), m.group(2)))),
    _field_rule("status", has("status", "mark"), r"\b(?:as|to)\s+(in\s+progress|[a-z_]+)\s*$"),
    _field_rule("location", has("location", "where", "place"),
                r"\b(?:location|where|place)(?:\s+(?:to|at|as))?\s+[\"']?([^\"']+?)[\"']?\s*$"),
    _field_rule("description", has("description", "notes"),
                r"\b(?:description|notes)(?:\s+(?:to|as))?\s+[\"']?([^\"']+?)[\"']?\s*$"),
    _field_rule("title", has("title", "name", "rename"), r"\b(?:to|as)\s+[\"']?([^\"']+?)[\"']?\s*$"),
]

MODIFY_FALLBACK_RULES = [
    _field_rule("scheduledDate", None, rf"\b({_DATE_VALUE}|next\s+week)\b"),
    _field_rule("scheduledTime", None, rf"\b({_TIME_VALUE})\b"),
    _field_rule("priority", None, r"\b(low|medium|high|critical)\s+priority\b", transform=lambda m: m.group(1).lower()),
    _field_rule("priority", has("make"), r"\bmake\b.*?\b(low|medium|high|critical)\b", transform=lambda m: m.group(1).lower()),
    _field_rule("status", None, r"\b(done|finished|complete|completed|in\s+progress|pending|cancelled|canceled)\b"),
    _field_rule("estimatedDuration", None, rf"\b(\d+)\s*({_DURATION_UNIT})\b",
                transform=lambda m: str(_to_minutes(m.group(1), m.group(2)))),
]

# ------------------------------------------------------------- delete

_BY_DATE = re.compile(
    r"(?:delete|remove|cancel)\s+(?:all\s+(?:(?:my|the)\s+)?tasks?|(?:(?:my|the)\s+)?tasks)\s+"
    rf"(?:(?:for|on|from|due)\s+)?({_DATE_VALUE})\b", _I)

DELETE_TASK_RULES = [
    Rule("deleteType", _BY_DATE, action=lambda m: {"deleteType": "by_date", "dateFilter": m.group(1)}),
    Rule("taskIdentifier", re.compile(rf"(?:delete|remove|cancel)\s+(?:the\s+)?(?:task\s+)?{_QUOTED}", _I)),
    Rule("taskIdentifier", re.compile(
        r"(?:delete|remove|cancel)\s+(?:the\s+|my\s+)?(?:task\s+)?(.+?)(?:\s+task)?(?:\s+from\s+my\s+(?:list|tasks))?\s*[.!]?$", _I),
        when=lambda t: not _BY_DATE.search(t)),
]

# ----------------------------------------------------------- schedule

_SCHEDULE_VERB = r"(?:move|reschedule|postpone|push|schedule)"

SCHEDULE_TASK_RULES = [
    Rule("taskIdentifier", re.compile(rf"{_SCHEDULE_VERB}\s+(?:back\s+)?(?:the\s+)?(?:task\s+)?{_QUOTED}", _I)),
    Rule("taskIdentifier", re.compile(
        rf"{_SCHEDULE_VERB}\s+(?:back\s+)?(?:the\s+)?(?:task\s+)?(.+?)\s+(?:back\s+)?(?:to|for|on|until|at)\b", _I)),
] + _DATE_RULES + _TIME_RULES

SCHEDULE_FALLBACK_RULES = _BARE_TIME_RULES

# -------------------------------------------------- goals and objectives

_YEAR_RULE = Rule("year", re.compile(r"\b(this year|next year|20\d{2})\b", _I))

GOAL_RULES = [
    Rule("title", re.compile(rf"(?:create|add|make|set)(?:\s+(?:a|an|the|my|new))*\s+goal\s*(?:to\s+|of\s+|called\s+|named\s+|:\s*)?{_QUOTED}", _I)),
    Rule("title", re.compile(r"(?:create|add|make|set)(?:\s+(?:a|an|the|my|new))*\s+goal\b\s*:?\s*(.+)", _I),
         action=lambda m: {"title": _clean(_LEADING_CONNECTOR.sub("", _cut(m.group(1), _GOAL_TAIL, _YEAR_TAIL)))}),
    _YEAR_RULE,
    Rule("decompose", re.compile(r"\b(break\s+(?:it\s+)?down|decompose|with\s+(?:monthly\s+)?objectives)\b", _I),
         action=lambda m: {"decompose": True}),
]

OBJECTIVE_RULES = [
    Rule("title", re.compile(rf"(?:create|add|make|set)(?:\s+(?:a|an|the|my|new))*\s+(?:monthly\s+)?objective\s*(?:to\s+|of\s+|called\s+|named\s+|:\s*)?{_QUOTED}", _I)),
    Rule("title", re.compile(r"(?:create|add|make|set)(?:\s+(?:a|an|the|my|new))*\s+(?:monthly\s+)?objective\b\s*:?\s*(.+)", _I),
         action=lambda m: {"title": _clean(_LEADING_CONNECTOR.sub("", _cut(m.group(1), _GOAL_TAIL, _LINK_TAIL, _MONTH_TAIL, _YEAR_TAIL)))}),
    Rule("month", re.compile(rf"\b(?:for|in|by)\s+({_MONTH_PATTERN}|\d{{1,2}})\b{_NOT_SPAN}", _I),
         action=lambda m: {"month": _month_value(m.group(1))} if _month_value(m.group(1)) else {}),
    _YEAR_RULE,
    Rule("goal", re.compile(r"\b(?:under|for|to)\s+(?:the\s+|my\s+)?goal\s+[\"']?(.+?)[\"']?(?=\s+(?:for|in|by|with)\b|[,.]|$)", _I)),
    Rule("planTasks", re.compile(r"\b(with\s+(?:weekly\s+)?tasks|plan\s+(?:the\s+)?tasks)\b", _I),
         action=lambda m: {"planTasks": True}),
]

ROADMAP_RULES = [
    Rule("prompt", re.compile(
        r"(?:create|build|make|plan)(?:\s+(?:a|an|the|my))?\s+(?:roadmap|strategy|journey|complete plan|full plan)?"
        r"(?:\s+(?:for|to|of|on))?\s*(.+)", _I),
        action=lambda m: {"prompt": _clean(m.group(1)), "description": _clean(m.group(1))}),
    Rule("timeframe", re.compile(r"\b(this year|next year|20\d{2}|this semester|next semester|in \d+ months?)\b", _I)),
]

# ----------------------------------------------------------- questions

_QUESTION_TYPES = [
    ("count", has("how many", "count", "number of")),
    ("stats", has("stats", "statistics", "productivity")),
    ("next_task", has("next")),
    ("time", has("what time", "how much time", "time left", "when")),
    ("schedule", has("schedule", "agenda", "calendar", "plan for")),
    ("progress", has("progress", "completed", "done")),
]
_QUESTION_STATUS = re.compile(r"\b(completed|done|finished|pending|in\s+progress|cancelled)\b", _I)


def _question_entities(text: str) -> Dict[str, Any]:
    entities: Dict[str, Any] = {"question": text}
    lowered = text.lower()
    for timeframe in ("today", "tomorrow", "week", "month"):
        if re.search(rf"\b{timeframe}\b", lowered):
            entities["timeframe"] = timeframe
            break
    for qtype, predicate in _QUESTION_TYPES:
        if predicate(text):
            entities["questionType"] = qtype
            break
    m = re.search(r"\b(goal|objective|task)s?\b", lowered)
    entities["subject"] = m.group(1) if m else "task"
    if entities.get("questionType") == "count":
        m = _QUESTION_STATUS.search(text)
        if m:
            entities["status"] = m.group(1).lower()
    return entities


# --------------------------------------------------------- assistant hints

_HINT_IDENTIFIER_KEYS = ("original_title", "task_title", "task", "task_name", "taskIdentifier")
_HINT_KEYS = {
    "scheduled_date": "date",
    "date": "date",
    "scheduled_time": "time",
    "time": "time",
    "estimated_duration": "duration",
    "duration": "duration",
    "priority": "priority",
    "status": "status",
    "description": "description",
    "location": "location",
    "title": "title",
    "year": "year",
    "month": "month",
    "category": "category",
    "prompt": "prompt",
}
# Order decides which hinted field becomes the modify target.
_HINT_MODIFY_FIELDS = [
    ("priority", "priority"),
    ("status", "status"),
    ("date", "scheduledDate"),
    ("time", "scheduledTime"),
    ("duration", "estimatedDuration"),
    ("description", "description"),
    ("location", "location"),
]


def hint_entities(intent: str, hints: Dict[str, Any]) -> Dict[str, Any]:
    """Map entity keys produced by a conversational surface onto ours."""
    out: Dict[str, Any] = {}
    for key in _HINT_IDENTIFIER_KEYS:
        if hints.get(key):
            out["taskIdentifier"] = str(hints[key])
            break
    for key, target in _HINT_KEYS.items():
        if hints.get(key) not in (None, "") and target not in out:
            out[target] = hints[key]
    if intent == "modify_task":
        renamed = out.get("title") and out.get("taskIdentifier") and out["title"] != out["taskIdentifier"]
        if renamed:
            out["field"], out["newValue"] = "title", out["title"]
        else:
            for key, target in _HINT_MODIFY_FIELDS:
                if out.get(key) not in (None, ""):
                    out["field"], out["newValue"] = target, out[key]
                    break
    return out


# ----------------------------------------------------------- cascades


@dataclass(frozen=True)
class Cascade:
    rules: List[Rule]
    fallback: List[Rule] = field(default_factory=list)
    # Fallback runs only when none of these keys came out of the primary rules.
    triggers: Tuple[str, ...] = ()


CASCADES: Dict[str, Cascade] = {
    "add_task": Cascade(ADD_TASK_RULES, _BARE_TIME_RULES, ("time",)),
    "modify_task": Cascade(MODIFY_TASK_RULES, MODIFY_FALLBACK_RULES, ("field",)),
    "delete_task": Cascade(DELETE_TASK_RULES),
    "schedule_task": Cascade(SCHEDULE_TASK_RULES, SCHEDULE_FALLBACK_RULES, ("date", "time")),
    "create_goal": Cascade(GOAL_RULES),
    "create_objective": Cascade(OBJECTIVE_RULES),
    "create_roadmap": Cascade(ROADMAP_RULES),
}


class EntityExtractor:
    def __init__(self, cascades: Optional[Dict[str, Cascade]] = None):
        self.cascades = cascades if cascades is not None else CASCADES

    def extract(self, intent: str, text: str, hints: Optional[Dict[str, Any]] = None,
                today: Optional[date] = None) -> Dict[str, Any]:
        today = today or date.today()
        text = (text or "").strip()
        if intent == "ask_question":
            entities = _question_entities(text)
        else:
            cascade = self.cascades.get(intent)
            entities = run_rules(cascade.rules, text) if cascade else {}
            if cascade and cascade.fallback and not any(k in entities for k in cascade.triggers):
                run_rules(cascade.fallback, text, entities)
        self._infer(intent, text, entities, today)
        if hints:
            for key, value in hint_entities(intent, hints).items():
                entities.setdefault(key, value)
        entities["originalText"] = text
        return entities

    def _infer(self, intent: str, text: str, entities: Dict[str, Any], today: date) -> None:
        if intent in ("create_goal", "create_objective", "create_roadmap"):
            category, priority = infer_category(text)
            entities.setdefault("category", category)
            if intent == "create_goal":
                entities.setdefault("priority", priority)
            if "year" in entities:
                entities["year"] = _year_value(str(entities["year"]), today)
            elif intent != "create_roadmap":
                entities["year"] = today.year
        if intent == "create_objective":
            entities.setdefault("month", today.month)
        if intent == "create_goal" and entities.get("title"):
            entities.setdefault("description", entities["title"])
        if intent == "create_objective" and entities.get("title"):
            entities.setdefault("description", entities["title"])
