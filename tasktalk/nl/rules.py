"""Ordered rule tables and the single loop that evaluates them."""

from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Pattern, Sequence

Action = Callable[["re.Match[str]"], Dict[str, Any]]


def words(*keywords: str) -> Pattern[str]:
    """Case-insensitive whole-word alternation; a trailing ``s`` is tolerated."""
    alternation = "|".join(re.escape(k).replace(r"\ ", r"\s+") for k in keywords)
    return re.compile(rf"\b(?:{alternation})s?\b", re.I)


def has(*keywords: str) -> Callable[[str], bool]:
    pattern = words(*keywords)
    return lambda text: bool(pattern.search(text))


def has_all(*predicates: Callable[[str], bool]) -> Callable[[str], bool]:
    return lambda text: all(p(text) for p in predicates)


def lacks(predicate: Callable[[str], bool]) -> Callable[[str], bool]:
    return lambda text: not predicate(text)


@dataclass(frozen=True)
class Rule:
    """Write ``field`` from the first match of ``pattern``.

    ``when`` gates the rule on a keyword predicate over the whole text, and
    ``action`` may write several entity keys from one match.
    """

    field: str
    pattern: Pattern[str]
    group: int = 1
    when: Optional[Callable[[str], bool]] = None
    action: Optional[Action] = None

    def apply(self, text: str) -> Dict[str, Any]:
        if self.when is not None and not self.when(text):
            return {}
        m = self.pattern.search(text)
        if not m:
            return {}
        if self.action is not None:
            return self.action(m)
        value = m.group(self.group)
        if value is None:
            return {}
        value = value.strip()
        return {self.field: value} if value else {}


def run_rules(rules: Iterable[Rule], text: str, entities: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    entities = {} if entities is None else entities
    for rule in rules:
        if rule.field in entities:
            continue
        out = rule.apply(text)
        if rule.field not in out:
            continue
        for key, value in out.items():
            entities.setdefault(key, value)
    return entities


@dataclass(frozen=True)
class IntentRule:
    intent: str
    confidence: float
    when: Callable[[str], bool]


def first_intent(rules: Sequence[IntentRule], text: str) -> Optional[IntentRule]:
    for rule in rules:
        if rule.when(text):
            return rule
    return None
