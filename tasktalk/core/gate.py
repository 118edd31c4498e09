from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Set

from .types import INTENTS, Decision, ParsedCommand

DEFAULT_THRESHOLDS = {"text": 0.7, "voice": 0.6, "chat": 0.6}


@dataclass
class GatePolicy:
    thresholds: Dict[str, float]
    # Read-only intents skip the threshold unless at or below the classifier fallback.
    read_only: Set[str] = field(default_factory=lambda: {"ask_question"})
    read_only_floor: float = 0.3


def default_policy() -> GatePolicy:
    return GatePolicy(thresholds=dict(DEFAULT_THRESHOLDS))


class Gate:
    """Decides whether a parsed command may run without confirmation."""

    def __init__(self, policy: GatePolicy | None = None):
        self.policy = policy or default_policy()

    def decide(self, command: ParsedCommand, entry_point: str) -> Decision:
        if command.intent not in INTENTS:
            return Decision(command=command, accepted=False, reason="unknown_intent")
        if not 0.0 <= command.confidence <= 1.0:
            return Decision(command=command, accepted=False, reason="bad_confidence")
        threshold = self.policy.thresholds.get(entry_point)
        if threshold is None:
            return Decision(command=command, accepted=False, reason="unknown_entry_point")
        if command.intent in self.policy.read_only and command.confidence > self.policy.read_only_floor:
            return Decision(command=command, accepted=True, reason="read_only")
        if command.confidence < threshold:
            return Decision(command=command, accepted=False, reason="below_threshold")
        return Decision(command=command, accepted=True, reason="ok")
