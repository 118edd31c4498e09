from __future__ import annotations
import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union

from tasktalk.config import Config, load_config
from tasktalk.core.gate import Gate, GatePolicy
from tasktalk.core.ledger import Ledger
from tasktalk.core.types import ENTRY_POINTS, INTENTS, CommandResult, ParsedCommand, Utterance
from tasktalk.llm.planner import GenerativePlanner
from tasktalk.store.base import Store
from tasktalk_exec.confirm import issue, redeem
from .classifier import IntentClassifier
from .dispatcher import CommandDispatcher
from .extractor import EntityExtractor

logger = logging.getLogger(__name__)

INTENT_LABELS = {
    "add_task": "add a task",
    "modify_task": "change a task",
    "delete_task": "delete a task",
    "schedule_task": "reschedule a task",
    "create_goal": "create a goal",
    "create_objective": "create an objective",
    "create_roadmap": "create a roadmap",
    "ask_question": "ask a question",
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Interpreter:
    """Shared entry for every surface: parse, gate on confidence, dispatch, record."""

    def __init__(
        self,
        store: Store,
        planner: Optional[GenerativePlanner] = None,
        cfg: Optional[Config] = None,
        ledger: Optional[Ledger] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.cfg = cfg or load_config()
        self.ledger = ledger
        self._today = today or date.today
        self.classifier = IntentClassifier()
        self.extractor = EntityExtractor()
        self.gate = Gate(GatePolicy(thresholds={ep: self.cfg.threshold_for(ep) for ep in ENTRY_POINTS}))
        self.dispatcher = CommandDispatcher(
            store,
            planner=planner,
            match_threshold=self.cfg.match_threshold,
            candidate_limit=self.cfg.candidate_limit,
            today=self._today,
        )

    def parse(self, utterance: Union[Utterance, str]) -> ParsedCommand:
        if isinstance(utterance, str):
            utterance = Utterance(text=utterance)
        text = (utterance.text or "").strip()
        context = utterance.context or {}
        classification = self.classifier.classify(text)
        intent, confidence = classification.intent, classification.confidence
        # A conversational surface may already know the intent.
        if context.get("intent") in INTENTS:
            intent = context["intent"]
            confidence = float(context.get("confidence", confidence))
        entities = self.extractor.extract(intent, text, hints=context.get("entities"), today=self._today())
        return ParsedCommand(intent=intent, entities=entities, confidence=confidence)

    def process(
        self,
        user_id: str,
        utterance: Union[Utterance, str],
        entry_point: str = "text",
        user: Optional[Dict[str, Any]] = None,
    ) -> CommandResult:
        text = utterance.text if isinstance(utterance, Utterance) else utterance
        if not (text or "").strip():
            return CommandResult(False, "Please type or say a command, e.g. add task call mom tomorrow at 5pm")
        command = self.parse(utterance)
        decision = self.gate.decide(command, entry_point)
        logger.info("parsed %s (%.2f) from %s; gate=%s", command.intent, command.confidence, entry_point, decision.reason)
        if decision.accepted:
            result = self.dispatcher.dispatch(user_id, command, user)
        else:
            result = self._held(user_id, command, decision.reason)
        self._record({
            "kind": "command",
            "user_id": user_id,
            "entry_point": entry_point,
            "utterance": text,
            "command": command.to_dict(),
            "gate": decision.reason,
            "success": result.success,
            "message": result.message,
        })
        return result

    def confirm(self, user_id: str, token: str, user: Optional[Dict[str, Any]] = None) -> CommandResult:
        secret = self.cfg.confirm_secret_bytes
        if not secret:
            return CommandResult(False, "Command confirmation is not enabled")
        redeemed = redeem(secret, user_id, token or "")
        if redeemed is None:
            return CommandResult(False, "This confirmation is invalid or has expired. Please repeat the command.")
        if self._used(user_id, redeemed.jti):
            return CommandResult(False, "This command was already confirmed")
        result = self.dispatcher.dispatch(user_id, redeemed.command, user)
        self._record({
            "kind": "confirm",
            "user_id": user_id,
            "jti": redeemed.jti,
            "command": redeemed.command.to_dict(),
            "success": result.success,
            "message": result.message,
        })
        return result

    def history(self, user_id: str, limit: int = 20) -> List[Dict[str, Any]]:
        if self.ledger is None:
            return []
        return self.ledger.tail(user_id, limit=limit)

    def _held(self, user_id: str, command: ParsedCommand, reason: str) -> CommandResult:
        data: Dict[str, Any] = {"command": command.to_dict(), "reason": reason, "needsConfirmation": True}
        secret = self.cfg.confirm_secret_bytes
        if secret:
            data["confirmToken"] = issue(secret, user_id, command, self.cfg.confirm_ttl_s)
        label = INTENT_LABELS.get(command.intent, command.intent)
        return CommandResult(False, f"I'm not sure I understood. Did you want to {label}? Please confirm or rephrase.", data)

    def _used(self, user_id: str, jti: str) -> bool:
        if self.ledger is None:
            return False
        return any(r.get("jti") == jti for r in self.ledger.tail(user_id, limit=10_000, kind="confirm"))

    def _record(self, rec: Dict[str, Any]) -> None:
        if self.ledger is None or not self.cfg.ledger_enabled:
            return
        self.ledger.append({"ts": _now(), **rec})
