from datetime import date

from tasktalk.config import Config
from tasktalk.core.gate import Gate, GatePolicy, default_policy
from tasktalk.core.ledger import Ledger
from tasktalk.core.types import ParsedCommand, Utterance
from tasktalk.nl.pipeline import Interpreter
from tasktalk.store.memory import MemoryStore

TODAY = date(2025, 1, 15)


def _cfg(**overrides) -> Config:
    base = dict(
        data_dir="artifacts",
        store_backend="memory",
        llm_provider="",
        ollama_base_url="http://localhost:11434",
        ollama_model="llama3.1",
        llm_timeout_s=60,
        text_threshold=0.7,
        voice_threshold=0.6,
        chat_threshold=0.6,
        match_threshold=0.6,
        candidate_limit=5,
        confirm_secret="",
        confirm_ttl_s=600,
        ledger_enabled=True,
        log_level="INFO",
    )
    base.update(overrides)
    return Config(**base)


def _interp(store, tmp_path=None, **overrides) -> Interpreter:
    ledger = Ledger(str(tmp_path / "ledger.jsonl")) if tmp_path is not None else None
    return Interpreter(store, cfg=_cfg(**overrides), ledger=ledger, today=lambda: TODAY)


def test_held_command_runs_once_after_confirmation(tmp_path):
    store = MemoryStore()
    interp = _interp(store, tmp_path, text_threshold=0.95, confirm_secret="s3cret")
    held = interp.process("u1", "add task call mom tomorrow")
    assert not held.success
    assert held.message == "I'm not sure I understood. Did you want to add a task? Please confirm or rephrase."
    assert held.data["needsConfirmation"] is True
    assert held.data["reason"] == "below_threshold"
    assert held.data["command"]["intent"] == "add_task"
    assert store.list_tasks("u1") == []

    token = held.data["confirmToken"]
    done = interp.confirm("u1", token)
    assert done.success
    assert [t.title for t in store.list_tasks("u1")] == ["call mom"]

    again = interp.confirm("u1", token)
    assert not again.success
    assert again.message == "This command was already confirmed"
    assert len(store.list_tasks("u1")) == 1


def test_token_is_bound_to_the_user(tmp_path):
    store = MemoryStore()
    interp = _interp(store, tmp_path, text_threshold=0.95, confirm_secret="s3cret")
    token = interp.process("u1", "add task call mom tomorrow").data["confirmToken"]
    result = interp.confirm("u2", token)
    assert not result.success
    assert result.message.startswith("This confirmation is invalid or has expired")
    assert interp.confirm("u1", token + "x").success is False
    assert store.list_tasks("u2") == []


def test_no_token_without_a_secret():
    interp = _interp(MemoryStore(), text_threshold=0.95)
    held = interp.process("u1", "add task call mom tomorrow")
    assert "confirmToken" not in held.data
    assert interp.confirm("u1", "anything").message == "Command confirmation is not enabled"


def test_empty_utterance_is_rejected(tmp_path):
    interp = _interp(MemoryStore(), tmp_path)
    result = interp.process("u1", "   ")
    assert not result.success
    assert interp.history("u1") == []


def test_history_is_newest_first_and_per_user(tmp_path):
    interp = _interp(MemoryStore(), tmp_path)
    interp.process("u1", "add task buy milk")
    interp.process("u1", "what's my next task?")
    interp.process("u2", "add task walk dog")
    rows = interp.history("u1")
    assert [r["utterance"] for r in rows] == ["what's my next task?", "add task buy milk"]
    assert rows[1]["command"]["intent"] == "add_task"
    assert rows[1]["gate"] == "ok"
    assert interp.history("u1", limit=1)[0]["utterance"] == "what's my next task?"


def test_ledger_can_be_disabled(tmp_path):
    interp = _interp(MemoryStore(), tmp_path, ledger_enabled=False)
    interp.process("u1", "add task buy milk")
    assert interp.history("u1") == []


def test_chat_context_supplies_intent_and_entities():
    store = MemoryStore()
    store.create_task({"userId": "u1", "title": "Team Meeting", "scheduledDate": "2025-01-15"})
    utterance = Utterance(
        text="make it high priority",
        context={"intent": "modify_task", "confidence": 0.9,
                 "entities": {"task_title": "Team Meeting", "priority": "high"}},
    )
    command = _interp(store).parse(utterance)
    assert (command.intent, command.confidence) == ("modify_task", 0.9)
    assert command.entities["taskIdentifier"] == "Team Meeting"
    result = _interp(store).process("u1", utterance, entry_point="chat")
    assert result.success
    assert store.list_tasks("u1")[0].priority == "high"


def test_context_with_unknown_intent_is_ignored():
    command = _interp(MemoryStore()).parse(Utterance(text="add task buy milk", context={"intent": "fly"}))
    assert command.intent == "add_task"


def test_voice_threshold_is_lower():
    store = MemoryStore()
    store.create_task({"userId": "u1", "title": "Dentist appointment", "scheduledDate": "2025-01-15"})
    interp = _interp(store, text_threshold=0.8, voice_threshold=0.6)
    assert not interp.process("u1", "move dentist appointment to friday").success
    assert interp.process("u1", "move dentist appointment to friday", entry_point="voice").success


def test_unknown_entry_point_is_held():
    result = _interp(MemoryStore()).process("u1", "add task buy milk", entry_point="fax")
    assert result.data["reason"] == "unknown_entry_point"


def test_gate_decisions():
    gate = Gate(default_policy())
    assert gate.decide(ParsedCommand("add_task", {}, 0.7), "text").reason == "ok"
    assert gate.decide(ParsedCommand("add_task", {}, 0.69), "text").reason == "below_threshold"
    assert gate.decide(ParsedCommand("add_task", {}, 0.6), "voice").accepted
    assert gate.decide(ParsedCommand("add_task", {}, 1.5), "text").reason == "bad_confidence"
    assert gate.decide(ParsedCommand("launch_rocket", {}, 0.9), "text").reason == "unknown_intent"
    assert gate.decide(ParsedCommand("ask_question", {}, 0.6), "text").reason == "read_only"
    assert gate.decide(ParsedCommand("ask_question", {}, 0.3), "text").reason == "below_threshold"


def test_gate_policy_without_read_only_intents():
    gate = Gate(GatePolicy(thresholds={"text": 0.7}, read_only=set()))
    assert not gate.decide(ParsedCommand("ask_question", {}, 0.6), "text").accepted


def test_unrecognized_text_is_held_not_answered():
    result = _interp(MemoryStore()).process("u1", "standup notes tonight please")
    assert not result.success
    assert result.data["reason"] == "below_threshold"
    assert result.data["command"]["confidence"] == 0.3
