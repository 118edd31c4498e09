from datetime import date

from fastapi.testclient import TestClient

from tasktalk.config import Config
from tasktalk.core.ledger import Ledger
from tasktalk.nl.pipeline import Interpreter
from tasktalk.store.memory import MemoryStore
from tasktalk_ui.app import create_app

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
        confirm_secret="s3cret",
        confirm_ttl_s=600,
        ledger_enabled=True,
        log_level="INFO",
    )
    base.update(overrides)
    return Config(**base)


def _client(tmp_path, **overrides):
    store = MemoryStore()
    store.create_task({"userId": "u1", "title": "Team Meeting", "scheduledDate": "2025-01-15"})
    interp = Interpreter(store, cfg=_cfg(**overrides), ledger=Ledger(str(tmp_path / "ledger.jsonl")),
                         today=lambda: TODAY)
    return TestClient(create_app(interp)), store


H = {"X-User-Id": "u1"}


def test_user_header_and_text_are_required(tmp_path):
    client, _ = _client(tmp_path)
    assert client.post("/api/nl/process", json={"text": "add task gym"}).status_code == 401
    r = client.post("/api/nl/process", json={"text": "  "}, headers=H)
    assert r.status_code == 400
    assert r.json()["detail"] == "text is required"
    assert client.post("/api/nl/process", json={}, headers=H).status_code == 422


def test_text_command(tmp_path):
    client, store = _client(tmp_path)
    r = client.post("/api/nl/process", json={"text": "add task call mom at 5pm tomorrow"}, headers=H)
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["data"]["task"]["scheduledTime"] == "17:00"
    assert len(store.list_tasks("u1")) == 2


def test_voice_command(tmp_path):
    client, store = _client(tmp_path)
    r = client.post("/api/voice/command", json={"transcript": "move team meeting to friday"}, headers=H)
    assert r.json()["message"] == 'Moved "Team Meeting" to Fri Jan 17, 2025'
    assert store.list_tasks("u1")[0].scheduled_date == "2025-01-17"


def test_chat_command_with_assistant_entities(tmp_path):
    client, store = _client(tmp_path)
    r = client.post("/api/chat/command", json={
        "message": "make it high priority",
        "intent": "modify_task",
        "entities": {"task_title": "Team Meeting", "priority": "high"},
        "confidence": 0.9,
    }, headers=H)
    assert r.json()["success"] is True
    assert store.list_tasks("u1")[0].priority == "high"


def test_confirm_and_history(tmp_path):
    client, store = _client(tmp_path, text_threshold=0.95)
    held = client.post("/api/nl/process", json={"text": "delete task team meeting"}, headers=H).json()
    assert held["data"]["needsConfirmation"] is True
    token = held["data"]["confirmToken"]

    other = client.post("/api/nl/confirm", json={"token": token}, headers={"X-User-Id": "u2"}).json()
    assert other["success"] is False

    done = client.post("/api/nl/confirm", json={"token": token}, headers=H).json()
    assert done == {"success": True, "message": 'Task "Team Meeting" deleted',
                    "data": {"deletedTaskId": done["data"]["deletedTaskId"]}}
    assert store.list_tasks("u1") == []

    rows = client.get("/api/nl/commands", params={"limit": 5}, headers=H).json()["commands"]
    assert len(rows) == 1
    assert rows[0]["gate"] == "below_threshold"
    assert client.get("/api/nl/commands").status_code == 401
