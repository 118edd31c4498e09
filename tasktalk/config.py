from __future__ import annotations
from dataclasses import dataclass
import os


def _get_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "y", "on")


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Config:
    data_dir: str
    store_backend: str
    llm_provider: str
    ollama_base_url: str
    ollama_model: str
    llm_timeout_s: int
    text_threshold: float
    voice_threshold: float
    chat_threshold: float
    match_threshold: float
    candidate_limit: int
    confirm_secret: str
    confirm_ttl_s: int
    ledger_enabled: bool
    log_level: str

    @property
    def confirm_secret_bytes(self) -> bytes:
        return self.confirm_secret.encode("utf-8") if self.confirm_secret else b""

    def threshold_for(self, entry_point: str) -> float:
        if entry_point == "voice":
            return self.voice_threshold
        if entry_point == "chat":
            return self.chat_threshold
        return self.text_threshold


def load_config() -> Config:
    return Config(
        data_dir=os.getenv("TASKTALK_DATA_DIR", "artifacts"),
        store_backend=(os.getenv("TASKTALK_STORE") or "json").strip().lower(),
        llm_provider=(os.getenv("TASKTALK_LLM_PROVIDER") or "").strip().lower(),
        ollama_base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434"),
        ollama_model=os.getenv("OLLAMA_MODEL", "llama3.1"),
        llm_timeout_s=_get_int("TASKTALK_LLM_TIMEOUT_S", 60),
        text_threshold=_get_float("TASKTALK_TEXT_THRESHOLD", 0.7),
        voice_threshold=_get_float("TASKTALK_VOICE_THRESHOLD", 0.6),
        chat_threshold=_get_float("TASKTALK_CHAT_THRESHOLD", 0.6),
        match_threshold=_get_float("TASKTALK_MATCH_THRESHOLD", 0.6),
        candidate_limit=_get_int("TASKTALK_CANDIDATE_LIMIT", 5),
        confirm_secret=os.getenv("TASKTALK_CONFIRM_SECRET", ""),
        confirm_ttl_s=_get_int("TASKTALK_CONFIRM_TTL_S", 600),
        ledger_enabled=_get_bool("TASKTALK_LEDGER", True),
        log_level=(os.getenv("TASKTALK_LOG_LEVEL") or "INFO").strip().upper(),
    )
