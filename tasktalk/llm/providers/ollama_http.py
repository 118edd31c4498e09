from __future__ import annotations
from typing import Any, Dict
from ..types import LLMResponse
from .http import parse_json_text, post_json


class OllamaHTTP:
    def __init__(self, base_url: str, model: str, timeout: float = 60):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout

    def complete(self, *, system: str, user: str, json_mode: bool = False) -> LLMResponse:
        payload: Dict[str, Any] = {"model": self.model, "system": system, "prompt": user, "stream": False}
        if json_mode:
            payload["format"] = "json"
        data = post_json(f"{self.base_url}/api/generate", payload, {}, self.timeout)
        text = (data.get("response") or "").strip()
        js = parse_json_text(text) if json_mode else None
        usage = {"prompt_eval_count": data.get("prompt_eval_count"), "eval_count": data.get("eval_count")}
        return LLMResponse(text=text, json=js, model=self.model, usage=usage)
