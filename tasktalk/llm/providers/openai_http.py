from __future__ import annotations
from typing import Any, Dict
from ..types import LLMResponse
from .http import parse_json_text, post_json


class OpenAIHTTP:
    def __init__(self, api_key: str, base_url: str, model: str, timeout: float = 60):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout

    def complete(self, *, system: str, user: str, json_mode: bool = False) -> LLMResponse:
        payload: Dict[str, Any] = {
            "model": self.model,
            "temperature": 0.7,
            "messages": [{"role": "system", "content": system}, {"role": "user", "content": user}],
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        data = post_json(f"{self.base_url}/v1/chat/completions", payload,
                         {"Authorization": f"Bearer {self.api_key}"}, self.timeout)
        choices = data.get("choices") or [{}]
        text = ((choices[0].get("message") or {}).get("content") or "").strip()
        js = parse_json_text(text) if json_mode else None
        return LLMResponse(text=text, json=js, model=self.model, usage=data.get("usage"))
