from __future__ import annotations
from typing import Any, Dict
from ..types import LLMResponse
from .http import parse_json_text, post_json


class AnthropicHTTP:
    def __init__(self, api_key: str, base_url: str, model: str, timeout: float = 60, max_tokens: int = 4000):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.max_tokens = max_tokens

    def complete(self, *, system: str, user: str, json_mode: bool = False) -> LLMResponse:
        if json_mode:
            system = system + "\nRespond with a single JSON object and nothing else."
        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": system,
            "messages": [{"role": "user", "content": user}],
        }
        data = post_json(f"{self.base_url}/v1/messages", payload,
                         {"x-api-key": self.api_key, "anthropic-version": "2023-06-01"}, self.timeout)
        text = "".join(c.get("text", "") for c in data.get("content", []) if c.get("type") == "text").strip()
        js = parse_json_text(text) if json_mode else None
        return LLMResponse(text=text, json=js, model=self.model, usage=data.get("usage"))
