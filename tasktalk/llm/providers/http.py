from __future__ import annotations
import json, re, urllib.request
from typing import Any, Dict, Optional

_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.S)


def post_json(url: str, payload: Dict[str, Any], headers: Dict[str, str], timeout: float) -> Dict[str, Any]:
    req = urllib.request.Request(
        url,
        data=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json", **headers},
        method="POST",
    )
    with urllib.request.urlopen(req, timeout=timeout) as r:
        return json.loads(r.read().decode("utf-8"))


def parse_json_text(text: str) -> Optional[Dict[str, Any]]:
    """Decode a model reply that should be a JSON object, tolerating a code fence."""
    text = (text or "").strip()
    m = _FENCE.match(text)
    if m:
        text = m.group(1)
    try:
        js = json.loads(text)
    except json.JSONDecodeError:
        return None
    return js if isinstance(js, dict) else None
