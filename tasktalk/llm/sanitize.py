from __future__ import annotations
import re

_INJECTION = re.compile(
    r"ignore (all|any|previous) instructions"
    r"|system prompt"
    r"|developer message"
    r"|you are now"
    r"|<<\s*/?SYS\s*>>"
    r"|exfiltrate",
    re.I,
)


def sanitize_untrusted_text(s: str, max_chars: int = 4000) -> str:
    """Drop prompt-injection lines from user text and clip it to ``max_chars``."""
    s = (s or "").strip()
    if len(s) > max_chars:
        s = s[:max_chars] + "\n…[truncated]"
    kept = [line for line in s.splitlines() if not _INJECTION.search(line)]
    return "\n".join(kept).strip()
