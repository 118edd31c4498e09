from __future__ import annotations
import base64, hashlib, hmac, json, time, uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional


def _b64(b: bytes) -> str:
    return base64.urlsafe_b64encode(b).decode("utf-8").rstrip("=")


def _b64d(s: str) -> bytes:
    pad = "=" * (-len(s) % 4)
    return base64.urlsafe_b64decode((s + pad).encode("utf-8"))


def _canonical(obj: Any) -> bytes:
    return json.dumps(obj, sort_keys=True, separators=(",", ":")).encode("utf-8")


def _sign(secret: bytes, payload: Dict[str, Any]) -> str:
    return _b64(hmac.new(secret, _canonical(payload), hashlib.sha256).digest())


@dataclass(frozen=True)
class Approval:
    token_type: str
    jti: str
    exp: float
    bind: Dict[str, Any]
    sig: str

    def expired(self, now: Optional[float] = None) -> bool:
        return (now if now is not None else time.time()) > self.exp


def mint(secret: bytes, *, token_type: str, ttl_s: int, bind: Dict[str, Any]) -> str:
    if not secret:
        raise ValueError("a signing secret is required")
    payload = {"token_type": token_type, "jti": str(uuid.uuid4()), "exp": time.time() + ttl_s, "bind": bind}
    return _b64(_canonical({"payload": payload, "sig": _sign(secret, payload)}))


def verify(secret: bytes, token: str) -> Optional[Approval]:
    """Decoded approval when the signature matches, else None. Expiry is left to the caller."""
    try:
        blob = json.loads(_b64d(token).decode("utf-8"))
        payload = blob["payload"]
        sig = blob["sig"]
    except (ValueError, KeyError, TypeError):
        return None
    if not isinstance(payload, dict) or not isinstance(sig, str):
        return None
    if not hmac.compare_digest(sig, _sign(secret, payload)):
        return None
    try:
        return Approval(token_type=payload["token_type"], jti=payload["jti"], exp=float(payload["exp"]),
                        bind=dict(payload["bind"]), sig=sig)
    except (KeyError, TypeError, ValueError):
        return None
