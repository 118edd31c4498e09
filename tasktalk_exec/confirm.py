"""Confirmation tokens for commands the gate held back."""

from __future__ import annotations
import hashlib
import json
from dataclasses import dataclass
from typing import Optional

from tasktalk.core.types import ParsedCommand
from .tokens_hmac import mint, verify

TOKEN_TYPE = "nl_command"


@dataclass(frozen=True)
class Redeemed:
    command: ParsedCommand
    jti: str


def command_hash(command: ParsedCommand) -> str:
    blob = json.dumps(command.to_dict(), sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(blob.encode("utf-8")).hexdigest()


def issue(secret: bytes, user_id: str, command: ParsedCommand, ttl_s: int) -> str:
    bind = {"user_id": user_id, "command": command.to_dict(), "command_hash": command_hash(command)}
    return mint(secret, token_type=TOKEN_TYPE, ttl_s=ttl_s, bind=bind)


def redeem(secret: bytes, user_id: str, token: str) -> Optional[Redeemed]:
    """The bound command when the token is genuine, unexpired and issued to ``user_id``."""
    approval = verify(secret, token)
    if approval is None or approval.token_type != TOKEN_TYPE or approval.expired():
        return None
    bind = approval.bind
    raw = bind.get("command")
    if bind.get("user_id") != user_id or not isinstance(raw, dict) or "intent" not in raw:
        return None
    command = ParsedCommand.from_dict(raw)
    if command_hash(command) != bind.get("command_hash"):
        return None
    return Redeemed(command=command, jti=approval.jti)
