from __future__ import annotations
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Header, HTTPException, Request
from pydantic import BaseModel, Field

from tasktalk.core.types import Utterance
from tasktalk.main import build_interpreter
from tasktalk.nl.pipeline import Interpreter

logger = logging.getLogger(__name__)


class TextCommand(BaseModel):
    text: str
    context: Dict[str, Any] = Field(default_factory=dict)


class VoiceCommand(BaseModel):
    transcript: str


class ChatCommand(BaseModel):
    message: str
    intent: Optional[str] = None
    entities: Dict[str, Any] = Field(default_factory=dict)
    confidence: Optional[float] = None


class ConfirmCommand(BaseModel):
    token: str


def _user(x_user_id: Optional[str]) -> str:
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="missing X-User-Id header")
    return user_id


def _text(value: str, name: str) -> str:
    value = (value or "").strip()
    if not value:
        raise HTTPException(status_code=400, detail=f"{name} is required")
    return value


def create_app(interpreter: Optional[Interpreter] = None) -> FastAPI:
    app = FastAPI(title="tasktalk")
    app.state.interpreter = interpreter

    def interp(request: Request) -> Interpreter:
        if request.app.state.interpreter is None:
            request.app.state.interpreter = build_interpreter()
        return request.app.state.interpreter

    @app.post("/api/nl/process")
    def nl_process(body: TextCommand, request: Request, x_user_id: Optional[str] = Header(None)):
        user_id = _user(x_user_id)
        utterance = Utterance(text=_text(body.text, "text"), context=body.context)
        return interp(request).process(user_id, utterance, entry_point="text").to_dict()

    @app.post("/api/voice/command")
    def voice_command(body: VoiceCommand, request: Request, x_user_id: Optional[str] = Header(None)):
        user_id = _user(x_user_id)
        text = _text(body.transcript, "transcript")
        return interp(request).process(user_id, Utterance(text=text), entry_point="voice").to_dict()

    @app.post("/api/chat/command")
    def chat_command(body: ChatCommand, request: Request, x_user_id: Optional[str] = Header(None)):
        user_id = _user(x_user_id)
        context: Dict[str, Any] = {"entities": body.entities}
        if body.intent:
            context["intent"] = body.intent
        if body.confidence is not None:
            context["confidence"] = body.confidence
        utterance = Utterance(text=_text(body.message, "message"), context=context)
        return interp(request).process(user_id, utterance, entry_point="chat").to_dict()

    @app.post("/api/nl/confirm")
    def nl_confirm(body: ConfirmCommand, request: Request, x_user_id: Optional[str] = Header(None)):
        user_id = _user(x_user_id)
        return interp(request).confirm(user_id, _text(body.token, "token")).to_dict()

    @app.get("/api/nl/commands")
    def nl_commands(request: Request, limit: int = 20, x_user_id: Optional[str] = Header(None)):
        user_id = _user(x_user_id)
        limit = max(1, min(limit, 200))
        return {"commands": interp(request).history(user_id, limit=limit)}

    return app


app = create_app()
