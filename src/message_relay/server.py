"""FastAPI application that rephrases chat messages and keeps the exchange log."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from . import llm as llm_mod
from . import reload as reload_mod
from .config import load_config, redact
from .llm import RephraseClient
from .memory import ConversationStore, MessageEntry
from .prompts import Category, CategorySelector, Freeform, Preset, parse_category, selector_label
from .reload import ReloadTrigger

logger = logging.getLogger("message_relay.server")


# -----------------------------
# Pydantic request model
# -----------------------------
class SendMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Checked by the handler so wrong types get the same 400 as missing ones.
    sender: Optional[Any] = None
    recipient: Optional[Any] = None
    message: Optional[Any] = None
    category: Optional[str] = Field(default=None, description="Tone preset key.")
    category_prompt: Optional[str] = Field(
        default=None,
        alias="categoryPrompt",
        description="Free-text system instruction, used instead of a preset when allowed.",
    )


# -----------------------------
# Utilities
# -----------------------------
def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def _blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _as_list(value: Any, default: List[str]) -> List[str]:
    # Env overrides arrive as one comma-separated string.
    if not value:
        return list(default)
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(v) for v in value]


def _select(req: SendMessageRequest, prompts_cfg: Dict[str, Any]) -> CategorySelector:
    if prompts_cfg.get("allow_freeform", True) and not _blank(req.category_prompt):
        return Freeform(req.category_prompt)
    default = parse_category(prompts_cfg.get("default_category"), Category.COLLABORATIVE)
    return Preset(parse_category(req.category, default))


def _add_cors(app: FastAPI, cfg: Dict[str, Any]) -> None:
    cors = cfg.get("server", {}).get("cors", {}) or {}
    origins = _as_list(cors.get("allow_origins"), [])
    if not origins:
        return
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=_as_list(cors.get("allow_methods"), ["GET", "POST"]),
        allow_headers=_as_list(cors.get("allow_headers"), ["Content-Type"]),
    )


# -----------------------------
# App factory
# -----------------------------
def create_app(
    config_path: Optional[str] = None,
    client: Optional[RephraseClient] = None,
    store: Optional[ConversationStore] = None,
    reloader: Optional[ReloadTrigger] = None,
) -> FastAPI:
    cfg = load_config(config_path)
    logger.debug("Loaded config: %s", redact(cfg))

    prompts_cfg = cfg.get("prompts", {})
    enable_restart = bool(cfg.get("server", {}).get("enable_restart", True))

    # Services
    client = client or llm_mod.create_from_config(cfg)
    store = store if store is not None else ConversationStore()
    if enable_restart:
        reloader = reloader or reload_mod.create_from_config(cfg)

    app = FastAPI(title="Message Relay", version="0.1.0")
    _add_cors(app, cfg)

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("Rejected request to %s: %s", request.url.path, exc.errors())
        return _error(400, "Invalid request body")

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {
            "ok": True,
            "model": client.model,
            "conversations": store.count_pairs(),
            "restart_enabled": enable_restart,
        }

    @app.post("/send-message")
    def send_message(req: Optional[SendMessageRequest] = None):
        if req is None or _blank(req.sender) or _blank(req.recipient) or _blank(req.message):
            return _error(400, "Missing required fields")
        if prompts_cfg.get("require_category") and _blank(req.category) and _blank(req.category_prompt):
            return _error(400, "Missing required fields")

        try:
            selector = _select(req, prompts_cfg)
            phrased = client.rephrase(req.message, selector)
            # Preset keys are echoed as sent, unknown ones included.
            if isinstance(selector, Preset) and not _blank(req.category):
                category = req.category
            else:
                category = selector_label(selector)

            entry = MessageEntry(
                sender=req.sender,
                recipient=req.recipient,
                message=phrased,
                original_message=req.message,
                category=category,
                category_prompt=req.category_prompt,
            )
            store.append(entry)
            logger.info("Relayed message %s -> %s (category=%s)", req.sender, req.recipient, category)

            body: Dict[str, Any] = {
                "sender": req.sender,
                "recipient": req.recipient,
                "message": phrased,
                "phrasedMessage": phrased,
                "originalMessage": req.message,
                "category": category,
            }
            if req.category_prompt is not None:
                body["categoryPrompt"] = req.category_prompt
            return body
        except Exception:
            logger.exception("Failed to send message from %s to %s", req.sender, req.recipient)
            return _error(500, "Failed to send message")

    @app.get("/conversation")
    def conversation(user1: Optional[str] = None, user2: Optional[str] = None):
        if _blank(user1) or _blank(user2):
            return _error(400, "Missing users")
        entries: List[MessageEntry] = store.load(user1, user2)
        return [e.to_dict() for e in entries]

    if enable_restart:
        @app.post("/restart")
        def restart():
            try:
                timestamp = datetime.now(timezone.utc).isoformat()
                reloader.trigger()
            except Exception as exc:
                logger.exception("Restart failed")
                return _error(500, "Restart failed", details=str(exc))
            return {"message": "Restart initiated", "timestamp": timestamp}

    return app
