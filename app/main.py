from __future__ import annotations

import logging
from functools import lru_cache
from typing import Callable, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from langchain_core.language_models import BaseChatModel
from pydantic import BaseModel, Field

from agent.agent import CompletionError, build_llm, respond
from agent.core.memory import ConversationStore, InMemoryConversationStore
from agent.core.prompt import LEVEL_ACTIONS, WELCOME_TEXT
from agent.core.reply import TutorReply
from config.settings import Settings, get_settings


MISSING_FIELDS_ERROR = "sessionId and chatInput required"
INTERNAL_ERROR = "Failed to process request"

settings = get_settings()

logging.basicConfig(level=settings.log_level, format="[%(asctime)s] %(levelname)s - %(message)s")
logger = logging.getLogger("finsense")

app = FastAPI(title="FinSense Finance Tutor", version="1.0.0")

# CORS: allow local frontend during development
if settings.app_env.lower() in {"dev", "development", "local"}:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


class ChatRequest(BaseModel):
    sessionId: Optional[str] = Field(None, description="Unique identifier for the chat session")
    chatInput: Optional[str] = Field(None, description="User text or the value of a clicked action")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected request to %s: %s", request.url.path, exc.errors())
    return _error(400, MISSING_FIELDS_ERROR)


@lru_cache(maxsize=1)
def get_store() -> ConversationStore:
    return InMemoryConversationStore(limit=get_settings().history_limit)


def get_llm_factory() -> Callable[[], BaseChatModel]:
    return build_llm


@app.post("/api/chat", response_model=TutorReply)
def chat(
    req: ChatRequest,
    store: ConversationStore = Depends(get_store),
    llm_factory: Callable[[], BaseChatModel] = Depends(get_llm_factory),
    settings: Settings = Depends(get_settings),
):
    if not req.sessionId or not req.chatInput:
        return _error(400, MISSING_FIELDS_ERROR)

    try:
        logger.info(
            "Incoming chat: session_id=%s input_len=%s model=%s variant=%s",
            req.sessionId,
            len(req.chatInput),
            settings.gemini_model,
            settings.prompt_variant,
        )
        llm = llm_factory()
        return respond(store, llm, req.sessionId, req.chatInput, settings)
    except CompletionError as e:
        logger.exception("Upstream completion failed: %s", e)
        return _error(500, INTERNAL_ERROR)
    except Exception as e:
        logger.exception("Chat processing failed: %s", e)
        return _error(500, INTERNAL_ERROR)


@app.get("/api/welcome", response_model=TutorReply)
def welcome() -> TutorReply:
    return TutorReply.model_validate({"text": WELCOME_TEXT, "actions": LEVEL_ACTIONS})


@app.get("/health")
def health():
    return {"status": "ok"}
