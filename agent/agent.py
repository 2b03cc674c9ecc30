from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from agent.core.memory import ConversationStore, Turn
from agent.core.prompt import get_system_prompt
from agent.core.reply import TutorReply, normalize_completion
from config.settings import Settings, get_settings


logger = logging.getLogger("finsense.agent")


class CompletionError(RuntimeError):
    """The chat model could not produce a completion."""


def build_llm(settings: Optional[Settings] = None) -> BaseChatModel:
    settings = settings or get_settings()
    if not settings.google_api_key:
        raise RuntimeError(
            "GOOGLE_API_KEY not set. Please configure it in environment or .env"
        )

    return ChatGoogleGenerativeAI(
        model=settings.gemini_model,
        google_api_key=settings.google_api_key,
        temperature=settings.temperature,
        top_p=settings.top_p,
    )


def to_lc_messages(history: Sequence[Turn]) -> List[BaseMessage]:
    messages: List[BaseMessage] = []
    for turn in history:
        if turn.role == "assistant":
            messages.append(AIMessage(content=turn.content))
        else:
            messages.append(HumanMessage(content=turn.content))
    return messages


def assemble_messages(
    system_prompt: str,
    history: Sequence[Turn],
    chat_input: str,
    window: int = 8,
) -> List[BaseMessage]:
    recent = list(history)[-window:] if window > 0 else []
    return [
        SystemMessage(content=system_prompt),
        *to_lc_messages(recent),
        HumanMessage(content=chat_input),
    ]


def _message_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    # Some providers return a list of content parts
    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text") or "")
    return "".join(parts)


def complete(llm: BaseChatModel, messages: List[BaseMessage]) -> str:
    try:
        result = llm.invoke(messages)
    except Exception as exc:
        raise CompletionError(f"Chat completion failed: {exc}") from exc
    return _message_text(getattr(result, "content", ""))


def respond(
    store: ConversationStore,
    llm: BaseChatModel,
    session_id: str,
    chat_input: str,
    settings: Optional[Settings] = None,
) -> TutorReply:
    settings = settings or get_settings()
    system_prompt = get_system_prompt(settings.prompt_variant)

    with store.session_lock(session_id):
        history = store.history(session_id)
        messages = assemble_messages(
            system_prompt, history, chat_input, window=settings.prompt_window
        )
        logger.info(
            "Calling model: session_id=%s history_turns=%s payload_messages=%s",
            session_id,
            len(history),
            len(messages),
        )
        raw = complete(llm, messages)
        reply = normalize_completion(raw)

        store.append(session_id, Turn(role="user", content=chat_input))
        store.append(
            session_id, Turn(role="assistant", content=reply.model_dump_json())
        )

    logger.info(
        "Model responded: session_id=%s raw_chars=%s actions=%s",
        session_id,
        len(raw),
        len(reply.actions),
    )
    return reply
