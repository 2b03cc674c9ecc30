import json
import threading

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from agent.agent import (
    CompletionError,
    _message_text,
    assemble_messages,
    build_llm,
    complete,
    respond,
)
from agent.core.memory import Turn
from agent.core.prompt import SYSTEM_PROMPT, get_system_prompt
from config.settings import Settings
from helpers import RecordingChatModel, reply_json


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.delenv("PROMPT_VARIANT", raising=False)
    monkeypatch.delenv("PROMPT_WINDOW", raising=False)
    return Settings()


def test_assemble_messages_orders_system_history_and_input():
    history = [
        Turn(role="user" if i % 2 == 0 else "assistant", content=f"t{i}") for i in range(10)
    ]
    messages = assemble_messages("SYS", history, "new question")

    assert isinstance(messages[0], SystemMessage)
    assert messages[0].content == "SYS"
    assert [m.content for m in messages[1:-1]] == [f"t{i}" for i in range(2, 10)]
    assert isinstance(messages[1], HumanMessage)
    assert isinstance(messages[2], AIMessage)
    assert isinstance(messages[-1], HumanMessage)
    assert messages[-1].content == "new question"


def test_assemble_messages_with_short_history():
    messages = assemble_messages("SYS", [Turn(role="user", content="only")], "next")
    assert [m.content for m in messages] == ["SYS", "only", "next"]


def test_assemble_messages_does_not_mutate_history():
    history = [Turn(role="user", content="a")]
    assemble_messages("SYS", history, "b")
    assert history == [Turn(role="user", content="a")]


def test_complete_returns_model_text():
    llm = FakeListChatModel(responses=['{"text": "hi", "actions": []}'])
    assert complete(llm, [HumanMessage(content="hello")]) == '{"text": "hi", "actions": []}'


def test_complete_wraps_failures():
    llm = RecordingChatModel(TimeoutError("upstream timed out"))
    with pytest.raises(CompletionError):
        complete(llm, [HumanMessage(content="hello")])


def test_message_text_joins_content_parts():
    parts = [{"type": "text", "text": '{"text": '}, {"type": "text", "text": '"x"}'}]
    assert _message_text(parts) == '{"text": "x"}'
    assert _message_text(None) == ""


def test_second_request_sees_first_exchange(store, settings):
    llm = RecordingChatModel(
        reply_json("Welcome, beginner!", ("What is Money?", "Explain what money represents simply")),
        reply_json("Money is a tool."),
    )

    first = respond(store, llm, "session-1", "set_level_beginner", settings)
    respond(store, llm, "session-1", "Explain what money represents simply", settings)

    second_payload = llm.calls[1]
    assert isinstance(second_payload[0], SystemMessage)
    assert second_payload[0].content == SYSTEM_PROMPT
    assert second_payload[1].content == "set_level_beginner"
    assert isinstance(second_payload[2], AIMessage)
    assert json.loads(second_payload[2].content) == first.model_dump()
    assert second_payload[3].content == "Explain what money represents simply"
    assert len(second_payload) == 4


def test_respond_normalizes_plain_text(store, settings):
    llm = RecordingChatModel("I am not JSON today")
    reply = respond(store, llm, "s", "hello", settings)
    assert reply.text == "I am not JSON today"
    assert reply.actions == []
    stored = store.history("s")
    assert [t.role for t in stored] == ["user", "assistant"]
    assert json.loads(stored[1].content) == {"text": "I am not JSON today", "actions": []}


def test_respond_failure_leaves_history_untouched(store, settings):
    llm = RecordingChatModel(ConnectionError("boom"))
    with pytest.raises(CompletionError):
        respond(store, llm, "s", "hello", settings)
    assert store.history("s") == []


def test_respond_uses_configured_prompt_variant(store, monkeypatch):
    monkeypatch.setenv("PROMPT_VARIANT", "html")
    settings = Settings()
    llm = RecordingChatModel(reply_json("<b>hi</b>"))
    respond(store, llm, "s", "hello", settings)
    assert llm.calls[0][0].content == get_system_prompt("html")


def test_build_llm_requires_api_key(monkeypatch):
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    with pytest.raises(RuntimeError):
        build_llm(Settings())


def _run_in_threads(*targets):
    threads = [threading.Thread(target=t) for t in targets]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)
    return threads


def test_same_session_requests_are_serialized(store, settings):
    llm = RecordingChatModel(reply_json("first"), reply_json("second"), delay=0.2)
    errors = []

    def ask(text):
        def run():
            try:
                respond(store, llm, "x", text, settings)
            except Exception as exc:
                errors.append(exc)

        return run

    _run_in_threads(ask("one"), ask("two"))

    assert errors == []
    assert [len(payload) for payload in llm.calls] == [2, 4]
    assert len(store.history("x")) == 4


def test_different_sessions_do_not_wait_on_each_other(store, settings):
    # Both model calls must be in flight together to get past the barrier.
    barrier = threading.Barrier(2, timeout=2)

    class MeetingChatModel(RecordingChatModel):
        def invoke(self, messages):
            barrier.wait()
            return super().invoke(messages)

    llm = MeetingChatModel(reply_json("a"), reply_json("b"))
    replies = {}

    def ask(session_id):
        def run():
            replies[session_id] = respond(store, llm, session_id, "hi", settings)

        return run

    _run_in_threads(ask("a"), ask("b"))

    assert set(replies) == {"a", "b"}
    assert len(store.history("a")) == 2
    assert len(store.history("b")) == 2
