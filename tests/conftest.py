from __future__ import annotations

from typing import List

import pytest
from fastapi.testclient import TestClient

from agent.core.memory import InMemoryConversationStore
from helpers import RecordingChatModel


@pytest.fixture
def store() -> InMemoryConversationStore:
    return InMemoryConversationStore(limit=10)


@pytest.fixture
def fake_llm() -> RecordingChatModel:
    return RecordingChatModel()


@pytest.fixture
def factory_calls() -> List[int]:
    return []


@pytest.fixture
def api_client(store, fake_llm, factory_calls):
    from app.main import app, get_llm_factory, get_store

    def _factory():
        factory_calls.append(1)
        return fake_llm

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_llm_factory] = lambda: _factory
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
