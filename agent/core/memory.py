"""Server-side conversation memory.

Each session keeps its most recent turns in process memory. Sessions are
created lazily and live until the process exits; only the turn list of a
session is bounded.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List


ROLES = ("user", "assistant")


@dataclass(frozen=True)
class Turn:
    role: str
    content: str

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Unknown turn role: {self.role!r}")


class ConversationStore(ABC):
    """Storage for per-session turn history."""

    @abstractmethod
    def get_or_create(self, session_id: str) -> List[Turn]:
        ...

    @abstractmethod
    def append(self, session_id: str, turn: Turn) -> None:
        ...

    @abstractmethod
    def history(self, session_id: str) -> List[Turn]:
        ...

    @abstractmethod
    def session_lock(self, session_id: str):
        """Context manager serializing work on one session."""


class InMemoryConversationStore(ConversationStore):
    def __init__(self, limit: int = 10) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit
        self._sessions: Dict[str, List[Turn]] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def get_or_create(self, session_id: str) -> List[Turn]:
        with self._guard:
            turns = self._sessions.get(session_id)
            if turns is None:
                turns = self._sessions[session_id] = []
            return turns

    def append(self, session_id: str, turn: Turn) -> None:
        turns = self.get_or_create(session_id)
        with self.session_lock(session_id):
            turns.append(turn)
            # Oldest turns go first
            overflow = len(turns) - self.limit
            if overflow > 0:
                del turns[:overflow]

    def history(self, session_id: str) -> List[Turn]:
        with self._guard:
            turns = self._sessions.get(session_id)
            return list(turns) if turns else []

    @contextmanager
    def session_lock(self, session_id: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = self._locks[session_id] = threading.RLock()
        with lock:
            yield

    def session_count(self) -> int:
        with self._guard:
            return len(self._sessions)
