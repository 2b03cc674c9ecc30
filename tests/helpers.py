from __future__ import annotations

import json
import threading
import time
from typing import Any, List

from langchain_core.messages import AIMessage


class RecordingChatModel:
    """Stands in for the chat model; remembers every payload it receives."""

    def __init__(self, *responses: Any, delay: float = 0.0) -> None:
        self.responses: List[Any] = list(responses)
        self.calls: List[list] = []
        self.delay = delay
        self._lock = threading.Lock()

    def invoke(self, messages):
        with self._lock:
            self.calls.append(list(messages))
            response = self.responses.pop(0) if self.responses else ""
        if self.delay:
            time.sleep(self.delay)
        if isinstance(response, Exception):
            raise response
        return AIMessage(content=response)


def reply_json(text: str, *actions: tuple) -> str:
    return json.dumps(
        {"text": text, "actions": [{"label": label, "value": value} for label, value in actions]}
    )
