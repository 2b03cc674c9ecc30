"""Terminal chat client for the tutor API.

Replies are rendered as Markdown with Rich. Action buttons are shown as
numbered choices; picking one puts its label in the transcript while only
its value is sent to the server.
"""

from __future__ import annotations

import logging
import re
import secrets
import string
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table
from rich.text import Text

from config.settings import get_settings


logger = logging.getLogger("finsense.client")

CONNECTION_ERROR_TEXT = "❌ Error: Could not connect to the server."
EMPTY_REPLY_TEXT = "Sorry, I could not process that."

_BR_TAG = re.compile(r"<br\s*/?>", re.IGNORECASE)


def new_session_id() -> str:
    alphabet = string.ascii_lowercase + string.digits
    return "local_test_" + "".join(secrets.choice(alphabet) for _ in range(6))


@dataclass
class Entry:
    role: str
    content: str
    actions: List[Dict[str, str]] = field(default_factory=list)


class TutorClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        session_id: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        settings = get_settings()
        self.session_id = session_id or new_session_id()
        self._http = httpx.Client(
            base_url=base_url or settings.chat_api_url,
            timeout=timeout or settings.client_timeout,
            transport=transport,
        )

    def send(self, chat_input: str) -> Dict[str, Any]:
        response = self._http.post(
            "/api/chat",
            json={"sessionId": self.session_id, "chatInput": chat_input},
        )
        response.raise_for_status()
        return response.json()

    def welcome(self) -> Dict[str, Any]:
        response = self._http.get("/api/welcome")
        response.raise_for_status()
        return response.json()

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "TutorClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def clean_reply_text(text: Optional[str]) -> str:
    return _BR_TAG.sub("\n", text or EMPTY_REPLY_TEXT)


class ChatSession:
    """Transcript bookkeeping on top of a ``TutorClient``."""

    def __init__(self, client: TutorClient) -> None:
        self.client = client
        self.transcript: List[Entry] = []

    def start(self) -> Entry:
        try:
            data = self.client.welcome()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Could not load welcome message: %s", exc)
            entry = Entry(role="assistant", content=CONNECTION_ERROR_TEXT)
        else:
            entry = self._assistant_entry(data)
        self.transcript.append(entry)
        return entry

    def send_text(self, text: str) -> Optional[Entry]:
        return self._submit(text, display=None)

    def click(self, action: Dict[str, str]) -> Optional[Entry]:
        return self._submit(action["value"], display=action["label"])

    def last_actions(self) -> List[Dict[str, str]]:
        for entry in reversed(self.transcript):
            if entry.role == "assistant":
                return entry.actions
        return []

    def _submit(self, value: str, display: Optional[str]) -> Optional[Entry]:
        if not value.strip():
            return None

        self.transcript.append(Entry(role="user", content=display or value))
        try:
            data = self.client.send(value)
            entry = self._assistant_entry(data)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Chat request failed: %s", exc)
            entry = Entry(role="assistant", content=CONNECTION_ERROR_TEXT)
        self.transcript.append(entry)
        return entry

    @staticmethod
    def _assistant_entry(data: Dict[str, Any]) -> Entry:
        actions = [
            {"label": str(a.get("label", "")), "value": str(a.get("value", ""))}
            for a in (data.get("actions") or [])
            if isinstance(a, dict)
        ]
        return Entry(
            role="assistant",
            content=clean_reply_text(data.get("text")),
            actions=actions,
        )


class Renderer:
    """Terminal output using Rich; assistant text is rendered as Markdown."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console: Console = console or Console()

    def user_message(self, message: str) -> None:
        self.console.print(Text.assemble(("You: ", "bold cyan"), message))

    def assistant_message(self, entry: Entry) -> None:
        self.console.print()
        self.console.print(Text("FinSense:", style="bold yellow"))
        self.console.print(Markdown(entry.content))
        if entry.actions:
            self.console.print(self._actions_table(entry.actions))

    def get_user_input(self) -> str:
        return self.console.input("\n[bold cyan]You:[/bold cyan] ")

    @staticmethod
    def _actions_table(actions: List[Dict[str, str]]) -> Table:
        table = Table(show_header=False, box=None, padding=(0, 1))
        table.add_column(style="bold magenta", justify="right")
        table.add_column()
        for idx, action in enumerate(actions, start=1):
            table.add_row(Text(f"[{idx}]"), Text(action["label"]))
        return table


def main() -> None:
    logging.basicConfig(level=logging.WARNING, format="[%(asctime)s] %(levelname)s - %(message)s")
    renderer = Renderer()
    with TutorClient() as client:
        session = ChatSession(client)
        renderer.assistant_message(session.start())
        while True:
            try:
                line = renderer.get_user_input().strip()
            except (EOFError, KeyboardInterrupt):
                renderer.console.print()
                break
            if line in {"/quit", "/exit"}:
                break

            actions = session.last_actions()
            if line.isdigit() and 1 <= int(line) <= len(actions):
                action = actions[int(line) - 1]
                renderer.user_message(action["label"])
                entry = session.click(action)
            else:
                entry = session.send_text(line)
            if entry is not None:
                renderer.assistant_message(entry)


if __name__ == "__main__":
    main()
