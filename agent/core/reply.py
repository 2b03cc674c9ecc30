from __future__ import annotations

import json
from dataclasses import dataclass
from typing import List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator


DEFAULT_REPLY_TEXT = "Sorry, I could not process that."
MAX_ACTIONS = 4


class Action(BaseModel):
    label: str = Field(..., description="Button text shown to the user")
    value: str = Field(..., description="Hidden prompt sent back to the model")


class TutorReply(BaseModel):
    text: str
    actions: List[Action] = Field(default_factory=list)

    @field_validator("actions")
    @classmethod
    def _cap_actions(cls, actions: List[Action]) -> List[Action]:
        return actions[:MAX_ACTIONS]


@dataclass(frozen=True)
class Parsed:
    reply: TutorReply


@dataclass(frozen=True)
class Unparsed:
    raw: str


def _strip_code_fences(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("```"):
        stripped = stripped[3:]
        if stripped.startswith("json"):
            stripped = stripped[len("json"):].lstrip()
        stripped = stripped.rstrip()
        if stripped.endswith("```"):
            stripped = stripped[:-3]
    return stripped.strip()


def _extract_json_segment(text: str) -> Optional[str]:
    start = text.find("{")
    if start == -1:
        return None
    stack = 0
    in_string = False
    escaped = False
    for idx in range(start, len(text)):
        ch = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            stack += 1
        elif ch == "}":
            stack -= 1
            if stack == 0:
                return text[start: idx + 1]
    return None


def parse_completion(raw: Optional[str]) -> Union[Parsed, Unparsed]:
    """Validate model output against the reply schema.

    The model is only asked (not forced) to answer in JSON, so replies
    wrapped in code fences or surrounded by prose are unwrapped first.
    Anything that still does not match ``TutorReply`` is ``Unparsed``.
    """
    raw = raw or ""
    cleaned = _strip_code_fences(raw)
    candidates = [cleaned]
    segment = _extract_json_segment(cleaned)
    if segment and segment != cleaned:
        candidates.append(segment)

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        try:
            return Parsed(TutorReply.model_validate(data))
        except ValidationError:
            continue
    return Unparsed(raw)


def normalize_completion(raw: Optional[str]) -> TutorReply:
    result = parse_completion(raw)
    if isinstance(result, Parsed):
        return result.reply
    text = result.raw if result.raw.strip() else DEFAULT_REPLY_TEXT
    return TutorReply(text=text, actions=[])
