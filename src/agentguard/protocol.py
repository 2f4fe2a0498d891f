"""Decision protocol: classify raw model output into exactly one decision.

Capability invocations use a single wire shape everywhere: the identifying
key (``"tool"`` or ``"skill"``) sits next to its parameters as top-level
sibling fields, e.g. ``{"tool": "shell", "command": "ls"}``. A field called
``params`` has no special meaning and is passed through like any other.

When an object carries both keys the tool key wins; ``"skill"`` is then
just another parameter of the tool call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from typing import Any, Union

from agentguard.util.json_repair import JsonRepairError, decode_lenient, looks_structured

TOOL_KEY = "tool"
SKILL_KEY = "skill"

PLANNING_PHRASES = (
    "i will",
    "i'll",
    "let me",
    "let's",
    "we can",
    "we will",
    "to do this",
    "first,",
    "step 1",
    "the command",
    "using the",
    "by using",
)
PLANNING_MAX_CHARS = 300


@dataclass(frozen=True)
class InvokeTool:
    name: str
    params: dict[str, Any] = field(default_factory=dict)

    def to_call(self) -> dict[str, Any]:
        return {TOOL_KEY: self.name, **self.params}


@dataclass(frozen=True)
class InvokeSkill:
    name: str
    params: dict[str, Any] = field(default_factory=dict)

    def to_call(self) -> dict[str, Any]:
        return {SKILL_KEY: self.name, **self.params}


@dataclass(frozen=True)
class Done:
    answer: str


@dataclass(frozen=True)
class Inconclusive:
    raw_text: str


Decision = Union[InvokeTool, InvokeSkill, Done, Inconclusive]


def decision_kind(decision: Decision) -> str:
    """Return the wire tag of a decision."""
    if isinstance(decision, InvokeTool):
        return "invoke_tool"
    if isinstance(decision, InvokeSkill):
        return "invoke_skill"
    if isinstance(decision, Done):
        return "done"
    if isinstance(decision, Inconclusive):
        return "inconclusive"
    raise TypeError(f"unknown decision: {decision!r}")


def _name_of(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def _is_planning_prose(text: str) -> bool:
    if len(text) >= PLANNING_MAX_CHARS:
        return False
    lowered = text.lower()
    return any(phrase in lowered for phrase in PLANNING_PHRASES)


def decision_from_payload(payload: dict[str, Any], raw_text: str) -> Decision:
    """Classify an already-decoded object."""
    if TOOL_KEY in payload:
        params = {key: value for key, value in payload.items() if key != TOOL_KEY}
        return InvokeTool(name=_name_of(payload[TOOL_KEY]), params=params)
    if SKILL_KEY in payload:
        params = {key: value for key, value in payload.items() if key != SKILL_KEY}
        return InvokeSkill(name=_name_of(payload[SKILL_KEY]), params=params)
    return Inconclusive(raw_text=raw_text)


def parse_decision(text: str, detect_planning: bool = False) -> Decision:
    """Parse model output into a decision.

    Empty text, malformed objects, non-object JSON and objects without a
    recognized key are ``Inconclusive``. Plain prose is ``Done`` with the
    text unchanged. With ``detect_planning`` short prose that only announces
    what the model intends to do is ``Inconclusive`` as well.
    """
    if not text.strip():
        return Inconclusive(raw_text=text)
    if looks_structured(text):
        try:
            payload = decode_lenient(text)
        except JsonRepairError:
            return Inconclusive(raw_text=text)
        if not isinstance(payload, dict):
            return Inconclusive(raw_text=text)
        return decision_from_payload(payload, text)
    if detect_planning and _is_planning_prose(text):
        return Inconclusive(raw_text=text)
    return Done(answer=text)


def decision_to_wire(decision: Decision) -> dict[str, Any]:
    """Tagged representation used in step messages."""
    kind = decision_kind(decision)
    if isinstance(decision, (InvokeTool, InvokeSkill)):
        return {"type": kind, "call": decision.to_call()}
    if isinstance(decision, Done):
        return {"type": kind, "answer": decision.answer}
    return {"type": kind, "raw_text": decision.raw_text}


def decision_from_wire(payload: dict[str, Any]) -> Decision:
    """Inverse of :func:`decision_to_wire`."""
    kind = payload.get("type")
    if kind in {"invoke_tool", "invoke_skill"}:
        call = payload.get("call")
        key = TOOL_KEY if kind == "invoke_tool" else SKILL_KEY
        if not isinstance(call, dict) or key not in call:
            raise ValueError(f"{kind} decision needs a call object with a '{key}' field")
        params = {name: value for name, value in call.items() if name != key}
        if kind == "invoke_tool":
            return InvokeTool(name=_name_of(call[key]), params=params)
        return InvokeSkill(name=_name_of(call[key]), params=params)
    if kind == "done":
        answer = payload.get("answer")
        if not isinstance(answer, str):
            raise ValueError("done decision needs a string answer")
        return Done(answer=answer)
    if kind == "inconclusive":
        raw_text = payload.get("raw_text")
        if not isinstance(raw_text, str):
            raise ValueError("inconclusive decision needs a string raw_text")
        return Inconclusive(raw_text=raw_text)
    raise ValueError(f"unknown decision type: {kind!r}")
