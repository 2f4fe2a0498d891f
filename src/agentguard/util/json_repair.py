"""Lenient decoding of JSON objects emitted by small models."""

from __future__ import annotations

import ast
import json
import re
from typing import Any


_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_SINGLE_QUOTED_RE = re.compile(r"(?<!\\)'([^'\\]*(?:\\.[^'\\]*)*)'")


class JsonRepairError(ValueError):
    """Raised when text cannot be decoded even after repair."""


def looks_structured(text: str) -> bool:
    """Return True when text is shaped like a JSON document or a ```json block."""
    stripped = text.strip()
    return stripped.startswith(("{", "[")) or stripped.lower().startswith("```json")


def unfence(text: str) -> str:
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def _balanced_span(text: str) -> str:
    opening = next((idx for idx, char in enumerate(text) if char in "{["), None)
    if opening is None:
        raise JsonRepairError("No JSON object or array found")
    depth = 0
    in_string = False
    escaped = False
    for idx in range(opening, len(text)):
        char = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char in "{[":
            depth += 1
        elif char in "}]":
            depth -= 1
            if depth == 0:
                return text[opening : idx + 1]
    raise JsonRepairError("Unbalanced JSON braces")


def _candidates(block: str) -> list[str]:
    without_commas = _TRAILING_COMMA_RE.sub(r"\1", block)
    requoted = _TRAILING_COMMA_RE.sub(r"\1", _SINGLE_QUOTED_RE.sub(r'"\1"', without_commas))
    return [without_commas, requoted]


def repair_json(text: str) -> Any:
    """Decode JSON after stripping fences, trailing commas and single quotes."""
    block = _balanced_span(unfence(text))
    last_error: Exception | None = None
    for candidate in _candidates(block):
        try:
            return json.loads(candidate)
        except (json.JSONDecodeError, RecursionError) as exc:
            last_error = exc
        try:
            # literal_eval also yields sets, bytes and complex; keep only JSON data
            return json.loads(json.dumps(ast.literal_eval(candidate)))
        except (ValueError, SyntaxError, TypeError, MemoryError, RecursionError) as exc:
            last_error = exc
    raise JsonRepairError(f"Failed to repair JSON: {last_error}")


def decode_lenient(text: str) -> Any:
    """Strict decode first, repaired decode second."""
    try:
        return json.loads(text.strip())
    except (json.JSONDecodeError, RecursionError):
        return repair_json(text)
