"""Deterministic regex candidates for the extraction skill.

Useful offline and in tests; the output still goes through the same
contract checks as model output.
"""

from __future__ import annotations

import json
import re
from typing import Any

from agentguard.skills.extraction import ENTITY_CATEGORIES, ExtractionRequest, ExtractionTarget

_MONTHS = (
    r"(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?|Aug(?:ust)?"
    r"|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)"
)

EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
URL_RE = re.compile(r"\b(?:https?://|www\.)[^\s<>\"'()\[\]]+", re.IGNORECASE)
DATE_RE = re.compile(
    r"\b(?:\d{4}-\d{2}-\d{2}"
    r"|\d{1,2}/\d{1,2}/\d{2,4}"
    rf"|{_MONTHS}\.?\s+\d{{1,2}}(?:st|nd|rd|th)?,?\s+\d{{4}}"
    rf"|\d{{1,2}}(?:st|nd|rd|th)?\s+{_MONTHS}\.?,?\s+\d{{4}})\b"
)
NAME_RE = re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z]\.)?(?:\s+[A-Z][a-z]+)+\b")
ORGANIZATION_RE = re.compile(
    r"\b(?:[A-Z][\w&-]*\s+)+(?:Inc|Corp|Corporation|LLC|Ltd|GmbH|Company|Foundation|University)\b"
)
LOCATION_RE = re.compile(r"\b(?:in|at|from|near)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)")

_TRAILING_PUNCTUATION = ".,;:!?"


def _unique(values: list[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


def _entities(text: str) -> dict[str, list[str]]:
    organizations = _unique([match.group(0) for match in ORGANIZATION_RE.finditer(text)])
    locations = [
        place
        for place in _unique([match.group(1) for match in LOCATION_RE.finditer(text)])
        if not any(place in org for org in organizations)
    ]
    taken = set(locations)
    people = [
        name
        for name in _unique([match.group(0) for match in NAME_RE.finditer(text)])
        if name not in taken and not any(name in org for org in organizations)
    ]
    found = {"people": people, "organizations": organizations, "locations": locations}
    return {category: found[category] for category in ENTITY_CATEGORIES}


def extract_matches(text: str, target: ExtractionTarget) -> Any:
    if target is ExtractionTarget.EMAIL:
        return _unique([match.group(0) for match in EMAIL_RE.finditer(text)])
    if target is ExtractionTarget.URL:
        return _unique(
            [match.group(0).rstrip(_TRAILING_PUNCTUATION) for match in URL_RE.finditer(text)]
        )
    if target is ExtractionTarget.DATE:
        return _unique([match.group(0) for match in DATE_RE.finditer(text)])
    if target is ExtractionTarget.NAME:
        return _unique([match.group(0) for match in NAME_RE.finditer(text)])
    if target is ExtractionTarget.ENTITY:
        return _entities(text)
    raise TypeError(f"unknown extraction target: {target!r}")


class PatternCandidates:
    """Candidate source backed by regular expressions instead of a model."""

    def candidate(self, request: ExtractionRequest) -> str:
        value = extract_matches(request.text, request.target)
        return json.dumps({request.target.value: value}, ensure_ascii=False)
