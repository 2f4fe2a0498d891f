"""Extraction skill: pull structured values out of unstructured text.

The contract is checked twice. Input is validated when the request is
created, before anything downstream runs. Candidate output is validated
after the downstream call: it must be a JSON object holding the target's
field, and every extracted string must appear in the source text. Accepted
output is returned exactly as produced.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import json
from typing import Any, Protocol, Union

from agentguard.models.base import TextBackend
from agentguard.skills.errors import (
    EmptyInput,
    HallucinationDetected,
    InvalidTarget,
    MalformedOutput,
    SchemaViolation,
)
from agentguard.util.logging import get_logger

logger = get_logger("agentguard.skills.extraction")

ENTITY_CATEGORIES = ("people", "organizations", "locations")

ExtractedValue = Union[str, list[str], dict[str, list[str]]]


class ExtractionTarget(str, Enum):
    EMAIL = "email"
    URL = "url"
    DATE = "date"
    ENTITY = "entity"
    NAME = "name"

    @classmethod
    def parse(cls, value: Any) -> "ExtractionTarget":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidTarget(str(value))


@dataclass(frozen=True)
class SkillMetadata:
    name: str
    description: str
    version: str


EXTRACTION_SKILL = SkillMetadata(
    name="extract",
    description="Extract structured information from unstructured text",
    version="1.0.0",
)


@dataclass(frozen=True)
class ExtractionRequest:
    text: str
    target: ExtractionTarget

    def __post_init__(self) -> None:
        if not isinstance(self.text, str) or not self.text:
            raise EmptyInput()
        object.__setattr__(self, "target", ExtractionTarget.parse(self.target))

    @classmethod
    def create(cls, text: str, target: Any) -> "ExtractionRequest":
        """Validate raw input; nothing downstream runs if this raises."""
        return cls(text=text, target=target)

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> "ExtractionRequest":
        """Build a request from the parameters of an ``extract`` skill call."""
        return cls.create(params.get("text") or "", params.get("target"))


@dataclass(frozen=True)
class ExtractionResult:
    target: ExtractionTarget
    value: ExtractedValue

    def to_dict(self) -> dict[str, Any]:
        return {self.target.value: self.value}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


def _string_list(value: Any, where: str) -> list[str]:
    if not isinstance(value, list):
        raise SchemaViolation(f"'{where}' must be a list of strings")
    for item in value:
        if not isinstance(item, str):
            raise SchemaViolation(f"'{where}' must contain only strings, got {item!r}")
    return value


def _extracted_strings(target: ExtractionTarget, value: Any) -> list[str]:
    field = target.value
    if target is ExtractionTarget.ENTITY:
        if not isinstance(value, dict):
            raise SchemaViolation(
                f"'{field}' must be an object with {', '.join(ENTITY_CATEGORIES)} lists"
            )
        strings: list[str] = []
        for category in ENTITY_CATEGORIES:
            if category not in value:
                raise SchemaViolation(f"output missing '{field}.{category}' field")
            strings.extend(_string_list(value[category], f"{field}.{category}"))
        return strings
    if isinstance(value, str):
        return [value]
    return _string_list(value, field)


def validate_extraction_output(request: ExtractionRequest, candidate: str) -> ExtractionResult:
    """Check candidate output against the request; return it unchanged or raise."""
    try:
        payload = json.loads(candidate.strip())
    except json.JSONDecodeError as exc:
        raise MalformedOutput(f"invalid JSON: {exc}") from exc
    except RecursionError as exc:
        raise MalformedOutput("invalid JSON: nesting too deep") from exc
    if not isinstance(payload, dict):
        raise MalformedOutput("output must be a JSON object")
    field = request.target.value
    if field not in payload:
        raise SchemaViolation(f"output missing '{field}' field")
    value = payload[field]
    source = request.text.lower()
    for item in _extracted_strings(request.target, value):
        if item.lower() not in source:
            raise HallucinationDetected(item)
    return ExtractionResult(target=request.target, value=value)


class CandidateSource(Protocol):
    def candidate(self, request: ExtractionRequest) -> str:
        ...


_TARGET_SHAPES = {
    ExtractionTarget.EMAIL: '{"email": ["..."]}',
    ExtractionTarget.URL: '{"url": ["..."]}',
    ExtractionTarget.DATE: '{"date": ["..."]}',
    ExtractionTarget.NAME: '{"name": ["..."]}',
    ExtractionTarget.ENTITY: '{"entity": {"people": [], "organizations": [], "locations": []}}',
}


def build_extraction_prompt(request: ExtractionRequest, corrective: bool = False) -> str:
    lines = [
        f"Extract every {request.target.value} from the text below.",
        f"Respond with JSON only, in exactly this shape: {_TARGET_SHAPES[request.target]}",
        "Copy each value exactly as it appears in the text. Use an empty list when there is none.",
    ]
    if corrective:
        lines.append(
            "CRITICAL: your previous answer was rejected. Output valid JSON only and "
            "never include a value that does not appear verbatim in the text."
        )
    lines.extend(["", "Text:", request.text])
    return "\n".join(lines)


class ModelCandidates:
    """Ask a text backend for candidate output."""

    def __init__(self, backend: TextBackend, corrective: bool = False) -> None:
        self.backend = backend
        self.corrective = corrective

    def candidate(self, request: ExtractionRequest) -> str:
        return self.backend.generate(build_extraction_prompt(request, corrective=self.corrective))


class ExtractionSkill:
    metadata = EXTRACTION_SKILL

    def __init__(self, source: CandidateSource) -> None:
        self.source = source

    def run(self, text: str, target: Any) -> ExtractionResult:
        request = ExtractionRequest.create(text, target)
        return self.run_request(request)

    def run_request(self, request: ExtractionRequest) -> ExtractionResult:
        candidate = self.source.candidate(request)
        result = validate_extraction_output(request, candidate)
        logger.debug("skill.extract target=%s accepted=true", request.target.value)
        return result
