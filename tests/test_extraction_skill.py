from __future__ import annotations

import pytest

from agentguard.models.scripted import ScriptedBackend
from agentguard.skills.errors import (
    EmptyInput,
    HallucinationDetected,
    InvalidTarget,
    MalformedOutput,
    SchemaViolation,
)
from agentguard.skills.extraction import (
    ExtractionRequest,
    ExtractionResult,
    ExtractionSkill,
    ExtractionTarget,
    ModelCandidates,
    build_extraction_prompt,
    validate_extraction_output,
)
from agentguard.skills.patterns import PatternCandidates


class CountingSource:
    def __init__(self, candidate: str) -> None:
        self.calls = 0
        self._candidate = candidate

    def candidate(self, request: ExtractionRequest) -> str:
        self.calls += 1
        return self._candidate


def test_target_parsing_is_case_insensitive() -> None:
    assert ExtractionTarget.parse("email") is ExtractionTarget.EMAIL
    assert ExtractionTarget.parse("URL") is ExtractionTarget.URL
    assert ExtractionTarget.parse(" Name ") is ExtractionTarget.NAME


def test_invalid_target_fails_before_any_downstream_call() -> None:
    source = CountingSource('{"phone": []}')
    skill = ExtractionSkill(source)
    with pytest.raises(InvalidTarget) as excinfo:
        skill.run("Call 555-0100", "phone")
    assert excinfo.value.code == "InvalidTarget"
    assert not excinfo.value.retryable
    assert source.calls == 0


def test_empty_input_fails_before_any_downstream_call() -> None:
    backend = ScriptedBackend(['{"email": []}'])
    skill = ExtractionSkill(ModelCandidates(backend))
    with pytest.raises(EmptyInput):
        skill.run("", "email")
    assert backend.calls == 0


def test_direct_construction_validates_too() -> None:
    with pytest.raises(InvalidTarget):
        ExtractionRequest(text="x", target="phone")
    with pytest.raises(EmptyInput):
        ExtractionRequest(text="", target=ExtractionTarget.URL)


def test_request_from_skill_params() -> None:
    request = ExtractionRequest.from_params({"text": "hello@test.com", "target": "email"})
    assert request == ExtractionRequest(text="hello@test.com", target=ExtractionTarget.EMAIL)
    with pytest.raises(EmptyInput):
        ExtractionRequest.from_params({"target": "email"})
    with pytest.raises(InvalidTarget):
        ExtractionRequest.from_params({"text": "x"})


def test_emails_are_extracted() -> None:
    skill = ExtractionSkill(PatternCandidates())
    result = skill.run("Contact support@x.com or sales@x.com", "email")
    assert result.to_dict() == {"email": ["support@x.com", "sales@x.com"]}


def test_no_match_is_an_empty_list() -> None:
    skill = ExtractionSkill(PatternCandidates())
    result = skill.run("Contact us anytime", "email")
    assert result == ExtractionResult(target=ExtractionTarget.EMAIL, value=[])
    assert result.to_dict() == {"email": []}


def test_hallucinated_value_is_named() -> None:
    request = ExtractionRequest.create("Contact us anytime", "email")
    with pytest.raises(HallucinationDetected) as excinfo:
        validate_extraction_output(request, '{"email": "contact@example.com"}')
    assert excinfo.value.value == "contact@example.com"
    assert "contact@example.com" in excinfo.value.reason


def test_wrong_field_is_a_schema_violation() -> None:
    request = ExtractionRequest.create("Contact support@x.com", "email")
    with pytest.raises(SchemaViolation) as excinfo:
        validate_extraction_output(request, '{"emails": ["support@x.com"]}')
    assert "'email'" in str(excinfo.value)


@pytest.mark.parametrize(
    "candidate",
    ['{"email": null}', '{"email": 3}', '{"email": ["a@b.io", 4]}', '{"email": {"x": []}}'],
)
def test_wrong_value_shapes_are_schema_violations(candidate: str) -> None:
    request = ExtractionRequest.create("a@b.io", "email")
    with pytest.raises(SchemaViolation):
        validate_extraction_output(request, candidate)


@pytest.mark.parametrize("candidate", ["not json", "", '["a@b.io"]', '{"email": [}'])
def test_non_object_output_is_malformed(candidate: str) -> None:
    request = ExtractionRequest.create("a@b.io", "email")
    with pytest.raises(MalformedOutput) as excinfo:
        validate_extraction_output(request, candidate)
    assert excinfo.value.retryable


def test_match_is_case_insensitive_and_output_unchanged() -> None:
    request = ExtractionRequest.create("Write to Support@X.com today", "email")
    result = validate_extraction_output(request, '{"email": ["support@x.com"], "note": "x"}')
    assert result.value == ["support@x.com"]


def test_entity_values_are_checked_in_every_category() -> None:
    text = "Ada Lovelace met Charles Babbage in London."
    request = ExtractionRequest.create(text, "entity")
    ok = validate_extraction_output(
        request,
        '{"entity": {"people": ["Ada Lovelace", "Charles Babbage"], '
        '"organizations": [], "locations": ["London"]}}',
    )
    assert ok.value["locations"] == ["London"]
    with pytest.raises(HallucinationDetected) as excinfo:
        validate_extraction_output(
            request,
            '{"entity": {"people": [], "organizations": ["Analytical Engines Ltd"], "locations": []}}',
        )
    assert excinfo.value.value == "Analytical Engines Ltd"


def test_entity_requires_every_category() -> None:
    request = ExtractionRequest.create("Ada Lovelace", "entity")
    with pytest.raises(SchemaViolation):
        validate_extraction_output(request, '{"entity": {"people": ["Ada Lovelace"]}}')
    with pytest.raises(SchemaViolation):
        validate_extraction_output(request, '{"entity": ["Ada Lovelace"]}')


def test_model_candidates_prompt_carries_source_text() -> None:
    backend = ScriptedBackend(['{"url": ["https://example.com"]}'])
    skill = ExtractionSkill(ModelCandidates(backend))
    result = skill.run("See https://example.com for details", "url")
    assert result.value == ["https://example.com"]
    assert backend.calls == 1
    assert "See https://example.com for details" in backend.prompts[0]
    assert '{"url": ["..."]}' in backend.prompts[0]


def test_corrective_prompt_is_stricter() -> None:
    request = ExtractionRequest.create("a@b.io", "email")
    assert "CRITICAL" not in build_extraction_prompt(request)
    assert "CRITICAL" in build_extraction_prompt(request, corrective=True)


def test_deeply_nested_output_is_malformed() -> None:
    request = ExtractionRequest.create("a@b.io", "email")
    depth = 100_000
    with pytest.raises(MalformedOutput) as excinfo:
        validate_extraction_output(request, "[" * depth + "]" * depth)
    assert excinfo.value.retryable
    assert "nesting too deep" in str(excinfo.value)


def test_python_literal_output_is_malformed() -> None:
    request = ExtractionRequest.create("a@b.io", "email")
    with pytest.raises(MalformedOutput):
        validate_extraction_output(request, "{'email': ['a@b.io']}")
