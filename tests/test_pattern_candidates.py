import json

from agentguard.skills.extraction import ExtractionRequest, ExtractionSkill, ExtractionTarget
from agentguard.skills.patterns import PatternCandidates, extract_matches


def test_urls_drop_trailing_punctuation():
    text = "Docs at https://example.com/docs. Mirror: www.example.org, or nothing."
    assert extract_matches(text, ExtractionTarget.URL) == [
        "https://example.com/docs",
        "www.example.org",
    ]


def test_dates_in_common_formats():
    text = "Released 2024-01-15, patched on March 3, 2024 and 4/7/2024; EOL 15 January 2026."
    assert extract_matches(text, ExtractionTarget.DATE) == [
        "2024-01-15",
        "March 3, 2024",
        "4/7/2024",
        "15 January 2026",
    ]


def test_duplicate_matches_are_reported_once_in_order():
    text = "b@x.io, a@x.io, b@x.io"
    assert extract_matches(text, ExtractionTarget.EMAIL) == ["b@x.io", "a@x.io"]


def test_names():
    text = "Ada Lovelace met Charles Babbage."
    assert extract_matches(text, ExtractionTarget.NAME) == ["Ada Lovelace", "Charles Babbage"]


def test_entities_split_into_categories():
    text = "Ada Lovelace worked with Charles Babbage at Analytical Engines Ltd in London."
    assert extract_matches(text, ExtractionTarget.ENTITY) == {
        "people": ["Ada Lovelace", "Charles Babbage"],
        "organizations": ["Analytical Engines Ltd"],
        "locations": ["London"],
    }


def test_entity_without_matches_has_empty_lists():
    skill = ExtractionSkill(PatternCandidates())
    result = skill.run("nothing to see here", "entity")
    assert result.to_dict() == {
        "entity": {"people": [], "organizations": [], "locations": []}
    }


def test_candidate_is_json_for_the_target_field():
    request = ExtractionRequest.create("mail a@b.io", "email")
    assert json.loads(PatternCandidates().candidate(request)) == {"email": ["a@b.io"]}
