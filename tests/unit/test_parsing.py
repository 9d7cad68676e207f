import pytest

from artbot.errors import MalformedResponseError
from artbot.schemas.records import CritiqueRecord, IdeaRecord
from artbot.utils.parsing import parse_json_from_text, parse_records


def test_fenced_block_is_preferred():
    text = 'Sure! {"ignored": true}\n```json\n[{"a": 1}]\n```\nThanks.'
    assert parse_json_from_text(text) == [{"a": 1}]


def test_bare_json():
    assert parse_json_from_text('  {"a": [1, 2]} ') == {"a": [1, 2]}


def test_json_embedded_in_prose():
    text = 'Here are the ideas: [{"title": "x", "description": "y"}] hope that helps'
    assert parse_json_from_text(text) == [{"title": "x", "description": "y"}]


@pytest.mark.parametrize("text", ["no json here", "```json\n{broken\n```", ""])
def test_unparseable_text_raises(text):
    with pytest.raises(MalformedResponseError):
        parse_json_from_text(text)


def test_records_accept_camel_and_snake_case():
    text = '[{"title": "a", "description": "b", "emotionalImpact": "awe"}, ' \
           '{"title": "c", "description": "d", "emotional_impact": "calm"}]'
    records = parse_records(text, IdeaRecord)
    assert [r.emotional_impact for r in records] == ["awe", "calm"]


def test_single_key_wrapper_is_unwrapped():
    text = '{"ideas": [{"title": "a", "description": "b"}]}'
    assert [r.title for r in parse_records(text, IdeaRecord)] == ["a"]


def test_lone_object_becomes_one_record():
    records = parse_records('{"overallScore": 6.5}', CritiqueRecord)
    assert len(records) == 1
    assert records[0].overall_score == 6.5


def test_unknown_keys_are_kept():
    record = parse_records('[{"title": "a", "description": "b", "mood": "dark"}]', IdeaRecord)[0]
    assert record.model_dump()["mood"] == "dark"


@pytest.mark.parametrize(
    "text",
    [
        "[]",
        '[{"description": "no title"}]',
        '{"overallScore": -1}',
        "42",
    ],
)
def test_invalid_records_raise(text):
    model = CritiqueRecord if "overall" in text else IdeaRecord
    with pytest.raises(MalformedResponseError):
        parse_records(text, model)
