import json
import logging

import pytest

from taskplanner.utils import JsonFormatter, extract_json_object, to_prompt_json


def test_extract_bare_json():
    assert extract_json_object('{"a": 1}') == {"a": 1}


def test_extract_fenced_json():
    text = 'Here you go:\n```json\n{"steps": []}\n```\nAnything else?'
    assert extract_json_object(text) == {"steps": []}


def test_extract_json_embedded_in_prose():
    text = 'Sure! {"role": "writer", "confidence": 0.8} Hope that helps.'
    assert extract_json_object(text)["role"] == "writer"


@pytest.mark.parametrize("text", ["", "   ", "no json here", "[1, 2, 3]", "{not json}"])
def test_extract_rejects_unrecoverable_text(text):
    with pytest.raises(ValueError):
        extract_json_object(text)


def test_to_prompt_json_keeps_unicode_and_stringifies_unknown_types():
    rendered = to_prompt_json({"name": "café", "obj": object})
    assert "café" in rendered
    assert json.loads(rendered)["obj"].startswith("<class")


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord(
        "taskplanner.test", logging.INFO, __file__, 1, "plan %s", ("p1",), None
    )
    record.extra_fields = {"plan_id": "p1"}
    entry = json.loads(JsonFormatter().format(record))
    assert entry["message"] == "plan p1"
    assert entry["plan_id"] == "p1"
    assert entry["level"] == "INFO"
