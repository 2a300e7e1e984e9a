"""Unit tests for parse_json_safely."""

from sheetlink.utils.json_parser import parse_json_safely


def test_plain_json():
    assert parse_json_safely('{"a": 1}') == {"a": 1}


def test_code_fence_is_stripped():
    assert parse_json_safely('```json\n[{"page_number": 1}]\n```') == [{"page_number": 1}]


def test_prose_around_payload():
    text = 'Here is the title block:\n{"sheet_number": "A-101"}\nLet me know if you need more.'

    assert parse_json_safely(text) == {"sheet_number": "A-101"}


def test_unparseable_text():
    assert parse_json_safely("no structured data") is None
    assert parse_json_safely("") is None
