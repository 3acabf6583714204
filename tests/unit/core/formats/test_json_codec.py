from __future__ import annotations

"""
Unit tests for the layout-preserving JSON codec.

Verifies:
1. Byte-identical round trips for irregular layouts, CRLF and BOM.
2. Member removal keeps every other byte in place.
3. Strict parsing errors (trailing commas, duplicates, non-object roots).
"""

import codecs

import pytest

from keyhunt.core.formats import parse, serialize
from keyhunt.core.formats.json_codec import parse_json, render_json
from keyhunt.domain.errors import ParseError
from keyhunt.domain.resource_tree import remove_child

# -----------------------------------------------------------------------------
# ROUND TRIP
# -----------------------------------------------------------------------------

@pytest.mark.parametrize("text", [
    '{}',
    '{}\n',
    '{"a": "1", "b": {"c": 2, "d": [1, 2, {"x": null}]}}',
    '{\n  "a": "1",\n    "b":{\n"c"  :  true\n      }\n}\n',
    '  {"esc": "\\u00e9\\n", "num": 1.50e3}  \n\n',
    '{\n\t"tab": "x"\n}',
])
def test_round_trip_is_identical(text: str) -> None:
    tree = parse_json(text)
    assert render_json(tree) == text


def test_round_trip_crlf_and_bom_bytes() -> None:
    data = codecs.BOM_UTF8 + b'{\r\n  "a": "1",\r\n  "b": "2"\r\n}\r\n'
    tree = parse(data, "en.json")

    assert tree.style.bom is True
    assert tree.style.newline == "\r\n"
    assert serialize(tree) == data


def test_style_detection() -> None:
    tree = parse_json('{\n    "a": {\n        "b": 1\n    }\n}')
    assert tree.style.indent == "    "
    assert tree.style.trailing_newline is False
    assert tree.family == "json"

# -----------------------------------------------------------------------------
# REMOVAL
# -----------------------------------------------------------------------------

_DOC = '{\n  "a": "1",\n  "b": "2",\n  "c": "3"\n}\n'


def test_remove_middle_member() -> None:
    tree = parse_json(_DOC)
    remove_child(tree.root, "b")
    assert render_json(tree) == '{\n  "a": "1",\n  "c": "3"\n}\n'


def test_remove_last_member() -> None:
    tree = parse_json(_DOC)
    remove_child(tree.root, "c")
    assert render_json(tree) == '{\n  "a": "1",\n  "b": "2"\n}\n'


def test_remove_first_member() -> None:
    tree = parse_json(_DOC)
    remove_child(tree.root, "a")
    assert render_json(tree) == '{\n  "b": "2",\n  "c": "3"\n}\n'


def test_removing_every_member_renders_empty_object() -> None:
    tree = parse_json('{"a": {"b": "x"}}\n')
    remove_child(tree.root, "a")
    assert render_json(tree) == "{}\n"


def test_untouched_empty_object_keeps_inner_whitespace() -> None:
    text = '{"keep": { }, "drop": 1}'
    tree = parse_json(text)
    remove_child(tree.root, "drop")
    assert render_json(tree) == '{"keep": { }}'

# -----------------------------------------------------------------------------
# ERRORS
# -----------------------------------------------------------------------------

@pytest.mark.parametrize("text", [
    '',
    '[1, 2]',
    '"just a string"',
    '{"a": 1,}',
    '{"a": 1 // comment\n}',
    '{"a": 1} trailing',
    "{'a': 1}",
    '{"a": }',
    '{"a": 1',
])
def test_malformed_documents_raise_parse_error(text: str) -> None:
    with pytest.raises(ParseError):
        parse_json(text, path="bad.json")


def test_duplicate_keys_raise_parse_error() -> None:
    with pytest.raises(ParseError) as exc:
        parse_json('{"a": {"b": 1, "b": 2}}', path="dup.json")
    assert "a.b" in exc.value.reason
    assert exc.value.path == "dup.json"


def test_invalid_utf8_raises_parse_error() -> None:
    with pytest.raises(ParseError):
        parse(b'{"a": "\xff"}', "en.json")
