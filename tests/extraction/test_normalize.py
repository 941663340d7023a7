"""Tests for the string-aware normalisation helpers."""

from __future__ import annotations

import json

import pytest

from sitecraft.extraction.normalize import (
    clean,
    complete_delimiters,
    drop_tree_artifacts,
    escape_control_chars,
    last_balanced_prefix,
    parse_lenient,
    remove_trailing_commas,
    scan_structure,
    strip_fences,
)

PAYLOAD = {"files": [{"path": "index.html", "content": "<p>{not [structure]}</p>"}]}


def test_strip_fences_returns_block_body() -> None:
    assert strip_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_fences('```json\n{"a": 1}') == '{"a": 1}'


def test_strip_fences_ignores_fences_inside_json_strings() -> None:
    text = '{"content": "```js\\ncode\\n```"}'

    assert strip_fences(text) == text


def test_strip_fences_allows_braces_in_leading_prose() -> None:
    text = 'Here {is} your site:\n```json\n{"a": 1}\n```'

    assert strip_fences(text) == '{"a": 1}'


def test_drop_tree_artifacts_removes_drawing_lines() -> None:
    text = "├── index.html\n└── styles.css\n{\"a\": 1}"

    assert drop_tree_artifacts(text) == '{"a": 1}'


def test_escape_control_chars_only_touches_strings() -> None:
    text = '{\n"a": "line1\nline2\tend"\n}'

    assert escape_control_chars(text) == '{\n"a": "line1\\nline2\\tend"\n}'


def test_remove_trailing_commas_respects_strings() -> None:
    assert remove_trailing_commas('{"a": [1, 2,], "b": "x,}",}') == '{"a": [1, 2], "b": "x,}"}'


def test_clean_strips_prose_fences_and_commas() -> None:
    raw = "Here is your site:\n```json\n{\"files\": [{\"path\": \"a.html\", \"content\": \"hi\"},]}\n```\nEnjoy!"

    assert json.loads(clean(raw)) == {"files": [{"path": "a.html", "content": "hi"}]}


def test_scan_structure_ignores_brackets_in_strings() -> None:
    scan = scan_structure(json.dumps(PAYLOAD))

    assert scan.balanced
    assert scan.top_level_end == len(json.dumps(PAYLOAD))


@pytest.mark.parametrize("removed", [1, 2, 3])
def test_complete_delimiters_restores_removed_closers(removed: int) -> None:
    full = json.dumps(PAYLOAD)
    truncated = full[:-removed]

    assert json.loads(complete_delimiters(truncated)) == PAYLOAD


def test_complete_delimiters_closes_open_string() -> None:
    text = '{"files": [{"path": "index.html", "content": "<p>hi'

    assert json.loads(complete_delimiters(text)) == {"files": [{"path": "index.html", "content": "<p>hi"}]}


def test_complete_delimiters_repairs_dangling_tokens() -> None:
    assert json.loads(complete_delimiters('{"a": 1, "b":')) == {"a": 1, "b": None}
    assert json.loads(complete_delimiters('{"a": 1,')) == {"a": 1}
    assert json.loads(complete_delimiters('{"a": "x\\')) == {"a": "x"}
    assert json.loads(complete_delimiters('{"a": "caf\\u00')) == {"a": "caf"}


def test_complete_delimiters_drops_half_of_a_surrogate_pair() -> None:
    completed = complete_delimiters('{"a": "Hi \\ud83d')

    assert json.loads(completed) == {"a": "Hi "}
    assert json.loads(complete_delimiters('{"a": "Hi \\ud83d\\ude')) == {"a": "Hi "}


def test_last_balanced_prefix_keeps_complete_entries() -> None:
    text = '{"files": [{"path": "a.html", "content": "x"}, {"path": "b.css", "cont'

    assert json.loads(last_balanced_prefix(text)) == {"files": [{"path": "a.html", "content": "x"}]}
    assert last_balanced_prefix('{"files": [') == ""


def test_parse_lenient_ignores_trailing_text() -> None:
    assert parse_lenient('  {"a": 1} and some chatter') == {"a": 1}
    with pytest.raises(ValueError):
        parse_lenient("   ")
