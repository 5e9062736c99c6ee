"""Tests for novelsmith.extraction."""

import pytest

from novelsmith.extraction import extract_json_block, parse_json_block, strip_fences


class TestStripFences:

    def test_removes_language_fence(self):
        assert strip_fences("```json\n{\"a\": 1}\n```") == '{"a": 1}'

    def test_removes_bare_fence(self):
        assert strip_fences("```\nplain text\n```") == "plain text"

    def test_leaves_unfenced_text(self):
        assert strip_fences("  just prose  ") == "just prose"

    def test_empty(self):
        assert strip_fences("") == ""
        assert strip_fences(None) == ""


class TestExtractJsonBlock:

    def test_fenced_array(self):
        assert extract_json_block("```json\n[1,2]\n```") == "[1,2]"

    def test_no_structure(self):
        assert extract_json_block("no structure here") is None

    def test_empty_input(self):
        assert extract_json_block("") is None
        assert extract_json_block(None) is None

    def test_object_with_preamble_and_trailer(self):
        raw = 'Here is the result: {"score": 7} Hope that helps!'
        assert extract_json_block(raw) == '{"score": 7}'

    def test_ignores_brackets_inside_strings(self):
        raw = 'x {"quote": "she said }] and left", "n": [1]} y'
        assert extract_json_block(raw) == '{"quote": "she said }] and left", "n": [1]}'

    def test_escaped_quote_inside_string(self):
        raw = '{"q": "a \\"}\\" b"}'
        assert extract_json_block(raw) == raw

    def test_nested_structures(self):
        raw = 'prefix [{"a": {"b": [1, 2]}}, {"c": 3}] suffix'
        assert extract_json_block(raw) == '[{"a": {"b": [1, 2]}}, {"c": 3}]'

    def test_first_of_array_and_object_wins(self):
        assert extract_json_block('[1] {"a": 2}') == "[1]"
        assert extract_json_block('{"a": [2]} [1]') == '{"a": [2]}'

    def test_unbalanced_start_is_skipped(self):
        assert extract_json_block('{ broken [1, 2]') == "[1, 2]"

    def test_mismatched_brackets(self):
        assert extract_json_block("{ ] }") is None


class TestParseJsonBlock:

    def test_decodes(self):
        assert parse_json_block('```json\n{"a": [1, 2]}\n```') == {"a": [1, 2]}

    def test_default_when_missing(self):
        assert parse_json_block("nothing", default={}) == {}

    @pytest.mark.parametrize("raw", ["{'single': 'quotes'}", "[1, 2,]"])
    def test_default_when_invalid(self, raw):
        assert parse_json_block(raw, default="fallback") == "fallback"
