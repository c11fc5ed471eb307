"""Tests for format, minify, repair and summary."""

import pytest

from jsonkit.processor import (
    REPAIR_RULES,
    JsonProcessingError,
    JsonSummary,
    format_json,
    is_valid_json,
    minify_json,
    parse_json,
    repair_json,
    summarize_json,
)

DOCUMENTS = [
    '{"name":"test","value":123}',
    '[1, 2.5, -3e2, true, false, null]',
    '{"nested": {"list": [{"a": []}, {}]}, "s": "x\\ny"}',
    '"just a string"',
    '{"unicode": "한글 ✓"}',
    '{"big": 1e400, "small": -1e400, "ok": 1.5}',
]


class TestParse:
    """Strict parsing."""

    def test_parse_object(self):
        assert parse_json('{"a": [1, 2]}') == {"a": [1, 2]}

    def test_parse_error_keeps_parser_message(self):
        with pytest.raises(JsonProcessingError) as info:
            parse_json('{"a": }')
        assert "Expecting value" in info.value.parser_message
        assert info.value.position == 6

    def test_nan_rejected(self):
        with pytest.raises(JsonProcessingError):
            parse_json('{"a": NaN}')

    def test_infinity_rejected(self):
        assert not is_valid_json("[Infinity]")

    def test_runaway_nesting_is_parse_error(self):
        assert not is_valid_json("[" * 100000 + "]" * 100000)


class TestFormat:
    """Pretty printing."""

    def test_format_default_indent(self):
        result = format_json('{"name":"test","value":123}')
        assert result == '{\n  "name": "test",\n  "value": 123\n}'

    def test_format_indent_four(self):
        assert format_json('{"a":1}', indent=4) == '{\n    "a": 1\n}'

    def test_format_preserves_key_order(self):
        result = format_json('{"b": 2, "a": 1}')
        assert result.index('"b"') < result.index('"a"')

    def test_format_keeps_unicode(self):
        assert "한글" in format_json('{"name": "한글"}')

    def test_format_blank_input(self):
        assert format_json("") == ""
        assert format_json("  \n\t") == ""

    def test_format_invalid_raises_with_parser_message(self):
        with pytest.raises(JsonProcessingError) as info:
            format_json("{invalid}")
        message = str(info.value)
        assert message.startswith("Cannot format invalid JSON: ")
        assert "Expecting property name" in message

    def test_format_overflowing_number_is_null(self):
        assert format_json('{"big": 1e400}') == '{\n  "big": null\n}'

    def test_format_keeps_finite_floats(self):
        assert format_json("[1.5, -2e3]") == "[\n  1.5,\n  -2000.0\n]"

    def test_format_is_idempotent(self):
        for doc in DOCUMENTS:
            once = format_json(doc)
            assert format_json(once) == once


class TestMinify:
    """Compact serialization."""

    def test_minify_removes_whitespace(self):
        assert minify_json('{ "a" : [1, 2],\n "b": "x y" }') == '{"a":[1,2],"b":"x y"}'

    def test_minify_blank_input(self):
        assert minify_json("   ") == ""

    def test_minify_invalid_raises(self):
        with pytest.raises(JsonProcessingError) as info:
            minify_json("[1,")
        assert str(info.value).startswith("Cannot minify invalid JSON: ")

    def test_minify_overflowing_number_is_null(self):
        assert minify_json("[1e400, -1E400]") == "[null,null]"

    def test_errors_are_processing_errors(self):
        for text in ("[1,", "[NaN]", "[" * 100000):
            with pytest.raises(JsonProcessingError):
                minify_json(text)

    def test_minify_of_format_round_trip(self):
        for doc in DOCUMENTS:
            assert minify_json(format_json(doc)) == minify_json(doc)


class TestRepair:
    """Best-effort repair with a parse gate."""

    def test_quotes_bare_keys(self):
        assert repair_json('{name:"test"}') == '{"name":"test"}'

    def test_irreparable_returns_input(self):
        text = "{name:test]}"
        assert repair_json(text) == text

    def test_single_quoted_value(self):
        assert repair_json("{name: 'x'}") == '{"name":"x"}'

    def test_trailing_comma_object(self):
        assert repair_json('{"a": 1,}') == '{"a": 1}'

    def test_trailing_comma_array(self):
        assert repair_json("[1, 2,\n]") == "[1, 2\n]"

    def test_combined_mistakes(self):
        repaired = repair_json("{a: 1, b: 'two',}")
        assert parse_json(repaired) == {"a": 1, "b": "two"}

    def test_valid_input_untouched(self):
        text = '{"url": "http://x", "a": 1}'
        assert repair_json(text) == text

    def test_blank_input_untouched(self):
        assert repair_json("") == ""
        assert repair_json("  ") == "  "

    def test_repair_is_safe(self):
        for text in ["{{{", "[1, 2", "{a: b c}", "'x'", "{'a': 1}", "]"]:
            result = repair_json(text)
            assert result == text or is_valid_json(result)

    def test_custom_rules(self):
        assert repair_json('{"a": 1,}', rules=REPAIR_RULES[:1]) == '{"a": 1,}'

    def test_rule_names(self):
        assert [r.name for r in REPAIR_RULES] == [
            "quote-bare-keys",
            "single-quoted-values",
            "strip-trailing-commas",
        ]

    def test_rule_apply_is_pure(self):
        rule = REPAIR_RULES[2]
        assert rule.apply("[1,]") == "[1]"
        assert rule.apply("[1,]") == "[1]"


class TestSummary:
    """Structural summary."""

    def test_counts(self):
        s = summarize_json('{"a": {"b": [1, 2]}, "c": 3}')
        assert s == JsonSummary(
            valid=True, key_count=3, depth=3, array_count=1, object_count=2
        )

    def test_array_of_objects(self):
        s = summarize_json('[{"a": 1}, {"b": 2, "c": 3}]')
        assert s.key_count == 3
        assert s.object_count == 2
        assert s.array_count == 1
        assert s.depth == 2

    def test_scalar_root(self):
        s = summarize_json("42")
        assert s.valid is True
        assert s.depth == 1
        assert s.key_count == s.array_count == s.object_count == 0

    def test_blank_input(self):
        assert summarize_json("") == JsonSummary()

    def test_invalid_input(self):
        s = summarize_json('{"a": }')
        assert s.valid is False
        assert (s.key_count, s.depth, s.array_count, s.object_count) == (0, 0, 0, 0)
        assert s.error

    def test_depth_at_ceiling(self):
        s = summarize_json("[" * 100 + "]" * 100)
        assert s.valid is True
        assert s.depth == 100
        assert s.error is None

    def test_depth_beyond_ceiling(self):
        s = summarize_json("[" * 101 + "]" * 101)
        assert s.valid is True
        assert s.error is not None
        assert "100" in s.error
        assert s.depth == 100

    def test_custom_ceiling(self):
        s = summarize_json('{"a": {"b": {}}}', max_depth=2)
        assert s.valid is True
        assert s.error is not None
