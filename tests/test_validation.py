"""Tests for JSON diagnostics."""

from jsonkit.validation import (
    Severity,
    ValidationError,
    diagnostic_from_message,
    error_summary,
    validate_json,
    validate_json_schema,
)


class TestValidateJson:
    """Parse failures become a single positioned diagnostic."""

    def test_valid_document(self):
        assert validate_json('{"a": [1, 2, {"b": null}]}') == []

    def test_blank_document(self):
        assert validate_json("") == []
        assert validate_json(" \n ") == []

    def test_unquoted_key_position(self):
        errors = validate_json('{"name": "test", value: 123}')
        assert len(errors) == 1
        error = errors[0]
        assert error.severity == Severity.ERROR
        assert error.severity == "error"
        assert (error.line, error.column) == (1, 18)

    def test_multiline_position(self):
        errors = validate_json('{\n  "a": 1,\n  "b": \n}')
        assert len(errors) == 1
        assert (errors[0].line, errors[0].column) == (4, 1)

    def test_message_from_parser(self):
        errors = validate_json("[1, 2")
        assert "Expecting" in errors[0].message

    def test_invalid_documents_yield_one_error(self):
        for text in ["{", "[1,]", "{'a': 1}", "nul", '{"a" 1}', "[1] [2]"]:
            errors = validate_json(text)
            assert len(errors) == 1
            assert errors[0].severity == Severity.ERROR

    def test_error_without_position_falls_back_to_start(self):
        errors = validate_json('{"a": NaN}')
        assert len(errors) == 1
        assert (errors[0].line, errors[0].column) == (1, 1)

    def test_schema_variant_checks_syntax_only(self):
        schema = {"type": "object", "required": ["x"]}
        assert validate_json_schema("{}", schema) == []
        assert len(validate_json_schema("{", schema)) == 1


class TestDiagnosticFromMessage:
    """Position extraction preference order."""

    def test_char_offset(self):
        d = diagnostic_from_message("ab\ncdef", "Expecting ',' delimiter: line 9 column 9 (char 5)")
        assert (d.line, d.column) == (2, 3)

    def test_browser_position(self):
        d = diagnostic_from_message("ab\ncdef", "Unexpected token } in JSON at position 4")
        assert (d.line, d.column) == (2, 2)

    def test_explicit_line_column(self):
        d = diagnostic_from_message("x", "Unexpected end of input at line 3, column 7")
        assert (d.line, d.column) == (3, 7)

    def test_fallback(self):
        d = diagnostic_from_message("x", "something went wrong")
        assert d == ValidationError(1, 1, "something went wrong", Severity.ERROR)


class TestErrorSummary:
    """Human readable summary of diagnostics."""

    def test_no_errors(self):
        assert error_summary([]) == "Valid JSON"

    def test_single_error(self):
        assert error_summary([ValidationError(1, 1, "x")]) == "1 error"

    def test_errors_and_warning(self):
        errors = [
            ValidationError(1, 1, "x"),
            ValidationError(2, 1, "y"),
            ValidationError(3, 1, "z", Severity.WARNING),
        ]
        assert error_summary(errors) == "2 errors, 1 warning"

    def test_warnings_only(self):
        errors = [
            ValidationError(1, 1, "x", Severity.WARNING),
            ValidationError(1, 2, "y", Severity.WARNING),
        ]
        assert error_summary(errors) == "2 warnings"
