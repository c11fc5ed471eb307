"""Turn JSON parse failures into line/column diagnostics."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from jsonkit._position import offset_to_line_column
from jsonkit.processor import JsonProcessingError, parse_json

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationError:
    """One diagnostic; line and column are 1-based."""

    line: int
    column: int
    message: str
    severity: Severity = Severity.ERROR


# "(char 17)" from Python's json, "at position 17" from browser engines
_OFFSET_RES = (
    re.compile(r"\(char (\d+)\)"),
    re.compile(r"at position (\d+)"),
)
_LINE_COLUMN_RE = re.compile(r"line (\d+),? column (\d+)", re.IGNORECASE)


def diagnostic_from_message(text: str, message: str) -> ValidationError:
    """Locate a parser *message* inside *text*.

    Prefers an absolute offset, then an explicit line/column pair, and
    falls back to the start of the document.
    """
    for offset_re in _OFFSET_RES:
        m = offset_re.search(message)
        if m:
            line, column = offset_to_line_column(text, int(m.group(1)))
            return ValidationError(line, column, message)

    m = _LINE_COLUMN_RE.search(message)
    if m:
        return ValidationError(int(m.group(1)), int(m.group(2)), message)

    return ValidationError(1, 1, message)


def validate_json(text: str) -> list[ValidationError]:
    """Return at most one diagnostic for *text*; [] when it parses or is blank."""
    if not text or not text.strip():
        return []
    try:
        parse_json(text)
    except JsonProcessingError as e:
        diagnostic = diagnostic_from_message(text, e.parser_message)
        logger.debug(
            "invalid JSON at %d:%d: %s",
            diagnostic.line,
            diagnostic.column,
            diagnostic.message,
        )
        return [diagnostic]
    return []


def validate_json_schema(text: str, schema: object = None) -> list[ValidationError]:
    """Syntax check only; *schema* is accepted but no structural rules run."""
    return validate_json(text)


def error_summary(errors: list[ValidationError]) -> str:
    if not errors:
        return "Valid JSON"

    error_count = sum(1 for e in errors if e.severity == Severity.ERROR)
    warning_count = sum(1 for e in errors if e.severity == Severity.WARNING)

    parts: list[str] = []
    if error_count:
        parts.append(f"{error_count} error{'s' if error_count > 1 else ''}")
    if warning_count:
        parts.append(f"{warning_count} warning{'s' if warning_count > 1 else ''}")
    return ", ".join(parts)
