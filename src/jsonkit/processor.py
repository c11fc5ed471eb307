"""JSON parse, format, minify, repair and structural summary."""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 100


class JsonProcessingError(ValueError):
    """Raised when an operation that requires valid JSON gets invalid input."""

    def __init__(
        self, message: str, parser_message: str = "", position: int | None = None
    ) -> None:
        super().__init__(message)
        self.parser_message: str = parser_message or message
        self.position: int | None = position


def _reject_constant(name: str) -> object:
    # json accepts NaN/Infinity; strict JSON does not.
    raise ValueError(f"Unexpected token {name} is not valid JSON")


def _finite_or_null(literal: str) -> float | None:
    # 1e400 is valid JSON but overflows to inf; written back as null.
    value = float(literal)
    return value if math.isfinite(value) else None


def parse_json(text: str, parse_float=None) -> object:
    """Parse *text* as strict JSON.

    *parse_float* is handed to ``json.loads``. Raises JsonProcessingError
    carrying the parser's own message.
    """
    try:
        return json.loads(
            text, parse_constant=_reject_constant, parse_float=parse_float
        )
    except json.JSONDecodeError as e:
        raise JsonProcessingError(str(e), str(e), e.pos) from e
    except (ValueError, RecursionError) as e:
        raise JsonProcessingError(str(e), str(e)) from e


def _serialize(text: str, action: str, **dump_options) -> str:
    try:
        parsed = parse_json(text, parse_float=_finite_or_null)
    except JsonProcessingError as e:
        raise JsonProcessingError(
            f"Cannot {action} invalid JSON: {e.parser_message}",
            e.parser_message,
            e.position,
        ) from e
    try:
        return json.dumps(parsed, ensure_ascii=False, allow_nan=False, **dump_options)
    except (ValueError, RecursionError) as e:
        raise JsonProcessingError(f"Cannot {action} JSON: {e}", str(e)) from e


def format_json(text: str, indent: int = 2) -> str:
    """Pretty-print *text* with *indent* spaces. Blank input gives "".

    Numbers too large for a float are written as null.
    """
    if not text or not text.strip():
        return ""
    return _serialize(text, "format", indent=indent)


def minify_json(text: str) -> str:
    """Serialize *text* without insignificant whitespace. Blank input gives ""."""
    if not text or not text.strip():
        return ""
    return _serialize(text, "minify", separators=(",", ":"))


def is_valid_json(text: str) -> bool:
    try:
        parse_json(text)
    except JsonProcessingError:
        return False
    return True


# -- Repair ---------------------------------------------------------------


@dataclass(frozen=True)
class RepairRule:
    """A named text rewrite fixing one common authoring mistake."""

    name: str
    pattern: re.Pattern[str]
    replacement: str

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


REPAIR_RULES: tuple[RepairRule, ...] = (
    # { key: 1 } -> { "key": 1 }
    RepairRule(
        "quote-bare-keys",
        re.compile(r"([{,]\s*)(\w+)(\s*:)"),
        r'\1"\2"\3',
    ),
    # { "key": 'value' } -> { "key":"value" }; only a value directly after its key
    RepairRule(
        "single-quoted-values",
        re.compile(r"([{,]\s*)\"?(\w+)\"?\s*:\s*'([^']*)'(\s*[},])"),
        r'\1"\2":"\3"\4',
    ),
    # [1, 2,] -> [1, 2]
    RepairRule(
        "strip-trailing-commas",
        re.compile(r",(\s*[}\]])"),
        r"\1",
    ),
)


def repair_json(text: str, rules: tuple[RepairRule, ...] = REPAIR_RULES) -> str:
    """Try to fix common mistakes in *text*.

    The rewritten text is returned only if it parses; otherwise the input
    comes back unchanged. Never raises.
    """
    if not text or not text.strip():
        return text
    if is_valid_json(text):
        return text

    fixed = text
    for rule in rules:
        fixed = rule.apply(fixed)

    if is_valid_json(fixed):
        logger.debug("repaired JSON with %d rule(s)", len(rules))
        return fixed
    logger.debug("repair failed, keeping original text")
    return text


# -- Summary --------------------------------------------------------------


@dataclass
class JsonSummary:
    """Structural counts for a JSON document."""

    valid: bool = False
    key_count: int = 0
    depth: int = 0
    array_count: int = 0
    object_count: int = 0
    error: str | None = None


class _DepthLimitExceeded(Exception):
    pass


def summarize_json(text: str, max_depth: int = DEFAULT_MAX_DEPTH) -> JsonSummary:
    """Count keys, arrays, objects and the maximum nesting depth of *text*.

    Traversal stops with ``error`` set when nesting goes beyond *max_depth*;
    ``valid`` still reports whether the text parsed.
    """
    if not text or not text.strip():
        return JsonSummary()

    try:
        parsed = parse_json(text)
    except JsonProcessingError as e:
        return JsonSummary(error=e.parser_message)

    summary = JsonSummary(valid=True)

    def traverse(node: object, depth: int) -> None:
        if depth > max_depth:
            raise _DepthLimitExceeded(
                f"JSON nesting deeper than {max_depth} levels"
            )
        summary.depth = max(summary.depth, depth)

        if isinstance(node, list):
            summary.array_count += 1
            for item in node:
                if isinstance(item, (dict, list)):
                    traverse(item, depth + 1)
        elif isinstance(node, dict):
            summary.object_count += 1
            for value in node.values():
                summary.key_count += 1
                if isinstance(value, (dict, list)):
                    traverse(value, depth + 1)

    try:
        traverse(parsed, 1)
    except _DepthLimitExceeded as e:
        logger.debug("summary traversal stopped: %s", e)
        summary.error = str(e)
    except RecursionError:
        logger.debug("summary traversal stopped at depth %d", summary.depth)
        summary.error = f"JSON nesting deeper than {summary.depth} levels"
    return summary
