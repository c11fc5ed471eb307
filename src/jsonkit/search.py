"""Find and replace over raw document text."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchOptions:
    case_sensitive: bool = False
    whole_word: bool = False
    use_regex: bool = False


@dataclass(frozen=True)
class Match:
    """One occurrence; line and column are 1-based."""

    line: int
    column: int
    length: int
    text: str


@dataclass(frozen=True)
class ReplaceResult:
    text: str
    replaced_count: int


def escape_query(text: str) -> str:
    """Escape regex metacharacters so *text* matches literally."""
    return re.escape(text)


def is_valid_regex(pattern: str) -> bool:
    try:
        re.compile(pattern)
    except re.error:
        return False
    return True


def compile_query(query: str, options: SearchOptions) -> re.Pattern[str] | None:
    """Build the matcher for *query* under *options*.

    Returns None for an invalid regular expression.
    """
    pattern = query if options.use_regex else escape_query(query)
    if options.whole_word:
        pattern = rf"\b(?:{pattern})\b"
    flags = 0 if options.case_sensitive else re.IGNORECASE

    try:
        return re.compile(pattern, flags)
    except re.error as e:
        logger.debug("invalid search pattern %r: %s", query, e)
        return None


def _is_noop(text: str, query: str) -> bool:
    return not text or not query


def _find_matches(text: str, regex: re.Pattern[str]) -> list[Match]:
    matches: list[Match] = []
    for row, line in enumerate(text.split("\n"), 1):
        # finditer moves one position past an empty match, so zero-width
        # patterns always make progress.
        for m in regex.finditer(line):
            matches.append(Match(row, m.start() + 1, m.end() - m.start(), m.group()))
    return matches


def search(
    text: str, query: str, options: SearchOptions | None = None
) -> list[Match]:
    """Return every non-overlapping match, left to right, line by line."""
    if _is_noop(text, query):
        return []
    regex = compile_query(query, options or SearchOptions())
    if regex is None:
        return []
    return _find_matches(text, regex)


def replace(
    text: str,
    query: str,
    replacement: str,
    options: SearchOptions | None = None,
    replace_all: bool = False,
    index: int = 0,
) -> ReplaceResult:
    """Replace all matches, or only the match number *index* (0-based).

    *replacement* is inserted literally.
    """
    if _is_noop(text, query):
        return ReplaceResult(text, 0)
    regex = compile_query(query, options or SearchOptions())
    if regex is None:
        return ReplaceResult(text, 0)

    if replace_all:
        lines = text.split("\n")
        total = 0
        for i, line in enumerate(lines):
            lines[i], count = regex.subn(lambda _m: replacement, line)
            total += count
        return ReplaceResult("\n".join(lines), total)

    matches = _find_matches(text, regex)
    if not 0 <= index < len(matches):
        return ReplaceResult(text, 0)
    target = matches[index]
    new_text = replace_at(
        text, target.line, target.column, target.length, replacement
    )
    return ReplaceResult(new_text, 1)


def replace_at(
    text: str, line: int, column: int, length: int, replacement: str
) -> str:
    """Replace *length* characters at a known (line, column)."""
    lines = text.split("\n")
    if line < 1 or line > len(lines) or length < 0:
        return text

    target = lines[line - 1]
    start = column - 1
    if start < 0 or start > len(target):
        return text

    lines[line - 1] = target[:start] + replacement + target[start + length :]
    return "\n".join(lines)
