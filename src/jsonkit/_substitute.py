"""Substitute mixin for JsonWorkbench."""

from __future__ import annotations

import re

from jsonkit.search import SearchOptions, is_valid_regex, replace

_SUBSTITUTE_RE = re.compile(r"^(%|(\d+),(\d+))?s(.)(.*)$")


def split_substitute(rest: str, delim: str) -> list[str]:
    """Split ``old/new/flags`` on *delim*, honouring backslash-escaped delimiters."""
    parts: list[str] = []
    current: list[str] = []
    i = 0
    while i < len(rest):
        if rest[i] == "\\" and i + 1 < len(rest) and rest[i + 1] == delim:
            current.append(delim)
            i += 2
        elif rest[i] == delim:
            parts.append("".join(current))
            current = []
            i += 1
        else:
            current.append(rest[i])
            i += 1
    parts.append("".join(current))
    return parts


class SubstituteMixin:
    """Substitute-related methods for JsonWorkbench."""

    def _execute_substitute(self, cmd: str) -> None:
        """Run s/old/new/flags, %s/old/new/flags or N,Ms/old/new/flags.

        Flags: g every match on a line, i ignore case, w whole word,
        l literal pattern. Patterns are regular expressions otherwise.
        """
        if self._check_readonly():
            return

        range_match = _SUBSTITUTE_RE.match(cmd)
        if not range_match:
            self.status_msg = "invalid substitute command"
            return

        range_spec = range_match.group(1)
        range_start_s = range_match.group(2)
        range_end_s = range_match.group(3)
        delim = range_match.group(4)

        parts = split_substitute(range_match.group(5), delim)
        if len(parts) < 2:
            self.status_msg = "invalid substitute command"
            return

        pattern = parts[0]
        replacement = parts[1]
        flags_str = parts[2] if len(parts) > 2 else ""

        if not pattern:
            self.status_msg = "empty pattern"
            return

        options = SearchOptions(
            case_sensitive="i" not in flags_str,
            whole_word="w" in flags_str,
            use_regex="l" not in flags_str,
        )
        if options.use_regex and not is_valid_regex(pattern):
            self.status_msg = f"invalid regex: {pattern}"
            return

        if range_spec == "%":
            start, end = 0, len(self.lines) - 1
        elif range_start_s and range_end_s:
            start = max(0, int(range_start_s) - 1)
            end = min(len(self.lines) - 1, int(range_end_s) - 1)
        else:
            start = end = self.cursor_row

        if start > end:
            self.status_msg = "invalid range"
            return

        replace_all = "g" in flags_str
        new_lines = self.lines[:]
        total_count = 0
        for row in range(start, end + 1):
            result = replace(
                new_lines[row], pattern, replacement, options, replace_all=replace_all
            )
            new_lines[row] = result.text
            total_count += result.replaced_count

        if total_count == 0:
            self.status_msg = f"Pattern not found: {pattern}"
            return

        self._save_undo()
        self.lines = new_lines
        self._content_changed()
        self.status_msg = f"{total_count} substitution(s)"
