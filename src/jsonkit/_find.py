"""Search mixin for JsonWorkbench."""

from __future__ import annotations

from jsonkit.search import Match, SearchOptions, search

# Pattern suffixes: \c ignore case, \C match case, \w whole word, \r regex
_SUFFIXES = ("\\c", "\\C", "\\w", "\\r")


def parse_search_pattern(
    pattern: str, defaults: SearchOptions
) -> tuple[str, SearchOptions]:
    """Strip option suffixes from *pattern* and apply them over *defaults*."""
    case_sensitive = defaults.case_sensitive
    whole_word = defaults.whole_word
    use_regex = defaults.use_regex

    while len(pattern) > 2 and pattern[-2:] in _SUFFIXES:
        flag = pattern[-1]
        pattern = pattern[:-2]
        if flag == "c":
            case_sensitive = False
        elif flag == "C":
            case_sensitive = True
        elif flag == "w":
            whole_word = True
        elif flag == "r":
            use_regex = True

    return pattern, SearchOptions(
        case_sensitive=case_sensitive, whole_word=whole_word, use_regex=use_regex
    )


class FindMixin:
    """Search-related methods for JsonWorkbench."""

    def _handle_search(self, event) -> None:
        key = event.key
        char = event.character

        if key == "escape":
            from jsonkit.widget import EditorMode

            self._mode = EditorMode.NORMAL
            self._search_buffer = ""
            self._search_history_idx = -1
            self.status_msg = ""
            return

        if key == "enter":
            from jsonkit.widget import EditorMode

            if self._search_buffer:
                self._add_to_search_history(self._search_buffer)
                self._execute_search()
            self._mode = EditorMode.NORMAL
            self._search_history_idx = -1
            return

        if key == "backspace":
            if self._search_buffer:
                self._search_buffer = self._search_buffer[:-1]
                self._search_history_idx = -1
            else:
                from jsonkit.widget import EditorMode

                self._mode = EditorMode.NORMAL
                self._search_history_idx = -1
            return

        if key == "up":
            self._search_history_prev()
            return
        if key == "down":
            self._search_history_next()
            return

        if char and char.isprintable():
            self._search_buffer += char
            self._search_history_idx = -1

    def _add_to_search_history(self, pattern: str) -> None:
        if pattern in self._search_history:
            self._search_history.remove(pattern)
        self._search_history.insert(0, pattern)
        if len(self._search_history) > self.config.history_max:
            self._search_history.pop()

    def _search_history_prev(self) -> None:
        if not self._search_history:
            return
        if self._search_history_idx < len(self._search_history) - 1:
            self._search_history_idx += 1
            self._search_buffer = self._search_history[self._search_history_idx]

    def _search_history_next(self) -> None:
        if self._search_history_idx > 0:
            self._search_history_idx -= 1
            self._search_buffer = self._search_history[self._search_history_idx]
        elif self._search_history_idx == 0:
            self._search_history_idx = -1
            self._search_buffer = ""

    def _clear_search(self) -> None:
        self._search_matches = []
        self._search_match_by_row = {}
        self._current_match = -1

    def _build_search_row_index(self) -> None:
        """Map 0-based rows to (start, end, match index) spans for rendering."""
        self._search_match_by_row = {}
        for mi, m in enumerate(self._search_matches):
            start = m.column - 1
            self._search_match_by_row.setdefault(m.line - 1, []).append(
                (start, start + m.length, mi)
            )

    def _execute_search(self) -> None:
        """Run the current search buffer against the whole document."""
        pattern, options = parse_search_pattern(
            self._search_buffer, self.config.search_options()
        )
        self._search_pattern = pattern
        self._search_options = options
        self._search_matches = search(self.get_content(), pattern, options)
        self._build_search_row_index()

        if not self._search_matches:
            self.status_msg = f"Pattern not found: {pattern}"
            self._current_match = -1
            return

        self._current_match = self._find_match_near_cursor()
        self._goto_current_match()

    def _refresh_search(self) -> None:
        """Recompute matches after an edit; positions never outlive the text."""
        if not self._search_pattern:
            return
        self._search_matches = search(
            self.get_content(), self._search_pattern, self._search_options
        )
        self._build_search_row_index()
        if self._current_match >= len(self._search_matches):
            self._current_match = len(self._search_matches) - 1

    def _find_match_near_cursor(self) -> int:
        """Index of the first match at or after the cursor, wrapping to 0."""
        if not self._search_matches:
            return -1
        cursor_pos = (self.cursor_row, self.cursor_col)
        for i, m in enumerate(self._search_matches):
            if (m.line - 1, m.column - 1) >= cursor_pos:
                return i
        return 0

    def _goto_current_match(self) -> None:
        if not self._search_matches or self._current_match < 0:
            return
        m: Match = self._search_matches[self._current_match]
        self.cursor_row = m.line - 1
        self.cursor_col = m.column - 1
        total = len(self._search_matches)
        self.status_msg = (
            f"/{self._search_pattern}  [{self._current_match + 1}/{total}]"
        )

    def _goto_next_match(self) -> None:
        if not self._search_matches:
            if self._search_pattern:
                self.status_msg = f"Pattern not found: {self._search_pattern}"
            else:
                self.status_msg = "No previous search"
            return
        self._current_match = (self._current_match + 1) % len(self._search_matches)
        self._goto_current_match()

    def _goto_prev_match(self) -> None:
        if not self._search_matches:
            if self._search_pattern:
                self.status_msg = f"Pattern not found: {self._search_pattern}"
            else:
                self.status_msg = "No previous search"
            return
        self._current_match = (self._current_match - 1) % len(self._search_matches)
        self._goto_current_match()
