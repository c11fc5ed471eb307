"""JSON workbench widget: editing, diagnostics gutter, find/replace."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto

from rich.text import Text
from textual import events
from textual.message import Message
from textual.widget import Widget

from jsonkit._find import FindMixin
from jsonkit._substitute import SubstituteMixin
from jsonkit.config import EditorConfig
from jsonkit.processor import (
    JsonProcessingError,
    format_json,
    minify_json,
    repair_json,
    summarize_json,
)
from jsonkit.schema import SchemaRegistry, detect_schema
from jsonkit.search import Match, SearchOptions
from jsonkit.validation import ValidationError, error_summary, validate_json


class EditorMode(Enum):
    NORMAL = auto()
    INSERT = auto()
    COMMAND = auto()
    SEARCH = auto()


class JsonWorkbench(FindMixin, SubstituteMixin, Widget, can_focus=True):
    """A small modal JSON editor widget.

    Supported commands:
      NORMAL:  h j k l  0 $  G  i a  x  u ctrl+r  / n N  :
      INSERT:  typing / Backspace / Enter / Escape
      COMMAND: :fmt :min :fix :check :info :schema [id] :noh
               :s/old/new/gilw :%s/... :N,Ms/...  :<line>  :w :q :q! :wq
    """

    DEFAULT_CSS = """
    JsonWorkbench {
        height: 1fr;
        background: $surface;
        padding: 0 1;
    }
    """

    # -- Messages ----------------------------------------------------------

    @dataclass
    class JsonValidated(Message):
        content: str
        valid: bool
        error: str = ""

    @dataclass
    class FileSaveRequested(Message):
        content: str
        file_path: str  # empty string means save to current file
        quit_after: bool = False

    @dataclass
    class Quit(Message):
        force: bool = False

    # -- Init --------------------------------------------------------------

    def __init__(
        self,
        initial_content: str = "",
        *,
        read_only: bool = False,
        config: EditorConfig | None = None,
        registry: SchemaRegistry | None = None,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        super().__init__(name=name, id=id, classes=classes)
        self.read_only: bool = read_only
        self.config: EditorConfig = config or EditorConfig()
        self.registry: SchemaRegistry = registry or SchemaRegistry()
        self.lines: list[str] = initial_content.split("\n") if initial_content else [""]
        self.cursor_row: int = 0
        self.cursor_col: int = 0
        self._mode: EditorMode = EditorMode.NORMAL
        self.command_buffer: str = ""
        self.pending: str = ""
        self.status_msg: str = ""
        self.undo_stack: list[tuple[list[str], int, int]] = []
        self.redo_stack: list[tuple[list[str], int, int]] = []
        self._scroll_top: int = 0
        # Search state
        self._search_buffer: str = ""
        self._search_pattern: str = ""
        self._search_options: SearchOptions = self.config.search_options()
        self._search_matches: list[Match] = []
        self._search_match_by_row: dict[int, list[tuple[int, int, int]]] = {}
        self._current_match: int = -1
        self._search_history: list[str] = []
        self._search_history_idx: int = -1
        # Command history
        self._command_history: list[str] = []
        self._command_history_idx: int = -1

    # -- Helpers -----------------------------------------------------------

    def _check_readonly(self) -> bool:
        """Check if read-only and set status. Returns True if read-only."""
        if self.read_only:
            self.status_msg = "[readonly]"
        return self.read_only

    def _save_undo(self) -> None:
        self.undo_stack.append((self.lines[:], self.cursor_row, self.cursor_col))
        if len(self.undo_stack) > 200:
            self.undo_stack.pop(0)
        if self.redo_stack:
            self.redo_stack.clear()

    def _content_changed(self) -> None:
        """Drop everything derived from the previous text."""
        self._refresh_search()
        self._clamp_cursor()

    def _clamp_cursor(self) -> None:
        self.cursor_row = max(0, min(self.cursor_row, len(self.lines) - 1))
        line_len = len(self.lines[self.cursor_row])
        if self._mode == EditorMode.INSERT:
            self.cursor_col = max(0, min(self.cursor_col, line_len))
        else:
            self.cursor_col = max(0, min(self.cursor_col, max(0, line_len - 1)))

    def _replace_content(self, content: str, status: str) -> None:
        self._save_undo()
        self.lines = content.split("\n") if content else [""]
        self.cursor_row = 0
        self.cursor_col = 0
        self._content_changed()
        self.status_msg = status

    # -- Public API --------------------------------------------------------

    def get_content(self) -> str:
        return "\n".join(self.lines)

    def set_content(self, content: str) -> None:
        self.lines = content.split("\n") if content else [""]
        self.cursor_row = 0
        self.cursor_col = 0
        self._clear_search()
        self.refresh()

    @property
    def diagnostics(self) -> list[ValidationError]:
        """Diagnostics for the current text."""
        return validate_json(self.get_content())

    @property
    def schema_id(self) -> str | None:
        """Configured schema, otherwise the one detected from the content."""
        if self.config.schema_id:
            return self.config.schema_id
        return detect_schema(self.get_content(), self.registry)

    def get_history(self) -> dict:
        return {
            "search": self._search_history[:],
            "command": self._command_history[:],
        }

    def set_history(self, history: dict) -> None:
        limit = self.config.history_max
        if "search" in history:
            self._search_history = history["search"][:limit]
        if "command" in history:
            self._command_history = history["command"][:limit]

    # =====================================================================
    # Rendering
    # =====================================================================

    _TOKEN_RE = re.compile(
        r'(?P<string>"(?:[^"\\]|\\.)*"?)'
        r"|(?P<number>-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)"
        r"|(?P<keyword>true|false|null)"
        r"|(?P<bracket>[{}\[\]])"
    )
    _MODE_STYLE = {
        EditorMode.NORMAL: "bold white on dark_green",
        EditorMode.INSERT: "bold white on dark_blue",
        EditorMode.COMMAND: "bold white on dark_red",
        EditorMode.SEARCH: "bold white on dark_magenta",
    }

    def _line_styles(self, line: str) -> list[str]:
        """Syntax colour for every character of *line*."""
        styles = ["white"] * len(line)
        for m in self._TOKEN_RE.finditer(line):
            kind = m.lastgroup
            if kind == "string":
                is_key = line[m.end() :].lstrip().startswith(":")
                style = "cyan" if is_key else "green"
            elif kind == "number":
                style = "yellow"
            elif kind == "keyword":
                style = "magenta"
            else:
                style = "bold white"
            for i in range(m.start(), m.end()):
                styles[i] = style
        return styles

    def _status_line(self, width: int, diagnostics: list[ValidationError]) -> Text:
        mode = self._mode.name
        left = Text(f" {mode} ", style=self._MODE_STYLE[self._mode])
        if self._mode == EditorMode.COMMAND:
            left.append(f" :{self.command_buffer}")
        elif self._mode == EditorMode.SEARCH:
            left.append(f" /{self._search_buffer}")
        elif self.status_msg:
            left.append(f" {self.status_msg}")

        # detection needs a parse; invalid text never detects
        schema_id = self.config.schema_id if diagnostics else self.schema_id
        right = f"{error_summary(diagnostics)}  {schema_id or '-'}  "
        right += f"{self.cursor_row + 1}:{self.cursor_col + 1} "
        pad = max(1, width - left.cell_len - len(right))
        left.append(" " * pad)
        left.append(right, style="red" if diagnostics else "dim")
        return left

    def _ensure_cursor_visible(self, height: int) -> None:
        if self.cursor_row < self._scroll_top:
            self._scroll_top = self.cursor_row
        elif self.cursor_row >= self._scroll_top + height:
            self._scroll_top = self.cursor_row - height + 1

    def render(self) -> Text:
        width = self.content_region.width
        height = self.content_region.height
        if height < 3 or width < 10:
            return Text("(too small)")

        content_height = height - 1
        self._ensure_cursor_visible(content_height)
        diagnostics = self.diagnostics
        error_rows = {d.line - 1: d for d in diagnostics}
        ln_width = len(str(len(self.lines)))

        result = Text()
        end = min(len(self.lines), self._scroll_top + content_height)
        for row in range(self._scroll_top, end):
            line = self.lines[row]
            marker = "●" if row in error_rows else " "
            result.append(marker, style="bold red")
            result.append(f"{row + 1:>{ln_width}} ", style="dim")

            styles = self._line_styles(line)
            for start, stop, mi in self._search_match_by_row.get(row, []):
                hl = "black on yellow" if mi == self._current_match else "on grey35"
                for i in range(start, min(stop, len(line))):
                    styles[i] = f"{styles[i]} {hl}"
            diagnostic = error_rows.get(row)
            if diagnostic is not None and diagnostic.column - 1 < len(line):
                col = diagnostic.column - 1
                styles[col] = f"{styles[col]} underline red"

            for i, ch in enumerate(line):
                style = styles[i]
                if row == self.cursor_row and i == self.cursor_col:
                    style = f"{style} reverse"
                result.append(ch, style=style)
            if row == self.cursor_row and self.cursor_col >= len(line):
                result.append(" ", style="reverse")
            result.append("\n")

        for _ in range(end - self._scroll_top, content_height):
            result.append("~\n", style="dim blue")
        result.append_text(self._status_line(width, diagnostics))
        return result

    # =====================================================================
    # Key handling
    # =====================================================================

    def on_key(self, event: events.Key) -> None:
        event.prevent_default()
        event.stop()

        if self._mode == EditorMode.NORMAL:
            self._handle_normal(event)
        elif self._mode == EditorMode.INSERT:
            self._handle_insert(event)
        elif self._mode == EditorMode.COMMAND:
            self._handle_command(event)
        elif self._mode == EditorMode.SEARCH:
            self._handle_search(event)

        self._clamp_cursor()
        self.refresh()

    # -- NORMAL ------------------------------------------------------------

    def _enter_insert(self) -> None:
        if self._check_readonly():
            return
        self._mode = EditorMode.INSERT
        self.status_msg = "-- INSERT --"

    def _handle_normal(self, event) -> None:
        key = event.key
        char = event.character or ""

        if self.pending == "g":
            self.pending = ""
            if char == "g":
                self.cursor_row = 0
                self.cursor_col = 0
            return

        if key in ("h", "left"):
            self.cursor_col -= 1
        elif key in ("l", "right"):
            self.cursor_col += 1
        elif key in ("k", "up"):
            self.cursor_row -= 1
        elif key in ("j", "down"):
            self.cursor_row += 1
        elif char == "0":
            self.cursor_col = 0
        elif char == "$":
            self.cursor_col = len(self.lines[self.cursor_row])
        elif char == "G":
            self.cursor_row = len(self.lines) - 1
        elif char == "g":
            self.pending = "g"
        elif char == "i":
            self._enter_insert()
        elif char == "a":
            self._enter_insert()
            if self._mode == EditorMode.INSERT:
                self.cursor_col += 1
        elif char == "x":
            self._delete_char()
        elif char == "u":
            self._undo()
        elif key == "ctrl+r":
            self._redo()
        elif char == ":":
            self._mode = EditorMode.COMMAND
            self.command_buffer = ""
        elif char == "/":
            self._mode = EditorMode.SEARCH
            self._search_buffer = ""
        elif char == "n":
            self._goto_next_match()
        elif char == "N":
            self._goto_prev_match()

    def _delete_char(self) -> None:
        if self._check_readonly():
            return
        line = self.lines[self.cursor_row]
        if not line:
            return
        self._save_undo()
        col = self.cursor_col
        self.lines[self.cursor_row] = line[:col] + line[col + 1 :]
        self._content_changed()

    # -- INSERT ------------------------------------------------------------

    def _handle_insert(self, event) -> None:
        key = event.key
        char = event.character
        row, col = self.cursor_row, self.cursor_col
        line = self.lines[row]

        if key == "escape":
            self._mode = EditorMode.NORMAL
            self.status_msg = ""
            self.cursor_col = max(0, col - 1)
            return

        if key == "enter":
            self._save_undo()
            self.lines[row] = line[:col]
            self.lines.insert(row + 1, line[col:])
            self.cursor_row += 1
            self.cursor_col = 0
        elif key == "backspace":
            if col > 0:
                self._save_undo()
                self.lines[row] = line[: col - 1] + line[col:]
                self.cursor_col -= 1
            elif row > 0:
                self._save_undo()
                prev = self.lines[row - 1]
                self.lines[row - 1] = prev + line
                del self.lines[row]
                self.cursor_row -= 1
                self.cursor_col = len(prev)
            else:
                return
        elif char and char.isprintable():
            self._save_undo()
            self.lines[row] = line[:col] + char + line[col:]
            self.cursor_col += 1
        else:
            return
        self._content_changed()

    # -- COMMAND -----------------------------------------------------------

    def _handle_command(self, event) -> None:
        key = event.key
        char = event.character

        if key == "escape":
            self._mode = EditorMode.NORMAL
            self.command_buffer = ""
            self._command_history_idx = -1
            self.status_msg = ""
            return

        if key == "enter":
            cmd = self.command_buffer.strip()
            if cmd:
                self._add_to_command_history(cmd)
            self._exec_command(cmd)
            if self._mode == EditorMode.COMMAND:
                self._mode = EditorMode.NORMAL
            self.command_buffer = ""
            self._command_history_idx = -1
            return

        if key == "backspace":
            if self.command_buffer:
                self.command_buffer = self.command_buffer[:-1]
            else:
                self._mode = EditorMode.NORMAL
            self._command_history_idx = -1
            return

        if key == "up":
            self._command_history_prev()
            return
        if key == "down":
            self._command_history_next()
            return

        if char and char.isprintable():
            self.command_buffer += char
            self._command_history_idx = -1

    def _add_to_command_history(self, cmd: str) -> None:
        if cmd in self._command_history:
            self._command_history.remove(cmd)
        self._command_history.insert(0, cmd)
        if len(self._command_history) > self.config.history_max:
            self._command_history.pop()

    def _command_history_prev(self) -> None:
        if not self._command_history:
            return
        if self._command_history_idx < len(self._command_history) - 1:
            self._command_history_idx += 1
            self.command_buffer = self._command_history[self._command_history_idx]

    def _command_history_next(self) -> None:
        if self._command_history_idx > 0:
            self._command_history_idx -= 1
            self.command_buffer = self._command_history[self._command_history_idx]
        elif self._command_history_idx == 0:
            self._command_history_idx = -1
            self.command_buffer = ""

    def _exec_command(self, cmd: str) -> None:
        stripped = cmd.strip()

        if stripped == "$":
            self.cursor_row = len(self.lines) - 1
            self.cursor_col = 0
            return
        if stripped.isdigit():
            self.cursor_row = max(0, min(int(stripped) - 1, len(self.lines) - 1))
            self.cursor_col = 0
            return

        if _is_substitute(stripped):
            self._execute_substitute(stripped)
            return

        parts = stripped.split(None, 1)
        verb = parts[0] if parts else ""
        arg = parts[1] if len(parts) > 1 else ""

        if verb in ("fmt", "format"):
            self._format_json()
        elif verb in ("min", "minify"):
            self._minify_json()
        elif verb in ("fix", "repair"):
            self._repair_json()
        elif verb == "check":
            self._validate_json()
        elif verb == "info":
            self._show_summary()
        elif verb == "schema":
            self._select_schema(arg)
        elif verb == "noh":
            self._clear_search()
            self.status_msg = ""
        elif verb == "w":
            if self._check_readonly():
                return
            self.post_message(
                self.FileSaveRequested(content=self.get_content(), file_path=arg)
            )
        elif verb in ("wq", "x"):
            if self.read_only:
                self.post_message(self.Quit())
                return
            self.post_message(
                self.FileSaveRequested(
                    content=self.get_content(), file_path=arg, quit_after=True
                )
            )
        elif verb == "q":
            self.post_message(self.Quit())
        elif verb == "q!":
            self.post_message(self.Quit(force=True))
        else:
            self.status_msg = f"unknown command: :{cmd}"

    # -- JSON operations ---------------------------------------------------

    def _check_content(self, content: str) -> tuple[bool, str]:
        """Returns (valid, error_msg) for *content*."""
        diagnostics = validate_json(content)
        if not diagnostics:
            return True, ""
        d = diagnostics[0]
        return False, f"JSON error: {d.message} (line {d.line}, column {d.column})"

    def _validate_json(self) -> bool:
        content = self.get_content()
        valid, err = self._check_content(content)
        if valid:
            self.status_msg = "JSON valid"
        else:
            diagnostic = self.diagnostics[0]
            self.cursor_row = diagnostic.line - 1
            self.cursor_col = diagnostic.column - 1
            self.status_msg = err
        self.post_message(self.JsonValidated(content=content, valid=valid, error=err))
        return valid

    def _format_json(self) -> None:
        if self._check_readonly():
            return
        try:
            formatted = format_json(self.get_content(), self.config.indent_size)
        except JsonProcessingError as e:
            self.status_msg = f"cannot format: {e.parser_message}"
            return
        self._replace_content(formatted, "formatted")

    def _minify_json(self) -> None:
        if self._check_readonly():
            return
        try:
            minified = minify_json(self.get_content())
        except JsonProcessingError as e:
            self.status_msg = f"cannot minify: {e.parser_message}"
            return
        self._replace_content(minified, "minified")

    def _repair_json(self) -> None:
        if self._check_readonly():
            return
        content = self.get_content()
        if not self.diagnostics:
            self.status_msg = "nothing to repair"
            return
        repaired = repair_json(content)
        if repaired == content:
            self.status_msg = "cannot repair automatically"
            return
        self._replace_content(repaired, "repaired")

    def _show_summary(self) -> None:
        s = summarize_json(self.get_content(), self.config.summary_max_depth)
        if not s.valid:
            self.status_msg = f"invalid JSON: {s.error}" if s.error else "empty"
            return
        self.status_msg = (
            f"keys {s.key_count}  objects {s.object_count}  "
            f"arrays {s.array_count}  depth {s.depth}"
        )
        if s.error:
            self.status_msg += f"  ({s.error})"

    def _select_schema(self, schema_id: str) -> None:
        if not schema_id:
            detected = self.schema_id
            self.status_msg = f"schema: {detected}" if detected else "schema: unknown"
            return
        if schema_id == "auto":
            self.config.schema_id = None
            self.status_msg = "schema: auto"
            return
        descriptor = self.registry.get(schema_id)
        if descriptor is None:
            self.status_msg = f"unknown schema: {schema_id}"
            return
        self.config.schema_id = descriptor.id
        self.status_msg = f"schema: {descriptor.id} ({descriptor.name})"

    # -- Undo --------------------------------------------------------------

    def _undo(self) -> None:
        if not self.undo_stack:
            self.status_msg = "nothing to undo"
            return
        self.redo_stack.append((self.lines[:], self.cursor_row, self.cursor_col))
        self.lines, self.cursor_row, self.cursor_col = self.undo_stack.pop()
        self._content_changed()
        self.status_msg = "undone"

    def _redo(self) -> None:
        if not self.redo_stack:
            self.status_msg = "nothing to redo"
            return
        self.undo_stack.append((self.lines[:], self.cursor_row, self.cursor_col))
        self.lines, self.cursor_row, self.cursor_col = self.redo_stack.pop()
        self._content_changed()
        self.status_msg = "redone"


def _is_substitute(cmd: str) -> bool:
    return re.match(r"^(%|\d+,\d+)?s\W", cmd) is not None
