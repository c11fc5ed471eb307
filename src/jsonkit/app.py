"""TUI application and command-line entry point."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from textual.app import App, ComposeResult
from textual.logging import TextualHandler
from textual.widgets import Footer, Header, Static

from jsonkit.config import INDENT_CHOICES, EditorConfig, load_config
from jsonkit.processor import (
    JsonProcessingError,
    format_json,
    minify_json,
    repair_json,
    summarize_json,
)
from jsonkit.schema import SchemaRegistry, detect_schema
from jsonkit.storage import JsonFileStore
from jsonkit.validation import validate_json
from jsonkit.widget import JsonWorkbench

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = Path.home() / ".config" / "jsonkit" / "settings.json"

BATCH_MODES = ("check", "format", "minify", "repair", "summary", "detect")

SAMPLE_JSON = """\
{
  "name": "jsonkit",
  "version": "1.0.0",
  "description": "JSON workbench",
  "dependencies": {
    "textual": "*",
    "rich": "*"
  }
}"""


class JsonkitApp(App):
    """TUI app that wraps the JsonWorkbench widget."""

    CSS = """
    Screen {
        layout: vertical;
    }
    #editor {
        height: 1fr;
        border: solid $accent;
    }
    #help-bar {
        height: auto;
        max-height: 4;
        padding: 0 1;
        color: $text-muted;
        background: $surface;
        border-top: solid $accent 50%;
    }
    """

    TITLE = "jsonkit"
    BINDINGS = []
    ENABLE_COMMAND_PALETTE = False

    def __init__(
        self,
        file_path: str = "",
        initial_content: str = "",
        read_only: bool = False,
        config: EditorConfig | None = None,
        registry: SchemaRegistry | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.file_path = file_path
        self.initial_content = initial_content
        self.read_only = read_only
        self.config = config or EditorConfig()
        self.registry = registry or SchemaRegistry()

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield JsonWorkbench(
            self.initial_content,
            read_only=self.read_only,
            config=self.config,
            registry=self.registry,
            id="editor",
        )
        yield Static(
            "[b]Cmd :[/b] :fmt  :min  :fix  :check  :info  :schema [dim]\\[id|auto][/]"
            "  :s/old/new/[dim]gilw[/]  :w  :q\n"
            "[b]Find:[/b] /pattern [dim]\\c \\C \\w \\r[/]  n N  :noh",
            id="help-bar",
        )
        yield Footer()

    def on_mount(self) -> None:
        self._update_title()
        self.query_one("#editor").focus()

    def _update_title(self) -> None:
        ro = " [RO]" if self.read_only else ""
        self.sub_title = (self.file_path or "[new]") + ro

    def on_json_workbench_quit(self, event: JsonWorkbench.Quit) -> None:
        self.exit()

    def on_json_workbench_json_validated(
        self, event: JsonWorkbench.JsonValidated
    ) -> None:
        if event.valid:
            self.notify("JSON is valid", severity="information")
        else:
            self.notify(event.error, severity="error", timeout=6)

    def on_json_workbench_file_save_requested(
        self, event: JsonWorkbench.FileSaveRequested
    ) -> None:
        target = event.file_path or self.file_path
        if not target:
            self.notify("No file name: use :w <file>", severity="warning")
            return

        try:
            path = Path(target)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(event.content, encoding="utf-8")
        except OSError as exc:
            logger.warning("save failed for %s: %s", target, exc)
            self.notify(f"Save failed: {exc}", severity="error", timeout=6)
            return

        self.file_path = str(path)
        self._update_title()
        self.notify(f"Saved: {self.file_path}", severity="information")
        if event.quit_after:
            self.exit()


def run_batch(
    mode: str,
    content: str,
    config: EditorConfig,
    registry: SchemaRegistry,
    console: Console,
    err_console: Console | None = None,
) -> int:
    """Apply one batch *mode* to *content*, print the result, return exit code.

    Failures of format and minify go to *err_console* (default: *console*).
    """
    err_console = err_console or console
    if mode == "check":
        diagnostics = validate_json(content)
        for d in diagnostics:
            console.print(
                f"{d.line}:{d.column}: {d.severity.value}: {d.message}",
                markup=False,
                highlight=False,
            )
        if not diagnostics:
            console.print("Valid JSON", markup=False, highlight=False)
        return 1 if diagnostics else 0

    if mode in ("format", "minify"):
        try:
            if mode == "format":
                output = format_json(content, config.indent_size)
            else:
                output = minify_json(content)
        except JsonProcessingError as e:
            err_console.print(
                str(e), markup=False, highlight=False, soft_wrap=True, style="red"
            )
            return 1
        console.print(output, markup=False, highlight=False, soft_wrap=True)
        return 0

    if mode == "repair":
        console.print(repair_json(content), markup=False, highlight=False, soft_wrap=True)
        return 0

    if mode == "summary":
        s = summarize_json(content, config.summary_max_depth)
        console.print(
            f"valid: {str(s.valid).lower()}\n"
            f"keys: {s.key_count}\n"
            f"objects: {s.object_count}\n"
            f"arrays: {s.array_count}\n"
            f"depth: {s.depth}",
            markup=False,
            highlight=False,
        )
        if s.error:
            console.print(f"error: {s.error}", markup=False, highlight=False)
        return 0 if s.valid else 1

    if mode == "detect":
        schema_id = detect_schema(content, registry)
        console.print(schema_id or "unknown", markup=False, highlight=False)
        return 0 if schema_id else 1

    raise ValueError(f"unknown batch mode: {mode}")


def _setup_logging(level: str, tui: bool) -> None:
    handlers: list[logging.Handler] = [TextualHandler()] if tui else []
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        handlers=handlers or None,
    )


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="jsonkit",
        description="JSON workbench: format, repair, validate, find/replace",
    )
    parser.add_argument("file", nargs="?", default="", help="JSON file to open")
    parser.add_argument(
        "-R", "--read-only",
        action="store_true",
        default=False,
        help="open in read-only mode",
    )
    parser.add_argument(
        "--settings",
        default=str(DEFAULT_SETTINGS),
        help="settings file (default: %(default)s)",
    )
    parser.add_argument(
        "--indent", type=int, choices=INDENT_CHOICES, help="indent size for format"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="logging level",
    )
    modes = parser.add_mutually_exclusive_group()
    for mode in BATCH_MODES:
        modes.add_argument(
            f"--{mode}",
            dest="mode",
            action="store_const",
            const=mode,
            help=f"run {mode} on the file and print the result",
        )
    args = parser.parse_args()

    _setup_logging(args.log_level, tui=args.mode is None)

    store = JsonFileStore(args.settings)
    config = load_config(store)
    if args.indent:
        config.indent_size = args.indent
    registry = SchemaRegistry.load(store)

    file_path: str = args.file
    content = ""
    if file_path:
        path = Path(file_path)
        try:
            if path.exists():
                content = path.read_text(encoding="utf-8")
            elif args.mode is None:
                content = "{}"
            else:
                print(f"jsonkit: {file_path}: no such file", file=sys.stderr)
                sys.exit(1)
        except (OSError, UnicodeDecodeError) as exc:
            print(f"jsonkit: {exc}", file=sys.stderr)
            sys.exit(1)
    elif args.mode is not None:
        content = sys.stdin.read()
    else:
        content = SAMPLE_JSON

    if args.mode is not None:
        sys.exit(
            run_batch(
                args.mode, content, config, registry, Console(), Console(stderr=True)
            )
        )

    app = JsonkitApp(
        file_path=file_path,
        initial_content=content,
        read_only=args.read_only,
        config=config,
        registry=registry,
    )
    app.run()


if __name__ == "__main__":
    main()
