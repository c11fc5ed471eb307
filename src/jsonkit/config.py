"""Editor settings with defaults, persisted through a KeyValueStore."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass

from jsonkit.processor import DEFAULT_MAX_DEPTH
from jsonkit.search import SearchOptions
from jsonkit.storage import KeyValueStore

logger = logging.getLogger(__name__)

SETTINGS_KEY = "jsonkit-settings"
INDENT_CHOICES = (2, 4, 8)


@dataclass
class EditorConfig:
    indent_size: int = 2
    summary_max_depth: int = DEFAULT_MAX_DEPTH
    case_sensitive: bool = False
    whole_word: bool = False
    use_regex: bool = False
    history_max: int = 50
    schema_id: str | None = None  # None: detect from content

    def search_options(self) -> SearchOptions:
        return SearchOptions(
            case_sensitive=self.case_sensitive,
            whole_word=self.whole_word,
            use_regex=self.use_regex,
        )

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


def _valid(name: str, value: object) -> bool:
    if name == "indent_size":
        return value in INDENT_CHOICES and not isinstance(value, bool)
    if name in ("summary_max_depth", "history_max"):
        return isinstance(value, int) and not isinstance(value, bool) and value > 0
    if name in ("case_sensitive", "whole_word", "use_regex"):
        return isinstance(value, bool)
    if name == "schema_id":
        return value is None or isinstance(value, str)
    return False


def config_from_dict(data: dict) -> EditorConfig:
    """Merge *data* over the defaults, dropping unknown keys and bad values."""
    config = EditorConfig()
    for name, value in data.items():
        if not _valid(name, value):
            logger.warning("ignoring setting %s=%r", name, value)
            continue
        setattr(config, name, value)
    return config


def load_config(store: KeyValueStore) -> EditorConfig:
    raw = store.get(SETTINGS_KEY)
    if raw is None:
        return EditorConfig()
    if not isinstance(raw, dict):
        logger.warning("ignoring stored settings: expected an object")
        return EditorConfig()
    return config_from_dict(raw)


def save_config(store: KeyValueStore, config: EditorConfig) -> None:
    store.set(SETTINGS_KEY, config.to_dict())
