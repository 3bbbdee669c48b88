"""Persistent JSON config helpers.

Stores the UI theme, default expansion depths, and size-label preference.
All access is defensive: malformed or missing config falls back safely.
Expansion state itself is never persisted.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir

from .expansion import DEFAULT_EXPAND_DEPTH
from .navigator import TOGGLE_ALL_DEPTH

APP_NAME = "layerpeek"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME


@dataclass(frozen=True)
class ViewerSettings:
    """Resolved user preferences with defaults applied."""

    theme: str | None = None
    default_expand_depth: int = DEFAULT_EXPAND_DEPTH
    toggle_all_depth: int = TOGGLE_ALL_DEPTH
    show_size_labels: bool = True


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Filesystem errors are ignored to keep runtime behavior non-fatal when
    config cannot be written.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError:
        pass


def _coerce_positive_int(value: object, default: int) -> int:
    """Booleans, non-integers and values below 1 fall back to ``default``."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        return default
    return value


def _theme_from(data: dict[str, object]) -> str | None:
    value = data.get("theme")
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped if stripped else None


def load_theme_name() -> str | None:
    """Load persisted UI theme name, returning ``None`` when unset/invalid."""
    return _theme_from(load_config())


def save_theme_name(theme_name: str) -> None:
    """Persist selected UI theme name."""
    stripped = str(theme_name).strip()
    if not stripped:
        return
    config = load_config()
    config["theme"] = stripped
    save_config(config)


def load_settings() -> ViewerSettings:
    """Read all viewer preferences in one pass."""
    data = load_config()
    show_size_labels = data.get("show_size_labels")
    return ViewerSettings(
        theme=_theme_from(data),
        default_expand_depth=_coerce_positive_int(data.get("default_expand_depth"), DEFAULT_EXPAND_DEPTH),
        toggle_all_depth=_coerce_positive_int(data.get("toggle_all_depth"), TOGGLE_ALL_DEPTH),
        show_size_labels=show_size_labels if isinstance(show_size_labels, bool) else True,
    )


def save_show_size_labels(show_size_labels: bool) -> None:
    config = load_config()
    config["show_size_labels"] = bool(show_size_labels)
    save_config(config)
