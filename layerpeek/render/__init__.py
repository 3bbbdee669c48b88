"""Frame rendering for the layer tree view.

Composes the status line, visible tree rows, and the footer into ANSI
frames. Nothing here mutates navigator state.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Collection, Sequence
from dataclasses import dataclass, field

from ..tree_model import ChangeKind, VisibleRow, format_tree_row
from ..ui_theme import DEFAULT_THEME, UITheme
from .ansi import clip_ansi_line, display_width, pad_ansi_line

HEADER_ROWS = 1
FOOTER_ROWS = 1


@dataclass
class RenderContext:
    rows: Sequence[VisibleRow]
    focused_index: int | None
    tree_start: int
    expanded: Collection[str]
    width: int
    height: int
    image_ref: str = ""
    layer_index: int | None = None
    layer_count: int = 0
    layer_label: str = ""
    changes_only: bool = False
    loading: bool = False
    load_error: str | None = None
    change_counts: dict[ChangeKind, int] = field(default_factory=dict)
    message: str = ""
    show_help: bool = False
    help_entries: Sequence[tuple[str, str]] = ()
    show_size_labels: bool = True
    theme: UITheme = DEFAULT_THEME


def tree_view_rows(height: int) -> int:
    """Number of screen rows available to tree rows."""
    return max(1, height - HEADER_ROWS - FOOTER_ROWS)


def tree_viewport_start(tree_start: int, focused_index: int | None, row_count: int, view_rows: int) -> int:
    """Scroll ``tree_start`` just enough to keep the focused row on screen."""
    if focused_index is None or row_count <= 0:
        return 0
    max_start = max(0, row_count - view_rows)
    start = min(max(0, tree_start), max_start)
    if focused_index < start:
        return focused_index
    if focused_index >= start + view_rows:
        return focused_index - view_rows + 1
    return start


def row_index_at(screen_row: int, tree_start: int, height: int, row_count: int) -> int | None:
    """Map a 1-based screen row to a visible-row index, if any."""
    offset = screen_row - 1 - HEADER_ROWS
    if offset < 0 or offset >= tree_view_rows(height):
        return None
    index = tree_start + offset
    if not 0 <= index < row_count:
        return None
    return index


def selected_with_ansi(text: str, theme: UITheme = DEFAULT_THEME) -> str:
    """Apply focus styling without discarding existing ANSI colors."""
    if not text:
        return text
    # Keep reverse video active even when the text contains internal resets.
    return theme.reverse + text.replace("\033[0m", "\033[0;7m") + "\033[0m"


def _status_line(ctx: RenderContext) -> str:
    theme = ctx.theme
    reset = theme.reset
    if ctx.layer_index is None:
        layer = "no layer"
    else:
        layer = f"layer {ctx.layer_index + 1}/{ctx.layer_count}"
    parts = [f"{theme.status_bar}{ctx.image_ref}{reset}" if ctx.image_ref else "", layer]
    if ctx.layer_label:
        parts.append(f"{theme.status_dim}{ctx.layer_label}{reset}")
    counts = ctx.change_counts
    if counts:
        parts.append(
            f"{theme.change_added}+{counts.get(ChangeKind.ADDED, 0)}{reset} "
            f"{theme.change_modified}~{counts.get(ChangeKind.MODIFIED, 0)}{reset} "
            f"{theme.change_deleted}-{counts.get(ChangeKind.DELETED, 0)}{reset}"
        )
    if ctx.changes_only:
        parts.append(f"{theme.status_bar}[changes]{reset}")
    return "  ".join(part for part in parts if part)


def _empty_message(ctx: RenderContext) -> str:
    theme = ctx.theme
    if ctx.load_error:
        return f"{theme.status_error}{ctx.load_error}{theme.reset}"
    if ctx.loading:
        return f"{theme.status_dim}Loading…{theme.reset}"
    if ctx.changes_only:
        return f"{theme.status_dim}No changes{theme.reset}"
    return f"{theme.status_dim}Empty layer{theme.reset}"


def _footer_line(ctx: RenderContext) -> str:
    theme = ctx.theme
    if ctx.message:
        return ctx.message
    if ctx.show_help:
        return "  ".join(f"{keys} {theme.status_dim}{desc}{theme.reset}" for keys, desc in ctx.help_entries)
    return f"{theme.status_dim}? help  q quit{theme.reset}"


def build_frame_lines(ctx: RenderContext) -> list[str]:
    """Return exactly ``ctx.height`` padded lines for one frame."""
    width = max(1, ctx.width)
    view_rows = tree_view_rows(ctx.height)
    lines = [pad_ansi_line(_status_line(ctx), width)]

    if not ctx.rows:
        body = [_empty_message(ctx)]
    else:
        body = []
        for index in range(ctx.tree_start, min(len(ctx.rows), ctx.tree_start + view_rows)):
            text = format_tree_row(
                ctx.rows[index],
                ctx.expanded,
                show_size_labels=ctx.show_size_labels,
                theme=ctx.theme,
            )
            padded = pad_ansi_line(text, width)
            body.append(selected_with_ansi(padded, ctx.theme) if index == ctx.focused_index else padded)
    for index in range(view_rows):
        lines.append(pad_ansi_line(body[index], width) if index < len(body) else " " * width)

    lines.append(pad_ansi_line(_footer_line(ctx), width))
    return lines[: max(1, ctx.height)]


def render_frame(ctx: RenderContext) -> None:
    """Write one full frame to stdout."""
    out = ["\033[H"]
    for number, line in enumerate(build_frame_lines(ctx)):
        if number:
            out.append("\r\n")
        out.append(line)
        out.append("\033[0m")
    os.write(sys.stdout.fileno(), "".join(out).encode("utf-8", errors="replace"))


def render_plain_tree(
    rows: Sequence[VisibleRow],
    expanded: Collection[str],
    show_size_labels: bool = True,
    theme: UITheme = DEFAULT_THEME,
    max_cols: int | None = None,
) -> str:
    """Render rows as newline-terminated text for non-interactive output."""
    out: list[str] = []
    for row in rows:
        text = format_tree_row(row, expanded, show_size_labels=show_size_labels, theme=theme)
        if max_cols is not None:
            text = clip_ansi_line(text, max_cols)
        out.append(text)
        if "\033" in text:
            out.append("\033[0m")
        out.append("\n")
    return "".join(out)


__all__ = [
    "RenderContext",
    "build_frame_lines",
    "display_width",
    "render_frame",
    "render_plain_tree",
    "row_index_at",
    "selected_with_ansi",
    "tree_view_rows",
    "tree_viewport_start",
]
