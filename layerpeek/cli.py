"""Command-line front door for layerpeek.

Parses CLI options, opens the image archive or snapshot, and either prints
the layer tree non-interactively or hands off to the interactive runtime.
"""

from __future__ import annotations

import argparse
import logging
import shutil
import sys
from pathlib import Path

from .image import ImageLoadError, LayerSource, open_source, save_snapshot
from .render import render_plain_tree
from .runtime import config
from .runtime.layer_loader import LayerLoadScheduler, apply_load_result
from .runtime.navigator import TreeNavigator
from .ui_theme import available_theme_names, resolve_theme

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def _default_render_width() -> int:
    """Resolve default render width from current terminal size."""
    term = shutil.get_terminal_size((80, 24))
    return max(1, term.columns)


def _resolve_layer_index(source: LayerSource, layer: int | None) -> int:
    """Map the 1-based ``--layer`` option to a layer index (default: last)."""
    count = source.layer_count()
    if count <= 0:
        raise SystemExit(f"No layers found in {source.image_ref or 'image'}")
    if layer is None:
        return count - 1
    if layer > count:
        raise SystemExit(f"Layer {layer} out of range (image has {count} layers)")
    return layer - 1


def render_layer_tree(
    source: LayerSource,
    layer_index: int,
    *,
    changes_only: bool = False,
    settings: config.ViewerSettings | None = None,
    theme_name: str | None = None,
    no_color: bool = False,
    max_cols: int | None = None,
) -> str:
    """Render the default-expanded tree of one layer as plain text."""
    settings = settings or config.ViewerSettings()
    navigator = TreeNavigator(
        default_expand_depth=settings.default_expand_depth,
        toggle_all_depth=settings.toggle_all_depth,
    )
    navigator.set_changes_only(changes_only)
    navigator.select_layer(layer_index)
    apply_load_result(navigator, LayerLoadScheduler(source).load_now(layer_index))
    if navigator.load_error:
        raise SystemExit(navigator.load_error)
    return render_plain_tree(
        navigator.visible_rows(),
        navigator.expanded_paths(),
        show_size_labels=settings.show_size_labels,
        theme=resolve_theme(theme_name or settings.theme, no_color=no_color),
        max_cols=max_cols,
    )


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and launch layerpeek on an image archive.

    ``argv`` is primarily for tests; when omitted ``sys.argv`` is used.
    Source errors surface as ``SystemExit`` with the loader's message.
    """
    parser = argparse.ArgumentParser(
        description="Browse the filesystem tree of container image layers in the terminal."
    )
    parser.add_argument("path", help="docker save archive, extracted archive directory, layer tar, or JSON snapshot.")
    parser.add_argument("--layer", type=_positive_int, default=None, help="1-based layer to open (default: last).")
    parser.add_argument("--changes-only", action="store_true", help="Start with only changed entries visible.")
    parser.add_argument(
        "--theme",
        default=None,
        help=f"UI theme name ({', '.join(available_theme_names())}).",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    parser.add_argument(
        "--expand-depth",
        type=_positive_int,
        default=None,
        help="Directory depth expanded on first visit (default from config, else 1).",
    )
    parser.add_argument("--render", action="store_true", help="Print the layer tree and exit.")
    parser.add_argument(
        "--max-cols",
        type=_positive_int,
        default=None,
        help="Column width for --render output (default: terminal width).",
    )
    parser.add_argument("--dump-snapshot", metavar="OUT", help="Write all layer trees and diffs as JSON and exit.")
    parser.add_argument("--log-file", metavar="FILE", help="Write debug logs to FILE.")
    args = parser.parse_args(argv)

    if args.log_file:
        logging.basicConfig(
            filename=args.log_file,
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    settings = config.load_settings()
    if args.expand_depth is not None:
        settings = config.ViewerSettings(
            theme=settings.theme,
            default_expand_depth=args.expand_depth,
            toggle_all_depth=settings.toggle_all_depth,
            show_size_labels=settings.show_size_labels,
        )

    try:
        source = open_source(Path(args.path))
    except ImageLoadError as exc:
        raise SystemExit(str(exc)) from exc
    try:
        _run(source, args, settings)
    finally:
        source.close()


def _run(source: LayerSource, args: argparse.Namespace, settings: config.ViewerSettings) -> None:
    try:
        if args.dump_snapshot is not None:
            save_snapshot(source, Path(args.dump_snapshot))
            return
        layer_index = _resolve_layer_index(source, args.layer)
    except ImageLoadError as exc:
        raise SystemExit(str(exc)) from exc

    interactive = sys.stdin.isatty() and sys.stdout.isatty()
    if args.render or not interactive:
        max_cols = args.max_cols if args.max_cols is not None else _default_render_width()
        sys.stdout.write(
            render_layer_tree(
                source,
                layer_index,
                changes_only=args.changes_only,
                settings=settings,
                theme_name=args.theme,
                no_color=args.no_color or not sys.stdout.isatty(),
                max_cols=max_cols,
            )
        )
        return

    from .runtime import run_viewer
    from .runtime.app import ViewerApp

    logger.debug("opening %s at layer %d", source.image_ref, layer_index)
    app = ViewerApp(
        source,
        settings=settings,
        theme_name=args.theme,
        no_color=args.no_color,
        changes_only=args.changes_only,
    )
    run_viewer(app, layer_index)


if __name__ == "__main__":
    main()
