"""Tree row formatting and frame layout tests."""

from __future__ import annotations

import unittest

from layerpeek.render import (
    RenderContext,
    build_frame_lines,
    display_width,
    render_plain_tree,
    row_index_at,
    selected_with_ansi,
    tree_viewport_start,
)
from layerpeek.tree_model import ChangeKind, NodeKind, VisibleRow, format_bytes, format_tree_row
from layerpeek.ui_theme import DEFAULT_THEME, PLAIN_THEME


class FormatBytesTests(unittest.TestCase):
    def test_formats_common_sizes(self) -> None:
        self.assertEqual(format_bytes(0), "0 B")
        self.assertEqual(format_bytes(512), "512 B")
        self.assertEqual(format_bytes(1536), "1.5 KB")
        self.assertEqual(format_bytes(12 * 1024 * 1024), "12 MB")


class FormatTreeRowTests(unittest.TestCase):
    def test_directory_marker_reflects_expansion(self) -> None:
        row = VisibleRow(path="/etc", depth=1, is_dir=True, parent_path="/", name="etc", kind=NodeKind.DIR)

        self.assertEqual(format_tree_row(row, {"/etc"}, theme=PLAIN_THEME), "  ▾ etc/")
        self.assertEqual(format_tree_row(row, set(), theme=PLAIN_THEME), "  ▸ etc/")

    def test_file_row_shows_size_and_change_badge(self) -> None:
        row = VisibleRow(
            path="/a.bin",
            depth=0,
            is_dir=False,
            parent_path=None,
            name="a.bin",
            size=2048,
            change_kind=ChangeKind.ADDED,
        )

        self.assertEqual(format_tree_row(row, set(), theme=PLAIN_THEME), "  a.bin [2.0 KB] [A]")
        self.assertEqual(format_tree_row(row, set(), show_size_labels=False, theme=PLAIN_THEME), "  a.bin [A]")

    def test_symlink_row_shows_target(self) -> None:
        row = VisibleRow(
            path="/bin",
            depth=0,
            is_dir=False,
            parent_path=None,
            name="bin",
            kind=NodeKind.SYMLINK,
            link_target="usr/bin",
        )

        self.assertEqual(format_tree_row(row, set(), theme=PLAIN_THEME), "↗ bin -> usr/bin")

    def test_colored_row_measures_like_plain_row(self) -> None:
        row = VisibleRow(path="/x", depth=2, is_dir=False, parent_path="/", name="x", size=5)

        colored = format_tree_row(row, set(), theme=DEFAULT_THEME)
        plain = format_tree_row(row, set(), theme=PLAIN_THEME)

        self.assertNotEqual(colored, plain)
        self.assertEqual(display_width(colored), display_width(plain))


class ViewportTests(unittest.TestCase):
    def test_viewport_scrolls_to_keep_focus_visible(self) -> None:
        self.assertEqual(tree_viewport_start(0, 12, 40, 10), 3)
        self.assertEqual(tree_viewport_start(8, 2, 40, 10), 2)
        self.assertEqual(tree_viewport_start(5, 7, 40, 10), 5)
        self.assertEqual(tree_viewport_start(35, 39, 40, 10), 30)
        self.assertEqual(tree_viewport_start(4, None, 0, 10), 0)

    def test_row_index_at_skips_header_and_footer(self) -> None:
        self.assertIsNone(row_index_at(1, 0, 10, 50))
        self.assertEqual(row_index_at(2, 0, 10, 50), 0)
        self.assertEqual(row_index_at(9, 4, 10, 50), 11)
        self.assertIsNone(row_index_at(10, 0, 10, 50))
        self.assertIsNone(row_index_at(5, 0, 10, 2))


class FrameTests(unittest.TestCase):
    def test_frame_has_exact_height_and_highlights_focus(self) -> None:
        rows = [
            VisibleRow(path="/a", depth=0, is_dir=True, parent_path=None, name="a", kind=NodeKind.DIR),
            VisibleRow(path="/b", depth=0, is_dir=False, parent_path=None, name="b"),
        ]
        ctx = RenderContext(
            rows=rows,
            focused_index=1,
            tree_start=0,
            expanded=set(),
            width=30,
            height=6,
            image_ref="demo:latest",
            layer_index=0,
            layer_count=3,
            theme=PLAIN_THEME,
        )

        lines = build_frame_lines(ctx)

        self.assertEqual(len(lines), 6)
        self.assertIn("demo:latest", lines[0])
        self.assertIn("layer 1/3", lines[0])
        self.assertTrue(lines[2].startswith(PLAIN_THEME.reverse))
        self.assertTrue(all(display_width(line) == 30 for line in lines))

    def test_empty_frame_reports_loading_and_errors(self) -> None:
        base = dict(rows=[], focused_index=None, tree_start=0, expanded=set(), width=40, height=4, theme=PLAIN_THEME)

        self.assertIn("Loading", build_frame_lines(RenderContext(loading=True, **base))[1])
        self.assertIn("boom", build_frame_lines(RenderContext(load_error="boom", **base))[1])
        self.assertIn("No changes", build_frame_lines(RenderContext(changes_only=True, **base))[1])

    def test_selected_with_ansi_keeps_reverse_video_across_resets(self) -> None:
        styled = selected_with_ansi("\033[31mred\033[0m tail")

        self.assertTrue(styled.startswith("\033[7m"))
        self.assertIn("\033[0;7m tail", styled)

    def test_render_plain_tree_outputs_one_line_per_row(self) -> None:
        rows = [
            VisibleRow(path="/a", depth=0, is_dir=True, parent_path=None, name="a", kind=NodeKind.DIR),
            VisibleRow(path="/a/b", depth=1, is_dir=False, parent_path="/a", name="b", size=1),
        ]

        text = render_plain_tree(rows, {"/a"}, theme=PLAIN_THEME)

        self.assertEqual(text, "▾ a/\n    b [1 B]\n")


if __name__ == "__main__":
    unittest.main()
