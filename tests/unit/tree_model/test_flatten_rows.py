"""Flattening and row-scan tests for layer trees."""

from __future__ import annotations

import unittest

from layerpeek.tree_model import (
    ChangeKind,
    Node,
    NodeKind,
    VisibleRow,
    count_nodes,
    directory_paths,
    find_row_index,
    flatten_tree,
    next_changed_row_index,
    next_directory_row_index,
)


def _file(path: str, size: int = 0) -> Node:
    return Node(name=path.rsplit("/", 1)[-1], path=path, kind=NodeKind.FILE, size=size)


def _dir(path: str, *children: Node) -> Node:
    name = "/" if path == "/" else path.rsplit("/", 1)[-1]
    return Node(name=name, path=path, kind=NodeKind.DIR, children=children)


def _nested_tree() -> Node:
    return _dir(
        "/",
        _dir(
            "/usr",
            _dir("/usr/lib", _file("/usr/lib/libc.so", 2048), _dir("/usr/lib/deep", _file("/usr/lib/deep/x"))),
            _file("/usr/README"),
        ),
        _dir("/etc", _file("/etc/passwd", 120)),
        _file("/init"),
    )


def _reachable_count(node: Node, expanded: set[str]) -> int:
    total = 0
    for child in node.children:
        total += 1
        if child.is_dir and child.path in expanded:
            total += _reachable_count(child, expanded)
    return total


class FlattenTreeTests(unittest.TestCase):
    def test_collapsed_tree_lists_root_children_only(self) -> None:
        tree = _dir("/", _dir("/a", _file("/a/b.txt", 10)), _file("/c.txt"))

        rows = flatten_tree(tree, set())

        self.assertEqual([row.path for row in rows], ["/a", "/c.txt"])
        self.assertEqual([row.depth for row in rows], [0, 0])
        self.assertTrue(rows[0].is_dir)
        self.assertIsNone(rows[0].parent_path)

    def test_expanded_directory_children_follow_it(self) -> None:
        tree = _dir("/", _dir("/a", _file("/a/b.txt", 10)), _file("/c.txt"))

        rows = flatten_tree(tree, {"/a"})

        self.assertEqual([row.path for row in rows], ["/a", "/a/b.txt", "/c.txt"])
        self.assertEqual(rows[1].depth, 1)
        self.assertEqual(rows[1].parent_path, "/a")
        self.assertEqual(rows[1].size, 10)

    def test_row_count_matches_reachable_nodes(self) -> None:
        tree = _nested_tree()
        for expanded in (set(), {"/usr"}, {"/usr", "/usr/lib"}, {"/usr/lib"}, {"/usr", "/usr/lib", "/usr/lib/deep", "/etc"}):
            with self.subTest(expanded=expanded):
                self.assertEqual(len(flatten_tree(tree, expanded)), _reachable_count(tree, expanded))

    def test_collapse_removes_exactly_the_subtree_rows(self) -> None:
        tree = _nested_tree()
        opened = [row.path for row in flatten_tree(tree, {"/usr", "/usr/lib"})]
        closed = [row.path for row in flatten_tree(tree, {"/usr"})]

        self.assertEqual(
            [path for path in opened if not path.startswith("/usr/lib/")],
            closed,
        )

    def test_expanded_directory_below_collapsed_parent_stays_hidden(self) -> None:
        rows = flatten_tree(_nested_tree(), {"/usr/lib"})

        self.assertEqual([row.path for row in rows], ["/usr", "/etc", "/init"])

    def test_diff_overlay_annotates_rows(self) -> None:
        rows = flatten_tree(_nested_tree(), {"/etc"}, {"/etc/passwd": ChangeKind.MODIFIED})

        by_path = {row.path: row for row in rows}
        self.assertEqual(by_path["/etc/passwd"].change_kind, ChangeKind.MODIFIED)
        self.assertIsNone(by_path["/etc"].change_kind)

    def test_malformed_and_duplicate_children_are_skipped(self) -> None:
        tree = _dir("/", _dir("/a", _file("/elsewhere/x"), _file("/a/ok")), _file("/a/ok"), _file("/a"))

        rows = flatten_tree(tree, {"/a"})

        self.assertEqual([row.path for row in rows], ["/a", "/a/ok"])

    def test_missing_tree_yields_no_rows(self) -> None:
        self.assertEqual(flatten_tree(None, {"/a"}), [])


class DirectoryPathsTests(unittest.TestCase):
    def test_depth_bound_counts_root_children_as_depth_zero(self) -> None:
        tree = _nested_tree()

        self.assertEqual(directory_paths(tree, 1), {"/usr", "/etc"})
        self.assertEqual(directory_paths(tree, 2), {"/usr", "/etc", "/usr/lib"})
        self.assertEqual(directory_paths(tree), {"/usr", "/etc", "/usr/lib", "/usr/lib/deep"})

    def test_count_nodes_excludes_root(self) -> None:
        self.assertEqual(count_nodes(_nested_tree()), 9)
        self.assertEqual(count_nodes(None), 0)


class RowScanTests(unittest.TestCase):
    def setUp(self) -> None:
        self.rows = [
            VisibleRow(path="/a", depth=0, is_dir=True, parent_path=None),
            VisibleRow(path="/a/x", depth=1, is_dir=False, parent_path="/a", change_kind=ChangeKind.ADDED),
            VisibleRow(path="/b", depth=0, is_dir=False, parent_path=None),
            VisibleRow(path="/c", depth=0, is_dir=True, parent_path=None, change_kind=ChangeKind.DELETED),
        ]

    def test_find_row_index_by_path(self) -> None:
        self.assertEqual(find_row_index(self.rows, "/b"), 2)
        self.assertIsNone(find_row_index(self.rows, "/missing"))
        self.assertIsNone(find_row_index(self.rows, None))

    def test_next_changed_row_in_both_directions(self) -> None:
        self.assertEqual(next_changed_row_index(self.rows, 0, 1), 1)
        self.assertEqual(next_changed_row_index(self.rows, 1, 1), 3)
        self.assertEqual(next_changed_row_index(self.rows, 3, -1), 1)
        self.assertIsNone(next_changed_row_index(self.rows, 3, 1))

    def test_next_directory_row(self) -> None:
        self.assertEqual(next_directory_row_index(self.rows, 0, 1), 3)
        self.assertEqual(next_directory_row_index(self.rows, 3, -1), 0)
        self.assertIsNone(next_directory_row_index(self.rows, 0, -1))


if __name__ == "__main__":
    unittest.main()
