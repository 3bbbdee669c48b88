"""Navigation state machine tests over flattened layer trees.

Covers directional commands, focus bounds, activation events, layer
lifecycle (stale results, failures) and the changes-only view.
"""

from __future__ import annotations

import random
import unittest

from layerpeek.runtime.navigator import TreeNavigator
from layerpeek.tree_model import ChangeKind, DiffEntry, Node, NodeKind


def _file(path: str, size: int = 0) -> Node:
    return Node(name=path.rsplit("/", 1)[-1], path=path, kind=NodeKind.FILE, size=size)


def _dir(path: str, *children: Node) -> Node:
    name = "/" if path == "/" else path.rsplit("/", 1)[-1]
    return Node(name=name, path=path, kind=NodeKind.DIR, children=children)


def _small_tree() -> Node:
    return _dir("/", _dir("/a", _file("/a/b.txt", 10)), _file("/c.txt", 0))


def _deep_tree() -> Node:
    return _dir(
        "/",
        _dir("/d0", _dir("/d0/d1", _dir("/d0/d1/d2", _dir("/d0/d1/d2/d3", _file("/d0/d1/d2/d3/f"))))),
        _file("/top"),
    )


def _paths(nav: TreeNavigator) -> list[str]:
    return [row.path for row in nav.visible_rows()]


def _collapsed_navigator(tree: Node, diff: list[DiffEntry] | None = None, **kwargs) -> TreeNavigator:
    nav = TreeNavigator(**kwargs)
    nav.select_layer(0)
    nav.load_layer(0, tree, diff or [])
    nav.toggle_all()
    return nav


class NavigatorCommandTests(unittest.TestCase):
    def test_expand_or_descend_opens_then_steps_into_directory(self) -> None:
        nav = _collapsed_navigator(_small_tree())

        self.assertEqual(_paths(nav), ["/a", "/c.txt"])
        self.assertEqual(nav.focused_index(), 0)

        self.assertTrue(nav.expand_or_descend())
        self.assertTrue(nav.is_expanded("/a"))
        self.assertEqual(_paths(nav), ["/a", "/a/b.txt", "/c.txt"])
        self.assertEqual(nav.focused_index(), 0)

        self.assertTrue(nav.expand_or_descend())
        self.assertEqual(nav.focused_row().path, "/a/b.txt")

    def test_descend_on_file_is_noop(self) -> None:
        nav = _collapsed_navigator(_small_tree())
        nav.jump_last()

        self.assertFalse(nav.expand_or_descend())
        self.assertFalse(nav.toggle_expand())
        self.assertEqual(nav.focused_row().path, "/c.txt")

    def test_move_down_at_last_row_is_noop(self) -> None:
        nav = _collapsed_navigator(_small_tree())
        nav.jump_last()

        self.assertFalse(nav.move_down())
        self.assertEqual(nav.focused_index(), 1)
        nav.jump_first()
        self.assertFalse(nav.move_up())
        self.assertEqual(nav.focused_index(), 0)

    def test_collapse_or_ascend_closes_then_moves_to_parent(self) -> None:
        nav = _collapsed_navigator(_small_tree())
        nav.expand_or_descend()
        nav.move_down()

        self.assertTrue(nav.collapse_or_ascend())
        self.assertEqual(nav.focused_row().path, "/a")
        self.assertTrue(nav.collapse_or_ascend())
        self.assertFalse(nav.is_expanded("/a"))
        self.assertFalse(nav.collapse_or_ascend())

    def test_expanding_keeps_focus_on_same_directory_row(self) -> None:
        nav = _collapsed_navigator(_small_tree())
        nav.jump_last()
        nav.focus_index(0)

        nav.toggle_expand()

        self.assertEqual(nav.focused_row().path, "/a")
        nav.jump_last()
        self.assertEqual(nav.focused_row().path, "/c.txt")

    def test_focus_is_clamped_when_focused_row_disappears(self) -> None:
        nav = _collapsed_navigator(_small_tree())
        nav.toggle_expand()
        nav.move_down()
        self.assertEqual(nav.focused_row().path, "/a/b.txt")

        self.assertTrue(nav.toggle_all())

        self.assertEqual(_paths(nav), ["/a", "/c.txt"])
        self.assertEqual(nav.focused_index(), 1)

    def test_activate_directory_toggles_and_file_fires_event_once(self) -> None:
        activated: list[str] = []
        nav = _collapsed_navigator(_small_tree(), on_file_activated=activated.append)

        self.assertTrue(nav.activate())
        self.assertTrue(nav.is_expanded("/a"))
        self.assertEqual(activated, [])

        nav.move_down()
        self.assertTrue(nav.activate())
        self.assertEqual(activated, ["/a/b.txt"])

    def test_expansion_events_carry_full_set(self) -> None:
        events: list[frozenset[str]] = []
        nav = TreeNavigator(on_expansion_changed=events.append)
        nav.select_layer(0)
        nav.load_layer(0, _small_tree(), [])

        self.assertEqual(events, [frozenset({"/a"})])
        nav.toggle_expand()
        self.assertEqual(events[-1], frozenset())
        nav.move_down()
        self.assertFalse(nav.toggle_expand())
        self.assertEqual(len(events), 2)

    def test_toggle_all_expands_bounded_depth_then_collapses_everything(self) -> None:
        nav = _collapsed_navigator(_deep_tree())

        self.assertTrue(nav.toggle_all())
        self.assertEqual(nav.expanded_paths(), {"/d0", "/d0/d1", "/d0/d1/d2"})
        self.assertNotIn("/d0/d1/d2/d3", nav.expanded_paths())

        nav.expansion.expand("/d0/d1/d2/d3")
        self.assertTrue(nav.toggle_all())
        self.assertEqual(nav.expanded_paths(), frozenset())
        self.assertEqual(_paths(nav), ["/d0", "/top"])

    def test_commands_are_noops_without_rows(self) -> None:
        nav = TreeNavigator()
        nav.select_layer(0)

        self.assertIsNone(nav.focused_index())
        for command in (
            nav.move_down,
            nav.move_up,
            nav.jump_first,
            nav.jump_last,
            nav.expand_or_descend,
            nav.collapse_or_ascend,
            nav.toggle_expand,
            nav.activate,
            nav.toggle_all,
        ):
            self.assertFalse(command())
        self.assertFalse(nav.click_row(0))
        self.assertIsNone(nav.focused_index())

    def test_focus_stays_in_bounds_under_random_commands(self) -> None:
        rng = random.Random(7)
        nav = TreeNavigator()
        nav.select_layer(0)
        nav.load_layer(
            0,
            _deep_tree(),
            [DiffEntry("/top", NodeKind.FILE, ChangeKind.ADDED)],
        )
        commands = [
            nav.move_down,
            nav.move_up,
            nav.jump_first,
            nav.jump_last,
            nav.expand_or_descend,
            nav.collapse_or_ascend,
            nav.toggle_expand,
            nav.activate,
            nav.toggle_all,
            nav.toggle_changes_only,
            lambda: nav.next_change(1),
            lambda: nav.next_directory(-1),
        ]
        for _ in range(500):
            rng.choice(commands)()
            rows = nav.visible_rows()
            focused = nav.focused_index()
            if rows:
                self.assertIsNotNone(focused)
                self.assertTrue(0 <= focused < len(rows))
            else:
                self.assertIsNone(focused)

    def test_click_row_focuses_and_optionally_activates(self) -> None:
        activated: list[str] = []
        nav = _collapsed_navigator(_small_tree(), on_file_activated=activated.append)

        self.assertTrue(nav.click_row(1))
        self.assertEqual(activated, [])
        self.assertTrue(nav.click_row(1, activate=True))
        self.assertEqual(activated, ["/c.txt"])
        self.assertFalse(nav.click_row(5, activate=True))


class NavigatorLayerLifecycleTests(unittest.TestCase):
    def test_stale_layer_result_is_ignored(self) -> None:
        nav = TreeNavigator()
        nav.select_layer(0)
        nav.select_layer(1)

        self.assertFalse(nav.load_layer(0, _small_tree(), []))
        self.assertTrue(nav.loading)
        self.assertEqual(nav.visible_rows(), ())

        self.assertTrue(nav.load_layer(1, _small_tree(), []))
        self.assertFalse(nav.loading)
        self.assertEqual(nav.focused_index(), 0)

    def test_new_layer_resets_focus_and_carries_expansion(self) -> None:
        nav = TreeNavigator()
        nav.select_layer(0)
        nav.load_layer(0, _small_tree(), [])
        nav.jump_last()
        self.assertEqual(_paths(nav), ["/a", "/a/b.txt", "/c.txt"])

        nav.select_layer(1)
        self.assertIsNone(nav.focused_index())
        nav.load_layer(1, _small_tree(), [])

        self.assertEqual(nav.focused_index(), 0)
        self.assertTrue(nav.is_expanded("/a"))

    def test_switching_layers_reports_installed_expansion_set(self) -> None:
        events: list[frozenset[str]] = []
        nav = TreeNavigator(on_expansion_changed=events.append)
        nav.select_layer(0)
        nav.load_layer(0, _small_tree(), [])
        self.assertEqual(events, [frozenset({"/a"})])

        nav.select_layer(1)
        self.assertEqual(events, [frozenset({"/a"}), frozenset({"/a"})])
        nav.load_layer(1, _small_tree(), [])
        self.assertEqual(len(events), 2)

        nav.toggle_expand()
        nav.select_layer(0)
        self.assertEqual(events[-1], frozenset({"/a"}))

    def test_failed_layer_shows_empty_rows_with_error(self) -> None:
        nav = TreeNavigator()
        nav.select_layer(3)

        self.assertTrue(nav.fail_layer(3, "layer tar is corrupt"))
        self.assertEqual(nav.load_error, "layer tar is corrupt")
        self.assertEqual(nav.visible_rows(), ())
        self.assertFalse(nav.fail_layer(2, "stale"))

        self.assertTrue(nav.select_layer(3))
        self.assertIsNone(nav.load_error)

    def test_reselecting_current_layer_is_noop(self) -> None:
        nav = TreeNavigator()
        nav.select_layer(0)
        nav.load_layer(0, _small_tree(), [])
        nav.jump_last()

        self.assertFalse(nav.select_layer(0))
        self.assertEqual(nav.focused_index(), 2)


class ChangesOnlyViewTests(unittest.TestCase):
    def setUp(self) -> None:
        self.activated: list[str] = []
        self.nav = TreeNavigator(on_file_activated=self.activated.append)
        self.nav.select_layer(0)
        self.nav.load_layer(
            0,
            _small_tree(),
            [
                DiffEntry("/a/b.txt", NodeKind.FILE, ChangeKind.MODIFIED, size=10),
                DiffEntry("/a/gone.txt", NodeKind.FILE, ChangeKind.DELETED, size=3),
            ],
        )

    def test_changes_only_hides_unchanged_entries_and_shows_deletions(self) -> None:
        self.assertTrue(self.nav.set_changes_only(True))

        self.assertEqual(_paths(self.nav), ["/a", "/a/b.txt", "/a/gone.txt"])
        self.assertEqual(self.nav.change_kind("/a/gone.txt"), ChangeKind.DELETED)

        self.assertTrue(self.nav.toggle_changes_only())
        self.assertEqual(_paths(self.nav), ["/a", "/a/b.txt", "/c.txt"])

    def test_deleted_entries_are_selectable_but_not_fetchable(self) -> None:
        self.nav.set_changes_only(True)
        self.nav.jump_last()

        self.assertTrue(self.nav.activate())
        self.assertEqual(self.activated, ["/a/gone.txt"])
        self.assertFalse(self.nav.is_fetchable("/a/gone.txt"))
        self.assertTrue(self.nav.is_fetchable("/a/b.txt"))
        self.assertFalse(self.nav.is_fetchable("/a"))

    def test_next_change_skips_unchanged_rows(self) -> None:
        self.assertTrue(self.nav.next_change(1))
        self.assertEqual(self.nav.focused_row().path, "/a/b.txt")
        self.assertFalse(self.nav.next_change(1))
        self.assertTrue(self.nav.next_directory(-1))
        self.assertEqual(self.nav.focused_row().path, "/a")

    def test_focus_follows_path_when_view_changes(self) -> None:
        self.nav.next_change(1)

        self.nav.set_changes_only(True)

        self.assertEqual(self.nav.focused_row().path, "/a/b.txt")


if __name__ == "__main__":
    unittest.main()
