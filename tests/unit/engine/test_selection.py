"""Selection tracking, derived stats and action gates."""

from __future__ import annotations

import unittest

from engine_fakes import directory, file

from remotebrowser.engine.selection import (
    DIRECTORY_SELECTED,
    NOTHING_SELECTED,
    SINGLE_ITEM_ONLY,
    SelectionManager,
    SelectionStats,
)
from remotebrowser.engine.state import BrowserState


def _listed_root() -> BrowserState:
    state = BrowserState(connected=True)
    state.replace_listing("/", [directory("/src"), file("/readme.txt", 120), file("/x.exe", 30)])
    return state


class SelectionManagerTests(unittest.TestCase):
    def test_select_all_with_directory_disables_download(self) -> None:
        selection = SelectionManager(_listed_root())
        selection.select_all()
        stats = selection.stats
        self.assertEqual(stats.count, 3)
        self.assertTrue(stats.has_directories)
        self.assertTrue(stats.has_files)
        self.assertFalse(stats.all_files)
        self.assertFalse(selection.download)
        self.assertEqual(selection.download.reason, DIRECTORY_SELECTED)

    def test_total_size_counts_files_only(self) -> None:
        selection = SelectionManager(_listed_root())
        selection.select_all()
        self.assertEqual(selection.stats.total_size, 150)

    def test_toggle_flips_membership(self) -> None:
        selection = SelectionManager(_listed_root())
        self.assertTrue(selection.toggle("/readme.txt"))
        self.assertTrue(selection.is_selected("/readme.txt"))
        self.assertFalse(selection.toggle("/readme.txt"))
        self.assertEqual(selection.selected, frozenset())

    def test_paths_outside_listing_are_never_selected(self) -> None:
        selection = SelectionManager(_listed_root())
        self.assertFalse(selection.toggle("/elsewhere.txt"))
        selection.select("/elsewhere.txt")
        self.assertEqual(selection.selected, frozenset())

    def test_reload_clears_selection(self) -> None:
        state = _listed_root()
        selection = SelectionManager(state)
        selection.select_all()
        state.replace_listing("/", [file("/new.txt")])
        self.assertEqual(selection.selected, frozenset())
        self.assertTrue(selection.selected <= state.entry_paths())

    def test_files_only_selection_enables_download(self) -> None:
        selection = SelectionManager(_listed_root())
        selection.select("/readme.txt")
        selection.select("/x.exe")
        self.assertTrue(selection.stats.all_files)
        self.assertTrue(selection.download)

    def test_chmod_and_rename_need_exactly_one_item(self) -> None:
        selection = SelectionManager(_listed_root())
        self.assertEqual(selection.chmod.reason, SINGLE_ITEM_ONLY)
        selection.select("/src")
        self.assertTrue(selection.chmod)
        self.assertTrue(selection.rename)
        selection.select("/readme.txt")
        self.assertFalse(selection.rename)

    def test_empty_selection_gates(self) -> None:
        selection = SelectionManager(_listed_root())
        self.assertEqual(selection.delete.reason, NOTHING_SELECTED)
        self.assertEqual(selection.download.reason, NOTHING_SELECTED)

    def test_selected_entries_follow_display_order(self) -> None:
        state = _listed_root()
        selection = SelectionManager(state)
        selection.select("/x.exe")
        selection.select("/src")
        selection.select("/readme.txt")
        self.assertEqual([entry.path for entry in selection.selected_entries()], ["/src", "/readme.txt", "/x.exe"])

        state.set_sort("size")
        self.assertEqual([entry.path for entry in selection.selected_entries()], ["/src", "/x.exe", "/readme.txt"])


class SelectionStatsTests(unittest.TestCase):
    def test_empty_selection_is_neither_all_files_nor_all_directories(self) -> None:
        stats = SelectionStats.from_entries([])
        self.assertFalse(stats.all_files)
        self.assertFalse(stats.all_directories)

    def test_directories_only(self) -> None:
        stats = SelectionStats.from_entries([directory("/a"), directory("/b")])
        self.assertTrue(stats.all_directories)
        self.assertEqual(stats.total_size, 0)


if __name__ == "__main__":
    unittest.main()
