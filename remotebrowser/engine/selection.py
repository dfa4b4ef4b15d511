"""Multi-item selection over the current listing and the gates derived from it."""

from __future__ import annotations

from dataclasses import dataclass

from ..model import paths
from ..model.types import FileEntry
from .state import BrowserState


@dataclass(frozen=True)
class SelectionStats:
    count: int = 0
    total_size: int = 0
    has_files: bool = False
    has_directories: bool = False
    all_files: bool = False
    all_directories: bool = False

    @classmethod
    def from_entries(cls, entries: list[FileEntry]) -> SelectionStats:
        files = [entry for entry in entries if entry.is_file]
        directories = [entry for entry in entries if entry.is_dir]
        count = len(entries)
        return cls(
            count=count,
            total_size=sum(entry.size for entry in files),
            has_files=bool(files),
            has_directories=bool(directories),
            all_files=count > 0 and len(files) == count,
            all_directories=count > 0 and len(directories) == count,
        )


@dataclass(frozen=True)
class ActionGate:
    """Whether an action is available for the current selection, and why not."""

    enabled: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.enabled


NOTHING_SELECTED = "Select at least one item"
DIRECTORY_SELECTED = "Folders cannot be downloaded; select files only"
SINGLE_ITEM_ONLY = "Select exactly one item"


def download_gate(stats: SelectionStats) -> ActionGate:
    if stats.count == 0:
        return ActionGate(False, NOTHING_SELECTED)
    if stats.has_directories:
        return ActionGate(False, DIRECTORY_SELECTED)
    return ActionGate(True)


def single_item_gate(stats: SelectionStats) -> ActionGate:
    if stats.count != 1:
        return ActionGate(False, SINGLE_ITEM_ONLY)
    return ActionGate(True)


def any_item_gate(stats: SelectionStats) -> ActionGate:
    if stats.count == 0:
        return ActionGate(False, NOTHING_SELECTED)
    return ActionGate(True)


class SelectionManager:
    """Mutates ``state.selection``; stats are derived from it on every read."""

    def __init__(self, state: BrowserState) -> None:
        self.state = state

    @property
    def selected(self) -> frozenset[str]:
        return frozenset(self.state.selection)

    def is_selected(self, path: str) -> bool:
        return paths.normalize(path) in self.state.selection

    def toggle(self, path: str) -> bool:
        """Flip membership of ``path``; returns the new membership."""
        target = paths.normalize(path)
        if target in self.state.selection:
            self.state.selection.discard(target)
            return False
        if target not in self.state.entry_paths():
            return False
        self.state.selection.add(target)
        return True

    def select(self, path: str, selected: bool = True) -> None:
        target = paths.normalize(path)
        if not selected:
            self.state.selection.discard(target)
            return
        if target in self.state.entry_paths():
            self.state.selection.add(target)

    def select_all(self) -> None:
        self.state.set_selection(self.state.entry_paths())

    def clear(self) -> None:
        self.state.selection.clear()

    def selected_entries(self) -> list[FileEntry]:
        """Selected entries in display order."""
        return [entry for entry in self.state.sorted_entries() if entry.path in self.state.selection]

    @property
    def stats(self) -> SelectionStats:
        return SelectionStats.from_entries(self.selected_entries())

    @property
    def download(self) -> ActionGate:
        return download_gate(self.stats)

    @property
    def chmod(self) -> ActionGate:
        return single_item_gate(self.stats)

    @property
    def rename(self) -> ActionGate:
        return single_item_gate(self.stats)

    @property
    def delete(self) -> ActionGate:
        return any_item_gate(self.stats)


__all__ = [
    "ActionGate",
    "DIRECTORY_SELECTED",
    "NOTHING_SELECTED",
    "SINGLE_ITEM_ONLY",
    "SelectionManager",
    "SelectionStats",
    "any_item_gate",
    "download_gate",
    "single_item_gate",
]
