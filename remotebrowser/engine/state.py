"""Explicit engine state with the transitions that guard its invariants.

All browsing components read and write this one object. The UI reads
``snapshot()`` and never mutates fields directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..model import paths
from ..model.types import FileEntry
from ..remote.errors import PERSISTENT_KINDS, ErrorKind, RemoteFileError


SORT_FIELDS = ("name", "size", "modified")
SORT_ORDERS = ("asc", "desc")


def _sort_key(sort_by: str):
    if sort_by == "size":
        return lambda entry: entry.size or 0
    if sort_by == "modified":
        return lambda entry: entry.mtime.timestamp() if entry.mtime else 0.0
    return lambda entry: (entry.name.casefold(), entry.name)


class BrowserStatus(str, Enum):
    WAITING = "waiting"  # no session yet
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class BrowserError:
    """An error kept visible in the view, with the recovery it allows."""

    kind: ErrorKind
    message: str
    path: str

    @classmethod
    def from_exception(cls, exc: RemoteFileError, path: str) -> BrowserError:
        return cls(kind=exc.kind, message=exc.message, path=path)

    @property
    def persistent(self) -> bool:
        return self.kind in PERSISTENT_KINDS

    @property
    def can_request_access(self) -> bool:
        return self.kind is ErrorKind.PERMISSION

    @property
    def can_reconnect(self) -> bool:
        return self.kind is ErrorKind.SESSION_EXPIRED

    def as_dict(self) -> dict[str, object]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "path": self.path,
            "can_request_access": self.can_request_access,
            "can_reconnect": self.can_reconnect,
        }


@dataclass
class BrowserState:
    current_path: str = paths.ROOT
    connected: bool = False
    loading: bool = False
    entries: list[FileEntry] = field(default_factory=list)
    listed_path: str | None = None
    selection: set[str] = field(default_factory=set)
    error: BrowserError | None = None
    operation_error: BrowserError | None = None
    downloading: bool = False
    sort_by: str = "name"
    sort_order: str = "asc"

    @property
    def status(self) -> BrowserStatus:
        if not self.connected:
            return BrowserStatus.WAITING
        if self.loading:
            return BrowserStatus.LOADING
        if self.error is not None:
            return BrowserStatus.ERROR
        return BrowserStatus.READY

    def entry_paths(self) -> set[str]:
        return {entry.path for entry in self.entries}

    def entry(self, path: str) -> FileEntry | None:
        target = paths.normalize(path)
        for entry in self.entries:
            if entry.path == target:
                return entry
        return None

    def enter(self, path: str) -> None:
        """Switch to ``path``: clears the error and selection of the old view."""
        self.current_path = paths.normalize(path)
        self.error = None
        self.operation_error = None
        self.selection.clear()

    def replace_listing(self, path: str, entries: list[FileEntry]) -> None:
        """Install a fresh listing. Selection is cleared wholesale, never diffed."""
        self.entries = list(entries)
        self.listed_path = paths.normalize(path)
        self.selection.clear()
        self.loading = False
        self.error = None

    def set_sort(self, sort_by: str, order: str | None = None) -> None:
        """Sort the listing by ``sort_by``.

        Without an explicit ``order``, choosing the current field again flips
        the order and choosing another field starts ascending.
        """
        if sort_by not in SORT_FIELDS:
            raise ValueError(f"cannot sort by {sort_by!r}")
        if order is None:
            order = ("desc" if self.sort_order == "asc" else "asc") if sort_by == self.sort_by else "asc"
        elif order not in SORT_ORDERS:
            raise ValueError(f"unknown sort order {order!r}")
        self.sort_by = sort_by
        self.sort_order = order

    def sorted_entries(self) -> list[FileEntry]:
        """Listing in display order: directories first, each group sorted by the current field."""
        key = _sort_key(self.sort_by)
        reverse = self.sort_order == "desc"
        directories = sorted((entry for entry in self.entries if entry.is_dir), key=key, reverse=reverse)
        files = sorted((entry for entry in self.entries if not entry.is_dir), key=key, reverse=reverse)
        return directories + files

    def set_selection(self, selected: set[str]) -> None:
        """Replace the selection, keeping only paths present in the listing."""
        self.selection = set(selected) & self.entry_paths()

    def snapshot(self) -> dict[str, object]:
        """Plain, JSON-serializable view of the state."""
        return {
            "status": self.status.value,
            "current_path": self.current_path,
            "listed_path": self.listed_path,
            "loading": self.loading,
            "entries": [
                {
                    "path": entry.path,
                    "name": entry.name,
                    "type": entry.type.value,
                    "size": entry.size,
                    "mtime": entry.mtime.isoformat() if entry.mtime else None,
                    "permissions": entry.permissions,
                }
                for entry in self.sorted_entries()
            ],
            "sort": {"by": self.sort_by, "order": self.sort_order},
            "selection": sorted(self.selection),
            "error": self.error.as_dict() if self.error else None,
            "operation_error": self.operation_error.as_dict() if self.operation_error else None,
            "downloading": self.downloading,
        }


__all__ = ["BrowserError", "BrowserState", "BrowserStatus", "SORT_FIELDS", "SORT_ORDERS"]
