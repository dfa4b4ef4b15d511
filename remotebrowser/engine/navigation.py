"""Back/forward history of visited remote directories.

This module has no I/O and no UI concerns. Reloading the listing after a
move is the caller's job.
"""

from __future__ import annotations

from ..model import paths

MAX_HISTORY = 256


class NavigationHistory:
    """Ordered visited paths plus a cursor that always points at one of them.

    Navigating truncates any forward entries past the cursor before appending.
    The oldest entries are dropped once ``max_entries`` is exceeded.
    """

    def __init__(self, initial_path: str = paths.ROOT, max_entries: int = MAX_HISTORY) -> None:
        self.max_entries = max(1, max_entries)
        self._entries: list[str] = [paths.normalize(initial_path)]
        self._cursor = 0

    @property
    def entries(self) -> tuple[str, ...]:
        return tuple(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> str:
        return self._entries[self._cursor]

    @property
    def can_go_back(self) -> bool:
        return self._cursor > 0

    @property
    def can_go_forward(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def navigate(self, path: str) -> str:
        """Append ``path`` after the cursor, discarding forward history."""
        target = paths.normalize(path)
        del self._entries[self._cursor + 1 :]
        self._entries.append(target)
        overflow = len(self._entries) - self.max_entries
        if overflow > 0:
            del self._entries[:overflow]
        self._cursor = len(self._entries) - 1
        return target

    def back(self) -> str | None:
        if not self.can_go_back:
            return None
        self._cursor -= 1
        return self.current

    def forward(self) -> str | None:
        if not self.can_go_forward:
            return None
        self._cursor += 1
        return self.current

    def up_target(self) -> str | None:
        """Parent of the current path, or ``None`` at the root."""
        if paths.is_root(self.current):
            return None
        return paths.parent(self.current)

    def replace_current(self, path: str) -> str:
        """Overwrite the entry under the cursor (used when a vanished directory is left)."""
        target = paths.normalize(path)
        self._entries[self._cursor] = target
        return target


__all__ = ["MAX_HISTORY", "NavigationHistory"]
