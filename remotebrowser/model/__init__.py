"""Pure data model: entries, remote paths, permission codec and labels.

Nothing in this package performs I/O.
"""

from __future__ import annotations

from . import paths
from .formatting import format_file_size, listing_row, mtime_label, permissions_label, size_label
from .permissions import PermissionMatrix, PermissionSet, from_octal, from_symbolic, validate_octal
from .types import EntryType, FileEntry, SearchResult, SessionHandle, StatInfo, UploadFile

__all__ = [
    "EntryType",
    "FileEntry",
    "PermissionMatrix",
    "PermissionSet",
    "SearchResult",
    "SessionHandle",
    "StatInfo",
    "UploadFile",
    "format_file_size",
    "from_octal",
    "from_symbolic",
    "listing_row",
    "mtime_label",
    "paths",
    "permissions_label",
    "size_label",
    "validate_octal",
]
