"""Domain datatypes shared by the remote layer and the browsing engine."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

from . import paths


class EntryType(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class SessionHandle:
    """Opaque credential pair issued by the connection service."""

    connection_id: str
    token: str

    def __repr__(self) -> str:
        return f"SessionHandle(connection_id={self.connection_id!r}, token=<hidden>)"


@dataclass(frozen=True)
class FileEntry:
    """One file or directory row of a remote directory listing."""

    path: str
    name: str
    type: EntryType
    size: int = 0
    mtime: datetime | None = None
    permissions: str = ""

    @property
    def is_dir(self) -> bool:
        return self.type is EntryType.DIRECTORY

    @property
    def is_file(self) -> bool:
        return self.type is EntryType.FILE

    @property
    def extension(self) -> str:
        return "" if self.is_dir else paths.extension(self.name)

    @property
    def parent(self) -> str:
        return paths.parent(self.path)


@dataclass(frozen=True)
class SearchResult:
    path: str
    name: str
    type: EntryType
    size: int | None = None
    mtime: datetime | None = None

    @property
    def is_dir(self) -> bool:
        return self.type is EntryType.DIRECTORY


@dataclass(frozen=True)
class StatInfo:
    """Metadata for a single remote path, as reported by ``/files/stat``."""

    entry: FileEntry
    owner: str | None = None
    group: str | None = None


@dataclass(frozen=True, eq=False)
class UploadFile:
    """A local file queued for upload.

    Compared by identity: two picks of the same file on disk are two uploads.
    """

    name: str
    size: int
    content_type: str = "application/octet-stream"
    data: bytes | None = None
    local_path: Path | None = None

    @classmethod
    def from_path(cls, path: Path) -> UploadFile:
        path = Path(path)
        return cls(
            name=path.name,
            size=path.stat().st_size,
            content_type=guess_content_type(path.name),
            local_path=path,
        )

    @classmethod
    def from_bytes(cls, name: str, data: bytes, content_type: str | None = None) -> UploadFile:
        return cls(
            name=name,
            size=len(data),
            content_type=content_type or guess_content_type(name),
            data=data,
        )

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")

    def read_bytes(self) -> bytes:
        if self.data is not None:
            return self.data
        if self.local_path is None:
            raise ValueError(f"upload {self.name!r} has no content source")
        return self.local_path.read_bytes()


def guess_content_type(name: str) -> str:
    guessed, _encoding = mimetypes.guess_type(name)
    return guessed or "application/octet-stream"


__all__ = [
    "EntryType",
    "FileEntry",
    "SearchResult",
    "SessionHandle",
    "StatInfo",
    "UploadFile",
    "guess_content_type",
]
