"""Revocable local preview handles for binary remote content.

A handle is a temporary file holding downloaded bytes, addressed by a
``file://`` URI that a viewer can open. The component that created a
handle owns it and must release it when the content is replaced or the
component is torn down.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from ..model import paths

logger = logging.getLogger(__name__)

PREVIEW_PREFIX = "remotebrowser-preview-"


class PreviewHandle:
    def __init__(self, path: Path, name: str, content_type: str) -> None:
        self.path = path
        self.name = name
        self.content_type = content_type
        self._revoked = False

    @property
    def uri(self) -> str:
        return self.path.as_uri()

    @property
    def revoked(self) -> bool:
        return self._revoked

    def read_bytes(self) -> bytes:
        if self._revoked:
            raise ValueError(f"preview of {self.name!r} was released")
        return self.path.read_bytes()

    def release(self) -> None:
        """Delete the backing file. Releasing twice is a no-op."""
        if self._revoked:
            return
        self._revoked = True
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        logger.debug("released preview %s", self.path)

    def __repr__(self) -> str:
        state = "revoked" if self._revoked else "live"
        return f"PreviewHandle({self.name!r}, {self.content_type!r}, {state})"


class PreviewStore:
    """Creates preview handles under one directory and tracks the live ones."""

    def __init__(self, directory: Path | None = None) -> None:
        self.directory = Path(directory) if directory is not None else Path(tempfile.gettempdir())
        self._live: list[PreviewHandle] = []

    @property
    def live(self) -> list[PreviewHandle]:
        self._live = [handle for handle in self._live if not handle.revoked]
        return list(self._live)

    def create(self, name: str, data: bytes, content_type: str = "application/octet-stream") -> PreviewHandle:
        ext = paths.extension(name)
        suffix = f".{ext}" if ext else ""
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, raw_path = tempfile.mkstemp(prefix=PREVIEW_PREFIX, suffix=suffix, dir=self.directory)
        with os.fdopen(fd, "wb") as handle_file:
            handle_file.write(data)
        handle = PreviewHandle(Path(raw_path), name, content_type)
        self._live.append(handle)
        return handle

    def release_all(self) -> None:
        for handle in self._live:
            handle.release()
        self._live = []


__all__ = ["PREVIEW_PREFIX", "PreviewHandle", "PreviewStore"]
