"""Preview and edit one remote file.

The category picked from the file name decides how content is fetched:
text is decoded and editable, images, videos and PDFs become a local
preview handle, and anything else is offered for download only.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from ..highlight import DEFAULT_STYLE, has_lexer, highlight_text
from ..model import paths
from ..model.types import FileEntry
from ..remote.api import FileApi
from ..remote.cancellation import RequestScope
from ..remote.errors import RemoteFileError, RequestCancelled
from .collaborators import Confirm, LoggingNotifier, Notifier, never_confirm
from .operations import Download
from .previews import PreviewHandle, PreviewStore

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "webp", "svg", "bmp", "ico"})
VIDEO_EXTENSIONS = frozenset({"mp4", "webm", "ogg", "mov", "avi", "mkv"})
PDF_EXTENSIONS = frozenset({"pdf"})
TEXT_EXTENSIONS = frozenset(
    {
        "txt", "md", "js", "jsx", "ts", "tsx", "json", "xml", "yaml", "yml",
        "css", "scss", "html", "py", "php", "java", "cpp", "c", "h", "hpp",
        "cs", "go", "rs", "rb", "swift", "kt", "scala", "sh", "bash", "zsh",
        "fish", "sql", "dockerfile", "gitignore", "env", "conf", "config",
        "ini", "toml", "log", "csv",
    }
)

Save = Callable[[str, str], Awaitable[bool]]


class ContentCategory(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    PDF = "pdf"
    BINARY = "binary"

    @property
    def previewable(self) -> bool:
        return self in (ContentCategory.IMAGE, ContentCategory.VIDEO, ContentCategory.PDF)


def categorize(name: str) -> ContentCategory:
    leaf = paths.basename(name) or name
    ext = paths.extension(leaf)
    if ext in IMAGE_EXTENSIONS:
        return ContentCategory.IMAGE
    if ext in VIDEO_EXTENSIONS:
        return ContentCategory.VIDEO
    if ext in PDF_EXTENSIONS:
        return ContentCategory.PDF
    if ext in TEXT_EXTENSIONS:
        return ContentCategory.TEXT
    if leaf.startswith(".") and "." not in leaf[1:]:
        return ContentCategory.TEXT
    if has_lexer(leaf):
        return ContentCategory.TEXT
    return ContentCategory.BINARY


class ContentViewer:
    def __init__(
        self,
        api: FileApi,
        *,
        save: Save | None = None,
        notifier: Notifier | None = None,
        confirm: Confirm = never_confirm,
        previews: PreviewStore | None = None,
        style: str = DEFAULT_STYLE,
    ) -> None:
        self.api = api
        self._save = save
        self.notifier = notifier or LoggingNotifier()
        self.confirm = confirm
        self.previews = previews or PreviewStore()
        self.style = style
        self._scope = RequestScope("viewer")

        self.entry: FileEntry | None = None
        self.category: ContentCategory | None = None
        self.content: str | None = None
        self.original: str | None = None
        self.preview: PreviewHandle | None = None
        self.loading = False
        self.saving = False
        self.error: RemoteFileError | None = None

    @property
    def is_open(self) -> bool:
        return self.entry is not None

    @property
    def editable(self) -> bool:
        return self.category is ContentCategory.TEXT and self.original is not None

    @property
    def dirty(self) -> bool:
        return self.editable and self.content != self.original

    @property
    def can_save(self) -> bool:
        return self.dirty and not self.saving

    @property
    def can_download(self) -> bool:
        return self.entry is not None and self.category is not ContentCategory.TEXT

    def _release_preview(self) -> None:
        if self.preview is not None:
            self.preview.release()
            self.preview = None

    def _reset(self) -> None:
        self._release_preview()
        self.entry = None
        self.category = None
        self.content = None
        self.original = None
        self.loading = False
        self.saving = False
        self.error = None

    async def open(self, entry: FileEntry) -> bool:
        """Load ``entry``, replacing whatever was shown before.

        Returns whether this call's content ended up displayed; a newer
        ``open`` or a ``close`` while loading makes it ``False``.
        """
        if entry.is_dir:
            raise ValueError(f"{entry.path} is a directory")
        token = self._scope.begin()
        self._reset()
        self.entry = entry
        self.category = categorize(entry.name)
        if self.category is ContentCategory.BINARY:
            self._scope.finish(token)
            return True

        self.loading = True
        try:
            if self.category is ContentCategory.TEXT:
                text = await self.api.read_text(entry.path, token=token)
            else:
                blob = await self.api.read_blob(entry.path, token=token)
        except RequestCancelled:
            return False
        except RemoteFileError as exc:
            if not self._scope.is_current(token):
                return False
            self.loading = False
            self.error = exc
            self.notifier.error(exc.message)
            self._scope.finish(token)
            return False

        if not self._scope.is_current(token):
            return False
        if self.category is ContentCategory.TEXT:
            self.content = text
            self.original = text
        else:
            handle = await asyncio.to_thread(self.previews.create, entry.name, blob.data, blob.content_type)
            if not self._scope.is_current(token):
                handle.release()
                return False
            self.preview = handle
        self.loading = False
        self._scope.finish(token)
        logger.debug("opened %s as %s", entry.path, self.category.value)
        return True

    def edit(self, text: str) -> None:
        if not self.editable:
            raise ValueError("only text content can be edited")
        self.content = text

    def _still_showing(self, entry: FileEntry, generation: int) -> bool:
        return self.entry is entry and self._scope.generation == generation

    async def save(self) -> bool:
        """Write the edited text back; returns whether the remote write succeeded.

        If another file was opened (or the viewer closed) while the write was
        in flight, the result is not applied to the viewer.
        """
        if not self.can_save or self.entry is None or self.content is None:
            return False
        entry = self.entry
        generation = self._scope.generation
        content = self.content
        self.saving = True
        try:
            if self._save is not None:
                saved = await self._save(entry.path, content)
            else:
                saved = await self._write(entry.path, content)
        finally:
            if self._still_showing(entry, generation):
                self.saving = False
        if saved and self._still_showing(entry, generation):
            self.original = content
        return saved

    async def _write(self, path: str, content: str) -> bool:
        try:
            await self.api.write_file(path, content)
        except RemoteFileError as exc:
            self.notifier.error(exc.message)
            return False
        self.notifier.success(f"Saved {paths.basename(path)}")
        return True

    async def handle_key(self, key: str, *, ctrl: bool = False, meta: bool = False) -> bool:
        """Ctrl+S / Cmd+S saves. Returns whether the key was consumed."""
        if key.lower() != "s" or not (ctrl or meta):
            return False
        if self.can_save:
            await self.save()
        return True

    async def close(self) -> bool:
        """Close the viewer; unsaved text changes need confirmation first."""
        if self.dirty and self.entry is not None:
            if not await self.confirm(f"Discard unsaved changes to {self.entry.name}?"):
                return False
        self._scope.cancel("closed")
        self._reset()
        return True

    def discard(self) -> None:
        """Drop the open file without asking and release every preview."""
        self._scope.cancel("closed")
        self._reset()
        self.previews.release_all()

    async def download(self) -> Download | None:
        if self.entry is None:
            return None
        try:
            data = await self.api.download(self.entry.path)
        except RemoteFileError as exc:
            self.notifier.error(exc.message)
            return None
        return Download(filename=self.entry.name, data=data, paths=(self.entry.path,))

    def highlighted(self, output: str = "terminal") -> str | None:
        if self.category is not ContentCategory.TEXT or self.content is None or self.entry is None:
            return None
        return highlight_text(self.content, self.entry.name, style=self.style, output=output)


__all__ = [
    "ContentCategory",
    "ContentViewer",
    "IMAGE_EXTENSIONS",
    "PDF_EXTENSIONS",
    "TEXT_EXTENSIONS",
    "VIDEO_EXTENSIONS",
    "categorize",
]
