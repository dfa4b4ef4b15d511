"""The remote file browser: one object wiring every browsing component.

A UI (or the CLI) talks only to ``RemoteBrowser``: it dispatches intents
(navigate, select, delete, upload, search, open) and renders from
``snapshot()``. Engine-owned state is never mutated from outside.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from ..model import paths
from ..model.types import FileEntry, SessionHandle, StatInfo, UploadFile
from ..remote.api import FileApi
from ..remote.errors import ErrorKind, RemoteFileError
from ..remote.gateway import SessionGateway
from .collaborators import Confirm, DedupingNotifier, LoggingNotifier, Notifier, never_confirm
from .listing import DirectoryListingStore
from .navigation import NavigationHistory
from .operations import BatchOutcome, Download, FileOperationExecutor
from .previews import PreviewStore
from .search import SEARCH_DEBOUNCE_SECONDS, SEARCH_MAX_RESULTS, SearchCoordinator
from .selection import SelectionManager
from .state import BrowserError, BrowserState
from .upload import UploadLimits, UploadPipeline, UploadSummary
from .viewer import ContentViewer

if TYPE_CHECKING:
    from ..config import BrowserConfig

logger = logging.getLogger(__name__)

Reconnect = Callable[[], Awaitable[SessionHandle | None]]

REQUEST_ACCESS_UNAVAILABLE = "Requesting access is not available yet"


class RemoteBrowser:
    def __init__(
        self,
        gateway: SessionGateway,
        *,
        config: BrowserConfig | None = None,
        notifier: Notifier | None = None,
        confirm: Confirm = never_confirm,
        reconnect: Reconnect | None = None,
        previews: PreviewStore | None = None,
    ) -> None:
        self.gateway = gateway
        self.config = config
        self.notifier: Notifier = DedupingNotifier(notifier or LoggingNotifier())
        self._reconnect = reconnect

        self.api = FileApi(gateway)
        self.state = BrowserState()
        self.history = NavigationHistory()
        self.listing = DirectoryListingStore(self.api, self.state, notifier=self.notifier, recover=self._leave_to)
        self.selection = SelectionManager(self.state)
        self.operations = FileOperationExecutor(
            self.api,
            self.state,
            reload=self._reload,
            notifier=self.notifier,
            confirm=confirm,
            on_error=self._operation_failed,
        )
        self.uploads = UploadPipeline(
            self.operations.upload_files,
            limits=UploadLimits.from_config(config) if config is not None else None,
            notifier=self.notifier,
            on_uploaded=self._reload,
        )
        self.search = SearchCoordinator(
            self.api,
            debounce=getattr(config, "search_debounce", SEARCH_DEBOUNCE_SECONDS),
            max_results=getattr(config, "search_max_results", SEARCH_MAX_RESULTS),
            navigate=self.navigate,
            mark_selected=self.selection.select,
        )
        viewer_options = {"style": config.highlight_style} if config is not None else {}
        self.viewer = ContentViewer(
            self.api,
            save=self.operations.save_file,
            notifier=self.notifier,
            confirm=confirm,
            previews=previews,
            **viewer_options,
        )

        if gateway.connected:
            self.state.connected = True

    # Session lifecycle

    async def attach_session(self, session: SessionHandle) -> bool:
        """Start (or resume) browsing with ``session`` at the current history entry."""
        self.gateway.attach(session)
        self.state.connected = True
        self.state.enter(self.history.current)
        logger.info("session attached for connection %s", session.connection_id)
        return await self.listing.load(force=True)

    def detach_session(self) -> None:
        """Drop the session; the browser waits until a new one is attached."""
        self.listing.cancel()
        self.search.close()
        self.gateway.detach()
        self.state.connected = False
        self.state.entries = []
        self.state.listed_path = None
        self.state.selection.clear()

    async def close(self) -> None:
        """Tear down: cancel in-flight work and release every preview."""
        self.detach_session()
        self.uploads.reset()
        self.viewer.discard()
        self.gateway.close()

    # Navigation

    @property
    def current_path(self) -> str:
        return self.state.current_path

    @property
    def can_go_back(self) -> bool:
        return self.history.can_go_back

    @property
    def can_go_forward(self) -> bool:
        return self.history.can_go_forward

    async def navigate(self, path: str) -> bool:
        target = self.history.navigate(path)
        self.state.enter(target)
        return await self.listing.load()

    async def back(self) -> bool:
        target = self.history.back()
        if target is None:
            return False
        self.state.enter(target)
        return await self.listing.load()

    async def forward(self) -> bool:
        target = self.history.forward()
        if target is None:
            return False
        self.state.enter(target)
        return await self.listing.load()

    async def up(self) -> bool:
        target = self.history.up_target()
        if target is None:
            return False
        return await self.navigate(target)

    async def refresh(self) -> bool:
        """Reload the current directory, joining a load already in flight for it."""
        return await self.listing.load()

    async def _reload(self) -> bool:
        # After a mutation an in-flight listing may predate the change.
        return await self.listing.load(force=True)

    async def _leave_to(self, directory: str) -> bool:
        target = self.history.replace_current(directory)
        self.state.enter(target)
        return await self.listing.load()

    async def handle_key(
        self,
        key: str,
        *,
        alt: bool = False,
        ctrl: bool = False,
        meta: bool = False,
    ) -> bool:
        """Keyboard shortcuts. Returns whether the key was consumed."""
        if alt and not (ctrl or meta):
            name = key.lower()
            if name == "left":
                await self.back()
                return True
            if name == "right":
                await self.forward()
                return True
            if name == "up":
                await self.up()
                return True
            return False
        if self.viewer.is_open:
            return await self.viewer.handle_key(key, ctrl=ctrl, meta=meta)
        return False

    # Error affordances

    def _operation_failed(self, exc: RemoteFileError) -> None:
        if exc.kind is ErrorKind.SESSION_EXPIRED:
            self.state.error = BrowserError.from_exception(exc, self.state.current_path)
        elif exc.kind is ErrorKind.PERMISSION:
            self.state.operation_error = BrowserError.from_exception(exc, self.state.current_path)

    def dismiss_operation_error(self) -> None:
        self.state.operation_error = None

    def sort(self, sort_by: str, order: str | None = None) -> None:
        """Change the listing order; the same field again flips ascending/descending."""
        self.state.set_sort(sort_by, order)

    def request_access(self) -> bool:
        """Placeholder for asking the server owner for access."""
        self.notifier.info(REQUEST_ACCESS_UNAVAILABLE)
        return False

    async def reconnect(self) -> bool:
        if self._reconnect is None:
            self.notifier.error("Reconnecting is not available")
            return False
        try:
            session = await self._reconnect()
        except RemoteFileError as exc:
            self.notifier.error(exc.message)
            return False
        if session is None:
            return False
        return await self.attach_session(session)

    # Operations on the current directory and selection

    def _child(self, name: str) -> str:
        return paths.join(self.state.current_path, name)

    async def create_file(self, name: str, content: str = "") -> bool:
        return await self.operations.create_file(self._child(name), content)

    async def create_folder(self, name: str) -> bool:
        return await self.operations.create_folder(self._child(name))

    async def rename(self, path: str, new_name: str) -> bool:
        return await self.operations.rename(path, new_name)

    async def chmod(self, path: str, mode: str) -> bool:
        return await self.operations.chmod(path, mode)

    async def copy(self, source: str, destination: str, overwrite: bool = False) -> bool:
        return await self.operations.copy(source, destination, overwrite)

    async def move(self, source: str, destination: str, overwrite: bool = False) -> bool:
        return await self.operations.move(source, destination, overwrite)

    async def stat(self, path: str) -> StatInfo | None:
        return await self.operations.stat(path)

    async def delete(self, targets: list[str]) -> BatchOutcome:
        return await self.operations.delete(targets)

    async def delete_selected(self) -> BatchOutcome:
        gate = self.selection.delete
        if not gate:
            self.notifier.error(gate.reason)
            return BatchOutcome()
        return await self.operations.delete([entry.path for entry in self.selection.selected_entries()])

    async def rename_selected(self, new_name: str) -> bool:
        gate = self.selection.rename
        if not gate:
            self.notifier.error(gate.reason)
            return False
        return await self.operations.rename(self.selection.selected_entries()[0].path, new_name)

    async def chmod_selected(self, mode: str) -> bool:
        gate = self.selection.chmod
        if not gate:
            self.notifier.error(gate.reason)
            return False
        return await self.operations.chmod(self.selection.selected_entries()[0].path, mode)

    async def download(self, targets: list[str | FileEntry]) -> Download | None:
        return await self.operations.download(targets)

    async def download_selected(self) -> Download | None:
        return await self.operations.download([entry.path for entry in self.selection.selected_entries()])

    async def upload(self, files: list[UploadFile], destination: str | None = None) -> UploadSummary:
        """Queue ``files`` (rejections are reported per file) and upload the batch."""
        await self.uploads.add_files(files)
        return await self.uploads.start_upload(destination or self.state.current_path)

    # Viewer

    async def open(self, target: str | FileEntry) -> bool:
        entry = target if isinstance(target, FileEntry) else self.state.entry(target)
        if entry is None:
            self.notifier.error(f"{target} is not in the current listing")
            return False
        if entry.is_dir:
            return await self.navigate(entry.path)
        return await self.viewer.open(entry)

    # Read model

    def snapshot(self) -> dict[str, object]:
        data = self.state.snapshot()
        stats = self.selection.stats
        data["history"] = {
            "entries": list(self.history.entries),
            "cursor": self.history.cursor,
            "can_go_back": self.history.can_go_back,
            "can_go_forward": self.history.can_go_forward,
        }
        data["selection_stats"] = {
            "count": stats.count,
            "total_size": stats.total_size,
            "has_files": stats.has_files,
            "has_directories": stats.has_directories,
            "all_files": stats.all_files,
            "all_directories": stats.all_directories,
        }
        data["actions"] = {
            name: {"enabled": gate.enabled, "reason": gate.reason}
            for name, gate in (
                ("download", self.selection.download),
                ("chmod", self.selection.chmod),
                ("rename", self.selection.rename),
                ("delete", self.selection.delete),
            )
        }
        search = self.search.state
        data["search"] = {
            "open": search.open,
            "query": search.query.text,
            "status": search.status.value,
            "results": [result.path for result in search.results],
            "error": search.error,
        }
        data["uploads"] = [
            {
                "id": item.id,
                "name": item.name,
                "size": item.size,
                "status": item.status.value,
                "progress": item.progress,
                "error": item.error,
                "has_preview": item.preview is not None,
            }
            for item in self.uploads.items
        ]
        viewer = self.viewer
        data["viewer"] = {
            "path": viewer.entry.path if viewer.entry else None,
            "category": viewer.category.value if viewer.category else None,
            "loading": viewer.loading,
            "dirty": viewer.dirty,
            "can_save": viewer.can_save,
            "preview_uri": viewer.preview.uri if viewer.preview else None,
        }
        return data


__all__ = ["REQUEST_ACCESS_UNAVAILABLE", "RemoteBrowser"]
