"""File operations against the remote side.

Every mutating operation has the same post-condition: on success the
listing is reloaded, on failure the classified error is surfaced once and
nothing is retried. Input that can be checked locally (new names, chmod
modes, download selections) is rejected before any request is made.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path

from ..model import paths, permissions
from ..model.types import FileEntry, StatInfo, UploadFile
from ..remote.api import FileApi
from ..remote.errors import PERSISTENT_KINDS, ErrorKind, RemoteFileError, ValidationError
from .collaborators import Confirm, LoggingNotifier, Notifier, never_confirm, plural
from .selection import SelectionStats, download_gate
from .state import BrowserState

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 255
_FORBIDDEN_NAME_CHARS = ("/", "\x00")

Reload = Callable[[], Awaitable[object]]
ErrorSink = Callable[[RemoteFileError], None]
Progress = Callable[[UploadFile, int], None]


def validate_new_name(current_name: str, new_name: str) -> str:
    """Return ``new_name`` if it is an acceptable rename target, else raise ``ValidationError``."""
    if not new_name or not new_name.strip():
        raise ValidationError("Name cannot be empty")
    if len(new_name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Name cannot be longer than {MAX_NAME_LENGTH} characters")
    if any(ch in new_name for ch in _FORBIDDEN_NAME_CHARS):
        raise ValidationError("Name cannot contain a path separator")
    if new_name in (".", ".."):
        raise ValidationError(f"{new_name!r} is not a valid name")
    if new_name == current_name:
        raise ValidationError("New name is the same as the current name")
    return new_name


def validate_mode(mode: str) -> str:
    try:
        return permissions.validate_octal(mode)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


@dataclass(frozen=True)
class BatchOutcome:
    succeeded: tuple[str, ...] = ()
    failed: tuple[tuple[str, RemoteFileError], ...] = ()
    cancelled: bool = False

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def all_succeeded(self) -> bool:
        return self.total > 0 and not self.failed

    @property
    def all_failed(self) -> bool:
        return self.total > 0 and not self.succeeded

    @property
    def partial(self) -> bool:
        return bool(self.succeeded) and bool(self.failed)


@dataclass(frozen=True)
class Download:
    filename: str
    data: bytes
    paths: tuple[str, ...] = ()

    @property
    def bundled(self) -> bool:
        return len(self.paths) > 1

    def save(self, directory: Path) -> Path:
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        target = directory / self.filename
        target.write_bytes(self.data)
        return target


@dataclass(frozen=True)
class UploadResult:
    file: UploadFile
    success: bool
    error: str | None = None
    remote_path: str | None = field(default=None, compare=False)


class FileOperationExecutor:
    def __init__(
        self,
        api: FileApi,
        state: BrowserState,
        *,
        reload: Reload,
        notifier: Notifier | None = None,
        confirm: Confirm = never_confirm,
        on_error: ErrorSink | None = None,
    ) -> None:
        self.api = api
        self.state = state
        self.reload = reload
        self.notifier = notifier or LoggingNotifier()
        self.confirm = confirm
        self.on_error = on_error

    def _surface(self, exc: RemoteFileError) -> None:
        self.notifier.error(exc.message)
        if self.on_error is not None:
            self.on_error(exc)

    async def _mutate(self, label: str, action: Callable[[], Awaitable[object]], success_message: str) -> bool:
        try:
            await action()
        except RemoteFileError as exc:
            logger.warning("%s failed: %s", label, exc.message)
            self._surface(exc)
            return False
        self.state.operation_error = None
        self.notifier.success(success_message)
        await self.reload()
        return True

    async def create_file(self, path: str, content: str = "") -> bool:
        target = paths.normalize(path)
        return await self._mutate(
            "create file",
            lambda: self.api.write_file(target, content),
            f"Created {paths.basename(target)}",
        )

    async def create_folder(self, path: str) -> bool:
        target = paths.normalize(path)
        return await self._mutate(
            "create folder",
            lambda: self.api.mkdir(target),
            f"Created folder {paths.basename(target)}",
        )

    async def save_file(self, path: str, content: str) -> bool:
        """Overwrite an existing file with edited text."""
        target = paths.normalize(path)
        return await self._mutate(
            "save",
            lambda: self.api.write_file(target, content),
            f"Saved {paths.basename(target)}",
        )

    async def rename(self, old_path: str, new_name: str) -> bool:
        source = paths.normalize(old_path)
        try:
            validate_new_name(paths.basename(source), new_name)
        except ValidationError as exc:
            self._surface(exc)
            return False
        target = paths.join(paths.parent(source), new_name)
        return await self._mutate(
            "rename",
            lambda: self.api.rename(source, target),
            f"Renamed to {new_name}",
        )

    async def chmod(self, path: str, mode: str) -> bool:
        target = paths.normalize(path)
        try:
            validate_mode(mode)
        except ValidationError as exc:
            self._surface(exc)
            return False
        return await self._mutate(
            "chmod",
            lambda: self.api.chmod(target, mode),
            f"Permissions of {paths.basename(target)} set to {mode}",
        )

    async def copy(self, source: str, destination: str, overwrite: bool = False) -> bool:
        return await self._mutate(
            "copy",
            lambda: self.api.copy(source, destination, overwrite),
            f"Copied {paths.basename(source)}",
        )

    async def move(self, source: str, destination: str, overwrite: bool = False) -> bool:
        return await self._mutate(
            "move",
            lambda: self.api.move(source, destination, overwrite),
            f"Moved {paths.basename(source)}",
        )

    async def stat(self, path: str) -> StatInfo | None:
        try:
            return await self.api.stat(path)
        except RemoteFileError as exc:
            self._surface(exc)
            return None

    async def delete(self, targets: list[str]) -> BatchOutcome:
        """Delete ``targets`` after confirmation; requests run concurrently.

        All deletions settle before reporting, so a partial failure reports
        the success count and the failure count separately.
        """
        unique = list(dict.fromkeys(paths.normalize(p) for p in targets))
        if not unique:
            self.notifier.error("Nothing selected to delete")
            return BatchOutcome()
        if not await self.confirm(f"Delete {plural(len(unique), 'item')}? This cannot be undone."):
            return BatchOutcome(cancelled=True)

        settled = await asyncio.gather(*(self.api.delete(p) for p in unique), return_exceptions=True)
        succeeded: list[str] = []
        failed: list[tuple[str, RemoteFileError]] = []
        for path, result in zip(unique, settled):
            if isinstance(result, RemoteFileError):
                failed.append((path, result))
            elif isinstance(result, BaseException):
                raise result
            else:
                succeeded.append(path)
        outcome = BatchOutcome(succeeded=tuple(succeeded), failed=tuple(failed))

        if succeeded:
            self.notifier.success(f"Deleted {plural(len(succeeded), 'item')}")
        if failed:
            first = failed[0][1]
            logger.warning("delete failed for %d of %d paths", len(failed), len(unique))
            self.notifier.error(f"Failed to delete {plural(len(failed), 'item')}: {first.message}")
            if self.on_error is not None:
                persistent = (error for _, error in failed if error.kind in PERSISTENT_KINDS)
                self.on_error(next(persistent, first))
        else:
            self.state.operation_error = None
        if succeeded:
            await self.reload()
        return outcome

    async def _download_entries(self, targets: list[str | FileEntry]) -> list[FileEntry]:
        entries: dict[str, FileEntry] = {}
        for target in targets:
            if isinstance(target, FileEntry):
                entry = target
            else:
                entry = self.state.entry(target)
                if entry is None:
                    entry = (await self.api.stat(paths.normalize(target))).entry
            entries.setdefault(entry.path, entry)
        return list(entries.values())

    async def download(self, targets: list[str | FileEntry]) -> Download | None:
        """Fetch one file directly, or several as a server-built zip bundle.

        Paths are looked up in the current listing first and stat'ed on the
        remote side otherwise; entries are used as given.
        """
        if self.state.downloading:
            return None

        self.state.downloading = True
        try:
            entries = await self._download_entries(targets)
            gate = download_gate(SelectionStats.from_entries(entries))
            if not gate.enabled:
                self._surface(ValidationError(gate.reason))
                return None
            if len(entries) == 1:
                entry = entries[0]
                data = await self.api.download(entry.path)
                result = Download(filename=entry.name, data=data, paths=(entry.path,))
                self.notifier.success(f"Downloaded {entry.name}")
            else:
                file_paths = [entry.path for entry in entries]
                data = await self.api.download_bundle(file_paths)
                result = Download(
                    filename=f"files-{int(time.time() * 1000)}.zip",
                    data=data,
                    paths=tuple(file_paths),
                )
                self.notifier.success(f"Downloaded {plural(len(entries), 'file')} as zip")
        except RemoteFileError as exc:
            self._surface(exc)
            return None
        finally:
            self.state.downloading = False
        return result

    async def upload_files(
        self,
        files: list[UploadFile],
        destination: str,
        progress: Progress | None = None,
    ) -> list[UploadResult]:
        """Upload files one after another; one result per file, in input order."""
        target_dir = paths.normalize(destination)
        results: list[UploadResult] = []
        for upload in files:
            if progress is not None:
                progress(upload, 0)
            try:
                await self.api.upload(upload, target_dir)
            except RemoteFileError as exc:
                logger.warning("upload of %s failed: %s", upload.name, exc.message)
                results.append(UploadResult(file=upload, success=False, error=exc.message))
                if exc.kind is ErrorKind.SESSION_EXPIRED:
                    if self.on_error is not None:
                        self.on_error(exc)
                    # Remaining files cannot succeed without a session.
                    results.extend(
                        UploadResult(file=rest, success=False, error=exc.message)
                        for rest in files[len(results) :]
                    )
                    break
                continue
            except OSError as exc:
                results.append(UploadResult(file=upload, success=False, error=f"Cannot read file: {exc}"))
                continue
            if progress is not None:
                progress(upload, 100)
            results.append(
                UploadResult(file=upload, success=True, remote_path=paths.join(target_dir, upload.name))
            )
        return results


__all__ = [
    "BatchOutcome",
    "Download",
    "FileOperationExecutor",
    "MAX_NAME_LENGTH",
    "UploadResult",
    "validate_mode",
    "validate_new_name",
]
