"""Validated multi-file upload batch with per-item status and progress.

Files are checked one at a time as they are added. Accepted files become
``pending`` items; ``start_upload`` moves every pending item through
``uploading`` to ``success`` or ``error``. Terminal items are never
re-entered: failed files have to be removed and added again.
"""

from __future__ import annotations

import asyncio
import base64
import itertools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from ..model import paths
from ..model.formatting import format_file_size
from ..model.types import UploadFile
from ..remote.cancellation import RequestScope
from .collaborators import LoggingNotifier, Notifier, plural
from .operations import Progress, UploadResult

if TYPE_CHECKING:
    from ..config import BrowserConfig

logger = logging.getLogger(__name__)

MAX_FILES = 10
MAX_FILE_SIZE = 100 * 1024 * 1024
MAX_TOTAL_SIZE = 500 * 1024 * 1024
BLOCKED_EXTENSIONS = frozenset(
    {
        "exe", "bat", "cmd", "com", "scr", "vbs", "vbe", "js", "jse",
        "wsf", "wsh", "msi", "jar", "app", "dmg", "deb", "rpm",
    }
)
GENERAL_FAILURE = "Upload failed"

Uploader = Callable[[list[UploadFile], str, Progress], Awaitable[list[UploadResult]]]
Hook = Callable[[], Awaitable[object]]

_ids = itertools.count(1)


class UploadStatus(str, Enum):
    PENDING = "pending"
    UPLOADING = "uploading"
    SUCCESS = "success"
    ERROR = "error"


class RejectionReason(str, Enum):
    TOO_MANY_FILES = "too_many_files"
    FILE_TOO_LARGE = "file_too_large"
    TOTAL_TOO_LARGE = "total_too_large"
    TYPE_NOT_ALLOWED = "type_not_allowed"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class UploadRejection:
    file: UploadFile
    reason: RejectionReason
    message: str


@dataclass(frozen=True)
class UploadLimits:
    max_files: int = MAX_FILES
    max_file_size: int = MAX_FILE_SIZE
    max_total_size: int = MAX_TOTAL_SIZE
    blocked_extensions: frozenset[str] = BLOCKED_EXTENSIONS

    @classmethod
    def from_config(cls, config: BrowserConfig) -> UploadLimits:
        return cls(
            max_files=config.max_upload_files,
            max_file_size=config.max_file_size,
            max_total_size=config.max_total_size,
            blocked_extensions=frozenset(config.blocked_extensions),
        )

    def is_blocked(self, name: str) -> bool:
        return paths.extension(name) in self.blocked_extensions


@dataclass
class UploadItem:
    id: str
    file: UploadFile
    preview: str | None = None  # data URL, images only
    status: UploadStatus = UploadStatus.PENDING
    progress: int = 0
    error: str | None = None

    @property
    def name(self) -> str:
        return self.file.name

    @property
    def size(self) -> int:
        return self.file.size

    @property
    def terminal(self) -> bool:
        return self.status in (UploadStatus.SUCCESS, UploadStatus.ERROR)


@dataclass(frozen=True)
class UploadSummary:
    succeeded: int = 0
    failed: int = 0
    discarded: bool = False
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed


def make_item_id(upload: UploadFile) -> str:
    return f"{upload.name}-{upload.size}-{next(_ids)}"


def data_url(upload: UploadFile) -> str:
    encoded = base64.b64encode(upload.read_bytes()).decode("ascii")
    return f"data:{upload.content_type};base64,{encoded}"


async def build_preview(upload: UploadFile) -> str | None:
    """Decoded preview for images; ``None`` for everything else or on read failure."""
    if not upload.is_image:
        return None
    try:
        return await asyncio.to_thread(data_url, upload)
    except (OSError, ValueError) as exc:
        logger.debug("no preview for %s: %s", upload.name, exc)
        return None


class UploadPipeline:
    def __init__(
        self,
        upload: Uploader,
        *,
        limits: UploadLimits | None = None,
        notifier: Notifier | None = None,
        on_uploaded: Hook | None = None,
        on_complete: Hook | None = None,
    ) -> None:
        self.upload = upload
        self.limits = limits or UploadLimits()
        self.notifier = notifier or LoggingNotifier()
        self.on_uploaded = on_uploaded
        self.on_complete = on_complete
        self.items: list[UploadItem] = []
        self._scope = RequestScope("upload")
        self._uploading = False

    @property
    def pending(self) -> list[UploadItem]:
        return [item for item in self.items if item.status is UploadStatus.PENDING]

    @property
    def is_uploading(self) -> bool:
        return self._uploading

    @property
    def can_upload(self) -> bool:
        return not self._uploading and bool(self.pending)

    @property
    def has_completed(self) -> bool:
        return any(item.status is UploadStatus.SUCCESS for item in self.items)

    @property
    def has_errors(self) -> bool:
        return any(item.status is UploadStatus.ERROR for item in self.items)

    @property
    def total_size(self) -> int:
        return sum(item.size for item in self.items)

    def item(self, item_id: str) -> UploadItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def validate(self, files: list[UploadFile]) -> tuple[list[UploadFile], list[UploadRejection]]:
        """Split ``files`` into accepted and rejected, checking each in arrival order.

        Files accepted earlier in the same call count toward the item limit,
        the aggregate size and the duplicate check for the later ones.
        """
        limits = self.limits
        accepted: list[UploadFile] = []
        rejected: list[UploadRejection] = []
        count = len(self.items)
        total = self.total_size
        seen = {(item.name, item.size) for item in self.items if item.status is UploadStatus.PENDING}

        for upload in files:
            if count + 1 > limits.max_files:
                rejected.append(
                    UploadRejection(
                        upload,
                        RejectionReason.TOO_MANY_FILES,
                        f"Too many files: at most {limits.max_files} per upload ({upload.name} skipped)",
                    )
                )
                continue
            if upload.size > limits.max_file_size:
                rejected.append(
                    UploadRejection(
                        upload,
                        RejectionReason.FILE_TOO_LARGE,
                        f"{upload.name} is larger than {format_file_size(limits.max_file_size)}",
                    )
                )
                continue
            if total + upload.size > limits.max_total_size:
                rejected.append(
                    UploadRejection(
                        upload,
                        RejectionReason.TOTAL_TOO_LARGE,
                        f"Total upload size cannot exceed {format_file_size(limits.max_total_size)}"
                        f" ({upload.name} skipped)",
                    )
                )
                continue
            if limits.is_blocked(upload.name):
                rejected.append(
                    UploadRejection(
                        upload,
                        RejectionReason.TYPE_NOT_ALLOWED,
                        f"{upload.name}: file type not allowed",
                    )
                )
                continue
            if (upload.name, upload.size) in seen:
                rejected.append(
                    UploadRejection(
                        upload,
                        RejectionReason.DUPLICATE,
                        f"{upload.name} is already in the upload list",
                    )
                )
                continue
            accepted.append(upload)
            seen.add((upload.name, upload.size))
            count += 1
            total += upload.size
        return accepted, rejected

    async def add_files(self, files: list[UploadFile]) -> list[UploadRejection]:
        """Validate and append ``files`` as pending items; returns the rejections."""
        accepted, rejected = self.validate(files)
        for rejection in rejected:
            self.notifier.error(rejection.message)
        if not accepted:
            return rejected

        previews = await asyncio.gather(*(build_preview(upload) for upload in accepted))
        for upload, preview in zip(accepted, previews):
            self.items.append(UploadItem(id=make_item_id(upload), file=upload, preview=preview))
        logger.debug("queued %d files for upload (%d rejected)", len(accepted), len(rejected))
        return rejected

    def remove(self, item_id: str) -> bool:
        """Drop an item that is not currently being uploaded."""
        item = self.item(item_id)
        if item is None or item.status is UploadStatus.UPLOADING:
            return False
        self.items.remove(item)
        return True

    def clear_completed(self) -> None:
        self.items = [item for item in self.items if item.status is not UploadStatus.SUCCESS]

    def reset(self) -> None:
        """Empty the batch. Results of an upload still running are ignored when they arrive."""
        self._scope.cancel("reset")
        self._uploading = False
        self.items = []

    async def start_upload(self, destination: str) -> UploadSummary:
        batch = self.pending
        if not batch or self._uploading:
            return UploadSummary()

        token = self._scope.begin()
        by_file = {id(item.file): item for item in batch}
        for item in batch:
            item.status = UploadStatus.UPLOADING
            item.progress = 0
            item.error = None
        self._uploading = True

        def progress(upload: UploadFile, percent: int) -> None:
            item = by_file.get(id(upload))
            if item is not None and self._scope.is_current(token):
                item.progress = max(0, min(100, percent))

        try:
            results = await self.upload([item.file for item in batch], destination, progress)
        except Exception:
            if not self._scope.is_current(token):
                return UploadSummary(discarded=True)
            logger.exception("upload batch to %s failed", destination)
            for item in self.items:
                if item.status is UploadStatus.UPLOADING:
                    item.status = UploadStatus.ERROR
                    item.error = GENERAL_FAILURE
            self._uploading = False
            self._scope.finish(token)
            self.notifier.error(GENERAL_FAILURE)
            return UploadSummary(failed=len(batch), errors={item.id: GENERAL_FAILURE for item in batch})

        if not self._scope.is_current(token):
            logger.debug("discarding results of a reset upload batch")
            return UploadSummary(discarded=True)

        succeeded = 0
        errors: dict[str, str] = {}
        for result in results:
            item = by_file.get(id(result.file))
            if item is None:
                continue
            item.progress = 100
            if result.success:
                item.status = UploadStatus.SUCCESS
                succeeded += 1
            else:
                item.status = UploadStatus.ERROR
                item.error = result.error or GENERAL_FAILURE
                errors[item.id] = item.error
        self._uploading = False
        self._scope.finish(token)

        summary = UploadSummary(succeeded=succeeded, failed=len(errors), errors=errors)
        if succeeded:
            self.notifier.success(f"Uploaded {plural(succeeded, 'file')}")
        if errors:
            self.notifier.error(f"Failed to upload {plural(len(errors), 'file')}")
        if succeeded and self.on_uploaded is not None:
            await self.on_uploaded()
        if not errors and self.on_complete is not None:
            await self.on_complete()
        return summary


__all__ = [
    "BLOCKED_EXTENSIONS",
    "MAX_FILES",
    "MAX_FILE_SIZE",
    "MAX_TOTAL_SIZE",
    "RejectionReason",
    "UploadItem",
    "UploadLimits",
    "UploadPipeline",
    "UploadRejection",
    "UploadStatus",
    "UploadSummary",
    "build_preview",
    "make_item_id",
]
