"""Stateful browsing components and the ``RemoteBrowser`` that wires them."""

from __future__ import annotations

from .browser import RemoteBrowser
from .collaborators import DedupingNotifier, LoggingNotifier, Notifier, RecordingNotifier
from .listing import DirectoryListingStore
from .navigation import NavigationHistory
from .operations import BatchOutcome, Download, FileOperationExecutor, UploadResult
from .search import SearchCoordinator, SearchStatus
from .selection import SelectionManager, SelectionStats
from .state import BrowserError, BrowserState, BrowserStatus
from .upload import UploadItem, UploadLimits, UploadPipeline, UploadStatus
from .viewer import ContentCategory, ContentViewer, categorize

__all__ = [
    "BatchOutcome",
    "BrowserError",
    "BrowserState",
    "BrowserStatus",
    "ContentCategory",
    "ContentViewer",
    "DedupingNotifier",
    "DirectoryListingStore",
    "Download",
    "FileOperationExecutor",
    "LoggingNotifier",
    "NavigationHistory",
    "Notifier",
    "RecordingNotifier",
    "RemoteBrowser",
    "SearchCoordinator",
    "SearchStatus",
    "SelectionManager",
    "SelectionStats",
    "UploadItem",
    "UploadLimits",
    "UploadPipeline",
    "UploadResult",
    "UploadStatus",
    "categorize",
]
