"""Normalization of file-API response bodies into domain records.

Upstream envelopes differ between endpoints and server versions
(``{"files": [...]}`` vs ``{"success": true, "data": {"files": [...]}}``).
Everything is unwrapped here, right after the network call, so the engine
only ever sees ``FileEntry``/``SearchResult``/``StatInfo`` values.
Malformed records are dropped instead of failing the whole response.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from ..model import paths
from ..model.types import EntryType, FileEntry, SearchResult, StatInfo

logger = logging.getLogger(__name__)


def unwrap(payload: Any, key: str) -> Any:
    """Return ``payload[key]`` or ``payload["data"][key]``; ``None`` when absent."""
    if not isinstance(payload, dict):
        return None
    if key in payload:
        return payload[key]
    data = payload.get("data")
    if isinstance(data, dict) and key in data:
        return data[key]
    return None


def parse_mtime(value: Any) -> datetime | None:
    """Accept ISO-8601 strings (``Z`` suffix included) or epoch seconds/milliseconds."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        seconds = float(value)
        if seconds > 1e11:
            seconds /= 1000.0
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=timezone.utc)
    return None


def _coerce_size(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return max(0, int(value))
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return 0


def _coerce_type(value: Any) -> EntryType:
    # symlink/unknown entries are browsed like files.
    return EntryType.DIRECTORY if value == EntryType.DIRECTORY.value else EntryType.FILE


def _coerce_permissions(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    text = value.strip()
    if len(text) == 10:
        text = text[1:]
    return text if len(text) == 9 else ""


def file_entry(record: Any, directory: str | None = None) -> FileEntry | None:
    """Build a ``FileEntry`` from one raw record or return ``None`` if unusable."""
    if not isinstance(record, dict):
        return None
    name = record.get("name")
    raw_path = record.get("path")
    if not isinstance(name, str) or not name:
        if not isinstance(raw_path, str) or not raw_path:
            return None
        name = paths.basename(raw_path)
    if isinstance(raw_path, str) and raw_path:
        path = paths.normalize(raw_path)
    elif directory is not None:
        path = paths.join(directory, name)
    else:
        return None
    return FileEntry(
        path=path,
        name=name,
        type=_coerce_type(record.get("type")),
        size=_coerce_size(record.get("size")),
        mtime=parse_mtime(record.get("mtime")),
        permissions=_coerce_permissions(record.get("permissions")),
    )


def listing(payload: Any, directory: str) -> list[FileEntry]:
    """Parse a ``GET /files`` body; entries with duplicate paths keep the first."""
    raw = unwrap(payload, "files")
    if not isinstance(raw, list):
        logger.debug("listing payload for %s has no file list", directory)
        return []
    entries: list[FileEntry] = []
    seen: set[str] = set()
    for record in raw:
        entry = file_entry(record, directory)
        if entry is None or entry.path in seen:
            continue
        seen.add(entry.path)
        entries.append(entry)
    return entries


def search_results(payload: Any) -> list[SearchResult]:
    raw = unwrap(payload, "results")
    if not isinstance(raw, list):
        return []
    results: list[SearchResult] = []
    for record in raw:
        entry = file_entry(record)
        if entry is None:
            continue
        size = record.get("size")
        results.append(
            SearchResult(
                path=entry.path,
                name=entry.name,
                type=entry.type,
                size=entry.size if size is not None else None,
                mtime=entry.mtime,
            )
        )
    return results


def stat_info(payload: Any) -> StatInfo | None:
    raw = unwrap(payload, "fileInfo")
    entry = file_entry(raw)
    if entry is None:
        return None
    owner = raw.get("owner")
    group = raw.get("group")
    return StatInfo(
        entry=entry,
        owner=str(owner) if owner is not None else None,
        group=str(group) if group is not None else None,
    )


__all__ = [
    "file_entry",
    "listing",
    "parse_mtime",
    "search_results",
    "stat_info",
    "unwrap",
]
