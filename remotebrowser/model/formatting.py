"""Human-readable labels for listing rows."""

from __future__ import annotations

from datetime import datetime

from .types import FileEntry

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_file_size(size: int) -> str:
    """Format a byte count with binary units and at most one decimal."""
    if size <= 0:
        return "0 B"
    exponent = 0
    scaled = float(size)
    while scaled >= 1024 and exponent < len(_SIZE_UNITS) - 1:
        scaled /= 1024
        exponent += 1
    value = round(scaled, 1)
    if value == int(value):
        return f"{int(value)} {_SIZE_UNITS[exponent]}"
    return f"{value} {_SIZE_UNITS[exponent]}"


def size_label(entry: FileEntry) -> str:
    return "-" if entry.is_dir else format_file_size(entry.size)


def permissions_label(entry: FileEntry) -> str:
    if entry.is_dir or not entry.permissions:
        return "-"
    return entry.permissions


def mtime_label(entry: FileEntry, now: datetime | None = None) -> str:
    """Render the modification time relative to ``now`` like the listing does.

    Same day shows ``HH:MM``, the last week ``<n>d ago``, anything older the
    ISO date.
    """
    if entry.mtime is None:
        return "Unknown"
    reference = now or datetime.now(tz=entry.mtime.tzinfo)
    days = (reference - entry.mtime).days
    if days <= 0:
        return entry.mtime.strftime("%H:%M")
    if days < 7:
        return f"{days}d ago"
    return entry.mtime.date().isoformat()


def listing_row(entry: FileEntry) -> str:
    name = entry.name + ("/" if entry.is_dir else "")
    return f"{permissions_label(entry):<10} {size_label(entry):>9}  {mtime_label(entry):<10}  {name}"
