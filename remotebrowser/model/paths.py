"""Remote path helpers.

Remote paths are always absolute and ``/``-separated regardless of the local
platform, so everything here works on plain strings through ``posixpath``.
"""

from __future__ import annotations

import posixpath

ROOT = "/"


def normalize(path: str) -> str:
    """Return an absolute, slash-collapsed path without a trailing slash."""
    raw = (path or "").strip()
    if not raw:
        return ROOT
    if not raw.startswith("/"):
        raw = "/" + raw
    normalized = posixpath.normpath(raw)
    # normpath keeps a leading double slash ("//x") as POSIX allows it.
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    return normalized


def join(directory: str, name: str) -> str:
    """Join a directory path and a child name."""
    base = normalize(directory)
    child = (name or "").strip("/")
    if not child:
        return base
    if base == ROOT:
        return ROOT + child
    return f"{base}/{child}"


def split(path: str) -> tuple[str, str]:
    """Split ``path`` into ``(parent, name)``; the root splits to ``("/", "")``."""
    normalized = normalize(path)
    if normalized == ROOT:
        return ROOT, ""
    parent, _sep, name = normalized.rpartition("/")
    return parent or ROOT, name


def parent(path: str) -> str:
    """Return the parent directory; the parent of the root is the root."""
    return split(path)[0]


def basename(path: str) -> str:
    return split(path)[1]


def is_root(path: str) -> bool:
    return normalize(path) == ROOT


def extension(name: str) -> str:
    """Return the lowercase extension of ``name`` without the dot.

    Dotfiles such as ``.gitignore`` report the part after the dot, matching
    how the remote side labels them. Names without a dot have no extension.
    """
    leaf = (name or "").rsplit("/", 1)[-1]
    if "." not in leaf:
        return ""
    return leaf.rsplit(".", 1)[-1].lower()


def is_within(path: str, directory: str) -> bool:
    """Return whether ``path`` equals or lies below ``directory``."""
    target = normalize(path)
    base = normalize(directory)
    if base == ROOT:
        return True
    return target == base or target.startswith(base + "/")


__all__ = [
    "ROOT",
    "basename",
    "extension",
    "is_root",
    "is_within",
    "join",
    "normalize",
    "parent",
    "split",
]
