"""Conversion between symbolic ``rwxr-xr--`` strings, octal modes and a matrix.

The matrix is the editable form; the octal string is what the chmod endpoint
accepts. Unparseable octal input is rejected with ``ValueError`` everywhere
(it is never silently ignored).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace

_OCTAL_RE = re.compile(r"[0-7]{3}")
CLASSES = ("owner", "group", "other")
BITS = ("read", "write", "execute")


@dataclass(frozen=True)
class PermissionSet:
    read: bool = False
    write: bool = False
    execute: bool = False

    @property
    def digit(self) -> int:
        return (4 if self.read else 0) | (2 if self.write else 0) | (1 if self.execute else 0)

    @property
    def symbolic(self) -> str:
        return ("r" if self.read else "-") + ("w" if self.write else "-") + ("x" if self.execute else "-")

    @classmethod
    def from_digit(cls, digit: int) -> PermissionSet:
        if not 0 <= digit <= 7:
            raise ValueError(f"permission digit out of range: {digit}")
        return cls(read=bool(digit & 4), write=bool(digit & 2), execute=bool(digit & 1))

    @classmethod
    def from_symbolic(cls, triple: str) -> PermissionSet:
        return cls(read=triple[0] == "r", write=triple[1] == "w", execute=triple[2] in ("x", "s", "t"))


@dataclass(frozen=True)
class PermissionMatrix:
    """Owner/group/other x read/write/execute flags."""

    owner: PermissionSet = PermissionSet()
    group: PermissionSet = PermissionSet()
    other: PermissionSet = PermissionSet()

    @property
    def octal(self) -> str:
        return f"{self.owner.digit}{self.group.digit}{self.other.digit}"

    @property
    def symbolic(self) -> str:
        return self.owner.symbolic + self.group.symbolic + self.other.symbolic

    def with_flag(self, who: str, bit: str, value: bool) -> PermissionMatrix:
        """Return a copy with one flag changed, e.g. ``with_flag("group", "write", True)``."""
        if who not in CLASSES:
            raise ValueError(f"unknown permission class: {who!r}")
        if bit not in BITS:
            raise ValueError(f"unknown permission bit: {bit!r}")
        current: PermissionSet = getattr(self, who)
        return replace(self, **{who: replace(current, **{bit: value})})

    def toggle(self, who: str, bit: str) -> PermissionMatrix:
        if who not in CLASSES:
            raise ValueError(f"unknown permission class: {who!r}")
        return self.with_flag(who, bit, not getattr(getattr(self, who), bit, False))


DEFAULT_MATRIX = PermissionMatrix(
    owner=PermissionSet(read=True, write=True),
    group=PermissionSet(read=True),
    other=PermissionSet(read=True),
)


def is_valid_octal(mode: str) -> bool:
    return isinstance(mode, str) and _OCTAL_RE.fullmatch(mode) is not None


def validate_octal(mode: str) -> str:
    """Return ``mode`` unchanged or raise ``ValueError`` describing the problem."""
    if not isinstance(mode, str) or len(mode) != 3:
        raise ValueError("Permission mode must be exactly 3 octal digits")
    if _OCTAL_RE.fullmatch(mode) is None:
        raise ValueError("Permission mode digits must be between 0 and 7")
    return mode


def from_octal(mode: str) -> PermissionMatrix:
    validate_octal(mode)
    owner, group, other = (PermissionSet.from_digit(int(ch)) for ch in mode)
    return PermissionMatrix(owner=owner, group=group, other=other)


def to_octal(matrix: PermissionMatrix) -> str:
    return matrix.octal


def from_symbolic(permissions: str) -> PermissionMatrix:
    """Parse a 9-character symbolic string.

    A leading file-type character (``drwxr-xr-x``) is tolerated. Anything that
    is not a 9-character permission string yields ``DEFAULT_MATRIX`` (rw-r--r--).
    """
    text = permissions or ""
    if len(text) == 10:
        text = text[1:]
    if len(text) != 9:
        return DEFAULT_MATRIX
    return PermissionMatrix(
        owner=PermissionSet.from_symbolic(text[0:3]),
        group=PermissionSet.from_symbolic(text[3:6]),
        other=PermissionSet.from_symbolic(text[6:9]),
    )


def symbolic_to_octal(permissions: str) -> str:
    return from_symbolic(permissions).octal


def octal_to_symbolic(mode: str) -> str:
    return from_octal(mode).symbolic


__all__ = [
    "BITS",
    "CLASSES",
    "DEFAULT_MATRIX",
    "PermissionMatrix",
    "PermissionSet",
    "from_octal",
    "from_symbolic",
    "is_valid_octal",
    "octal_to_symbolic",
    "symbolic_to_octal",
    "to_octal",
    "validate_octal",
]
