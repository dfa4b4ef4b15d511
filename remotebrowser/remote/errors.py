"""Error taxonomy for remote file operations.

Every failed request is mapped to exactly one ``ErrorKind`` by ``classify``.
The kind decides both the user-facing wording and the recovery policy, so
``classify`` is kept pure: same status and message in, same kind out.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    SESSION_EXPIRED = "session_expired"
    NETWORK = "network"
    UNKNOWN = "unknown"
    VALIDATION = "validation"


# Kinds that change what the user can do next stay visible in the view.
PERSISTENT_KINDS = frozenset({ErrorKind.PERMISSION, ErrorKind.SESSION_EXPIRED})

_PERMISSION_KEYWORDS = ("permission", "access denied", "operation not permitted")
_NOT_FOUND_KEYWORDS = ("not found", "no such file")
_SESSION_KEYWORDS = ("session", "expired")

DEFAULT_MESSAGES = {
    ErrorKind.PERMISSION: "Permission denied",
    ErrorKind.NOT_FOUND: "File or directory not found",
    ErrorKind.SESSION_EXPIRED: "SSH session expired. Please reconnect.",
    ErrorKind.NETWORK: "Unable to reach the server",
    ErrorKind.UNKNOWN: "Something went wrong",
    ErrorKind.VALIDATION: "Invalid input",
}


class RemoteFileError(Exception):
    """A classified failure of one remote file request."""

    def __init__(self, kind: ErrorKind, message: str = "", status: int | None = None) -> None:
        self.kind = kind
        self.message = message or DEFAULT_MESSAGES[kind]
        self.status = status
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, status={self.status!r}, message={self.message!r})"


class ValidationError(RemoteFileError):
    """Client-side rejection; raised before any request is issued."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorKind.VALIDATION, message)


class RequestCancelled(Exception):
    """A superseded or aborted request. Never shown to the user."""


def classify(status: int | None, message: str | None = None) -> ErrorKind:
    """Map an HTTP status and best-effort body message to an ``ErrorKind``.

    ``status is None`` means no response arrived at all (transport failure).
    Status codes win over message keywords.
    """
    if status is None:
        return ErrorKind.NETWORK
    if status == 401:
        return ErrorKind.SESSION_EXPIRED
    if status == 403:
        return ErrorKind.PERMISSION
    if status == 404:
        return ErrorKind.NOT_FOUND

    text = (message or "").lower()
    if any(keyword in text for keyword in _PERMISSION_KEYWORDS):
        return ErrorKind.PERMISSION
    if any(keyword in text for keyword in _NOT_FOUND_KEYWORDS):
        return ErrorKind.NOT_FOUND
    if any(keyword in text for keyword in _SESSION_KEYWORDS):
        return ErrorKind.SESSION_EXPIRED
    return ErrorKind.UNKNOWN


def extract_message(body: Any) -> str:
    """Pull a human message out of an error body.

    Accepts a decoded JSON object or raw text. Recognized fields are
    ``error``, ``message`` and ``detail``; nested ``{"error": {"message": ..}}``
    is unwrapped.
    """
    if isinstance(body, (bytes, bytearray)):
        body = bytes(body).decode("utf-8", errors="replace")
    if isinstance(body, str):
        stripped = body.strip()
        if not stripped:
            return ""
        try:
            decoded = json.loads(stripped)
        except ValueError:
            return stripped[:300]
        return extract_message(decoded) if isinstance(decoded, dict) else stripped[:300]
    if not isinstance(body, dict):
        return ""
    for key in ("error", "message", "detail"):
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
        if isinstance(value, dict):
            nested = extract_message(value)
            if nested:
                return nested
    return ""


def error_from_response(status: int | None, body: Any = None) -> RemoteFileError:
    message = extract_message(body)
    return RemoteFileError(classify(status, message), message, status)


__all__ = [
    "DEFAULT_MESSAGES",
    "ErrorKind",
    "PERSISTENT_KINDS",
    "RemoteFileError",
    "RequestCancelled",
    "ValidationError",
    "classify",
    "error_from_response",
    "extract_message",
]
