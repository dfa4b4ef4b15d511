"""Transport boundary: gateway, typed file API, error taxonomy, cancellation."""

from __future__ import annotations

from .api import Blob, FileApi, SearchQuery, decode_text
from .cancellation import CancelToken, RequestScope
from .errors import (
    PERSISTENT_KINDS,
    ErrorKind,
    RemoteFileError,
    RequestCancelled,
    ValidationError,
    classify,
    error_from_response,
    extract_message,
)
from .gateway import SessionGateway

__all__ = [
    "Blob",
    "CancelToken",
    "ErrorKind",
    "FileApi",
    "PERSISTENT_KINDS",
    "RemoteFileError",
    "RequestCancelled",
    "RequestScope",
    "SearchQuery",
    "SessionGateway",
    "ValidationError",
    "classify",
    "decode_text",
    "error_from_response",
    "extract_message",
]
