"""Typed client for the session-scoped remote file API.

One method per endpoint; every method returns normalized domain values and
raises ``RemoteFileError`` on failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from ..model import paths
from ..model.types import FileEntry, SearchResult, StatInfo, UploadFile
from . import schemas
from .cancellation import CancelToken
from .errors import ErrorKind, RemoteFileError
from .gateway import SessionGateway

TEXT_ENCODINGS = ("utf-8", "utf-8-sig", "latin-1")


@dataclass(frozen=True)
class SearchQuery:
    text: str
    path: str = "/"
    type: str = "all"  # all | file | directory
    case_sensitive: bool = False
    regex: bool = False


@dataclass(frozen=True)
class Blob:
    """Raw bytes of a remote file plus the content type the server reported."""

    data: bytes
    content_type: str = "application/octet-stream"


def decode_text(data: bytes) -> str:
    """Decode bytes with the tolerant encoding order used for previews."""
    for encoding in TEXT_ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    return data.decode("utf-8", errors="replace")


def _content_path(path: str) -> str:
    return "/files" + quote(paths.normalize(path), safe="/")


class FileApi:
    def __init__(self, gateway: SessionGateway) -> None:
        self.gateway = gateway

    async def list_directory(self, path: str, token: CancelToken | None = None) -> list[FileEntry]:
        directory = paths.normalize(path)
        response = await self.gateway.request("GET", "/files", params={"path": directory}, token=token)
        return schemas.listing(_json(response), directory)

    async def read_text(self, path: str, token: CancelToken | None = None) -> str:
        response = await self.gateway.request("GET", _content_path(path), token=token)
        return decode_text(response.content)

    async def read_blob(self, path: str, token: CancelToken | None = None) -> Blob:
        response = await self.gateway.request("GET", _content_path(path), token=token)
        content_type = response.headers.get("Content-Type", "") or "application/octet-stream"
        return Blob(data=response.content, content_type=content_type.split(";", 1)[0].strip())

    async def write_file(self, path: str, content: str) -> None:
        await self.gateway.request("PUT", _content_path(path), json={"content": content})

    async def delete(self, path: str) -> None:
        await self.gateway.request("DELETE", _content_path(path))

    async def rename(self, old_path: str, new_path: str) -> None:
        await self.gateway.request(
            "POST",
            "/files/rename",
            json={"oldPath": paths.normalize(old_path), "newPath": paths.normalize(new_path)},
        )

    async def mkdir(self, path: str) -> None:
        await self.gateway.request("POST", "/files/mkdir", json={"path": paths.normalize(path)})

    async def chmod(self, path: str, mode: str) -> None:
        await self.gateway.request("POST", "/files/chmod", json={"path": paths.normalize(path), "mode": mode})

    async def copy(self, source: str, destination: str, overwrite: bool = False) -> None:
        await self.gateway.request(
            "POST",
            "/files/copy",
            json={
                "sourcePath": paths.normalize(source),
                "destinationPath": paths.normalize(destination),
                "overwrite": overwrite,
            },
        )

    async def move(self, source: str, destination: str, overwrite: bool = False) -> None:
        await self.gateway.request(
            "POST",
            "/files/move",
            json={
                "sourcePath": paths.normalize(source),
                "destinationPath": paths.normalize(destination),
                "overwrite": overwrite,
            },
        )

    async def stat(self, path: str) -> StatInfo:
        response = await self.gateway.request("GET", "/files/stat", params={"path": paths.normalize(path)})
        info = schemas.stat_info(_json(response))
        if info is None:
            raise RemoteFileError(ErrorKind.UNKNOWN, f"Malformed stat response for {path}")
        return info

    async def upload(self, upload: UploadFile, destination: str) -> None:
        # Content is read on the worker thread together with the request.
        files = {"file": (upload.name, _LazyContent(upload), upload.content_type)}
        await self.gateway.request(
            "POST",
            "/files/upload",
            data={"path": paths.normalize(destination)},
            files=files,
        )

    async def download(self, path: str) -> bytes:
        response = await self.gateway.request("GET", "/files/download", params={"path": paths.normalize(path)})
        return response.content

    async def download_bundle(self, file_paths: list[str]) -> bytes:
        response = await self.gateway.request(
            "POST",
            "/files/download",
            json={"paths": [paths.normalize(p) for p in file_paths], "format": "zip"},
        )
        return response.content

    async def search(
        self,
        query: SearchQuery,
        max_results: int = 50,
        token: CancelToken | None = None,
    ) -> list[SearchResult]:
        response = await self.gateway.request(
            "POST",
            "/files/search",
            json={
                "query": query.text,
                "path": paths.normalize(query.path),
                "type": query.type,
                "caseSensitive": query.case_sensitive,
                "regex": query.regex,
                "maxResults": max_results,
            },
            token=token,
        )
        return schemas.search_results(_json(response))


class _LazyContent:
    """File-like wrapper so ``requests`` reads upload bytes only when encoding."""

    def __init__(self, upload: UploadFile) -> None:
        self._upload = upload

    def read(self, *_args) -> bytes:
        return self._upload.read_bytes()


def _json(response) -> object:
    try:
        return response.json()
    except ValueError as exc:
        raise RemoteFileError(ErrorKind.UNKNOWN, "Server returned a malformed response") from exc


__all__ = ["Blob", "FileApi", "SearchQuery", "decode_text"]
