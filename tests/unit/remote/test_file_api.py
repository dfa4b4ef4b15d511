"""Gateway and file API behavior against an in-memory HTTP session."""

from __future__ import annotations

import json
import unittest

import requests

from remotebrowser.model.types import EntryType, SessionHandle, UploadFile
from remotebrowser.remote.api import FileApi, SearchQuery, decode_text
from remotebrowser.remote.cancellation import CancelToken
from remotebrowser.remote.errors import ErrorKind, RemoteFileError, RequestCancelled
from remotebrowser.remote.gateway import SessionGateway


def _response(status: int = 200, body: object = None, *, content: bytes | None = None, content_type: str = "application/json") -> requests.Response:
    response = requests.Response()
    response.status_code = status
    if content is None:
        content = b"" if body is None else json.dumps(body).encode("utf-8")
    response._content = content
    response.headers["Content-Type"] = content_type
    response.encoding = "utf-8"
    response.url = "http://test.invalid/"
    return response


class FakeHttp:
    """Stands in for ``requests.Session``; replays queued responses in order."""

    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.calls: list[dict] = []
        self.closed = False
        self.on_request = None

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if self.on_request is not None:
            self.on_request()
        outcome = self.responses.pop(0) if self.responses else _response()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def close(self) -> None:
        self.closed = True


def _api(*responses) -> tuple[FileApi, FakeHttp]:
    http = FakeHttp(*responses)
    gateway = SessionGateway("http://host:3000/", SessionHandle("c42", "tok"), http=http)
    return FileApi(gateway), http


class GatewayTests(unittest.IsolatedAsyncioTestCase):
    async def test_requests_carry_token_header_and_connection_scope(self) -> None:
        api, http = _api(_response(body={"files": []}))
        await api.list_directory("/srv")
        call = http.calls[0]
        self.assertEqual(call["method"], "GET")
        self.assertEqual(call["url"], "http://host:3000/api/connections/c42/files")
        self.assertEqual(call["params"], {"path": "/srv"})
        self.assertEqual(call["headers"], {"x-session-token": "tok"})
        self.assertEqual(call["timeout"], 30.0)

    async def test_missing_session_is_session_expired_without_request(self) -> None:
        http = FakeHttp()
        api = FileApi(SessionGateway("http://host", http=http))
        with self.assertRaises(RemoteFileError) as caught:
            await api.list_directory("/")
        self.assertIs(caught.exception.kind, ErrorKind.SESSION_EXPIRED)
        self.assertEqual(http.calls, [])

    async def test_http_errors_are_classified(self) -> None:
        api, _http = _api(_response(403, {"error": "Permission denied"}))
        with self.assertRaises(RemoteFileError) as caught:
            await api.list_directory("/root")
        self.assertIs(caught.exception.kind, ErrorKind.PERMISSION)
        self.assertEqual(caught.exception.message, "Permission denied")

    async def test_plain_text_error_bodies_are_used(self) -> None:
        api, _http = _api(_response(500, content=b"ENOENT: no such file", content_type="text/plain"))
        with self.assertRaises(RemoteFileError) as caught:
            await api.delete("/gone")
        self.assertIs(caught.exception.kind, ErrorKind.NOT_FOUND)

    async def test_transport_failure_is_network(self) -> None:
        api, _http = _api(requests.ConnectionError("refused"))
        with self.assertRaises(RemoteFileError) as caught:
            await api.mkdir("/x")
        self.assertIs(caught.exception.kind, ErrorKind.NETWORK)
        self.assertIsNone(caught.exception.status)

    async def test_token_cancelled_in_flight_raises_cancelled(self) -> None:
        token = CancelToken(1)
        api, http = _api(_response(body={"files": [{"name": "a"}]}))
        http.on_request = lambda: token.cancel("superseded")
        with self.assertRaises(RequestCancelled):
            await api.list_directory("/", token=token)

    async def test_already_cancelled_token_sends_nothing(self) -> None:
        token = CancelToken(1)
        token.cancel()
        api, http = _api()
        with self.assertRaises(RequestCancelled):
            await api.list_directory("/", token=token)
        self.assertEqual(http.calls, [])

    async def test_close_closes_http_session(self) -> None:
        api, http = _api()
        api.gateway.close()
        self.assertTrue(http.closed)


class FileApiEndpointTests(unittest.IsolatedAsyncioTestCase):
    async def test_listing_is_normalized(self) -> None:
        api, _http = _api(_response(body={"success": True, "data": {"files": [{"name": "src", "type": "directory"}]}}))
        entries = await api.list_directory("/home/")
        self.assertEqual(entries[0].path, "/home/src")
        self.assertIs(entries[0].type, EntryType.DIRECTORY)

    async def test_content_paths_are_quoted(self) -> None:
        api, http = _api(_response(content=b"hi", content_type="text/plain"))
        text = await api.read_text("/docs/my notes.txt")
        self.assertEqual(text, "hi")
        self.assertTrue(http.calls[0]["url"].endswith("/files/docs/my%20notes.txt"))

    async def test_read_blob_strips_content_type_parameters(self) -> None:
        api, _http = _api(_response(content=b"\x89PNG", content_type="image/png; charset=binary"))
        blob = await api.read_blob("/a.png")
        self.assertEqual(blob.content_type, "image/png")
        self.assertEqual(blob.data, b"\x89PNG")

    async def test_mutation_bodies(self) -> None:
        api, http = _api(*[_response(body={"success": True}) for _ in range(6)])
        await api.write_file("/a.txt", "hello")
        await api.rename("/a.txt", "/b.txt")
        await api.mkdir("/dir")
        await api.chmod("/b.txt", "640")
        await api.copy("/b.txt", "/c.txt")
        await api.move("/c.txt", "/d.txt", overwrite=True)
        self.assertEqual(http.calls[0]["method"], "PUT")
        self.assertEqual(http.calls[0]["json"], {"content": "hello"})
        self.assertEqual(http.calls[1]["json"], {"oldPath": "/a.txt", "newPath": "/b.txt"})
        self.assertEqual(http.calls[2]["json"], {"path": "/dir"})
        self.assertEqual(http.calls[3]["json"], {"path": "/b.txt", "mode": "640"})
        self.assertTrue(http.calls[4]["url"].endswith("/files/copy"))
        self.assertEqual(
            http.calls[5]["json"],
            {"sourcePath": "/c.txt", "destinationPath": "/d.txt", "overwrite": True},
        )

    async def test_upload_is_multipart_with_destination(self) -> None:
        api, http = _api(_response(body={"success": True}))
        upload = UploadFile.from_bytes("a.txt", b"data")
        await api.upload(upload, "/incoming/")
        call = http.calls[0]
        self.assertEqual(call["data"], {"path": "/incoming"})
        name, content, content_type = call["files"]["file"]
        self.assertEqual(name, "a.txt")
        self.assertEqual(content.read(), b"data")
        self.assertEqual(content_type, "text/plain")

    async def test_single_and_bundled_downloads(self) -> None:
        api, http = _api(_response(content=b"one"), _response(content=b"PK"))
        self.assertEqual(await api.download("/a.txt"), b"one")
        self.assertEqual(await api.download_bundle(["/a.txt", "/b.txt"]), b"PK")
        self.assertEqual(http.calls[0]["params"], {"path": "/a.txt"})
        self.assertEqual(http.calls[1]["json"], {"paths": ["/a.txt", "/b.txt"], "format": "zip"})

    async def test_search_sends_all_options(self) -> None:
        api, http = _api(_response(body={"results": [{"path": "/x/abc.txt", "name": "abc.txt", "type": "file"}]}))
        results = await api.search(SearchQuery("abc", "/x", "file", True, False), max_results=50)
        self.assertEqual(
            http.calls[0]["json"],
            {"query": "abc", "path": "/x", "type": "file", "caseSensitive": True, "regex": False, "maxResults": 50},
        )
        self.assertEqual([result.name for result in results], ["abc.txt"])

    async def test_stat_returns_info_and_rejects_malformed_body(self) -> None:
        api, _http = _api(
            _response(body={"fileInfo": {"path": "/etc/hosts", "type": "file", "size": 3}}),
            _response(body={"success": True}),
        )
        info = await api.stat("/etc/hosts")
        self.assertEqual(info.entry.name, "hosts")
        with self.assertRaises(RemoteFileError) as caught:
            await api.stat("/etc/hosts")
        self.assertIs(caught.exception.kind, ErrorKind.UNKNOWN)

    async def test_non_json_success_body_is_unknown_error(self) -> None:
        api, _http = _api(_response(content=b"<html>", content_type="text/html"))
        with self.assertRaises(RemoteFileError) as caught:
            await api.list_directory("/")
        self.assertIs(caught.exception.kind, ErrorKind.UNKNOWN)


class DecodeTextTests(unittest.TestCase):
    def test_utf8_and_latin1_fallback(self) -> None:
        self.assertEqual(decode_text("héllo".encode("utf-8")), "héllo")
        self.assertEqual(decode_text("héllo".encode("latin-1")), "héllo")


if __name__ == "__main__":
    unittest.main()
