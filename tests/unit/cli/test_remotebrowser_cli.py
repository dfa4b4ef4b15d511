"""CLI parsing, exit status and command output tests.

``run`` is exercised against a small in-memory file API; ``main`` is
checked with ``run`` patched out.
"""

from __future__ import annotations

import io
import unittest
from unittest import mock

from remotebrowser import cli
from remotebrowser.config import BrowserConfig
from remotebrowser.model.types import EntryType, FileEntry, StatInfo
from remotebrowser.remote.errors import ErrorKind, RemoteFileError

BASE_ARGS = ["--connection", "conn-1", "--token", "tok"]


class TinyFileApi:
    def __init__(self) -> None:
        self.listings = {
            "/srv": [
                FileEntry("/srv/app", "app", EntryType.DIRECTORY),
                FileEntry("/srv/notes.txt", "notes.txt", EntryType.FILE, size=2048, permissions="rw-r--r--"),
            ]
        }

    async def list_directory(self, path, token=None):
        if path not in self.listings:
            raise RemoteFileError(ErrorKind.NOT_FOUND, status=404)
        return list(self.listings[path])

    async def stat(self, path):
        return StatInfo(FileEntry(path, path.rsplit("/", 1)[-1], EntryType.FILE, size=10), owner="deploy")


class ParserTests(unittest.TestCase):
    def test_session_options_are_required(self) -> None:
        with mock.patch("sys.stderr", io.StringIO()), self.assertRaises(SystemExit):
            cli.build_parser().parse_args(["ls"])

    def test_subcommand_arguments(self) -> None:
        args = cli.build_parser().parse_args([*BASE_ARGS, "-vv", "find", "app", "--type", "file", "--regex"])
        self.assertEqual((args.command, args.query, args.type), ("find", "app", "file"))
        self.assertTrue(args.regex)
        self.assertEqual(args.verbose, 2)
        self.assertEqual(args.path, "/")

    def test_chmod_takes_mode_first(self) -> None:
        args = cli.build_parser().parse_args([*BASE_ARGS, "chmod", "644", "/srv/notes.txt"])
        self.assertEqual((args.mode, args.path), ("644", "/srv/notes.txt"))


class MainTests(unittest.TestCase):
    def _main(self, argv, run):
        with (
            mock.patch("remotebrowser.cli.load_config", return_value=BrowserConfig()),
            mock.patch("remotebrowser.cli.setup_logging") as setup_logging,
            mock.patch("remotebrowser.cli.run", run),
        ):
            cli.main(argv)
        return setup_logging

    def test_success_returns_normally(self) -> None:
        run = mock.AsyncMock(return_value=0)
        setup_logging = self._main([*BASE_ARGS, "ls"], run)
        run.assert_awaited_once()
        setup_logging.assert_called_once_with("WARNING")

    def test_verbosity_raises_log_level(self) -> None:
        setup_logging = self._main([*BASE_ARGS, "-v", "ls"], mock.AsyncMock(return_value=0))
        setup_logging.assert_called_once_with("INFO")

    def test_nonzero_status_exits(self) -> None:
        with self.assertRaises(SystemExit) as caught:
            self._main([*BASE_ARGS, "rm", "/x"], mock.AsyncMock(return_value=1))
        self.assertEqual(caught.exception.code, 1)

    def test_remote_error_becomes_message(self) -> None:
        failing = mock.AsyncMock(side_effect=RemoteFileError(ErrorKind.PERMISSION, "Permission denied", 403))
        with self.assertRaises(SystemExit) as caught:
            self._main([*BASE_ARGS, "cat", "/etc/shadow"], failing)
        self.assertEqual(caught.exception.code, "error: Permission denied")


class RunTests(unittest.IsolatedAsyncioTestCase):
    async def _run(self, argv, api=None):
        args = cli.build_parser().parse_args([*BASE_ARGS, *argv])
        out = io.StringIO()
        with (
            mock.patch("remotebrowser.engine.browser.FileApi", return_value=api or TinyFileApi()),
            mock.patch("sys.stderr", io.StringIO()) as err,
        ):
            status = await cli.run(args, BrowserConfig(), out)
        return status, out.getvalue(), err.getvalue()

    async def test_ls_prints_rows(self) -> None:
        status, out, _err = await self._run(["ls", "/srv"])
        self.assertEqual(status, 0)
        lines = out.splitlines()
        self.assertTrue(lines[0].endswith("app/"))
        self.assertIn("rw-r--r--", lines[1])
        self.assertIn("2 KB", lines[1])

    async def test_ls_sorts_with_directories_first(self) -> None:
        api = TinyFileApi()
        api.listings["/srv"].append(FileEntry("/srv/a.log", "a.log", EntryType.FILE, size=10))

        _status, out, _err = await self._run(["ls", "/srv"], api)
        self.assertEqual([line.split()[-1] for line in out.splitlines()], ["app/", "a.log", "notes.txt"])

        _status, out, _err = await self._run(["ls", "/srv", "--sort", "size", "-r"], api)
        self.assertEqual([line.split()[-1] for line in out.splitlines()], ["app/", "notes.txt", "a.log"])

    async def test_ls_of_missing_directory_fails(self) -> None:
        status, out, err = await self._run(["ls", "/nope"])
        self.assertEqual(status, 1)
        self.assertEqual(out, "")
        self.assertIn("error: File or directory not found", err)

    async def test_stat_prints_owner(self) -> None:
        status, out, _err = await self._run(["stat", "/srv/notes.txt"])
        self.assertEqual(status, 0)
        self.assertIn("owner        deploy", out)
        self.assertIn("type         file", out)


if __name__ == "__main__":
    unittest.main()
