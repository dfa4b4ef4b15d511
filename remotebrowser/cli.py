"""Command-line front door for remotebrowser.

Parses options, attaches the session given on the command line and runs
one browsing command through ``RemoteBrowser``. Classified remote errors
end the process with status 1 and a one-line message.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from .config import BrowserConfig, load_config
from .engine.browser import RemoteBrowser
from .engine.search import SEARCH_TYPES, SearchStatus
from .engine.state import SORT_FIELDS
from .highlight import highlight_text
from .log import setup_logging
from .model import paths
from .model.formatting import format_file_size, listing_row, permissions_label
from .model.types import SessionHandle, UploadFile
from .remote.errors import RemoteFileError
from .remote.gateway import SessionGateway


class ConsoleNotifier:
    """Writes engine notifications to stderr, one line each."""

    def __init__(self, stream=None) -> None:
        self.stream = stream or sys.stderr

    def success(self, message: str) -> None:
        print(message, file=self.stream)

    def error(self, message: str) -> None:
        print(f"error: {message}", file=self.stream)

    def info(self, message: str) -> None:
        print(message, file=self.stream)


def prompt_confirm(assume_yes: bool):
    async def confirm(message: str) -> bool:
        if assume_yes:
            return True
        answer = await asyncio.to_thread(input, f"{message} [y/N] ")
        return answer.strip().lower() in ("y", "yes")

    return confirm


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="remotebrowser",
        description="Browse and manage files on a remote server through its session-scoped file API.",
    )
    parser.add_argument("--base-url", default=None, help="API base URL (default: config or REMOTEBROWSER_BASE_URL).")
    parser.add_argument("--connection", required=True, help="Connection id the session belongs to.")
    parser.add_argument("--token", required=True, help="Session token sent with every request.")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-v info, -vv debug).")
    parser.add_argument("--no-color", action="store_true", help="Disable syntax highlighting for cat.")
    sub = parser.add_subparsers(dest="command", required=True)

    ls = sub.add_parser("ls", help="List a directory.")
    ls.add_argument("path", nargs="?", default=paths.ROOT)
    ls.add_argument("--sort", choices=SORT_FIELDS, default="name", help="Order entries by this field.")
    ls.add_argument("-r", "--reverse", action="store_true", help="Descending order.")

    cat = sub.add_parser("cat", help="Print a text file.")
    cat.add_argument("path")

    find = sub.add_parser("find", help="Search for files by name.")
    find.add_argument("query")
    find.add_argument("--path", default=paths.ROOT, help="Directory to search below.")
    find.add_argument("--type", choices=SEARCH_TYPES, default="all")
    find.add_argument("--regex", action="store_true", help="Treat QUERY as a regular expression.")
    find.add_argument("--case-sensitive", action="store_true")

    get = sub.add_parser("get", help="Download files (several are bundled as a zip).")
    get.add_argument("paths", nargs="+")
    get.add_argument("-o", "--output", default=".", help="Local directory to save into.")

    put = sub.add_parser("put", help="Upload local files.")
    put.add_argument("files", nargs="+")
    put.add_argument("--dest", default=paths.ROOT, help="Remote destination directory.")

    mkdir = sub.add_parser("mkdir", help="Create a directory.")
    mkdir.add_argument("path")

    touch = sub.add_parser("touch", help="Create an empty file.")
    touch.add_argument("path")

    rm = sub.add_parser("rm", help="Delete files or directories.")
    rm.add_argument("paths", nargs="+")
    rm.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation.")

    rename = sub.add_parser("rename", help="Rename an entry in place.")
    rename.add_argument("path")
    rename.add_argument("new_name")

    chmod = sub.add_parser("chmod", help="Change permissions (3-digit octal mode).")
    chmod.add_argument("mode")
    chmod.add_argument("path")

    stat = sub.add_parser("stat", help="Show details of one entry.")
    stat.add_argument("path")
    return parser


async def _ls(browser: RemoteBrowser, args, out) -> int:
    target = paths.normalize(args.path)
    await browser.navigate(target)
    if browser.state.error is not None or browser.state.listed_path != target:
        return 1
    browser.sort(args.sort, "desc" if args.reverse else "asc")
    for entry in browser.state.sorted_entries():
        print(listing_row(entry), file=out)
    return 0


async def _cat(browser: RemoteBrowser, args, out) -> int:
    text = await browser.api.read_text(args.path)
    if not args.no_color and getattr(out, "isatty", lambda: False)():
        text = highlight_text(text, args.path, style=browser.viewer.style)
    out.write(text)
    if text and not text.endswith("\n"):
        out.write("\n")
    return 0


async def _find(browser: RemoteBrowser, args, out) -> int:
    search = browser.search
    search.debounce = 0.0
    search.open(args.path)
    search.set_options(type=args.type, case_sensitive=args.case_sensitive, regex=args.regex)
    search.set_query(args.query)
    state = await search.wait()
    if state.status in (SearchStatus.ERROR, SearchStatus.INVALID_PATTERN):
        print(f"error: {state.error}", file=sys.stderr)
        return 1
    if state.status is SearchStatus.NO_RESULTS:
        print("No results", file=sys.stderr)
        return 0
    for result in state.results:
        print(result.path + ("/" if result.is_dir else ""), file=out)
    if state.truncated:
        print(f"(showing first {len(state.results)} results)", file=sys.stderr)
    return 0


async def _get(browser: RemoteBrowser, args, out) -> int:
    download = await browser.download(args.paths)
    if download is None:
        return 1
    saved = download.save(Path(args.output))
    print(saved, file=out)
    return 0


async def _put(browser: RemoteBrowser, args, out) -> int:
    uploads = []
    for name in args.files:
        local = Path(name)
        if not local.is_file():
            print(f"error: not a file: {local}", file=sys.stderr)
            return 1
        uploads.append(UploadFile.from_path(local))
    await browser.navigate(args.dest)
    summary = await browser.upload(uploads, args.dest)
    rejected = len(uploads) - summary.total
    return 1 if summary.failed or rejected or summary.succeeded == 0 else 0


async def _in_parent(browser: RemoteBrowser, path: str) -> None:
    await browser.navigate(paths.parent(path))


async def _mkdir(browser: RemoteBrowser, args, out) -> int:
    await _in_parent(browser, args.path)
    return 0 if await browser.operations.create_folder(args.path) else 1


async def _touch(browser: RemoteBrowser, args, out) -> int:
    await _in_parent(browser, args.path)
    return 0 if await browser.operations.create_file(args.path) else 1


async def _rm(browser: RemoteBrowser, args, out) -> int:
    outcome = await browser.delete(args.paths)
    if outcome.cancelled:
        return 1
    return 0 if outcome.all_succeeded else 1


async def _rename(browser: RemoteBrowser, args, out) -> int:
    await _in_parent(browser, args.path)
    return 0 if await browser.rename(args.path, args.new_name) else 1


async def _chmod(browser: RemoteBrowser, args, out) -> int:
    return 0 if await browser.chmod(args.path, args.mode) else 1


async def _stat(browser: RemoteBrowser, args, out) -> int:
    info = await browser.api.stat(args.path)
    entry = info.entry
    rows = [
        ("path", entry.path),
        ("type", entry.type.value),
        ("size", "-" if entry.is_dir else f"{format_file_size(entry.size)} ({entry.size} bytes)"),
        ("modified", entry.mtime.isoformat() if entry.mtime else "Unknown"),
        ("permissions", permissions_label(entry)),
    ]
    if info.owner:
        rows.append(("owner", info.owner))
    if info.group:
        rows.append(("group", info.group))
    for label, value in rows:
        print(f"{label:<12} {value}", file=out)
    return 0


_HANDLERS = {
    "ls": _ls,
    "cat": _cat,
    "find": _find,
    "get": _get,
    "put": _put,
    "mkdir": _mkdir,
    "touch": _touch,
    "rm": _rm,
    "rename": _rename,
    "chmod": _chmod,
    "stat": _stat,
}


async def run(args: argparse.Namespace, config: BrowserConfig, out=None) -> int:
    """Run one parsed command; returns the process exit status."""
    out = out or sys.stdout
    gateway = SessionGateway(
        args.base_url or config.base_url,
        SessionHandle(args.connection, args.token),
        timeout=config.request_timeout,
        token_header=config.session_header,
    )
    browser = RemoteBrowser(
        gateway,
        config=config,
        notifier=ConsoleNotifier(),
        confirm=prompt_confirm(getattr(args, "yes", False)),
    )
    try:
        return await _HANDLERS[args.command](browser, args, out)
    finally:
        await browser.close()


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and run one remote file command."""
    parser = build_parser()
    args = parser.parse_args(argv)
    config = load_config()
    level = {0: config.log_level, 1: "INFO"}.get(args.verbose, "DEBUG")
    setup_logging(level)
    try:
        status = asyncio.run(run(args, config))
    except RemoteFileError as exc:
        raise SystemExit(f"error: {exc.message}") from None
    except KeyboardInterrupt:
        raise SystemExit(130) from None
    if status:
        raise SystemExit(status)


if __name__ == "__main__":
    main()
