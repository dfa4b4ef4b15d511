"""Debounced remote search with latest-query-wins result handling.

Every query or option change invalidates the current results, cancels any
search still waiting or in flight and schedules a new one after the
debounce delay. A superseded search never touches the state, even if its
response arrives later.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from enum import Enum

from ..model import paths
from ..model.types import SearchResult
from ..remote.api import FileApi, SearchQuery
from ..remote.cancellation import CancelToken, RequestScope
from ..remote.errors import RemoteFileError, RequestCancelled

logger = logging.getLogger(__name__)

SEARCH_DEBOUNCE_SECONDS = 0.3
SEARCH_MAX_RESULTS = 50
SEARCH_TYPES = ("all", "file", "directory")

Navigate = Callable[[str], Awaitable[object]]
MarkSelected = Callable[[str], object]


class SearchStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"  # waiting out the debounce delay
    SEARCHING = "searching"
    RESULTS = "results"
    NO_RESULTS = "no_results"
    ERROR = "error"
    INVALID_PATTERN = "invalid_pattern"


@dataclass
class SearchState:
    open: bool = False
    query: SearchQuery = field(default_factory=lambda: SearchQuery(text=""))
    status: SearchStatus = SearchStatus.IDLE
    results: list[SearchResult] = field(default_factory=list)
    error: str | None = None
    truncated: bool = False

    def clear_results(self) -> None:
        self.results = []
        self.error = None
        self.truncated = False


def pattern_error(query: SearchQuery) -> str | None:
    """Return the regex compile error for ``query``, or ``None`` if it is usable."""
    if not query.regex:
        return None
    flags = 0 if query.case_sensitive else re.IGNORECASE
    try:
        re.compile(query.text, flags)
    except re.error as exc:
        return f"Invalid regular expression: {exc}"
    return None


class SearchCoordinator:
    def __init__(
        self,
        api: FileApi,
        *,
        debounce: float = SEARCH_DEBOUNCE_SECONDS,
        max_results: int = SEARCH_MAX_RESULTS,
        navigate: Navigate | None = None,
        mark_selected: MarkSelected | None = None,
    ) -> None:
        self.api = api
        self.debounce = max(0.0, debounce)
        self.max_results = max(1, max_results)
        self.navigate = navigate
        self.mark_selected = mark_selected
        self.state = SearchState()
        self._scope = RequestScope("search")
        self._task: asyncio.Task[None] | None = None
        self._timer: asyncio.Future[None] | None = None

    @property
    def generation(self) -> int:
        return self._scope.generation

    def open(self, scope_path: str = paths.ROOT) -> None:
        self.state.open = True
        self.state.query = replace(self.state.query, path=paths.normalize(scope_path))

    def close(self) -> None:
        """Close the panel; anything waiting or in flight is dropped silently."""
        self._abort("closed")
        self.state = SearchState()

    def set_query(self, text: str) -> None:
        self._update(replace(self.state.query, text=text))

    def set_options(
        self,
        *,
        path: str | None = None,
        type: str | None = None,
        case_sensitive: bool | None = None,
        regex: bool | None = None,
    ) -> None:
        changes: dict[str, object] = {}
        if path is not None:
            changes["path"] = paths.normalize(path)
        if type is not None:
            if type not in SEARCH_TYPES:
                raise ValueError(f"search type must be one of {', '.join(SEARCH_TYPES)}")
            changes["type"] = type
        if case_sensitive is not None:
            changes["case_sensitive"] = case_sensitive
        if regex is not None:
            changes["regex"] = regex
        self._update(replace(self.state.query, **changes))

    def _abort(self, reason: str) -> None:
        self._scope.cancel(reason)
        # Only the debounce wait is interrupted; a request already sent is
        # left to finish and its result is dropped on arrival.
        timer = self._timer
        self._timer = None
        if timer is not None and not timer.done():
            timer.cancel()

    def _update(self, query: SearchQuery) -> None:
        self._abort("superseded")
        state = self.state
        state.query = query
        state.clear_results()

        if not query.text.strip():
            state.status = SearchStatus.IDLE
            return
        problem = pattern_error(query)
        if problem is not None:
            state.status = SearchStatus.INVALID_PATTERN
            state.error = problem
            return

        token = self._scope.begin()
        state.status = SearchStatus.PENDING
        self._task = asyncio.ensure_future(self._run(query, token))

    async def _run(self, query: SearchQuery, token: CancelToken) -> None:
        if self.debounce:
            timer = asyncio.ensure_future(asyncio.sleep(self.debounce))
            self._timer = timer
            try:
                await timer
            except asyncio.CancelledError:
                if not timer.cancelled():
                    raise
                return
        if not self._scope.is_current(token):
            return
        self.state.status = SearchStatus.SEARCHING
        try:
            results = await self.api.search(query, max_results=self.max_results, token=token)
        except RequestCancelled:
            return
        except RemoteFileError as exc:
            if self._scope.is_current(token):
                self.state.status = SearchStatus.ERROR
                self.state.error = exc.message
                self._scope.finish(token)
            return

        if not self._scope.is_current(token):
            logger.debug("discarding stale results for %r", query.text)
            return
        self.state.truncated = len(results) > self.max_results
        self.state.results = results[: self.max_results]
        self.state.status = SearchStatus.RESULTS if self.state.results else SearchStatus.NO_RESULTS
        self._scope.finish(token)
        logger.debug("search %r: %d results", query.text, len(self.state.results))

    async def wait(self) -> SearchState:
        """Wait until the scheduled search, if any, has settled."""
        task = self._task
        if task is not None:
            await asyncio.wait({task})
        return self.state

    async def choose(self, result: SearchResult) -> str:
        """Go to a result: a directory is entered, a file is selected in its parent."""
        target = result.path if result.is_dir else paths.parent(result.path)
        self.close()
        if self.navigate is not None:
            await self.navigate(target)
        if not result.is_dir and self.mark_selected is not None:
            self.mark_selected(result.path)
        return target


__all__ = [
    "SEARCH_DEBOUNCE_SECONDS",
    "SEARCH_MAX_RESULTS",
    "SEARCH_TYPES",
    "SearchCoordinator",
    "SearchState",
    "SearchStatus",
    "pattern_error",
]
