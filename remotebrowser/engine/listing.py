"""Directory listing store: loads the current path, latest request wins.

A load for the path that is already loading joins the in-flight request
instead of issuing another one, which keeps unrelated reload triggers from
stacking up. A load for a different path (or ``force=True``) supersedes the
in-flight one; the superseded response is discarded when it arrives.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from ..model import paths
from ..remote.api import FileApi
from ..remote.cancellation import CancelToken, RequestScope
from ..remote.errors import PERSISTENT_KINDS, RemoteFileError, RequestCancelled
from .collaborators import LoggingNotifier, Notifier
from .state import BrowserError, BrowserState

logger = logging.getLogger(__name__)

Recover = Callable[[str], Awaitable[object]]


class DirectoryListingStore:
    def __init__(
        self,
        api: FileApi,
        state: BrowserState,
        *,
        notifier: Notifier | None = None,
        recover: Recover | None = None,
    ) -> None:
        self.api = api
        self.state = state
        self.notifier = notifier or LoggingNotifier()
        self.recover = recover
        self._scope = RequestScope("listing")
        self._inflight: asyncio.Task[bool] | None = None
        self._inflight_path: str | None = None

    @property
    def generation(self) -> int:
        return self._scope.generation

    async def load(self, *, force: bool = False) -> bool:
        """Load ``state.current_path``; returns whether this call's listing was applied."""
        if not self.state.connected:
            return False
        path = self.state.current_path
        inflight = self._inflight
        if (
            not force
            and inflight is not None
            and not inflight.done()
            and self._inflight_path == path
        ):
            logger.debug("joining in-flight listing of %s", path)
            return await asyncio.shield(inflight)

        token = self._scope.begin()
        task = asyncio.ensure_future(self._load(path, token))
        self._inflight = task
        self._inflight_path = path
        return await asyncio.shield(task)

    def cancel(self) -> None:
        """Abort the in-flight load without producing an error state."""
        self._scope.cancel("aborted")
        self.state.loading = False

    async def _load(self, path: str, token: CancelToken) -> bool:
        self.state.loading = True
        try:
            entries = await self.api.list_directory(path, token=token)
        except RequestCancelled:
            logger.debug("listing of %s cancelled", path)
            return False
        except RemoteFileError as exc:
            if not self._scope.is_current(token):
                return False
            await self._fail(path, exc)
            return False

        if not self._scope.is_current(token):
            logger.debug("discarding stale listing of %s (generation %d)", path, token.generation)
            return False
        self.state.replace_listing(path, entries)
        logger.debug("listed %s: %d entries", path, len(entries))
        return True

    async def _fail(self, path: str, exc: RemoteFileError) -> None:
        self.state.loading = False
        self.state.error = BrowserError.from_exception(exc, path)
        self.notifier.error(exc.message)
        if exc.kind in PERSISTENT_KINDS:
            # Stay put so the user can retry, reconnect or ask for access.
            return
        if paths.is_root(path) or self.recover is None:
            return
        parent = paths.parent(path)
        logger.info("leaving %s after %s error; going to %s", path, exc.kind.value, parent)
        await self.recover(parent)


__all__ = ["DirectoryListingStore"]
