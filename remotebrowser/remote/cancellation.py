"""Cancellation tokens and per-operation generation counters.

Each logical operation (directory listing, search, viewer load, upload batch)
owns one ``RequestScope``. Starting a new request through the scope cancels
the previous token and bumps the generation; a result is applied only when
its token is still current. This is the same latest-request-wins rule the
background prefetcher uses, expressed with explicit handles.
"""

from __future__ import annotations

import logging

from .errors import RequestCancelled

logger = logging.getLogger(__name__)


class CancelToken:
    """Cancellation handle passed into one asynchronous request."""

    __slots__ = ("generation", "_cancelled", "reason")

    def __init__(self, generation: int = 0) -> None:
        self.generation = generation
        self._cancelled = False
        self.reason = ""

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self, reason: str = "superseded") -> None:
        if not self._cancelled:
            self._cancelled = True
            self.reason = reason

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise RequestCancelled(self.reason)

    def __repr__(self) -> str:
        state = f"cancelled:{self.reason}" if self._cancelled else "active"
        return f"CancelToken(generation={self.generation}, {state})"


class RequestScope:
    """Monotonic generation counter with at most one live token."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.generation = 0
        self._token: CancelToken | None = None

    @property
    def token(self) -> CancelToken | None:
        return self._token

    def begin(self) -> CancelToken:
        """Supersede any in-flight request and return a token for a new one."""
        if self._token is not None and not self._token.cancelled:
            logger.debug("%s: superseding generation %d", self.name, self._token.generation)
            self._token.cancel("superseded")
        self.generation += 1
        self._token = CancelToken(self.generation)
        return self._token

    def is_current(self, token: CancelToken) -> bool:
        return token is self._token and not token.cancelled

    def cancel(self, reason: str = "aborted") -> None:
        if self._token is not None:
            self._token.cancel(reason)

    def finish(self, token: CancelToken) -> None:
        """Drop the live token once its request settled, if it is still the live one."""
        if token is self._token:
            self._token = None


__all__ = ["CancelToken", "RequestScope"]
