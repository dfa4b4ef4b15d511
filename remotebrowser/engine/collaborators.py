"""Contracts with the outside world: notifications and confirmations.

The engine never renders anything. It reports outcomes through a
``Notifier`` and asks yes/no questions through an async ``Confirm`` callable.
Components built without a ``Confirm`` answer every question with no.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Protocol

logger = logging.getLogger(__name__)

Confirm = Callable[[str], Awaitable[bool]]

DEDUPE_WINDOW_SECONDS = 2.0


class Notifier(Protocol):
    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...


class LoggingNotifier:
    """Notifier used when no UI is attached: messages go to the log."""

    def success(self, message: str) -> None:
        logger.info("%s", message)

    def error(self, message: str) -> None:
        logger.error("%s", message)

    def info(self, message: str) -> None:
        logger.info("%s", message)


class RecordingNotifier:
    """Keeps ``(level, message)`` pairs in order; handy for CLIs and tests."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def of_level(self, level: str) -> list[str]:
        return [message for kind, message in self.messages if kind == level]


class DedupingNotifier:
    """Drops a message identical to the previous one shown within the window."""

    def __init__(
        self,
        inner: Notifier,
        window: float = DEDUPE_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.inner = inner
        self.window = window
        self._clock = clock
        self._last: tuple[str, str] | None = None
        self._last_at = 0.0

    def _should_show(self, level: str, message: str) -> bool:
        now = self._clock()
        if self._last == (level, message) and now - self._last_at < self.window:
            return False
        self._last = (level, message)
        self._last_at = now
        return True

    def success(self, message: str) -> None:
        if self._should_show("success", message):
            self.inner.success(message)

    def error(self, message: str) -> None:
        if self._should_show("error", message):
            self.inner.error(message)

    def info(self, message: str) -> None:
        if self._should_show("info", message):
            self.inner.info(message)


async def always_confirm(_message: str) -> bool:
    return True


async def never_confirm(_message: str) -> bool:
    return False


def plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


__all__ = [
    "Confirm",
    "DedupingNotifier",
    "LoggingNotifier",
    "Notifier",
    "RecordingNotifier",
    "always_confirm",
    "never_confirm",
    "plural",
]
