"""Cancel tokens and request scopes."""

from __future__ import annotations

import unittest

from remotebrowser.remote.cancellation import CancelToken, RequestScope
from remotebrowser.remote.errors import RequestCancelled


class CancelTokenTests(unittest.TestCase):
    def test_cancel_records_first_reason(self) -> None:
        token = CancelToken(3)
        token.cancel("superseded")
        token.cancel("closed")
        self.assertTrue(token.cancelled)
        self.assertEqual(token.reason, "superseded")
        with self.assertRaises(RequestCancelled):
            token.raise_if_cancelled()


class RequestScopeTests(unittest.TestCase):
    def test_begin_supersedes_previous_token(self) -> None:
        scope = RequestScope("listing")
        first = scope.begin()
        second = scope.begin()
        self.assertTrue(first.cancelled)
        self.assertFalse(second.cancelled)
        self.assertFalse(scope.is_current(first))
        self.assertTrue(scope.is_current(second))
        self.assertEqual((first.generation, second.generation), (1, 2))

    def test_cancel_makes_live_token_stale(self) -> None:
        scope = RequestScope("search")
        token = scope.begin()
        scope.cancel("closed")
        self.assertFalse(scope.is_current(token))
        self.assertEqual(token.reason, "closed")

    def test_finish_only_clears_the_live_token(self) -> None:
        scope = RequestScope("viewer")
        old = scope.begin()
        new = scope.begin()
        scope.finish(old)
        self.assertIs(scope.token, new)
        scope.finish(new)
        self.assertIsNone(scope.token)
        self.assertFalse(new.cancelled)


if __name__ == "__main__":
    unittest.main()
