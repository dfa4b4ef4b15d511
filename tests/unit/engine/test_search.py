"""Debounced search: latest query wins, patterns are checked locally."""

from __future__ import annotations

import asyncio
import unittest

from engine_fakes import FakeFileApi, result

from remotebrowser.engine.search import SearchCoordinator, SearchStatus, pattern_error
from remotebrowser.model.types import EntryType
from remotebrowser.remote.api import SearchQuery
from remotebrowser.remote.errors import ErrorKind, RemoteFileError


async def _until_called(api: FakeFileApi, count: int) -> None:
    for _ in range(100):
        if len(api.calls) >= count:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"expected {count} calls, saw {api.calls}")


class PatternTests(unittest.TestCase):
    def test_plain_text_is_never_a_pattern_error(self) -> None:
        self.assertIsNone(pattern_error(SearchQuery(text="(")))

    def test_broken_regex_is_reported(self) -> None:
        self.assertIn("Invalid regular expression", pattern_error(SearchQuery(text="(", regex=True)))
        self.assertIsNone(pattern_error(SearchQuery(text=r"^app\.py$", regex=True)))


class SearchCoordinatorTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.api = FakeFileApi()
        self.navigated: list[str] = []
        self.marked: list[str] = []
        self.search = SearchCoordinator(
            self.api,
            debounce=0.0,
            max_results=2,
            navigate=self._navigate,
            mark_selected=self.marked.append,
        )
        self.search.open("/srv")

    async def _navigate(self, path: str) -> None:
        self.navigated.append(path)

    async def test_results_are_scoped_to_open_path(self) -> None:
        self.api.search_results["app"] = [result("/srv/app.py")]
        self.search.set_query("app")
        state = await self.search.wait()
        self.assertEqual(state.status, SearchStatus.RESULTS)
        self.assertEqual(state.query.path, "/srv")
        self.assertEqual([r.path for r in state.results], ["/srv/app.py"])

    async def test_late_results_of_superseded_query_are_ignored(self) -> None:
        release = self.api.hold("search:abc")
        self.api.search_results["abc"] = [result("/srv/abc")]
        self.api.search_results["abcd"] = [result("/srv/abcd")]
        self.search.set_query("abc")
        await _until_called(self.api, 1)
        self.assertEqual(self.search.state.status, SearchStatus.SEARCHING)

        self.search.set_query("abcd")
        await self.search.wait()
        release.set()
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        self.assertEqual([r.path for r in self.search.state.results], ["/srv/abcd"])
        self.assertEqual(self.search.state.query.text, "abcd")

    async def test_debounce_collapses_rapid_typing(self) -> None:
        self.search.debounce = 0.01
        for text in ("a", "ab", "abc"):
            self.search.set_query(text)
            self.assertEqual(self.search.state.status, SearchStatus.PENDING)
        await self.search.wait()
        await asyncio.sleep(0.02)
        self.assertEqual(self.api.calls_of("search"), ["abc"])

    async def test_empty_query_goes_idle_without_request(self) -> None:
        self.search.set_query("   ")
        self.assertEqual(self.search.state.status, SearchStatus.IDLE)
        self.assertEqual(self.api.calls, [])

    async def test_invalid_regex_makes_no_request(self) -> None:
        self.search.set_query("(")
        self.search.set_options(regex=True)
        self.assertEqual(self.search.state.status, SearchStatus.INVALID_PATTERN)
        self.assertTrue(self.search.state.error)
        await asyncio.sleep(0)
        self.assertEqual(self.api.calls_of("search"), [])

    async def test_no_results_is_not_an_error(self) -> None:
        self.search.set_query("nothing")
        state = await self.search.wait()
        self.assertEqual(state.status, SearchStatus.NO_RESULTS)
        self.assertIsNone(state.error)

    async def test_failure_is_an_error_state(self) -> None:
        self.api.fail("search", "x", RemoteFileError(ErrorKind.NETWORK))
        self.search.set_query("x")
        state = await self.search.wait()
        self.assertEqual(state.status, SearchStatus.ERROR)
        self.assertEqual(state.error, "Unable to reach the server")

    async def test_results_are_capped(self) -> None:
        self.api.search_results["f"] = [result(f"/srv/f{i}") for i in range(3)]
        self.search.set_query("f")
        state = await self.search.wait()
        self.assertEqual(len(state.results), 2)
        self.assertTrue(state.truncated)

    async def test_bad_type_option(self) -> None:
        with self.assertRaises(ValueError):
            self.search.set_options(type="symlink")

    async def test_choosing_a_directory_enters_it(self) -> None:
        target = await self.search.choose(result("/srv/logs", EntryType.DIRECTORY))
        self.assertEqual(target, "/srv/logs")
        self.assertEqual(self.navigated, ["/srv/logs"])
        self.assertEqual(self.marked, [])
        self.assertFalse(self.search.state.open)

    async def test_choosing_a_file_selects_it_in_its_parent(self) -> None:
        await self.search.choose(result("/srv/logs/app.log"))
        self.assertEqual(self.navigated, ["/srv/logs"])
        self.assertEqual(self.marked, ["/srv/logs/app.log"])

    async def test_close_drops_in_flight_search(self) -> None:
        release = self.api.hold("search:slow")
        self.api.search_results["slow"] = [result("/srv/slow")]
        self.search.set_query("slow")
        await _until_called(self.api, 1)
        self.search.close()
        release.set()
        await self.search.wait()
        self.assertEqual(self.search.state.status, SearchStatus.IDLE)
        self.assertEqual(self.search.state.results, [])
        self.assertFalse(self.search.state.open)


if __name__ == "__main__":
    unittest.main()
