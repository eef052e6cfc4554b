"""Tests for the search session controller."""

from __future__ import annotations

import asyncio
import re
import sys
import unittest
from collections import Counter
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from FacetSearch.core.errors import SessionClosedError, SessionStateError
from FacetSearch.core.query import QueryDescriptor
from FacetSearch.session.controller import SearchSession

_FILTER_RE = re.compile(r"^(\w+):equals\('(.*)'\)$")


def _make_rows(count: int, *, prefix: str = "r", file_types: list[str] | None = None) -> list[dict[str, str]]:
    rows = []
    for idx in range(1, count + 1):
        file_type = file_types[idx - 1] if file_types else "docx"
        rows.append(
            {
                "DocId": f"{prefix}{idx}",
                "Title": f"{prefix.upper()} document {idx}",
                "FileType": file_type,
                "Rank": str(100 - idx),
            }
        )
    return rows


def _make_response(rows: list[dict[str, str]], total: int, refiners: dict[str, Counter] | None = None) -> dict:
    payload: dict = {
        "PrimaryQueryResult": {
            "RelevantResults": {
                "TotalRows": total,
                "Table": {"Rows": [{"Cells": [{"Key": k, "Value": v} for k, v in row.items()]} for row in rows]},
            }
        }
    }
    if refiners:
        payload["PrimaryQueryResult"]["RefinementResults"] = {
            "Refiners": [
                {
                    "Name": name,
                    "Entries": [
                        {"RefinementName": value, "RefinementCount": str(count), "RefinementToken": f'"{value}"'}
                        for value, count in counts.items()
                    ],
                }
                for name, counts in refiners.items()
            ]
        }
    return payload


class _FakeBackend:
    """In-memory backend that honours paging and equals() refinement filters."""

    name = "fake"

    def __init__(self, rows_by_text: dict[str, list[dict[str, str]]]) -> None:
        self.rows_by_text = rows_by_text
        self.descriptors: list[QueryDescriptor] = []
        self.gates: dict[tuple[str, int], asyncio.Event] = {}
        self.fail_with: Exception | None = None
        self.suggest_error: Exception | None = None
        self.suggestions: list = ["report 2024", {"Query": "report template"}]

    def gate(self, text: str, start_row: int = 0) -> asyncio.Event:
        event = asyncio.Event()
        self.gates[(text, start_row)] = event
        return event

    async def execute(self, descriptor: QueryDescriptor) -> dict:
        self.descriptors.append(descriptor)
        gate = self.gates.get((descriptor.text, descriptor.start_row or 0))
        if gate is not None:
            await gate.wait()
        else:
            await asyncio.sleep(0)
        if self.fail_with is not None:
            raise self.fail_with

        rows = list(self.rows_by_text.get(descriptor.text, []))
        for expression in descriptor.refinement_filters:
            match = _FILTER_RE.match(expression)
            assert match is not None, expression
            field, value = match.groups()
            rows = [row for row in rows if row.get(field) == value]

        start = descriptor.start_row or 0
        limit = descriptor.row_limit or len(rows)
        refiners = None
        if descriptor.refiners:
            refiners = {
                name: Counter(row[name] for row in rows if name in row)
                for name in descriptor.refiners.split(",")
            }
        return _make_response(rows[start : start + limit], len(rows), refiners)

    async def suggest(self, text: str) -> dict:
        await asyncio.sleep(0)
        if self.suggest_error is not None:
            raise self.suggest_error
        return {"queries": list(self.suggestions)}

    def close(self) -> None:
        return


class _OverreportingBackend(_FakeBackend):
    """Reports a TotalRows estimate larger than the rows it can serve."""

    def __init__(self, rows_by_text: dict[str, list[dict[str, str]]], *, reported_total: int) -> None:
        super().__init__(rows_by_text)
        self.reported_total = reported_total

    async def execute(self, descriptor: QueryDescriptor) -> dict:
        payload = await super().execute(descriptor)
        payload["PrimaryQueryResult"]["RelevantResults"]["TotalRows"] = self.reported_total
        return payload


def _ids(results) -> list[str]:
    return [result.id for result in results]


class TestSearchSessionPagination(unittest.IsolatedAsyncioTestCase):
    async def test_report_scenario_pages_until_exhausted(self) -> None:
        backend = _FakeBackend({"report": _make_rows(5)})
        session = SearchSession(backend, page_size=2)

        first = await session.search("report")
        self.assertEqual(_ids(first), ["r1", "r2"])
        self.assertEqual(_ids(session.results), ["r1", "r2"])
        self.assertEqual(session.total_results, 5)
        self.assertTrue(session.has_more)

        second = await session.load_more()
        self.assertEqual(_ids(second), ["r3", "r4"])
        self.assertEqual(_ids(session.results), ["r1", "r2", "r3", "r4"])
        self.assertTrue(session.has_more)

        third = await session.load_more()
        self.assertEqual(_ids(third), ["r5"])
        self.assertEqual(_ids(session.results), ["r1", "r2", "r3", "r4", "r5"])
        self.assertFalse(session.has_more)

        calls = len(backend.descriptors)
        self.assertEqual(await session.load_more(), [])
        self.assertEqual(len(backend.descriptors), calls)
        self.assertFalse(session.has_more)

    async def test_results_grow_by_page_size_per_load_more(self) -> None:
        page_size = 3
        backend = _FakeBackend({"q": _make_rows(3 * page_size + 1)})
        session = SearchSession(backend, page_size=page_size)

        await session.search("q")
        for n in range(1, 4):
            await session.load_more()
            self.assertEqual(len(session.results), (n + 1) * page_size)
            self.assertTrue(session.has_more)

    async def test_cursor_advances_by_page_size(self) -> None:
        backend = _FakeBackend({"q": _make_rows(7)})
        session = SearchSession(backend, page_size=3)

        await session.search("q")
        await session.load_more()
        await session.load_more()

        self.assertEqual([d.start_row for d in backend.descriptors], [None, 3, 6])
        self.assertEqual({d.row_limit for d in backend.descriptors}, {3})

    async def test_search_page_size_override(self) -> None:
        backend = _FakeBackend({"q": _make_rows(10)})
        session = SearchSession(backend, page_size=2)

        await session.search("q", page_size=4)
        await session.load_more()

        self.assertEqual(session.page_size, 4)
        self.assertEqual(len(session.results), 8)
        self.assertEqual(backend.descriptors[-1].start_row, 4)

    async def test_refetch_replaces_instead_of_appending(self) -> None:
        backend = _FakeBackend({"q": _make_rows(6)})
        session = SearchSession(backend, page_size=2)

        await session.search("q")
        await session.load_more()
        self.assertEqual(len(session.results), 4)

        await session.refetch()

        self.assertEqual(_ids(session.results), ["r1", "r2"])
        self.assertIsNone(backend.descriptors[-1].start_row)

        await session.load_more()
        self.assertEqual(_ids(session.results), ["r1", "r2", "r3", "r4"])

    async def test_concurrent_load_more_calls_are_queued(self) -> None:
        backend = _FakeBackend({"q": _make_rows(10)})
        session = SearchSession(backend, page_size=2)
        await session.search("q")

        pages = await asyncio.gather(session.load_more(), session.load_more())

        self.assertEqual([_ids(page) for page in pages], [["r3", "r4"], ["r5", "r6"]])
        self.assertEqual(_ids(session.results), ["r1", "r2", "r3", "r4", "r5", "r6"])

    async def test_invalid_page_size_is_rejected(self) -> None:
        backend = _FakeBackend({})
        with self.assertRaises(ValueError):
            SearchSession(backend, page_size=0)

        session = SearchSession(backend)
        with self.assertRaises(ValueError):
            await session.search("q", page_size=-1)
        self.assertEqual(backend.descriptors, [])


class TestSearchSessionPreconditions(unittest.IsolatedAsyncioTestCase):
    async def test_load_more_before_search_raises(self) -> None:
        backend = _FakeBackend({})
        session = SearchSession(backend)

        with self.assertRaisesRegex(SessionStateError, "Call search\\(\\) first"):
            await session.load_more()

        self.assertEqual(session.results, ())
        self.assertEqual(session.total_results, 0)
        self.assertIsInstance(session.error, SessionStateError)
        self.assertEqual(backend.descriptors, [])

    async def test_refetch_and_apply_refiner_before_search_raise(self) -> None:
        session = SearchSession(_FakeBackend({}))

        with self.assertRaises(SessionStateError):
            await session.refetch()
        with self.assertRaises(SessionStateError):
            await session.apply_refiner("FileType", "docx")

        self.assertEqual(session.results, ())
        self.assertEqual(session.applied_refinements, {})

    async def test_closed_session_rejects_operations(self) -> None:
        session = SearchSession(_FakeBackend({"q": _make_rows(2)}))
        session.close()

        with self.assertRaises(SessionClosedError):
            await session.search("q")
        with self.assertRaises(SessionClosedError):
            await session.suggest("q")


class TestSearchSessionRefiners(unittest.IsolatedAsyncioTestCase):
    def _backend(self) -> _FakeBackend:
        file_types = ["docx"] * 10 + ["pdf"] * 4
        return _FakeBackend({"report": _make_rows(14, file_types=file_types)})

    async def test_file_type_scenario(self) -> None:
        backend = self._backend()
        session = SearchSession(backend, page_size=50, refiners="FileType")

        await session.search(lambda builder: builder.text("report"))
        self.assertEqual(session.total_results, 14)
        file_type = session.refiners[0]
        self.assertEqual(file_type.name, "FileType")
        self.assertEqual(file_type.entry("docx").count, 10)
        self.assertEqual(file_type.entry("pdf").count, 4)

        await session.apply_refiner("FileType", "docx")
        self.assertEqual(backend.descriptors[-1].refinement_filters, ("FileType:equals('docx')",))
        self.assertLessEqual(session.total_results, 10)
        self.assertEqual(session.applied_refinements, {"FileType": ("docx",)})

        await session.apply_refiner("FileType", "docx")
        self.assertEqual(backend.descriptors[-1].refinement_filters, ())
        self.assertEqual(session.total_results, 14)
        self.assertEqual(session.applied_refinements, {})

    async def test_double_toggle_matches_fresh_session(self) -> None:
        backend = self._backend()
        session = SearchSession(backend, page_size=5)
        await session.search("report")
        await session.apply_refiner("FileType", "pdf")
        await session.apply_refiner("FileType", "pdf")

        fresh_backend = self._backend()
        fresh = SearchSession(fresh_backend, page_size=5)
        await fresh.search("report")

        self.assertEqual(backend.descriptors[-1], fresh_backend.descriptors[-1])
        self.assertEqual(_ids(session.results), _ids(fresh.results))

    async def test_new_search_clears_refinements(self) -> None:
        backend = self._backend()
        session = SearchSession(backend, page_size=5)
        await session.search("report")
        await session.apply_refiner("FileType", "pdf")
        self.assertEqual(session.total_results, 4)

        await session.search("report")

        self.assertEqual(session.applied_refinements, {})
        self.assertEqual(backend.descriptors[-1].refinement_filters, ())
        self.assertEqual(session.total_results, 14)

    async def test_load_more_keeps_refinement_filters(self) -> None:
        backend = self._backend()
        session = SearchSession(backend, page_size=3)
        await session.search("report")
        await session.apply_refiner("FileType", "docx")

        await session.load_more()

        self.assertEqual(backend.descriptors[-1].refinement_filters, ("FileType:equals('docx')",))
        self.assertEqual(backend.descriptors[-1].start_row, 3)
        self.assertEqual(len(session.results), 6)
        self.assertTrue(all(result.data["FileType"] == "docx" for result in session.results))

    async def test_string_query_ignores_defaults(self) -> None:
        backend = self._backend()
        session = SearchSession(backend, select_properties=["Title"], refiners="FileType")

        await session.search("report")

        self.assertEqual(backend.descriptors[-1].select_properties, ())
        self.assertIsNone(backend.descriptors[-1].refiners)
        self.assertEqual(session.refiners, ())


class TestSearchSessionErrors(unittest.IsolatedAsyncioTestCase):
    async def test_backend_failure_is_raised_and_recorded(self) -> None:
        backend = _FakeBackend({"q": _make_rows(3)})
        backend.fail_with = RuntimeError("boom")
        session = SearchSession(backend, page_size=2)

        with self.assertRaisesRegex(RuntimeError, "boom"):
            await session.search("q")

        self.assertIs(session.error, backend.fail_with)
        self.assertFalse(session.loading)
        self.assertEqual(session.results, ())

    async def test_load_more_failure_resets_flag_and_keeps_results(self) -> None:
        backend = _FakeBackend({"q": _make_rows(6)})
        session = SearchSession(backend, page_size=2)
        await session.search("q")

        backend.fail_with = ConnectionError("down")
        with self.assertRaises(ConnectionError):
            await session.load_more()

        self.assertFalse(session.loading_more)
        self.assertEqual(_ids(session.results), ["r1", "r2"])
        self.assertIsInstance(session.error, ConnectionError)

        backend.fail_with = None
        page = await session.load_more()
        self.assertEqual(_ids(page), ["r3", "r4"])
        self.assertIsNone(session.error)

    async def test_clear_error_keeps_data(self) -> None:
        backend = _FakeBackend({"q": _make_rows(3)})
        session = SearchSession(backend, page_size=2)
        await session.search("q")
        backend.fail_with = RuntimeError("boom")
        with self.assertRaises(RuntimeError):
            await session.refetch()

        session.clear_error()

        self.assertIsNone(session.error)
        self.assertEqual(_ids(session.results), ["r1", "r2"])
        self.assertEqual(session.total_results, 3)

    async def test_load_more_after_failed_search_is_noop(self) -> None:
        backend = _FakeBackend({"q": _make_rows(6), "other": _make_rows(6, prefix="o")})
        session = SearchSession(backend, page_size=2)
        await session.search("q")

        backend.fail_with = RuntimeError("boom")
        with self.assertRaises(RuntimeError):
            await session.search("other")
        backend.fail_with = None
        calls = len(backend.descriptors)

        self.assertEqual(await session.load_more(), [])
        self.assertEqual(len(backend.descriptors), calls)
        self.assertEqual(_ids(session.results), ["r1", "r2"])

    async def test_has_more_false_after_failed_search(self) -> None:
        backend = _FakeBackend({"q": _make_rows(6), "other": _make_rows(6, prefix="o")})
        session = SearchSession(backend, page_size=2)
        await session.search("q")
        self.assertTrue(session.has_more)

        backend.fail_with = RuntimeError("blip")
        with self.assertRaises(RuntimeError):
            await session.search("other")
        backend.fail_with = None
        calls = len(backend.descriptors)

        self.assertFalse(session.has_more)
        self.assertFalse(session.snapshot().has_more)
        spins = 0
        while session.has_more and spins < 10:
            await session.load_more()
            spins += 1
        self.assertEqual(spins, 0)
        self.assertEqual(len(backend.descriptors), calls)

        await session.refetch()
        self.assertTrue(session.has_more)
        self.assertEqual(_ids(session.results), ["o1", "o2"])

    async def test_empty_appended_page_ends_paging(self) -> None:
        backend = _OverreportingBackend({"q": _make_rows(3)}, reported_total=5)
        session = SearchSession(backend, page_size=2)
        await session.search("q")

        pages = 0
        while session.has_more and pages < 50:
            await session.load_more()
            pages += 1

        self.assertEqual(_ids(session.results), ["r1", "r2", "r3"])
        self.assertEqual(session.total_results, 5)
        self.assertFalse(session.has_more)
        self.assertEqual([d.start_row for d in backend.descriptors], [None, 2, 4])

        await session.refetch()
        self.assertTrue(session.has_more)

    async def test_suggest_returns_strings(self) -> None:
        session = SearchSession(_FakeBackend({}))

        self.assertEqual(await session.suggest("rep"), ["report 2024", "report template"])

    async def test_suggest_failure_is_isolated(self) -> None:
        backend = _FakeBackend({"q": _make_rows(4, file_types=["docx", "pdf", "docx", "pdf"])})
        session = SearchSession(backend, page_size=2, refiners="FileType")
        await session.search(lambda builder: builder.text("q"))
        before = (session.results, session.total_results, session.refiners)

        backend.suggest_error = RuntimeError("suggest down")
        with self.assertRaisesRegex(RuntimeError, "suggest down"):
            await session.suggest("q")

        self.assertEqual((session.results, session.total_results, session.refiners), before)
        self.assertFalse(session.loading)
        self.assertFalse(session.loading_more)
        self.assertIs(session.error, backend.suggest_error)


class TestSearchSessionConcurrency(unittest.IsolatedAsyncioTestCase):
    async def test_stale_search_response_is_discarded(self) -> None:
        backend = _FakeBackend({"alpha": _make_rows(3, prefix="a"), "beta": _make_rows(3, prefix="b")})
        alpha_gate = backend.gate("alpha")
        beta_gate = backend.gate("beta")
        session = SearchSession(backend, page_size=2)

        alpha = asyncio.create_task(session.search("alpha"))
        await asyncio.sleep(0)
        beta = asyncio.create_task(session.search("beta"))
        await asyncio.sleep(0)

        beta_gate.set()
        await beta
        self.assertEqual(_ids(session.results), ["b1", "b2"])
        self.assertTrue(session.loading)

        alpha_gate.set()
        alpha_page = await alpha

        self.assertEqual(_ids(alpha_page), ["a1", "a2"])
        self.assertEqual(_ids(session.results), ["b1", "b2"])
        self.assertFalse(session.loading)

    async def test_stale_failure_does_not_overwrite_error(self) -> None:
        backend = _FakeBackend({"alpha": _make_rows(3), "beta": _make_rows(3)})
        alpha_gate = backend.gate("alpha")
        session = SearchSession(backend, page_size=2)

        alpha = asyncio.create_task(session.search("alpha"))
        await asyncio.sleep(0)
        await session.search("beta")

        backend.fail_with = RuntimeError("late failure")
        alpha_gate.set()
        with self.assertRaises(RuntimeError):
            await alpha

        self.assertIsNone(session.error)
        self.assertEqual(len(session.results), 2)

    async def test_load_more_superseded_by_search_is_discarded(self) -> None:
        backend = _FakeBackend({"alpha": _make_rows(6, prefix="a"), "beta": _make_rows(6, prefix="b")})
        session = SearchSession(backend, page_size=2)
        await session.search("alpha")
        gate = backend.gate("alpha", 2)

        pending = asyncio.create_task(session.load_more())
        await asyncio.sleep(0)
        self.assertTrue(session.loading_more)

        await session.search("beta")
        gate.set()
        page = await pending

        self.assertEqual(_ids(page), ["a3", "a4"])
        self.assertEqual(_ids(session.results), ["b1", "b2"])
        self.assertFalse(session.loading_more)

        await session.load_more()
        self.assertEqual(_ids(session.results), ["b1", "b2", "b3", "b4"])

    async def test_load_more_during_pending_search_is_noop(self) -> None:
        backend = _FakeBackend({"alpha": _make_rows(6), "beta": _make_rows(6)})
        session = SearchSession(backend, page_size=2)
        await session.search("alpha")
        gate = backend.gate("beta")

        pending = asyncio.create_task(session.search("beta"))
        await asyncio.sleep(0)
        self.assertFalse(session.has_more)
        self.assertEqual(await session.load_more(), [])

        gate.set()
        await pending
        self.assertEqual(len(session.results), 2)
        self.assertTrue(session.has_more)

    async def test_close_stops_state_updates(self) -> None:
        backend = _FakeBackend({"q": _make_rows(3)})
        gate = backend.gate("q")
        session = SearchSession(backend, page_size=2)

        pending = asyncio.create_task(session.search("q"))
        await asyncio.sleep(0)
        session.close()
        gate.set()
        page = await pending

        self.assertEqual(len(page), 2)
        self.assertEqual(session.results, ())
        self.assertEqual(session.total_results, 0)

    async def test_set_backend_invalidates_anchor_query(self) -> None:
        first = _FakeBackend({"q": _make_rows(4)})
        second = _FakeBackend({"q": _make_rows(4, prefix="s")})
        session = SearchSession(first, page_size=2)
        await session.search("q")
        await session.apply_refiner("FileType", "docx")

        session.set_backend(second)

        self.assertIs(session.backend, second)
        self.assertIsNone(session.last_query)
        self.assertEqual(session.results, ())
        self.assertEqual(session.applied_refinements, {})
        with self.assertRaises(SessionStateError):
            await session.load_more()

        await session.search("q")
        self.assertEqual(_ids(session.results), ["s1", "s2"])

    async def test_set_backend_drops_in_flight_search(self) -> None:
        first = _FakeBackend({"q": _make_rows(4)})
        second = _FakeBackend({"q": _make_rows(4, prefix="s")})
        gate = first.gate("q")
        session = SearchSession(first, page_size=2)

        pending = asyncio.create_task(session.search("q"))
        await asyncio.sleep(0)
        self.assertTrue(session.loading)

        session.set_backend(second)
        gate.set()
        page = await pending

        self.assertEqual(_ids(page), ["r1", "r2"])
        self.assertEqual(session.results, ())
        self.assertEqual(session.total_results, 0)
        self.assertFalse(session.loading)
        self.assertFalse(session.has_more)
        self.assertIsNone(session.last_query)
        self.assertEqual(second.descriptors, [])


class TestSearchSessionObservers(unittest.IsolatedAsyncioTestCase):
    async def test_listeners_receive_snapshots(self) -> None:
        session = SearchSession(_FakeBackend({"q": _make_rows(3)}), page_size=2)
        snapshots = []
        unsubscribe = session.subscribe(snapshots.append)

        await session.search("q")

        self.assertTrue(snapshots[0].loading)
        self.assertEqual(snapshots[0].results, ())
        self.assertFalse(snapshots[-1].loading)
        self.assertEqual(_ids(snapshots[-1].results), ["r1", "r2"])
        self.assertTrue(snapshots[-1].has_more)

        unsubscribe()
        count = len(snapshots)
        await session.load_more()
        self.assertEqual(len(snapshots), count)

    async def test_failing_listener_is_isolated(self) -> None:
        session = SearchSession(_FakeBackend({"q": _make_rows(1)}))

        def broken(snapshot) -> None:
            raise RuntimeError("listener bug")

        session.subscribe(broken)
        with self.assertLogs("FacetSearch", level="WARNING") as captured:
            await session.search("q")

        self.assertEqual(len(session.results), 1)
        self.assertTrue(any("listener failed" in line for line in captured.output))

    async def test_async_context_manager_closes_session(self) -> None:
        async with SearchSession(_FakeBackend({"q": _make_rows(1)})) as session:
            await session.search("q")
        self.assertTrue(session.closed)


if __name__ == "__main__":
    unittest.main()
