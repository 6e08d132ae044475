import asyncio

import pytest

from catalog_search.contracts.search_v1 import (
    FilterSet,
    ResourceType,
    SearchResponse,
    SearchType,
    TextFilter,
)
from catalog_search.core.errors import RemoteCallFailure
from catalog_search.orchestrators.search.interface import SearchBackend
from catalog_search.orchestrators.search.orchestrator import SearchSession
from catalog_search.orchestrators.search.constants import InlinePhase
from catalog_search.state import store as transitions


@pytest.mark.asyncio
async def test_keystrokes_within_window_collapse_to_one_round_trip(session, backend):
    session.inline_search("r")
    await asyncio.sleep(0.01)
    session.inline_search("re")
    await asyncio.sleep(0.01)
    session.inline_search("rev")

    await session.drain()

    inline_calls = backend.calls_for(SearchType.INLINE_SEARCH)
    assert len(inline_calls) == 2
    assert {c.term for c in inline_calls} == {"rev"}


@pytest.mark.asyncio
async def test_no_query_before_quiescence(session, backend):
    session.inline_search("rev")
    await asyncio.sleep(0.01)
    assert backend.calls == []
    assert session.state.inline_results.is_loading is True
    assert session.inline.phase == InlinePhase.DEBOUNCING
    await session.drain()


@pytest.mark.asyncio
async def test_lookahead_queries_tables_and_users_and_merges(session, backend):
    backend.totals = {ResourceType.TABLE: 2, ResourceType.USER: 1, ResourceType.DASHBOARD: 9}

    session.inline_search("rev")
    await session.drain()

    calls = backend.calls_for(SearchType.INLINE_SEARCH)
    assert sorted(c.resource for c in calls) == [ResourceType.TABLE, ResourceType.USER]
    assert all(c.page_index == 0 and c.filters == {} and c.term == "rev" for c in calls)

    inline = session.state.inline_results
    assert inline.is_loading is False
    assert inline.tables.total_results == 2
    assert inline.users.total_results == 1
    assert session.inline.phase == InlinePhase.SUGGESTED


@pytest.mark.asyncio
async def test_lookahead_failure_resets_suggestions(session, backend):
    backend.totals = {ResourceType.TABLE: 2, ResourceType.USER: 1}
    session.inline_search("rev")
    await session.drain()

    backend.failures = {ResourceType.USER}
    session.inline_search("reve")
    await session.drain()

    inline = session.state.inline_results
    assert inline.is_loading is False
    assert inline.tables.total_results == 0
    assert inline.users.total_results == 0
    assert session.inline.phase == InlinePhase.FAILED


@pytest.mark.asyncio
async def test_selection_while_loading_escalates_to_full_search(session, backend, history):
    backend.totals = {ResourceType.TABLE: 4}
    session.store.apply(
        transitions.update_search_state,
        filters={ResourceType.TABLE: {"schema": TextFilter("core")}},
    )
    session.inline_search("rev")
    assert session.state.inline_results.is_loading is True

    session.select_inline_result(ResourceType.TABLE, "rev")
    await session.drain()

    selects = backend.calls_for(SearchType.INLINE_SELECT)
    assert sorted(c.resource for c in selects) == sorted(ResourceType)
    assert all(c.filters == {} for c in selects)
    assert backend.calls_for(SearchType.INLINE_SEARCH) == []
    assert history.location == "/search?term=rev&resource=table&index=0"
    assert len(history.entries) == 2
    assert session.state.resource == ResourceType.TABLE
    assert session.state.results[ResourceType.TABLE].total_results == 4


@pytest.mark.asyncio
async def test_selection_after_loading_promotes_without_remote_call(session, backend, history):
    backend.totals = {ResourceType.TABLE: 2, ResourceType.USER: 3}
    session.inline_search("rev")
    await session.drain()
    backend.calls.clear()

    session.select_inline_result(ResourceType.USER, "rev", update_url=False)
    await session.drain()

    assert backend.calls == []
    assert history.entries == ["/"]
    state = session.state
    assert state.search_term == "rev"
    assert state.resource == ResourceType.USER
    assert state.results[ResourceType.USER].total_results == 3
    assert state.results[ResourceType.TABLE].total_results == 2


@pytest.mark.asyncio
async def test_promotion_pushes_url_when_requested(session, backend, history):
    session.inline_search("rev")
    await session.drain()

    session.select_inline_result(ResourceType.TABLE, "rev", update_url=True)
    await session.drain()

    assert history.location == "/search?term=rev&resource=table&index=0"


@pytest.mark.asyncio
async def test_clear_cancels_pending_debounce(session, backend):
    session.inline_search("rev")
    session.inline.clear()
    await session.drain()

    assert backend.calls == []
    assert session.state.inline_results.is_loading is False
    assert session.inline.phase == InlinePhase.IDLE


@pytest.mark.asyncio
async def test_new_keystroke_discards_in_flight_lookahead_for_older_term(session, backend):
    backend.totals = {ResourceType.TABLE: 2}
    backend.delays = {"re": 0.1, "rev": 0.2}

    session.inline_search("re")
    await asyncio.sleep(0.06)  # debounce elapsed, "re" lookahead in flight
    session.inline_search("rev")
    await asyncio.sleep(0.1)  # "re" would have resolved by now

    inline = session.state.inline_results
    assert inline.is_loading is True
    assert inline.tables.total_results == 0

    session.select_inline_result(ResourceType.TABLE, "rev")
    await session.drain()

    assert len(backend.calls_for(SearchType.INLINE_SELECT)) == 3
    state = session.state
    assert state.search_term == "rev"
    assert [r["key"] for r in state.results[ResourceType.TABLE].results] == [
        "table:rev:0",
        "table:rev:1",
    ]


class _SlowTablesBackend(SearchBackend):
    """Tables never answer; users fail straight away."""

    def __init__(self) -> None:
        self.tables_cancelled = False

    async def search(
        self,
        resource: ResourceType,
        page_index: int,
        term: str,
        filters: FilterSet,
        search_type: SearchType,
    ) -> SearchResponse:
        if resource == ResourceType.USER:
            raise RemoteCallFailure(str(resource), "backend unavailable")
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.tables_cancelled = True
            raise
        return SearchResponse(resource=resource)


@pytest.mark.asyncio
async def test_lookahead_failure_cancels_sibling_query():
    backend = _SlowTablesBackend()
    session = SearchSession(backend, debounce_ms=0)

    ok = await session.inline.lookahead("rev")
    await asyncio.sleep(0.01)

    assert ok is False
    assert backend.tables_cancelled is True
    await session.close()
