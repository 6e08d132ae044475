from __future__ import annotations

import json
from urllib.parse import quote

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from catalog_search.contracts.search_v1 import (
    CheckboxFilter,
    ResourceType,
    ResultSet,
    SearchType,
    TextFilter,
)
from catalog_search.core.errors import MalformedURLState
from catalog_search.orchestrators.search.navigation import (
    InMemoryHistory,
    encode_search_url,
    parse_index,
    parse_search_url,
)
from catalog_search.orchestrators.search.url_sync import UrlAction, URLSynchronizer
from catalog_search.state import store as transitions
from catalog_search.state.store import SearchStateStore, get_page_index


def _seed(session, term="customers", resource=ResourceType.TABLE, page=0, filters=None):
    results = {r: ResultSet(total_results=1) for r in ResourceType}
    results[resource] = ResultSet(page_index=page, total_results=10)
    session.store.apply(transitions.update_search_state, filters=filters or {})
    session.store.apply(transitions.search_all_success, term, resource, results)


def test_parse_full_query():
    filters = json.dumps({"table": {"schema": "core", "tag": {"gold": True}}})
    query = parse_search_url(
        f"/search?term=rev&resource=table&index=2&filters={quote(filters)}"
    )
    assert query.term == "rev"
    assert query.resource == ResourceType.TABLE
    assert query.index == 2
    assert query.filters == {
        ResourceType.TABLE: {
            "schema": TextFilter("core"),
            "tag": CheckboxFilter(frozenset({"gold"})),
        }
    }


@pytest.mark.parametrize("raw_index", ["abc", "-1", "1.5", "", "1_0", "%2B3", " "])
def test_unparsable_index_is_treated_as_absent(raw_index):
    assert parse_search_url(f"?term=rev&index={raw_index}").index is None


@pytest.mark.parametrize("raw_index", ["1_0", "-1", "\u0663"])
def test_strict_index_parse_rejects_non_plain_digits(raw_index):
    with pytest.raises(MalformedURLState):
        parse_index(raw_index)


def test_strict_index_parse_accepts_plain_digits():
    assert parse_index(" 12 ") == 12


@pytest.mark.parametrize("raw_filters", ["%7Bbad", "%5B1%5D", "42"])
def test_malformed_filters_are_treated_as_absent(raw_filters):
    query = parse_search_url(f"?term=rev&filters={raw_filters}")
    assert query.term == "rev"
    assert query.filters is None


def test_unknown_resource_is_unset():
    assert parse_search_url("?resource=widgets").resource is None


def test_encode_omits_absent_fields():
    assert encode_search_url() == "/search"
    assert encode_search_url(term="rev") == "/search?term=rev"
    assert encode_search_url(term="rev", resource=ResourceType.USER, index=0) == (
        "/search?term=rev&resource=user&index=0"
    )


@pytest.mark.asyncio
async def test_new_term_runs_full_search_from_url_without_pushing(session, backend, history):
    backend.totals = {ResourceType.USER: 3}
    filters = quote(json.dumps({"user": {"team": "growth"}}))

    session.url_did_update(f"?term=rev&resource=user&index=1&filters={filters}")
    await session.drain()

    calls = backend.calls_for(SearchType.LOAD_URL)
    assert len(calls) == 3
    by_resource = {c.resource: c for c in calls}
    assert by_resource[ResourceType.USER].page_index == 1
    assert by_resource[ResourceType.USER].filters == {"team": TextFilter("growth")}
    assert history.entries == ["/"]
    assert session.state.search_term == "rev"
    assert session.state.resource == ResourceType.USER


@pytest.mark.asyncio
async def test_resource_switch_without_filter_change_does_not_search(session, backend):
    _seed(session, term="customers", resource=ResourceType.TABLE)

    session.url_did_update("?term=customers&resource=user&index=2")
    await session.drain()

    assert backend.calls == []
    assert session.state.resource == ResourceType.USER


@pytest.mark.asyncio
async def test_resource_switch_with_new_filters_searches_that_resource(session, backend):
    _seed(session, term="customers", resource=ResourceType.TABLE)
    filters = quote(json.dumps({"dashboard": {"product": {"mode": True}}}))

    session.url_did_update(f"?term=customers&resource=dashboard&filters={filters}")
    await session.drain()

    assert len(backend.calls) == 1
    call = backend.calls[0]
    assert call.resource == ResourceType.DASHBOARD
    assert call.search_type == SearchType.FILTER
    assert call.filters == {"product": CheckboxFilter(frozenset({"mode"}))}
    assert session.state.resource == ResourceType.DASHBOARD


@pytest.mark.asyncio
async def test_new_index_paginates_active_resource(session, backend):
    _seed(session, term="customers", resource=ResourceType.TABLE, page=0)

    session.url_did_update("?term=customers&resource=table&index=3")
    await session.drain()

    assert len(backend.calls) == 1
    call = backend.calls[0]
    assert (call.resource, call.page_index, call.search_type) == (
        ResourceType.TABLE,
        3,
        SearchType.PAGINATION,
    )
    assert get_page_index(session.state) == 3


@pytest.mark.asyncio
async def test_same_state_reflected_back_is_a_noop(session, backend):
    _seed(session, term="customers", resource=ResourceType.TABLE, page=2)

    session.url_did_update("?term=customers&resource=table&index=2")
    await session.drain()

    assert backend.calls == []


_terms = st.text(alphabet="abcxyz _-&=?%", min_size=0, max_size=8)
_filters = st.fixed_dictionaries(
    {
        ResourceType.TABLE: st.fixed_dictionaries(
            {},
            optional={
                "schema": st.sampled_from([TextFilter("core"), TextFilter("a b")]),
                "tag": st.sets(st.sampled_from(["gold", "silver"]), min_size=1).map(
                    lambda s: CheckboxFilter(frozenset(s))
                ),
            },
        ),
        ResourceType.USER: st.just({}),
        ResourceType.DASHBOARD: st.just({}),
    }
)


@given(
    term=_terms,
    resource=st.sampled_from(list(ResourceType)),
    page=st.integers(min_value=0, max_value=20),
    filters=_filters,
)
@settings(max_examples=50)
@pytest.mark.property
def test_encoding_state_and_parsing_back_dispatches_nothing(term, resource, page, filters) -> None:
    store = SearchStateStore()
    store.apply(transitions.update_search_state, filters=filters)
    store.apply(
        transitions.search_all_success,
        term,
        resource,
        {resource: ResultSet(page_index=page)},
    )
    state = store.state
    sync = URLSynchronizer(store, dispatcher=None)  # type: ignore[arg-type]

    url = encode_search_url(
        term=state.search_term,
        resource=state.resource,
        index=get_page_index(state),
        filters=state.filters,
    )

    assert sync.plan(sync.parse(url)) == UrlAction.NONE


def test_history_push_truncates_forward_entries():
    history = InMemoryHistory("/")
    history.push("/a")
    history.push("/b")
    history.go_back()
    history.push("/c")
    assert history.entries == ["/", "/a", "/c"]
    history.go_back()
    history.go_forward()
    assert history.location == "/c"
