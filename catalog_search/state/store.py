"""Search state: immutable snapshots, pure transitions, and the store that holds them.

Every transition takes a SearchState and returns a new one. The store only
swaps the current snapshot, so workflows that sampled an older snapshot keep
acting on that copy (snapshot semantics).
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from catalog_search.contracts.search_v1 import (
    ALL_RESOURCES,
    EMPTY_RESULT_SET,
    FilterSet,
    ResourceType,
    ResultSet,
)
from catalog_search.state.filters import initial_filter_state

logger = logging.getLogger(__name__)


def _empty_results() -> dict[ResourceType, ResultSet]:
    return {resource: EMPTY_RESULT_SET for resource in ALL_RESOURCES}


def _zero_pagination() -> dict[ResourceType, int]:
    return {resource: 0 for resource in ALL_RESOURCES}


@dataclass(frozen=True)
class InlineResultsState:
    """Type-ahead suggestions for the current keystroke session."""

    tables: ResultSet = EMPTY_RESULT_SET
    users: ResultSet = EMPTY_RESULT_SET
    is_loading: bool = False


@dataclass(frozen=True)
class SearchState:
    search_term: str = ""
    resource: ResourceType | None = None
    filters: Mapping[ResourceType, FilterSet] = field(default_factory=initial_filter_state)
    pagination: Mapping[ResourceType, int] = field(default_factory=_zero_pagination)
    results: Mapping[ResourceType, ResultSet] = field(default_factory=_empty_results)
    is_loading: bool = False
    inline_results: InlineResultsState = field(default_factory=InlineResultsState)

    def filters_for(self, resource: ResourceType | None) -> FilterSet:
        if resource is None:
            return {}
        return dict(self.filters.get(resource, {}))

    def results_for(self, resource: ResourceType) -> ResultSet:
        return self.results.get(resource, EMPTY_RESULT_SET)


def get_page_index(state: SearchState, resource: ResourceType | None = None) -> int:
    """Pagination index of `resource`, defaulting to the active resource (0 if unset)."""
    target = resource or state.resource
    if target is None:
        return 0
    return state.pagination.get(target, 0)


def initial_state() -> SearchState:
    return SearchState()


# ---------------------------------------------------------------------------
# Full (multi-resource) search
# ---------------------------------------------------------------------------


def search_all_request(state: SearchState, term: str) -> SearchState:
    return replace(
        state,
        search_term=term,
        is_loading=True,
        inline_results=InlineResultsState(),
    )


def search_all_success(
    state: SearchState,
    term: str,
    resource: ResourceType,
    results: Mapping[ResourceType, ResultSet],
) -> SearchState:
    merged = {r: results.get(r, EMPTY_RESULT_SET) for r in ALL_RESOURCES}
    return replace(
        state,
        search_term=term,
        resource=resource,
        results=merged,
        pagination={r: rs.page_index for r, rs in merged.items()},
        is_loading=False,
    )


def search_all_failure(state: SearchState) -> SearchState:
    """Reset to initial results, keeping the term, filters and inline suggestions."""
    return replace(
        initial_state(),
        search_term=state.search_term,
        filters=state.filters,
        inline_results=state.inline_results,
    )


# ---------------------------------------------------------------------------
# Single-resource search
# ---------------------------------------------------------------------------


def search_resource_request(
    state: SearchState, term: str, resource: ResourceType
) -> SearchState:
    return replace(state, search_term=term, resource=resource, is_loading=True)


def search_resource_success(
    state: SearchState, resource: ResourceType, result_set: ResultSet
) -> SearchState:
    return replace(
        state,
        results={**state.results, resource: result_set},
        pagination={**state.pagination, resource: result_set.page_index},
        is_loading=False,
    )


def search_resource_failure(state: SearchState, resource: ResourceType) -> SearchState:
    return replace(
        state,
        results={**state.results, resource: EMPTY_RESULT_SET},
        pagination={**state.pagination, resource: 0},
        is_loading=False,
    )


# ---------------------------------------------------------------------------
# Direct updates
# ---------------------------------------------------------------------------


def update_search_state(
    state: SearchState,
    *,
    filters: Mapping[ResourceType, FilterSet] | None = None,
    resource: ResourceType | None = None,
) -> SearchState:
    changes: dict[str, Any] = {}
    if filters is not None:
        changes["filters"] = {r: dict(filters.get(r, {})) for r in ALL_RESOURCES}
    if resource is not None:
        changes["resource"] = resource
    return replace(state, **changes) if changes else state


def reset_filters(state: SearchState) -> SearchState:
    return replace(state, filters=initial_filter_state())


# ---------------------------------------------------------------------------
# Inline search
# ---------------------------------------------------------------------------


def inline_search_started(state: SearchState) -> SearchState:
    return replace(
        state, inline_results=replace(state.inline_results, is_loading=True)
    )


def inline_search_success(
    state: SearchState, tables: ResultSet, users: ResultSet
) -> SearchState:
    return replace(
        state,
        inline_results=InlineResultsState(tables=tables, users=users, is_loading=False),
    )


def inline_search_failure(state: SearchState) -> SearchState:
    return replace(state, inline_results=InlineResultsState())


def update_from_inline_result(
    state: SearchState,
    term: str,
    resource: ResourceType,
    tables: ResultSet,
    users: ResultSet,
) -> SearchState:
    """Promote fetched suggestions into the main results; filters start empty."""
    results = {
        ResourceType.TABLE: tables,
        ResourceType.USER: users,
        ResourceType.DASHBOARD: EMPTY_RESULT_SET,
    }
    return replace(
        initial_state(),
        search_term=term,
        resource=resource,
        results=results,
        pagination={r: rs.page_index for r, rs in results.items()},
    )


Transition = Callable[..., SearchState]
Listener = Callable[[SearchState, SearchState], None]


class SearchStateStore:
    """Single owner of the current SearchState snapshot."""

    def __init__(self, state: SearchState | None = None) -> None:
        self._state = state or initial_state()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> SearchState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register `listener(old, new)`; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def apply(self, transition: Transition, *args: Any, **kwargs: Any) -> SearchState:
        """Run a transition against the current snapshot and swap in the result."""
        old = self._state
        new = transition(old, *args, **kwargs)
        if new is old:
            return old
        self._state = new
        logger.debug(
            "State %s: term=%r resource=%s loading=%s",
            getattr(transition, "__name__", "transition"),
            new.search_term,
            new.resource,
            new.is_loading,
        )
        for listener in list(self._listeners):
            listener(old, new)
        return new

    def reset(self) -> SearchState:
        return self.apply(lambda _state: initial_state())
