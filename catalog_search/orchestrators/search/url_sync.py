"""URL synchronizer: turns navigation events (back/forward, pasted links) into workflows.

Decision tree, first matching branch wins:
  a. new term            -> full search from the URL (no URL re-push)
  b. new resource        -> switch resource; re-search it if its filters changed
  c. new page index      -> paginate the active resource
  d. otherwise           -> nothing (state reflected back into the URL)

Known hazard: the branch is chosen from the snapshot read when the navigation
event is handled. A store-driven workflow still in flight can write afterwards,
so URL-driven and store-driven updates may act on overlapping stale snapshots
of resource/pagination state.
"""

from enum import StrEnum

from catalog_search.contracts.search_v1 import SearchType, URLQuery
from catalog_search.core.logger import logger
from catalog_search.orchestrators.search.dispatcher import MultiResourceSearchDispatcher
from catalog_search.orchestrators.search.navigation import parse_search_url
from catalog_search.state import store as transitions
from catalog_search.state.filters import FilterStateManager
from catalog_search.state.store import SearchStateStore, get_page_index


class UrlAction(StrEnum):
    """Which branch of the decision tree a navigation event took."""

    LOAD_TERM = "load_term"
    SWITCH_RESOURCE = "switch_resource"
    APPLY_FILTERS = "apply_filters"
    PAGINATE = "paginate"
    NONE = "none"


class URLSynchronizer:
    def __init__(
        self,
        store: SearchStateStore,
        dispatcher: MultiResourceSearchDispatcher,
        filter_manager: FilterStateManager | None = None,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._filters = filter_manager or FilterStateManager()

    def parse(self, url_search: str) -> URLQuery:
        return parse_search_url(url_search, self._filters)

    def plan(self, query: URLQuery) -> UrlAction:
        """Pick the branch for `query` against the current snapshot, without side effects."""
        state = self._store.state
        if query.term and query.term != state.search_term:
            return UrlAction.LOAD_TERM
        if query.resource is not None and query.resource != state.resource:
            parsed = (query.filters or {}).get(query.resource)
            if parsed is not None and parsed != state.filters_for(query.resource):
                return UrlAction.APPLY_FILTERS
            return UrlAction.SWITCH_RESOURCE
        if query.index is not None and query.index != get_page_index(state):
            return UrlAction.PAGINATE
        return UrlAction.NONE

    async def url_did_update(self, url_search: str) -> UrlAction:
        query = self.parse(url_search)
        action = self.plan(query)
        logger.debug("URL %r -> %s", url_search, action)
        state = self._store.state

        if action == UrlAction.LOAD_TERM:
            if query.resource is not None and query.filters is not None:
                merged = dict(state.filters)
                merged[query.resource] = query.filters.get(query.resource, {})
                self._store.apply(transitions.update_search_state, filters=merged)
            await self._dispatcher.search_all(
                SearchType.LOAD_URL,
                query.term,
                query.resource,
                query.index if query.index is not None else 0,
                use_existing_filters=True,
                update_url=False,
            )
        elif action == UrlAction.SWITCH_RESOURCE:
            self._store.apply(transitions.update_search_state, resource=query.resource)
        elif action == UrlAction.APPLY_FILTERS:
            resource = query.resource
            merged = dict(state.filters)
            merged[resource] = query.filters[resource]
            self._store.apply(
                transitions.update_search_state, filters=merged, resource=resource
            )
            await self._dispatcher.search_resource(
                SearchType.FILTER,
                query.term or state.search_term,
                resource,
                query.index if query.index is not None else 0,
            )
        elif action == UrlAction.PAGINATE:
            if state.resource is None:
                logger.debug("Ignoring URL index %s with no active resource", query.index)
                return UrlAction.NONE
            await self._dispatcher.search_resource(
                SearchType.PAGINATION,
                state.search_term,
                state.resource,
                query.index,
            )
        return action
