"""Search session: the intent entry points the UI dispatches into.

Wires one state store, one backend and one browser history into the
dispatcher, the type-ahead coordinator and the URL synchronizer, and applies
the cancellation policy of each intent family:

  take-latest  keystroke debounce, inline lookahead, submit_search
  take-every   submit_search_resource, url_did_update, select_inline_result,
               update_search_state, load_previous_search
"""

import asyncio
from collections.abc import Mapping
from typing import Any

from catalog_search.contracts.search_v1 import (
    FilterSet,
    ResourceType,
    SearchType,
)
from catalog_search.core.logger import logger
from catalog_search.orchestrators.search.constants import IntentKey
from catalog_search.orchestrators.search.dispatcher import MultiResourceSearchDispatcher
from catalog_search.orchestrators.search.inline import InlineSearchCoordinator
from catalog_search.orchestrators.search.interface import SearchBackend
from catalog_search.orchestrators.search.navigation import (
    BrowserHistory,
    SearchNavigator,
)
from catalog_search.orchestrators.search.scheduler import IntentScheduler
from catalog_search.orchestrators.search.url_sync import URLSynchronizer
from catalog_search.state import store as transitions
from catalog_search.state.filters import FilterStateManager
from catalog_search.state.store import SearchState, SearchStateStore, get_page_index


class SearchSession:
    """One user's search experience, from application start to teardown."""

    def __init__(
        self,
        backend: SearchBackend,
        history: BrowserHistory | None = None,
        filter_manager: FilterStateManager | None = None,
        debounce_ms: int | None = None,
        enabled: list[ResourceType] | None = None,
    ):
        self.store = SearchStateStore()
        self.filters = filter_manager or FilterStateManager()
        self.navigator = SearchNavigator(history)
        self.scheduler = IntentScheduler()
        self._backend = backend
        self.dispatcher = MultiResourceSearchDispatcher(
            self.store, backend, self.navigator, enabled=enabled
        )
        self.inline = InlineSearchCoordinator(
            self.store,
            backend,
            self.dispatcher,
            self.navigator,
            self.scheduler,
            debounce_ms=debounce_ms,
        )
        self.url_sync = URLSynchronizer(self.store, self.dispatcher, self.filters)

    @property
    def state(self) -> SearchState:
        return self.store.state

    # ------------------------------------------------------------------
    # Full search
    # ------------------------------------------------------------------

    def submit_search(self, term: str, use_filters: bool = False) -> asyncio.Task:
        """New search term from the search bar. A newer submission cancels this one."""
        search_type = SearchType.SUBMIT_TERM if term else SearchType.CLEAR_TERM
        return self.scheduler.take_latest(
            IntentKey.SUBMIT_SEARCH,
            lambda: self.dispatcher.search_all(
                search_type, term, None, 0, use_existing_filters=use_filters
            ),
        )

    # ------------------------------------------------------------------
    # Single-resource search
    # ------------------------------------------------------------------

    def submit_search_resource(
        self,
        page_index: int,
        search_type: SearchType,
        term: str | None = None,
        resource: ResourceType | None = None,
        resource_filters: FilterSet | None = None,
        update_url: bool = False,
    ) -> asyncio.Task:
        """Pagination or filter apply within the current search."""
        return self.scheduler.take_every(
            IntentKey.SUBMIT_SEARCH_RESOURCE,
            lambda: self._submit_search_resource(
                page_index, search_type, term, resource, resource_filters, update_url
            ),
        )

    async def _submit_search_resource(
        self,
        page_index: int,
        search_type: SearchType,
        term: str | None,
        resource: ResourceType | None,
        resource_filters: FilterSet | None,
        update_url: bool,
    ) -> bool:
        state = self.store.state
        search_term = term if term is not None else state.search_term
        target = resource or state.resource or ResourceType.TABLE
        filters = dict(state.filters)
        if resource_filters is not None:
            filters[target] = dict(resource_filters)
            self.store.apply(transitions.update_search_state, filters=filters)

        if update_url:
            self.navigator.update_search_url(
                term=search_term, resource=target, index=page_index, filters=filters
            )
        return await self.dispatcher.search_resource(
            search_type, search_term, target, page_index
        )

    # ------------------------------------------------------------------
    # Filters and resource pointer
    # ------------------------------------------------------------------

    def update_filter_by_category(self, category_id: str, value: Any) -> SearchState:
        """Set one filter category of the active resource. Does not search."""
        state = self.store.state
        resource = state.resource or ResourceType.TABLE
        updated = self.filters.update_filter_by_category(
            state.filters, resource, category_id, value
        )
        return self.store.apply(transitions.update_search_state, filters=updated)

    def clear_filters(self, all_resources: bool = False) -> SearchState:
        """Drop the active resource's filters, or every resource's. Does not search."""
        state = self.store.state
        if all_resources:
            cleared = self.filters.clear_all_filters()
        else:
            cleared = self.filters.clear_resource_filters(
                state.filters, state.resource or ResourceType.TABLE
            )
        return self.store.apply(transitions.update_search_state, filters=cleared)

    def apply_filters(self) -> asyncio.Task:
        """Search the active resource with its current filters, from page 0."""
        state = self.store.state
        return self.submit_search_resource(
            0,
            SearchType.FILTER,
            resource=state.resource or ResourceType.TABLE,
            update_url=True,
        )

    def update_search_state(
        self,
        filters: Mapping[ResourceType, FilterSet] | None = None,
        resource: ResourceType | None = None,
        update_url: bool = False,
    ) -> asyncio.Task:
        return self.scheduler.take_every(
            IntentKey.UPDATE_SEARCH_STATE,
            lambda: self._update_search_state(filters, resource, update_url),
        )

    async def _update_search_state(
        self,
        filters: Mapping[ResourceType, FilterSet] | None,
        resource: ResourceType | None,
        update_url: bool,
    ) -> None:
        state = self.store.apply(
            transitions.update_search_state, filters=filters, resource=resource
        )
        if update_url:
            self.navigator.update_search_url(
                term=state.search_term,
                resource=state.resource,
                index=get_page_index(state, resource),
                filters=state.filters,
            )

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def url_did_update(self, url_search: str) -> asyncio.Task:
        return self.scheduler.take_every(
            IntentKey.URL_DID_UPDATE, lambda: self.url_sync.url_did_update(url_search)
        )

    def load_previous_search(self) -> asyncio.Task:
        return self.scheduler.take_every(
            IntentKey.LOAD_PREVIOUS_SEARCH, self._load_previous_search
        )

    async def _load_previous_search(self) -> None:
        state = self.store.state
        if state.search_term == "":
            # Nothing to replay: leave the search page instead of querying.
            self.navigator.go_back()
            return
        self.navigator.update_search_url(
            term=state.search_term,
            resource=state.resource,
            index=get_page_index(state),
            filters=state.filters,
        )

    # ------------------------------------------------------------------
    # Type-ahead
    # ------------------------------------------------------------------

    def inline_search(self, term: str) -> asyncio.Task:
        return self.inline.on_keystroke(term)

    def select_inline_result(
        self, resource: ResourceType, term: str, update_url: bool = False
    ) -> asyncio.Task:
        return self.scheduler.take_every(
            IntentKey.INLINE_SELECT,
            lambda: self.inline.select_result(resource, term, update_url),
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def drain(self) -> None:
        """Wait for every in-flight workflow to settle."""
        await self.scheduler.drain()

    async def close(self) -> None:
        await self.scheduler.close()
        await self._backend.close()
        logger.debug("Search session closed")
