"""Type-ahead coordinator: debounced lookahead for tables and users, plus selection.

Phases: idle -> debouncing -> querying -> (suggested | failed). Each keystroke
restarts the debounce; only quiescence issues the lookahead round-trip.
"""

import asyncio

from catalog_search.contracts.search_v1 import (
    EMPTY_RESULT_SET,
    ResourceType,
    ResultSet,
    SearchType,
)
from catalog_search.core.config import config
from catalog_search.core.logger import logger
from catalog_search.orchestrators.search.constants import (
    INLINE_RESOURCES,
    InlinePhase,
    IntentKey,
)
from catalog_search.orchestrators.search.dispatcher import MultiResourceSearchDispatcher
from catalog_search.orchestrators.search.interface import SearchBackend
from catalog_search.orchestrators.search.navigation import SearchNavigator
from catalog_search.orchestrators.search.scheduler import IntentScheduler
from catalog_search.state import store as transitions
from catalog_search.state.store import SearchStateStore


class InlineSearchCoordinator:
    def __init__(
        self,
        store: SearchStateStore,
        backend: SearchBackend,
        dispatcher: MultiResourceSearchDispatcher,
        navigator: SearchNavigator,
        scheduler: IntentScheduler,
        debounce_ms: int | None = None,
    ) -> None:
        self._store = store
        self._backend = backend
        self._dispatcher = dispatcher
        self._navigator = navigator
        self._scheduler = scheduler
        ms = debounce_ms if debounce_ms is not None else config.inline_debounce_ms
        self._debounce_seconds = max(0, ms) / 1000.0
        self.phase = InlinePhase.IDLE
        self.term = ""

    def on_keystroke(self, term: str) -> asyncio.Task:
        """Restart the debounce window for `term`."""
        self.term = term
        self.phase = InlinePhase.DEBOUNCING
        # Suggestions for an older term must not land while this one is pending.
        self._scheduler.cancel(IntentKey.INLINE_SEARCH)
        self._store.apply(transitions.inline_search_started)
        return self._scheduler.debounce(
            IntentKey.INLINE_DEBOUNCE,
            self._debounce_seconds,
            lambda: self._start_lookahead(term),
        )

    async def _start_lookahead(self, term: str) -> None:
        # A newer quiescent term supersedes an in-flight lookahead.
        await self._scheduler.take_latest(
            IntentKey.INLINE_SEARCH, lambda: self.lookahead(term)
        )

    async def lookahead(self, term: str) -> bool:
        """Query tables and users for suggestions. Returns False on failure."""
        self.phase = InlinePhase.QUERYING
        logger.workflow_start("inline_search", str(SearchType.INLINE_SEARCH), term=term)
        tasks = [
            asyncio.ensure_future(
                self._backend.search(r, 0, term, {}, SearchType.INLINE_SEARCH)
            )
            for r in INLINE_RESOURCES
        ]
        try:
            tables, users = await asyncio.gather(*tasks)
        except asyncio.CancelledError:
            logger.workflow_result(False, error_reason="superseded")
            raise
        except Exception as e:
            for task in tasks:
                task.cancel()
            logger.warning("Inline search failed for %r: %s", term, e)
            self._store.apply(transitions.inline_search_failure)
            self.phase = InlinePhase.FAILED
            logger.workflow_result(False, error_reason=str(e))
            return False

        self._store.apply(
            transitions.inline_search_success,
            tables.to_result_set() if tables is not None else EMPTY_RESULT_SET,
            users.to_result_set() if users is not None else EMPTY_RESULT_SET,
        )
        self.phase = InlinePhase.SUGGESTED
        logger.workflow_result(True)
        return True

    async def select_result(
        self, resource: ResourceType, term: str, update_url: bool = False
    ) -> None:
        """Handle a click on a suggestion for `resource`."""
        state = self._store.state
        self._scheduler.cancel(IntentKey.INLINE_DEBOUNCE)
        if state.inline_results.is_loading:
            # Selection raced ahead of the lookahead: run a real full search.
            self._scheduler.cancel(IntentKey.INLINE_SEARCH)
            self._navigator.update_search_url(term=term, resource=resource, index=0)
            await self._dispatcher.search_all(
                SearchType.INLINE_SELECT,
                term,
                resource,
                0,
                use_existing_filters=False,
                update_url=False,
            )
        else:
            if update_url:
                # Promotion starts from empty filters, so none go into the URL.
                self._navigator.update_search_url(term=term, resource=resource, index=0)
            self._store.apply(
                transitions.update_from_inline_result,
                term,
                resource,
                state.inline_results.tables,
                state.inline_results.users,
            )
        self.phase = InlinePhase.IDLE

    def clear(self) -> None:
        """Drop pending suggestions, e.g. when the search box is emptied."""
        self._scheduler.cancel(IntentKey.INLINE_DEBOUNCE)
        self._scheduler.cancel(IntentKey.INLINE_SEARCH)
        self._store.apply(transitions.inline_search_failure)
        self.phase = InlinePhase.IDLE
        self.term = ""

    @property
    def results(self) -> tuple[ResultSet, ResultSet]:
        inline = self._store.state.inline_results
        return inline.tables, inline.users
