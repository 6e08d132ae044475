"""Multi-resource search dispatcher: fans out one query per resource category.

search_all queries tables, users and dashboards in parallel and publishes
only when all three succeed. search_resource refines a single category
(pagination, filter apply) and touches only that category's slice.
"""

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from catalog_search.contracts.search_v1 import (
    ALL_RESOURCES,
    EMPTY_RESULT_SET,
    FilterSet,
    ResourceType,
    ResultSet,
    SearchResponse,
    SearchType,
)
from catalog_search.core.config import config
from catalog_search.core.logger import logger
from catalog_search.orchestrators.search.constants import RESOURCE_PRIORITY
from catalog_search.orchestrators.search.interface import SearchBackend
from catalog_search.orchestrators.search.navigation import SearchNavigator
from catalog_search.state import store as transitions
from catalog_search.state.store import SearchStateStore, get_page_index


@dataclass
class SearchAllResult:
    """Outcome of one search_all run. `resource` is the resolved category."""

    success: bool
    term: str = ""
    resource: ResourceType | None = None
    page_index: int = 0
    results: dict[ResourceType, ResultSet] = field(default_factory=dict)
    error: str | None = None


def auto_select_resource(
    results: Mapping[ResourceType, ResultSet],
    enabled: Sequence[ResourceType] | None = None,
) -> ResourceType:
    """First category in fixed precedence with nonempty results; table by default."""
    allowed = enabled if enabled is not None else enabled_resources()
    for resource in RESOURCE_PRIORITY:
        if resource not in allowed:
            continue
        if results.get(resource, EMPTY_RESULT_SET).total_results > 0:
            return resource
    return ResourceType.TABLE


def enabled_resources() -> list[ResourceType]:
    enabled = [ResourceType.TABLE]
    if config.index_users_enabled:
        enabled.append(ResourceType.USER)
    if config.index_dashboards_enabled:
        enabled.append(ResourceType.DASHBOARD)
    return enabled


def _to_result_set(response: SearchResponse | None, page_index: int) -> ResultSet:
    if response is None:
        return EMPTY_RESULT_SET
    # The requested page is authoritative for pagination state.
    return response.to_result_set().model_copy(update={"page_index": page_index})


class MultiResourceSearchDispatcher:
    """Issues backend searches and publishes their outcome into the state store."""

    def __init__(
        self,
        store: SearchStateStore,
        backend: SearchBackend,
        navigator: SearchNavigator,
        enabled: Sequence[ResourceType] | None = None,
    ) -> None:
        self._store = store
        self._backend = backend
        self._navigator = navigator
        self._enabled = list(enabled) if enabled is not None else None
        self._has_searched = False

    @property
    def has_searched(self) -> bool:
        return self._has_searched

    async def search_all(
        self,
        search_type: SearchType,
        term: str,
        resource: ResourceType | None = None,
        page_index: int = 0,
        use_existing_filters: bool = True,
        update_url: bool = True,
    ) -> SearchAllResult:
        logger.workflow_start(
            "search_all",
            str(search_type),
            term=term,
            resource=resource,
            page_index=page_index,
        )
        if not use_existing_filters:
            self._store.apply(transitions.reset_filters)

        state = self._store.state
        filters: dict[ResourceType, FilterSet] = {
            r: state.filters_for(r) for r in ALL_RESOURCES
        }
        self._store.apply(transitions.search_all_request, term)

        indices = {r: (page_index if r == resource else 0) for r in ALL_RESOURCES}
        tasks = [
            asyncio.ensure_future(
                self._backend.search(r, indices[r], term, filters[r], search_type)
            )
            for r in ALL_RESOURCES
        ]
        try:
            responses = await asyncio.gather(*tasks)
        except asyncio.CancelledError:
            logger.workflow_result(False, error_reason="superseded")
            raise
        except Exception as e:
            for task in tasks:
                task.cancel()
            logger.warning("search_all failed for %r: %s", term, e)
            self._store.apply(transitions.search_all_failure)
            logger.workflow_result(False, error_reason=str(e))
            return SearchAllResult(success=False, term=term, error=str(e))

        results = {
            r: _to_result_set(resp, indices[r])
            for r, resp in zip(ALL_RESOURCES, responses)
        }
        if resource is None:
            resource = auto_select_resource(results, self._enabled)
            logger.debug("Auto-selected resource %s for %r", resource, term)

        new_state = self._store.apply(
            transitions.search_all_success, term, resource, results
        )
        index = get_page_index(new_state, resource)

        if update_url:
            self._navigator.update_search_url(
                term=term,
                resource=resource,
                index=index,
                filters=filters,
                replace=not self._has_searched,
            )
        self._has_searched = True
        logger.workflow_result(True)
        return SearchAllResult(
            success=True,
            term=term,
            resource=resource,
            page_index=index,
            results=results,
        )

    async def search_resource(
        self,
        search_type: SearchType,
        term: str,
        resource: ResourceType,
        page_index: int = 0,
    ) -> bool:
        logger.workflow_start(
            "search_resource",
            str(search_type),
            term=term,
            resource=resource,
            page_index=page_index,
        )
        state = self._store.apply(transitions.search_resource_request, term, resource)
        filters = state.filters_for(resource)
        try:
            response = await self._backend.search(
                resource, page_index, term, filters, search_type
            )
        except asyncio.CancelledError:
            logger.workflow_result(False, error_reason="cancelled")
            raise
        except Exception as e:
            logger.warning("search_resource(%s) failed for %r: %s", resource, term, e)
            self._store.apply(transitions.search_resource_failure, resource)
            logger.workflow_result(False, error_reason=str(e))
            return False

        self._store.apply(
            transitions.search_resource_success,
            resource,
            _to_result_set(response, page_index),
        )
        logger.workflow_result(True)
        return True
