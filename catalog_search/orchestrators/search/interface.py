"""Standard interface for the search backend used by the workflows.

The backend is an opaque remote call: one invocation per resource category,
returning one page of results. Any exception it raises is a hard failure for
that call.
"""

from abc import ABC, abstractmethod

from catalog_search.contracts.search_v1 import (
    FilterSet,
    ResourceType,
    SearchResponse,
    SearchType,
)


class SearchBackend(ABC):
    """Base class for search backends."""

    @abstractmethod
    async def search(
        self,
        resource: ResourceType,
        page_index: int,
        term: str,
        filters: FilterSet,
        search_type: SearchType,
    ) -> SearchResponse:
        """Execute a search for one resource category and return one page."""

    async def close(self) -> None:
        """Release transport resources. Default: nothing to release."""
