"""Search state: filter logic, immutable snapshots, and the state store."""

from catalog_search.state.filters import FilterStateManager
from catalog_search.state.store import (
    InlineResultsState,
    SearchState,
    SearchStateStore,
    get_page_index,
)

__all__ = [
    "FilterStateManager",
    "InlineResultsState",
    "SearchState",
    "SearchStateStore",
    "get_page_index",
]
