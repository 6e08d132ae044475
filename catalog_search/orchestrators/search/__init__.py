"""Catalog search workflows: multi-resource dispatch, type-ahead, URL sync."""

from catalog_search.orchestrators.search.dispatcher import MultiResourceSearchDispatcher
from catalog_search.orchestrators.search.inline import InlineSearchCoordinator
from catalog_search.orchestrators.search.interface import SearchBackend
from catalog_search.orchestrators.search.orchestrator import SearchSession
from catalog_search.orchestrators.search.url_sync import URLSynchronizer

__all__ = [
    "InlineSearchCoordinator",
    "MultiResourceSearchDispatcher",
    "SearchBackend",
    "SearchSession",
    "URLSynchronizer",
]
