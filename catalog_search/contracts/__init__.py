"""Catalog search contract v1: shared types for filters, results, and URL state."""

from catalog_search.contracts.search_v1 import (
    ALL_RESOURCES,
    CheckboxFilter,
    FilterCategory,
    FilterSet,
    FilterType,
    FilterValue,
    ResourceType,
    ResultSet,
    SearchResponse,
    SearchType,
    TextFilter,
    URLQuery,
)

__all__ = [
    "ALL_RESOURCES",
    "CheckboxFilter",
    "FilterCategory",
    "FilterSet",
    "FilterType",
    "FilterValue",
    "ResourceType",
    "ResultSet",
    "SearchResponse",
    "SearchType",
    "TextFilter",
    "URLQuery",
]
