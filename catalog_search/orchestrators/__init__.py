"""Orchestrators: asynchronous search workflows."""

from catalog_search.orchestrators.search import (
    SearchBackend,
    SearchSession,
)

__all__ = [
    "SearchBackend",
    "SearchSession",
]
