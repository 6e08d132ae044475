from catalog_search.orchestrators.search.backends.http import HttpSearchBackend

__all__ = [
    "HttpSearchBackend",
]
