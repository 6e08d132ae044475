"""Browser-history abstraction and the search URL codec.

A search URL carries `term`, `resource`, `index` and `filters` (JSON of
`{resource: {category: value}}`) as query parameters; absent fields are omitted.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from urllib.parse import parse_qs, urlencode

from catalog_search.contracts.search_v1 import (
    FilterSet,
    ResourceType,
    URLQuery,
    parse_resource,
)
from catalog_search.core.errors import MalformedURLState
from catalog_search.core.logger import logger
from catalog_search.state.filters import (
    FilterStateManager,
    filters_to_json,
    has_active_filters,
)

SEARCH_PATH = "/search"


class BrowserHistory(ABC):
    """Address bar + session history of the host browser."""

    @abstractmethod
    def push(self, url: str) -> None:
        """Add a new navigable history entry."""

    @abstractmethod
    def replace(self, url: str) -> None:
        """Overwrite the current history entry."""

    @abstractmethod
    def go_back(self) -> None:
        """Navigate one entry back."""

    @property
    @abstractmethod
    def location(self) -> str:
        """Current URL (path + query string)."""


class InMemoryHistory(BrowserHistory):
    """History stack kept in memory. Used headless and in tests."""

    def __init__(self, initial: str = "/") -> None:
        self.entries: list[str] = [initial]
        self.position = 0

    def push(self, url: str) -> None:
        del self.entries[self.position + 1 :]
        self.entries.append(url)
        self.position = len(self.entries) - 1

    def replace(self, url: str) -> None:
        self.entries[self.position] = url

    def go_back(self) -> None:
        if self.position > 0:
            self.position -= 1

    def go_forward(self) -> None:
        if self.position < len(self.entries) - 1:
            self.position += 1

    @property
    def location(self) -> str:
        return self.entries[self.position]


def encode_search_url(
    term: str | None = None,
    resource: ResourceType | None = None,
    index: int | None = None,
    filters: Mapping[ResourceType, FilterSet] | None = None,
) -> str:
    params: list[tuple[str, str]] = []
    if term:
        params.append(("term", term))
    if resource is not None:
        params.append(("resource", str(resource)))
    if index is not None:
        params.append(("index", str(index)))
    if filters is not None and has_active_filters(filters):
        params.append(("filters", filters_to_json(filters)))
    query = urlencode(params)
    return f"{SEARCH_PATH}?{query}" if query else SEARCH_PATH


def _query_string(url_search: str) -> str:
    _, sep, query = url_search.partition("?")
    return query if sep else url_search


def parse_index(raw: str | None) -> int | None:
    """Strict index parse. Raises MalformedURLState on garbage or negatives."""
    if raw is None or raw == "":
        return None
    digits = raw.strip()
    # Plain ASCII digits only: no sign, no "_" separators.
    if not (digits.isascii() and digits.isdigit()):
        raise MalformedURLState("index", raw)
    return int(digits)


def parse_search_url(
    url_search: str, filter_manager: FilterStateManager | None = None
) -> URLQuery:
    """Parse a location or bare query string. Malformed fields are treated as absent."""
    manager = filter_manager or FilterStateManager()
    params = parse_qs(_query_string(url_search), keep_blank_values=True)

    def first(name: str) -> str | None:
        values = params.get(name)
        return values[0] if values else None

    try:
        index = parse_index(first("index"))
    except MalformedURLState as e:
        logger.warning("Ignoring %s", e)
        index = None

    filters = None
    raw_filters = first("filters")
    if raw_filters:
        try:
            filters = manager.filters_from_json(raw_filters)
        except MalformedURLState as e:
            logger.warning("Ignoring %s", e)

    return URLQuery(
        term=first("term") or "",
        resource=parse_resource(first("resource")),
        index=index,
        filters=filters,
    )


class SearchNavigator:
    """Writes search state into the browser history."""

    def __init__(self, history: BrowserHistory | None = None) -> None:
        self.history = history or InMemoryHistory()

    def update_search_url(
        self,
        term: str | None = None,
        resource: ResourceType | None = None,
        index: int | None = None,
        filters: Mapping[ResourceType, FilterSet] | None = None,
        replace: bool = False,
    ) -> str:
        url = encode_search_url(term=term, resource=resource, index=index, filters=filters)
        if replace:
            self.history.replace(url)
        else:
            self.history.push(url)
        logger.url_update(url, replace)
        return url

    def go_back(self) -> None:
        logger.info("No previous search term; navigating back")
        self.history.go_back()
