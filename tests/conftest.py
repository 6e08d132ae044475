import asyncio
import os
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass

# Keep the JSON-lines workflow log out of the project tree during tests.
os.environ.setdefault("CATALOG_SEARCH_LOGS_DIR", tempfile.mkdtemp(prefix="catalog-search-logs-"))

import pytest

from catalog_search.contracts.search_v1 import (
    FilterSet,
    ResourceType,
    SearchResponse,
    SearchType,
)
from catalog_search.core.errors import RemoteCallFailure
from catalog_search.orchestrators.search.interface import SearchBackend
from catalog_search.orchestrators.search.navigation import InMemoryHistory
from catalog_search.orchestrators.search.orchestrator import SearchSession


@dataclass(frozen=True)
class SearchCall:
    resource: ResourceType
    page_index: int
    term: str
    filters: FilterSet
    search_type: SearchType


class FakeBackend(SearchBackend):
    """Scriptable backend: per-resource totals and failures, per-term delays."""

    def __init__(self) -> None:
        self.calls: list[SearchCall] = []
        self.totals: dict[ResourceType, int] = {}
        self.failures: set[ResourceType] = set()
        self.delays: dict[str, float] = {}
        self.closed = False

    async def search(
        self,
        resource: ResourceType,
        page_index: int,
        term: str,
        filters: FilterSet,
        search_type: SearchType,
    ) -> SearchResponse:
        self.calls.append(SearchCall(resource, page_index, term, dict(filters), search_type))
        delay = self.delays.get(term, 0.0)
        if delay:
            await asyncio.sleep(delay)
        if resource in self.failures:
            raise RemoteCallFailure(str(resource), "backend unavailable")
        total = self.totals.get(resource, 0)
        return SearchResponse(
            resource=resource,
            page_index=page_index,
            results=[{"key": f"{resource}:{term}:{i}"} for i in range(min(total, 3))],
            total_count=total,
        )

    def calls_for(self, search_type: SearchType) -> list[SearchCall]:
        return [c for c in self.calls if c.search_type == search_type]

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def history() -> InMemoryHistory:
    return InMemoryHistory("/")


@pytest.fixture
def session(backend: FakeBackend, history: InMemoryHistory) -> SearchSession:
    return SearchSession(backend, history=history, debounce_ms=40)


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration/e2e tests that require a live search API.",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers", "integration: requires runtime services or user configuration"
    )
    config.addinivalue_line("markers", "e2e: end-to-end runtime tests")
    config.addinivalue_line("markers", "property: property-based deterministic tests")


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: Sequence[pytest.Item],
) -> None:
    run_integration = config.getoption("--run-integration")
    skip_integration = pytest.mark.skip(
        reason="integration/e2e is opt-in; rerun with --run-integration"
    )

    for item in items:
        if "tests/e2e/" in item.nodeid:
            item.add_marker("integration")
            item.add_marker("e2e")
        if (
            item.get_closest_marker("integration") or item.get_closest_marker("e2e")
        ) and not run_integration:
            item.add_marker(skip_integration)
