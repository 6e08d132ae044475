from collections.abc import AsyncIterator

import pytest_asyncio

from catalog_search.orchestrators.search.backends.http import HttpSearchBackend
from catalog_search.orchestrators.search.orchestrator import SearchSession


@pytest_asyncio.fixture
async def live_session() -> AsyncIterator[SearchSession]:
    """Session against the configured search API, for e2e suites only."""
    instance = SearchSession(HttpSearchBackend())
    try:
        yield instance
    finally:
        await instance.close()
