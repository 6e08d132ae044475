"""One-shot interface: run a single search (or replay a URL), print a summary, exit."""

from __future__ import annotations

import asyncio

from catalog_search.contracts.search_v1 import ALL_RESOURCES
from catalog_search.core.config import config
from catalog_search.orchestrators.search.backends.http import HttpSearchBackend
from catalog_search.orchestrators.search.interface import SearchBackend
from catalog_search.orchestrators.search.orchestrator import SearchSession
from catalog_search.state.store import SearchState


def _summary(state: SearchState, location: str) -> str:
    lines = [f"term: {state.search_term!r}", f"resource: {state.resource or '-'}"]
    for resource in ALL_RESOURCES:
        result_set = state.results_for(resource)
        marker = "*" if resource == state.resource else " "
        lines.append(
            f"{marker} {resource}: {result_set.total_results} results "
            f"(page {result_set.page_index})"
        )
    lines.append(f"url: {location}")
    return "\n".join(lines)


async def run_oneshot(
    term: str, url: str | None = None, backend: SearchBackend | None = None
) -> int:
    text = (term or "").strip()
    if not text and not url:
        print("Error: search term must not be empty")
        return 2

    problems = config.validate()
    if problems and backend is None:
        for problem in problems:
            print(f"Error: {problem}")
        return 2

    session = SearchSession(backend or HttpSearchBackend())
    try:
        if url:
            session.url_did_update(url)
        else:
            session.submit_search(text)
        await session.drain()
        print(_summary(session.state, session.navigator.history.location))
        return 0
    finally:
        await session.close()


def main(term: str, url: str | None = None) -> int:
    return asyncio.run(run_oneshot(term=term, url=url))
