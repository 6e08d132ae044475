"""HTTP search backend (metadata search API). Returns SearchResponse."""

import json
import time
from typing import Any

import httpx
from pydantic import ValidationError

from catalog_search.contracts.search_v1 import (
    FilterSet,
    ResourceType,
    SearchResponse,
    SearchType,
)
from catalog_search.core.config import config
from catalog_search.core.errors import RemoteCallFailure
from catalog_search.core.logger import logger
from catalog_search.orchestrators.search.interface import SearchBackend
from catalog_search.state.filters import filter_set_to_json

# Legacy API wraps each page under the plural category key.
_PLURAL_KEYS: dict[ResourceType, str] = {
    ResourceType.TABLE: "tables",
    ResourceType.USER: "users",
    ResourceType.DASHBOARD: "dashboards",
}


def _parse_payload(
    data: Any, resource: ResourceType, page_index: int
) -> SearchResponse:
    if not isinstance(data, dict):
        raise RemoteCallFailure(str(resource), "response is not a JSON object")
    body = data.get(_PLURAL_KEYS[resource], data)
    if not isinstance(body, dict):
        body = {}
    total = body.get("total_count", body.get("total_results"))
    return SearchResponse(
        resource=resource,
        page_index=body.get("page_index", page_index),
        results=body.get("results") or [],
        total_count=total or 0,
        next_page_token=body.get("next_page_token"),
    )


class HttpSearchBackend(SearchBackend):
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        search_url = base_url or config.search_api_url or ""
        self._base_url = search_url.rstrip("/")
        self._timeout = timeout if timeout is not None else config.search_request_timeout
        self._client = client

    async def search(
        self,
        resource: ResourceType,
        page_index: int,
        term: str,
        filters: FilterSet,
        search_type: SearchType,
    ) -> SearchResponse:
        if not self._base_url:
            raise RemoteCallFailure(str(resource), "SEARCH_API_URL is not configured")

        params: dict[str, Any] = {
            "query": term,
            "page_index": page_index,
            "search_type": str(search_type),
        }
        if filters:
            params["filters"] = json.dumps(filter_set_to_json(filters), sort_keys=True)
        url = f"{self._base_url}/{resource}"

        t0 = time.monotonic()
        try:
            if self._client is not None:
                response = await self._client.get(url, params=params)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(url, params=params, follow_redirects=True)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.remote_call(str(resource), str(search_type), time.monotonic() - t0, False)
            raise RemoteCallFailure(
                str(resource), f"HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.remote_call(str(resource), str(search_type), time.monotonic() - t0, False)
            raise RemoteCallFailure(str(resource), str(e) or type(e).__name__) from e

        logger.remote_call(str(resource), str(search_type), time.monotonic() - t0, True)
        try:
            return _parse_payload(data, resource, page_index)
        except ValidationError as e:
            raise RemoteCallFailure(str(resource), f"invalid response: {e.error_count()} errors") from e

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
