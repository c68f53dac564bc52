from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx
from langsmith import traceable

from ..config import Settings
from .error_handling import UpstreamError
from .mock_catalog import get_mock_search_client
from .query_compiler import FULL_TEXT_INDEX, Condition, SortSpec, StructuralFilter

logger = logging.getLogger(__name__)

_RETRYABLE_STATUSES = {
    httpx.codes.BAD_GATEWAY,
    httpx.codes.SERVICE_UNAVAILABLE,
    httpx.codes.GATEWAY_TIMEOUT,
    httpx.codes.INTERNAL_SERVER_ERROR,
}


class SearchClientError(UpstreamError):
    """Raised when the search store fails."""


class SearchClient(Protocol):
    async def search(
        self,
        namespace: str,
        filters: Sequence[StructuralFilter],
        full_text: str,
        sort: Optional[SortSpec],
        limit: int,
    ) -> List[Dict[str, Any]]:
        """Return records matching all filters and the full-text expression."""


def build_query_dsl(
    namespace: str,
    filters: Sequence[StructuralFilter],
    full_text: str,
    sort: Optional[SortSpec],
    limit: int,
) -> Dict[str, Any]:
    """Reindexer JSON DSL for a select query."""

    dsl_filters: List[Dict[str, Any]] = []
    for item in filters:
        entry: Dict[str, Any] = {"field": item.field, "cond": item.condition.value}
        if item.condition is not Condition.EMPTY:
            entry["value"] = item.value
        dsl_filters.append(entry)
    if full_text:
        dsl_filters.append({"field": FULL_TEXT_INDEX, "cond": Condition.EQ.value, "value": full_text})

    body: Dict[str, Any] = {
        "namespace": namespace,
        "type": "select",
        "limit": limit,
        "filters": dsl_filters,
    }
    if sort is not None:
        body["sort"] = [{"field": sort.field, "desc": sort.descending}]
    return body


class ReindexerSearchClient:
    """HTTP client for the Reindexer query endpoint."""

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._base_url = settings.reindexer_base_url.rstrip("/")
        self._database = settings.reindexer_database
        self._retry_attempts = max(0, settings.search_retry_attempts)
        self._transport = transport

    @traceable(run_type="retriever", name="reindexer_search")
    async def search(
        self,
        namespace: str,
        filters: Sequence[StructuralFilter],
        full_text: str,
        sort: Optional[SortSpec],
        limit: int,
    ) -> List[Dict[str, Any]]:
        url = f"{self._base_url}/api/v1/db/{self._database}/query"
        body = build_query_dsl(namespace, filters, full_text, sort, limit)
        timeout = httpx.Timeout(self._settings.search_timeout_seconds)

        attempt = 0
        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            while True:
                attempt += 1
                start = time.perf_counter()
                try:
                    response = await client.post(url, json=body)
                except httpx.TransportError as exc:
                    logger.warning(
                        "reindexer.search transport error namespace=%s attempt=%d error=%s",
                        namespace,
                        attempt,
                        exc,
                    )
                    if attempt <= self._retry_attempts:
                        continue
                    raise SearchClientError(str(exc) or exc.__class__.__name__, reason="search_unavailable") from exc

                elapsed_ms = (time.perf_counter() - start) * 1000
                logger.info(
                    "reindexer.search namespace=%s status=%s latency_ms=%.1f attempt=%d",
                    namespace,
                    response.status_code,
                    elapsed_ms,
                    attempt,
                )
                if response.status_code in _RETRYABLE_STATUSES and attempt <= self._retry_attempts:
                    continue
                try:
                    response.raise_for_status()
                    payload = response.json()
                except (httpx.HTTPStatusError, ValueError) as exc:
                    logger.error("reindexer.search error url=%s error=%s", url, exc)
                    raise SearchClientError(str(exc), reason="search_failed") from exc
                break

        items = payload.get("items") if isinstance(payload, dict) else None
        return list(items or [])


def get_search_client(settings: Settings) -> SearchClient:
    if settings.search_backend == "reindexer":
        return ReindexerSearchClient(settings)
    return get_mock_search_client()
