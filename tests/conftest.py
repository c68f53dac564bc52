"""Shared pytest fixtures for all tests."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import pytest

from media_assistant.config import Settings
from media_assistant.services.metrics import MetricsService
from media_assistant.services.query_compiler import QueryCompiler
from media_assistant.services.session_store import SessionStore


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubSearchClient:
    """Records search calls and returns canned records."""

    def __init__(
        self,
        records: List[Dict[str, Any]] | None = None,
        *,
        exc: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.records = records or []
        self.exc = exc
        self.delay = delay
        self.calls: List[Dict[str, Any]] = []

    async def search(self, namespace, filters, full_text, sort, limit):
        self.calls.append(
            {
                "namespace": namespace,
                "filters": list(filters),
                "full_text": full_text,
                "sort": sort,
                "limit": limit,
            }
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc is not None:
            raise self.exc
        return [dict(record) for record in self.records[:limit]]

    @property
    def last_call(self) -> Dict[str, Any]:
        return self.calls[-1]


def media_record(item_id: int, name: str, **overrides: Any) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "id": item_id,
        "name": name,
        "short_description": f"Описание фильма {name}",
        "year": 2000 + item_id % 20,
        "logo": f"/images/{item_id}.jpg",
        "genres": [{"name": "комедия"}],
        "countries": ["США"],
        "persons": [{"name": f"Режиссёр {item_id}"}],
        "imdb": 7.0,
    }
    record.update(overrides)
    return record


@pytest.fixture
def settings() -> Settings:
    """Default settings for tests."""
    return Settings(
        search_backend="mock",
        session_idle_ttl_seconds=None,
        result_selector_seed=7,
        search_timeout_seconds=1.0,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session_store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def compiler() -> QueryCompiler:
    return QueryCompiler()


@pytest.fixture
def metrics() -> MetricsService:
    return MetricsService()


@pytest.fixture
def make_search_client():
    """Factory for StubSearchClient instances."""
    return StubSearchClient


@pytest.fixture
def make_record():
    """Factory for media_items records."""
    return media_record
