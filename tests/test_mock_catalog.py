from __future__ import annotations

import pytest

from media_assistant.services.mock_catalog import MockSearchClient
from media_assistant.services.query_compiler import QueryCompiler
from media_assistant.services.slot_values import Period, Text


async def _names(client: MockSearchClient, query) -> list[str]:
    records = await client.search(
        query.namespace, query.structural_filters, query.full_text, query.sort, query.limit
    )
    return [record["name"] for record in records]


@pytest.mark.asyncio
async def test_bundled_catalog_genre_and_country(compiler: QueryCompiler):
    client = MockSearchClient()

    comedies = await _names(client, compiler.compile(genre=Text("комедия")))
    soviet = await _names(client, compiler.compile(genre=Text("комедия"), country=Text("СССР")))

    assert comedies == ["Бриллиантовая рука", "Амели", "Шрэк", "Один дома", "Маска"]
    assert soviet == ["Бриллиантовая рука"]


@pytest.mark.asyncio
async def test_period_bounds_are_inclusive(compiler: QueryCompiler):
    client = MockSearchClient()
    query = compiler.compile(
        genre=Text("комедия"),
        period=Period(start="1990-01-01T00:00:00Z", end="1999-12-31T23:59:59Z"),
    )

    assert sorted(await _names(client, query)) == ["Маска", "Один дома"]


@pytest.mark.asyncio
async def test_free_text_prefers_title(compiler: QueryCompiler):
    client = MockSearchClient()

    names = await _names(client, compiler.compile(free_text="Интерстеллар"))

    assert names == ["Интерстеллар"]


@pytest.mark.asyncio
async def test_person_filter(compiler: QueryCompiler):
    client = MockSearchClient()

    names = await _names(client, compiler.compile(persons=Text("Нолан")))

    assert names == ["Начало", "Интерстеллар"]


@pytest.mark.asyncio
async def test_epg_only_upcoming(compiler: QueryCompiler):
    client = MockSearchClient()

    names = await _names(client, compiler.compile_epg("новости", now=1_700_000_000))

    assert names == ["Новости"]


@pytest.mark.asyncio
async def test_custom_namespaces_and_limit(compiler: QueryCompiler):
    records = [
        {"id": i, "type": "film", "parent_id": 0, "name": f"Фильм {i}", "genres": [{"name": "драма"}], "imdb": i}
        for i in range(1, 6)
    ]
    client = MockSearchClient({"media_items": records})
    query = compiler.compile(genre=Text("драма"))

    found = await client.search("media_items", query.structural_filters, query.full_text, query.sort, 3)

    assert [record["id"] for record in found] == [5, 4, 3]
    assert await client.search("unknown", [], "x", None, 10) == []
