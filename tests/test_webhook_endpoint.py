from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from media_assistant.config import get_settings
from media_assistant.main import create_app
from media_assistant.routers.webhook import get_session_store_dependency
from media_assistant.services.session_store import SessionStore

SESSION = "projects/movie-agent/agent/sessions/{}"

COMEDIES = {"Маска", "Один дома", "Бриллиантовая рука", "Амели", "Шрэк"}


def _turn(session: str, text: str, parameters=None, intent: str = "find-movie") -> dict:
    return {
        "responseId": f"resp-{session}-{text}",
        "queryResult": {
            "queryText": text,
            "parameters": parameters or {},
            "intent": {"displayName": intent},
            "outputContexts": [{"name": f"{SESSION.format(session)}/contexts/find-movie-followup"}],
            "languageCode": "ru",
        },
    }


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def client(settings, store):
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_session_store_dependency] = lambda: store
    with TestClient(app) as test_client:
        yield test_client


def test_genre_then_country_narrows(client: TestClient, store: SessionStore):
    first = client.post("/handler", json=_turn("a", "посоветуй комедию", {"movie-genre": "комедия"}))
    assert first.status_code == 200, first.text
    body = first.json()
    title = body["fulfillmentMessages"][0]["card"]["title"]
    assert title in COMEDIES
    assert body["fulfillmentText"].startswith(f"Рекомендую посмотреть {title}")

    second = client.post(
        "/handler",
        json=_turn("a", "а советскую", {"movie-genre": "", "movie-origin": "СССР"}),
    )
    assert second.status_code == 200, second.text
    assert second.json()["fulfillmentText"] == "Рекомендую посмотреть Бриллиантовая рука от Леонид Гайдай 1968 года"
    assert store.session_count() == 1


def test_reset_then_title_from_free_text(client: TestClient):
    client.post("/handler", json=_turn("b", "комедию", {"movie-genre": "комедия"}))

    reset = client.post("/handler", json=_turn("b", "сбрось", intent="find-movie - reset"))
    assert reset.status_code == 200
    assert reset.json()["fulfillmentText"] == "Параметры сброшены"
    assert reset.json()["fulfillmentMessages"] == []

    found = client.post("/handler", json=_turn("b", "Интерстеллар"))
    assert found.json()["fulfillmentText"] == "Рекомендую посмотреть Интерстеллар от Кристофер Нолан 2014 года"
    card = found.json()["payload"]["google"]["richResponse"]["items"][1]["basicCard"]
    assert card["buttons"][0]["openUrlAction"]["url"].endswith("/media_item/102")


def test_period_and_genre(client: TestClient):
    response = client.post(
        "/handler",
        json=_turn(
            "c",
            "комедию девяностых",
            {
                "movie-genre": "комедия",
                "date-period": {"startDate": "1990-01-01T00:00:00+03:00", "endDate": "1999-12-31T23:59:59+03:00"},
            },
        ),
    )

    assert response.json()["fulfillmentMessages"][0]["card"]["title"] in {"Маска", "Один дома"}


def test_nothing_found(client: TestClient):
    response = client.post("/handler", json=_turn("d", "вестерн", {"movie-genre": "вестерн"}))

    assert response.status_code == 200
    assert response.json()["fulfillmentText"] == "К сожалению, ничего не найдено"


def test_sessions_do_not_share_filters(client: TestClient):
    client.post("/handler", json=_turn("e", "комедию", {"movie-genre": "комедия"}))
    other = client.post("/handler", json=_turn("f", "советский", {"movie-origin": "СССР"}))

    assert other.json()["fulfillmentMessages"][0]["card"]["title"] in {"Бриллиантовая рука", "Москва слезам не верит"}


def test_malformed_turn_is_rejected(client: TestClient):
    before = client.get("/api/metrics").json()["malformed_turns"]

    response = client.post("/handler", json={"responseId": "r-9", "queryResult": {"queryText": "комедию"}})

    assert response.status_code == 400
    body = response.json()
    assert body["meta"]["error"]["code"] == "MALFORMED_TURN"
    assert body["meta"]["error"]["reason"] == "missing_session_context"
    assert body["fulfillmentText"]
    assert client.get("/api/metrics").json()["malformed_turns"] == before + 1


def test_epg_search(client: TestClient):
    response = client.get("/api/epg/search", params={"q": "новости"})

    assert response.status_code == 200, response.text
    assert [item["name"] for item in response.json()] == ["Новости"]


def test_epg_search_requires_query(client: TestClient):
    response = client.get("/api/epg/search", params={"q": ""})

    assert response.status_code == 422
    assert response.json()["meta"]["error"]["code"] == "BAD_REQUEST"


def test_health(client: TestClient, store: SessionStore):
    client.post("/handler", json=_turn("g", "комедию", {"movie-genre": "комедия"}))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
