from __future__ import annotations

from media_assistant.models import MediaItem
from media_assistant.services.response_builder import (
    build_webhook_response,
    image_url,
    open_url,
    recommendation_text,
    truncate_subtitle,
)


def _item(**overrides) -> MediaItem:
    data = {
        "id": 105,
        "name": "Бриллиантовая рука",
        "short_description": "Скромный советский служащий во время круиза оказывается втянут в историю с контрабандистами.",
        "year": 1968,
        "logo": "/images/media/105/poster.jpg",
        "persons": [{"name": "Леонид Гайдай"}, {"name": "Юрий Никулин"}],
    }
    data.update(overrides)
    return MediaItem.model_validate(data)


def test_recommendation_text_variants():
    assert recommendation_text(_item()) == "Рекомендую посмотреть Бриллиантовая рука от Леонид Гайдай 1968 года"
    assert recommendation_text(_item(persons=[])) == "Рекомендую посмотреть Бриллиантовая рука 1968 года"
    assert recommendation_text(_item(year=None)) == "Рекомендую посмотреть Бриллиантовая рука от Леонид Гайдай"
    assert recommendation_text(_item(persons=[{"name": ""}], year="")) == "Рекомендую посмотреть Бриллиантовая рука"


def test_truncate_subtitle():
    assert truncate_subtitle("коротко", 120) == "коротко"
    assert truncate_subtitle("а" * 130, 120) == "а" * 120 + "..."
    assert truncate_subtitle("а" * 130, 0) == "а" * 130


def test_urls(settings):
    assert image_url(_item(), settings) == "https://mos-itv01.svc.iptv.rt.ru/images/media/105/poster.jpg"
    assert image_url(_item(logo=""), settings) == ""
    assert open_url(_item(), settings) == "http://production.smarttv.itv.restr.im/pc/#/media_item/105"


def test_response_with_item(settings):
    text = recommendation_text(_item())
    body = build_webhook_response(text, _item(), settings).to_platform()

    assert body["fulfillmentText"] == text
    card = body["fulfillmentMessages"][0]["card"]
    assert card["title"] == "Бриллиантовая рука"
    assert card["imageUri"].endswith("/images/media/105/poster.jpg")
    assert card["buttons"] == [
        {"text": "Смотреть", "postback": "http://production.smarttv.itv.restr.im/pc/#/media_item/105"}
    ]

    google = body["payload"]["google"]
    assert google["expectUserResponse"] is True
    items = google["richResponse"]["items"]
    assert items[0] == {"simpleResponse": {"textToSpeech": text}}
    basic_card = items[1]["basicCard"]
    assert basic_card["imageDisplayOptions"] == "WHITE"
    assert basic_card["buttons"][0]["openUrlAction"]["url"].endswith("/media_item/105")


def test_response_without_item(settings):
    body = build_webhook_response("К сожалению, ничего не найдено", None, settings).to_platform()

    assert body["fulfillmentText"] == "К сожалению, ничего не найдено"
    assert body["fulfillmentMessages"] == []
    assert body["payload"]["google"]["richResponse"]["items"] == [
        {"simpleResponse": {"textToSpeech": "К сожалению, ничего не найдено"}}
    ]
