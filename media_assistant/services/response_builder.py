"""Spoken text and card building for webhook replies."""

from __future__ import annotations

from typing import List

from ..config import Settings
from ..models import (
    BasicCard,
    CardButton,
    CardImage,
    FulfillmentButton,
    FulfillmentCard,
    FulfillmentMessage,
    MediaItem,
    OpenUrlAction,
    RichResponseItem,
    SimpleResponse,
    WebhookResponse,
)

# ============================================================================
# Reply text constants
# ============================================================================

NOTHING_FOUND_TEXT = "К сожалению, ничего не найдено"
RESET_TEXT = "Параметры сброшены"
WATCH_BUTTON_TEXT = "Смотреть"
CARD_IMAGE_DISPLAY = "WHITE"


def recommendation_text(item: MediaItem) -> str:
    """'Рекомендую посмотреть <name> от <person> <year> года', skipping unknown parts."""
    parts: List[str] = [f"Рекомендую посмотреть {item.name}"]
    if item.lead_person:
        parts.append(f"от {item.lead_person}")
    if item.year:
        parts.append(f"{item.year} года")
    return " ".join(parts)


def truncate_subtitle(text: str, max_length: int) -> str:
    if max_length <= 0 or len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def image_url(item: MediaItem, settings: Settings) -> str:
    return settings.image_base_url.rstrip("/") + "/" + item.logo.lstrip("/") if item.logo else ""


def open_url(item: MediaItem, settings: Settings) -> str:
    return settings.open_url_template.format(id=item.id)


def build_fulfillment_card(item: MediaItem, settings: Settings) -> FulfillmentMessage:
    return FulfillmentMessage(
        card=FulfillmentCard(
            title=item.name,
            subtitle=truncate_subtitle(item.short_description, settings.card_subtitle_max_length),
            image_uri=image_url(item, settings),
            buttons=[FulfillmentButton(text=WATCH_BUTTON_TEXT, postback=open_url(item, settings))],
        )
    )


def build_basic_card(item: MediaItem, settings: Settings) -> BasicCard:
    return BasicCard(
        title=item.name,
        image=CardImage(url=image_url(item, settings), accessibility_text=item.name),
        buttons=[
            CardButton(
                title=WATCH_BUTTON_TEXT,
                open_url_action=OpenUrlAction(url=open_url(item, settings)),
            )
        ],
        image_display_options=CARD_IMAGE_DISPLAY,
    )


def build_webhook_response(spoken_text: str, item: MediaItem | None, settings: Settings) -> WebhookResponse:
    response = WebhookResponse(fulfillment_text=spoken_text)
    rich = response.payload.google.rich_response
    rich.items.append(RichResponseItem(simple_response=SimpleResponse(text_to_speech=spoken_text)))
    if item is not None:
        rich.items.append(RichResponseItem(basic_card=build_basic_card(item, settings)))
        response.fulfillment_messages.append(build_fulfillment_card(item, settings))
    return response
