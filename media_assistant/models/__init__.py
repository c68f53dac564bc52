from __future__ import annotations

from .media import EPGItem, MediaItem, NamedRef
from .webhook import (
    BasicCard,
    CardButton,
    CardImage,
    FulfillmentButton,
    FulfillmentCard,
    FulfillmentMessage,
    GooglePayload,
    IntentInfo,
    OpenUrlAction,
    OutputContext,
    QueryResult,
    ResponsePayload,
    RichResponse,
    RichResponseItem,
    SimpleResponse,
    Suggestion,
    WebhookRequest,
    WebhookResponse,
)

__all__ = [
    "BasicCard",
    "CardButton",
    "CardImage",
    "EPGItem",
    "FulfillmentButton",
    "FulfillmentCard",
    "FulfillmentMessage",
    "GooglePayload",
    "IntentInfo",
    "MediaItem",
    "NamedRef",
    "OpenUrlAction",
    "OutputContext",
    "QueryResult",
    "ResponsePayload",
    "RichResponse",
    "RichResponseItem",
    "SimpleResponse",
    "Suggestion",
    "WebhookRequest",
    "WebhookResponse",
]
