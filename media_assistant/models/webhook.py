"""Dialogflow v2 fulfillment webhook schema (request and response)."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _PlatformModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class OutputContext(_PlatformModel):
    name: str = ""
    lifespan_count: int = Field(default=0, alias="lifespanCount")
    parameters: Dict[str, Any] = Field(default_factory=dict)


class IntentInfo(_PlatformModel):
    name: str = ""
    display_name: str = Field(default="", alias="displayName")


class QueryResult(_PlatformModel):
    query_text: str = Field(default="", alias="queryText")
    parameters: Dict[str, Any] = Field(default_factory=dict)
    all_required_params_present: bool = Field(default=False, alias="allRequiredParamsPresent")
    output_contexts: List[OutputContext] = Field(default_factory=list, alias="outputContexts")
    intent: IntentInfo = Field(default_factory=IntentInfo)
    intent_detection_confidence: float = Field(default=0.0, alias="intentDetectionConfidence")
    language_code: str = Field(default="", alias="languageCode")


class WebhookRequest(_PlatformModel):
    response_id: str = Field(default="", alias="responseId")
    session: str = ""
    query_result: QueryResult = Field(default_factory=QueryResult, alias="queryResult")


class FulfillmentButton(_PlatformModel):
    text: str
    postback: str


class FulfillmentCard(_PlatformModel):
    title: str
    subtitle: str = ""
    image_uri: str = Field(default="", alias="imageUri")
    buttons: List[FulfillmentButton] = Field(default_factory=list)


class FulfillmentMessage(_PlatformModel):
    card: FulfillmentCard


class OpenUrlAction(_PlatformModel):
    url: str


class CardButton(_PlatformModel):
    title: str
    open_url_action: OpenUrlAction = Field(alias="openUrlAction")


class CardImage(_PlatformModel):
    url: str
    accessibility_text: str = Field(default="", alias="accessibilityText")


class BasicCard(_PlatformModel):
    title: str
    image: CardImage
    buttons: List[CardButton] = Field(default_factory=list)
    image_display_options: str = Field(default="WHITE", alias="imageDisplayOptions")


class SimpleResponse(_PlatformModel):
    text_to_speech: str = Field(alias="textToSpeech")


class RichResponseItem(_PlatformModel):
    simple_response: Optional[SimpleResponse] = Field(default=None, alias="simpleResponse")
    basic_card: Optional[BasicCard] = Field(default=None, alias="basicCard")


class Suggestion(_PlatformModel):
    title: str


class RichResponse(_PlatformModel):
    items: List[RichResponseItem] = Field(default_factory=list)
    suggestions: List[Suggestion] = Field(default_factory=list)


class GooglePayload(_PlatformModel):
    expect_user_response: bool = Field(default=True, alias="expectUserResponse")
    rich_response: RichResponse = Field(default_factory=RichResponse, alias="richResponse")


class ResponsePayload(_PlatformModel):
    google: GooglePayload = Field(default_factory=GooglePayload)


class WebhookResponse(_PlatformModel):
    fulfillment_text: Optional[str] = Field(default=None, alias="fulfillmentText")
    fulfillment_messages: List[FulfillmentMessage] = Field(default_factory=list, alias="fulfillmentMessages")
    source: Optional[str] = None
    payload: ResponsePayload = Field(default_factory=ResponsePayload)

    def to_platform(self) -> Dict[str, Any]:
        """Serialize with platform field names, dropping empty optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)
