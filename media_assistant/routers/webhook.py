from __future__ import annotations

import logging
import time
from dataclasses import asdict
from typing import Any, Dict, List
from uuid import uuid4

from fastapi import APIRouter, Depends, Query

from ..config import Settings, get_settings
from ..models import EPGItem, WebhookRequest
from ..services.error_handling import MalformedTurnError
from ..services.metrics import get_metrics_service
from ..services.platform_adapter import extract_session_id, extract_slots
from ..services.response_builder import build_webhook_response
from ..services.search_client import SearchClient, get_search_client
from ..services.session_store import SessionStore, get_session_store
from ..services.turn_handler import TurnHandler
from ..utils.logging import get_turn_logger

router = APIRouter(tags=["fulfillment"])
logger = logging.getLogger(__name__)


def get_search_client_dependency(settings: Settings = Depends(get_settings)) -> SearchClient:
    return get_search_client(settings)


def get_session_store_dependency() -> SessionStore:
    return get_session_store()


def get_turn_handler(
    settings: Settings = Depends(get_settings),
    session_store: SessionStore = Depends(get_session_store_dependency),
    search_client: SearchClient = Depends(get_search_client_dependency),
) -> TurnHandler:
    return TurnHandler(
        session_store=session_store,
        search_client=search_client,
        settings=settings,
    )


@router.post("/handler")
async def fulfillment_webhook(
    request: WebhookRequest,
    settings: Settings = Depends(get_settings),
    turn_handler: TurnHandler = Depends(get_turn_handler),
) -> Dict[str, Any]:
    trace_id = uuid4().hex if settings.enable_request_tracing else None
    try:
        session_id = extract_session_id(request)
    except MalformedTurnError:
        get_metrics_service().record_malformed_turn()
        raise

    query_result = request.query_result
    request_logger = get_turn_logger(
        logger,
        trace_id=trace_id,
        session_id=session_id,
        intent=query_result.intent.display_name,
    )
    request_logger.info("Incoming turn text=%s", query_result.query_text)

    start = time.perf_counter()
    result = await turn_handler.handle_turn(
        session_id=session_id,
        free_text=query_result.query_text,
        slots=extract_slots(query_result.parameters),
        intent=query_result.intent.display_name,
        trace_id=trace_id,
    )
    request_logger.info(
        "Turn answered text=%s item_id=%s latency_ms=%.1f",
        result.spoken_text,
        result.chosen_item.id if result.chosen_item else None,
        (time.perf_counter() - start) * 1000,
    )
    return build_webhook_response(result.spoken_text, result.chosen_item, settings).to_platform()


@router.get("/api/epg/search", response_model=List[EPGItem])
async def search_epg(
    q: str = Query(..., min_length=1, description="Program title or description phrase"),
    turn_handler: TurnHandler = Depends(get_turn_handler),
) -> List[EPGItem]:
    return await turn_handler.lookup_epg(q)


@router.get("/api/metrics")
async def metrics_snapshot() -> Dict[str, Any]:
    return asdict(get_metrics_service().snapshot())
