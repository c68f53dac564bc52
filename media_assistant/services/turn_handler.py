from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from langsmith import traceable
from pydantic import ValidationError as PydanticValidationError

from ..config import Settings
from ..intents import IntentType, resolve_intent
from ..models import EPGItem, MediaItem
from ..utils.logging import get_turn_logger
from .error_handling import UpstreamError
from .metrics import MetricsService, get_metrics_service
from .query_compiler import CompiledQuery, QueryCompiler
from .response_builder import NOTHING_FOUND_TEXT, RESET_TEXT, recommendation_text
from .result_selector import ResultSelector
from .search_client import SearchClient
from .session_store import SessionStore
from .slot_values import SlotName, SlotValue, describe_slots

logger = logging.getLogger(__name__)


@dataclass
class TurnResult:
    spoken_text: str
    chosen_item: Optional[MediaItem] = None
    reset: bool = False
    query: Optional[CompiledQuery] = None


class TurnHandler:
    """Runs one conversational turn: reset, or merge -> compile -> search -> select."""

    def __init__(
        self,
        *,
        session_store: SessionStore,
        search_client: SearchClient,
        settings: Settings,
        compiler: QueryCompiler | None = None,
        selector: ResultSelector | None = None,
        metrics: MetricsService | None = None,
        clock=time.time,
    ) -> None:
        self._session_store = session_store
        self._search_client = search_client
        self._settings = settings
        self._compiler = compiler or QueryCompiler(
            media_limit=settings.media_fetch_limit,
            relevancy_limit=settings.media_relevancy_fetch_limit,
            epg_limit=settings.epg_fetch_limit,
        )
        self._selector = selector or ResultSelector.seeded(settings.result_selector_seed)
        self._metrics = metrics or get_metrics_service()
        self._clock = clock

    @traceable(run_type="chain", name="turn_handler_handle_turn")
    async def handle_turn(
        self,
        *,
        session_id: str,
        free_text: str,
        slots: Mapping[SlotName, SlotValue],
        intent: str | IntentType | None,
        trace_id: str | None = None,
    ) -> TurnResult:
        start_time = time.perf_counter()
        resolved_intent = intent if isinstance(intent, IntentType) else resolve_intent(intent)
        turn_logger = get_turn_logger(logger, trace_id=trace_id, session_id=session_id, intent=resolved_intent)
        self._metrics.record_turn()
        try:
            if resolved_intent is IntentType.RESET:
                self._session_store.reset(session_id)
                self._metrics.record_reset()
                turn_logger.info("Session parameters reset")
                return TurnResult(spoken_text=RESET_TEXT, reset=True)

            merged = self._session_store.merge(session_id, slots)
            query = self._compiler.compile_from_slots(merged, free_text)
            turn_logger.info(
                "Compiled query slots=%s full_text=%s rank_by_relevancy=%s years=%s..%s",
                describe_slots(merged),
                query.full_text,
                query.rank_by_relevancy,
                query.year_min,
                query.year_max,
            )

            records = await self._run_search(query, turn_logger)
            candidates = self._to_media_items(records, turn_logger)
            chosen = self._selector.select(candidates, query.rank_by_relevancy)
            self._metrics.record_selection(found=chosen is not None, rank_by_relevancy=query.rank_by_relevancy)

            if chosen is None:
                turn_logger.info("No candidates found")
                return TurnResult(spoken_text=NOTHING_FOUND_TEXT, query=query)

            turn_logger.info(
                "Selected media_item id=%s name=%s candidates=%d",
                chosen.id,
                chosen.name,
                len(candidates),
            )
            return TurnResult(spoken_text=recommendation_text(chosen), chosen_item=chosen, query=query)
        finally:
            self._metrics.record_turn_latency((time.perf_counter() - start_time) * 1000)

    @traceable(run_type="chain", name="turn_handler_lookup_epg")
    async def lookup_epg(self, free_text: str, *, trace_id: str | None = None) -> List[EPGItem]:
        """Upcoming program guide entries for a phrase."""

        turn_logger = get_turn_logger(logger, trace_id=trace_id, session_id=None, intent="EPG_LOOKUP")
        self._metrics.record_epg_lookup()
        query = self._compiler.compile_epg(free_text, now=int(self._clock()))
        records = await self._run_search(query, turn_logger)
        items: List[EPGItem] = []
        for record in records:
            try:
                items.append(EPGItem.model_validate(record))
            except PydanticValidationError as exc:
                turn_logger.warning("Skipping malformed epg record: %s", exc)
        return items

    async def _run_search(self, query: CompiledQuery, turn_logger: logging.LoggerAdapter) -> List[Dict[str, Any]]:
        """Search with a timeout; any failure reads as no candidates."""

        try:
            return await asyncio.wait_for(
                self._search_client.search(
                    query.namespace,
                    query.structural_filters,
                    query.full_text,
                    query.sort,
                    query.limit,
                ),
                timeout=self._settings.search_timeout_seconds,
            )
        except asyncio.TimeoutError:
            self._metrics.record_search_failure(timeout=True)
            turn_logger.warning(
                "Search timed out namespace=%s timeout=%.1fs",
                query.namespace,
                self._settings.search_timeout_seconds,
            )
        except UpstreamError as exc:
            self._metrics.record_search_failure()
            turn_logger.error("Search failed namespace=%s reason=%s error=%s", query.namespace, exc.reason, exc)
        except Exception as exc:  # pragma: no cover - collaborator bugs must not kill the turn
            self._metrics.record_search_failure()
            turn_logger.exception("Unexpected search failure namespace=%s: %s", query.namespace, exc)
        return []

    @staticmethod
    def _to_media_items(records: List[Dict[str, Any]], turn_logger: logging.LoggerAdapter) -> List[MediaItem]:
        items: List[MediaItem] = []
        for record in records:
            try:
                items.append(MediaItem.model_validate(record))
            except PydanticValidationError as exc:
                turn_logger.warning("Skipping malformed media_item record: %s", exc)
        return items
