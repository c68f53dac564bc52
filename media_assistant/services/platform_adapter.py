from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from ..intents import load_platform_mapping
from ..models import WebhookRequest
from .error_handling import MalformedTurnError
from .slot_values import SlotName, SlotValue, parse_slot_value

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "/contexts/"


def extract_session_id(request: WebhookRequest) -> str:
    """
    Conversation key of a webhook turn.

    Output context names look like "<session path>/contexts/<context>"; the
    session path is the key. The top-level session field is used when no
    context carries one.
    """

    for context in request.query_result.output_contexts:
        if CONTEXT_SEPARATOR in context.name:
            session_id = context.name.split(CONTEXT_SEPARATOR, 1)[0].strip()
            if session_id:
                return session_id
    session_id = (request.session or "").strip()
    if session_id:
        return session_id
    raise MalformedTurnError(
        "turn does not identify a conversation",
        reason="missing_session_context",
        debug={"response_id": request.response_id},
    )


def _slot_aliases() -> Dict[str, SlotName]:
    aliases: Dict[str, SlotName] = {}
    for platform_name, slot_name in load_platform_mapping()["slots"].items():
        try:
            aliases[str(platform_name)] = SlotName(slot_name)
        except ValueError:
            logger.warning("Unknown slot %s in platform mapping, skipping.", slot_name)
    return aliases


def _as_slot_name(name: str) -> SlotName | None:
    try:
        return SlotName(name)
    except ValueError:
        return None


def extract_slots(parameters: Mapping[str, Any]) -> Dict[SlotName, SlotValue]:
    """Parse platform parameters into recognized slots; other names are ignored."""

    aliases = _slot_aliases()
    slots: Dict[SlotName, SlotValue] = {}
    for platform_name, raw in (parameters or {}).items():
        slot = aliases.get(platform_name) or _as_slot_name(platform_name)
        if slot is None:
            logger.debug("Ignoring unrecognized slot parameter=%s", platform_name)
            continue
        slots[slot] = parse_slot_value(slot, raw)
    return slots
