from __future__ import annotations

import logging
from enum import StrEnum
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)

MAPPING_PATH = Path(__file__).resolve().parent / "resources" / "platform_mapping.yaml"


class IntentType(StrEnum):
    """Intents the fulfillment core distinguishes."""

    FIND_MOVIE = "FIND_MOVIE"
    RESET = "RESET"


@lru_cache(maxsize=1)
def load_platform_mapping(path: Path | None = None) -> Dict[str, Any]:
    """Load platform intent/slot names from the YAML resource."""

    mapping_path = path or MAPPING_PATH
    try:
        with mapping_path.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
    except FileNotFoundError:
        logger.warning("Platform mapping %s is missing, using empty mapping.", mapping_path)
        data = {}
    data.setdefault("intents", {})
    data.setdefault("slots", {})
    return data


def _intent_aliases() -> Dict[str, IntentType]:
    aliases: Dict[str, IntentType] = {}
    for intent_name, display_names in load_platform_mapping()["intents"].items():
        try:
            intent = IntentType(intent_name)
        except ValueError:
            logger.warning("Unknown intent %s in platform mapping, skipping.", intent_name)
            continue
        for display_name in display_names or []:
            aliases[str(display_name).strip().lower()] = intent
    return aliases


def resolve_intent(display_name: str | None) -> IntentType:
    """
    Map a platform intent display name to IntentType.

    Only names registered as RESET trigger a reset; everything else, including
    unknown or missing names, goes through the search pipeline.
    """

    if not display_name:
        return IntentType.FIND_MOVIE
    intent = _intent_aliases().get(display_name.strip().lower())
    if intent is IntentType.RESET:
        return IntentType.RESET
    return IntentType.FIND_MOVIE
