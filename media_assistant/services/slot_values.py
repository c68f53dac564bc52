"""
Slot values collected from the voice platform.

Every slot is one of three shapes:
- Absent: the user did not supply the filter (or supplied an empty value)
- Text: a non-empty string (genre, country, person, title)
- Period: a date range with optional RFC 3339 start/end bounds

Empty strings, zero numbers and bound-less periods are normalized to ABSENT
when parsed, so the session store never holds a present-but-empty slot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Dict, Mapping, Optional, Union

logger = logging.getLogger(__name__)

SLOT_SCHEMA_VERSION = 1


class SlotName(StrEnum):
    """Recognized slots. Names outside this set are ignored on purpose."""

    GENRE = "genre"
    COUNTRY = "country"
    PERIOD = "period"
    PERSONS = "persons"
    NAME = "name"


TEXT_SLOTS = frozenset({SlotName.GENRE, SlotName.COUNTRY, SlotName.PERSONS, SlotName.NAME})


@dataclass(frozen=True)
class Absent:
    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Period:
    start: Optional[str] = None
    end: Optional[str] = None


SlotValue = Union[Absent, Text, Period]

ABSENT = Absent()


def is_present(value: SlotValue | None) -> bool:
    """True only for a Text with content or a Period with at least one bound."""
    if isinstance(value, Text):
        return bool(value.value and value.value.strip())
    if isinstance(value, Period):
        return bool(value.start or value.end)
    return False


def text_or_none(value: SlotValue | None) -> str | None:
    if isinstance(value, Text):
        return value.value
    return None


def _clean_bound(raw: Any) -> str | None:
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None


def _parse_period(raw: Mapping[str, Any]) -> SlotValue:
    start = _clean_bound(raw.get("startDate"))
    end = _clean_bound(raw.get("endDate"))
    if start is None and end is None:
        return ABSENT
    return Period(start=start, end=end)


def _parse_text(raw: Any) -> SlotValue:
    if isinstance(raw, str):
        stripped = raw.strip()
        return Text(stripped) if stripped else ABSENT
    if isinstance(raw, bool):
        return ABSENT
    if isinstance(raw, (int, float)):
        return Text(str(raw)) if raw else ABSENT
    if isinstance(raw, (list, tuple)):
        parts = [str(item).strip() for item in raw if isinstance(item, (str, int, float)) and str(item).strip()]
        return Text(" ".join(parts)) if parts else ABSENT
    return ABSENT


def parse_slot_value(slot: SlotName, raw: Any) -> SlotValue:
    """Convert a raw platform parameter into a SlotValue."""

    if raw is None:
        return ABSENT
    if slot is SlotName.PERIOD:
        if isinstance(raw, Mapping):
            return _parse_period(raw)
        if isinstance(raw, str) and not raw.strip():
            return ABSENT
        if isinstance(raw, (list, tuple)) and not raw:
            return ABSENT
        logger.warning("Unexpected value shape for slot=%s value=%r, treating as absent", slot, raw)
        return ABSENT
    if isinstance(raw, Mapping):
        if raw:
            logger.warning("Unexpected value shape for slot=%s value=%r, treating as absent", slot, raw)
        return ABSENT
    return _parse_text(raw)


def describe_slots(slots: Mapping[SlotName, SlotValue]) -> Dict[str, Any]:
    """Render slots for logs and debug payloads."""

    rendered: Dict[str, Any] = {}
    for name, value in slots.items():
        if isinstance(value, Text):
            rendered[str(name)] = value.value
        elif isinstance(value, Period):
            rendered[str(name)] = {"startDate": value.start, "endDate": value.end}
    return rendered
