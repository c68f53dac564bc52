"""
QueryCompiler - turns session slots into a full-text search query.

Full-text DSL (Reindexer text query format):
    @field^weight +term~   term is required in field, fuzzy match
    @*^0.3,name^1.1 text   free text over all fields, title boosted

Ranking:
- genre / country / persons describe a category with many valid members, so
  candidates are sorted by popularity and one is picked at random
- a title or a bare free-text phrase targets one item, so the search
  engine's relevancy order is kept and the best match wins
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, List, Mapping, Optional, Tuple

from .slot_values import ABSENT, Period, SlotName, SlotValue, Text

logger = logging.getLogger(__name__)

MEDIA_NAMESPACE = "media_items"
EPG_NAMESPACE = "epg"
FULL_TEXT_INDEX = "search"

MEDIA_FETCH_LIMIT = 100
MEDIA_RELEVANCY_FETCH_LIMIT = 10
EPG_FETCH_LIMIT = 10

FIELD_WEIGHT = 1
POPULARITY_FIELD = "imdb"
YEAR_FIELD = "year"

BROAD_MEDIA_FIELDS = "@*^0.3,name^1.1"
BROAD_EPG_FIELDS = "@name^1,description^0.3"

# Slot -> indexed field, in clause order.
FILTER_FIELDS: Tuple[Tuple[SlotName, str], ...] = (
    (SlotName.GENRE, "genres_names"),
    (SlotName.COUNTRY, "countries"),
    (SlotName.PERSONS, "persons_names"),
)
TITLE_FIELD = "name"

_DSL_METACHARS = re.compile(r"[@^+\-~*\"':,\\()\[\]]")
_WHITESPACE = re.compile(r"\s+")
# Full RFC 3339 date-time with an explicit offset.
_RFC3339 = re.compile(
    r"^\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:[Zz]|[+-]\d{2}:\d{2})$"
)


class Condition(StrEnum):
    EQ = "EQ"
    EMPTY = "EMPTY"
    GE = "GE"
    LE = "LE"
    GT = "GT"


@dataclass(frozen=True)
class StructuralFilter:
    field: str
    condition: Condition
    value: Any = None


@dataclass(frozen=True)
class SortSpec:
    field: str
    descending: bool = True


@dataclass(frozen=True)
class CompiledQuery:
    namespace: str
    full_text: str
    rank_by_relevancy: bool
    limit: int
    filters: Tuple[StructuralFilter, ...] = ()
    sort: Optional[SortSpec] = None
    year_min: Optional[int] = None
    year_max: Optional[int] = None

    @property
    def structural_filters(self) -> List[StructuralFilter]:
        result = list(self.filters)
        if self.year_min is not None:
            result.append(StructuralFilter(YEAR_FIELD, Condition.GE, self.year_min))
        if self.year_max is not None:
            result.append(StructuralFilter(YEAR_FIELD, Condition.LE, self.year_max))
        return result


def sanitize_term(value: str) -> str:
    """Strip DSL operators so a slot value cannot change the query structure."""
    cleaned = _DSL_METACHARS.sub(" ", value or "")
    return _WHITESPACE.sub(" ", cleaned).strip()


def parse_rfc3339_year(raw: str) -> int | None:
    text = raw.strip() if isinstance(raw, str) else ""
    if not _RFC3339.match(text):
        logger.warning("Ignoring malformed period bound %r: not an RFC 3339 timestamp", raw)
        return None
    try:
        parsed = datetime.fromisoformat(text.replace("z", "Z"))
    except ValueError as exc:
        logger.warning("Ignoring malformed period bound %r: %s", raw, exc)
        return None
    return parsed.year


def resolve_period(period: SlotValue) -> Tuple[Optional[int], Optional[int]]:
    """Return inclusive (year_min, year_max) for a period slot."""

    if not isinstance(period, Period):
        return None, None
    year_min = parse_rfc3339_year(period.start) if period.start else None
    year_max = parse_rfc3339_year(period.end) if period.end else None
    return year_min, year_max


@dataclass
class QueryCompiler:
    media_limit: int = MEDIA_FETCH_LIMIT
    relevancy_limit: int = MEDIA_RELEVANCY_FETCH_LIMIT
    epg_limit: int = EPG_FETCH_LIMIT
    base_filters: Tuple[StructuralFilter, ...] = field(
        default=(
            StructuralFilter("type", Condition.EQ, "film"),
            StructuralFilter("parent_id", Condition.EMPTY),
        )
    )

    def compile(
        self,
        genre: SlotValue = ABSENT,
        country: SlotValue = ABSENT,
        period: SlotValue = ABSENT,
        persons: SlotValue = ABSENT,
        name: SlotValue = ABSENT,
        free_text: str = "",
    ) -> CompiledQuery:
        clauses: List[str] = []
        rank_by_relevancy = False

        filter_values = {SlotName.GENRE: genre, SlotName.COUNTRY: country, SlotName.PERSONS: persons}
        for slot, index_field in FILTER_FIELDS:
            clause = self._field_clause(index_field, filter_values[slot])
            if clause:
                clauses.append(clause)

        title_clause = self._field_clause(TITLE_FIELD, name)
        if title_clause:
            clauses.append(title_clause)
            rank_by_relevancy = True

        if not clauses:
            clauses.append(f"{BROAD_MEDIA_FIELDS} {sanitize_term(free_text)}".strip())
            rank_by_relevancy = True

        year_min, year_max = resolve_period(period)

        return CompiledQuery(
            namespace=MEDIA_NAMESPACE,
            full_text=" ".join(clauses),
            rank_by_relevancy=rank_by_relevancy,
            limit=self.relevancy_limit if rank_by_relevancy else self.media_limit,
            filters=tuple(self.base_filters),
            sort=None if rank_by_relevancy else SortSpec(POPULARITY_FIELD, descending=True),
            year_min=year_min,
            year_max=year_max,
        )

    def compile_from_slots(self, slots: Mapping[SlotName, SlotValue], free_text: str = "") -> CompiledQuery:
        return self.compile(
            genre=slots.get(SlotName.GENRE, ABSENT),
            country=slots.get(SlotName.COUNTRY, ABSENT),
            period=slots.get(SlotName.PERIOD, ABSENT),
            persons=slots.get(SlotName.PERSONS, ABSENT),
            name=slots.get(SlotName.NAME, ABSENT),
            free_text=free_text,
        )

    def compile_epg(self, free_text: str, now: int) -> CompiledQuery:
        """Upcoming program guide entries matching a phrase."""
        return CompiledQuery(
            namespace=EPG_NAMESPACE,
            full_text=f"{BROAD_EPG_FIELDS} {sanitize_term(free_text)}".strip(),
            rank_by_relevancy=True,
            limit=self.epg_limit,
            filters=(StructuralFilter("start_time", Condition.GT, int(now)),),
        )

    @staticmethod
    def _field_clause(index_field: str, value: SlotValue) -> str | None:
        if not isinstance(value, Text):
            return None
        term = sanitize_term(value.value)
        if not term:
            return None
        return f"@{index_field}^{FIELD_WEIGHT} +{term}~"
