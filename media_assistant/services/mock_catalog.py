from __future__ import annotations

import json
import logging
import re
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .query_compiler import EPG_NAMESPACE, MEDIA_NAMESPACE, Condition, SortSpec, StructuralFilter

logger = logging.getLogger(__name__)

_FIELD_SPEC = re.compile(r"^(?P<field>[\w*]+)(?:\^(?P<weight>[\d.]+))?$")


@dataclass(frozen=True)
class _Term:
    text: str
    fields: Tuple[Tuple[str, float], ...]
    required: bool
    fuzzy: bool


def _parse_full_text(expression: str) -> List[_Term]:
    """Parse the subset of the text query format produced by QueryCompiler."""

    terms: List[_Term] = []
    fields: Tuple[Tuple[str, float], ...] = (("*", 1.0),)
    for token in (expression or "").split():
        if token.startswith("@"):
            parsed: List[Tuple[str, float]] = []
            for spec in token[1:].split(","):
                match = _FIELD_SPEC.match(spec)
                if not match:
                    continue
                parsed.append((match.group("field"), float(match.group("weight") or 1.0)))
            fields = tuple(parsed) or (("*", 1.0),)
            continue
        required = token.startswith("+")
        fuzzy = token.endswith("~")
        text = token.strip("+~").lower()
        if text:
            terms.append(_Term(text=text, fields=fields, required=required, fuzzy=fuzzy))
    return terms


def _field_values(record: Dict[str, Any], field: str) -> List[str]:
    if field == "genres_names":
        return [str(item.get("name", "")) for item in record.get("genres") or []]
    if field == "persons_names":
        return [str(item.get("name", "")) for item in record.get("persons") or []]
    if field == "*":
        values: List[str] = []
        for name in ("name", "short_description", "description", "countries"):
            values.extend(_field_values(record, name))
        values.extend(_field_values(record, "genres_names"))
        values.extend(_field_values(record, "persons_names"))
        return values
    value = record.get(field)
    if isinstance(value, list):
        return [str(item) for item in value]
    if value is None:
        return []
    return [str(value)]


def _term_matches(term: _Term, haystack: str) -> bool:
    if term.text in haystack:
        return True
    if term.fuzzy and len(term.text) > 4:
        # Rough stand-in for typo/morphology tolerance: compare the stem.
        return term.text[: len(term.text) - 2] in haystack
    return False


def _score(record: Dict[str, Any], terms: Sequence[_Term]) -> float | None:
    if not terms:
        return None
    score = 0.0
    for term in terms:
        best = 0.0
        for field, weight in term.fields:
            haystack = " ".join(_field_values(record, field)).lower()
            if haystack and _term_matches(term, haystack):
                best = max(best, weight)
        if best == 0.0 and term.required:
            return None
        score += best
    return score if score > 0 else None


def _passes(record: Dict[str, Any], item: StructuralFilter) -> bool:
    value = record.get(item.field)
    if item.condition is Condition.EMPTY:
        return not value
    if item.condition is Condition.EQ:
        return value == item.value
    try:
        left, right = float(value), float(item.value)
    except (TypeError, ValueError):
        return False
    if item.condition is Condition.GE:
        return left >= right
    if item.condition is Condition.LE:
        return left <= right
    if item.condition is Condition.GT:
        return left > right
    return False


class MockSearchClient:
    """File-based stand-in for the search store with a simplified text matcher."""

    DATA_DIR = Path(__file__).resolve().parent.parent / "mock_data"
    NAMESPACE_FILES = {
        MEDIA_NAMESPACE: "media_items.json",
        EPG_NAMESPACE: "epg.json",
    }

    def __init__(self, namespaces: Dict[str, List[Dict[str, Any]]] | None = None) -> None:
        if namespaces is not None:
            self._namespaces = deepcopy(namespaces)
        else:
            self._namespaces = {
                namespace: self._load_json(filename, default=[])
                for namespace, filename in self.NAMESPACE_FILES.items()
            }

    def _load_json(self, filename: str, *, default: Any) -> Any:
        path = self.DATA_DIR / filename
        if not path.exists():
            logger.info("Mock data file %s is missing, using defaults.", filename)
            return deepcopy(default)
        try:
            with path.open("r", encoding="utf-8") as fp:
                return json.load(fp)
        except json.JSONDecodeError as exc:
            logger.warning("Failed to decode %s: %s", filename, exc)
            return deepcopy(default)

    async def search(
        self,
        namespace: str,
        filters: Sequence[StructuralFilter],
        full_text: str,
        sort: Optional[SortSpec],
        limit: int,
    ) -> List[Dict[str, Any]]:
        records = self._namespaces.get(namespace, [])
        terms = _parse_full_text(full_text)
        scored: List[Tuple[float, Dict[str, Any]]] = []
        for record in records:
            if not all(_passes(record, item) for item in filters):
                continue
            score = _score(record, terms)
            if score is None:
                continue
            scored.append((score, record))

        if sort is not None:
            present = [pair for pair in scored if pair[1].get(sort.field) is not None]
            missing = [pair for pair in scored if pair[1].get(sort.field) is None]
            present.sort(key=lambda pair: pair[1][sort.field], reverse=sort.descending)
            scored = present + missing
        else:
            scored.sort(key=lambda pair: pair[0], reverse=True)

        logger.debug(
            "mock.search namespace=%s matched=%d limit=%d full_text=%s",
            namespace,
            len(scored),
            limit,
            full_text,
        )
        return [deepcopy(record) for _, record in scored[: max(0, limit)]]


_mock_search_client: MockSearchClient | None = None


def get_mock_search_client() -> MockSearchClient:
    global _mock_search_client
    if _mock_search_client is None:
        _mock_search_client = MockSearchClient()
    return _mock_search_client
