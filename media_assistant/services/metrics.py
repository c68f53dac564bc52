from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import List


@dataclass
class MetricsSnapshot:
    turns_total: int
    resets_total: int
    recommendations_total: int
    empty_results: int
    search_failures: int
    search_timeouts: int
    relevancy_selections: int
    random_selections: int
    malformed_turns: int
    epg_lookups: int
    avg_turn_latency_ms: float = 0.0


class MetricsService:
    def __init__(self) -> None:
        self._lock = Lock()
        self._turns_total = 0
        self._resets_total = 0
        self._recommendations_total = 0
        self._empty_results = 0
        self._search_failures = 0
        self._search_timeouts = 0
        self._relevancy_selections = 0
        self._random_selections = 0
        self._malformed_turns = 0
        self._epg_lookups = 0
        self._turn_latencies: List[float] = []
        self._max_latency_samples = 1000

    def record_turn(self) -> None:
        with self._lock:
            self._turns_total += 1

    def record_reset(self) -> None:
        with self._lock:
            self._resets_total += 1

    def record_selection(self, *, found: bool, rank_by_relevancy: bool) -> None:
        with self._lock:
            if not found:
                self._empty_results += 1
                return
            self._recommendations_total += 1
            if rank_by_relevancy:
                self._relevancy_selections += 1
            else:
                self._random_selections += 1

    def record_search_failure(self, *, timeout: bool = False) -> None:
        with self._lock:
            if timeout:
                self._search_timeouts += 1
            else:
                self._search_failures += 1

    def record_malformed_turn(self) -> None:
        with self._lock:
            self._malformed_turns += 1

    def record_epg_lookup(self) -> None:
        with self._lock:
            self._epg_lookups += 1

    def record_turn_latency(self, latency_ms: float) -> None:
        """Record turn latency in milliseconds."""
        with self._lock:
            self._turn_latencies.append(latency_ms)
            # Keep only recent samples
            if len(self._turn_latencies) > self._max_latency_samples:
                self._turn_latencies = self._turn_latencies[-self._max_latency_samples:]

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            avg_latency = (
                sum(self._turn_latencies) / len(self._turn_latencies)
                if self._turn_latencies else 0.0
            )
            return MetricsSnapshot(
                turns_total=self._turns_total,
                resets_total=self._resets_total,
                recommendations_total=self._recommendations_total,
                empty_results=self._empty_results,
                search_failures=self._search_failures,
                search_timeouts=self._search_timeouts,
                relevancy_selections=self._relevancy_selections,
                random_selections=self._random_selections,
                malformed_turns=self._malformed_turns,
                epg_lookups=self._epg_lookups,
                avg_turn_latency_ms=avg_latency,
            )


_metrics_service = MetricsService()


def get_metrics_service() -> MetricsService:
    return _metrics_service
