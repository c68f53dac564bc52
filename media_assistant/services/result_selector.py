from __future__ import annotations

import random
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


class ResultSelector:
    """Picks the single item to recommend from the search candidates."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    @classmethod
    def seeded(cls, seed: int | None) -> "ResultSelector":
        return cls(random.Random(seed))

    def select(self, candidates: Sequence[T], rank_by_relevancy: bool) -> Optional[T]:
        if not candidates:
            return None
        if rank_by_relevancy:
            return candidates[0]
        # Uniform over the whole fetched window, not only the most popular items.
        return candidates[self._rng.randrange(len(candidates))]
