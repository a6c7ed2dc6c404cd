from __future__ import annotations

import logging
from typing import Optional, Sequence

from .models import ProductCandidate

logger = logging.getLogger(__name__)


def next_alternative(rejected_url: str, pool: Sequence[ProductCandidate]) -> Optional[ProductCandidate]:
    """
    Picks the option to offer after `rejected_url` was turned down.
    The pool is price-descending, so the next index is the next-closest to budget.
    An unknown url starts over from the head of the pool.
    """
    for index, candidate in enumerate(pool):
        if candidate.url == rejected_url:
            if index < len(pool) - 1:
                return pool[index + 1]
            return None
    return pool[0] if pool else None


class AlternativeCache:
    """Per work item: the remaining alternatives and the urls already offered."""

    def __init__(self) -> None:
        self._pools: dict[str, list[ProductCandidate]] = {}
        self._offered: dict[str, set[str]] = {}

    def store(self, item_id: str, alternatives: Sequence[ProductCandidate]) -> list[ProductCandidate]:
        offered = self._offered.get(item_id, set())
        pool = [c for c in alternatives if c.url not in offered]
        self._pools[item_id] = pool
        return list(pool)

    def pool(self, item_id: str) -> list[ProductCandidate]:
        return list(self._pools.get(item_id, []))

    def is_empty(self, item_id: str) -> bool:
        return not self._pools.get(item_id)

    def mark_offered(self, item_id: str, url: str) -> None:
        self._offered.setdefault(item_id, set()).add(url)

    def take_next(self, item_id: str, rejected_url: str) -> Optional[ProductCandidate]:
        pool = self._pools.get(item_id, [])
        chosen = next_alternative(rejected_url, pool)
        if chosen is None:
            return None

        self._pools[item_id] = [c for c in pool if c.url not in (chosen.url, rejected_url)]
        self.mark_offered(item_id, chosen.url)
        if rejected_url:
            self.mark_offered(item_id, rejected_url)
        logger.info(f"[Alternatives] {item_id}: offering {chosen.url}, {len(self._pools[item_id])} left")
        return chosen

    def reset(self) -> None:
        self._pools.clear()
        self._offered.clear()
