from __future__ import annotations

from typing import Dict, Optional, Tuple, Type

from csim.entity.model import AccessResult, ReplacementPolicy
from csim.memory import CacheSet, Line

import logging
logger = logging.getLogger(__name__)


class ReplacementEngine:
    """Counter based LRU over one cache set.

    Every line carries a recency counter. A filled or replaced line gets
    ``max(recency) + 1`` of its set, the victim of a full set is the first line
    holding the smallest counter. Subclasses decide how a hit is promoted.
    """

    policy: ReplacementPolicy

    def access(self, cache_set: CacheSet, tag: int) -> AccessResult:
        line = self.find(cache_set, tag)
        if line is not None:
            self.promote(cache_set, line)
            return AccessResult(hit=True, tag=tag)

        lru_index, max_recency = self.scan(cache_set)
        empty_index = self.first_empty(cache_set)
        if empty_index is None:
            victim = cache_set[lru_index]
            logger.debug("evict tag %#x (recency %d) for tag %#x",
                         victim.tag, victim.recency, tag)
            victim.fill(tag, max_recency + 1)
            return AccessResult(hit=False, eviction=True, tag=tag)

        cache_set[empty_index].fill(tag, max_recency + 1)
        return AccessResult(hit=False, tag=tag)

    def find(self, cache_set: CacheSet, tag: int) -> Optional[Line]:
        for line in cache_set:
            if line.valid and line.tag == tag:
                return line
        return None

    def promote(self, cache_set: CacheSet, line: Line):
        raise NotImplementedError

    @staticmethod
    def first_empty(cache_set: CacheSet) -> Optional[int]:
        for way, line in enumerate(cache_set):
            if not line.valid:
                return way
        return None

    @staticmethod
    def scan(cache_set: CacheSet) -> Tuple[int, int]:
        """Return (index of the least recent line, largest recency) of a set.

        Invalid lines take part with their counter, which stays 0 until the
        line is filled. Ties keep the lowest index.
        """
        min_used = max_used = cache_set[0].recency
        min_used_index = 0
        for way in range(1, len(cache_set)):
            recency = cache_set[way].recency
            if recency < min_used:
                min_used_index = way
                min_used = recency
            if recency > max_used:
                max_used = recency
        return min_used_index, max_used


class LegacyLRUEngine(ReplacementEngine):
    """Bumps a hit line by one, matching the counters of the original csim tool."""

    policy = ReplacementPolicy.LEGACY_LRU

    def promote(self, cache_set: CacheSet, line: Line):
        line.recency += 1


class StrictLRUEngine(ReplacementEngine):
    policy = ReplacementPolicy.STRICT_LRU

    def promote(self, cache_set: CacheSet, line: Line):
        _, max_used = self.scan(cache_set)
        line.recency = max_used + 1


ENGINES: Dict[ReplacementPolicy, Type[ReplacementEngine]] = {
    ReplacementPolicy.LEGACY_LRU: LegacyLRUEngine,
    ReplacementPolicy.STRICT_LRU: StrictLRUEngine,
}


def build_engine(policy: ReplacementPolicy | str = ReplacementPolicy.LEGACY_LRU) -> ReplacementEngine:
    return ENGINES[ReplacementPolicy(policy)]()


__all__ = [
    "ENGINES",
    "LegacyLRUEngine",
    "ReplacementEngine",
    "StrictLRUEngine",
    "build_engine",
]
