from __future__ import annotations

from collections import Counter
from dataclasses import replace
from typing import Callable, Iterable, List, Optional

from csim.entity.model import (
    AccessKind,
    AccessRecord,
    AccessResult,
    CacheConfig,
    ReplacementPolicy,
    Stats,
)
from csim.memory import Cache
from csim.memory.addr_converter import decompose_address
from csim.memory.replacement import ReplacementEngine, build_engine

import logging
logger = logging.getLogger(__name__)

StepCallback = Callable[[AccessRecord, List[AccessResult]], None]

# accesses issued per record kind, in order
_ACCESS_PLAN = {
    AccessKind.INSTRUCTION: 0,
    AccessKind.LOAD: 1,
    AccessKind.STORE: 1,
    AccessKind.MODIFY: 2,
}


class Simulator:
    """Replays access records against one cache and folds the outcomes into Stats.

    The cache is built on ``__enter__`` (or lazily by the first access) and
    dropped on ``__exit__``::

        with Simulator(CacheConfig(s=4, E=1, b=4)) as sim:
            stats = sim.run(read_trace("traces/yi.trace"))
    """

    def __init__(
        self,
        config: CacheConfig,
        policy: ReplacementPolicy | str = ReplacementPolicy.LEGACY_LRU,
    ):
        self.config = config
        self.engine: ReplacementEngine = build_engine(policy)
        self.cache: Optional[Cache] = None
        self._stats = Stats()
        self._kind_stat = Counter()

    def __enter__(self) -> 'Simulator':
        self.build()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()

    def build(self):
        if self.cache is None:
            self.cache = Cache(self.config)
            logger.debug("built cache S=%d E=%d B=%d",
                         self.config.S, self.config.E, self.config.B)

    def release(self):
        self.cache = None

    @property
    def policy(self) -> ReplacementPolicy:
        return self.engine.policy

    @property
    def stats(self) -> Stats:
        return self._stats

    def kind_stat(self) -> Counter:
        return Counter(self._kind_stat)

    def access(self, address: int) -> AccessResult:
        self.build()
        parts = decompose_address(address, self.config.s, self.config.b)
        result = self.engine.access(self.cache[parts.set_index], parts.tag)
        result = replace(result, set_index=parts.set_index)
        self._stats = self._stats + result
        return result

    def step(self, record: AccessRecord) -> List[AccessResult]:
        results = [self.access(record.address)
                   for _ in range(_ACCESS_PLAN[record.kind])]
        self._record(record, results)
        return results

    def run(self, trace: Iterable[AccessRecord], on_step: StepCallback | None = None) -> Stats:
        start = self._stats
        for record in trace:
            results = self.step(record)
            if on_step:
                on_step(record, results)
        delta = self._stats - start
        logger.info("trace done: hits=%d misses=%d evictions=%d",
                    delta.hits, delta.misses, delta.evictions)
        return self._stats

    def _record(self, record: AccessRecord, results: List[AccessResult]):
        op = record.kind.name.lower()
        self._kind_stat[f"{op}_count"] += 1
        for result in results:
            self._kind_stat[f"{op}_{'hits' if result.hit else 'misses'}"] += 1
            if result.eviction:
                self._kind_stat[f"{op}_evictions"] += 1


def simulate(
    config: CacheConfig,
    trace: Iterable[AccessRecord],
    policy: ReplacementPolicy | str = ReplacementPolicy.LEGACY_LRU,
) -> Stats:
    with Simulator(config, policy) as sim:
        return sim.run(trace)


__all__ = ["Simulator", "simulate"]
