from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from csim.utils.config_utils import BaseEnum

ADDRESS_BITS = 64
ADDRESS_MASK = (1 << ADDRESS_BITS) - 1
# sets and lines are allocated up front
MAX_SET_BITS = 20
MAX_LINES = 1 << 22


class CsimError(RuntimeError):
    """Base class for errors surfaced by the simulator."""


class ConfigError(CsimError):
    """Raised when the cache geometry or run configuration is unusable."""


class TraceError(CsimError):
    """Raised when the trace source cannot be opened."""


class AccessKind(str, BaseEnum):
    INSTRUCTION = "I"
    LOAD = "L"
    STORE = "S"
    MODIFY = "M"


class ReplacementPolicy(str, BaseEnum):
    LEGACY_LRU = "legacy_lru"
    STRICT_LRU = "strict_lru"


@dataclass(frozen=True)
class CacheConfig:
    s: int
    E: int
    b: int

    def __post_init__(self):
        for name in ("s", "E", "b"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} must be an integer, got {value!r}")
            if value < 1:
                raise ConfigError(f"{name} must be a positive integer, got {value}")
        if self.s + self.b > ADDRESS_BITS:
            raise ConfigError(
                f"s + b must not exceed {ADDRESS_BITS} address bits, got {self.s + self.b}")
        if self.s > MAX_SET_BITS:
            raise ConfigError(
                f"s must not exceed {MAX_SET_BITS} set index bits, got {self.s}")
        if self.S * self.E > MAX_LINES:
            raise ConfigError(
                f"S * E must not exceed {MAX_LINES} lines, got {self.S * self.E}")

    @property
    def S(self) -> int:
        return 1 << self.s

    @property
    def B(self) -> int:
        return 1 << self.b

    @property
    def tag_bits(self) -> int:
        return ADDRESS_BITS - self.s - self.b


@dataclass
class SimulatorConfig:
    cache: CacheConfig
    policy: ReplacementPolicy = field(default=ReplacementPolicy.LEGACY_LRU)
    trace: Optional[str] = field(default=None)
    verbose: bool = field(default=False)


@dataclass(frozen=True)
class AccessRecord:
    kind: AccessKind
    address: int
    size: int = 0


@dataclass(frozen=True)
class AccessResult:
    hit: bool
    eviction: bool = False
    tag: int = 0
    set_index: int = 0

    @property
    def miss(self) -> bool:
        return not self.hit


@dataclass(frozen=True)
class Stats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def accesses(self):
        return self.hits + self.misses

    @property
    def hit_rate(self):
        return self.hits/self.accesses if self.accesses > 0 else 0

    @property
    def miss_rate(self):
        return self.misses/self.accesses if self.accesses > 0 else 0

    @classmethod
    def of(cls, result: AccessResult) -> 'Stats':
        return cls(
            hits=int(result.hit),
            misses=int(result.miss),
            evictions=int(result.eviction),
        )

    def __add__(self, b: 'Stats | AccessResult'):
        if isinstance(b, AccessResult):
            b = Stats.of(b)
        if not isinstance(b, Stats):
            return NotImplemented
        return Stats(
            hits=self.hits + b.hits,
            misses=self.misses + b.misses,
            evictions=self.evictions + b.evictions,
        )

    def __sub__(self, b: 'Stats'):
        return Stats(
            hits=self.hits - b.hits,
            misses=self.misses - b.misses,
            evictions=self.evictions - b.evictions,
        )

    def as_tuple(self):
        return self.hits, self.misses, self.evictions


__all__ = [
    "ADDRESS_BITS",
    "ADDRESS_MASK",
    "MAX_LINES",
    "MAX_SET_BITS",
    "AccessKind",
    "AccessRecord",
    "AccessResult",
    "CacheConfig",
    "ConfigError",
    "CsimError",
    "ReplacementPolicy",
    "SimulatorConfig",
    "Stats",
    "TraceError",
]
