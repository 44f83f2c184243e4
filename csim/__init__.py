"""
Trace driven set-associative cache simulator.

Replays valgrind memory traces (load, store, modify) against a cache with
2^s sets of E lines and 2^b byte blocks, counting hits, misses and evictions
under LRU replacement.
"""

from csim.entity.model import (
    AccessKind,
    AccessRecord,
    AccessResult,
    CacheConfig,
    ConfigError,
    CsimError,
    ReplacementPolicy,
    SimulatorConfig,
    Stats,
    TraceError,
)
from csim.simulator import Simulator, simulate
from csim.trace import TraceReader, iter_trace, read_trace

__version__ = "0.1.0"

__all__ = [
    "AccessKind",
    "AccessRecord",
    "AccessResult",
    "CacheConfig",
    "ConfigError",
    "CsimError",
    "ReplacementPolicy",
    "Simulator",
    "SimulatorConfig",
    "Stats",
    "TraceError",
    "TraceReader",
    "iter_trace",
    "read_trace",
    "simulate",
]
