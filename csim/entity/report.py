from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class GeometryReport:
    s: int
    E: int
    b: int
    S: int
    B: int


@dataclass
class SimulationReport:
    cache: GeometryReport
    policy: str
    trace: Optional[str]
    hits: int
    misses: int
    evictions: int
    hit_rate: float
    miss_rate: float
    breakdown: Dict[str, int] = field(default_factory=dict)


__all__ = ["GeometryReport", "SimulationReport"]
