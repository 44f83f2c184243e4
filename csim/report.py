from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from csim.entity.model import AccessRecord, AccessResult, CacheConfig, ReplacementPolicy, Stats
from csim.entity.report import GeometryReport, SimulationReport

import logging
logger = logging.getLogger(__name__)


def format_summary(stats: Stats) -> str:
    return "hits:%d misses:%d evictions:%d" % stats.as_tuple()


def format_step(record: AccessRecord, results: List[AccessResult]) -> str:
    """One verbose line per record, e.g. ``M 20,1 miss eviction hit``."""
    words = [f"{record.kind.value} {record.address:x},{record.size}"]
    for result in results:
        words.append("hit" if result.hit else "miss")
        if result.eviction:
            words.append("eviction")
    return " ".join(words)


def build_report(
    config: CacheConfig,
    policy: ReplacementPolicy,
    stats: Stats,
    breakdown: Optional[Dict[str, int]] = None,
    trace: Optional[str] = None,
) -> SimulationReport:
    return SimulationReport(
        cache=GeometryReport(s=config.s, E=config.E, b=config.b, S=config.S, B=config.B),
        policy=policy.value,
        trace=trace,
        hits=stats.hits,
        misses=stats.misses,
        evictions=stats.evictions,
        hit_rate=stats.hit_rate,
        miss_rate=stats.miss_rate,
        breakdown=dict(sorted((breakdown or {}).items())),
    )


def write_report(report: SimulationReport, report_path: str) -> Dict:
    report_dict = asdict(report)
    report_str = yaml.dump(report_dict, sort_keys=False, indent=2)
    path = Path(report_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report_str)
    logger.debug(report_dict)
    logger.info("report generated at %s", report_path)
    return report_dict


__all__ = ["build_report", "format_step", "format_summary", "write_report"]
