from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import click
from tqdm import tqdm

from csim.entity.model import ConfigError, ReplacementPolicy, SimulatorConfig, TraceError
from csim.report import build_report, format_step, format_summary, write_report
from csim.simulator import Simulator
from csim.trace import TraceReader
from csim.utils.config_utils import dict_to_dataclass, load_yaml

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _configure_logging(log_file: Optional[str], debug: bool) -> None:
    root = logging.getLogger()
    level = logging.DEBUG if debug else logging.INFO
    if log_file:
        log_path = Path(log_file).resolve()
        # Avoid adding duplicate handlers for the same file
        for handler in root.handlers:
            if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == log_path:
                break
        else:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(log_path, encoding="utf-8")
            handler.setLevel(level)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root.addHandler(handler)
        if root.level > level or root.level == logging.NOTSET:
            root.setLevel(level)
    else:
        logging.basicConfig(level=level if debug else logging.WARNING, format=LOG_FORMAT)


def _merge_config(config_file: Optional[str], overrides: Dict[str, Any]) -> SimulatorConfig:
    data: Dict[str, Any] = {}
    if config_file:
        data = load_yaml(config_file)
        if not isinstance(data, dict):
            raise ConfigError(f"{config_file} does not hold a mapping")
        trace = data.get("trace")
        if trace and not os.path.isabs(trace):
            data["trace"] = os.path.join(os.path.dirname(config_file), trace)

    cache = dict(data.get("cache") or {})
    for key in ("s", "E", "b"):
        if overrides.get(key) is not None:
            cache[key] = overrides[key]
    missing = [f"-{key}" for key in ("s", "E", "b") if cache.get(key) is None]
    data["cache"] = cache
    for key in ("policy", "trace"):
        if overrides.get(key) is not None:
            data[key] = overrides[key]
    if overrides.get("verbose"):
        data["verbose"] = True
    if not data.get("trace"):
        missing.append("-t")
    if missing:
        raise ConfigError(f"Missing required command line argument: {' '.join(missing)}")

    try:
        return dict_to_dataclass(data, SimulatorConfig)
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"invalid configuration: {e}") from e


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-s", "set_bits", type=int, help="Number of set index bits (S = 2^s sets).")
@click.option("-E", "lines_per_set", type=int, help="Number of lines per set (associativity).")
@click.option("-b", "block_bits", type=int, help="Number of block offset bits (B = 2^b bytes).")
@click.option("-t", "trace_file", type=click.Path(dir_okay=False), help="Trace file to replay.")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Print the outcome of every record.")
@click.option("-c", "--config", "config_file", type=click.Path(exists=True, dir_okay=False),
              help="YAML config with cache geometry, policy and trace; options override it.")
@click.option("--policy", type=click.Choice([p.value for p in ReplacementPolicy]), default=None,
              help="Replacement policy, legacy_lru keeps the csim counter semantics.")
@click.option("--report", "report_path", type=click.Path(dir_okay=False), default=None,
              help="Write a YAML report to this path.")
@click.option("--progress", is_flag=True, default=False, help="Show a progress bar over the trace.")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Append logs to this file.")
@click.option("--debug", is_flag=True, default=False, help="Log every eviction decision.")
def main(set_bits, lines_per_set, block_bits, trace_file, verbose, config_file, policy,
         report_path, progress, log_file, debug):
    """Replay a valgrind memory trace against a set-associative LRU cache.

    \b
    Examples:
      csim -s 4 -E 1 -b 4 -t traces/yi.trace
      csim -v -s 8 -E 2 -b 4 -t traces/yi.trace
    """
    _configure_logging(log_file, debug)
    try:
        config = _merge_config(config_file, {
            "s": set_bits,
            "E": lines_per_set,
            "b": block_bits,
            "trace": trace_file,
            "policy": policy,
            "verbose": verbose,
        })
    except ConfigError as e:
        raise click.UsageError(str(e)) from e

    logger.info("config: %s", config)

    def echo_step(record, results):
        if results:
            click.echo(format_step(record, results))

    try:
        with TraceReader(config.trace) as reader, Simulator(config.cache, config.policy) as sim:
            records = tqdm(reader, desc="csim", unit="rec", disable=not progress)
            try:
                stats = sim.run(records, on_step=echo_step if config.verbose else None)
            finally:
                records.close()
            breakdown = sim.kind_stat()
    except TraceError as e:
        raise click.FileError(config.trace, hint=str(e)) from e

    click.echo(format_summary(stats))

    if report_path:
        report = build_report(config.cache, config.policy, stats, breakdown, trace=config.trace)
        write_report(report, report_path)


if __name__ == "__main__":
    main()
