"""Simulation run context

Builds a cache from a validated configuration, replays a trace through it,
tears the cache down and hands back the statistics.
"""
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, TextIO, Tuple

from src.core.cache import Cache
from src.core.simulator import CacheSimulator
from src.core.trace import read_trace
from src.data.stats_export import RESULTS_FILE, Statistics


@dataclass
class SimulationConfig:
    """Geometry and run options, fixed before the first access."""
    s: int = 0
    E: int = 0
    b: int = 0
    trace_file: Optional[str] = None
    verbose: bool = False
    results_path: Optional[str] = RESULTS_FILE
    history_interval: int = 0

    def validate(self):
        if self.s < 1 or self.E < 1 or self.b < 1:
            raise ValueError("s, E and b must all be >= 1")
        if not self.trace_file:
            raise ValueError("a trace file is required")

    @property
    def num_sets(self) -> int:
        return 1 << self.s

    @property
    def block_size(self) -> int:
        return 1 << self.b

    @property
    def capacity_bytes(self) -> int:
        return self.num_sets * self.E * self.block_size


class Simulation:
    def __init__(self, config: SimulationConfig, out: Optional[TextIO] = None):
        config.validate()
        self.config = config
        self.out = out

    def run(self) -> Statistics:
        """Replay the configured trace file on a fresh cache."""
        cfg = self.config
        stats = Statistics(history_interval=cfg.history_interval)
        with read_trace(cfg.trace_file) as events, Cache(cfg.s, cfg.E, cfg.b, stats=stats) as cache:
            sim = CacheSimulator(cache, verbose=cfg.verbose, out=self.out)
            sim.run_stream(events)
        return stats


def sweep(trace_file: str, geometries: Iterable[Tuple[int, int, int]]) -> List[dict]:
    """Replay one trace against several (s, E, b) geometries.

    Every geometry gets its own freshly built cache.
    """
    base = SimulationConfig(trace_file=trace_file, results_path=None)
    rows = []
    for s, E, b in geometries:
        stats = Simulation(replace(base, s=s, E=E, b=b)).run()
        rows.append({
            's': s,
            'E': E,
            'b': b,
            'hits': stats.hits,
            'misses': stats.misses,
            'evictions': stats.evictions,
            'hit_rate': stats.hit_rate,
        })
    return rows
