"""CacheSimulator replays trace events against the core Cache.
Load/store make one access, modify makes two, instruction fetches none.
"""
import sys
from typing import Iterable, List, Optional, Callable, TextIO

from .cache import Cache
from .trace import TraceEvent


class CacheSimulator:
    def __init__(self, cache: Cache, verbose: bool = False, out: Optional[TextIO] = None):
        self.cache = cache
        self.verbose = verbose
        self.out = out
        self.sequence: List[TraceEvent] = []
        self.index = 0

    @property
    def stats(self):
        return self.cache.stats

    def reset(self):
        # clear stats and rewind the sequence pointer
        self.stats.reset()
        self.index = 0
        # also clear cache contents
        self.cache.reset()

    def load_sequence(self, events: Iterable[TraceEvent]):
        self.sequence = list(events)
        self.index = 0

    def has_next(self) -> bool:
        return self.index < len(self.sequence)

    def replay(self, event: TraceEvent) -> dict:
        """Feed one event to the cache and describe what happened."""
        outcomes = []
        for _ in range(event.op.access_count):
            hit, set_index, way_index, evicted_tag = self.cache.access(event.address)
            if hit:
                outcomes.append('hit')
            elif evicted_tag is not None:
                outcomes.append('miss eviction')
            else:
                outcomes.append('miss')

        if self.verbose and outcomes:
            print(str(event), *outcomes, file=self.out or sys.stdout)

        return {
            'op': event.op.value,
            'address': event.address,
            'size': event.size,
            'outcomes': outcomes,
            'stats': self.stats.as_dict(),
        }

    def step(self) -> Optional[dict]:
        if not self.has_next():
            return None
        event = self.sequence[self.index]
        self.index += 1
        return self.replay(event)

    def run_all(self, callback: Optional[Callable[[dict], None]] = None):
        while self.has_next():
            info = self.step()
            if callback:
                callback(info)

    def run_stream(self, events: Iterable[TraceEvent], callback: Optional[Callable[[dict], None]] = None):
        """Replay events straight from an iterator without buffering them."""
        for event in events:
            info = self.replay(event)
            if callback:
                callback(info)
