"""Core cache implementation

This file provides the set-associative LRU cache model used by the simulator.
Behavior:
- Cache is composed of S = 2**s sets; each set has E lines (ways).
  block_addr = address // B      (B = 2**b)
  set_index = block_addr % S
  tag = block_addr // S
- Each line carries a recency stamp. A hit or a fill gives the line a stamp
  one above the current maximum of its set, so the least recently used line
  is the one with the smallest stamp.
- access() counts the outcome in `self.stats` and returns
  (hit:bool, set_index:int, way_index:int, evicted_tag:Optional[int])
"""

from dataclasses import dataclass
from typing import Optional, List, Tuple

from ..data.stats_export import Statistics


class CacheStateError(RuntimeError):
    """Raised when the cache bookkeeping is inconsistent or the cache is closed."""


def decode_address(address: int, num_sets: int, block_size: int) -> Tuple[int, int]:
    """Decode address into (tag, set_index).

    The block offset (address % block_size) is dropped: hits and misses are
    decided per block.
    """
    block_addr = address // block_size
    return block_addr // num_sets, block_addr % num_sets


@dataclass
class CacheLine:
    """container for a cache line (way).

    Fields:
    - valid: whether the line currently holds a block
    - tag: the tag stored in the line
    - recency: logical timestamp of the last use, larger = more recent
    """

    valid: bool = False
    tag: int = 0
    recency: int = 0


class CacheSet:
    """Fixed group of `associativity` lines; decides LRU among them."""

    def __init__(self, associativity: int):
        self.lines: List[CacheLine] = [CacheLine() for _ in range(associativity)]
        self.max_recency = 0
        self.min_recency = 0

    def __len__(self):
        return len(self.lines)

    def lookup(self, tag: int) -> Optional[int]:
        """Return the way holding `tag`, or None."""
        for wi, line in enumerate(self.lines):
            if line.valid and line.tag == tag:
                return wi
        return None

    def first_empty(self) -> Optional[int]:
        for wi, line in enumerate(self.lines):
            if not line.valid:
                return wi
        return None

    def victim(self) -> int:
        """Pick the way to evict: lowest recency, lowest index on ties.

        Stamps are handed out strictly increasing, so two valid lines can
        never share the minimum. A tie means the stamps were corrupted.
        """
        victim_index = None
        for wi, line in enumerate(self.lines):
            if line.recency != self.min_recency:
                continue
            if victim_index is not None:
                raise CacheStateError(
                    f"ways {victim_index} and {wi} share recency {self.min_recency}")
            victim_index = wi
        if victim_index is None:
            raise CacheStateError(f"no line carries the minimum recency {self.min_recency}")
        return victim_index

    def touch(self, way: int) -> None:
        """Mark `way` most recently used and refresh min/max."""
        self.max_recency += 1
        self.lines[way].recency = self.max_recency
        self.min_recency = min(line.recency for line in self.lines)

    def fill(self, way: int, tag: int) -> None:
        line = self.lines[way]
        line.tag = tag
        line.valid = True
        self.touch(way)

    def reset(self):
        for line in self.lines:
            line.valid = False
            line.tag = 0
            line.recency = 0
        self.max_recency = 0
        self.min_recency = 0


class Cache:
    """Set-associative cache with LRU replacement.
    """

    def __init__(self, s: int, E: int, b: int, stats: Optional[Statistics] = None):
        # basic checks
        if s < 0:
            raise ValueError("set index bits must be >= 0")
        if E < 1:
            raise ValueError("associativity must be >= 1")
        if b < 0:
            raise ValueError("block offset bits must be >= 0")

        self.s = s
        self.associativity = E
        self.b = b
        self.num_sets = 1 << s
        self.block_size = 1 << b
        self.stats = stats if stats is not None else Statistics()

        # allocate the sets matrix: num_sets x associativity
        self.sets: Optional[List[CacheSet]] = [CacheSet(E) for _ in range(self.num_sets)]

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def closed(self) -> bool:
        return self.sets is None

    def _decode(self, address: int) -> Tuple[int, int]:
        return decode_address(address, self.num_sets, self.block_size)

    def access(self, address: int) -> Tuple[bool, int, int, Optional[int]]:
        """Perform a cache access.

        Returns a tuple:
        (hit: bool, set_index: int, way_index: int, evicted_tag: Optional[int])

        - hit: whether the access hit in cache
        - way_index: the line that now holds the block
        - evicted_tag: tag of the replaced block if an eviction happened
        """
        if self.sets is None:
            raise CacheStateError("cache is closed")

        tag, set_index = self._decode(address)
        cache_set = self.sets[set_index]

        # search for hit
        wi = cache_set.lookup(tag)
        if wi is not None:
            cache_set.touch(wi)
            self.stats.record_access(hit=True)
            return True, set_index, wi, None

        # miss: use a free way if there is one
        wi = cache_set.first_empty()
        if wi is not None:
            cache_set.fill(wi, tag)
            self.stats.record_access(hit=False)
            return False, set_index, wi, None

        # set is full: replace the least recently used line
        wi = cache_set.victim()
        evicted_tag = cache_set.lines[wi].tag
        cache_set.fill(wi, tag)
        self.stats.record_access(hit=False, evicted=True)
        return False, set_index, wi, evicted_tag

    def reset(self):
        """Invalidate every line. Statistics are left alone."""
        if self.sets is None:
            raise CacheStateError("cache is closed")
        for cache_set in self.sets:
            cache_set.reset()

    def close(self):
        """Release the sets. Further accesses raise CacheStateError."""
        self.sets = None
