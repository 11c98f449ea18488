"""Unit tests for the cache core.

These tests focus on the cache model alone (no trace files):

- address decoding into (tag, set_index)
- hit / miss / eviction accounting
- LRU victim choice and the per-set recency bookkeeping
- construction checks, reset and teardown
"""

import pytest
from src.core.cache import Cache, CacheSet, CacheStateError, decode_address


def test_decode_address():
    # 2 sets, 2-byte blocks: block = addr // 2, set = block % 2, tag = block // 2
    assert decode_address(0x0, 2, 2) == (0, 0)
    assert decode_address(0x2, 2, 2) == (0, 1)
    assert decode_address(0x4, 2, 2) == (1, 0)
    assert decode_address(0x5, 2, 2) == (1, 0)
    # 16 sets, 16-byte blocks
    assert decode_address(0x210, 16, 16) == (2, 1)


def test_decode_address_wide():
    # addresses wider than 64 bits decode the same way
    addr = (0xABCD << 70) | (0x3 << 4) | 0x7
    tag, set_index = decode_address(addr, 16, 16)
    assert set_index == 3
    assert tag == (0xABCD << 70) >> 8


def test_decode_single_set():
    # s=0 style geometry: everything maps to set 0
    assert decode_address(0x12345, 1, 16) == (0x1234, 0)


def test_direct_mapped_conflict():
    # E=1, tags A, B, A in the same set: miss, miss+eviction, miss+eviction
    c = Cache(s=1, E=1, b=1)
    assert c.access(0x0) == (False, 0, 0, None)
    assert c.access(0x4) == (False, 0, 0, 0)
    assert c.access(0x0) == (False, 0, 0, 1)
    assert (c.stats.hits, c.stats.misses, c.stats.evictions) == (0, 3, 2)


def test_two_way_working_set_fits():
    # E=2, tags A, B, A, B, A, B: miss, miss, then hits only
    c = Cache(s=1, E=2, b=1)
    hits = [c.access(a)[0] for a in (0x0, 0x4, 0x0, 0x4, 0x0, 0x4)]
    assert hits == [False, False, True, True, True, True]
    assert (c.stats.hits, c.stats.misses, c.stats.evictions) == (4, 2, 0)


def test_two_sets_one_way():
    # s=1, E=1, b=1 with 0x0, 0x2, 0x4 -> sets 0, 1, 0
    c = Cache(s=1, E=1, b=1)
    sets = [c.access(a)[1] for a in (0x0, 0x2, 0x4)]
    assert sets == [0, 1, 0]
    assert (c.stats.hits, c.stats.misses, c.stats.evictions) == (0, 3, 1)


def test_same_block_different_offsets_hit():
    c = Cache(s=2, E=1, b=4)
    assert c.access(0x100)[0] is False
    for off in range(1, 16):
        assert c.access(0x100 + off)[0] is True
    assert c.access(0x110)[0] is False


def test_lru_eviction_picks_least_recent():
    # one set of 2 ways; fill with tags 0 and 1, touch 0, then bring in 2
    c = Cache(s=1, E=2, b=1)
    c.access(0x0)
    c.access(0x4)
    assert c.access(0x0)[0] is True
    hit, set_index, way, evicted = c.access(0x8)
    assert hit is False
    assert set_index == 0
    assert evicted == 1
    assert way == 1
    # tag 0 survived the eviction
    assert c.access(0x0)[0] is True


def test_lru_order_four_way():
    c = Cache(s=0, E=4, b=0)
    for a in (0, 1, 2, 3):
        c.access(a)
    # touch in a new order: 2, 0, 3 -> LRU is 1, then 2
    for a in (2, 0, 3):
        assert c.access(a)[0] is True
    assert c.access(4)[3] == 1
    assert c.access(5)[3] == 2
    assert c.access(6)[3] == 0


def test_fill_uses_first_empty_way():
    c = Cache(s=0, E=4, b=0)
    ways = [c.access(a)[2] for a in (10, 11, 12)]
    assert ways == [0, 1, 2]
    assert c.stats.evictions == 0


def test_recency_bookkeeping():
    c = Cache(s=0, E=3, b=0)
    cset = c.sets[0]
    c.access(7)
    assert cset.max_recency == 1
    # an empty way still counts as the minimum until the set is full
    assert cset.min_recency == 0
    c.access(8)
    c.access(9)
    assert [line.recency for line in cset.lines] == [1, 2, 3]
    assert cset.min_recency == 1
    c.access(7)
    assert [line.recency for line in cset.lines] == [4, 2, 3]
    assert (cset.min_recency, cset.max_recency) == (2, 4)
    # recency stamps of valid lines are all distinct
    stamps = [line.recency for line in cset.lines if line.valid]
    assert len(stamps) == len(set(stamps))


def test_no_duplicate_tags_in_set():
    c = Cache(s=1, E=4, b=2)
    for a in (0x0, 0x8, 0x0, 0x10, 0x8, 0x18, 0x20, 0x0, 0x28):
        c.access(a)
        for cset in c.sets:
            tags = [line.tag for line in cset.lines if line.valid]
            assert len(tags) == len(set(tags))


def test_victim_tie_is_reported():
    cset = CacheSet(2)
    cset.fill(0, 5)
    cset.fill(1, 6)
    # corrupt the stamps so both lines look least recent
    cset.lines[1].recency = cset.lines[0].recency
    cset.min_recency = cset.lines[0].recency
    with pytest.raises(CacheStateError):
        cset.victim()


def test_evictions_bounded_by_misses():
    c = Cache(s=2, E=2, b=3)
    addrs = [(i * 37) % 512 for i in range(300)]
    for a in addrs:
        c.access(a)
    s = c.stats
    assert s.hits + s.misses == len(addrs)
    assert s.evictions <= s.misses


def test_no_evictions_when_each_set_fits():
    # 4 sets x 2 ways: 8 distinct blocks spread 2 per set never evict
    c = Cache(s=2, E=2, b=2)
    blocks = list(range(8))
    for _ in range(5):
        for blk in blocks:
            c.access(blk * 4)
    assert c.stats.evictions == 0
    assert c.stats.misses == 8


def test_invalid_geometry():
    with pytest.raises(ValueError):
        Cache(s=1, E=0, b=1)
    with pytest.raises(ValueError):
        Cache(s=-1, E=1, b=1)
    with pytest.raises(ValueError):
        Cache(s=1, E=1, b=-2)


def test_geometry_is_derived_once():
    c = Cache(s=3, E=2, b=5)
    assert c.num_sets == 8
    assert c.block_size == 32
    assert len(c.sets) == 8
    assert all(len(cset) == 2 for cset in c.sets)
    assert all(not line.valid for cset in c.sets for line in cset.lines)


def test_reset_invalidates_lines():
    c = Cache(s=1, E=1, b=1)
    c.access(0x0)
    assert c.access(0x0)[0] is True
    c.reset()
    assert c.access(0x0)[0] is False
    # reset leaves statistics alone
    assert c.stats.accesses == 3


def test_close_releases_sets():
    with Cache(s=1, E=1, b=1) as c:
        c.access(0x0)
    assert c.closed
    with pytest.raises(CacheStateError):
        c.access(0x0)
    with pytest.raises(CacheStateError):
        c.reset()
