import pytest

from csim.entity.model import ReplacementPolicy
from csim.memory import CacheSet
from csim.memory.replacement import LegacyLRUEngine, StrictLRUEngine, build_engine


def _access(engine, cache_set, tags):
    return [engine.access(cache_set, tag) for tag in tags]


def _recency(cache_set):
    return [line.recency for line in cache_set]


@pytest.mark.ci
def test_fill_then_hit():
    engine = LegacyLRUEngine()
    cache_set = CacheSet(2)
    miss, hit = _access(engine, cache_set, [0xa, 0xa])
    assert (miss.hit, miss.eviction) == (False, False)
    assert (hit.hit, hit.eviction) == (True, False)
    assert cache_set.resident_tags() == [0xa]
    assert _recency(cache_set) == [2, 0]


@pytest.mark.ci
def test_fill_lowest_invalid_line_first():
    engine = LegacyLRUEngine()
    cache_set = CacheSet(4)
    _access(engine, cache_set, [1, 2, 3])
    assert [line.valid for line in cache_set] == [True, True, True, False]
    assert cache_set.resident_tags() == [1, 2, 3]
    assert _recency(cache_set) == [1, 2, 3, 0]


@pytest.mark.ci
@pytest.mark.parametrize("ways", [1, 2, 4, 8])
def test_fill_without_eviction_then_evict_lru(ways):
    engine = LegacyLRUEngine()
    cache_set = CacheSet(ways)
    results = _access(engine, cache_set, range(ways))
    assert not any(r.hit or r.eviction for r in results)
    assert cache_set.is_full()

    result = engine.access(cache_set, ways)
    assert (result.hit, result.eviction) == (False, True)
    # tag 0 was the least recently touched
    assert 0 not in cache_set.resident_tags()
    assert sorted(cache_set.resident_tags()) == list(range(1, ways + 1))


@pytest.mark.ci
def test_victim_tie_breaks_on_lowest_index():
    cache_set = CacheSet(3)
    for way, line in enumerate(cache_set):
        line.fill(tag=way, recency=5)
    assert LegacyLRUEngine.scan(cache_set) == (0, 5)

    result = LegacyLRUEngine().access(cache_set, 9)
    assert result.eviction
    assert cache_set.resident_tags() == [9, 1, 2]
    assert _recency(cache_set) == [6, 5, 5]


@pytest.mark.ci
def test_victim_is_minimum_recency():
    cache_set = CacheSet(4)
    for way, recency in enumerate([4, 2, 7, 2]):
        cache_set[way].fill(tag=way, recency=recency)
    LegacyLRUEngine().access(cache_set, 0x99)
    assert cache_set.resident_tags() == [0, 0x99, 2, 3]
    assert cache_set[1].recency == 8


@pytest.mark.ci
def test_hit_changes_nothing_else():
    engine = LegacyLRUEngine()
    cache_set = CacheSet(2)
    _access(engine, cache_set, [1, 2])
    before = [(line.valid, line.tag) for line in cache_set]
    engine.access(cache_set, 2)
    assert [(line.valid, line.tag) for line in cache_set] == before
    assert _recency(cache_set) == [1, 3]


@pytest.mark.ci
def test_legacy_hit_bumps_by_one():
    # A, B fill with 1 and 2; hitting A only lifts it to 2 so it ties with B
    # and, holding the lower index, is still evicted first.
    engine = LegacyLRUEngine()
    cache_set = CacheSet(2)
    _access(engine, cache_set, [0xa, 0xb, 0xa])
    assert _recency(cache_set) == [2, 2]
    result = engine.access(cache_set, 0xc)
    assert result.eviction
    assert cache_set.resident_tags() == [0xc, 0xb]


@pytest.mark.ci
def test_strict_hit_promotes_to_most_recent():
    engine = StrictLRUEngine()
    cache_set = CacheSet(2)
    _access(engine, cache_set, [0xa, 0xb, 0xa])
    assert _recency(cache_set) == [3, 2]
    result = engine.access(cache_set, 0xc)
    assert result.eviction
    assert cache_set.resident_tags() == [0xa, 0xc]


@pytest.mark.ci
@pytest.mark.parametrize("policy, cls", [
    (ReplacementPolicy.LEGACY_LRU, LegacyLRUEngine),
    (ReplacementPolicy.STRICT_LRU, StrictLRUEngine),
    ("legacy_lru", LegacyLRUEngine),
    ("STRICT_LRU", StrictLRUEngine),
])
def test_build_engine(policy, cls):
    engine = build_engine(policy)
    assert isinstance(engine, cls)
    assert engine.policy == ReplacementPolicy(policy)


@pytest.mark.ci
def test_build_engine_unknown_policy():
    with pytest.raises(ValueError):
        build_engine("fifo")


@pytest.mark.ci
def test_cache_set_needs_a_line():
    with pytest.raises(ValueError):
        CacheSet(0)
