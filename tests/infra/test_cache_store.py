from phish_link_guard.domain.result import AnalysisResult, CacheEntry
from phish_link_guard.infra.cache import CachePolicy, InMemoryCacheStore

HOUR = 3600.0


def _result(url="https://a.example/", level="safe"):
    return AnalysisResult(url=url, threat_level=level)


def test_set_then_get_records_store_time(clock):
    cache = InMemoryCacheStore(clock=clock)
    cache.set("https://a.example/", _result())
    entry = cache.get("https://a.example/")
    assert entry.result.url == "https://a.example/"
    assert entry.stored_at == clock.now
    assert "https://a.example/" in cache


def test_entries_expire_by_verdict_ttl(clock):
    cache = InMemoryCacheStore(clock=clock)
    cache.set("safe", _result(level="safe"))
    cache.set("suspicious", _result(level="suspicious"))
    cache.set("unknown", _result(level="unknown"))
    cache.set("dangerous", _result(level="dangerous"))

    clock.advance(HOUR + 1)
    assert cache.get("suspicious") is None
    assert cache.get("unknown") is None
    assert cache.get("safe") is not None

    clock.advance(24 * HOUR)
    assert cache.get("safe") is None
    assert cache.get("dangerous") is not None
    assert len(cache) == 1


def test_capacity_evicts_oldest(clock):
    cache = InMemoryCacheStore(CachePolicy(max_entries=3), clock=clock)
    for name in ("a", "b", "c", "d"):
        cache.set(name, _result(url=name))
        clock.advance(1)
    assert len(cache) == 3
    assert "a" not in cache
    assert cache.evict_oldest(2) == 2
    assert "d" in cache
    assert len(cache) == 1


def test_reuse_windows_for_risky_verdicts():
    policy = CachePolicy()
    dangerous = CacheEntry(result=_result(level="dangerous"), stored_at=0.0)
    suspicious = CacheEntry(result=_result(level="suspicious"), stored_at=0.0)
    safe = CacheEntry(result=_result(level="safe"), stored_at=0.0)
    assert policy.should_reuse(dangerous, HOUR - 1) is True
    assert policy.should_reuse(dangerous, HOUR + 1) is False
    assert policy.should_reuse(suspicious, 6 * HOUR - 1) is True
    assert policy.should_reuse(suspicious, 6 * HOUR + 1) is False
    assert policy.should_reuse(safe, 20 * HOUR) is True


def test_clear_empties_cache(clock):
    cache = InMemoryCacheStore(clock=clock)
    cache.set("a", _result())
    cache.clear()
    assert len(cache) == 0
