from __future__ import annotations

from opdiff.sessions.cache import CacheStats, SessionCache, SessionInfo


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


INFO = SessionInfo(session_file="/p/h/s.jsonl", project_hash="h", session_id="s")


def test_get_counts_hits_and_misses() -> None:
    cache = SessionCache(clock=FakeClock())
    cache.set("uid-1", INFO)

    assert cache.get("uid-1") == INFO
    assert cache.get("uid-2") is None
    assert cache.stats() == CacheStats(hits=1, misses=1, hit_rate=0.5)


def test_entries_expire_after_ttl() -> None:
    clock = FakeClock()
    cache = SessionCache(ttl_seconds=10, clock=clock)
    cache.set("uid", INFO)

    clock.now += 10
    assert cache.has("uid") is True

    clock.now += 0.5
    assert cache.get("uid") is None
    assert len(cache) == 0
    assert cache.stats().misses == 1


def test_has_does_not_touch_statistics() -> None:
    cache = SessionCache(clock=FakeClock())
    cache.set("uid", INFO)

    assert cache.has("uid")
    assert not cache.has("other")
    assert cache.stats() == CacheStats(hits=0, misses=0, hit_rate=0.0)


def test_delete_and_clear() -> None:
    cache = SessionCache(clock=FakeClock())
    cache.set("a", INFO)
    cache.set("b", INFO)

    cache.delete("a")
    cache.delete("missing")
    assert not cache.has("a")
    assert cache.has("b")

    cache.clear()
    assert len(cache) == 0
