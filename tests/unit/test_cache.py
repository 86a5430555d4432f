import pytest

from src.brain.cache import CacheEntry, MaxEntriesEviction, TTLCache


class FakeClock:
    def __init__(self, t: float = 1000.0):
        self.t = t

    def __call__(self) -> float:
        return self.t


def test_ttl_expiry_is_lazy_and_exact():
    clock = FakeClock()
    c = TTLCache(10, clock=clock)
    c.put("a", 1)

    clock.t += 9.9
    assert c.get("a") == 1

    clock.t += 0.1
    assert c.get("a") is None
    assert len(c) == 0


def test_max_entries_drops_oldest():
    clock = FakeClock()
    c = TTLCache(60, eviction=MaxEntriesEviction(2), clock=clock)
    for k in ("a", "b", "c"):
        c.put(k, k.upper())
        clock.t += 1

    assert "a" not in c
    assert c.get("b") == "B"
    assert c.get("c") == "C"


def test_max_entries_validates():
    with pytest.raises(ValueError):
        MaxEntriesEviction(0)


def test_injected_store_is_used():
    backing = {}
    c = TTLCache(60, store=backing, clock=FakeClock(5.0))
    c.put("riverside|all", ("r1",))
    assert isinstance(backing["riverside|all"], CacheEntry)
    assert backing["riverside|all"].ts == 5.0


def test_invalidate_and_clear():
    c = TTLCache(60)
    c.put("a", 1)
    c.put("b", 2)
    c.invalidate("a")
    assert c.snapshot() == {"b": 2}
    c.clear()
    assert len(c) == 0
