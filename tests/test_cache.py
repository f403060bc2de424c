# tests/test_cache.py
import time
from concurrent.futures import ThreadPoolExecutor

from equity_screener.data import cache as cache_module
from equity_screener.data.cache import DataCache


def test_make_key_is_order_independent_and_distinct():
    a = DataCache.make_key("eod/AAPL.US", {"from": "2024-01-01", "fmt": "json"})
    b = DataCache.make_key("eod/AAPL.US", {"fmt": "json", "from": "2024-01-01"})
    c = DataCache.make_key("eod/AAPL.US", {"from": "2023-01-01", "fmt": "json"})
    assert a == b
    assert a != c
    assert DataCache.make_key("eod/AAPL.US", {}) == "eod/AAPL.US"


def test_set_then_get(memory_cache):
    memory_cache.set("k", {"close": 1.5}, ttl_hours=24)
    assert memory_cache.get("k") == (True, {"close": 1.5})
    assert memory_cache.get("missing") == (False, None)


def test_entries_expire(memory_cache, monkeypatch):
    now = time.time()
    monkeypatch.setattr(cache_module.time, "time", lambda: now)
    memory_cache.set("k", [1, 2, 3], ttl_hours=1)

    monkeypatch.setattr(cache_module.time, "time", lambda: now + 3599)
    assert memory_cache.get("k") == (True, [1, 2, 3])

    monkeypatch.setattr(cache_module.time, "time", lambda: now + 3601)
    assert memory_cache.get("k") == (False, None)


def test_set_supersedes_previous_value(memory_cache):
    memory_cache.set("k", "old", ttl_hours=1)
    memory_cache.set("k", "new", ttl_hours=1)
    assert memory_cache.get("k") == (True, "new")


def test_disk_entries_survive_a_new_instance(tmp_path):
    DataCache(cache_dir=tmp_path).set("k", {"a": 1}, ttl_hours=24)
    assert DataCache(cache_dir=tmp_path).get("k") == (True, {"a": 1})


def test_expired_disk_entry_is_a_miss(tmp_path, monkeypatch):
    now = time.time()
    monkeypatch.setattr(cache_module.time, "time", lambda: now)
    DataCache(cache_dir=tmp_path).set("k", "v", ttl_hours=1)

    monkeypatch.setattr(cache_module.time, "time", lambda: now + 7200)
    assert DataCache(cache_dir=tmp_path).get("k") == (False, None)


def test_corrupt_disk_entry_is_a_miss(tmp_path):
    cache = DataCache(cache_dir=tmp_path)
    cache.set("k", "v", ttl_hours=1)
    for path in tmp_path.glob("*.json"):
        path.write_text("{not json")
    assert DataCache(cache_dir=tmp_path).get("k") == (False, None)


def test_lru_eviction(tmp_path):
    cache = DataCache(cache_dir=tmp_path, max_memory_items=2, enable_disk_cache=False)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")
    cache.set("c", 3)
    assert cache.get("a") == (True, 1)
    assert cache.get("b") == (False, None)
    assert cache.get("c") == (True, 3)


def test_clear_and_stats(tmp_path, monkeypatch):
    now = time.time()
    monkeypatch.setattr(cache_module.time, "time", lambda: now)
    cache = DataCache(cache_dir=tmp_path)
    cache.set("fresh", 1, ttl_hours=10)
    cache.set("stale", 2, ttl_hours=1)

    stats = cache.get_stats()
    assert stats["memory_entries"] == 2
    assert stats["disk_entries"] == 2

    monkeypatch.setattr(cache_module.time, "time", lambda: now + 7200)
    assert cache.clear_expired() >= 1
    assert cache.get("fresh") == (True, 1)
    assert cache.get("stale") == (False, None)

    cache.clear()
    assert cache.get_stats()["disk_entries"] == 0
    assert cache.get("fresh") == (False, None)


def test_concurrent_writers_and_readers(tmp_path):
    cache = DataCache(cache_dir=tmp_path, max_memory_items=4)
    written = {f"v{i}" for i in range(8)}

    def worker(i):
        seen = []
        for n in range(50):
            cache.set("shared", f"v{i}", ttl_hours=1)
            cache.set(f"own-{i}", n, ttl_hours=1)
            seen.append(cache.get("shared"))
            assert cache.get(f"own-{i}") == (True, n)
        return seen

    with ThreadPoolExecutor(max_workers=8) as executor:
        results = list(executor.map(worker, range(8)))

    for seen in results:
        for hit, value in seen:
            assert hit and value in written
    assert list(tmp_path.glob("*.tmp")) == []

    reloaded = DataCache(cache_dir=tmp_path)
    hit, value = reloaded.get("shared")
    assert hit and value in written
    assert reloaded.get("own-3") == (True, 49)
