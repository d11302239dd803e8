import json
import time

from party_cart.db import init_db
from party_cart.repositories.storage_repo import (
    MemoryStorageBackend,
    QuotaExceededError,
    SqlStorageBackend,
)
from party_cart.services.durable_store import DurableStore

DAY_MS = 24 * 60 * 60 * 1000


def setup_module(module):
    init_db()


def _store(backend=None):
    store = DurableStore(backend if backend is not None else MemoryStorageBackend())
    store.init()
    return store


class FlakyBackend(MemoryStorageBackend):
    """Raises QuotaExceededError on the first `failures` real writes."""

    def __init__(self, failures=1):
        super().__init__()
        self.failures = failures

    def set_item(self, key, value):
        if key != "__storage_probe__" and self.failures:
            self.failures -= 1
            raise QuotaExceededError("storage full")
        super().set_item(key, value)


class BrokenBackend(MemoryStorageBackend):
    def set_item(self, key, value):
        raise OSError("disk gone")


def test_set_and_get_json_values():
    store = _store()
    assert store.set("unified-cart", [{"id": "sku1", "quantity": 2}]) is True
    assert store.get("unified-cart") == [{"id": "sku1", "quantity": 2}]
    assert store.get("missing", default=[]) == []


def test_malformed_json_is_a_cache_miss():
    backend = MemoryStorageBackend()
    store = _store(backend)
    backend.set_item("partyondelivery_customer", "{not json")
    assert store.get("partyondelivery_customer") is None
    assert store.get("partyondelivery_customer", default={}) == {}


def test_unavailable_store_degrades_without_raising():
    store = DurableStore(None)
    assert store.init() is False
    assert store.get("unified-cart", default=[]) == []
    assert store.set("unified-cart", []) is False
    assert store.remove("unified-cart") is False
    assert store.keys() == []


def test_failing_probe_marks_store_unavailable():
    store = DurableStore(BrokenBackend())
    assert store.init() is False
    assert store.set("k", 1) is False


def test_unserializable_value_returns_false():
    store = _store()
    assert store.set("k", {"when": object()}) is False


def test_quota_failure_runs_cleanup_once_then_retries(monkeypatch):
    store = _store(FlakyBackend(failures=1))
    calls = []
    original = store.evict_stale

    def spy(exclude=None):
        calls.append(exclude)
        return original(exclude=exclude)

    monkeypatch.setattr(store, "evict_stale", spy)

    assert store.set("unified-cart", [{"id": "beer1"}]) is True
    assert calls == ["unified-cart"]
    assert store.get("unified-cart") == [{"id": "beer1"}]


def test_quota_failure_after_cleanup_returns_false(monkeypatch):
    store = _store(FlakyBackend(failures=2))
    calls = []
    monkeypatch.setattr(store, "evict_stale", lambda exclude=None: calls.append(exclude) or 0)
    assert store.set("unified-cart", []) is False
    assert len(calls) == 1


def test_eviction_removes_only_stale_and_corrupt_prefixed_entries():
    backend = MemoryStorageBackend()
    store = _store(backend)
    now_ms = time.time() * 1000

    backend.set_item("partyondelivery_old", json.dumps({"timestamp": now_ms - 8 * DAY_MS, "data": "x" * 500}))
    backend.set_item("partyondelivery_fresh", json.dumps({"timestamp": now_ms, "data": "y"}))
    backend.set_item("partyondelivery_bad", "{not json")
    backend.set_item("other_old", json.dumps({"timestamp": now_ms - 30 * DAY_MS}))
    backend.quota_bytes = 400

    assert store.set("unified-cart", [{"id": "a"}]) is True

    keys = set(backend.keys())
    assert "partyondelivery_old" not in keys
    assert "partyondelivery_bad" not in keys
    assert {"partyondelivery_fresh", "other_old", "unified-cart"} <= keys


def test_eviction_skips_the_key_being_written():
    backend = MemoryStorageBackend()
    store = _store(backend)
    old = json.dumps({"timestamp": 0})
    backend.set_item("partyondelivery_cart", old)
    assert store.evict_stale(exclude="partyondelivery_cart") == 0
    assert backend.get_item("partyondelivery_cart") == old


def test_sql_backend_round_trip_and_namespace_isolation():
    a = _store(SqlStorageBackend("ns-store-a"))
    b = _store(SqlStorageBackend("ns-store-b"))
    assert a.available and b.available

    assert a.set("unified-cart", [{"id": "sku1"}]) is True
    assert a.get("unified-cart") == [{"id": "sku1"}]
    assert b.get("unified-cart") is None

    assert a.set("unified-cart", []) is True
    assert a.get("unified-cart") == []
    assert a.remove("unified-cart") is True
    assert a.get("unified-cart") is None


def test_sql_backend_enforces_quota():
    backend = SqlStorageBackend("ns-store-quota", quota_bytes=64)
    store = _store(backend)
    assert store.set("small", "ok") is True
    assert store.set("big", "z" * 200) is False
    assert store.get("big") is None
    assert store.get("small") == "ok"
