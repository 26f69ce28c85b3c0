"""
Tests for the key-value store backends and the cache-aside layer.

Redis is replaced by a fake client object; no server is needed.
"""

import json
from datetime import timedelta

import pytest
import redis

from page_crawler.cache import CacheAsideStore
from page_crawler.config import Settings
from page_crawler.exceptions import StoreError, ConfigError
from page_crawler.schemas import Page, Article, LinkItem
from page_crawler import store as store_module
from page_crawler.store import (
    KeyValueStore,
    RedisStore,
    FileStore,
    MemoryStore,
    create_store,
    init_default_store,
    get_default_store,
    close_default_store,
)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class FakeRedis:
    """Records calls the way redis.Redis would receive them."""

    def __init__(self, fail: bool = False):
        self.data = {}
        self.expiry = {}
        self.fail = fail
        self.closed = False

    def get(self, key):
        if self.fail:
            raise redis.ConnectionError("connection refused")
        return self.data.get(key)

    def set(self, key, value, ex=None):
        if self.fail:
            raise redis.ConnectionError("connection refused")
        self.data[key] = value
        self.expiry[key] = ex
        return True

    def close(self):
        self.closed = True


class FailingStore(KeyValueStore):
    backend = "failing"

    def __init__(self):
        self.set_calls = 0

    def get(self, key):
        raise StoreError("down", backend=self.backend)

    def set(self, key, value, ttl_minutes):
        self.set_calls += 1
        raise StoreError("down", backend=self.backend)


def sample_page(uri: str = "https://example.com/blog") -> Page:
    return Page(
        uri=uri,
        exists=True,
        title="Blog",
        articles=[Article(title="T", uri="/p1", content="<p>x</p>",
                          links=[LinkItem(title="T", uri="/p1")])],
        links=[LinkItem(title="Home", uri="/")],
    )


class Counter:
    def __init__(self, value):
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.value


# --- Store backends ---

def test_memory_store_expires_entries():
    clock = FakeClock()
    store = MemoryStore(clock=clock)
    store.set("k", b"v", ttl_minutes=1)
    assert store.get("k") == b"v"
    clock.now += 59
    assert store.get("k") == b"v"
    clock.now += 1
    assert store.get("k") is None
    assert len(store) == 0


def test_memory_store_set_replaces_value():
    store = MemoryStore()
    store.set("k", b"one", ttl_minutes=5)
    store.set("k", b"two", ttl_minutes=5)
    assert store.get("k") == b"two"
    assert store.get("missing") is None


def test_file_store_round_trip(tmp_path):
    store = FileStore(cache_dir=str(tmp_path))
    assert store.get("page:example.com/a") is None
    store.set("page:example.com/a", b'{"x": 1}', ttl_minutes=10)
    assert store.get("page:example.com/a") == b'{"x": 1}'
    # Keys that sanitize to the same name stay separate
    store.set("page:example.com_a", b"other", ttl_minutes=10)
    assert store.get("page:example.com/a") == b'{"x": 1}'
    assert len(list(tmp_path.glob("*.json"))) == 2


def test_file_store_drops_expired_entries(tmp_path):
    store = FileStore(cache_dir=str(tmp_path))
    store.set("k", b"v", ttl_minutes=0)
    assert store.get("k") is None
    assert list(tmp_path.glob("*.json")) == []


def test_file_store_rejects_corrupt_files(tmp_path):
    store = FileStore(cache_dir=str(tmp_path))
    store.set("k", b"v", ttl_minutes=10)
    cache_file = next(tmp_path.glob("*.json"))
    cache_file.write_text("{not json")
    with pytest.raises(StoreError):
        store.get("k")


def test_redis_store_passes_ttl():
    client = FakeRedis()
    store = RedisStore(client=client)
    assert store.set("page:a", b"payload", ttl_minutes=1440)
    assert client.expiry["page:a"] == timedelta(minutes=1440)
    assert store.get("page:a") == b"payload"
    assert store.get("page:b") is None
    store.close()
    assert client.closed


def test_redis_store_wraps_client_errors():
    store = RedisStore(client=FakeRedis(fail=True))
    with pytest.raises(StoreError) as exc_info:
        store.get("page:a")
    assert exc_info.value.backend == "redis"
    with pytest.raises(StoreError):
        store.set("page:a", b"x", ttl_minutes=1)


def test_create_store_by_backend(tmp_path):
    assert isinstance(create_store(Settings(store_backend="memory")), MemoryStore)
    file_store = create_store(Settings(store_backend="file", cache_dir=str(tmp_path / "c")))
    assert isinstance(file_store, FileStore)
    assert (tmp_path / "c").is_dir()


def test_create_store_rejects_unknown_backend():
    settings = Settings.model_construct(store_backend="memcached")
    with pytest.raises(ConfigError):
        create_store(settings)


def test_default_store_lifecycle(monkeypatch):
    monkeypatch.setattr(store_module, "_default_store", None)
    first = init_default_store(Settings(store_backend="memory"))
    assert get_default_store() is first
    close_default_store()
    assert store_module._default_store is None


# --- Cache-aside ---

def test_hit_returns_stored_value_without_computing():
    store = MemoryStore()
    cache = CacheAsideStore(store, Page)
    cache.write("page:example.com/blog", sample_page(), ttl_minutes=60)

    compute = Counter(sample_page("https://fresh"))
    page, cached = cache.get_or_compute("page:example.com/blog", 60, True, compute)

    assert cached
    assert page.cached
    assert page.uri == "https://example.com/blog"
    assert page.articles[0].links[0].uri == "/p1"
    assert compute.calls == 0


def test_miss_computes_and_writes():
    store = MemoryStore()
    cache = CacheAsideStore(store, Page)
    compute = Counter(sample_page())

    page, cached = cache.get_or_compute("k", 60, True, compute)

    assert not cached
    assert not page.cached
    assert compute.calls == 1
    assert store.get("k") is not None


def test_refresh_always_computes_and_overwrites():
    store = MemoryStore()
    cache = CacheAsideStore(store, Page)
    cache.write("k", sample_page("https://old"), ttl_minutes=60)

    compute = Counter(sample_page("https://new"))
    for _ in range(2):
        page, cached = cache.get_or_compute("k", 60, False, compute)
        assert not cached
        assert page.uri == "https://new"

    assert compute.calls == 2
    assert cache.read("k").uri == "https://new"


def test_freshly_computed_value_is_stored_uncached():
    store = MemoryStore()
    cache = CacheAsideStore(store, Page)
    cache.get_or_compute("k", 60, True, Counter(sample_page()))
    stored = json.loads(store.get("k"))
    assert stored["cached"] is False


def test_payload_is_indented_json_with_stable_field_order():
    store = MemoryStore()
    CacheAsideStore(store, Page).write("k", sample_page(), ttl_minutes=60)
    payload = store.get("k").decode("utf-8")
    assert payload.startswith('{\n  "uri": "https://example.com/blog",\n  "exists": true,')
    assert list(json.loads(payload)) == ["uri", "exists", "cached", "title", "articles", "links"]
    assert list(json.loads(payload)["articles"][0]) == ["title", "uri", "content", "links"]


def test_malformed_payload_is_a_miss():
    store = MemoryStore()
    store.set("k", b"{broken", ttl_minutes=60)
    compute = Counter(sample_page())
    page, cached = CacheAsideStore(store, Page).get_or_compute("k", 60, True, compute)
    assert not cached
    assert compute.calls == 1
    assert json.loads(store.get("k"))["uri"] == page.uri


def test_store_failures_degrade_to_computation():
    store = FailingStore()
    compute = Counter(sample_page())
    page, cached = CacheAsideStore(store, Page).get_or_compute("k", 60, True, compute)
    assert page == sample_page()
    assert not cached
    assert compute.calls == 1
    assert store.set_calls == 1


def test_write_reports_failure():
    assert CacheAsideStore(FailingStore(), Page).write("k", sample_page(), 60) is False
