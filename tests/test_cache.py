"""Tests for the cache backends and the simulation store."""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from financeos.config import get_settings
from financeos.simulator.cache import CacheError, MemoryCache, SimulationStore
from financeos.simulator.factories import create_cache, create_store
from financeos.simulator.redis_cache import RedisCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return MemoryCache(clock=clock)


class TestMemoryCache:
    """Tests for the in-process cache."""

    @pytest.mark.asyncio
    async def test_get_set(self, cache):
        await cache.set("key", "value")

        assert await cache.get("key") == "value"
        assert await cache.get("missing") is None

    @pytest.mark.asyncio
    async def test_ttl_expiry(self, cache, clock):
        await cache.set("key", "value", ttl=60)

        clock.now += 59
        assert await cache.get("key") == "value"
        clock.now += 1
        assert await cache.get("key") is None

    @pytest.mark.asyncio
    async def test_delete(self, cache):
        await cache.set("key", "value")
        await cache.delete("key")
        await cache.delete("never-set")

        assert await cache.get("key") is None

    @pytest.mark.asyncio
    async def test_list_push_trim(self, cache):
        for i in range(25):
            await cache.list_push_trim("history", f"sim-{i}", 20)

        items = await cache.list_range("history", 0, -1)
        assert len(items) == 20
        assert items[0] == "sim-24"
        assert items[-1] == "sim-5"
        assert await cache.list_range("history", 0, 2) == ["sim-24", "sim-23", "sim-22"]

    @pytest.mark.asyncio
    async def test_list_range_missing(self, cache):
        assert await cache.list_range("nothing", 0, -1) == []


class TestSimulationStore:
    """Tests for simulation keys, TTLs and history."""

    def test_keys(self):
        assert SimulationStore.timeline_key(7) == "reality-timeline:7"
        assert SimulationStore.simulation_key(7, "sim-1-abc") == "simulation:7:sim-1-abc"
        assert SimulationStore.history_key(7) == "simulations:7:history"

    @pytest.mark.asyncio
    async def test_simulation_expires(self, cache, clock):
        store = SimulationStore(cache, simulation_ttl=100)

        await store.store_simulation(1, "sim-1-aaaaaaaaa", '{"query": "q"}')
        assert await store.get_simulation(1, "sim-1-aaaaaaaaa") == '{"query": "q"}'

        clock.now += 100
        assert await store.get_simulation(1, "sim-1-aaaaaaaaa") is None

    @pytest.mark.asyncio
    async def test_history_newest_first_and_capped(self, cache):
        store = SimulationStore(cache, history_limit=3)

        for i in range(5):
            await store.store_simulation(1, f"sim-{i}", "{}")

        assert await store.get_history(1) == ["sim-4", "sim-3", "sim-2"]
        assert await store.get_history(1, limit=2) == ["sim-4", "sim-3"]
        assert await store.get_history(1, limit=50) == ["sim-4", "sim-3", "sim-2"]
        assert await store.get_history(2) == []

    @pytest.mark.asyncio
    async def test_clear_business_cache(self, cache):
        store = SimulationStore(cache)
        await cache.set(store.timeline_key(1), "[]")
        await cache.set(store.timeline_key(2), "[]")

        await store.clear_business_cache(1)

        assert await cache.get(store.timeline_key(1)) is None
        assert await cache.get(store.timeline_key(2)) == "[]"


class FailingRedis:
    async def get(self, key):
        raise RedisConnectionError("Connection refused")

    async def set(self, key, value, ex=None):
        raise RedisConnectionError("Connection refused")

    async def lrange(self, key, start, stop):
        raise RedisConnectionError("Connection refused")


class RecordingRedis:
    def __init__(self):
        self.calls = []

    async def get(self, key):
        self.calls.append(("get", key))
        return "value"

    async def set(self, key, value, ex=None):
        self.calls.append(("set", key, value, ex))


class TestRedisCache:
    """Tests for the Redis backend with a stand-in client."""

    @pytest.mark.asyncio
    async def test_passes_ttl(self):
        client = RecordingRedis()
        cache = RedisCache("redis://localhost:6379/0", client=client)

        await cache.set("key", "value", ttl=60)

        assert await cache.get("key") == "value"
        assert client.calls == [("set", "key", "value", 60), ("get", "key")]

    @pytest.mark.asyncio
    async def test_errors_become_cache_errors(self):
        cache = RedisCache("redis://localhost:6379/0", client=FailingRedis())

        with pytest.raises(CacheError, match="Connection refused"):
            await cache.get("key")
        with pytest.raises(CacheError):
            await cache.set("key", "value")
        with pytest.raises(CacheError):
            await cache.list_range("key", 0, -1)

    @pytest.mark.asyncio
    async def test_store_survives_outage_on_timeline_write(self):
        store = SimulationStore(RedisCache("redis://localhost:6379/0", client=FailingRedis()))

        await store.set_reality_timeline(1, [])

        assert await store.get_reality_timeline(1) is None


class TestFactories:
    def test_memory_cache_by_default(self):
        assert isinstance(create_cache(), MemoryCache)

    def test_redis_cache_when_configured(self, monkeypatch):
        monkeypatch.setenv("FINANCEOS_REDIS_URL", "redis://localhost:6379/0")
        get_settings.cache_clear()

        cache = create_cache()

        assert isinstance(cache, RedisCache)
        assert cache.url == "redis://localhost:6379/0"

    def test_store_ttls_from_settings(self, monkeypatch):
        monkeypatch.setenv("FINANCEOS_SIMULATION_TTL", "120")
        get_settings.cache_clear()

        store = create_store(MemoryCache())

        assert store.simulation_ttl == 120
        assert store.timeline_ttl == 3600
