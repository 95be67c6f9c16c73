"""Key-value cache interface and the simulation store built on it."""

import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

import structlog
from pydantic import TypeAdapter, ValidationError

from financeos.simulator.models import TimelinePoint

logger = structlog.get_logger(__name__)

_timeline_adapter = TypeAdapter(list[TimelinePoint])


class CacheError(Exception):
    """The cache backend failed (connection lost, timeout, ...)."""


class Cache(ABC):
    """Async key-value cache with expiring string values and capped lists."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the value at key, or None when missing or expired."""
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """Store a value, expiring after ttl seconds when given."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass

    @abstractmethod
    async def list_push_trim(self, key: str, value: str, max_len: int) -> None:
        """Push to the head of a list and keep only the first max_len items."""
        pass

    @abstractmethod
    async def list_range(self, key: str, start: int, stop: int) -> list[str]:
        """Return list items from start to stop inclusive (stop=-1 is the end)."""
        pass

    async def close(self) -> None:
        pass


class MemoryCache(Cache):
    """In-process cache used when no Redis URL is configured."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._values: dict[str, tuple[str, Optional[float]]] = {}
        self._lists: dict[str, list[str]] = {}

    async def get(self, key: str) -> Optional[str]:
        item = self._values.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and self._clock() >= expires_at:
            del self._values[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        expires_at = self._clock() + ttl if ttl is not None else None
        self._values[key] = (value, expires_at)

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)
        self._lists.pop(key, None)

    async def list_push_trim(self, key: str, value: str, max_len: int) -> None:
        items = self._lists.setdefault(key, [])
        items.insert(0, value)
        del items[max_len:]

    async def list_range(self, key: str, start: int, stop: int) -> list[str]:
        items = self._lists.get(key, [])
        end = None if stop == -1 else stop + 1
        return items[start:end]


class SimulationStore:
    """Business-scoped keys and TTLs for timelines and simulation results."""

    def __init__(
        self,
        cache: Cache,
        timeline_ttl: int = 3600,
        simulation_ttl: int = 604800,
        history_limit: int = 20,
    ):
        self.cache = cache
        self.timeline_ttl = timeline_ttl
        self.simulation_ttl = simulation_ttl
        self.history_limit = history_limit

    @staticmethod
    def timeline_key(business_id: int) -> str:
        return f"reality-timeline:{business_id}"

    @staticmethod
    def simulation_key(business_id: int, simulation_id: str) -> str:
        return f"simulation:{business_id}:{simulation_id}"

    @staticmethod
    def history_key(business_id: int) -> str:
        return f"simulations:{business_id}:history"

    async def get_reality_timeline(self, business_id: int) -> Optional[list[TimelinePoint]]:
        """Return the cached timeline; an unreadable entry counts as a miss."""
        try:
            raw = await self.cache.get(self.timeline_key(business_id))
        except CacheError as e:
            logger.warning("timeline_cache_unavailable", business_id=business_id, error=str(e))
            return None
        if raw is None:
            return None
        try:
            return _timeline_adapter.validate_json(raw)
        except ValidationError:
            logger.warning("timeline_cache_unreadable", business_id=business_id)
            return None

    async def set_reality_timeline(self, business_id: int, timeline: list[TimelinePoint]) -> None:
        payload = _timeline_adapter.dump_json(timeline, by_alias=True).decode()
        try:
            await self.cache.set(self.timeline_key(business_id), payload, ttl=self.timeline_ttl)
        except CacheError as e:
            # A failed write only costs a recompute next time
            logger.warning("timeline_cache_write_failed", business_id=business_id, error=str(e))

    async def clear_business_cache(self, business_id: int) -> None:
        """Drop the cached reality timeline so the next run rebuilds it."""
        await self.cache.delete(self.timeline_key(business_id))
        logger.info("timeline_cache_cleared", business_id=business_id)

    async def store_simulation(self, business_id: int, simulation_id: str, payload: str) -> None:
        """Store a serialized result and record its ID in the history list."""
        await self.cache.set(
            self.simulation_key(business_id, simulation_id), payload, ttl=self.simulation_ttl
        )
        await self.cache.list_push_trim(self.history_key(business_id), simulation_id, self.history_limit)

    async def get_simulation(self, business_id: int, simulation_id: str) -> Optional[str]:
        return await self.cache.get(self.simulation_key(business_id, simulation_id))

    async def get_history(self, business_id: int, limit: Optional[int] = None) -> list[str]:
        """Most recent simulation IDs, newest first."""
        limit = min(limit or self.history_limit, self.history_limit)
        return await self.cache.list_range(self.history_key(business_id), 0, limit - 1)
