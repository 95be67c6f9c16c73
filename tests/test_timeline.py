"""Tests for the reality timeline builder."""

from datetime import date

import pytest

from financeos.domain.errors import NotFoundError
from financeos.simulator.cache import Cache, CacheError, MemoryCache, SimulationStore
from financeos.simulator.timeline import TimelineBuilder, round_half_up

TODAY = date(2024, 6, 15)


@pytest.fixture
def store():
    return SimulationStore(MemoryCache())


@pytest.fixture
def builder(temp_db, store):
    return TimelineBuilder(temp_db, store, lookback_months=6, today=lambda: TODAY)


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(-2.5) == -2
    assert round_half_up(354.16) == 354


def test_empty_history(builder, business):
    points = builder.compute(business.id)

    assert [p.month for p in points] == ["2024-01", "2024-02", "2024-03", "2024-04", "2024-05", "2024-06"]
    assert all(p.revenue == 0 and p.expenses == 0 and p.balance == 0 for p in points)
    assert all(p.events == ["No data"] for p in points)


def test_aggregates_by_month(builder, post, business):
    post("INCOME", "1000.40", "1100", "4100", description="Project A", on=date(2024, 3, 3))
    post("INCOME", "500", "1100", "4100", description="Project B", on=date(2024, 3, 20))
    post("EXPENSE", "300", "1100", "5100", description="Rent", on=date(2024, 3, 25))
    post("EXPENSE", "200", "1100", "5100", description="Rent", on=date(2024, 4, 25))
    post("TRANSFER", "5000", "1100", "3000", description="Owner money", on=date(2024, 4, 1))

    points = {p.month: p for p in builder.compute(business.id)}

    assert points["2024-03"].revenue == 1500
    assert points["2024-03"].expenses == 300
    assert points["2024-03"].events == ["Income: Project A", "Income: Project B", "Expense: Rent"]
    assert points["2024-04"].revenue == 0
    assert points["2024-04"].expenses == 200
    assert points["2024-06"].balance == 1000


def test_balance_law(builder, post, business):
    post("INCOME", "800", "1100", "4100", on=date(2024, 1, 10))
    post("EXPENSE", "1300", "1100", "5100", on=date(2024, 2, 10))
    post("INCOME", "2500", "1100", "4100", on=date(2024, 5, 10))

    points = builder.compute(business.id)

    previous = 0
    for point in points:
        assert point.balance == previous + point.revenue - point.expenses
        previous = point.balance


def test_ignores_older_transactions(builder, post, business):
    post("INCOME", "999", "1100", "4100", on=date(2023, 12, 31))

    points = builder.compute(business.id)

    assert points[0].revenue == 0
    assert points[-1].balance == 0


def test_events_capped_at_five(builder, post, business):
    for i in range(7):
        post("INCOME", "10", "1100", "4100", description=f"Sale {i}", on=date(2024, 6, 1))

    june = builder.compute(business.id)[-1]

    assert june.revenue == 70
    assert len(june.events) == 5


def test_revenue_growth_metadata(builder, post, business):
    post("INCOME", "1000", "1100", "4100", on=date(2024, 4, 10))
    post("INCOME", "1500", "1100", "4100", on=date(2024, 5, 10))

    points = {p.month: p for p in builder.compute(business.id)}

    assert points["2024-05"].metadata.revenue_growth == 50.0
    assert points["2024-05"].metadata.key_drivers == ["Real transaction data"]


def test_unknown_business(builder):
    with pytest.raises(NotFoundError):
        builder.compute(999)


@pytest.mark.asyncio
async def test_fetch_caches(builder, store, post, business):
    post("INCOME", "100", "1100", "4100", on=date(2024, 6, 1))

    first = await builder.fetch(business.id)
    post("INCOME", "900", "1100", "4100", on=date(2024, 6, 2))
    second = await builder.fetch(business.id)

    assert first.from_cache is False
    assert second.from_cache is True
    assert [p.model_dump() for p in second.points] == [p.model_dump() for p in first.points]

    await store.clear_business_cache(business.id)
    third = await builder.fetch(business.id)

    assert third.from_cache is False
    assert third.points[-1].revenue == 1000


@pytest.mark.asyncio
async def test_unreadable_cache_entry_is_a_miss(builder, store, business):
    await store.cache.set(store.timeline_key(business.id), "not json")

    result = await builder.fetch(business.id)

    assert result.from_cache is False
    assert len(result.points) == 6


class BrokenCache(Cache):
    """Cache whose backend is down."""

    async def get(self, key):
        raise CacheError("connection refused")

    async def set(self, key, value, ttl=None):
        raise CacheError("connection refused")

    async def delete(self, key):
        raise CacheError("connection refused")

    async def list_push_trim(self, key, value, max_len):
        raise CacheError("connection refused")

    async def list_range(self, key, start, stop):
        raise CacheError("connection refused")


@pytest.mark.asyncio
async def test_cache_outage_falls_back_to_database(temp_db, business):
    builder = TimelineBuilder(temp_db, SimulationStore(BrokenCache()), today=lambda: TODAY)

    points = await builder.build(business.id)

    assert len(points) == 6
