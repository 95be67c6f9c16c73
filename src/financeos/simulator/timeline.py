"""Reality timeline: monthly revenue, expenses and balance from real transactions."""

import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable, Optional

import structlog

from financeos.database.base import Database
from financeos.domain.entities import TransactionType
from financeos.domain.errors import NotFoundError, business_not_found
from financeos.simulator.cache import SimulationStore
from financeos.simulator.models import TimelineMetadata, TimelinePoint
from financeos.utils.date_parser import end_of_month, month_key, trailing_months

logger = structlog.get_logger(__name__)

MAX_EVENTS_PER_MONTH = 5


def round_half_up(value) -> int:
    """Round to the nearest integer; halves round towards positive infinity."""
    half = Decimal("0.5") if isinstance(value, Decimal) else 0.5
    return math.floor(value + half)


@dataclass(frozen=True)
class TimelineFetch:
    points: list[TimelinePoint]
    from_cache: bool


class TimelineBuilder:
    """Builds and caches a business's reality timeline."""

    def __init__(
        self,
        db: Database,
        store: SimulationStore,
        lookback_months: int = 6,
        today: Optional[Callable[[], date]] = None,
    ):
        if lookback_months < 1:
            raise ValueError("lookback_months must be at least 1")
        self.db = db
        self.store = store
        self.lookback_months = lookback_months
        self._today = today or date.today

    async def build(self, business_id: int) -> list[TimelinePoint]:
        return (await self.fetch(business_id)).points

    async def fetch(self, business_id: int) -> TimelineFetch:
        """Return the cached timeline, computing and caching it on a miss."""
        cached = await self.store.get_reality_timeline(business_id)
        if cached is not None:
            logger.debug("timeline_cache_hit", business_id=business_id)
            return TimelineFetch(cached, from_cache=True)

        logger.debug("timeline_cache_miss", business_id=business_id)
        points = self.compute(business_id)
        await self.store.set_reality_timeline(business_id, points)
        return TimelineFetch(points, from_cache=False)

    def compute(self, business_id: int) -> list[TimelinePoint]:
        """Aggregate transactions into one point per month, ending this month.

        INCOME counts as revenue and EXPENSE as expenses; transfers move money
        between accounts and are ignored. Empty months are kept with zero
        flows so the timeline always has ``lookback_months`` points.

        Raises:
            NotFoundError: If the business doesn't exist
        """
        if self.db.get_business(business_id) is None:
            raise NotFoundError(business_not_found(business_id))

        months = trailing_months(self.lookback_months, self._today())
        transactions = self.db.list_transactions(
            business_id, start_date=months[0], end_date=end_of_month(months[-1])
        )
        transactions.sort(key=lambda t: (t.date, t.id))

        buckets: dict[str, dict] = {
            month_key(m): {"revenue": Decimal("0"), "expenses": Decimal("0"), "events": [], "count": 0}
            for m in months
        }
        for txn in transactions:
            bucket = buckets[month_key(txn.date)]
            if txn.transaction_type == TransactionType.INCOME:
                bucket["revenue"] += txn.amount
                bucket["events"].append(f"Income: {txn.description}")
            elif txn.transaction_type == TransactionType.EXPENSE:
                bucket["expenses"] += txn.amount
                bucket["events"].append(f"Expense: {txn.description}")
            else:
                continue
            bucket["count"] += 1

        points: list[TimelinePoint] = []
        balance = 0
        previous_revenue: Optional[int] = None
        for month in months:
            key = month_key(month)
            bucket = buckets[key]
            revenue = round_half_up(bucket["revenue"])
            expenses = round_half_up(bucket["expenses"])
            balance += revenue - expenses

            if bucket["count"] == 0:
                events = ["No data"]
                metadata = TimelineMetadata()
            else:
                events = bucket["events"][:MAX_EVENTS_PER_MONTH]
                growth = 0.0
                if previous_revenue:
                    growth = round((revenue - previous_revenue) / previous_revenue * 100, 1)
                metadata = TimelineMetadata(revenue_growth=growth, key_drivers=["Real transaction data"])

            points.append(
                TimelinePoint(
                    month=key,
                    balance=balance,
                    revenue=revenue,
                    expenses=expenses,
                    events=events,
                    metadata=metadata,
                )
            )
            previous_revenue = revenue

        logger.info(
            "timeline_computed",
            business_id=business_id,
            months=len(points),
            transactions=len(transactions),
        )
        return points
