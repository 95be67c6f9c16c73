"""Builders and fakes shared by the simulator tests."""

import asyncio

from financeos.simulator.models import Scenario, ScenarioType, TimelinePoint, Verdict


def flat_timeline(months: int = 6, revenue: float = 10000, expenses: float = 6000) -> list[TimelinePoint]:
    points = []
    balance = 0
    for i in range(months):
        balance += revenue - expenses
        points.append(
            TimelinePoint(
                month=f"2024-{i + 1:02d}",
                balance=balance,
                revenue=revenue,
                expenses=expenses,
                events=["Income: Retainer"],
            )
        )
    return points


def scenario(scenario_type: ScenarioType, start_months_ago: int = 3, **fields) -> Scenario:
    fields.setdefault("probability", 1.0)
    return Scenario(type=scenario_type, start_months_ago=start_months_ago, **fields)


class FakeInterpreter:
    """Returns a fixed scenario, or raises the given error."""

    def __init__(self, result=None, error=None):
        self.result = result or scenario(ScenarioType.HIRE, monthly_cost=-3500, one_time_cost=-1200)
        self.error = error
        self.queries = []

    async def interpret(self, query):
        self.queries.append(query)
        if self.error:
            raise self.error
        return self.result


class FakeNarrator:
    """Returns a canned verdict after an optional delay."""

    def __init__(self, error=None, delay=0.0):
        self.error = error
        self.delay = delay

    async def narrate(self, query, scenario, reality, simulation, impact):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return Verdict(
            analysis=f"Balance changes by {impact.amount:.0f}.",
            reasoning=["Salary cost"],
            recommendation="Hold off.",
        )
