"""Tests for impact computation."""

import pytest

from financeos.simulator.adjusters import ScenarioAdjuster
from financeos.simulator.errors import ScenarioError
from financeos.simulator.models import ScenarioType
from financeos.simulator.verdict import NO_CHANGES, compute_impact

from simulator_helpers import flat_timeline, scenario


@pytest.fixture
def reality():
    return flat_timeline()


def test_identical_timelines(reality):
    impact = compute_impact(reality, [p.model_copy(deep=True) for p in reality])

    assert impact.amount == 0
    assert impact.percent == 0
    assert impact.revenue_delta == 0
    assert impact.expense_delta == 0
    assert all(m.key_factors == [NO_CHANGES] for m in impact.breakdown_by_month)


def test_one_time_expense(reality):
    simulation = ScenarioAdjuster().adjust(
        reality, scenario(ScenarioType.EXPENSE, start_months_ago=0, one_time_cost=-1000)
    )

    impact = compute_impact(reality, simulation)

    assert impact.amount == -1000
    # -1000 / 24000 = -4.17%
    assert impact.percent == -4.2
    assert impact.revenue_delta == 0
    assert impact.expense_delta == 1000

    last = impact.breakdown_by_month[-1]
    assert last.month == "2024-06"
    assert last.difference == -1000
    assert last.cumulative_difference == -1000
    assert last.key_factors == ["Unexpected expense: $1,000"]
    assert impact.breakdown_by_month[0].key_factors == [NO_CHANGES]


def test_cumulative_difference_accumulates(reality):
    simulation = ScenarioAdjuster().adjust(
        reality, scenario(ScenarioType.FIRE, start_months_ago=2, monthly_cost=-1000, growth_factor=0.05)
    )

    impact = compute_impact(reality, simulation)

    # Each affected month: +1000 saved, -500 revenue
    differences = [m.difference for m in impact.breakdown_by_month]
    cumulative = [m.cumulative_difference for m in impact.breakdown_by_month]
    assert differences == [0, 0, 0, 500, 500, 500]
    assert cumulative == [0, 0, 0, 500, 1000, 1500]
    assert impact.amount == 1500
    assert impact.revenue_delta == -1500
    assert impact.expense_delta == -3000


def test_zero_real_balance():
    reality = flat_timeline(revenue=5000, expenses=5000)
    simulation = ScenarioAdjuster().adjust(
        reality, scenario(ScenarioType.EXPENSE, start_months_ago=0, one_time_cost=-100)
    )

    impact = compute_impact(reality, simulation)

    assert impact.amount == -100
    assert impact.percent == 0


def test_length_mismatch(reality):
    with pytest.raises(ScenarioError) as exc_info:
        compute_impact(reality, reality[:-1])

    assert exc_info.value.stage == "impact"


def test_empty_timeline(reality):
    with pytest.raises(ScenarioError):
        compute_impact([], reality)


def test_serializes_camel_case(reality):
    impact = compute_impact(reality, reality)

    data = impact.model_dump(by_alias=True)

    assert set(data) == {"amount", "percent", "revenueDelta", "expenseDelta", "breakdownByMonth"}
    assert set(data["breakdownByMonth"][0]) == {"month", "difference", "cumulativeDifference", "keyFactors"}
