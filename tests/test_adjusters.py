"""Tests for scenario adjusters."""

import pytest

from financeos.simulator.adjusters import AdjusterAssumptions, ScenarioAdjuster
from financeos.simulator.errors import ScenarioError
from financeos.simulator.models import ScenarioType, TimelineMetadata

from simulator_helpers import flat_timeline, scenario


@pytest.fixture
def adjuster():
    return ScenarioAdjuster()


def assert_balance_law(points):
    previous = 0
    for point in points:
        assert point.balance == previous + point.revenue - point.expenses
        previous = point.balance


class TestStartIndex:
    """Tests for locating the first affected month."""

    def test_months_ago(self):
        assert ScenarioAdjuster.start_index(6, 0) == 5
        assert ScenarioAdjuster.start_index(6, 3) == 2
        assert ScenarioAdjuster.start_index(6, 5) == 0

    def test_clamped_to_first_month(self):
        assert ScenarioAdjuster.start_index(6, 10) == 0


def test_every_type_has_a_handler(adjuster):
    reality = flat_timeline()

    for scenario_type in ScenarioType:
        simulation = adjuster.adjust(reality, scenario(scenario_type, monthly_cost=-100, one_time_cost=-100))
        assert len(simulation) == len(reality)
        assert_balance_law(simulation)
        assert scenario_type in ScenarioAdjuster.SIMULATION_LABELS


def test_reality_is_not_modified(adjuster):
    reality = flat_timeline()
    before = [p.model_dump() for p in reality]

    adjuster.adjust(reality, scenario(ScenarioType.HIRE, monthly_cost=-3500, one_time_cost=-1200))

    assert [p.model_dump() for p in reality] == before


def test_months_before_start_untouched(adjuster):
    reality = flat_timeline()

    simulation = adjuster.adjust(reality, scenario(ScenarioType.EXPENSE, start_months_ago=1, one_time_cost=-500))

    assert [p.model_dump() for p in simulation[:4]] == [p.model_dump() for p in reality[:4]]


def test_empty_reality(adjuster):
    with pytest.raises(ScenarioError) as exc_info:
        adjuster.adjust([], scenario(ScenarioType.HIRE))

    assert exc_info.value.stage == "adjust"


class TestNewClient:
    """Tests for the new client scenario."""

    def test_first_month(self, adjuster):
        simulation = adjuster.adjust(
            flat_timeline(),
            scenario(
                ScenarioType.NEW_CLIENT,
                start_months_ago=3,
                monthly_revenue=5000,
                one_time_cost=-1200,
                growth_factor=0.1,
                probability=0.85,
            ),
        )

        first = simulation[2]
        assert first.revenue == 15000
        assert first.expenses == 7200
        assert "New client onboarding cost: $1,200" in first.events
        assert simulation[1].revenue == 10000
        assert_balance_law(simulation)

    def test_expansion_ramps_up(self, adjuster):
        simulation = adjuster.adjust(
            flat_timeline(),
            scenario(
                ScenarioType.NEW_CLIENT,
                start_months_ago=5,
                monthly_revenue=5000,
                growth_factor=0.1,
                probability=0.85,
            ),
        )

        # 5000 * 0.1 * 5/6 * 0.85 = 354.17
        assert simulation[5].revenue == 15354
        assert simulation[5].expenses == 6000

    def test_expansion_capped_after_ramp(self, adjuster):
        simulation = adjuster.adjust(
            flat_timeline(months=8),
            scenario(
                ScenarioType.NEW_CLIENT,
                start_months_ago=7,
                monthly_revenue=5000,
                growth_factor=0.1,
                probability=0.85,
            ),
        )

        # Ramp is complete from the sixth month on: 5000 * 0.1 * 0.85 = 425
        assert simulation[6].revenue == 15425
        assert simulation[7].revenue == 15425


class TestHire:
    """Tests for the hiring scenario."""

    def test_costs_and_ramp(self, adjuster):
        simulation = adjuster.adjust(
            flat_timeline(),
            scenario(
                ScenarioType.HIRE,
                monthly_cost=-3500,
                one_time_cost=-1200,
                growth_factor=0.15,
                probability=0.8,
            ),
        )

        assert simulation[2].expenses == 10700
        assert simulation[2].revenue == 10360
        assert "Hired new employee (one-time cost: $1,200)" in simulation[2].events
        assert simulation[3].expenses == 9500
        assert simulation[5].revenue == 11200
        assert simulation[2].metadata.expense_changes == {"new_hire_salary": 3500}

    def test_default_growth(self, adjuster):
        simulation = adjuster.adjust(flat_timeline(), scenario(ScenarioType.HIRE, start_months_ago=0, monthly_cost=-1000))

        # 0.15 default growth * 30% productivity
        assert simulation[5].revenue == 10450


class TestOtherScenarios:
    """Tests for the remaining scenario types."""

    def test_fire(self, adjuster):
        simulation = adjuster.adjust(flat_timeline(), scenario(ScenarioType.FIRE, start_months_ago=0, monthly_cost=-3000))

        assert simulation[5].expenses == 3000
        assert simulation[5].revenue == 9000

    def test_price_increase_churn_capped(self, adjuster):
        simulation = adjuster.adjust(
            flat_timeline(), scenario(ScenarioType.PRICE_INCREASE, start_months_ago=5, growth_factor=0.1)
        )

        assert simulation[0].revenue == 11000
        assert simulation[1].revenue == 10670
        assert simulation[5].revenue == 9900

    def test_price_decrease_acquisition(self, adjuster):
        simulation = adjuster.adjust(
            flat_timeline(), scenario(ScenarioType.PRICE_DECREASE, start_months_ago=5, growth_factor=0.1)
        )

        assert simulation[0].revenue == 9000
        assert simulation[2].revenue == 9900
        assert simulation[5].revenue == 10800

    def test_lose_client(self, adjuster):
        simulation = adjuster.adjust(
            flat_timeline(), scenario(ScenarioType.LOSE_CLIENT, start_months_ago=0, monthly_revenue=4000)
        )

        last = simulation[5]
        assert last.revenue == 6000
        assert last.expenses == 4800
        assert "Lost major client (MRR: $4,000)" in last.events

    def test_lose_client_floors_at_zero(self, adjuster):
        simulation = adjuster.adjust(
            flat_timeline(), scenario(ScenarioType.LOSE_CLIENT, start_months_ago=0, monthly_revenue=20000)
        )

        assert simulation[5].revenue == 0
        assert simulation[5].expenses == 0

    def test_investment(self, adjuster):
        simulation = adjuster.adjust(
            flat_timeline(),
            scenario(ScenarioType.INVESTMENT, start_months_ago=1, one_time_cost=-8000, growth_factor=0.2),
        )

        assert simulation[4].expenses == 14000
        assert simulation[4].revenue == 10400
        assert simulation[5].revenue == 10800

    def test_expense_with_revenue_drag(self, adjuster):
        simulation = adjuster.adjust(
            flat_timeline(),
            scenario(ScenarioType.EXPENSE, start_months_ago=0, one_time_cost=-2000, growth_factor=-0.05),
        )

        assert simulation[5].expenses == 8000
        assert simulation[5].revenue == 9500
        assert "Unexpected expense: $2,000" in simulation[5].events


def _reality_with_metadata():
    reality = flat_timeline()
    for point in reality:
        point.metadata = TimelineMetadata(
            revenue_growth=12.5,
            expense_changes={"payroll": 400.0},
            key_drivers=["Real transaction data"],
        )
    return reality


class TestMetadata:
    """Scenario annotations merge into the month's existing metadata."""

    def test_unset_fields_keep_reality_values(self, adjuster):
        reality = _reality_with_metadata()

        simulation = adjuster.adjust(reality, scenario(ScenarioType.EXPENSE, start_months_ago=0, one_time_cost=-2000))
        metadata = simulation[5].metadata

        assert metadata.revenue_growth == 12.5
        assert metadata.expense_changes == {"payroll": 400.0, "one_time_expense": 2000, "ongoing_expense": 0}
        assert metadata.key_drivers == ["Unplanned expense"]
        assert reality[5].metadata.expense_changes == {"payroll": 400.0}
        assert simulation[4].metadata == reality[4].metadata

    def test_handler_fields_override(self, adjuster):
        simulation = adjuster.adjust(
            _reality_with_metadata(),
            scenario(ScenarioType.EXPENSE, start_months_ago=0, one_time_cost=-2000, growth_factor=-0.05),
        )

        assert simulation[5].metadata.revenue_growth == pytest.approx(-5.0)
        assert simulation[5].metadata.expense_changes["payroll"] == 400.0

    def test_hire_replaces_growth(self, adjuster):
        simulation = adjuster.adjust(
            _reality_with_metadata(), scenario(ScenarioType.HIRE, start_months_ago=0, monthly_cost=-1000)
        )
        metadata = simulation[5].metadata

        assert metadata.revenue_growth == pytest.approx(4.5)
        assert metadata.expense_changes == {"payroll": 400.0, "new_hire_salary": 1000}
        assert metadata.key_drivers == ["New hire productivity: 30%"]


def test_custom_assumptions():
    adjuster = ScenarioAdjuster(AdjusterAssumptions(fire_default_revenue_loss=0.0))

    simulation = adjuster.adjust(flat_timeline(), scenario(ScenarioType.FIRE, start_months_ago=0, monthly_cost=-1000))

    assert simulation[5].revenue == 10000
