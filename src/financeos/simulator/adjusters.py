"""Scenario adjusters: replay a hypothetical change onto a copy of reality."""

from dataclasses import dataclass
from typing import Callable

import structlog

from financeos.simulator.errors import ScenarioError
from financeos.simulator.models import Scenario, ScenarioType, TimelinePoint
from financeos.simulator.timeline import round_half_up

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AdjusterAssumptions:
    """Business assumptions behind the scenario formulas.

    Curves are indexed by months since the change took effect; the last
    value applies from then on. Defaults apply when a scenario leaves its
    growth factor at 0.
    """

    hire_productivity_curve: tuple[float, ...] = (0.3, 0.5, 0.7, 1.0, 1.0, 1.0)
    hire_default_growth: float = 0.15
    fire_default_revenue_loss: float = 0.10
    price_default_change: float = 0.15
    churn_per_month: float = 0.03
    churn_cap: float = 0.10
    acquisition_per_month: float = 0.05
    acquisition_cap: float = 0.20
    client_default_expansion: float = 0.10
    expansion_ramp_months: int = 6
    lost_client_cost_saving: float = 0.30
    investment_roi_curve: tuple[float, ...] = (0.2, 0.4, 0.6, 0.8, 1.0, 1.0)
    investment_default_growth: float = 0.20


def _usd(amount: float) -> str:
    if float(amount).is_integer():
        return f"${amount:,.0f}"
    return f"${amount:,.2f}"


def _pct(rate: float) -> int:
    return round_half_up(rate * 100)


def _curve(curve: tuple[float, ...], months_active: int) -> float:
    return curve[min(months_active, len(curve) - 1)]


def _annotate(point: TimelinePoint, **fields) -> None:
    """Merge annotations into the month's metadata.

    Fields not passed keep the values the month already had; expense
    changes are merged key by key.
    """
    if "expense_changes" in fields:
        fields["expense_changes"] = {**point.metadata.expense_changes, **fields["expense_changes"]}
    point.metadata = point.metadata.model_copy(update=fields)


Handler = Callable[[TimelinePoint, Scenario, int], None]


class ScenarioAdjuster:
    """Applies a scenario to a reality timeline.

    Each scenario type has one handler that adjusts a single month in place;
    ``adjust`` works on a deep copy and recomputes balances afterwards.
    """

    SIMULATION_LABELS = {
        ScenarioType.HIRE: "Hiring",
        ScenarioType.FIRE: "Firing",
        ScenarioType.PRICE_INCREASE: "Price increase",
        ScenarioType.PRICE_DECREASE: "Price decrease",
        ScenarioType.NEW_CLIENT: "New client",
        ScenarioType.LOSE_CLIENT: "Lost client",
        ScenarioType.INVESTMENT: "Investment",
        ScenarioType.EXPENSE: "Expense",
    }

    def __init__(self, assumptions: AdjusterAssumptions | None = None):
        self.assumptions = assumptions or AdjusterAssumptions()
        self._handlers: dict[ScenarioType, Handler] = {
            ScenarioType.HIRE: self._hire,
            ScenarioType.FIRE: self._fire,
            ScenarioType.PRICE_INCREASE: self._price_increase,
            ScenarioType.PRICE_DECREASE: self._price_decrease,
            ScenarioType.NEW_CLIENT: self._new_client,
            ScenarioType.LOSE_CLIENT: self._lose_client,
            ScenarioType.INVESTMENT: self._investment,
            ScenarioType.EXPENSE: self._expense,
        }

    @staticmethod
    def start_index(length: int, start_months_ago: int) -> int:
        """Index of the first affected month, clamped to the earliest month."""
        return max(0, length - 1 - start_months_ago)

    def adjust(self, reality: list[TimelinePoint], scenario: Scenario) -> list[TimelinePoint]:
        """Return the simulated timeline; ``reality`` is left untouched.

        Raises:
            ScenarioError: If the timeline is empty or the type has no handler
        """
        if not reality:
            raise ScenarioError("adjust", "Missing reality timeline")
        handler = self._handlers.get(scenario.type)
        if handler is None:
            raise ScenarioError("adjust", f"Unknown scenario type: {scenario.type}")

        simulation = [point.model_copy(deep=True) for point in reality]
        start = self.start_index(len(simulation), scenario.start_months_ago)

        for i in range(start, len(simulation)):
            point = simulation[i]
            handler(point, scenario, i - start)
            previous = 0 if i == 0 else simulation[i - 1].balance
            point.balance = previous + point.revenue - point.expenses

        logger.debug(
            "scenario_applied",
            scenario_type=scenario.type.value,
            start_index=start,
            months=len(simulation) - start,
        )
        return simulation

    def _hire(self, point: TimelinePoint, scenario: Scenario, months_active: int) -> None:
        a = self.assumptions
        point.expenses += abs(scenario.monthly_cost)
        if months_active == 0 and scenario.one_time_cost:
            point.expenses += abs(scenario.one_time_cost)
            point.events.append(f"Hired new employee (one-time cost: {_usd(abs(scenario.one_time_cost))})")

        productivity = _curve(a.hire_productivity_curve, months_active)
        impact = (scenario.growth_factor or a.hire_default_growth) * productivity * scenario.probability
        point.revenue = round_half_up(point.revenue * (1 + impact))

        point.events.append(
            f"Employee month {months_active + 1} ({_pct(productivity)}% productive, +{_pct(impact)}% revenue)"
        )
        _annotate(
            point,
            revenue_growth=impact * 100,
            expense_changes={"new_hire_salary": abs(scenario.monthly_cost)},
            key_drivers=[f"New hire productivity: {_pct(productivity)}%"],
        )

    def _fire(self, point: TimelinePoint, scenario: Scenario, months_active: int) -> None:
        savings = abs(scenario.monthly_cost)
        point.expenses = max(0, point.expenses - savings)
        if months_active == 0 and scenario.one_time_cost:
            point.expenses += abs(scenario.one_time_cost)
            point.events.append(f"Severance payment: {_usd(abs(scenario.one_time_cost))}")

        loss = scenario.growth_factor or self.assumptions.fire_default_revenue_loss
        point.revenue = round_half_up(point.revenue * (1 - loss * scenario.probability))

        point.events.append(f"Employee terminated (saved {_usd(savings)}/mo, -{_pct(loss)}% revenue)")
        _annotate(
            point,
            revenue_growth=-loss * 100,
            expense_changes={"salary_savings": savings},
            key_drivers=["Reduced headcount"],
        )

    def _price_increase(self, point: TimelinePoint, scenario: Scenario, months_active: int) -> None:
        a = self.assumptions
        change = scenario.growth_factor or a.price_default_change
        increase = change * scenario.probability
        point.revenue = round_half_up(point.revenue * (1 + increase))

        churn = min(months_active * a.churn_per_month, a.churn_cap)
        point.revenue = round_half_up(point.revenue * (1 - churn))

        point.events.append(f"Prices increased {_pct(change)}% ({_pct(churn)}% customer churn)")
        _annotate(
            point,
            revenue_growth=(increase - churn) * 100,
            key_drivers=[f"Price increase: +{_pct(change)}%", f"Churn rate: {_pct(churn)}%"],
        )

    def _price_decrease(self, point: TimelinePoint, scenario: Scenario, months_active: int) -> None:
        a = self.assumptions
        change = scenario.growth_factor or a.price_default_change
        loss = change * scenario.probability
        point.revenue = round_half_up(point.revenue * (1 - loss))

        acquisition = min(months_active * a.acquisition_per_month, a.acquisition_cap)
        point.revenue = round_half_up(point.revenue * (1 + acquisition))

        point.events.append(f"Prices decreased {_pct(change)}% (+{_pct(acquisition)}% new customers)")
        _annotate(
            point,
            revenue_growth=(acquisition - loss) * 100,
            key_drivers=[f"Price decrease: -{_pct(change)}%", f"New customers: +{_pct(acquisition)}%"],
        )

    def _new_client(self, point: TimelinePoint, scenario: Scenario, months_active: int) -> None:
        a = self.assumptions
        monthly_revenue = abs(scenario.monthly_revenue)
        point.revenue += monthly_revenue

        ramp = min(months_active / a.expansion_ramp_months, 1)
        expansion_rate = (scenario.growth_factor or a.client_default_expansion) * ramp
        expansion = round_half_up(monthly_revenue * expansion_rate * scenario.probability)
        point.revenue += expansion

        if months_active == 0 and scenario.one_time_cost:
            point.expenses += abs(scenario.one_time_cost)
            point.events.append(f"New client onboarding cost: {_usd(abs(scenario.one_time_cost))}")

        point.events.append(f"New client MRR: {_usd(monthly_revenue)} (+{_pct(expansion_rate)}% expansion)")
        _annotate(
            point,
            revenue_growth=(monthly_revenue + expansion) / point.revenue * 100 if point.revenue else 0.0,
            key_drivers=[f"New client MRR: {_usd(monthly_revenue)}", f"Account expansion: {_pct(expansion_rate)}%"],
        )

    def _lose_client(self, point: TimelinePoint, scenario: Scenario, months_active: int) -> None:
        monthly_loss = abs(scenario.monthly_revenue)
        point.revenue = max(0, point.revenue - monthly_loss)

        savings = round_half_up(monthly_loss * self.assumptions.lost_client_cost_saving)
        point.expenses = max(0, point.expenses - savings)

        if months_active == 0:
            point.events.append(f"Lost major client (MRR: {_usd(monthly_loss)})")
        point.events.append(f"Client loss impact: -{_usd(monthly_loss)} revenue, -{_usd(savings)} costs")
        _annotate(
            point,
            revenue_growth=-(monthly_loss / point.revenue) * 100 if point.revenue else 0.0,
            expense_changes={"cost_savings": -savings},
            key_drivers=[f"Lost client MRR: -{_usd(monthly_loss)}"],
        )

    def _investment(self, point: TimelinePoint, scenario: Scenario, months_active: int) -> None:
        a = self.assumptions
        if months_active == 0 and scenario.one_time_cost:
            point.expenses += abs(scenario.one_time_cost)
            point.events.append(f"Investment made: {_usd(abs(scenario.one_time_cost))}")
        if scenario.monthly_cost:
            point.expenses += abs(scenario.monthly_cost)

        roi = _curve(a.investment_roi_curve, months_active)
        impact = (scenario.growth_factor or a.investment_default_growth) * roi * scenario.probability
        point.revenue = round_half_up(point.revenue * (1 + impact))

        point.events.append(f"Investment ROI: {_pct(roi)}% realized (+{_pct(impact)}% revenue)")
        _annotate(
            point,
            revenue_growth=impact * 100,
            expense_changes={
                "investment_cost": abs(scenario.one_time_cost) if months_active == 0 else 0.0,
                "ongoing_cost": abs(scenario.monthly_cost),
            },
            key_drivers=[f"ROI realization: {_pct(roi)}%"],
        )

    def _expense(self, point: TimelinePoint, scenario: Scenario, months_active: int) -> None:
        if months_active == 0 and scenario.one_time_cost:
            point.expenses += abs(scenario.one_time_cost)
            point.events.append(f"Unexpected expense: {_usd(abs(scenario.one_time_cost))}")
        if scenario.monthly_cost:
            point.expenses += abs(scenario.monthly_cost)
            point.events.append(f"Ongoing cost: {_usd(abs(scenario.monthly_cost))}/mo")

        # A negative growth factor models lost revenue (downtime, distraction)
        if scenario.growth_factor < 0:
            drag = abs(scenario.growth_factor)
            point.revenue = round_half_up(point.revenue * (1 - drag * scenario.probability))
            point.events.append(f"Revenue impact: -{_pct(drag)}%")
            _annotate(point, revenue_growth=-drag * scenario.probability * 100)

        _annotate(
            point,
            expense_changes={
                "one_time_expense": abs(scenario.one_time_cost) if months_active == 0 else 0.0,
                "ongoing_expense": abs(scenario.monthly_cost),
            },
            key_drivers=["Unplanned expense"],
        )
