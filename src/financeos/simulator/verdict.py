"""Impact computation between reality and simulation, and the narrator seam."""

from typing import Protocol

from financeos.simulator.errors import ScenarioError
from financeos.simulator.models import ImpactMetrics, MonthlyImpact, Scenario, TimelinePoint, Verdict
from financeos.simulator.timeline import round_half_up

NO_CHANGES = "No significant changes"


def compute_impact(reality: list[TimelinePoint], simulation: list[TimelinePoint]) -> ImpactMetrics:
    """Compare two aligned timelines.

    ``amount`` is the final balance difference and ``percent`` expresses it
    against the real final balance (0 when that balance is 0). Each month
    reports the difference in net flow for that month, the cumulative
    balance difference up to it, and the simulated events reality lacks.

    Pure: same input, same output, no side effects.

    Raises:
        ScenarioError: If a timeline is empty or the lengths differ
    """
    if not reality or not simulation:
        raise ScenarioError("impact", "Missing timeline data for impact calculation")
    if len(reality) != len(simulation):
        raise ScenarioError(
            "impact",
            f"Timeline lengths differ (reality {len(reality)}, simulation {len(simulation)})",
        )

    real_end = reality[-1].balance
    amount = simulation[-1].balance - real_end
    percent = amount / real_end * 100 if real_end != 0 else 0.0

    breakdown = []
    for real, sim in zip(reality, simulation):
        new_events = [event for event in sim.events if event not in real.events]
        breakdown.append(
            MonthlyImpact(
                month=real.month,
                difference=round_half_up(sim.net_flow - real.net_flow),
                cumulative_difference=round_half_up(sim.balance - real.balance),
                key_factors=new_events or [NO_CHANGES],
            )
        )

    return ImpactMetrics(
        amount=round_half_up(amount),
        percent=round_half_up(percent * 10) / 10,
        revenue_delta=round_half_up(sum(p.revenue for p in simulation) - sum(p.revenue for p in reality)),
        expense_delta=round_half_up(sum(p.expenses for p in simulation) - sum(p.expenses for p in reality)),
        breakdown_by_month=breakdown,
    )


class VerdictNarrator(Protocol):
    """Turns the numeric impact into a human-readable recommendation."""

    async def narrate(
        self,
        query: str,
        scenario: Scenario,
        reality: list[TimelinePoint],
        simulation: list[TimelinePoint],
        impact: ImpactMetrics,
    ) -> Verdict: ...
