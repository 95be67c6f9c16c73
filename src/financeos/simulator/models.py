"""Data models for the scenario simulator.

Everything that crosses the cache or the language model boundary is a
pydantic model, serialized with camelCase keys.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from financeos.simulator.errors import ScenarioError

T = TypeVar("T")


class ScenarioType(str, Enum):
    HIRE = "hire"
    FIRE = "fire"
    PRICE_INCREASE = "price_increase"
    PRICE_DECREASE = "price_decrease"
    NEW_CLIENT = "new_client"
    LOSE_CLIENT = "lose_client"
    INVESTMENT = "investment"
    EXPENSE = "expense"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Scenario(_CamelModel):
    """A hypothetical business change to replay against history.

    Costs may arrive signed (negative for outflows); adjusters use their
    absolute value. Unset numeric fields are 0 and fall back to per-type
    defaults.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )

    type: ScenarioType
    start_months_ago: int = Field(ge=0)
    monthly_cost: float = 0.0
    monthly_revenue: float = 0.0
    one_time_cost: float = 0.0
    growth_factor: float = 0.0
    probability: float = Field(ge=0.0, le=1.0)
    description: str = "No description provided"


class TimelineMetadata(_CamelModel):
    """Descriptive annotations; never used in further computation."""

    revenue_growth: Optional[float] = None
    expense_changes: dict[str, float] = Field(default_factory=dict)
    key_drivers: list[str] = Field(default_factory=list)


class TimelinePoint(_CamelModel):
    """One calendar month of a timeline.

    ``balance`` always equals the previous point's balance (0 before the
    first point) plus ``revenue`` minus ``expenses``.
    """

    month: str
    balance: float
    revenue: float
    expenses: float
    events: list[str] = Field(default_factory=list)
    metadata: TimelineMetadata = Field(default_factory=TimelineMetadata)

    @property
    def net_flow(self) -> float:
        return self.revenue - self.expenses


class MonthlyImpact(_CamelModel):
    month: str
    difference: float
    cumulative_difference: float
    key_factors: list[str]


class ImpactMetrics(_CamelModel):
    """Numeric delta between the simulated and the real timeline."""

    amount: float
    percent: float
    revenue_delta: float
    expense_delta: float
    breakdown_by_month: list[MonthlyImpact]


class Verdict(_CamelModel):
    analysis: str
    reasoning: list[str]
    recommendation: str
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)


class SimulationReport(_CamelModel):
    """Everything a simulation run produced, including partial results."""

    query: str
    business_id: int
    timestamp: int
    simulation_id: Optional[str] = None
    scenario: Optional[Scenario] = None
    reality: Optional[list[TimelinePoint]] = None
    simulation: Optional[list[TimelinePoint]] = None
    impact: Optional[ImpactMetrics] = None
    verdict: Optional[Verdict] = None
    processing_steps: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors and self.simulation_id is not None


@dataclass(frozen=True)
class StageResult(Generic[T]):
    """Outcome of one pipeline stage: a value or a ScenarioError."""

    value: Optional[T] = None
    error: Optional[ScenarioError] = None

    @classmethod
    def success(cls, value: T) -> "StageResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ScenarioError) -> "StageResult[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None
