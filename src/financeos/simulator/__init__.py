"""Scenario simulator: replay "what if" questions against real history."""

from financeos.simulator.adjusters import AdjusterAssumptions, ScenarioAdjuster
from financeos.simulator.cache import Cache, MemoryCache, SimulationStore
from financeos.simulator.errors import ParseError, ScenarioError
from financeos.simulator.models import Scenario, ScenarioType, SimulationReport, TimelinePoint
from financeos.simulator.pipeline import SimulationPipeline
from financeos.simulator.timeline import TimelineBuilder
from financeos.simulator.verdict import compute_impact

__all__ = [
    "AdjusterAssumptions",
    "Cache",
    "MemoryCache",
    "ParseError",
    "Scenario",
    "ScenarioAdjuster",
    "ScenarioError",
    "ScenarioType",
    "SimulationPipeline",
    "SimulationReport",
    "SimulationStore",
    "TimelineBuilder",
    "TimelinePoint",
    "compute_impact",
]
