"""Simulation pipeline: question in, scenario replay and verdict out."""

import asyncio
import json
import secrets
import string
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

from financeos.domain.errors import DomainError, NotFoundError, ValidationError
from financeos.simulator.adjusters import ScenarioAdjuster
from financeos.simulator.cache import SimulationStore
from financeos.simulator.errors import ScenarioError
from financeos.simulator.interpreter import ScenarioInterpreter
from financeos.simulator.models import SimulationReport, StageResult
from financeos.simulator.timeline import TimelineBuilder
from financeos.simulator.verdict import VerdictNarrator, compute_impact

logger = structlog.get_logger(__name__)

T = TypeVar("T")

MIN_QUERY_LENGTH = 10
MAX_QUERY_LENGTH = 500

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_simulation_id(now_ms: int) -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"sim-{now_ms}-{suffix}"


class SimulationPipeline:
    """Runs parse, fetch, adjust, impact, verdict and store in order.

    Each stage produces a StageResult; the first failure skips the remaining
    stages and the report keeps everything computed before it. Nothing is
    written to the store unless every earlier stage succeeded.
    """

    def __init__(
        self,
        interpreter: ScenarioInterpreter,
        timeline_builder: TimelineBuilder,
        adjuster: ScenarioAdjuster,
        narrator: VerdictNarrator,
        store: SimulationStore,
        timeout: float = 30.0,
        clock: Callable[[], float] = time.time,
    ):
        self.interpreter = interpreter
        self.timeline_builder = timeline_builder
        self.adjuster = adjuster
        self.narrator = narrator
        self.store = store
        self.timeout = timeout
        self._clock = clock

    async def _run_stage(self, stage: str, work: Callable[[], Awaitable[T]]) -> StageResult[T]:
        try:
            value = await asyncio.wait_for(work(), timeout=self.timeout)
        except asyncio.TimeoutError:
            error = ScenarioError(stage, f"Timed out after {self.timeout:g}s")
        except ScenarioError as e:
            error = e
        except DomainError as e:
            error = ScenarioError(stage, str(e))
        except Exception as e:
            # External failures (model API, cache, database) become stage errors
            logger.warning("stage_exception", stage=stage, exc_info=True)
            error = ScenarioError(stage, str(e) or type(e).__name__)
        else:
            return StageResult.success(value)

        logger.warning("stage_failed", stage=stage, error=error.message)
        return StageResult.failure(error)

    @staticmethod
    def _validate_query(query: str) -> str:
        query = query.strip()
        if not MIN_QUERY_LENGTH <= len(query) <= MAX_QUERY_LENGTH:
            raise ValidationError(
                f"Query must be between {MIN_QUERY_LENGTH} and {MAX_QUERY_LENGTH} characters"
            )
        return query

    async def run(self, business_id: int, query: str) -> SimulationReport:
        """Run a simulation for a natural-language question.

        Raises:
            ValidationError: If the query is too short or too long
        """
        query = self._validate_query(query)
        log = logger.bind(business_id=business_id)
        report = SimulationReport(
            query=query,
            business_id=business_id,
            timestamp=int(self._clock() * 1000),
            processing_steps=["Simulation started"],
        )
        log.info("simulation_started")

        def fail(result: StageResult) -> SimulationReport:
            report.errors.append(str(result.error))
            log.info("simulation_stopped", stage=result.error.stage, steps=len(report.processing_steps))
            return report

        parsed = await self._run_stage("parse", lambda: self.interpreter.interpret(query))
        if not parsed.ok:
            return fail(parsed)
        report.scenario = parsed.value
        report.processing_steps.append("Query parsed successfully")

        fetched = await self._run_stage("fetch", lambda: self.timeline_builder.fetch(business_id))
        if not fetched.ok:
            return fail(fetched)
        report.reality = fetched.value.points
        report.processing_steps.append(
            "Loaded from cache" if fetched.value.from_cache else "Fetched historical data"
        )

        async def adjust():
            return self.adjuster.adjust(report.reality, report.scenario)

        adjusted = await self._run_stage("adjust", adjust)
        if not adjusted.ok:
            return fail(adjusted)
        report.simulation = adjusted.value
        label = ScenarioAdjuster.SIMULATION_LABELS[report.scenario.type]
        report.processing_steps.append(f"{label} simulation completed")

        async def impact():
            return compute_impact(report.reality, report.simulation)

        measured = await self._run_stage("impact", impact)
        if not measured.ok:
            return fail(measured)
        report.impact = measured.value
        report.processing_steps.append("Impact calculated")

        narrated = await self._run_stage(
            "verdict",
            lambda: self.narrator.narrate(query, report.scenario, report.reality, report.simulation, report.impact),
        )
        if not narrated.ok:
            return fail(narrated)
        report.verdict = narrated.value
        report.processing_steps.append("AI verdict generated")

        simulation_id = new_simulation_id(report.timestamp)

        async def store():
            report.processing_steps.append(f"Results stored (ID: {simulation_id})")
            payload = report.model_copy(update={"simulation_id": simulation_id})
            await self.store.store_simulation(business_id, simulation_id, payload.model_dump_json(by_alias=True))

        stored = await self._run_stage("store", store)
        if not stored.ok:
            report.processing_steps.pop()
            return fail(stored)
        report.simulation_id = simulation_id

        log.info(
            "simulation_completed",
            simulation_id=simulation_id,
            amount=report.impact.amount,
            percent=report.impact.percent,
        )
        return report

    async def history(self, business_id: int, limit: Optional[int] = None) -> list[str]:
        """Up to 20 most recent simulation IDs, newest first."""
        return await self.store.get_history(business_id, limit)

    async def get(self, business_id: int, simulation_id: str) -> dict[str, Any]:
        """Return a stored simulation result.

        Raises:
            NotFoundError: If it doesn't exist or has expired
        """
        raw = await self.store.get_simulation(business_id, simulation_id)
        if raw is None:
            raise NotFoundError(f"Simulation {simulation_id} not found")
        return json.loads(raw)
