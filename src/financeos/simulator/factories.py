"""Factory functions wiring the simulation pipeline from settings."""

from typing import Optional

from financeos.config.settings import Settings, get_settings
from financeos.database.base import Database
from financeos.simulator.adjusters import ScenarioAdjuster
from financeos.simulator.cache import Cache, MemoryCache, SimulationStore
from financeos.simulator.interpreter import GeminiNarrator, GeminiScenarioInterpreter, ScenarioInterpreter
from financeos.simulator.pipeline import SimulationPipeline
from financeos.simulator.timeline import TimelineBuilder
from financeos.simulator.verdict import VerdictNarrator


def create_cache(settings: Optional[Settings] = None) -> Cache:
    """Create a Redis cache when FINANCEOS_REDIS_URL is set, else an in-process one."""
    settings = settings or get_settings()
    if settings.redis_url:
        from financeos.simulator.redis_cache import RedisCache

        return RedisCache(settings.redis_url)
    return MemoryCache()


def create_store(cache: Cache, settings: Optional[Settings] = None) -> SimulationStore:
    settings = settings or get_settings()
    return SimulationStore(
        cache,
        timeline_ttl=settings.timeline_ttl,
        simulation_ttl=settings.simulation_ttl,
    )


def create_pipeline(
    db: Database,
    cache: Cache,
    settings: Optional[Settings] = None,
    interpreter: Optional[ScenarioInterpreter] = None,
    narrator: Optional[VerdictNarrator] = None,
) -> SimulationPipeline:
    """Create a pipeline; Gemini adapters are used unless others are given."""
    settings = settings or get_settings()
    store = create_store(cache, settings)
    max_months_ago = settings.lookback_months - 1
    return SimulationPipeline(
        interpreter=interpreter or GeminiScenarioInterpreter(max_months_ago=max_months_ago),
        timeline_builder=TimelineBuilder(db, store, lookback_months=settings.lookback_months),
        adjuster=ScenarioAdjuster(),
        narrator=narrator or GeminiNarrator(),
        store=store,
        timeout=settings.llm_timeout,
    )
