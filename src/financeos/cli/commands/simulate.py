"""Scenario simulation commands."""

import asyncio
import json

import click

from financeos.cli.error_handling import handle_domain_error, require_business
from financeos.config import get_settings
from financeos.domain.errors import DomainError
from financeos.simulator.cache import CacheError
from financeos.simulator.factories import create_cache, create_pipeline, create_store
from financeos.simulator.models import SimulationReport


def _echo_report(report: SimulationReport) -> None:
    for step in report.processing_steps:
        click.echo(f"  - {step}")

    if report.scenario is not None:
        scenario = report.scenario
        click.echo(f"\nScenario: {scenario.type.value} starting {scenario.start_months_ago} month(s) ago")
        click.echo(f"  {scenario.description} (probability {scenario.probability:.0%})")

    if report.reality and report.simulation:
        click.echo("\nMonth      Real balance   Simulated    Difference")
        for real, sim in zip(report.reality, report.simulation):
            click.echo(
                f"{real.month}  {real.balance:>12,.0f} {sim.balance:>12,.0f} {sim.balance - real.balance:>12,.0f}"
            )

    if report.impact is not None:
        click.echo(f"\nImpact: {report.impact.amount:+,.0f} ({report.impact.percent:+.1f}%)")

    if report.verdict is not None:
        verdict = report.verdict
        click.echo(f"\nVerdict ({verdict.confidence:.0%} confidence)")
        click.echo(f"  {verdict.analysis}")
        for reason in verdict.reasoning:
            click.echo(f"  * {reason}")
        click.echo(f"  Recommendation: {verdict.recommendation}")

    if report.simulation_id:
        click.echo(f"\nSimulation ID: {report.simulation_id}")


@click.group()
def simulate_group():
    """Ask "what if" questions against your real history."""
    pass


@simulate_group.command("run")
@click.argument("query", metavar="QUESTION")
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON")
@click.pass_context
def run_simulation(ctx, query: str, as_json: bool):
    """Replay a hypothetical change against the last months of real data.

    Requires GOOGLE_API_KEY. Results are kept in the cache; set
    FINANCEOS_REDIS_URL to keep them between runs.

    Examples:
        financeos simulate run "What if I hired a sales manager 3 months ago?"
    """
    business_id = require_business(ctx)
    db = ctx.obj["db"]
    settings = get_settings()

    async def simulate() -> SimulationReport:
        cache = create_cache(settings)
        try:
            pipeline = create_pipeline(db, cache, settings)
            return await pipeline.run(business_id, query)
        finally:
            await cache.close()

    try:
        report = asyncio.run(simulate())
    except DomainError as e:
        handle_domain_error(ctx, e)

    if as_json:
        click.echo(report.model_dump_json(by_alias=True, indent=2))
    else:
        click.echo(f"Simulating: {report.query}")
        _echo_report(report)

    if report.errors:
        for error in report.errors:
            click.echo(f"Error: {error}", err=True)
        ctx.exit(1)


@simulate_group.command("history")
@click.option("--limit", type=click.IntRange(1, 20), help="Number of simulations to show")
@click.pass_context
def simulation_history(ctx, limit: int | None):
    """List the most recent simulation IDs, newest first."""
    business_id = require_business(ctx)
    settings = get_settings()

    async def history() -> list[str]:
        cache = create_cache(settings)
        try:
            return await create_pipeline(ctx.obj["db"], cache, settings).history(business_id, limit)
        finally:
            await cache.close()

    try:
        ids = asyncio.run(history())
    except (DomainError, CacheError) as e:
        handle_domain_error(ctx, e)

    if not ids:
        click.echo("No simulations found.")
        return
    for simulation_id in ids:
        click.echo(simulation_id)


@simulate_group.command("show")
@click.argument("simulation_id")
@click.pass_context
def show_simulation(ctx, simulation_id: str):
    """Print a stored simulation result as JSON."""
    business_id = require_business(ctx)
    settings = get_settings()

    async def fetch() -> dict:
        cache = create_cache(settings)
        try:
            return await create_pipeline(ctx.obj["db"], cache, settings).get(business_id, simulation_id)
        finally:
            await cache.close()

    try:
        result = asyncio.run(fetch())
    except (DomainError, CacheError) as e:
        handle_domain_error(ctx, e)

    click.echo(json.dumps(result, indent=2))


@simulate_group.command("clear-cache")
@click.pass_context
def clear_cache(ctx):
    """Forget the cached monthly history so the next run rebuilds it.

    Use after posting or editing transactions when a simulation must see
    them before FINANCEOS_TIMELINE_TTL expires.
    """
    business_id = require_business(ctx)
    settings = get_settings()

    async def clear() -> None:
        cache = create_cache(settings)
        try:
            await create_store(cache, settings).clear_business_cache(business_id)
        finally:
            await cache.close()

    try:
        asyncio.run(clear())
    except CacheError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Cleared cached timeline for business {business_id}")


def register_commands(cli):
    """Register simulate commands with main CLI."""
    cli.add_command(simulate_group, name="simulate")
