"""Main CLI entry point."""

import click

from financeos.config import configure_logging
from financeos.database.factories import create_sqlite_database

# Import and register all commands at module level
from financeos.cli.commands import (
    account,
    business,
    category,
    report,
    simulate,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides FINANCEOS_DB_PATH environment variable)",
    envvar="FINANCEOS_DB_PATH",
)
@click.option(
    "--business",
    "-b",
    "business_id",
    type=int,
    help="Business ID to operate on (overrides FINANCEOS_BUSINESS_ID environment variable)",
    envvar="FINANCEOS_BUSINESS_ID",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level (overrides FINANCEOS_LOG_LEVEL environment variable)",
)
@click.pass_context
def cli(ctx, db_path: str | None, business_id: int | None, log_level: str | None):
    """FinanceOS - Double-entry bookkeeping and scenario simulation.

    Post transactions to a per-business ledger, read the standard reports,
    and ask "what if" questions against your real monthly history.
    """
    ctx.ensure_object(dict)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        configure_logging(level=log_level.upper() if log_level else None)
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["business_id"] = business_id
        ctx.call_on_close(db.disconnect)


# Register all commands
business.register_commands(cli)
account.register_commands(cli)
category.register_commands(cli)
transaction.register_commands(cli)
report.register_commands(cli)
simulate.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
