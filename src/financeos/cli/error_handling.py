"""CLI error handling helpers."""

import click

from financeos.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def require_business(ctx: click.Context) -> int:
    """Return the business selected with --business or FINANCEOS_BUSINESS_ID."""
    business_id = ctx.obj.get("business_id")
    if business_id is None:
        click.echo(
            "Error: No business selected. Use --business ID or set FINANCEOS_BUSINESS_ID.",
            err=True,
        )
        ctx.exit(1)
    return business_id
