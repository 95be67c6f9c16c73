"""Business management commands."""

import click

from financeos.cli.error_handling import handle_domain_error, require_business
from financeos.domain.business import BusinessService
from financeos.domain.category import CategoryService
from financeos.domain.entities import SubscriptionTier
from financeos.domain.errors import DomainError
from financeos.domain.ledger_account import LedgerAccountService
from financeos.domain.subscription import format_usage, get_tier_limits

TIER_CHOICE = click.Choice([t.value for t in SubscriptionTier], case_sensitive=False)


@click.group()
def business_group():
    """Manage businesses."""
    pass


@business_group.command("create")
@click.argument("name", metavar="BUSINESS_NAME")
@click.option("--tier", type=TIER_CHOICE, default=SubscriptionTier.FREE.value, show_default=True, help="Subscription tier")
@click.option("--seed/--no-seed", default=True, show_default=True, help="Create the default chart of accounts and categories")
@click.pass_context
def create_business(ctx, name: str, tier: str, seed: bool):
    """Create a new business.

    Examples:
        financeos business create "Acme Consulting"
        financeos business create "Acme Retail" --tier PRO --no-seed
    """
    db = ctx.obj["db"]
    service = BusinessService(db)

    try:
        business = service.create_business(name, SubscriptionTier(tier.upper()))
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created business '{business.name}' (ID: {business.id})")
    if seed:
        accounts = LedgerAccountService(db).seed_default_chart(business.id)
        categories = CategoryService(db).seed_default_categories(business.id)
        click.echo(f"Seeded {accounts} ledger accounts and {categories} categories")


@business_group.command("list")
@click.pass_context
def list_businesses(ctx):
    """List all businesses."""
    db = ctx.obj["db"]
    service = BusinessService(db)

    businesses = service.list_businesses()
    if not businesses:
        click.echo("No businesses found.")
        return

    click.echo("\nBusinesses:")
    click.echo("-" * 70)
    for biz in businesses:
        limits = get_tier_limits(biz.subscription_tier)
        usage = format_usage(db.count_transactions(biz.id), limits.transactions_limit)
        click.echo(
            f"ID: {biz.id:3d} | {biz.name:25s} | Tier: {biz.subscription_tier.value:8s} | Transactions: {usage}"
        )


@business_group.command("show")
@click.argument("business_id", type=int, required=False)
@click.pass_context
def show_business(ctx, business_id: int | None):
    """Show a business and its plan usage.

    BUSINESS_ID defaults to the business selected with --business.
    """
    db = ctx.obj["db"]
    service = BusinessService(db)
    if business_id is None:
        business_id = require_business(ctx)

    try:
        biz = service.get_business(business_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    limits = get_tier_limits(biz.subscription_tier)
    click.echo(f"Business: {biz.name} (ID: {biz.id})")
    click.echo(f"  Tier: {biz.subscription_tier.value}")
    click.echo(f"  Transactions: {format_usage(db.count_transactions(biz.id), limits.transactions_limit)}")
    click.echo(f"  Next journal entry: {biz.next_entry_number:06d}")
    click.echo(f"  Created: {biz.created_at:%Y-%m-%d}")


@business_group.command("tier")
@click.argument("tier", type=TIER_CHOICE)
@click.pass_context
def change_tier(ctx, tier: str):
    """Change the subscription tier of the selected business.

    Examples:
        financeos --business 1 business tier PRO
    """
    db = ctx.obj["db"]
    service = BusinessService(db)
    business_id = require_business(ctx)

    try:
        biz = service.change_tier(business_id, SubscriptionTier(tier.upper()))
        click.echo(f"Business '{biz.name}' is now on the {biz.subscription_tier.value} tier")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register business commands with main CLI."""
    cli.add_command(business_group, name="business")
