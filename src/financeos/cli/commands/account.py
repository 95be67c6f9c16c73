"""Ledger account (chart of accounts) commands."""

import click

from financeos.cli.error_handling import handle_domain_error, require_business
from financeos.domain.entities import AccountSubType, AccountType, NormalBalance
from financeos.domain.errors import DomainError
from financeos.domain.ledger_account import LedgerAccountService
from financeos.utils.account_resolver import resolve_account

TYPE_CHOICE = click.Choice([t.value for t in AccountType], case_sensitive=False)
SUB_TYPE_CHOICE = click.Choice([t.value for t in AccountSubType], case_sensitive=False)
NORMAL_BALANCE_CHOICE = click.Choice([t.value for t in NormalBalance], case_sensitive=False)


def _resolve(ctx, service: LedgerAccountService, business_id: int, account: str) -> int:
    try:
        return resolve_account(service, business_id, account)
    except DomainError as e:
        handle_domain_error(ctx, e)


@click.group()
def account_group():
    """Manage the chart of accounts."""
    pass


@account_group.command("create")
@click.argument("code", metavar="CODE")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--type", "account_type", type=TYPE_CHOICE, required=True, help="Account type")
@click.option("--sub-type", type=SUB_TYPE_CHOICE, help="Reporting subtype (e.g. CURRENT_ASSET)")
@click.option("--normal-balance", type=NORMAL_BALANCE_CHOICE, help="Defaults from the account type")
@click.option("--parent", help="Parent account code, ID or name")
@click.option("--description", help="Account description")
@click.pass_context
def create_account(
    ctx,
    code: str,
    name: str,
    account_type: str,
    sub_type: str | None,
    normal_balance: str | None,
    parent: str | None,
    description: str | None,
):
    """Create a new ledger account.

    Examples:
        financeos account create 1150 "Savings" --type ASSET --sub-type CURRENT_ASSET
        financeos account create 6000 "Travel" --type EXPENSE --parent 5100
    """
    db = ctx.obj["db"]
    service = LedgerAccountService(db)
    business_id = require_business(ctx)

    parent_id = _resolve(ctx, service, business_id, parent) if parent else None

    try:
        acc = service.create_account(
            business_id=business_id,
            code=code,
            name=name,
            account_type=AccountType(account_type.upper()),
            sub_type=AccountSubType(sub_type.upper()) if sub_type else None,
            normal_balance=NormalBalance(normal_balance.upper()) if normal_balance else None,
            parent_account_id=parent_id,
            description=description,
        )
        click.echo(f"Created account {acc.code} '{acc.name}' (ID: {acc.id}, normal balance: {acc.normal_balance.value})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.option("--type", "account_type", type=TYPE_CHOICE, help="Only accounts of this type")
@click.option("--all", "show_all", is_flag=True, help="Include inactive accounts")
@click.pass_context
def list_accounts(ctx, account_type: str | None, show_all: bool):
    """List ledger accounts ordered by code."""
    db = ctx.obj["db"]
    service = LedgerAccountService(db)
    business_id = require_business(ctx)

    accounts = service.list_accounts(
        business_id,
        account_type=AccountType(account_type.upper()) if account_type else None,
        active=None if show_all else True,
    )
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nChart of accounts:")
    click.echo("-" * 80)
    for acc in accounts:
        status = "" if acc.is_active else " (inactive)"
        click.echo(
            f"{acc.code:6s} | {acc.name:28s} | {acc.account_type.value:9s} | "
            f"{acc.current_balance:>14,.2f}{status}"
        )


@account_group.command("show")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def show_account(ctx, account: str):
    """Show one ledger account.

    ACCOUNT can be an account code, ID or name.
    """
    db = ctx.obj["db"]
    service = LedgerAccountService(db)
    business_id = require_business(ctx)

    acc = service.get_account(business_id, _resolve(ctx, service, business_id, account))
    click.echo(f"Account {acc.code}: {acc.name} (ID: {acc.id})")
    click.echo(f"  Type: {acc.account_type.value}")
    if acc.sub_type:
        click.echo(f"  Subtype: {acc.sub_type.value}")
    click.echo(f"  Normal balance: {acc.normal_balance.value}")
    click.echo(f"  Balance: {acc.current_balance:,.2f}")
    click.echo(f"  Active: {'yes' if acc.is_active else 'no'}")
    if acc.parent_account_id:
        click.echo(f"  Parent: {service.get_account(business_id, acc.parent_account_id).code}")
    if acc.description:
        click.echo(f"  Description: {acc.description}")


@account_group.command("update")
@click.argument("account", metavar="ACCOUNT")
@click.option("--name", help="New account name")
@click.option("--description", help="New description")
@click.option("--parent", help="Parent account code, ID or name, or empty string to clear")
@click.option("--activate", is_flag=True, help="Reactivate an inactive account")
@click.pass_context
def update_account(ctx, account: str, name: str | None, description: str | None, parent: str | None, activate: bool):
    """Update a ledger account's descriptive fields.

    Balances can only change by posting transactions.

    Examples:
        financeos account update 5100 --name "Office Rent"
        financeos account update 6000 --parent ""  # Clear parent
    """
    db = ctx.obj["db"]
    service = LedgerAccountService(db)
    business_id = require_business(ctx)
    account_id = _resolve(ctx, service, business_id, account)

    parent_id = None
    clear_parent = False
    if parent is not None:
        if parent == "":
            clear_parent = True
        else:
            parent_id = _resolve(ctx, service, business_id, parent)

    try:
        acc = service.update_account(
            business_id,
            account_id,
            name=name,
            description=description,
            is_active=True if activate else None,
            parent_account_id=parent_id,
            clear_parent=clear_parent,
        )
        click.echo(f"Updated account {acc.code} '{acc.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("deactivate")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def deactivate_account(ctx, account: str):
    """Deactivate an account so it can no longer be posted to."""
    db = ctx.obj["db"]
    service = LedgerAccountService(db)
    business_id = require_business(ctx)

    try:
        acc = service.deactivate_account(business_id, _resolve(ctx, service, business_id, account))
        click.echo(f"Deactivated account {acc.code} '{acc.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool):
    """Delete an account that was never posted to.

    ACCOUNT can be an account code, ID or name. Accounts with transactions
    or journal entries must be deactivated instead.
    """
    db = ctx.obj["db"]
    service = LedgerAccountService(db)
    business_id = require_business(ctx)
    account_id = _resolve(ctx, service, business_id, account)
    acc = service.get_account(business_id, account_id)

    if not yes and not click.confirm(f"Are you sure you want to delete account {acc.code} '{acc.name}'?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_account(business_id, account_id)
        click.echo(f"Deleted account {acc.code} '{acc.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("seed")
@click.pass_context
def seed_accounts(ctx):
    """Create the default chart of accounts (existing codes are kept)."""
    db = ctx.obj["db"]
    service = LedgerAccountService(db)
    business_id = require_business(ctx)

    try:
        created = service.seed_default_chart(business_id)
        click.echo(f"Created {created} ledger account{'s' if created != 1 else ''}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
