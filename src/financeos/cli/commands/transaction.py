"""Transaction posting and management commands."""

from decimal import Decimal

import click

from financeos.cli.date_filters import parse_date_option
from financeos.cli.error_handling import handle_domain_error, require_business
from financeos.domain.category import CategoryService
from financeos.domain.entities import SplitLine, TransactionDraft, TransactionType
from financeos.domain.errors import DomainError
from financeos.domain.ledger import LedgerService
from financeos.domain.ledger_account import LedgerAccountService
from financeos.utils.account_resolver import resolve_account
from financeos.utils.amount_parser import parse_amount
from financeos.utils.category_resolver import resolve_category
from financeos.utils.date_parser import parse_date

TYPE_CHOICE = click.Choice([t.value for t in TransactionType], case_sensitive=False)


def _parse_amount(ctx, value: str) -> Decimal:
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)


def _resolve_account(ctx, business_id: int, account: str) -> int:
    try:
        return resolve_account(LedgerAccountService(ctx.obj["db"]), business_id, account)
    except DomainError as e:
        handle_domain_error(ctx, e)


def _resolve_category(ctx, business_id: int, category: str) -> int:
    try:
        return resolve_category(CategoryService(ctx.obj["db"]), business_id, category)
    except DomainError as e:
        handle_domain_error(ctx, e)


def _parse_splits(ctx, business_id: int, splits: tuple[str, ...]) -> tuple[SplitLine, ...]:
    """Parse ACCOUNT=AMOUNT pairs."""
    lines = []
    for split in splits:
        account, sep, amount = split.rpartition("=")
        if not sep or not account.strip():
            click.echo(f"Error: Invalid split '{split}'. Use ACCOUNT=AMOUNT, e.g. 5100=250.00", err=True)
            ctx.exit(1)
        lines.append(SplitLine(_resolve_account(ctx, business_id, account), _parse_amount(ctx, amount)))
    return tuple(lines)


@click.group()
def transaction_group():
    """Post and manage transactions."""
    pass


@transaction_group.command("post")
@click.argument("transaction_type", metavar="TYPE", type=TYPE_CHOICE)
@click.argument("amount", metavar="AMOUNT")
@click.argument("description", metavar="DESCRIPTION")
@click.option("--account", required=True, help="Main account (code, ID or name), e.g. the bank account")
@click.option("--contra", help="Contra account (code, ID or name), e.g. the revenue or expense account")
@click.option("--split", "splits", multiple=True, help="Contra leg as ACCOUNT=AMOUNT; repeat for several legs")
@click.option("--date", "date_str", default="today", help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday')")
@click.option("--category", help="Category name or ID")
@click.option("--reference", help="Reference number")
@click.option("--notes", help="Notes")
@click.pass_context
def post_transaction(
    ctx,
    transaction_type: str,
    amount: str,
    description: str,
    account: str,
    contra: str | None,
    splits: tuple[str, ...],
    date_str: str,
    category: str | None,
    reference: str | None,
    notes: str | None,
):
    """Post a transaction with its balanced journal entries.

    TYPE is INCOME, EXPENSE or TRANSFER. Give either --contra or one or more
    --split legs whose amounts add up to AMOUNT.

    Examples:
        financeos transaction post INCOME 1500 "Website project" --account 1100 --contra 4100
        financeos transaction post EXPENSE 300 "Office costs" --account 1100 --split 5100=200 --split 5500=100
    """
    business_id = require_business(ctx)
    service = LedgerService(ctx.obj["db"])

    txn_amount = _parse_amount(ctx, amount)
    txn_date = parse_date_option(ctx, date_str)
    account_id = _resolve_account(ctx, business_id, account)
    contra_id = _resolve_account(ctx, business_id, contra) if contra else None
    split_lines = _parse_splits(ctx, business_id, splits)
    category_id = _resolve_category(ctx, business_id, category) if category else None

    try:
        txn = service.post_transaction(
            business_id,
            TransactionDraft(
                transaction_type=TransactionType(transaction_type.upper()),
                amount=txn_amount,
                date=txn_date,
                description=description,
                ledger_account_id=account_id,
                contra_account_id=contra_id,
                splits=split_lines,
                category_id=category_id,
                reference_number=reference,
                notes=notes,
            ),
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    entries = service.get_journal_entries(business_id, txn.id)
    click.echo(f"Posted transaction {txn.id}: {txn.transaction_type.value} {txn.amount:,.2f} on {txn.date}")
    click.echo(f"Journal entries {entries[0].formatted_number}-{entries[-1].formatted_number}")


@transaction_group.command("list")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'start of month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--type", "transaction_type", type=TYPE_CHOICE, help="Only transactions of this type")
@click.option("--account", help="Main account (code, ID or name)")
@click.option("--category", help="Category name or ID")
@click.option("--reconciled/--unreconciled", default=None, help="Filter on reconciliation status")
@click.pass_context
def list_transactions(
    ctx,
    start_date: str | None,
    end_date: str | None,
    transaction_type: str | None,
    account: str | None,
    category: str | None,
    reconciled: bool | None,
):
    """List transactions, newest first."""
    business_id = require_business(ctx)
    db = ctx.obj["db"]
    service = LedgerService(db)

    start = parse_date_option(ctx, start_date, "start date")
    end = parse_date_option(ctx, end_date, "end date")
    account_id = _resolve_account(ctx, business_id, account) if account else None
    category_id = _resolve_category(ctx, business_id, category) if category else None

    transactions = service.list_transactions(
        business_id,
        start_date=start,
        end_date=end,
        transaction_type=TransactionType(transaction_type.upper()) if transaction_type else None,
        ledger_account_id=account_id,
        category_id=category_id,
        is_reconciled=reconciled,
    )
    if not transactions:
        click.echo("No transactions found.")
        return

    accounts = {acc.id: acc.code for acc in LedgerAccountService(db).list_accounts(business_id)}
    click.echo(f"\nFound {len(transactions)} transaction(s):")
    click.echo("-" * 90)
    for txn in transactions:
        mark = "R" if txn.is_reconciled else " "
        click.echo(
            f"{txn.id:5d} {mark} | {txn.date} | {txn.transaction_type.value:8s} | "
            f"{accounts.get(txn.ledger_account_id, '?'):6s} | {txn.amount:>12,.2f} | {txn.description}"
        )


@transaction_group.command("show")
@click.argument("transaction_id", type=int)
@click.pass_context
def show_transaction(ctx, transaction_id: int):
    """Show a transaction and its journal entries."""
    business_id = require_business(ctx)
    db = ctx.obj["db"]
    service = LedgerService(db)

    try:
        txn = service.get_transaction(business_id, transaction_id)
        entries = service.get_journal_entries(business_id, transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    accounts = {acc.id: acc for acc in LedgerAccountService(db).list_accounts(business_id)}
    click.echo(f"Transaction {txn.id}: {txn.description}")
    click.echo(f"  Date: {txn.date}")
    click.echo(f"  Type: {txn.transaction_type.value}")
    click.echo(f"  Amount: {txn.amount:,.2f}")
    main = accounts.get(txn.ledger_account_id)
    if main is not None:
        click.echo(f"  Account: {main.code} {main.name}")
    if txn.category_id:
        click.echo(f"  Category: {CategoryService(db).get_category(business_id, txn.category_id).name}")
    if txn.reference_number:
        click.echo(f"  Reference: {txn.reference_number}")
    if txn.notes:
        click.echo(f"  Notes: {txn.notes}")
    click.echo(f"  Reconciled: {'yes' if txn.is_reconciled else 'no'}")

    click.echo("\n  Entry   Account                          Debit        Credit")
    for entry in entries:
        acc = accounts.get(entry.ledger_account_id)
        label = f"{acc.code} {acc.name}" if acc else str(entry.ledger_account_id)
        click.echo(
            f"  {entry.formatted_number}  {label:30s} {entry.debit_amount:>12,.2f} {entry.credit_amount:>12,.2f}"
        )


@transaction_group.command("update")
@click.argument("transaction_id", type=int)
@click.option("--description", help="Transaction description")
@click.option("--category", help="Category name or ID, or empty string to clear")
@click.option("--reference", help="Reference number")
@click.option("--notes", help="Notes")
@click.option("--amount", help="New amount (re-posts the journal entries)")
@click.option("--date", "date_str", help="New date (re-posts the journal entries)")
@click.option("--type", "transaction_type", type=TYPE_CHOICE, help="New type (re-posts the journal entries)")
@click.option("--account", help="New main account (re-posts the journal entries)")
@click.option("--contra", help="New contra account (re-posts the journal entries)")
@click.option("--split", "splits", multiple=True, help="New contra legs as ACCOUNT=AMOUNT")
@click.pass_context
def update_transaction(
    ctx,
    transaction_id: int,
    description: str | None,
    category: str | None,
    reference: str | None,
    notes: str | None,
    amount: str | None,
    date_str: str | None,
    transaction_type: str | None,
    account: str | None,
    contra: str | None,
    splits: tuple[str, ...],
):
    """Update a transaction.

    Updates only the fields that are provided. Changing the amount, date, type
    or accounts reverses the old journal entries and posts new ones.
    Use --category "" to clear the category.

    Examples:
        financeos transaction update 12 --description "Website project (phase 1)"
        financeos transaction update 12 --amount 1750
        financeos transaction update 12 --category ""  # Clear category
    """
    business_id = require_business(ctx)
    service = LedgerService(ctx.obj["db"])

    category_id = None
    clear_category = False
    if category is not None:
        if category == "":
            clear_category = True
        else:
            category_id = _resolve_category(ctx, business_id, category)

    try:
        service.update_transaction(
            business_id,
            transaction_id,
            description=description,
            category_id=category_id,
            clear_category=clear_category,
            reference_number=reference,
            notes=notes,
            amount=_parse_amount(ctx, amount) if amount is not None else None,
            date=parse_date(date_str) if date_str is not None else None,
            transaction_type=TransactionType(transaction_type.upper()) if transaction_type else None,
            ledger_account_id=_resolve_account(ctx, business_id, account) if account else None,
            contra_account_id=_resolve_account(ctx, business_id, contra) if contra else None,
            splits=_parse_splits(ctx, business_id, splits) if splits else None,
        )
        click.echo(f"Updated transaction {transaction_id}")
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)


@transaction_group.command("reverse")
@click.argument("transaction_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def reverse_transaction(ctx, transaction_id: int, yes: bool):
    """Delete a transaction and undo its effect on account balances."""
    business_id = require_business(ctx)
    service = LedgerService(ctx.obj["db"])

    try:
        txn = service.get_transaction(business_id, transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm(f"Are you sure you want to delete transaction {txn.id} '{txn.description}'?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.reverse_transaction(business_id, transaction_id)
        click.echo(f"Deleted transaction {transaction_id} and reversed its journal entries")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("reconcile")
@click.argument("transaction_id", type=int)
@click.pass_context
def reconcile_transaction(ctx, transaction_id: int):
    """Toggle the reconciled flag of a transaction."""
    business_id = require_business(ctx)
    service = LedgerService(ctx.obj["db"])

    try:
        txn = service.reconcile_transaction(business_id, transaction_id)
        state = "reconciled" if txn.is_reconciled else "unreconciled"
        click.echo(f"Transaction {transaction_id} marked as {state}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
