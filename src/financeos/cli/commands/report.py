"""Accounting report commands."""

from datetime import date
from decimal import Decimal

import click

from financeos.cli.date_filters import (
    collect_period_flags,
    parse_date_option,
    period_options,
    resolve_cli_date_range,
)
from financeos.cli.error_handling import handle_domain_error, require_business
from financeos.domain.entities import CashMovement, StatementSection
from financeos.domain.errors import DomainError
from financeos.domain.ledger_account import LedgerAccountService
from financeos.domain.reports import ReportService
from financeos.utils.account_resolver import resolve_account
from financeos.utils.date_parser import get_date_range

SECTION_TITLES = {
    "current_assets": "Current Assets",
    "fixed_assets": "Fixed Assets",
    "other_assets": "Other Assets",
    "current_liabilities": "Current Liabilities",
    "long_term_liabilities": "Long-term Liabilities",
    "other_liabilities": "Other Liabilities",
    "owners_equity": "Owner's Equity",
    "retained_earnings": "Retained Earnings",
}


def _money(amount: Decimal) -> str:
    return f"{amount:>14,.2f}"


def _echo_section(section: StatementSection, title: str | None = None) -> None:
    if not section.accounts:
        return
    click.echo(f"  {title or SECTION_TITLES.get(section.name, section.name)}")
    for acc in section.accounts:
        click.echo(f"    {acc.code:6s} {acc.name:32s} {_money(acc.balance)}")
    click.echo(f"    {'Total':39s} {_money(section.total)}")


def _echo_movements(title: str, movements: tuple[CashMovement, ...], total: Decimal) -> None:
    click.echo(f"\n{title}")
    for movement in movements:
        click.echo(f"  {movement.date}  {movement.description[:34]:34s} {_money(movement.amount)}")
    click.echo(f"  {'Net cash from ' + title.lower():46s} {_money(total)}")


def _period(ctx, start_date, end_date, period_kwargs) -> tuple[date, date]:
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=collect_period_flags(period_kwargs),
        default_range=get_date_range("this-month"),
    )
    return start or date.min, end or date.today()


@click.group()
def report_group():
    """Accounting reports."""
    pass


@report_group.command("trial-balance")
@click.option("--as-of", help="Report date (YYYY-MM-DD or relative like 'end of last month'); defaults to today")
@click.pass_context
def trial_balance(ctx, as_of: str | None):
    """Show the trial balance."""
    business_id = require_business(ctx)
    service = ReportService(ctx.obj["db"])

    try:
        report = service.trial_balance(business_id, parse_date_option(ctx, as_of, "as-of date"))
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nTrial Balance as of {report.as_of}")
    click.echo("-" * 72)
    for line in report.lines:
        debit = _money(line.debit_balance) if line.debit_balance else " " * 14
        credit = _money(line.credit_balance) if line.credit_balance else " " * 14
        click.echo(f"{line.code:6s} {line.name:34s} {debit} {credit}")
    click.echo("-" * 72)
    click.echo(f"{'Totals':41s} {_money(report.total_debits)} {_money(report.total_credits)}")
    if report.is_balanced:
        click.echo("Balanced")
    else:
        click.echo(f"OUT OF BALANCE by {report.difference:,.2f}")


@report_group.command("general-ledger")
@click.argument("account", metavar="ACCOUNT")
@click.option("--start-date", help="Start date")
@click.option("--end-date", help="End date")
@period_options
@click.pass_context
def general_ledger(ctx, account: str, start_date: str | None, end_date: str | None, **period_kwargs):
    """Show every posting to one account with its running balance.

    ACCOUNT can be an account code, ID or name.

    Examples:
        financeos report general-ledger 1100 --this-year
    """
    business_id = require_business(ctx)
    db = ctx.obj["db"]
    service = ReportService(db)

    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=collect_period_flags(period_kwargs),
    )

    try:
        account_id = resolve_account(LedgerAccountService(db), business_id, account)
        ledger = service.general_ledger(business_id, account_id, start, end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    acc = ledger.account
    click.echo(f"\nGeneral Ledger: {acc.code} {acc.name} ({acc.normal_balance.value} balance)")
    click.echo("-" * 96)
    if not ledger.lines:
        click.echo("No entries found.")
    for line in ledger.lines:
        entry = line.entry
        click.echo(
            f"{entry.formatted_number} | {entry.date} | {(entry.description or '')[:30]:30s} | "
            f"{_money(entry.debit_amount)} {_money(entry.credit_amount)} {_money(line.running_balance)}"
        )
    click.echo("-" * 96)
    click.echo(
        f"{'Totals':57s} {_money(ledger.total_debits)} {_money(ledger.total_credits)} {_money(ledger.ending_balance)}"
    )


@report_group.command("balance-sheet")
@click.option("--as-of", help="Report date; defaults to today")
@click.pass_context
def balance_sheet(ctx, as_of: str | None):
    """Show the balance sheet."""
    business_id = require_business(ctx)
    service = ReportService(ctx.obj["db"])

    try:
        sheet = service.balance_sheet(business_id, parse_date_option(ctx, as_of, "as-of date"))
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nBalance Sheet as of {sheet.as_of}")
    click.echo("\nASSETS")
    for section in sheet.assets:
        _echo_section(section)
    click.echo(f"  {'Total Assets':41s} {_money(sheet.total_assets)}")

    click.echo("\nLIABILITIES")
    for section in sheet.liabilities:
        _echo_section(section)
    click.echo(f"  {'Total Liabilities':41s} {_money(sheet.total_liabilities)}")

    click.echo("\nEQUITY")
    for section in sheet.equity:
        _echo_section(section)
    click.echo(f"    {'Current Earnings':39s} {_money(sheet.current_earnings)}")
    click.echo(f"  {'Total Equity':41s} {_money(sheet.total_equity)}")

    click.echo(f"\n{'Total Liabilities & Equity':43s} {_money(sheet.total_liabilities_and_equity)}")
    click.echo(f"Working capital: {sheet.working_capital:,.2f}")
    click.echo(f"Current ratio: {sheet.current_ratio:.2f}")
    click.echo(f"Debt to equity: {sheet.debt_to_equity_ratio:.2f}")
    click.echo("Balanced" if sheet.is_balanced else "OUT OF BALANCE")


@report_group.command("profit-loss")
@click.option("--start-date", help="Start date")
@click.option("--end-date", help="End date")
@period_options
@click.pass_context
def profit_loss(ctx, start_date: str | None, end_date: str | None, **period_kwargs):
    """Show the profit and loss statement (defaults to this month)."""
    business_id = require_business(ctx)
    service = ReportService(ctx.obj["db"])
    start, end = _period(ctx, start_date, end_date, period_kwargs)

    try:
        pnl = service.profit_and_loss(business_id, start, end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nProfit & Loss {pnl.start_date} to {pnl.end_date}")
    click.echo("\nREVENUE")
    _echo_section(pnl.operating_revenue, "Operating Revenue")
    _echo_section(pnl.other_revenue, "Other Revenue")
    click.echo(f"  {'Total Revenue':41s} {_money(pnl.total_revenue)}")

    click.echo("\nEXPENSES")
    _echo_section(pnl.cost_of_goods_sold, "Cost of Goods Sold")
    click.echo(f"  {'Gross Profit':41s} {_money(pnl.gross_profit)}  ({pnl.margin(pnl.gross_profit)}%)")
    _echo_section(pnl.operating_expenses, "Operating Expenses")
    click.echo(f"  {'Operating Income':41s} {_money(pnl.operating_income)}  ({pnl.margin(pnl.operating_income)}%)")
    _echo_section(pnl.other_expenses, "Other Expenses")
    click.echo(f"  {'Total Expenses':41s} {_money(pnl.total_expenses)}")

    click.echo(f"\n{'Net Income':43s} {_money(pnl.net_income)}  ({pnl.margin(pnl.net_income)}%)")


@report_group.command("cash-flow")
@click.option("--start-date", help="Start date")
@click.option("--end-date", help="End date")
@period_options
@click.pass_context
def cash_flow(ctx, start_date: str | None, end_date: str | None, **period_kwargs):
    """Show the cash flow statement (defaults to this month)."""
    business_id = require_business(ctx)
    service = ReportService(ctx.obj["db"])
    start, end = _period(ctx, start_date, end_date, period_kwargs)

    try:
        statement = service.cash_flow(business_id, start, end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nCash Flow {statement.start_date} to {statement.end_date}")
    click.echo(f"{'Opening cash':48s} {_money(statement.opening_balance)}")
    _echo_movements("Operating activities", statement.operating, statement.operating_total)
    _echo_movements("Investing activities", statement.investing, statement.investing_total)
    _echo_movements("Financing activities", statement.financing, statement.financing_total)
    click.echo(f"\n{'Net cash flow':48s} {_money(statement.net_cash_flow)}")
    click.echo(f"{'Closing cash':48s} {_money(statement.closing_balance)}")


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
