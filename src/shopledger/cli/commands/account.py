"""Account management commands."""

from datetime import date

import click

from shopledger.cli.date_filters import period_options, resolve_cli_date_range
from shopledger.cli.error_handling import handle_domain_error, resolve_account_or_exit
from shopledger.domain.account import AccountService
from shopledger.domain.entities import AccountType
from shopledger.domain.errors import DomainError
from shopledger.domain.ledger import AccountLedgerService
from shopledger.domain.posting import PostingService
from shopledger.utils.amount_parser import format_amount, parse_amount
from shopledger.utils.date_parser import parse_date


@click.group()
def account_group():
    """Manage the chart of accounts."""
    pass


@account_group.command("create")
@click.argument("code")
@click.argument("name")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType], case_sensitive=False),
    required=True,
    help="Account type",
)
@click.option("--sub-type", type=click.Choice(["CASH", "BANK"], case_sensitive=False))
@click.pass_context
def create_account(ctx, code: str, name: str, account_type: str, sub_type: str | None):
    """Create a new account.

    Examples:
        shopledger account create 1110 "Meezan Bank" --type ASSET --sub-type BANK
        shopledger account create 5300 "Packaging" --type EXPENSE
    """
    service = AccountService(ctx.obj["db"])
    try:
        account_id = service.create_account(
            code=code, name=name, type=AccountType(account_type.upper()), sub_type=sub_type
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created account {code} '{name}' (ID: {account_id})")


@account_group.command("list")
@click.pass_context
def list_accounts(ctx):
    """List all accounts with their balances."""
    service = AccountService(ctx.obj["db"])

    accounts = service.list_accounts()
    if not accounts:
        click.echo("No accounts found. Run 'shopledger init' to create the default chart.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 78)
    for acc in accounts:
        sub_type = f" [{acc.sub_type}]" if acc.sub_type else ""
        click.echo(
            f"ID: {acc.id:3d} | {acc.code:6s} | {acc.name + sub_type:30s} | "
            f"{acc.type.value:9s} | {format_amount(acc.balance):>16s}"
        )


@account_group.command("ledger")
@click.argument("account")
@period_options
@click.option("--oldest-first", is_flag=True, help="Show oldest entries first")
@click.pass_context
def account_ledger(
    ctx,
    account: str,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    oldest_first: bool,
):
    """Show the running-balance ledger of an account.

    ACCOUNT is an account code or ID.
    """
    db = ctx.obj["db"]
    acc = resolve_account_or_exit(ctx, db, account)
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period=period
    )

    service = AccountLedgerService(db)
    entries = service.get_ledger(
        acc.id, start_date=start, end_date=end, newest_first=not oldest_first
    )

    click.echo(f"\nLedger: {acc.code} {acc.name} ({acc.type.value})")
    click.echo("-" * 96)
    if not entries:
        click.echo("No entries found.")
        return
    for entry in entries:
        click.echo(
            f"{entry.date} | {entry.transaction_number or '':18s} | "
            f"{(entry.description or '')[:30]:30s} | "
            f"Dr {entry.debit:>12,.2f} | Cr {entry.credit:>12,.2f} | {entry.balance:>14,.2f}"
        )
    click.echo("-" * 96)
    click.echo(f"Current balance: {format_amount(acc.balance)}")
    if not service.reconcile(acc.id):
        click.echo("Warning: cached balance does not match the ledger.", err=True)


@account_group.command("opening-balance")
@click.argument("account")
@click.argument("amount")
@click.option("--date", "date_str", help="Date of the opening balance (default: today)")
@click.pass_context
def opening_balance(ctx, account: str, amount: str, date_str: str | None):
    """Record an opening balance for an asset or liability account.

    ACCOUNT is an account code or ID.
    """
    db = ctx.obj["db"]
    acc = resolve_account_or_exit(ctx, db, account)
    try:
        value = parse_amount(amount)
        when = parse_date(date_str) if date_str else date.today()
        PostingService(db).set_opening_balance(acc.id, value, when)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Recorded opening balance of {format_amount(value)} for {acc.code} {acc.name}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
