"""Customer and supplier commands."""

import click

from shopledger.cli.date_filters import period_options, resolve_cli_date_range
from shopledger.cli.error_handling import handle_domain_error
from shopledger.domain.balances import BalanceService
from shopledger.domain.entities import EntityRole
from shopledger.domain.errors import DomainError
from shopledger.domain.parties import PartyService
from shopledger.domain.statement import StatementService, balance_label
from shopledger.utils.amount_parser import format_amount, parse_amount


def _parse_opening(ctx, opening_balance: str | None):
    if opening_balance is None:
        return parse_amount("0")
    try:
        return parse_amount(opening_balance)
    except ValueError as e:
        handle_domain_error(ctx, e)


def _show_balance(ctx, role: EntityRole, entity_id: int) -> None:
    try:
        balance = BalanceService(ctx.obj["db"]).entity_balance(role, entity_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\n{balance.name}")
    click.echo("-" * 40)
    click.echo(f"Opening balance: {format_amount(balance.opening_balance):>22s}")
    click.echo(f"Invoiced:        {format_amount(balance.total_invoiced):>22s}")
    click.echo(f"Paid:            {format_amount(balance.total_paid):>22s}")
    click.echo(f"Returns:         {format_amount(balance.total_returns):>22s}")
    if balance.total_refunds:
        click.echo(f"Refunded to us:  {format_amount(balance.total_refunds):>22s}")
    click.echo("-" * 40)
    click.echo(balance_label(balance.pending, role))


def _show_statement(
    ctx,
    role: EntityRole,
    entity_id: int,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
) -> None:
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period=period
    )
    try:
        party = PartyService(ctx.obj["db"]).get(role, entity_id)
        entries = StatementService(ctx.obj["db"]).get_statement(
            role, entity_id, start_date=start, end_date=end
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nStatement: {party.name}")
    click.echo("-" * 100)
    if not entries:
        click.echo("No entries found.")
        return
    for entry in entries:
        click.echo(
            f"{entry.date} | {entry.type.value:15s} | {entry.reference[:24]:24s} | "
            f"Dr {entry.debit:>11,.2f} | Cr {entry.credit:>11,.2f} | "
            f"{balance_label(entry.balance, role)}"
        )


@click.group()
def customer_group():
    """Manage customers."""
    pass


@customer_group.command("create")
@click.argument("name")
@click.option("--phone", help="Contact number")
@click.option("--opening-balance", help="Amount the customer already owes (negative for an advance)")
@click.pass_context
def create_customer(ctx, name: str, phone: str | None, opening_balance: str | None):
    """Create a new customer."""
    amount = _parse_opening(ctx, opening_balance)
    try:
        customer_id = PartyService(ctx.obj["db"]).create_customer(
            name=name, phone=phone, opening_balance=amount
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created customer '{name}' (ID: {customer_id})")


@customer_group.command("list")
@click.pass_context
def list_customers(ctx):
    """List all customers."""
    customers = PartyService(ctx.obj["db"]).list_parties(EntityRole.CUSTOMER)
    if not customers:
        click.echo("No customers found.")
        return
    click.echo("\nCustomers:")
    click.echo("-" * 60)
    for c in customers:
        click.echo(f"ID: {c.id:3d} | {c.name:25s} | {c.phone or ''}")


@customer_group.command("balance")
@click.argument("customer_id", type=int)
@click.pass_context
def customer_balance(ctx, customer_id: int):
    """Show what a customer owes."""
    _show_balance(ctx, EntityRole.CUSTOMER, customer_id)


@customer_group.command("statement")
@click.argument("customer_id", type=int)
@period_options
@click.pass_context
def customer_statement(
    ctx, customer_id: int, start_date: str | None, end_date: str | None, period: str | None
):
    """Show a customer's statement, most recent first."""
    _show_statement(ctx, EntityRole.CUSTOMER, customer_id, start_date, end_date, period)


@click.group()
def supplier_group():
    """Manage suppliers."""
    pass


@supplier_group.command("create")
@click.argument("name")
@click.option("--opening-balance", help="Amount we already owe the supplier (negative for an advance)")
@click.pass_context
def create_supplier(ctx, name: str, opening_balance: str | None):
    """Create a new supplier."""
    amount = _parse_opening(ctx, opening_balance)
    try:
        supplier_id = PartyService(ctx.obj["db"]).create_supplier(
            name=name, opening_balance=amount
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created supplier '{name}' (ID: {supplier_id})")


@supplier_group.command("list")
@click.pass_context
def list_suppliers(ctx):
    """List all suppliers."""
    suppliers = PartyService(ctx.obj["db"]).list_parties(EntityRole.SUPPLIER)
    if not suppliers:
        click.echo("No suppliers found.")
        return
    click.echo("\nSuppliers:")
    click.echo("-" * 60)
    for s in suppliers:
        click.echo(f"ID: {s.id:3d} | {s.name}")


@supplier_group.command("balance")
@click.argument("supplier_id", type=int)
@click.pass_context
def supplier_balance(ctx, supplier_id: int):
    """Show what we owe a supplier."""
    _show_balance(ctx, EntityRole.SUPPLIER, supplier_id)


@supplier_group.command("statement")
@click.argument("supplier_id", type=int)
@period_options
@click.pass_context
def supplier_statement(
    ctx, supplier_id: int, start_date: str | None, end_date: str | None, period: str | None
):
    """Show a supplier's statement, most recent first."""
    _show_statement(ctx, EntityRole.SUPPLIER, supplier_id, start_date, end_date, period)


@click.command("balances")
@click.pass_context
def balances_summary(ctx):
    """Show receivables, payables and cash across the business."""
    totals = BalanceService(ctx.obj["db"]).totals()
    click.echo(f"Receivables ({totals.customer_count} customers): {format_amount(totals.total_receivables)}")
    click.echo(f"Payables ({totals.supplier_count} suppliers):   {format_amount(totals.total_payables)}")
    click.echo(f"Cash position: {format_amount(totals.cash_position)}")
    click.echo(f"Net: {format_amount(totals.net_balance)}")


def register_commands(cli):
    """Register customer, supplier and balances commands with main CLI."""
    cli.add_command(customer_group, name="customer")
    cli.add_command(supplier_group, name="supplier")
    cli.add_command(balances_summary)
