"""Invoice and return commands."""

import click

from shopledger.cli.error_handling import handle_domain_error, resolve_account_or_exit
from shopledger.domain.entities import EntityRole
from shopledger.domain.invoice import InvoiceService
from shopledger.utils.amount_parser import format_amount, parse_amount
from shopledger.utils.date_parser import parse_date


def entity_options(func):
    """Add mutually exclusive --customer / --supplier options."""
    func = click.option("--supplier", "supplier_id", type=int, help="Supplier ID")(func)
    func = click.option("--customer", "customer_id", type=int, help="Customer ID")(func)
    return func


def resolve_entity(ctx, customer_id: int | None, supplier_id: int | None) -> tuple[EntityRole, int]:
    """Pick the role from --customer / --supplier, exiting unless exactly one is given."""
    if (customer_id is None) == (supplier_id is None):
        click.echo("Error: Specify exactly one of --customer or --supplier.", err=True)
        ctx.exit(1)
    if customer_id is not None:
        return EntityRole.CUSTOMER, customer_id
    return EntityRole.SUPPLIER, supplier_id


@click.group()
def invoice_group():
    """Manage customer orders and supplier invoices."""
    pass


@invoice_group.command("create")
@click.argument("number")
@click.argument("amount")
@entity_options
@click.option("--date", "date_str", help="Invoice date (default: today)")
@click.option("--paid", help="Amount already paid when the invoice was raised")
@click.pass_context
def create_invoice(
    ctx,
    number: str,
    amount: str,
    customer_id: int | None,
    supplier_id: int | None,
    date_str: str | None,
    paid: str | None,
):
    """Create an order for a customer or a purchase invoice from a supplier.

    Examples:
        shopledger invoice create ORD-1001 4500 --customer 1
        shopledger invoice create PI-77 120000 --supplier 2 --date 2025-01-31
    """
    role, entity_id = resolve_entity(ctx, customer_id, supplier_id)
    try:
        invoice_id = InvoiceService(ctx.obj["db"]).create_invoice(
            role=role,
            entity_id=entity_id,
            number=number,
            total_amount=parse_amount(amount),
            invoice_date=parse_date(date_str) if date_str else None,
            paid_amount=parse_amount(paid) if paid else None,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created invoice {number} (ID: {invoice_id})")


@invoice_group.command("list")
@entity_options
@click.option("--pending", is_flag=True, help="Only invoices with an outstanding balance")
@click.pass_context
def list_invoices(ctx, customer_id: int | None, supplier_id: int | None, pending: bool):
    """List invoices of a customer or supplier with their pending amounts."""
    role, entity_id = resolve_entity(ctx, customer_id, supplier_id)
    rows = InvoiceService(ctx.obj["db"]).list_invoices(role, entity_id, pending_only=pending)
    if not rows:
        click.echo("No invoices found.")
        return

    click.echo("\nInvoices:")
    click.echo("-" * 78)
    for inv, pending_amount in rows:
        click.echo(
            f"ID: {inv.id:3d} | {inv.number:14s} | {inv.date} | "
            f"Total {format_amount(inv.total_amount):>14s} | "
            f"Pending {format_amount(pending_amount):>14s}"
        )


@invoice_group.command("return")
@click.argument("invoice_id", type=int)
@click.argument("return_number")
@click.argument("amount")
@click.option("--refund", help="Part of a supplier return the supplier pays back in cash")
@click.option("--account", help="Cash or bank account code/ID receiving the refund")
@click.option("--date", "date_str", help="Return date (default: today)")
@click.pass_context
def record_return(
    ctx,
    invoice_id: int,
    return_number: str,
    amount: str,
    refund: str | None,
    account: str | None,
    date_str: str | None,
):
    """Record goods returned against an invoice.

    Customer returns are credited to the customer's account. For a supplier
    return, --refund with --account records cash the supplier paid back.
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, db, account).id if account else None
    try:
        return_id = InvoiceService(db).record_return(
            invoice_id=invoice_id,
            return_number=return_number,
            total_amount=parse_amount(amount),
            refund_amount=parse_amount(refund) if refund else parse_amount("0"),
            return_date=parse_date(date_str) if date_str else None,
            refund_account_id=account_id,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Recorded return {return_number} (ID: {return_id})")


def register_commands(cli):
    """Register invoice commands with main CLI."""
    cli.add_command(invoice_group, name="invoice")
