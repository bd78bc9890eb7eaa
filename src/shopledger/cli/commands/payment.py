"""Payment commands."""

from decimal import Decimal

import click

from shopledger.cli.commands.invoice import entity_options, resolve_entity
from shopledger.cli.error_handling import handle_domain_error, resolve_account_or_exit
from shopledger.domain.allocation import PaymentAllocationService
from shopledger.domain.entities import PaymentSelection, SubmissionStatus
from shopledger.utils.amount_parser import format_amount, parse_amount
from shopledger.utils.date_parser import parse_date


def _parse_selection(ctx, value: str) -> PaymentSelection:
    invoice_part, sep, amount_part = value.partition("=")
    if not sep:
        click.echo(f"Error: Invalid --invoice '{value}', expected ID=AMOUNT", err=True)
        ctx.exit(1)
    try:
        return PaymentSelection(
            invoice_id=int(invoice_part), requested_amount=parse_amount(amount_part)
        )
    except ValueError as e:
        click.echo(f"Error: Invalid --invoice '{value}': {e}", err=True)
        ctx.exit(1)


@click.group()
def payment_group():
    """Record payments."""
    pass


@payment_group.command("pay")
@entity_options
@click.option(
    "--invoice",
    "invoices",
    multiple=True,
    required=True,
    help="Invoice to settle as ID=AMOUNT; repeat for several invoices",
)
@click.option("--advance", help="Advance balance to use, shared across the invoices")
@click.option("--account", help="Cash or bank account code/ID paying the cash portion")
@click.option("--date", "date_str", help="Payment date (default: today)")
@click.pass_context
def pay(
    ctx,
    customer_id: int | None,
    supplier_id: int | None,
    invoices: tuple[str, ...],
    advance: str | None,
    account: str | None,
    date_str: str | None,
):
    """Pay one or more invoices of a customer or supplier.

    Each invoice gets its own payment record. When --advance is given the
    advance is shared across the invoices in proportion to what each still
    owes, and only the rest is paid from --account.

    Examples:
        shopledger payment pay --supplier 2 --invoice 5=20000 --account 1100
        shopledger payment pay --customer 1 --invoice 3=200 --invoice 4=300 --advance 100 --account 1000
    """
    db = ctx.obj["db"]
    role, entity_id = resolve_entity(ctx, customer_id, supplier_id)
    selections = [_parse_selection(ctx, value) for value in invoices]
    account_id = resolve_account_or_exit(ctx, db, account).id if account else None

    try:
        advance_used = parse_amount(advance) if advance else Decimal("0")
        report = PaymentAllocationService(db).pay_invoices(
            role,
            entity_id,
            selections,
            advance_used=advance_used,
            payment_account_id=account_id,
            payment_date=parse_date(date_str) if date_str else None,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    for result in report.results:
        if result.status == SubmissionStatus.POSTED:
            payment = db.get_payment(result.payment_id)
            click.echo(
                f"Invoice {result.invoice_id}: posted {payment.payment_number} "
                f"(cash {format_amount(payment.amount)}, "
                f"advance {format_amount(payment.advance_amount_used)})"
            )
        elif result.status == SubmissionStatus.FAILED:
            click.echo(f"Invoice {result.invoice_id}: FAILED - {result.error}", err=True)
        else:
            click.echo(f"Invoice {result.invoice_id}: skipped, not submitted", err=True)

    if not report.is_complete:
        ctx.exit(1)


def register_commands(cli):
    """Register payment commands with main CLI."""
    cli.add_command(payment_group, name="payment")
