"""Shipping quote command."""

import click

from shopledger.cli.error_handling import handle_domain_error
from shopledger.domain.shipping import calculate_shipping_charges
from shopledger.utils.amount_parser import format_amount
from shopledger.utils.json_field import Raw


@click.group()
def shipping_group():
    """Shipping charges."""
    pass


@shipping_group.command("quote")
@click.argument("config_file", type=click.File("r"))
@click.option("--city", help="Delivery city")
@click.option(
    "--quantity",
    "quantities",
    type=int,
    multiple=True,
    help="Quantity of one order line; repeat for several lines",
)
@click.pass_context
def quote(ctx, config_file, city: str | None, quantities: tuple[int, ...]):
    """Quote the shipping charge for an order.

    CONFIG_FILE is a JSON shipping configuration with cityCharges,
    defaultCityCharge, quantityRules and defaultQuantityCharge. Cities may
    also be listed at the top level, as in {"Karachi": 150, "default": 300}.

    Example:
        shopledger shipping quote shipping.json --city Lahore --quantity 2 --quantity 1
    """
    items = [{"quantity": q} for q in quantities]
    try:
        total = calculate_shipping_charges(Raw(config_file.read()), city, items)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Shipping: {format_amount(total)}")


def register_commands(cli):
    """Register shipping commands with main CLI."""
    cli.add_command(shipping_group, name="shipping")
