"""Fee schedule commands."""

import click

from shopledger.cli.error_handling import handle_domain_error
from shopledger.domain.entities import FeeDomain, FeeMode, FeeSchedule
from shopledger.domain.fee_schedule import FeeScheduleService
from shopledger.utils.amount_parser import format_amount, parse_amount


def _optional_amount(value: str | None):
    return None if value is None else parse_amount(value)


def _echo_schedule(schedule: FeeSchedule) -> None:
    config = schedule.config
    click.echo(f"\n{schedule.name} ({config.mode.value}, {config.domain.value})")
    click.echo("-" * 50)
    if config.mode == FeeMode.PERCENTAGE:
        click.echo(f"Percentage: {config.percentage}%")
    elif config.mode == FeeMode.FIXED:
        click.echo(f"Fixed fee: {format_amount(config.fixed_amount)}")
    else:
        if not config.rules:
            click.echo("No rules defined.")
        for position, rule in enumerate(config.rules, start=1):
            upper = "and above" if rule.max is None else f"to {rule.max}"
            click.echo(f"{position:2d}. {rule.min} {upper}: {format_amount(rule.fee)}")
        click.echo(f"Default fee: {format_amount(config.default_fee)}")


@click.group()
def fee_group():
    """Manage COD and quantity fee schedules."""
    pass


@fee_group.command("create")
@click.argument("name")
@click.option(
    "--mode",
    type=click.Choice([m.value for m in FeeMode], case_sensitive=False),
    default=FeeMode.RANGE_BASED.value,
    show_default=True,
)
@click.option(
    "--domain",
    type=click.Choice([d.value for d in FeeDomain], case_sensitive=False),
    default=FeeDomain.COD.value,
    show_default=True,
    help="COD amount fees or per-item quantity pricing",
)
@click.option("--percentage", help="Percentage of the amount (PERCENTAGE mode)")
@click.option("--fixed", help="Flat fee (FIXED mode)")
@click.option("--default-fee", help="Fee when no range matches (RANGE_BASED mode)")
@click.pass_context
def create_schedule(
    ctx,
    name: str,
    mode: str,
    domain: str,
    percentage: str | None,
    fixed: str | None,
    default_fee: str | None,
):
    """Create a fee schedule.

    Examples:
        shopledger fee create leopards-cod --mode RANGE_BASED --default-fee 150
        shopledger fee create tcs-cod --mode PERCENTAGE --percentage 2.5
    """
    try:
        schedule_id = FeeScheduleService(ctx.obj["db"]).create_schedule(
            name=name,
            mode=FeeMode(mode.upper()),
            domain=FeeDomain(domain.upper()),
            percentage=_optional_amount(percentage),
            fixed_amount=_optional_amount(fixed),
            default_fee=parse_amount(default_fee) if default_fee else parse_amount("0"),
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created fee schedule '{name}' (ID: {schedule_id})")


@fee_group.command("add-rule")
@click.argument("name")
@click.option("--min", "min_value", required=True, help="Lowest amount or quantity (inclusive)")
@click.option("--max", "max_value", help="Highest amount or quantity (inclusive); omit for no limit")
@click.option("--fee", required=True, help="Fee charged inside the range")
@click.pass_context
def add_rule(ctx, name: str, min_value: str, max_value: str | None, fee: str):
    """Add a range rule to a schedule."""
    service = FeeScheduleService(ctx.obj["db"])
    try:
        schedule = service.add_rule(
            name,
            min=parse_amount(min_value),
            max=_optional_amount(max_value),
            fee=parse_amount(fee),
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    _echo_schedule(schedule)


@fee_group.command("remove-rule")
@click.argument("name")
@click.argument("position", type=int)
@click.pass_context
def remove_rule(ctx, name: str, position: int):
    """Remove a rule by its position as shown by 'fee show'."""
    service = FeeScheduleService(ctx.obj["db"])
    try:
        schedule = service.remove_rule(name, position - 1)
    except ValueError as e:
        handle_domain_error(ctx, e)
    _echo_schedule(schedule)


@fee_group.command("show")
@click.argument("name", required=False)
@click.pass_context
def show_schedule(ctx, name: str | None):
    """Show one schedule, or all of them when NAME is omitted."""
    service = FeeScheduleService(ctx.obj["db"])
    if name is None:
        schedules = service.list_schedules()
        if not schedules:
            click.echo("No fee schedules found.")
            return
    else:
        try:
            schedules = [service.get_schedule(name)]
        except ValueError as e:
            handle_domain_error(ctx, e)
    for schedule in schedules:
        _echo_schedule(schedule)


@fee_group.command("evaluate")
@click.argument("name")
@click.argument("value")
@click.pass_context
def evaluate(ctx, name: str, value: str):
    """Compute the fee a schedule charges for an amount or quantity."""
    try:
        fee = FeeScheduleService(ctx.obj["db"]).evaluate(name, parse_amount(value))
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Fee: {format_amount(fee)}")


def register_commands(cli):
    """Register fee commands with main CLI."""
    cli.add_command(fee_group, name="fee")
