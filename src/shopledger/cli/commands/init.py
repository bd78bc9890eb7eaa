"""Initialize the default chart of accounts."""

import click

from shopledger.domain.errors import DomainError
from shopledger.domain.posting import DEFAULT_CHART, PostingService
from shopledger.cli.error_handling import handle_domain_error


@click.command("init")
@click.pass_context
def init_accounts(ctx):
    """Create the default chart of accounts.

    Accounts that already exist are left untouched, so running this twice
    is harmless.
    """
    db = ctx.obj["db"]
    existing = {acc.code for acc in db.list_accounts()}

    try:
        PostingService(db).initialize_chart_of_accounts()
    except DomainError as e:
        handle_domain_error(ctx, e)

    created = sum(1 for code, _, _, _ in DEFAULT_CHART if code not in existing)
    if created == 0:
        click.echo("Chart of accounts already initialized.")
    else:
        click.echo(f"Created {created} accounts.")


def register_commands(cli):
    """Register init command with main CLI."""
    cli.add_command(init_accounts)
