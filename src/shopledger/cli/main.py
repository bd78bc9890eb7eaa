"""Main CLI entry point."""

import click
from shopledger.database.factories import create_sqlite_database
from shopledger.logging_config import LOG_LEVELS, configure_logging

# Import and register all commands at module level
from shopledger.cli.commands import (
    account,
    fee,
    init,
    invoice,
    parties,
    payment,
    shipping,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides SHOPLEDGER_DB_PATH environment variable)",
    envvar="SHOPLEDGER_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Log level (overrides SHOPLEDGER_LOG_LEVEL environment variable)",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str | None):
    """Shopledger - order and payment ledger for a small online shop.

    Track what customers owe you and what you owe suppliers, split payments
    across invoices, and price COD and shipping fees.
    """
    ctx.ensure_object(dict)
    configure_logging(level=log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
init.register_commands(cli)
account.register_commands(cli)
parties.register_commands(cli)
invoice.register_commands(cli)
payment.register_commands(cli)
fee.register_commands(cli)
shipping.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
