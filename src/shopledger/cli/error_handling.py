"""CLI error handling helpers."""

import click

from shopledger.domain.account import AccountService
from shopledger.domain.entities import Account
from shopledger.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def resolve_account_or_exit(ctx: click.Context, db, account: str) -> Account:
    """Resolve an account code or ID, or exit with a CLI error."""
    try:
        return AccountService(db).resolve(account)
    except DomainError as e:
        handle_domain_error(ctx, e)
