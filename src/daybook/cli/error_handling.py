"""CLI error handling helpers."""

import click

from daybook.domain.errors import DomainError, InfrastructureError
from daybook.domain.outcomes import Rejection


def handle_domain_error(ctx: click.Context, error: DomainError | InfrastructureError | ValueError) -> None:
    """Render a domain or infrastructure error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def handle_rejection(ctx: click.Context, outcome: Rejection) -> None:
    """Render a business-rule rejection and exit with failure."""
    click.echo(f"Error: {outcome.message}", err=True)
    ctx.exit(1)
