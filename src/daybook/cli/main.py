"""Main CLI entry point."""

import logging

import click
from daybook.database.factories import create_sqlite_database
from daybook.domain.errors import InfrastructureError
from daybook.domain.sync import SyncQueueManager
from daybook.remote.factories import create_remote_gateway

# Import and register all commands at module level
from daybook.cli.commands import (
    session,
    day,
    add,
    transaction,
    sync,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides DAYBOOK_DB_PATH environment variable)",
    envvar="DAYBOOK_DB_PATH",
)
@click.option(
    "--api-url",
    help="Base URL of the drivers API (overrides DAYBOOK_API_URL environment variable)",
    envvar="DAYBOOK_API_URL",
)
@click.option("--offline", is_flag=True, help="Treat the network as unreachable")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, api_url: str | None, offline: bool, verbose: bool):
    """Daybook - cash ledger for delivery drivers.

    Record income, expenses and trades for the working day, close the day
    into a permanent record, and sync with the server when online.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()

        try:
            driver = db.get_current_driver()
        except InfrastructureError as e:
            db.disconnect()
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)
        gateway = create_remote_gateway(base_url=api_url, token=driver.token if driver else None)

        ctx.obj["db"] = db
        ctx.obj["gateway"] = gateway
        ctx.obj["sync_queue"] = SyncQueueManager(db, gateway, online=not offline)
        ctx.call_on_close(gateway.close)
        ctx.call_on_close(db.disconnect)


# Register all commands
session.register_commands(cli)
day.register_commands(cli)
add.register_commands(cli)
transaction.register_commands(cli)
sync.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
