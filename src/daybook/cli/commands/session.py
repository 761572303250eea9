"""Driver session commands."""

import click
from daybook.cli.error_handling import handle_domain_error
from daybook.domain.errors import DomainError, InfrastructureError
from daybook.domain.session import SessionService


def _session_service(ctx) -> SessionService:
    return SessionService(ctx.obj["db"], ctx.obj["gateway"], ctx.obj["sync_queue"])


@click.group("session")
def session_group():
    """Log in, register or work offline."""
    pass


@session_group.command("login")
@click.argument("mobile")
@click.option("--password", prompt=True, hide_input=True, help="Account password")
@click.pass_context
def login(ctx, mobile: str, password: str):
    """Log in with a mobile number and password.

    Examples:
        daybook session login 01012345678
    """
    if not ctx.obj["sync_queue"].online:
        click.echo("Error: Logging in requires a network connection. Use 'session offline' instead", err=True)
        ctx.exit(1)

    service = _session_service(ctx)
    try:
        driver = service.login(mobile, password)
    except (DomainError, InfrastructureError) as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Logged in as {driver.mobile}")


@session_group.command("register")
@click.argument("name")
@click.argument("mobile")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True, help="Account password")
@click.pass_context
def register(ctx, name: str, mobile: str, password: str):
    """Create a driver account on the server.

    Examples:
        daybook session register "Ahmed Ali" 01012345678
    """
    if not ctx.obj["sync_queue"].online:
        click.echo("Error: Registration requires a network connection", err=True)
        ctx.exit(1)

    service = _session_service(ctx)
    try:
        service.register(name, mobile, password)
    except (DomainError, InfrastructureError) as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Registered {name} ({mobile}). You can now log in")


@session_group.command("offline")
@click.argument("name")
@click.argument("mobile")
@click.pass_context
def start_offline(ctx, name: str, mobile: str):
    """Work without a server account. Data stays on this device.

    Examples:
        daybook session offline "Ahmed" 01012345678
    """
    service = _session_service(ctx)
    try:
        driver = service.start_offline_mode(name, mobile)
    except (DomainError, InfrastructureError) as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Started offline mode for {driver.name} ({driver.mobile})")


@session_group.command("logout")
@click.pass_context
def logout(ctx):
    """End the current session. Local records are kept."""
    try:
        driver = _session_service(ctx).logout()
    except (DomainError, InfrastructureError) as e:
        handle_domain_error(ctx, e)
        return
    if driver is None:
        click.echo("No active session.")
        return
    click.echo(f"Logged out {driver.mobile}")


@session_group.command("whoami")
@click.pass_context
def whoami(ctx):
    """Show the active driver and pending sync items."""
    service = _session_service(ctx)
    try:
        driver = service.resume()
    except (DomainError, InfrastructureError) as e:
        handle_domain_error(ctx, e)
        return

    if driver is None:
        click.echo("No active session.")
        return

    mode = "offline only" if driver.is_offline_only else "online"
    click.echo(f"Driver: {driver.name} ({driver.mobile})")
    click.echo(f"Mode: {mode}")
    if not driver.is_offline_only:
        pending = ctx.obj["sync_queue"].pending(driver_id=driver.mobile)
        click.echo(f"Pending sync items: {len(pending)}")


def _parse_setting(value: str) -> tuple[str, bool]:
    key, sep, flag = value.partition("=")
    flag = flag.strip().lower()
    if not sep or not key.strip() or flag not in ("on", "off", "true", "false", "1", "0"):
        raise click.BadParameter(f"Expected KEY=on|off, got '{value}'")
    return key.strip(), flag in ("on", "true", "1")


@session_group.command("preferences")
@click.option("--set", "settings", multiple=True, help="Preference as KEY=on|off (repeatable)")
@click.pass_context
def preferences(ctx, settings: tuple[str, ...]):
    """Show or change sound and notification preferences.

    Examples:
        daybook session preferences
        daybook session preferences --set tap=off --set sync=on
    """
    service = _session_service(ctx)
    driver = service.current_driver()
    if driver is None:
        click.echo("Error: No active driver session. Log in or start offline mode first", err=True)
        ctx.exit(1)

    if settings:
        updated = dict(driver.preferences)
        for value in settings:
            key, flag = _parse_setting(value)
            updated[key] = flag
        driver = service.update_preferences(updated)

    for key, flag in sorted(driver.preferences.items()):
        click.echo(f"{key:10s} {'on' if flag else 'off'}")


def register_commands(cli):
    """Register session commands with main CLI."""
    cli.add_command(session_group)
