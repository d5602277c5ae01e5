"""TenantCore management CLI."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from tenantcore import __version__


console = Console()

app = typer.Typer(
    name="tenantcore",
    help="Manage a TenantCore deployment.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback(invoke_without_command=True)
def version_callback(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit."
    ),
) -> None:
    """TenantCore CLI - seeding, renewal and key utilities."""
    if version:
        console.print(f"[bold cyan]tenantcore[/bold cyan] version {__version__}")
        raise typer.Exit()


@app.command(name="seed")
def seed_command(
    superadmin_password: str = typer.Option(
        "SuperAdmin123!",
        "--superadmin-password",
        envvar="TENANTCORE_SUPERADMIN_PASSWORD",
        help="Password for superadmin@tenantcore.com if it is created.",
    ),
) -> None:
    """Create the super-admin, plans and demo tenants.

    Existing rows are left alone. API keys of newly created tenants are
    printed once and cannot be recovered later.
    """
    from tenantcore.core.database import async_session_factory
    from tenantcore.seed import seed

    report = asyncio.run(seed(async_session_factory, superadmin_password))

    if report.superadmin_created:
        console.print("[green]Created[/green] superadmin@tenantcore.com")
    for name in report.plans_created:
        console.print(f"[green]Created[/green] plan {name}")
    console.print(f"[green]Created[/green] {report.users_created} tenant users")

    if not report.api_keys:
        console.print("[yellow]No new tenants; nothing else to do.[/yellow]")
        return

    table = Table(title="Demo tenant API keys (shown once)", show_header=True)
    table.add_column("Domain", style="cyan", no_wrap=True)
    table.add_column("API key", overflow="fold")
    for domain, api_key in report.api_keys.items():
        table.add_row(domain, api_key)

    console.print()
    console.print(table)
    console.print()


@app.command(name="renew")
def renew_command(
    queue: bool = typer.Option(
        False, "--queue", "-q", help="Enqueue on the ARQ worker instead of running here."
    ),
) -> None:
    """Run one subscription renewal pass."""
    if queue:
        from tenantcore.core.jobs import close_arq_pool, enqueue, init_arq_pool

        async def _enqueue() -> None:
            await init_arq_pool()
            try:
                await enqueue("run_subscription_renewal")
            finally:
                await close_arq_pool()

        asyncio.run(_enqueue())
        console.print("[green]Queued[/green] run_subscription_renewal")
        return

    from tenantcore.core.database import async_session_factory
    from tenantcore.modules.billing.gateway import get_payment_gateway
    from tenantcore.modules.billing.notifications import get_notifier
    from tenantcore.modules.subscriptions.renewal import RenewalSweep

    sweep = RenewalSweep(async_session_factory, get_payment_gateway(), get_notifier())
    report = asyncio.run(sweep.run_once())

    table = Table(title="Renewal pass", show_header=True)
    table.add_column("Outcome", style="cyan")
    table.add_column("Count", justify="right")
    for outcome, count in report.as_dict().items():
        table.add_row(outcome, str(count))
    console.print(table)

    if report.failed:
        console.print(f"[red]Failed:[/red] {', '.join(report.failed_ids)}")
        raise typer.Exit(code=1)


@app.command(name="generate-key")
def generate_key_command(
    test: bool = typer.Option(
        False, "--test", "-t", help="Generate a tc_test_ key instead of tc_live_."
    ),
) -> None:
    """Print a new API key with its hash and prefix.

    Nothing is stored; use this to provision keys out of band.
    """
    from tenantcore.core.auth.api_keys import ApiKeyCodec

    key = ApiKeyCodec.generate(is_production=not test)
    console.print(f"[bold]Key:[/bold]    {key.plaintext}")
    console.print(f"[bold]Hash:[/bold]   {key.hash}")
    console.print(f"[bold]Prefix:[/bold] {key.prefix}")


@app.command(name="create-superadmin")
def create_superadmin_command(
    email: str = typer.Option(..., "--email", "-e", help="Login email."),
    password: str = typer.Option(
        ..., "--password", "-p", prompt=True, hide_input=True, confirmation_prompt=True
    ),
    first_name: str = typer.Option("Super", "--first-name"),
    last_name: str = typer.Option("Admin", "--last-name"),
) -> None:
    """Create a platform super-admin (a user without a tenant)."""
    from tenantcore.core.auth.backend import hash_password
    from tenantcore.core.auth.principal import Role
    from tenantcore.core.database import (
        TenantContext,
        TenantScopedSession,
        acting_as,
        async_session_factory,
    )
    from tenantcore.modules.users.models import User
    from tenantcore.modules.users.repos import UserRepository

    async def _create() -> bool:
        with acting_as("cli"):
            async with async_session_factory() as session:
                users = UserRepository(
                    TenantScopedSession(session, TenantContext.system())
                )
                if await users.email_exists(email):
                    return False
                await users.create(
                    User(
                        tenant_id=None,
                        email=email.lower(),
                        password_hash=hash_password(password),
                        first_name=first_name,
                        last_name=last_name,
                        role=Role.SUPER_ADMIN.value,
                    )
                )
                await session.commit()
        return True

    if not asyncio.run(_create()):
        console.print(f"[red]Error:[/red] {email} is already registered.")
        raise typer.Exit(code=1)
    console.print(f"[green]Created[/green] super-admin {email}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
