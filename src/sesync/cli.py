"""Command-line interface for Smart Energy Sync."""

import asyncio
import csv
import json
from datetime import date, datetime, timedelta
from typing import Any

import click
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskID, TextColumn
from rich.table import Table

from sesync.types import Utility

console = Console()

UTILITY_CHOICE = click.Choice([u.value for u in Utility])


def get_event_loop() -> asyncio.AbstractEventLoop:
    """Get or create an event loop."""
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.new_event_loop()


def run_async(coro):
    """Run an async coroutine."""
    loop = get_event_loop()
    return loop.run_until_complete(coro)


def load_settings(config_path: str | None = None):
    """Load and validate settings.

    Args:
        config_path: Optional path to .env file.

    Returns:
        Validated Settings object.
    """
    from sesync.config.logging import configure_logging
    from sesync.config.settings import Settings, get_settings

    try:
        if config_path:
            settings = Settings(_env_file=config_path)
        else:
            # Clear cached settings to pick up a changed environment
            get_settings.cache_clear()
            settings = get_settings()
        configure_logging(settings)
        return settings
    except Exception as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        console.print("\n[yellow]Hint:[/yellow] Set SESYNC_PROVIDER=n3rgy or glowmarkt in .env")
        raise SystemExit(1) from None


def build_service(settings, sink=None):
    """Create the application service for the configured database and keychain."""
    from sesync.db.engine import Database
    from sesync.secrets import KeyringSecretStore
    from sesync.service import EnergyService

    database = Database.from_settings(settings)
    secret_store = KeyringSecretStore(settings.keyring_service_name)
    return EnergyService(settings, database, secret_store, sink=sink)


class ProgressDisplay:
    """Renders ``downloadUpdate`` events as rich progress bars."""

    def __init__(self, progress: Progress) -> None:
        self.progress = progress
        self.tasks: dict[str, TaskID] = {}

    def __call__(self, event: str, payload: dict[str, Any]) -> None:
        from sesync.sync.events import DOWNLOAD_UPDATE

        if event != DOWNLOAD_UPDATE:
            return
        name = payload["name"]
        if name not in self.tasks:
            self.tasks[name] = self.progress.add_task(name, total=100)
        self.progress.update(self.tasks[name], completed=payload["percentage"])


def parse_utility(value: str) -> Utility:
    return Utility(value)


def default_range(start: datetime | None, end: datetime | None) -> tuple[date, date]:
    """Resolve optional CLI dates; defaults to the last 30 days up to today inclusive."""
    end_date = end.date() if end else date.today() + timedelta(days=1)
    start_date = start.date() if start else end_date - timedelta(days=31)
    return start_date, end_date


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    help="Path to .env configuration file",
)
@click.pass_context
def cli(ctx: click.Context, config: str | None) -> None:
    """Smart Energy Sync - Cache smart meter history in a local database."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config


@cli.command()
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Initialize the database schema."""
    from sesync.config.logging import get_logger
    from sesync.db.engine import Database

    settings = load_settings(ctx.obj.get("config_path"))
    logger = get_logger(__name__)

    console.print("[bold]Initializing database...[/bold]")

    try:
        Database.from_settings(settings)
        console.print("[green]Database initialized successfully![/green]")
        logger.info("Database initialized", url=settings.database_url)
    except Exception as e:
        console.print(f"[red]Failed to initialize database:[/red] {e}")
        logger.error("Database initialization failed", error=str(e))
        raise SystemExit(1) from None


@cli.command()
@click.pass_context
def check_provider(ctx: click.Context) -> None:
    """Check that the stored credentials reach the configured provider."""
    from sesync.config.logging import get_logger

    settings = load_settings(ctx.obj.get("config_path"))
    logger = get_logger(__name__)

    console.print(f"[bold]Checking {settings.provider} connection...[/bold]")

    service = build_service(settings)
    if run_async(service.test_connection()):
        console.print("[green]Provider connection successful[/green]")
        logger.info("Provider check successful", provider=settings.provider)
    else:
        console.print("[red]Provider connection failed[/red] (see log for details)")
        raise SystemExit(1)


@cli.command()
@click.pass_context
def sync(ctx: click.Context) -> None:
    """Download new history from the provider into the database."""
    from sesync.config.logging import get_logger
    from sesync.sync.events import CallbackEventSink

    settings = load_settings(ctx.obj.get("config_path"))
    logger = get_logger(__name__)

    console.print(f"[bold]Starting sync from {settings.provider}...[/bold]")

    progress = Progress(
        TextColumn("{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        console=console,
    )
    service = build_service(settings, sink=CallbackEventSink(ProgressDisplay(progress)))

    try:
        with progress:
            summary = run_async(service.sync_now())
    except Exception as e:
        console.print(f"[red]Sync failed:[/red] {e}")
        logger.error("Sync failed", error=str(e))
        raise SystemExit(1) from None

    if summary is None:
        console.print(
            "[yellow]Sync not started: no provider credentials or connection failed.[/yellow]"
        )
        raise SystemExit(1)

    table = Table(title="Sync Results")
    table.add_column("Stream", style="cyan")
    table.add_column("Status")
    table.add_column("Synced Until")

    for result in summary.results:
        if result.skipped:
            status_str = "[yellow]Skipped[/yellow]"
        elif result.success:
            status_str = "[green]Success[/green]"
        else:
            status_str = "[red]Failed[/red]"
        checkpoint = result.checkpoint.isoformat() if result.checkpoint else "-"
        table.add_row(result.name, status_str, checkpoint)

    console.print(table)
    console.print(f"\n[bold]Duration:[/bold] {summary.duration_seconds:.1f}s")

    for result in summary.failed:
        console.print(f"[red]{result.name}:[/red] {result.error}")

    if not summary.success:
        raise SystemExit(1)


def print_profiles(profiles) -> None:
    table = Table(title="Energy Profiles")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Active")
    table.add_column("Start Date")
    table.add_column("Last Synced")
    table.add_column("Unit")

    for p in profiles:
        table.add_row(
            str(p.energy_profile_id),
            p.name,
            "[green]yes[/green]" if p.is_active else "[red]no[/red]",
            p.start_date.strftime("%Y-%m-%d"),
            p.last_synced.strftime("%Y-%m-%d") if p.last_synced else "-",
            p.base_unit,
        )

    console.print(table)


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show credential status and per-stream sync checkpoints."""
    from sesync.secrets import get_api_key

    settings = load_settings(ctx.obj.get("config_path"))
    service = build_service(settings)

    if settings.provider == "n3rgy":
        configured = get_api_key(service.secret_store) is not None
    else:
        configured = service.get_glowmarkt_credentials() is not None

    console.print(f"[bold]Provider:[/bold] {settings.provider}")
    console.print(
        "[bold]Credentials:[/bold] "
        + ("[green]stored[/green]" if configured else "[yellow]not configured[/yellow]")
    )

    profiles = run_async(service.get_energy_profiles())
    if not profiles:
        console.print("[yellow]No streams synced yet. Run 'sesync sync' first.[/yellow]")
        return
    print_profiles(profiles)


@cli.command()
@click.pass_context
def profiles(ctx: click.Context) -> None:
    """List energy profiles."""
    settings = load_settings(ctx.obj.get("config_path"))
    service = build_service(settings)
    print_profiles(run_async(service.get_energy_profiles()))


@cli.command()
@click.option("--id", "profile_id", type=int, required=True, help="Profile ID")
@click.option("--active/--inactive", default=True, help="Enable or disable downloads")
@click.option("--start-date", type=click.DateTime(["%Y-%m-%d"]), required=True, help="YYYY-MM-DD")
@click.option("--sync/--no-sync", "run_sync", default=True, help="Sync after updating")
@click.pass_context
def profile_update(
    ctx: click.Context, profile_id: int, active: bool, start_date: datetime, run_sync: bool
) -> None:
    """Edit a profile's activation and start date."""
    from sesync.service import EnergyProfileUpdate
    from sesync.utils.exceptions import NotFoundError

    settings = load_settings(ctx.obj.get("config_path"))
    service = build_service(settings)
    update = EnergyProfileUpdate(
        energy_profile_id=profile_id, is_active=active, start_date=start_date.date()
    )

    async def _update():
        updated = await service.update_energy_profile_settings([update], trigger_sync=False)
        if run_sync:
            await service.sync_now()
        return updated

    try:
        updated = run_async(_update())
    except NotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1) from None

    print_profiles(updated)


@cli.command()
@click.option("--utility", "-u", type=UTILITY_CHOICE, default="electricity")
@click.option(
    "--granularity",
    "-g",
    type=click.Choice(["raw", "daily", "monthly"]),
    default="daily",
    help="Reading granularity",
)
@click.option("--start", type=click.DateTime(["%Y-%m-%d"]), help="Start date (inclusive)")
@click.option("--end", type=click.DateTime(["%Y-%m-%d"]), help="End date (exclusive)")
@click.pass_context
def consumption(
    ctx: click.Context,
    utility: str,
    granularity: str,
    start: datetime | None,
    end: datetime | None,
) -> None:
    """Show cached consumption."""
    settings = load_settings(ctx.obj.get("config_path"))
    service = build_service(settings)
    start_date, end_date = default_range(start, end)
    u = parse_utility(utility)

    table = Table(title=f"{u.value.title()} consumption ({granularity})")
    table.add_column("Period", style="cyan")
    table.add_column("kWh", justify="right")

    if granularity == "raw":
        for reading in run_async(service.get_raw_consumption(u, start_date, end_date)):
            table.add_row(reading.timestamp.strftime("%Y-%m-%d %H:%M"), f"{reading.value:.3f}")
    else:
        getter = (
            service.get_daily_consumption
            if granularity == "daily"
            else service.get_monthly_consumption
        )
        for total in run_async(getter(u, start_date, end_date)):
            table.add_row(total.period_start.isoformat(), f"{total.value:.3f}")

    console.print(table)


@cli.command()
@click.option("--utility", "-u", type=UTILITY_CHOICE, default="electricity")
@click.pass_context
def tariffs(ctx: click.Context, utility: str) -> None:
    """Show standing charge and unit price history."""
    settings = load_settings(ctx.obj.get("config_path"))
    service = build_service(settings)
    history = run_async(service.get_tariff_history(parse_utility(utility)))

    table = Table(title="Standing charges")
    table.add_column("Effective", style="cyan")
    table.add_column("Pence/day", justify="right")
    for sc in history.standing_charges:
        table.add_row(sc.start_date.strftime("%Y-%m-%d %H:%M"), f"{sc.value:.3f}")
    console.print(table)

    table = Table(title="Unit prices")
    table.add_column("Effective", style="cyan")
    table.add_column("Pence/kWh", justify="right")
    for price in history.unit_prices:
        table.add_row(price.timestamp.strftime("%Y-%m-%d %H:%M"), f"{price.value:.3f}")
    console.print(table)

    if history.plans:
        table = Table(title="Tariff plans")
        table.add_column("ID", style="cyan")
        table.add_column("Name")
        table.add_column("Effective")
        for plan in history.plans:
            table.add_row(
                plan.tariff_id, plan.display_name, plan.effective_date.strftime("%Y-%m-%d")
            )
        console.print(table)


@cli.command()
@click.option("--utility", "-u", type=UTILITY_CHOICE, default="electricity")
@click.option("--start", type=click.DateTime(["%Y-%m-%d"]), help="Start date (inclusive)")
@click.option("--end", type=click.DateTime(["%Y-%m-%d"]), help="End date (exclusive)")
@click.pass_context
def costs(ctx: click.Context, utility: str, start: datetime | None, end: datetime | None) -> None:
    """Show daily costs."""
    settings = load_settings(ctx.obj.get("config_path"))
    service = build_service(settings)
    start_date, end_date = default_range(start, end)
    daily_costs = run_async(service.get_cost_history(parse_utility(utility), start_date, end_date))

    table = Table(title="Daily costs")
    table.add_column("Day", style="cyan")
    table.add_column("kWh", justify="right")
    table.add_column("Standing (p)", justify="right")
    table.add_column("Unit (p/kWh)", justify="right")
    table.add_column("Cost (£)", justify="right")

    total = 0.0
    for cost in daily_costs:
        total += cost.cost_pence
        table.add_row(
            cost.day.isoformat(),
            f"{cost.consumption:.3f}",
            f"{cost.standing_charge_pence:.2f}",
            f"{cost.unit_price_pence:.2f}",
            f"{cost.cost_pence / 100:.2f}",
        )

    console.print(table)
    console.print(f"\n[bold]Total:[/bold] £{total / 100:.2f} over {len(daily_costs)} day(s)")


@cli.group()
@click.pass_context
def export(ctx: click.Context) -> None:
    """Export data to CSV or JSON files."""
    pass


def write_output(data: list[dict], output: str | None, format: str, name: str) -> None:
    """Write data to file.

    Args:
        data: List of dictionaries to export.
        output: Output file path or None for auto-generated.
        format: Output format (csv or json).
        name: Data name for auto-generated filename.
    """
    if not data:
        console.print("[yellow]No data to export.[/yellow]")
        return

    # Generate filename if not provided
    if output is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output = f"sesync_{name}_{timestamp}.{format}"

    # Convert datetime objects to strings
    for row in data:
        for key, value in row.items():
            if isinstance(value, (datetime, date)):
                row[key] = value.isoformat()

    if format == "json":
        with open(output, "w") as f:
            json.dump(data, f, indent=2, default=str)
    else:  # csv
        with open(output, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=data[0].keys())
            writer.writeheader()
            writer.writerows(data)

    console.print(f"[green]Exported {len(data)} records to {output}[/green]")


@export.command("consumption")
@click.option("--format", "-f", type=click.Choice(["csv", "json"]), default="csv")
@click.option("--output", "-o", type=click.Path(), help="Output file path")
@click.option("--utility", "-u", type=UTILITY_CHOICE, default="electricity")
@click.option("--start", type=click.DateTime(["%Y-%m-%d"]), help="Start date (inclusive)")
@click.option("--end", type=click.DateTime(["%Y-%m-%d"]), help="End date (exclusive)")
@click.pass_context
def export_consumption(
    ctx: click.Context,
    format: str,
    output: str | None,
    utility: str,
    start: datetime | None,
    end: datetime | None,
) -> None:
    """Export raw consumption readings."""
    settings = load_settings(ctx.obj.get("config_path"))
    service = build_service(settings)
    start_date, end_date = default_range(start, end)
    readings = run_async(service.get_raw_consumption(parse_utility(utility), start_date, end_date))

    data = [{"timestamp": r.timestamp, "kwh": r.value} for r in readings]
    write_output(data, output, format, f"{utility}_consumption")


@export.command("costs")
@click.option("--format", "-f", type=click.Choice(["csv", "json"]), default="csv")
@click.option("--output", "-o", type=click.Path(), help="Output file path")
@click.option("--utility", "-u", type=UTILITY_CHOICE, default="electricity")
@click.option("--start", type=click.DateTime(["%Y-%m-%d"]), help="Start date (inclusive)")
@click.option("--end", type=click.DateTime(["%Y-%m-%d"]), help="End date (exclusive)")
@click.pass_context
def export_costs(
    ctx: click.Context,
    format: str,
    output: str | None,
    utility: str,
    start: datetime | None,
    end: datetime | None,
) -> None:
    """Export daily costs."""
    settings = load_settings(ctx.obj.get("config_path"))
    service = build_service(settings)
    start_date, end_date = default_range(start, end)
    daily_costs = run_async(service.get_cost_history(parse_utility(utility), start_date, end_date))

    data = [
        {
            "day": c.day,
            "kwh": c.consumption,
            "standing_charge_pence": c.standing_charge_pence,
            "unit_price_pence": c.unit_price_pence,
            "cost_pence": round(c.cost_pence, 4),
        }
        for c in daily_costs
    ]
    write_output(data, output, format, f"{utility}_costs")


async def _await_sync(task: asyncio.Task | None) -> None:
    if task is not None:
        await task


@cli.command()
@click.option("--api-key", prompt=True, hide_input=True, help="n3rgy API key")
@click.pass_context
def set_api_key(ctx: click.Context, api_key: str) -> None:
    """Store the n3rgy API key in the OS keychain and sync."""
    settings = load_settings(ctx.obj.get("config_path"))
    service = build_service(settings)

    async def _store():
        await _await_sync(await service.store_api_key(api_key))

    run_async(_store())
    console.print("[green]API key stored[/green]")


@cli.command()
@click.option("--username", prompt=True, help="Glowmarkt account email")
@click.option("--password", prompt=True, hide_input=True, help="Glowmarkt password")
@click.pass_context
def set_glowmarkt(ctx: click.Context, username: str, password: str) -> None:
    """Store Glowmarkt credentials in the OS keychain and sync."""
    settings = load_settings(ctx.obj.get("config_path"))
    service = build_service(settings)

    async def _store():
        await _await_sync(await service.store_glowmarkt_credentials(username, password))

    run_async(_store())
    console.print("[green]Glowmarkt credentials stored[/green]")


@cli.command()
@click.option("--data-only", is_flag=True, help="Keep stored credentials")
@click.confirmation_option(prompt="This deletes all cached data. Continue?")
@click.pass_context
def reset(ctx: click.Context, data_only: bool) -> None:
    """Delete all cached data (and stored credentials unless --data-only)."""
    settings = load_settings(ctx.obj.get("config_path"))
    service = build_service(settings)

    if data_only:
        run_async(service.clear_all_data())
        console.print("[green]All data cleared[/green]")
    else:
        run_async(service.reset())
        console.print("[green]All data and credentials cleared[/green]")


if __name__ == "__main__":
    cli()
