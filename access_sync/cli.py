"""CLI entry point for access-sync.

Runs full catalog syncs and ad-hoc single-substance queries.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import httpx
import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .clients.oracle_client import OracleClient
from .clients.store_client import REQUEST_TIMEOUT, SupabaseStore
from .core.config import SyncConfig, get_config
from .orchestration import RunnerConfig, SyncRunner, SyncRunResult, run_single_query
from .output import write_run_report
from .types.catalogs import COUNTRIES, SUBSTANCES, parse_codes, unknown_countries

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# CLI app
app = typer.Typer(
    name="access-sync",
    help="Sync substance access statuses from an LLM oracle into Supabase",
    add_completion=False,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"access-sync version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        help="Show version and exit",
    ),
) -> None:
    """access-sync - substance x country access status sync."""
    pass


def _load_config() -> SyncConfig:
    """Load and validate configuration, exiting on errors."""
    config = get_config()
    errors = config.validate()
    if errors:
        console.print("[red]Configuration errors:[/red]")
        for error in errors:
            console.print(f"  - {error}")
        console.print("\nPlease set environment variables or create a .env file.")
        raise typer.Exit(1)
    return config


@app.command()
def run(
    substance: Optional[list[str]] = typer.Option(
        None,
        "--substance",
        "-s",
        help="Substance to sync (repeatable). Defaults to the full catalog",
    ),
    country: Optional[list[str]] = typer.Option(
        None,
        "--country",
        "-c",
        help="Country codes, comma separated or repeated. Defaults to all 193",
    ),
    batch_size: Optional[int] = typer.Option(
        None,
        "--batch-size",
        "-b",
        help="Countries per oracle request",
    ),
    batch_pause: Optional[float] = typer.Option(
        None,
        "--pause",
        help="Seconds to wait between oracle requests",
    ),
    max_retries: Optional[int] = typer.Option(
        None,
        "--max-retries",
        help="Retries for rate-limited or failed oracle calls",
    ),
    strict_status: Optional[bool] = typer.Option(
        None,
        "--strict-status/--lenient-status",
        help="Drop records whose status is not a known value",
    ),
    report: Optional[Path] = typer.Option(
        None,
        "--report",
        "-r",
        help="Write a JSON run report to this path",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Enable verbose logging",
    ),
) -> None:
    """Run a full sync of the substance and country catalogs."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = _load_config()

    # CLI overrides
    if batch_size is not None:
        config.batch_size = batch_size
    if batch_pause is not None:
        config.batch_pause = batch_pause
    if max_retries is not None:
        config.max_retries = max_retries
    if strict_status is not None:
        config.strict_status = strict_status

    errors = config.validate()
    if errors:
        for error in errors:
            console.print(f"[red]{error}[/red]")
        raise typer.Exit(1)

    subjects = list(substance) if substance else list(SUBSTANCES)
    scopes = parse_codes(country) if country else list(COUNTRIES)

    unknown = unknown_countries(scopes)
    if unknown:
        console.print(f"[red]Unknown country codes: {', '.join(unknown)}[/red]")
        raise typer.Exit(1)

    console.print("\n[bold]Access Status Sync[/bold]")
    console.print(f"Substances: {', '.join(subjects)}")
    console.print(f"Countries: {len(scopes)} (batch size {config.batch_size})")
    console.print()

    with console.status("Running sync..."):
        result = asyncio.run(run_cli_sync(config, subjects, scopes))

    _print_summary(result)

    if report:
        path = write_run_report(result, report)
        console.print(f"[bold]Report:[/bold] {path}")

    if not result.success:
        raise typer.Exit(1)


async def run_cli_sync(
    config: SyncConfig,
    subjects: list[str],
    scopes: list[str],
) -> SyncRunResult:
    """Build clients and run one sync."""
    runner_config = RunnerConfig.from_sync_config(config)
    oracle = OracleClient(config, policy=runner_config.backoff)

    async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as http:
        store = SupabaseStore(config, client=http)
        runner = SyncRunner(oracle, store, runner_config)
        return await runner.run(subjects, scopes)


def _print_summary(result: SyncRunResult) -> None:
    """Print the run summary table."""
    table = Table(title="Sync Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    style = "green" if result.success else "red"
    table.add_row("Status", f"[{style}]{result.status.value}[/{style}]")
    table.add_row("Batches", f"{result.batches_queried}/{result.batches_planned}")
    table.add_row("Records collected", str(result.records_collected))
    table.add_row("Records dropped", str(result.records_dropped))
    table.add_row("Unknown statuses", str(result.records_flagged))

    if result.reconcile is not None:
        table.add_row("Inserted", str(result.reconcile.inserted))
        table.add_row("Updated", str(result.reconcile.updated))
        table.add_row("Unchanged", str(result.reconcile.unchanged))
        table.add_row("Failed", str(result.reconcile.failed))

    table.add_row("Duration", f"{result.duration_seconds:.1f}s")

    console.print(table)

    if result.error:
        console.print(f"[red]Error:[/red] {result.error}")


@app.command()
def search(
    substance: str = typer.Argument(..., help="Substance name to look up"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose logging"),
) -> None:
    """Query one substance across all countries and upsert the result."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = _load_config()

    async def _search():
        oracle = OracleClient(config, policy=RunnerConfig.from_sync_config(config).backoff)
        async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as http:
            store = SupabaseStore(config, client=http)
            return await run_single_query(
                oracle, store, substance, strict_status=config.strict_status
            )

    try:
        with console.status(f"Querying {substance}..."):
            result = asyncio.run(_search())
    except Exception as e:
        logger.exception(f"Search for {substance} failed")
        console.print(f"[red]Search failed:[/red] {e}")
        raise typer.Exit(1)

    console.print(
        f"[green]Upserted {result.upserted} rows for {result.substance}[/green]"
        + (f" ({result.dropped} dropped)" if result.dropped else "")
    )


@app.command()
def check_config() -> None:
    """Check configuration."""
    config = get_config()

    console.print("[bold]Configuration Check[/bold]\n")

    errors = config.validate()
    if errors:
        console.print("[red]Invalid configuration:[/red]")
        for error in errors:
            console.print(f"  - {error}")
        console.print("\nPlease set environment variables or create a .env file.")
        raise typer.Exit(1)

    console.print(f"[green]OpenAI key:[/green] {config.openai_api_key[:8]}...")
    console.print(f"[green]Model:[/green] {config.openai_model}")
    console.print(f"[green]Store:[/green] {config.rest_url}/{config.supabase_table}")
    console.print(
        f"[green]Batching:[/green] {config.batch_size} countries, "
        f"{config.batch_pause:.1f}s pause"
    )
    console.print(
        f"[green]Backoff:[/green] {config.max_retries} retries, "
        f"{config.backoff_base:.1f}s base, {config.backoff_cap:.1f}s cap"
    )


@app.command()
def catalog() -> None:
    """List the substance catalog and country count."""
    table = Table(title="Substances")
    table.add_column("Name", style="cyan")
    for name in SUBSTANCES:
        table.add_row(name)

    console.print(table)
    console.print(f"[bold]Countries:[/bold] {len(COUNTRIES)}")


# Alias commands
app.command("check")(check_config)


if __name__ == "__main__":
    app()
