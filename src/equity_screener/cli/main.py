"""
Main CLI application for the equity screener.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from equity_screener.core.config import AppConfig, Config, ConfigLoader
from equity_screener.core.exceptions import ScreenerError
from equity_screener.core.logging import setup_logging

app = typer.Typer(
    name="equity-screener",
    help="Fundamental equity screener with a nightly EODHD refresh",
)
console = Console()


def _load_config(config_path: Optional[Path], overrides: Optional[dict] = None) -> AppConfig:
    config = ConfigLoader(config_path=config_path, cli_overrides=overrides).load()
    Config.initialize(config)
    setup_logging(config.logging.model_dump())
    return config


def _open_store(config: AppConfig, db: Optional[Path]):
    from equity_screener.data.store import ScreenerStore

    return ScreenerStore.from_path(db or config.data.paths.db_path)


def _open_cache(config: AppConfig):
    from equity_screener.data.cache import DataCache

    return DataCache(
        cache_dir=Path(config.data.paths.cache_dir),
        max_memory_items=config.cache.max_memory_items,
        enable_disk_cache=config.cache.enable_disk_cache,
    )


@app.command("init-db")
def init_db(
    db: Optional[Path] = typer.Option(None, "--db", help="SQLite database path"),
    sample: bool = typer.Option(False, "--sample", help="Load the demonstration data set"),
    force: bool = typer.Option(False, "--force", help="Drop existing tables first"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Create the fundamentals and prices tables."""
    config = _load_config(config_path)

    try:
        store = _open_store(config, db)
        if force:
            console.print("[yellow]Dropping existing tables...[/yellow]")
            store.reset()
        else:
            store.init_schema()

        if sample:
            store.insert_sample_data()
            console.print(f"[green]Sample data loaded ({len(store.tickers())} tickers)[/green]")

        console.print(f"[green]Database ready: {db or config.data.paths.db_path}[/green]")

    except ScreenerError as e:
        console.print(f"[red]Error initializing database: {escape(str(e))}[/red]")
        raise typer.Exit(1)


@app.command()
def update(
    universe: Optional[str] = typer.Option(None, "--universe", "-u", help="Universe name or ticker file"),
    ticker: Optional[List[str]] = typer.Option(None, "--ticker", "-t", help="Ticker to refresh (repeatable)"),
    force: bool = typer.Option(False, "--force", help="Run even on weekends"),
    db: Optional[Path] = typer.Option(None, "--db", help="SQLite database path"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Refresh stored fundamentals and prices from the provider."""
    from equity_screener.data.provider import EODHDClient
    from equity_screener.data.universe import UniverseManager
    from equity_screener.pipeline.updater import UpdateOrchestrator

    config = _load_config(config_path)

    try:
        tickers = list(ticker) if ticker else UniverseManager(config.update).get_universe(universe)
        store = _open_store(config, db)
        store.init_schema()

        console.print(f"[bold blue]Refreshing {len(tickers)} tickers...[/bold blue]")

        with EODHDClient(config.provider, cache=_open_cache(config)) as provider:
            orchestrator = UpdateOrchestrator(provider, store, config)
            report = orchestrator.run(tickers, force=force)

    except ScreenerError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if report.skipped:
        console.print("[yellow]Skipped: weekend (use --force to override)[/yellow]")
        return

    _display_update_report(report)


@app.command()
def screen(
    filters: Optional[str] = typer.Option(None, "--filters", "-f", help='Filter JSON, e.g. [["pe_ratio","<",15]]'),
    preset: Optional[str] = typer.Option(None, "--preset", "-p", help="Named preset filter"),
    sort: Optional[str] = typer.Option(None, "--sort", "-s", help="Sort key, e.g. roe.desc"),
    page: int = typer.Option(1, "--page", help="Page number (1-based)"),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Page size"),
    format: str = typer.Option("text", "--format", help="Output format: text, json, csv"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output file"),
    db: Optional[Path] = typer.Option(None, "--db", help="SQLite database path"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Screen stored tickers with a filter or preset."""
    from equity_screener.output.formatters import get_formatter
    from equity_screener.screener.engine import ScreeningEngine

    config = _load_config(config_path)

    if filters and preset:
        console.print("[red]Use either --filters or --preset, not both[/red]")
        raise typer.Exit(2)

    try:
        engine = ScreeningEngine(_open_store(config, db), config.screener)
        if preset:
            result_page = engine.screen_preset(preset, sort=sort, page=page, limit=limit)
        else:
            result_page = engine.screen_page(filters, sort=sort, page=page, limit=limit)
        formatter = get_formatter(format)

    except ScreenerError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(2)

    if output:
        formatter.save(formatter.format_page(result_page), output)
        console.print(f"[green]Results saved to {output}[/green]")
    elif format == "text":
        _display_page(result_page)
    else:
        typer.echo(formatter.format_page(result_page))


@app.command()
def presets(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """List the named preset filters."""
    config = _load_config(config_path)

    table = Table(title="Preset Filters")
    table.add_column("Name", style="cyan")
    table.add_column("Filter")

    for name, filter_json in sorted(config.screener.presets.items()):
        table.add_row(name, escape(filter_json))

    console.print(table)


@app.command("cache-stats")
def cache_stats(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Show provider response cache statistics."""
    config = _load_config(config_path)
    stats = _open_cache(config).get_stats()

    table = Table(title="Cache")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Memory entries", f"{stats['memory_entries']}/{stats['memory_max']}")
    table.add_row("Disk enabled", str(stats["disk_enabled"]))
    table.add_row("Disk entries", str(stats["disk_entries"]))
    table.add_row("Disk size", f"{stats['disk_size_mb']:.2f} MB")

    console.print(table)


@app.command("cache-clear")
def cache_clear(
    expired_only: bool = typer.Option(False, "--expired", help="Only remove expired entries"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Remove cached provider responses."""
    config = _load_config(config_path)
    cache = _open_cache(config)

    if expired_only:
        removed = cache.clear_expired()
        console.print(f"[green]Removed {removed} expired entries[/green]")
    else:
        cache.clear()
        console.print("[green]Cache cleared[/green]")


def _display_page(result_page) -> None:
    """Display a page of screening results."""
    table = Table(title=f"Screening Results (page {result_page.page})")
    table.add_column("Ticker", style="cyan")
    table.add_column("P/E", justify="right")
    table.add_column("ROE", justify="right")
    table.add_column("Close", justify="right", style="green")
    table.add_column("SMA50", justify="right")
    table.add_column("SMA200", justify="right")
    table.add_column("Yield", justify="right")
    table.add_column("Intrinsic", justify="right")
    table.add_column("MoS", justify="right")
    table.add_column("Outlook")

    for r in result_page.data:
        mos_color = "green" if r.margin_of_safety > 0 else "red"
        table.add_row(
            r.ticker,
            f"{r.pe_ratio:.2f}",
            f"{r.roe * 100:.1f}%",
            f"{r.close:.2f}",
            f"{r.sma50:.2f}",
            f"{r.sma200:.2f}",
            f"{r.dividend_yield * 100:.2f}%",
            f"{r.intrinsic_value:.2f}",
            f"[{mos_color}]{r.margin_of_safety * 100:.1f}%[/{mos_color}]",
            r.earnings_outlook,
        )

    console.print(table)
    footer = f"{result_page.total_count} rows"
    if result_page.has_more:
        footer += f" | more results on page {result_page.page + 1}"
    console.print(f"[dim]{footer}[/dim]")


def _display_update_report(report) -> None:
    """Display the outcome of a refresh run."""
    color = "green" if not report.failed else "yellow"
    console.print(Panel(
        f"[bold {color}]{len(report.succeeded)}/{report.total}[/bold {color}] tickers updated",
        title="Nightly Update",
    ))

    if report.failed:
        table = Table(title="Failed Tickers")
        table.add_column("Ticker", style="cyan")
        table.add_column("Reason", style="red")
        for failed_ticker, reason in sorted(report.failed.items()):
            table.add_row(failed_ticker, escape(reason))
        console.print(table)


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
